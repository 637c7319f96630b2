import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.feedback import Feedback
from app.repositories.feedback_repository import FeedbackRepository

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, db: Session):
        self.db = db
        self.feedback_repo = FeedbackRepository(db)

    def submit_feedback(self, unique_code: Optional[str], rating: int, comments: Optional[str] = None) -> Feedback:
        """提交反馈，评分必须在1到5之间"""
        if rating is None or not 1 <= rating <= 5:
            raise ValueError("请选择1到5之间的评分")

        feedback = self.feedback_repo.create(
            unique_code=unique_code or None,
            rating=rating,
            comments=(comments or "").strip() or None,
        )
        logger.info(f"收到用户反馈: {unique_code} 评分{rating}")
        return feedback

    def get_all_feedback(self) -> List[Feedback]:
        return self.feedback_repo.get_all_newest_first()
