from typing import List
from sqlalchemy.orm import Session

from app.models.feedback import Feedback
from app.repositories.base import BaseRepository


class FeedbackRepository(BaseRepository[Feedback]):
    def __init__(self, db: Session):
        super().__init__(db, Feedback)

    def get_all_newest_first(self) -> List[Feedback]:
        return self.db.query(Feedback).order_by(Feedback.id.desc()).all()
