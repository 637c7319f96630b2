import logging
from typing import List
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.notification import Notification
from app.repositories.notification_repository import NotificationRepository
from app.services.errors import NotFoundError
from app.utils.helpers import truncate_text

logger = logging.getLogger(__name__)


class NotificationService:
    """用户通知服务"""

    def __init__(self, db: Session):
        self.db = db
        self.notification_repo = NotificationRepository(db)

    def get_user_notifications(self, unique_code: str, unread_only: bool = False) -> List[Notification]:
        return self.notification_repo.get_user_notifications(unique_code, unread_only)

    def count_unread(self, unique_code: str) -> int:
        return self.notification_repo.count_unread(unique_code)

    def add_notification(self, unique_code: str, message: str) -> Notification:
        notification = self.notification_repo.create(unique_code=unique_code, message=message, read=False)
        logger.info(f"发送通知给用户 {unique_code}: {message}")
        return notification

    def mark_as_read(self, notification_id: int) -> Notification:
        notification = self.notification_repo.update(notification_id, read=True)
        if not notification:
            raise NotFoundError("通知不存在")
        return notification

    def send_rerecording_notification(self, unique_code: str, sentence: str) -> Notification:
        """通知用户重新录制某个句子"""
        preview = truncate_text(sentence, settings.NOTIFICATION_PREVIEW_LENGTH)
        return self.add_notification(
            unique_code, f'You need to re-record the following sentence: "{preview}"'
        )
