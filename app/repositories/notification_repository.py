from typing import List
from sqlalchemy.orm import Session

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def get_user_notifications(self, unique_code: str, unread_only: bool = False) -> List[Notification]:
        """获取用户通知，最新的在前"""
        query = self.db.query(Notification).filter(Notification.unique_code == unique_code)
        if unread_only:
            query = query.filter(Notification.read == False)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    def count_unread(self, unique_code: str) -> int:
        return self.db.query(Notification).filter(
            Notification.unique_code == unique_code,
            Notification.read == False
        ).count()
