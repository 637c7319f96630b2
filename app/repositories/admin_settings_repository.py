from typing import Optional
from sqlalchemy.orm import Session

from app.models.admin_settings import AdminSettings
from app.repositories.base import BaseRepository


class AdminSettingsRepository(BaseRepository[AdminSettings]):
    def __init__(self, db: Session):
        super().__init__(db, AdminSettings)

    def get_settings(self) -> Optional[AdminSettings]:
        """获取唯一的管理员设置行"""
        return self.db.query(AdminSettings).order_by(AdminSettings.id.asc()).first()
