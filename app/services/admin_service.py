#!/usr/bin/env python3
"""
管理员服务模块
管理员登录、密码、存储偏好、统计数据以及用户删除
"""

import logging
from typing import Dict, Any, Optional
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.admin_settings import AdminSettings
from app.repositories.admin_settings_repository import AdminSettingsRepository
from app.repositories.feedback_repository import FeedbackRepository
from app.repositories.language_repository import LanguageRepository
from app.repositories.notification_repository import NotificationRepository
from app.repositories.recording_repository import RecordingRepository
from app.repositories.session_repository import SessionRepository
from app.repositories.user_repository import UserRepository
from app.services.errors import AuthenticationError, NotFoundError
from app.services.record_service import RecordService
from app.utils.security import hash_password, verify_password, create_admin_token
from app.utils.storage_client import RecordingStorage

logger = logging.getLogger(__name__)

STORAGE_LOCAL = "local"
STORAGE_GOOGLE_DRIVE = "google-drive"
STORAGE_TYPES = (STORAGE_LOCAL, STORAGE_GOOGLE_DRIVE)


class AdminService:
    def __init__(self, db: Session, storage: RecordingStorage):
        self.db = db
        self.settings_repo = AdminSettingsRepository(db)
        self.user_repo = UserRepository(db)
        self.language_repo = LanguageRepository(db)
        self.record_repo = RecordingRepository(db)
        self.session_repo = SessionRepository(db)
        self.notification_repo = NotificationRepository(db)
        self.feedback_repo = FeedbackRepository(db)
        self.record_service = RecordService(db, storage)

    def get_settings(self) -> AdminSettings:
        """获取管理员设置，不存在时用默认密码创建"""
        admin_settings = self.settings_repo.get_settings()
        if admin_settings is None:
            admin_settings = self.settings_repo.create(
                password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
                storage_type=STORAGE_LOCAL,
                auto_sync=False,
                google_connected=False,
            )
            logger.info("已创建默认管理员设置")
        return admin_settings

    def login(self, password: str) -> str:
        """校验管理员密码并签发令牌"""
        admin_settings = self.get_settings()
        if not password or not verify_password(password, admin_settings.password_hash):
            logger.warning("管理员登录失败: 密码错误")
            raise AuthenticationError("密码错误")
        logger.info("管理员登录成功")
        return create_admin_token()

    def change_password(self, new_password: str, confirm_password: str) -> bool:
        """修改管理员密码"""
        if new_password != confirm_password:
            raise ValueError("两次输入的密码不一致")
        if not new_password or len(new_password) < settings.MIN_PASSWORD_LENGTH:
            raise ValueError(f"密码长度不能少于{settings.MIN_PASSWORD_LENGTH}位")

        admin_settings = self.get_settings()
        self.settings_repo.update(admin_settings.id, password_hash=hash_password(new_password))
        logger.info("管理员密码已修改")
        return True

    def update_storage_settings(self, storage_type: Optional[str] = None,
                                auto_sync: Optional[bool] = None) -> AdminSettings:
        """更新录音存储偏好"""
        admin_settings = self.get_settings()
        values: Dict[str, Any] = {}

        if storage_type is not None:
            if storage_type not in STORAGE_TYPES:
                raise ValueError(f"不支持的存储类型: {storage_type}")
            if storage_type == STORAGE_GOOGLE_DRIVE and not admin_settings.google_connected:
                raise ValueError("请先连接Google Drive账号")
            values["storage_type"] = storage_type
        if auto_sync is not None:
            values["auto_sync"] = auto_sync

        if values:
            admin_settings = self.settings_repo.update(admin_settings.id, **values)
            logger.info(f"存储设置已更新: {values}")
        return admin_settings

    def connect_google_drive(self, email: str, folder_id: Optional[str] = None,
                             folder_name: Optional[str] = None) -> AdminSettings:
        """记录已连接的Google Drive账号"""
        if not email or "@" not in email:
            raise ValueError("请输入有效的邮箱地址")
        admin_settings = self.get_settings()
        return self.settings_repo.update(
            admin_settings.id,
            google_connected=True,
            google_email=email.strip(),
            google_folder_id=folder_id,
            google_folder_name=folder_name,
        )

    def disconnect_google_drive(self) -> AdminSettings:
        """断开Google Drive，存储方式回到本地"""
        admin_settings = self.get_settings()
        logger.info(f"断开Google Drive账号: {admin_settings.google_email}")
        return self.settings_repo.update(
            admin_settings.id,
            google_connected=False,
            google_email=None,
            google_folder_id=None,
            google_folder_name=None,
            storage_type=STORAGE_LOCAL,
            auto_sync=False,
        )

    def dashboard_stats(self) -> Dict[str, Any]:
        """管理后台统计数据"""
        return {
            "total_users": self.user_repo.count(),
            "total_languages": self.language_repo.count(),
            "total_recordings": self.record_repo.count(),
            "rerecording_requests": self.record_repo.count_all_rerecording_requests(),
            "total_feedback": self.feedback_repo.count(),
            "storage_used": self.record_service.storage_used(),
        }

    def get_user_detail(self, unique_code: str) -> Dict[str, Any]:
        """用户详情，包括语言和录音"""
        user = self.user_repo.get_by_unique_code(unique_code)
        if not user:
            raise NotFoundError("用户不存在")
        recordings = self.record_repo.get_user_recordings(unique_code)
        return {
            **user.to_dict(),
            "languages": self.user_repo.get_languages(unique_code),
            "recordings": [r.to_dict() for r in recordings],
        }

    def delete_user(self, unique_code: str) -> Dict[str, int]:
        """
        彻底删除用户
        依次删除录音(文件和元数据)、录音会话、语言、通知、反馈，最后删除用户
        """
        user = self.user_repo.get_by_unique_code(unique_code)
        if not user:
            raise NotFoundError("用户不存在")

        result = {
            "recordings": self.record_service.delete_user_recordings(unique_code),
            "sessions": self.session_repo.delete_by(unique_code=unique_code),
            "languages": self.user_repo.delete_languages(unique_code),
            "notifications": self.notification_repo.delete_by(unique_code=unique_code),
            "feedback": self.feedback_repo.delete_by(unique_code=unique_code),
        }
        self.db.expire(user)
        self.user_repo.delete(user.id)
        logger.info(f"用户 {unique_code} 已删除: {result}")
        return result
