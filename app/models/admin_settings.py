from sqlalchemy import Column, String, Boolean
from .base import BaseModel

"""
管理员设置模型
全局只有一行:管理员密码哈希和录音存储偏好。
"""
class AdminSettings(BaseModel):
    __tablename__ = "admin_settings"

    password_hash = Column(String(128), nullable=False)
    storage_type = Column(String(20), default="local")  # local, google-drive
    auto_sync = Column(Boolean, default=False)
    google_connected = Column(Boolean, default=False)
    google_email = Column(String(200))
    google_folder_id = Column(String(200))
    google_folder_name = Column(String(200))
