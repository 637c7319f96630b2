from sqlalchemy import Column, String, Boolean, Text
from .base import BaseModel

"""
通知模型
发送给用户的站内通知,例如管理员要求重录某个句子。
"""
class Notification(BaseModel):
    __tablename__ = "notifications"

    unique_code = Column(String(16), index=True)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False)
