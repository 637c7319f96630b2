from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel

"""
用户语言模型
记录用户选择录制的语言,第一条记录即为注册时的语言偏好。
"""
class UserLanguage(BaseModel):
    __tablename__ = "user_languages"
    __table_args__ = (UniqueConstraint("unique_code", "language", name="uq_user_language"),)

    unique_code = Column(String(16), ForeignKey("users.unique_code"), nullable=False, index=True)
    language = Column(String(100), nullable=False)

    user = relationship("User", back_populates="languages")
