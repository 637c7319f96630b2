from sqlalchemy import Column, String, Integer, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from .base import BaseModel

"""
录音会话模型
记录一次录音会话:用户、语言、当前句子序号、当前步骤(idle/recording/stopped/saved)和会话状态。
"""
class RecordingSession(BaseModel):
    __tablename__ = "recording_sessions"

    unique_code = Column(String(16), ForeignKey("users.unique_code"), nullable=False, index=True)
    language = Column(String(100), nullable=False)
    current_index = Column(Integer, default=0)
    current_step = Column(String(20), default="idle")
    status = Column(String(20), default="active")  # active, completed, ended
    saved_count = Column(Integer, default=0)
    end_time = Column(DateTime)

    user = relationship("User")
