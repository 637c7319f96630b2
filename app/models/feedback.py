from sqlalchemy import Column, String, Integer, Text
from .base import BaseModel

"""
反馈模型
用户完成录音后提交的评分(1-5)和意见。
"""
class Feedback(BaseModel):
    __tablename__ = "feedback"

    unique_code = Column(String(16), index=True)
    rating = Column(Integer, nullable=False)
    comments = Column(Text)

    def to_dict(self):
        return {
            "id": self.id,
            "unique_code": self.unique_code,
            "rating": self.rating,
            "comments": self.comments,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
