from sqlalchemy import Column, String, DateTime, JSON
from .base import BaseModel, utc_now

"""
语言模型
每种语言包含一个有序的提示句子列表,由管理员上传。
"""
class Language(BaseModel):
    __tablename__ = "languages"

    name = Column(String(100), unique=True, index=True, nullable=False)
    sentences = Column(JSON, nullable=False, default=list)
    upload_date = Column(DateTime, default=utc_now)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "sentences": list(self.sentences or []),
            "upload_date": self.upload_date.isoformat() if self.upload_date else None
        }
