from sqlalchemy import Column, String, Integer, ForeignKey, Boolean, DateTime, Float, Text, UniqueConstraint
from .base import BaseModel, utc_now

"""
录音模型
记录某用户在某语言下第几句的录音元数据:句子内容、存储路径、信噪比、是否需要重录等。
同一用户、语言、句子序号只保留一条记录。
"""
class Recording(BaseModel):
    __tablename__ = "recordings"
    __table_args__ = (
        UniqueConstraint("unique_code", "language", "sentence_index", name="uq_recording_sentence"),
    )

    unique_code = Column(String(16), ForeignKey("users.unique_code"), nullable=False, index=True)
    language = Column(String(100), nullable=False, index=True)
    sentence_index = Column(Integer, nullable=False)
    sentence_text = Column(Text, nullable=False)
    file_path = Column(String(500), nullable=False)
    snr = Column(Float)  # dB
    duration = Column(Float)  # 秒
    needs_rerecording = Column(Boolean, default=False)
    is_rerecording = Column(Boolean, default=False)  # 文件位于重录存储桶
    recording_date = Column(DateTime, default=utc_now)

    def to_dict(self):
        return {
            "id": self.id,
            "unique_code": self.unique_code,
            "language": self.language,
            "sentence_index": self.sentence_index,
            "sentence_text": self.sentence_text,
            "file_path": self.file_path,
            "snr": self.snr,
            "duration": self.duration,
            "needs_rerecording": bool(self.needs_rerecording),
            "is_rerecording": bool(self.is_rerecording),
            "recording_date": self.recording_date.isoformat() if self.recording_date else None
        }
