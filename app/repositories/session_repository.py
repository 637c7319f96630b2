from typing import Optional, List
from sqlalchemy.orm import Session
from app.models.session import RecordingSession
from app.repositories.base import BaseRepository

class SessionRepository(BaseRepository[RecordingSession]):
    def __init__(self, db: Session):
        super().__init__(db, RecordingSession)

    def get_active_session(self, unique_code: str, language: str) -> Optional[RecordingSession]:
        """获取用户在某语言下的活跃会话"""
        return self.db.query(RecordingSession).filter(
            RecordingSession.unique_code == unique_code,
            RecordingSession.language == language,
            RecordingSession.status == "active"
        ).order_by(RecordingSession.id.desc()).first()

    def get_user_sessions(self, unique_code: str, limit: int = 10) -> List[RecordingSession]:
        """获取用户的会话历史"""
        return self.db.query(RecordingSession).filter(
            RecordingSession.unique_code == unique_code
        ).order_by(RecordingSession.id.desc()).limit(limit).all()
