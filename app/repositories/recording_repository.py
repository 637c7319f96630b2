from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.recording import Recording
from app.repositories.base import BaseRepository


class RecordingRepository(BaseRepository[Recording]):
    """录音元数据Repository"""

    def __init__(self, db: Session):
        super().__init__(db, Recording)

    def get_for_sentence(self, unique_code: str, language: str, sentence_index: int) -> Optional[Recording]:
        """获取某用户某语言某句的录音"""
        return self.db.query(Recording).filter(
            Recording.unique_code == unique_code,
            Recording.language == language,
            Recording.sentence_index == sentence_index
        ).first()

    def get_user_recordings(self, unique_code: str, language: Optional[str] = None) -> List[Recording]:
        """获取用户的录音，可按语言过滤"""
        query = self.db.query(Recording).filter(Recording.unique_code == unique_code)
        if language:
            query = query.filter(Recording.language == language)
        return query.order_by(Recording.language.asc(), Recording.sentence_index.asc()).all()

    def get_language_recordings(self, language: str) -> List[Recording]:
        return self.db.query(Recording).filter(
            Recording.language == language
        ).order_by(Recording.unique_code.asc(), Recording.sentence_index.asc()).all()

    def count_rerecording_requests(self, unique_code: str, language: str) -> int:
        """统计需要重录的句子数量"""
        return self.db.query(Recording).filter(
            Recording.unique_code == unique_code,
            Recording.language == language,
            Recording.needs_rerecording == True
        ).count()

    def count_all_rerecording_requests(self) -> int:
        return self.db.query(Recording).filter(Recording.needs_rerecording == True).count()

    def delete_all(self) -> int:
        """删除全部录音元数据"""
        deleted = self.db.query(Recording).delete(synchronize_session=False)
        self.db.commit()
        return deleted
