from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from app.models.base import utc_now
from app.models.language import Language
from app.models.session import RecordingSession
from app.models.user_language import UserLanguage
from app.repositories.base import BaseRepository


class LanguageRepository(BaseRepository[Language]):
    """
    语言Repository类，管理语言和句子数据的访问操作
    """

    def __init__(self, db: Session):
        super().__init__(db, Language)

    def get_by_name(self, name: str) -> Optional[Language]:
        """根据名称获取语言"""
        return self.db.query(Language).filter(Language.name == name).first()

    def get_all_languages(self) -> List[Language]:
        """按名称排序获取所有语言"""
        return self.db.query(Language).order_by(Language.name.asc()).all()

    def get_names(self) -> List[str]:
        return [row.name for row in self.db.query(Language.name).order_by(Language.name.asc()).all()]

    def delete_with_references(self, language: Language) -> Dict[str, int]:
        """
        在一个事务中删除语言:
        - 删除所有用户的该语言选择
        - 结束该语言下未结束的录音会话
        录音记录和文件保留
        """
        removed = self.db.query(UserLanguage).filter(
            UserLanguage.language == language.name
        ).delete(synchronize_session=False)
        ended = self.db.query(RecordingSession).filter(
            RecordingSession.language == language.name,
            RecordingSession.status != "ended"
        ).update({"status": "ended", "end_time": utc_now()}, synchronize_session=False)
        self.db.delete(language)
        self.db.commit()
        self.db.expire_all()
        return {"user_languages": removed, "sessions": ended}
