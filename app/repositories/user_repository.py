from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.models.user import User
from app.models.user_language import UserLanguage
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_unique_code(self, unique_code: str) -> Optional[User]:
        """根据访问码获取用户"""
        return self.db.query(User).filter(User.unique_code == unique_code).first()

    def get_by_contact_number(self, contact_number: str) -> Optional[User]:
        """根据联系电话获取用户"""
        return self.db.query(User).filter(User.contact_number == contact_number).first()

    def code_exists(self, unique_code: str) -> bool:
        return self.db.query(User.id).filter(User.unique_code == unique_code).first() is not None

    def get_all_newest_first(self) -> List[User]:
        """按注册时间倒序获取所有用户"""
        return self.db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def get_languages(self, unique_code: str) -> List[str]:
        """获取用户的录音语言列表，注册时的语言排在第一位"""
        rows = self.db.query(UserLanguage).filter(
            UserLanguage.unique_code == unique_code
        ).order_by(UserLanguage.id.asc()).all()
        return [row.language for row in rows]

    def add_language(self, unique_code: str, language: str) -> UserLanguage:
        """为用户添加录音语言"""
        user_language = UserLanguage(unique_code=unique_code, language=language)
        self.db.add(user_language)
        self.db.commit()
        self.db.refresh(user_language)
        return user_language

    def delete_languages(self, unique_code: str) -> int:
        deleted = self.db.query(UserLanguage).filter(
            UserLanguage.unique_code == unique_code
        ).delete(synchronize_session=False)
        self.db.commit()
        return deleted

    def create_with_language(self, language: str, **kwargs) -> User:
        """在一个事务中创建用户和注册语言，唯一约束冲突时回滚并抛出IntegrityError"""
        user = User(**kwargs)
        user.languages.append(UserLanguage(language=language))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user
