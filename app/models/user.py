from sqlalchemy import Column, String, Integer
from sqlalchemy.orm import relationship
from .base import BaseModel

"""
用户模型
记录参与录音的用户信息,包括访问码、姓名、年龄、性别、联系电话以及可选的登录密码。
"""
class User(BaseModel):
    __tablename__ = "users"

    unique_code = Column(String(16), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(20), nullable=False)
    contact_number = Column(String(32), unique=True, index=True, nullable=False)
    password_hash = Column(String(128))

    # 关系定义
    languages = relationship(
        "UserLanguage", back_populates="user", cascade="all, delete-orphan",
        order_by="UserLanguage.id"
    )

    @property
    def language_preference(self):
        return self.languages[0].language if self.languages else None

    @property
    def has_password(self):
        return bool(self.password_hash)

    def to_dict(self):
        return {
            "id": self.id,
            "unique_code": self.unique_code,
            "name": self.name,
            "age": self.age,
            "gender": self.gender,
            "contact_number": self.contact_number,
            "language_preference": self.language_preference,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
