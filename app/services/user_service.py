#!/usr/bin/env python3
"""
用户服务模块
处理用户注册、访问码登录、录音语言和密码管理等业务逻辑
"""

import logging
from typing import Dict, List, Optional, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.repositories.language_repository import LanguageRepository
from app.services.errors import NotFoundError, ConflictError, AuthenticationError, LanguageMismatchError
from app.utils.helpers import generate_unique_access_code, validate_access_code
from app.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.language_repo = LanguageRepository(db)

    def register_user(self, name: str, age: int, gender: str,
                      contact_number: str, language: str) -> User:
        """
        用户注册
        - 所有字段必填，年龄必须为正数
        - 联系电话不能重复
        - 语言必须已存在
        注册成功后生成唯一访问码，并记录用户的语言偏好
        """
        name = (name or "").strip()
        gender = (gender or "").strip()
        contact_number = (contact_number or "").strip()
        language = (language or "").strip()

        if not name or not gender or not contact_number or not language or age is None:
            raise ValueError("请填写所有必填字段")
        if age <= 0:
            raise ValueError("年龄必须大于0")
        if not self.language_repo.get_by_name(language):
            raise ValueError(f"语言不存在: {language}")
        if self.user_repo.get_by_contact_number(contact_number):
            raise ConflictError("该联系电话已被注册")

        unique_code = generate_unique_access_code(self.user_repo.code_exists)
        try:
            user = self.user_repo.create_with_language(
                language,
                unique_code=unique_code,
                name=name,
                age=age,
                gender=gender,
                contact_number=contact_number,
            )
        except IntegrityError:
            logger.warning(f"注册冲突，联系电话或访问码已存在: {contact_number}")
            raise ConflictError("该联系电话已被注册")

        logger.info(f"新用户注册成功: {unique_code} - {name} ({language})")
        return user

    def authenticate(self, unique_code: str, contact_number: Optional[str] = None,
                     language: Optional[str] = None, password: Optional[str] = None) -> Dict[str, Any]:
        """
        访问码登录
        - 提供联系电话时必须与访问码匹配
        - 提供语言时必须是用户的录音语言之一
        - 用户设置过密码时必须提供正确密码
        """
        unique_code = (unique_code or "").strip().upper()
        if not validate_access_code(unique_code):
            logger.warning(f"登录失败，访问码格式错误: {unique_code}")
            raise AuthenticationError(f"访问码格式错误，应为{settings.ACCESS_CODE_LENGTH}位数字或大写字母")

        user = self.user_repo.get_by_unique_code(unique_code)
        if not user or (contact_number and user.contact_number != contact_number.strip()):
            logger.warning(f"登录失败，访问码无效: {unique_code}")
            raise AuthenticationError("访问码无效，请检查后重试")

        if user.password_hash and not (password and verify_password(password, user.password_hash)):
            raise AuthenticationError("密码错误")

        languages = self.user_repo.get_languages(user.unique_code)
        if language and languages and language not in languages:
            raise LanguageMismatchError(languages[0])

        logger.info(f"用户登录成功: {user.unique_code}")
        return {
            "user": user,
            "language": language or (languages[0] if languages else None),
            "languages": languages,
        }

    def get_user_by_code(self, unique_code: str) -> Optional[User]:
        """根据访问码获取用户信息"""
        return self.user_repo.get_by_unique_code(unique_code)

    def require_user(self, unique_code: str) -> User:
        user = self.get_user_by_code(unique_code)
        if not user:
            raise NotFoundError("用户不存在")
        return user

    def get_all_users(self) -> List[User]:
        """按注册时间倒序获取所有用户"""
        return self.user_repo.get_all_newest_first()

    def get_user_languages(self, unique_code: str) -> List[str]:
        """获取用户的录音语言"""
        self.require_user(unique_code)
        return self.user_repo.get_languages(unique_code)

    def add_user_language(self, unique_code: str, language: str) -> List[str]:
        """为用户添加录音语言，已存在时不重复添加"""
        self.require_user(unique_code)
        if not self.language_repo.get_by_name(language):
            raise ValueError(f"语言不存在: {language}")

        languages = self.user_repo.get_languages(unique_code)
        if language not in languages:
            self.user_repo.add_language(unique_code, language)
            languages.append(language)
            logger.info(f"用户 {unique_code} 添加录音语言: {language}")
        return languages

    def update_password(self, unique_code: str, password: str) -> bool:
        """设置用户密码"""
        user = self.require_user(unique_code)
        if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
            raise ValueError(f"密码长度不能少于{settings.MIN_PASSWORD_LENGTH}位")

        self.user_repo.update(user.id, password_hash=hash_password(password))
        logger.info(f"用户密码已更新: {unique_code}")
        return True
