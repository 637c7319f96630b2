import logging
import re
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.language import Language
from app.repositories.language_repository import LanguageRepository
from app.services.errors import NotFoundError, ConflictError

logger = logging.getLogger(__name__)

TEXT_FORMAT_SINGLE = "single"        # 每行一句
TEXT_FORMAT_PARAGRAPH = "paragraph"  # 按句号拆分段落


class LanguageService:
    """语言与句子语料服务"""

    def __init__(self, db: Session):
        self.db = db
        self.language_repo = LanguageRepository(db)

    def get_all_languages(self) -> List[Language]:
        return self.language_repo.get_all_languages()

    def get_language(self, name: str) -> Language:
        language = self.language_repo.get_by_name(name)
        if not language:
            raise NotFoundError(f"语言不存在: {name}")
        return language

    def get_sentences(self, name: str) -> List[str]:
        """获取语言的句子列表"""
        return list(self.get_language(name).sentences or [])

    @staticmethod
    def parse_sentences(text: str, text_format: str = TEXT_FORMAT_SINGLE) -> List[str]:
        """
        解析上传的文本为句子列表

        Args:
            text: 文本内容
            text_format: single 每行一句; paragraph 按"."拆分并补回句号

        Returns:
            List[str]: 非空句子列表
        """
        if text_format == TEXT_FORMAT_SINGLE:
            return [line.strip() for line in re.split(r"\r?\n", text) if line.strip()]
        if text_format == TEXT_FORMAT_PARAGRAPH:
            return [part.strip() + "." for part in text.split(".") if part.strip()]
        raise ValueError(f"不支持的文本格式: {text_format}")

    def create_language(self, name: str, sentences: List[str]) -> Language:
        """新增语言"""
        name = (name or "").strip()
        sentences = [s.strip() for s in sentences or [] if s and s.strip()]

        if not name:
            raise ValueError("语言名称不能为空")
        if not sentences:
            raise ValueError("没有找到有效的句子")
        if self.language_repo.get_by_name(name):
            raise ConflictError(f"语言已存在: {name}")

        language = self.language_repo.create(name=name, sentences=sentences)
        logger.info(f"新增语言 {name}，共 {len(sentences)} 句")
        return language

    def create_language_from_text(self, name: str, text: str,
                                  text_format: str = TEXT_FORMAT_SINGLE) -> Language:
        """从上传的文本文件新增语言"""
        return self.create_language(name, self.parse_sentences(text, text_format))

    def delete_language(self, language_id: int) -> Optional[str]:
        """
        删除语言，返回被删除的语言名称
        用户的该语言选择一并删除，进行中的会话被结束，已有录音保留
        """
        language = self.language_repo.get_by_id(language_id)
        if not language:
            raise NotFoundError("语言不存在")
        name = language.name
        removed = self.language_repo.delete_with_references(language)
        logger.info(
            f"语言已删除: {name}，移除用户语言 {removed['user_languages']} 条，"
            f"结束会话 {removed['sessions']} 个"
        )
        return name
