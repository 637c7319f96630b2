import secrets
from datetime import datetime
from typing import Callable, Optional

import pytz

from app.config.settings import settings

def generate_access_code(length: Optional[int] = None, alphabet: Optional[str] = None) -> str:
    """生成访问码"""
    length = length or settings.ACCESS_CODE_LENGTH
    alphabet = alphabet or settings.ACCESS_CODE_ALPHABET
    return "".join(secrets.choice(alphabet) for _ in range(length))

def generate_unique_access_code(exists: Callable[[str], bool], max_attempts: int = 1000) -> str:
    """生成未被占用的访问码，exists用于检查访问码是否已存在"""
    for _ in range(max_attempts):
        code = generate_access_code()
        if not exists(code):
            return code
    raise RuntimeError("无法生成唯一的访问码")

def format_timestamp(dt: datetime = None) -> str:
    """格式化时间戳"""
    if not dt:
        dt = datetime.now(pytz.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")

def truncate_text(text: str, limit: int) -> str:
    """截断文本，超出部分用...表示"""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."

def validate_access_code(code: str) -> bool:
    """验证访问码格式"""
    if not code or not isinstance(code, str):
        return False
    return len(code) == settings.ACCESS_CODE_LENGTH and all(c in settings.ACCESS_CODE_ALPHABET for c in code)
