import logging
import time
from typing import Optional

import bcrypt
import jwt

from app.config.settings import settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ADMIN_SUBJECT = "admin"

# bcrypt只使用前72字节
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """生成bcrypt密码哈希"""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("密码哈希格式无效")
        return False


def create_admin_token(now: Optional[float] = None) -> str:
    """签发管理员JWT，有效期ADMIN_TOKEN_TTL秒"""
    issued_at = int(now if now is not None else time.time())
    payload = {
        "sub": ADMIN_SUBJECT,
        "iat": issued_at,
        "exp": issued_at + settings.ADMIN_TOKEN_TTL,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_admin_token(token: Optional[str]) -> bool:
    """校验管理员JWT的签名、过期时间和主体"""
    if not token:
        return False
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "sub"]}
        )
    except jwt.InvalidTokenError as e:
        logger.debug(f"管理员令牌无效: {e}")
        return False
    return payload.get("sub") == ADMIN_SUBJECT
