from typing import Optional
from fastapi import Header, HTTPException, status

from app.utils.security import verify_admin_token
from app.utils.storage_client import RecordingStorage, get_storage


def get_recording_storage() -> RecordingStorage:
    """录音存储依赖，测试中可覆盖"""
    return get_storage()


def require_admin(x_admin_token: Optional[str] = Header(None)) -> str:
    """校验请求头中的管理员令牌"""
    if not verify_admin_token(x_admin_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="管理员未登录或登录已过期"
        )
    return x_admin_token
