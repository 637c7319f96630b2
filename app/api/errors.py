"""业务异常到HTTP状态码的转换"""
import logging
from fastapi import HTTPException, status

from app.services.errors import NotFoundError, ConflictError, AuthenticationError, LanguageMismatchError
from app.utils.storage_client import StorageError
from app.workflow.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)

DOMAIN_ERRORS = (
    NotFoundError, ConflictError, AuthenticationError, InvalidTransitionError, StorageError, ValueError
)


def http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (ConflictError, InvalidTransitionError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, LanguageMismatchError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{exc}，请选择: {exc.correct_language}"
        )
    if isinstance(exc, StorageError):
        logger.error(f"存储服务错误: {exc}")
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
