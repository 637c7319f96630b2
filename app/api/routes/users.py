import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.utils.database import get_db
from app.services.user_service import UserService
from app.services.record_service import RecordService
from app.api.dependencies import get_recording_storage
from app.api.errors import DOMAIN_ERRORS, http_error
from app.api.schemas.user_schemas import (
    UserCreate, UserResponse, RegisterResponse, LoginRequest, LoginResponse,
    UserLanguageAdd, UserLanguagesResponse, PasswordUpdate
)
from app.api.schemas.record_schemas import RecordingListResponse, RerecordCountResponse
from app.utils.storage_client import RecordingStorage

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    用户注册接口，返回访问码
    """
    try:
        user_service = UserService(db)
        user = user_service.register_user(
            name=user_data.name,
            age=user_data.age,
            gender=user_data.gender,
            contact_number=user_data.contact_number,
            language=user_data.language,
        )
        return {"unique_code": user.unique_code, "user": user}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"用户注册失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="用户注册失败"
        )

@router.post("/login", response_model=LoginResponse)
def login_user(login_data: LoginRequest, db: Session = Depends(get_db)):
    """
    访问码登录
    """
    try:
        user_service = UserService(db)
        return user_service.authenticate(
            unique_code=login_data.unique_code,
            contact_number=login_data.contact_number,
            language=login_data.language,
            password=login_data.password,
        )
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"用户登录失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="用户登录失败"
        )

@router.get("/{unique_code}", response_model=UserResponse)
async def get_user(unique_code: str, db: Session = Depends(get_db)):
    """
    获取用户信息
    """
    try:
        user_service = UserService(db)
        user = user_service.get_user_by_code(unique_code)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="用户不存在"
            )
        return user
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取用户信息失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取用户信息失败"
        )

@router.get("/{unique_code}/languages", response_model=UserLanguagesResponse)
async def get_user_languages(unique_code: str, db: Session = Depends(get_db)):
    """
    获取用户的录音语言
    """
    try:
        user_service = UserService(db)
        languages = user_service.get_user_languages(unique_code)
        return {"unique_code": unique_code, "languages": languages}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"获取用户语言失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取用户语言失败"
        )

@router.post("/{unique_code}/languages", response_model=UserLanguagesResponse)
async def add_user_language(unique_code: str, data: UserLanguageAdd, db: Session = Depends(get_db)):
    """
    为用户添加录音语言
    """
    try:
        user_service = UserService(db)
        languages = user_service.add_user_language(unique_code, data.language)
        return {"unique_code": unique_code, "languages": languages}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"添加用户语言失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="添加用户语言失败"
        )

@router.put("/{unique_code}/password")
def update_password(unique_code: str, data: PasswordUpdate, db: Session = Depends(get_db)):
    """
    设置用户登录密码
    """
    try:
        user_service = UserService(db)
        user_service.update_password(unique_code, data.password)
        return {"message": "密码已更新"}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"更新密码失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="更新密码失败"
        )

@router.get("/{unique_code}/recordings", response_model=RecordingListResponse)
async def get_user_recordings(
    unique_code: str,
    language: str = None,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    获取用户的录音列表，可按语言过滤
    """
    try:
        UserService(db).require_user(unique_code)
        record_service = RecordService(db, storage)
        recordings = record_service.get_user_recordings(unique_code, language)
        return {"unique_code": unique_code, "recordings": recordings, "total": len(recordings)}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"获取用户录音失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取用户录音失败"
        )

@router.get("/{unique_code}/rerecordings/count", response_model=RerecordCountResponse)
async def get_rerecording_count(
    unique_code: str,
    language: str,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    获取用户某语言下需要重录的句子数量
    """
    try:
        record_service = RecordService(db, storage)
        count = record_service.count_rerecording_requests(unique_code, language)
        return {"unique_code": unique_code, "language": language, "count": count}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取重录数量失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取重录数量失败"
        )
