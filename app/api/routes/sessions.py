import logging
from fastapi import APIRouter, Depends, HTTPException, status, File, UploadFile
from sqlalchemy.orm import Session

from app.utils.database import get_db
from app.services.session_service import SessionService
from app.services.user_service import UserService
from app.api.dependencies import get_recording_storage
from app.api.errors import DOMAIN_ERRORS, http_error
from app.api.schemas.session_schemas import (
    SessionCreate, SessionResponse, SessionListResponse, GoToRequest, SaveRecordingResponse
)
from app.utils.storage_client import RecordingStorage

logger = logging.getLogger(__name__)
router = APIRouter()

# 按钮动作 -> SessionService方法
SESSION_ACTIONS = {
    "start": "start_recording",
    "stop": "stop_recording",
    "discard": "discard_recording",
    "next": "next_sentence",
    "previous": "previous_sentence",
}

@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    data: SessionCreate,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    开始或继续录音会话
    """
    try:
        session_service = SessionService(db, storage)
        session = session_service.create_session(data.unique_code, data.language, data.start_index)
        return session_service.describe(session)
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"创建录音会话失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="创建录音会话失败"
        )

@router.get("/user/{unique_code}", response_model=SessionListResponse)
async def get_user_sessions(
    unique_code: str,
    limit: int = 10,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    获取用户的会话历史
    """
    try:
        user_service = UserService(db)
        user = user_service.get_user_by_code(unique_code)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="用户不存在"
            )

        session_service = SessionService(db, storage)
        sessions = [
            SessionResponse.model_validate(session_service.describe(session))
            for session in session_service.get_user_sessions(unique_code, limit)
        ]
        return {
            "unique_code": unique_code,
            "sessions": sessions,
            "total": len(sessions)
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"获取用户会话失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取用户会话失败"
        )

@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    获取会话详情
    """
    try:
        session_service = SessionService(db, storage)
        return session_service.describe(session_service.get_session(session_id))
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"获取会话详情失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="获取会话详情失败"
        )

@router.post("/{session_id}/go-to", response_model=SessionResponse)
async def go_to_sentence(
    session_id: int,
    data: GoToRequest,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    跳转到指定句子
    """
    try:
        session_service = SessionService(db, storage)
        return session_service.describe(session_service.go_to_sentence(session_id, data.index))
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"跳转句子失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="跳转句子失败"
        )

@router.post("/{session_id}/save", response_model=SaveRecordingResponse)
def save_recording(
    session_id: int,
    audio: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    上传当前句子的录音并进入下一句
    """
    try:
        audio_data = audio.file.read()
        session_service = SessionService(db, storage)
        session, recording = session_service.save_recording(
            session_id, audio_data, audio.content_type or "audio/wav"
        )
        return {"session": session_service.describe(session), "recording": recording}
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"保存录音失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="保存录音失败"
        )

@router.post("/{session_id}/{action}", response_model=SessionResponse)
async def session_action(
    session_id: int,
    action: str,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    录音按钮操作: start / stop / discard / next / previous
    """
    method = SESSION_ACTIONS.get(action)
    if method is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"未知的操作: {action}"
        )
    try:
        session_service = SessionService(db, storage)
        session = getattr(session_service, method)(session_id)
        return session_service.describe(session)
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"会话操作 {action} 失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="会话操作失败"
        )

@router.delete("/{session_id}", response_model=SessionResponse)
async def end_session(
    session_id: int,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_recording_storage)
):
    """
    结束会话
    """
    try:
        session_service = SessionService(db, storage)
        return session_service.describe(session_service.end_session(session_id))
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"结束会话失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="结束会话失败"
        )
