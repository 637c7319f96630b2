import io
import logging
from typing import List
from urllib.parse import quote
from fastapi import APIRouter, Depends, HTTPException, status, File, Form, Query, UploadFile
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.utils.database import get_db
from app.services.admin_service import AdminService
from app.services.export_service import ExportService
from app.services.feedback_service import FeedbackService
from app.services.language_service import LanguageService, TEXT_FORMAT_SINGLE
from app.services.record_service import RecordService
from app.services.user_service import UserService
from app.api.dependencies import get_recording_storage, require_admin
from app.api.errors import DOMAIN_ERRORS, http_error
from app.api.schemas.admin_schemas import (
    AdminLoginRequest, AdminLoginResponse, ChangePasswordRequest, StorageSettingsUpdate,
    StorageSettingsResponse, GoogleDriveConnect, DashboardStats, AdminUserSummary, AdminUserDetail
)
from app.api.schemas.feedback_schemas import FeedbackResponse
from app.api.schemas.language_schemas import LanguageCreate, LanguageResponse
from app.api.schemas.record_schemas import RecordingResponse, WaveformResponse, RerecordRequest
from app.utils.storage_client import RecordingStorage

logger = logging.getLogger(__name__)
router = APIRouter()

ADMIN_ONLY = [Depends(require_admin)]


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}


def _internal_error(message: str, e: Exception) -> HTTPException:
    logger.error(f"{message}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message
    )

# ---------------------------------------------------------------- 登录与设置

@router.post("/login", response_model=AdminLoginResponse)
def admin_login(data: AdminLoginRequest, db: Session = Depends(get_db),
                storage: RecordingStorage = Depends(get_recording_storage)):
    """
    管理员登录，返回请求头 X-Admin-Token 使用的令牌
    """
    try:
        token = AdminService(db, storage).login(data.password)
        return {"token": token, "expires_in": settings.ADMIN_TOKEN_TTL}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("管理员登录失败", e)

@router.put("/password", dependencies=ADMIN_ONLY)
def change_password(data: ChangePasswordRequest, db: Session = Depends(get_db),
                    storage: RecordingStorage = Depends(get_recording_storage)):
    """
    修改管理员密码
    """
    try:
        AdminService(db, storage).change_password(data.new_password, data.confirm_password)
        return {"message": "密码已修改"}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("修改密码失败", e)

@router.get("/settings/storage", response_model=StorageSettingsResponse, dependencies=ADMIN_ONLY)
async def get_storage_settings(db: Session = Depends(get_db),
                               storage: RecordingStorage = Depends(get_recording_storage)):
    """
    获取录音存储设置
    """
    try:
        return AdminService(db, storage).get_settings()
    except Exception as e:
        raise _internal_error("获取存储设置失败", e)

@router.put("/settings/storage", response_model=StorageSettingsResponse, dependencies=ADMIN_ONLY)
async def update_storage_settings(data: StorageSettingsUpdate, db: Session = Depends(get_db),
                                  storage: RecordingStorage = Depends(get_recording_storage)):
    """
    更新录音存储设置
    """
    try:
        return AdminService(db, storage).update_storage_settings(data.storage_type, data.auto_sync)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("更新存储设置失败", e)

@router.post("/settings/google-drive", response_model=StorageSettingsResponse, dependencies=ADMIN_ONLY)
async def connect_google_drive(data: GoogleDriveConnect, db: Session = Depends(get_db),
                               storage: RecordingStorage = Depends(get_recording_storage)):
    """
    连接Google Drive账号
    """
    try:
        return AdminService(db, storage).connect_google_drive(data.email, data.folder_id, data.folder_name)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("连接Google Drive失败", e)

@router.delete("/settings/google-drive", response_model=StorageSettingsResponse, dependencies=ADMIN_ONLY)
async def disconnect_google_drive(db: Session = Depends(get_db),
                                  storage: RecordingStorage = Depends(get_recording_storage)):
    """
    断开Google Drive账号
    """
    try:
        return AdminService(db, storage).disconnect_google_drive()
    except Exception as e:
        raise _internal_error("断开Google Drive失败", e)

@router.get("/stats", response_model=DashboardStats, dependencies=ADMIN_ONLY)
def dashboard_stats(db: Session = Depends(get_db),
                    storage: RecordingStorage = Depends(get_recording_storage)):
    """
    管理后台统计
    """
    try:
        return AdminService(db, storage).dashboard_stats()
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("获取统计数据失败", e)

# ---------------------------------------------------------------- 语言管理

@router.get("/languages", response_model=List[LanguageResponse], dependencies=ADMIN_ONLY)
async def list_languages(db: Session = Depends(get_db)):
    """
    获取全部语言及句子
    """
    try:
        return LanguageService(db).get_all_languages()
    except Exception as e:
        raise _internal_error("获取语言列表失败", e)

@router.post("/languages", response_model=LanguageResponse, status_code=status.HTTP_201_CREATED,
             dependencies=ADMIN_ONLY)
async def create_language(data: LanguageCreate, db: Session = Depends(get_db)):
    """
    新增语言
    """
    try:
        return LanguageService(db).create_language(data.name, data.sentences)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("新增语言失败", e)

@router.post("/languages/upload", response_model=LanguageResponse, status_code=status.HTTP_201_CREATED,
             dependencies=ADMIN_ONLY)
async def upload_language(
    name: str = Form(...),
    text_format: str = Form(TEXT_FORMAT_SINGLE),
    file: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """
    上传文本文件新增语言
    - single: 每行一句
    - paragraph: 按句号拆分
    """
    try:
        content = await file.read()
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="文件必须是UTF-8编码的文本"
            )
        return LanguageService(db).create_language_from_text(name, text, text_format)
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("上传语言文件失败", e)

@router.delete("/languages/{language_id}", dependencies=ADMIN_ONLY)
async def delete_language(language_id: int, db: Session = Depends(get_db)):
    """
    删除语言
    """
    try:
        name = LanguageService(db).delete_language(language_id)
        return {"message": f"语言 {name} 已删除"}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("删除语言失败", e)

# ---------------------------------------------------------------- 用户管理

@router.get("/users", response_model=List[AdminUserSummary], dependencies=ADMIN_ONLY)
async def list_users(db: Session = Depends(get_db)):
    """
    获取全部用户，最新注册的在前
    """
    try:
        return [user.to_dict() for user in UserService(db).get_all_users()]
    except Exception as e:
        raise _internal_error("获取用户列表失败", e)

@router.get("/users/{unique_code}", response_model=AdminUserDetail, dependencies=ADMIN_ONLY)
async def get_user_detail(unique_code: str, db: Session = Depends(get_db),
                          storage: RecordingStorage = Depends(get_recording_storage)):
    """
    用户详情及录音
    """
    try:
        return AdminService(db, storage).get_user_detail(unique_code)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("获取用户详情失败", e)

@router.delete("/users/{unique_code}", dependencies=ADMIN_ONLY)
def delete_user(unique_code: str, db: Session = Depends(get_db),
                storage: RecordingStorage = Depends(get_recording_storage)):
    """
    彻底删除用户及其全部数据
    """
    try:
        deleted = AdminService(db, storage).delete_user(unique_code)
        return {"message": "用户已删除", "deleted": deleted}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("删除用户失败", e)

@router.delete("/users/{unique_code}/recordings", dependencies=ADMIN_ONLY)
def delete_user_recordings(unique_code: str, db: Session = Depends(get_db),
                           storage: RecordingStorage = Depends(get_recording_storage)):
    """
    删除用户的全部录音
    """
    try:
        UserService(db).require_user(unique_code)
        deleted = RecordService(db, storage).delete_user_recordings(unique_code)
        return {"message": "录音已删除", "deleted_recordings": deleted}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("删除用户录音失败", e)

@router.get("/users/{unique_code}/archive", dependencies=ADMIN_ONLY)
def download_user_archive(unique_code: str, db: Session = Depends(get_db),
                          storage: RecordingStorage = Depends(get_recording_storage)):
    """
    下载用户录音ZIP包
    """
    try:
        archive = ExportService(db, storage).build_user_archive(unique_code)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("打包用户录音失败", e)
    return StreamingResponse(
        io.BytesIO(archive),
        media_type="application/zip",
        headers=_attachment(f"recordings_{unique_code}.zip")
    )

# ---------------------------------------------------------------- 录音管理

@router.get("/recordings/{recording_id}", response_model=RecordingResponse, dependencies=ADMIN_ONLY)
async def get_recording(recording_id: int, db: Session = Depends(get_db),
                        storage: RecordingStorage = Depends(get_recording_storage)):
    try:
        return RecordService(db, storage).get_recording(recording_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("获取录音失败", e)

@router.get("/recordings/{recording_id}/audio", dependencies=ADMIN_ONLY)
def play_recording(recording_id: int, download: bool = False, db: Session = Depends(get_db),
                   storage: RecordingStorage = Depends(get_recording_storage)):
    """
    播放或下载录音，download=true 时按 gender_language_code_index.wav 命名
    """
    try:
        record_service = RecordService(db, storage)
        recording = record_service.get_recording(recording_id)
        audio = record_service.get_audio(recording)
        if audio is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="录音文件不存在"
            )
        headers = _attachment(record_service.get_download_filename(recording)) if download else None
        return Response(content=audio, media_type="audio/wav", headers=headers)
    except HTTPException:
        raise
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("读取录音失败", e)

@router.get("/recordings/{recording_id}/waveform", response_model=WaveformResponse, dependencies=ADMIN_ONLY)
def get_waveform(recording_id: int, bars: int = Query(settings.WAVEFORM_BARS, ge=1, le=1000),
                 db: Session = Depends(get_db),
                 storage: RecordingStorage = Depends(get_recording_storage)):
    """
    获取录音波形，文件缺失时返回静音波形
    """
    try:
        record_service = RecordService(db, storage)
        recording = record_service.get_recording(recording_id)
        return {"recording_id": recording_id, "bars": record_service.get_waveform(recording, bars)}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("获取波形失败", e)

@router.post("/recordings/rerecord", response_model=RecordingResponse, dependencies=ADMIN_ONLY)
def request_rerecording(data: RerecordRequest, db: Session = Depends(get_db),
                        storage: RecordingStorage = Depends(get_recording_storage)):
    """
    要求用户重录某句
    """
    try:
        return RecordService(db, storage).mark_for_rerecording(
            data.unique_code, data.language, data.sentence_index
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("标记重录失败", e)

@router.delete("/recordings", dependencies=ADMIN_ONLY)
def clean_all_recordings(db: Session = Depends(get_db),
                         storage: RecordingStorage = Depends(get_recording_storage)):
    """
    清空全部录音数据，保留用户
    """
    try:
        result = RecordService(db, storage).clean_all_recordings()
        return {"message": "全部录音已清理", **result}
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("清理录音失败", e)

# ---------------------------------------------------------------- 反馈与导出

@router.get("/feedback", response_model=List[FeedbackResponse], dependencies=ADMIN_ONLY)
async def list_feedback(db: Session = Depends(get_db)):
    try:
        return FeedbackService(db).get_all_feedback()
    except Exception as e:
        raise _internal_error("获取反馈失败", e)

@router.get("/export", dependencies=ADMIN_ONLY)
async def export_all(db: Session = Depends(get_db),
                     storage: RecordingStorage = Depends(get_recording_storage)):
    """
    导出全部数据(JSON)
    """
    try:
        return ExportService(db, storage).export_all()
    except Exception as e:
        raise _internal_error("导出数据失败", e)

@router.get("/export/languages/{name}", dependencies=ADMIN_ONLY)
async def export_language(name: str, db: Session = Depends(get_db),
                          storage: RecordingStorage = Depends(get_recording_storage)):
    """
    导出某语言的录音元数据
    """
    try:
        return ExportService(db, storage).export_language(name)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    except Exception as e:
        raise _internal_error("导出语言数据失败", e)
