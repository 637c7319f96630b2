import logging
from typing import List, Dict, Any, Optional
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.models.base import utc_now
from app.models.recording import Recording
from app.repositories.recording_repository import RecordingRepository
from app.repositories.language_repository import LanguageRepository
from app.repositories.user_repository import UserRepository
from app.services.errors import NotFoundError
from app.services.notification_service import NotificationService
from app.utils.audio import compute_waveform, estimate_snr, audio_duration
from app.utils.paths import create_recording_path, create_recording_filename
from app.utils.storage_client import RecordingStorage

logger = logging.getLogger(__name__)


class RecordService:
    """录音服务：上传音频、维护录音元数据、处理重录请求"""

    def __init__(self, db: Session, storage: RecordingStorage):
        self.db = db
        self.storage = storage
        self.record_repo = RecordingRepository(db)
        self.user_repo = UserRepository(db)
        self.language_repo = LanguageRepository(db)
        self.notification_service = NotificationService(db)

    @staticmethod
    def bucket_for(recording: Recording) -> str:
        return settings.RERECORDINGS_BUCKET if recording.is_rerecording else settings.RECORDINGS_BUCKET

    def save_recording(self, unique_code: str, language: str, sentence_index: int,
                       audio_data: bytes, content_type: str = "audio/wav") -> Recording:
        """
        保存一句录音

        Args:
            unique_code: 用户访问码
            language: 语言名称
            sentence_index: 句子序号
            audio_data: 音频内容
            content_type: 音频MIME类型

        Returns:
            Recording: 新建或更新后的录音记录

        同一句再次保存时更新原记录；如果该句被标记为需要重录，音频写入重录存储桶
        """
        if not audio_data:
            raise ValueError("没有可保存的录音，请先录音")

        user = self.user_repo.get_by_unique_code(unique_code)
        if not user:
            raise NotFoundError("用户不存在")
        language_row = self.language_repo.get_by_name(language)
        if not language_row:
            raise NotFoundError(f"语言不存在: {language}")
        sentences = list(language_row.sentences or [])
        if not 0 <= sentence_index < len(sentences):
            raise ValueError(f"句子序号越界: {sentence_index}")

        existing = self.record_repo.get_for_sentence(unique_code, language, sentence_index)
        is_rerecording = bool(existing and existing.needs_rerecording)
        bucket = settings.RERECORDINGS_BUCKET if is_rerecording else settings.RECORDINGS_BUCKET
        now = utc_now()
        file_path = create_recording_path(now, user.gender, language, unique_code, sentence_index)

        logger.info(f"保存{'重录' if is_rerecording else '录音'}: {bucket}/{file_path}")
        self.storage.upload(bucket, file_path, audio_data, content_type)
        snr = estimate_snr(audio_data)
        duration = audio_duration(audio_data)

        values = {
            "sentence_text": sentences[sentence_index],
            "file_path": file_path,
            "snr": snr,
            "duration": duration,
            "needs_rerecording": False,
            "is_rerecording": is_rerecording,
            "recording_date": now,
        }

        if existing:
            old_bucket, old_path = self.bucket_for(existing), existing.file_path
            if not existing.needs_rerecording and (old_bucket, old_path) != (bucket, file_path):
                self.storage.remove(old_bucket, [old_path])
            return self.record_repo.update(existing.id, **values)

        return self.record_repo.create(
            unique_code=unique_code,
            language=language,
            sentence_index=sentence_index,
            **values
        )

    def get_user_recordings(self, unique_code: str, language: Optional[str] = None) -> List[Recording]:
        return self.record_repo.get_user_recordings(unique_code, language)

    def get_recording(self, recording_id: int) -> Recording:
        recording = self.record_repo.get_by_id(recording_id)
        if not recording:
            raise NotFoundError("录音不存在")
        return recording

    def get_audio(self, recording: Recording) -> Optional[bytes]:
        """读取录音音频，文件不存在时返回None"""
        return self.storage.download(self.bucket_for(recording), recording.file_path)

    def get_waveform(self, recording: Recording, bars: Optional[int] = None) -> List[float]:
        return compute_waveform(self.get_audio(recording), bars)

    def get_download_filename(self, recording: Recording) -> str:
        user = self.user_repo.get_by_unique_code(recording.unique_code)
        gender = user.gender if user else None
        return create_recording_filename(gender, recording.language, recording.unique_code, recording.sentence_index)

    def get_recorded_indexes(self, unique_code: str, language: str) -> Dict[int, bool]:
        """句子序号 -> 是否需要重录"""
        return {
            r.sentence_index: bool(r.needs_rerecording)
            for r in self.record_repo.get_user_recordings(unique_code, language)
        }

    def mark_for_rerecording(self, unique_code: str, language: str, sentence_index: int) -> Recording:
        """
        要求用户重录某句
        - 标记记录为需要重录
        - 删除原音频文件
        - 给用户发送通知
        """
        recording = self.record_repo.get_for_sentence(unique_code, language, sentence_index)
        if not recording:
            raise NotFoundError("录音不存在")

        if recording.file_path:
            self.storage.remove(self.bucket_for(recording), [recording.file_path])

        recording = self.record_repo.update(recording.id, needs_rerecording=True)
        self.notification_service.send_rerecording_notification(unique_code, recording.sentence_text)
        logger.info(f"管理员要求重录: 用户{unique_code}, 语言{language}, 句子{sentence_index}")
        return recording

    def count_rerecording_requests(self, unique_code: str, language: str) -> int:
        return self.record_repo.count_rerecording_requests(unique_code, language)

    def delete_user_recordings(self, unique_code: str) -> int:
        """删除用户的全部录音(文件和元数据)"""
        recordings = self.record_repo.get_user_recordings(unique_code)
        if not recordings:
            return 0

        by_bucket: Dict[str, List[str]] = {}
        for recording in recordings:
            if not recording.needs_rerecording:
                by_bucket.setdefault(self.bucket_for(recording), []).append(recording.file_path)
        for bucket, paths in by_bucket.items():
            self.storage.remove(bucket, paths)

        deleted = self.record_repo.delete_by(unique_code=unique_code)
        logger.info(f"删除用户 {unique_code} 的录音 {deleted} 条")
        return deleted

    def clean_all_recordings(self) -> Dict[str, Any]:
        """删除全部录音数据，保留用户账号"""
        deleted_rows = self.record_repo.delete_all()
        deleted_files = 0
        for bucket in (settings.RECORDINGS_BUCKET, settings.RERECORDINGS_BUCKET):
            files = self.storage.list_files(bucket)
            if files:
                deleted_files += self.storage.remove(bucket, files)

        logger.info(f"已清理全部录音数据: 记录{deleted_rows}条, 文件{deleted_files}个")
        return {"deleted_recordings": deleted_rows, "deleted_files": deleted_files}

    def storage_used(self) -> int:
        """录音占用的存储空间(字节)"""
        return sum(
            self.storage.total_size(bucket)
            for bucket in (settings.RECORDINGS_BUCKET, settings.RERECORDINGS_BUCKET)
        )
