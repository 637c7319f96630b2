"""
数据导出服务
- 全部数据导出为JSON
- 单个语言的录音元数据
- 用户录音打包为ZIP，每种语言一个目录，附带 metadata.json
"""
import io
import json
import logging
import zipfile
from typing import Dict, Any, List
from sqlalchemy.orm import Session

from app.models.base import utc_now
from app.repositories.feedback_repository import FeedbackRepository
from app.repositories.language_repository import LanguageRepository
from app.repositories.recording_repository import RecordingRepository
from app.repositories.user_repository import UserRepository
from app.services.errors import NotFoundError
from app.services.record_service import RecordService
from app.utils.paths import create_recording_filename
from app.utils.storage_client import RecordingStorage

logger = logging.getLogger(__name__)


class ExportService:
    def __init__(self, db: Session, storage: RecordingStorage):
        self.db = db
        self.user_repo = UserRepository(db)
        self.language_repo = LanguageRepository(db)
        self.record_repo = RecordingRepository(db)
        self.feedback_repo = FeedbackRepository(db)
        self.record_service = RecordService(db, storage)

    def export_all(self) -> Dict[str, Any]:
        """导出全部数据"""
        data = {
            "users": [u.to_dict() for u in self.user_repo.get_all_newest_first()],
            "recordings": [r.to_dict() for r in self.record_repo.filter_by()],
            "languages": [l.to_dict() for l in self.language_repo.get_all_languages()],
            "feedback": [f.to_dict() for f in self.feedback_repo.get_all_newest_first()],
            "exportDate": utc_now().isoformat(),
        }
        logger.info(f"导出全部数据: 用户{len(data['users'])}个, 录音{len(data['recordings'])}条")
        return data

    def export_language(self, name: str) -> Dict[str, Any]:
        """导出某语言的全部录音元数据"""
        language = self.language_repo.get_by_name(name)
        if not language:
            raise NotFoundError(f"语言不存在: {name}")

        genders = {u.unique_code: u.gender for u in self.user_repo.get_all_newest_first()}
        recordings = []
        for recording in self.record_repo.get_language_recordings(name):
            item = recording.to_dict()
            item["file_name"] = create_recording_filename(
                genders.get(recording.unique_code), name, recording.unique_code, recording.sentence_index
            )
            recordings.append(item)

        return {
            "language": name,
            "total_sentences": len(language.sentences or []),
            "total_recordings": len(recordings),
            "recordings": recordings,
            "exportDate": utc_now().isoformat(),
        }

    def build_user_archive(self, unique_code: str) -> bytes:
        """
        打包用户录音

        Returns:
            bytes: ZIP文件内容，结构为 {language}/{文件名}.wav 和 {language}/metadata.json
        """
        user = self.user_repo.get_by_unique_code(unique_code)
        if not user:
            raise NotFoundError("用户不存在")
        recordings = self.record_repo.get_user_recordings(unique_code)
        if not recordings:
            raise NotFoundError("该用户没有录音")

        by_language: Dict[str, List[Dict[str, Any]]] = {}
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for recording in recordings:
                metadata = recording.to_dict()
                file_name = create_recording_filename(
                    user.gender, recording.language, unique_code, recording.sentence_index
                )
                audio = None if recording.needs_rerecording else self.record_service.get_audio(recording)
                if audio is not None:
                    archive.writestr(f"{recording.language}/{file_name}", audio)
                    metadata["file_name"] = file_name
                else:
                    logger.warning(f"录音文件缺失，跳过: {recording.file_path}")
                    metadata["file_name"] = None
                by_language.setdefault(recording.language, []).append(metadata)

            for language, items in by_language.items():
                archive.writestr(
                    f"{language}/metadata.json",
                    json.dumps({"user": user.to_dict(), "language": language, "recordings": items},
                               ensure_ascii=False, indent=2)
                )

        logger.info(f"用户 {unique_code} 录音已打包: {len(recordings)}条")
        return buffer.getvalue()
