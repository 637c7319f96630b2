import logging
from typing import Optional, Dict, Any, List, Tuple
from sqlalchemy.orm import Session

from app.models.base import utc_now
from app.models.recording import Recording
from app.models.session import RecordingSession
from app.repositories.session_repository import SessionRepository
from app.services.errors import NotFoundError
from app.services.language_service import LanguageService
from app.services.record_service import RecordService
from app.services.user_service import UserService
from app.utils.storage_client import RecordingStorage
from app.workflow.state_machine import RecordingStateMachine, RecordingStep, InvalidTransitionError

logger = logging.getLogger(__name__)


class SessionService:
    """
    录音会话服务
    把录音状态机的状态保存在 recording_sessions 表中，每个请求重建状态机并推进
    """

    def __init__(self, db: Session, storage: RecordingStorage):
        self.db = db
        self.session_repo = SessionRepository(db)
        self.user_service = UserService(db)
        self.language_service = LanguageService(db)
        self.record_service = RecordService(db, storage)

    def create_session(self, unique_code: str, language: str,
                       start_index: Optional[int] = None) -> RecordingSession:
        """
        开始录音会话
        - 语言必须是用户的录音语言
        - 已有活跃会话且未指定起始句子时继续该会话
        - 未指定起始句子时从第一个未录制或需要重录的句子开始
        """
        self.user_service.require_user(unique_code)
        if language not in self.user_service.get_user_languages(unique_code):
            raise ValueError(f"用户未选择该语言: {language}")
        sentences = self.language_service.get_sentences(language)
        if not sentences:
            raise ValueError(f"语言 {language} 没有可录制的句子")

        active = self.session_repo.get_active_session(unique_code, language)
        if active and start_index is None:
            logger.info(f"继续录音会话 {active.id}: 用户{unique_code}, 语言{language}")
            return active
        if active:
            self.session_repo.update(active.id, status="ended", end_time=utc_now())

        if start_index is None:
            start_index = self._first_pending_index(unique_code, language, len(sentences))
        elif not 0 <= start_index < len(sentences):
            raise ValueError(f"句子序号越界: {start_index}")

        session = self.session_repo.create(
            unique_code=unique_code,
            language=language,
            current_index=start_index,
            current_step=RecordingStep.IDLE.value,
            status="active",
            saved_count=0,
        )
        logger.info(f"创建录音会话 {session.id}: 用户{unique_code}, 语言{language}, 起始句子{start_index}")
        return session

    def _first_pending_index(self, unique_code: str, language: str, total: int) -> int:
        recorded = self.record_service.get_recorded_indexes(unique_code, language)
        for index in range(total):
            if index not in recorded or recorded[index]:
                return index
        return 0

    def get_session(self, session_id: int) -> RecordingSession:
        session = self.session_repo.get_by_id(session_id)
        if not session:
            raise NotFoundError("录音会话不存在")
        return session

    def get_user_sessions(self, unique_code: str, limit: int = 10) -> List[RecordingSession]:
        return self.session_repo.get_user_sessions(unique_code, limit)

    def _load(self, session_id: int) -> Tuple[RecordingSession, RecordingStateMachine, List[str]]:
        session = self.get_session(session_id)
        if session.status == "ended":
            raise InvalidTransitionError("update", RecordingStep(session.current_step))
        sentences = self.language_service.get_sentences(session.language)
        machine = RecordingStateMachine(
            total_sentences=len(sentences),
            current_index=min(session.current_index, max(len(sentences) - 1, 0)),
            current_step=RecordingStep(session.current_step),
            saved_count=session.saved_count or 0,
            completed=session.status == "completed",
        )
        return session, machine, sentences

    def _persist(self, session: RecordingSession, machine: RecordingStateMachine) -> RecordingSession:
        state = machine.state
        return self.session_repo.update(
            session.id,
            current_index=state.current_index,
            current_step=state.current_step.value,
            saved_count=state.saved_count,
            status="completed" if state.completed else "active",
            end_time=utc_now() if state.completed else None,
        )

    def start_recording(self, session_id: int) -> RecordingSession:
        session, machine, _ = self._load(session_id)
        machine.start_recording()
        return self._persist(session, machine)

    def stop_recording(self, session_id: int) -> RecordingSession:
        session, machine, _ = self._load(session_id)
        machine.stop_recording()
        return self._persist(session, machine)

    def discard_recording(self, session_id: int) -> RecordingSession:
        session, machine, _ = self._load(session_id)
        machine.discard_recording()
        return self._persist(session, machine)

    def save_recording(self, session_id: int, audio_data: bytes,
                       content_type: str = "audio/wav") -> Tuple[RecordingSession, Recording]:
        """
        保存当前句子的录音并推进到下一句

        Returns:
            (更新后的会话, 录音记录)
        """
        session, machine, _ = self._load(session_id)
        if machine.get_current_step() != RecordingStep.STOPPED or machine.is_complete():
            raise InvalidTransitionError("save", machine.get_current_step())

        recording = self.record_service.save_recording(
            session.unique_code, session.language, machine.state.current_index,
            audio_data, content_type
        )
        machine.mark_saved()
        return self._persist(session, machine), recording

    def next_sentence(self, session_id: int) -> RecordingSession:
        session, machine, _ = self._load(session_id)
        machine.next_sentence()
        return self._persist(session, machine)

    def previous_sentence(self, session_id: int) -> RecordingSession:
        session, machine, _ = self._load(session_id)
        machine.previous_sentence()
        return self._persist(session, machine)

    def go_to_sentence(self, session_id: int, index: int) -> RecordingSession:
        session, machine, _ = self._load(session_id)
        machine.go_to(index)
        return self._persist(session, machine)

    def end_session(self, session_id: int) -> RecordingSession:
        """结束会话"""
        session = self.get_session(session_id)
        if session.status == "ended":
            return session
        logger.info(f"录音会话 {session_id} 结束")
        return self.session_repo.update(session_id, status="ended", end_time=utc_now())

    def describe(self, session: RecordingSession) -> Dict[str, Any]:
        """会话详情，包括当前句子和状态机数据，语言已删除时没有句子"""
        try:
            sentences = self.language_service.get_sentences(session.language)
        except NotFoundError:
            sentences = []
        total = len(sentences)
        index = min(session.current_index, total - 1) if total else session.current_index
        machine = RecordingStateMachine(
            total_sentences=total,
            current_index=index,
            current_step=RecordingStep(session.current_step),
            saved_count=session.saved_count or 0,
            completed=session.status == "completed",
        )
        recorded = self.record_service.get_recorded_indexes(session.unique_code, session.language)
        return {
            "id": session.id,
            "unique_code": session.unique_code,
            "language": session.language,
            "status": session.status,
            "sentence_text": sentences[index] if sentences else None,
            "sentence_recorded": index in recorded,
            "needs_rerecording": recorded.get(index, False),
            "recorded_count": len(recorded),
            "created_at": session.created_at,
            "end_time": session.end_time,
            **machine.get_state_data(),
        }
