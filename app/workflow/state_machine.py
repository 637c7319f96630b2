from enum import Enum
from typing import Dict, Any
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


class RecordingStep(Enum):
    """录音步骤枚举"""
    IDLE = "idle"              # 等待开始录音
    RECORDING = "recording"    # 正在录音
    STOPPED = "stopped"        # 已停止，等待保存或丢弃
    SAVED = "saved"            # 已保存


class InvalidTransitionError(Exception):
    """非法的状态转换"""

    def __init__(self, action: str, step: "RecordingStep"):
        self.action = action
        self.step = step
        super().__init__(f"当前步骤 {step.value} 不允许执行 {action}")


@dataclass
class RecordingState:
    """录音状态数据类"""
    current_step: RecordingStep = RecordingStep.IDLE
    current_index: int = 0         # 当前句子序号
    total_sentences: int = 0       # 句子总数
    saved_count: int = 0           # 本次会话保存的录音数
    completed: bool = False        # 最后一句已保存


class RecordingStateMachine:
    """录音状态机，管理单句录音流程和句子序号的推进"""

    def __init__(self, total_sentences: int, current_index: int = 0,
                 current_step: RecordingStep = RecordingStep.IDLE,
                 saved_count: int = 0, completed: bool = False):
        if total_sentences < 0:
            raise ValueError("句子总数不能为负数")
        if total_sentences and not 0 <= current_index < total_sentences:
            raise ValueError(f"句子序号越界: {current_index}")
        self.state = RecordingState(
            current_step=current_step,
            current_index=current_index,
            total_sentences=total_sentences,
            saved_count=saved_count,
            completed=completed,
        )

    def get_current_step(self) -> RecordingStep:
        """获取当前步骤"""
        return self.state.current_step

    def get_state_data(self) -> Dict[str, Any]:
        """获取状态数据"""
        return {
            "current_step": self.state.current_step.value,
            "current_index": self.state.current_index,
            "total_sentences": self.state.total_sentences,
            "saved_count": self.state.saved_count,
            "completed": self.state.completed,
            "has_previous": self.has_previous(),
            "has_next": self.has_next(),
        }

    def has_next(self) -> bool:
        return self.state.current_index < self.state.total_sentences - 1

    def has_previous(self) -> bool:
        return self.state.current_index > 0

    def _require(self, action: str, *allowed: RecordingStep):
        if self.state.current_step not in allowed or (self.state.completed and action != "navigate"):
            raise InvalidTransitionError(action, self.state.current_step)

    def start_recording(self) -> RecordingStep:
        """开始录音: idle -> recording"""
        if self.state.total_sentences == 0:
            raise InvalidTransitionError("start", self.state.current_step)
        self._require("start", RecordingStep.IDLE)
        return self._move(RecordingStep.RECORDING)

    def stop_recording(self) -> RecordingStep:
        """停止录音: recording -> stopped"""
        self._require("stop", RecordingStep.RECORDING)
        return self._move(RecordingStep.STOPPED)

    def discard_recording(self) -> RecordingStep:
        """丢弃本次录音，回到当前句子的idle"""
        self._require("discard", RecordingStep.STOPPED)
        return self._move(RecordingStep.IDLE)

    def mark_saved(self) -> bool:
        """
        标记当前句子已保存: stopped -> saved

        有下一句时自动进入下一句的idle，否则会话完成

        Returns:
            bool: 是否还有下一句
        """
        self._require("save", RecordingStep.STOPPED)
        self._move(RecordingStep.SAVED)
        self.state.saved_count += 1

        if self.has_next():
            self.state.current_index += 1
            self._move(RecordingStep.IDLE)
            return True

        self.state.completed = True
        logger.info(f"所有句子录制完成，共保存 {self.state.saved_count} 条")
        return False

    def next_sentence(self) -> int:
        """切换到下一句，最后一句时不变"""
        self._require("navigate", RecordingStep.IDLE, RecordingStep.STOPPED, RecordingStep.SAVED)
        return self.go_to(self.state.current_index + 1) if self.has_next() else self.state.current_index

    def previous_sentence(self) -> int:
        """切换到上一句，第一句时不变"""
        self._require("navigate", RecordingStep.IDLE, RecordingStep.STOPPED, RecordingStep.SAVED)
        return self.go_to(self.state.current_index - 1) if self.has_previous() else self.state.current_index

    def go_to(self, index: int) -> int:
        """跳转到指定句子，录音过程中不允许跳转"""
        self._require("navigate", RecordingStep.IDLE, RecordingStep.STOPPED, RecordingStep.SAVED)
        if not 0 <= index < self.state.total_sentences:
            raise ValueError(f"句子序号越界: {index}")
        self.state.current_index = index
        self.state.completed = False
        self._move(RecordingStep.IDLE)
        return index

    def is_complete(self) -> bool:
        """检查是否所有句子都已录完"""
        return self.state.completed

    def _move(self, step: RecordingStep) -> RecordingStep:
        previous = self.state.current_step
        self.state.current_step = step
        logger.debug(f"状态转换: {previous.value} -> {step.value} (句子{self.state.current_index})")
        return step
