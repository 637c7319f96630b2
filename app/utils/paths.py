"""
录音文件路径构造
对象存储键格式: YYYY-MM-DD/{gender}_{language}_{code}/{sentence_index}.wav
"""
from datetime import date, datetime
from typing import Optional, Union

UNKNOWN_GENDER = "unknown"
RECORDING_EXTENSION = ".wav"


def _segment(value: Optional[str], default: str = "") -> str:
    value = (value or "").strip() or default
    return value.replace("/", "-").replace("\\", "-")


def _date_part(day: Union[date, datetime]) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def create_recording_folder(day: Union[date, datetime], gender: Optional[str], language: str, unique_code: str) -> str:
    """录音所在目录: YYYY-MM-DD/gender_language_code"""
    owner = "_".join([
        _segment(gender, UNKNOWN_GENDER),
        _segment(language),
        _segment(unique_code),
    ])
    return f"{_date_part(day)}/{owner}"


def create_recording_filename(gender: Optional[str], language: str, unique_code: str, sentence_index: int) -> str:
    """下载/导出时的文件名: gender_language_code_index.wav"""
    return (
        f"{_segment(gender, UNKNOWN_GENDER)}_{_segment(language)}_{_segment(unique_code)}"
        f"_{sentence_index}{RECORDING_EXTENSION}"
    )


def create_recording_path(day: Union[date, datetime], gender: Optional[str], language: str,
                          unique_code: str, sentence_index: int) -> str:
    """录音在存储桶中的键"""
    folder = create_recording_folder(day, gender, language, unique_code)
    return f"{folder}/{sentence_index}{RECORDING_EXTENSION}"
