"""
音频分析工具
- 波形: 把音频切成固定数量的片段，取每段峰值并归一化到0~1
- 信噪比: 按帧计算RMS，用响亮帧和安静帧的能量比估算(dB)
"""
import io
import logging
from typing import List, Optional, Tuple

import numpy as np
import soundfile as sf

from app.config.settings import settings

logger = logging.getLogger(__name__)


def decode_audio(audio_data: Optional[bytes]) -> Optional[Tuple[np.ndarray, int]]:
    """
    解码音频为单声道float32采样

    Returns:
        (samples, sample_rate)，无法解码时返回None
    """
    if not audio_data:
        return None
    try:
        data, sample_rate = sf.read(io.BytesIO(audio_data), dtype="float32", always_2d=True)
    except (RuntimeError, ValueError, TypeError) as e:
        logger.warning(f"音频解码失败: {e}")
        return None
    if data.size == 0:
        return None
    return data.mean(axis=1), sample_rate


def silent_waveform(bars: Optional[int] = None) -> List[float]:
    """静音波形"""
    bars = bars or settings.WAVEFORM_BARS
    return [settings.SILENT_WAVEFORM_LEVEL] * bars


def compute_waveform(audio_data: Optional[bytes], bars: Optional[int] = None) -> List[float]:
    """
    计算用于绘制的波形数据

    Args:
        audio_data: 音频文件内容(wav/flac/ogg等)
        bars: 波形柱数量

    Returns:
        List[float]: 长度为bars的峰值列表，取值0~1
    """
    bars = bars or settings.WAVEFORM_BARS
    decoded = decode_audio(audio_data)
    if decoded is None:
        return silent_waveform(bars)

    samples, _ = decoded
    if samples.size < bars:
        samples = np.pad(samples, (0, bars - samples.size))

    peaks = np.array([np.abs(chunk).max() for chunk in np.array_split(samples, bars)])
    top = peaks.max()
    if top <= 0:
        return silent_waveform(bars)
    return [round(float(v), 4) for v in peaks / top]


def estimate_snr(audio_data: Optional[bytes], frame_ms: Optional[int] = None) -> Optional[float]:
    """
    估算信噪比(dB)

    以第90百分位帧RMS作为信号，第10百分位帧RMS作为噪声。
    无法解码时返回None，全静音时返回0.0
    """
    decoded = decode_audio(audio_data)
    if decoded is None:
        return None

    samples, sample_rate = decoded
    frame_ms = frame_ms or settings.SNR_FRAME_MS
    frame_size = max(1, int(sample_rate * frame_ms / 1000))
    frame_count = samples.size // frame_size
    if frame_count < 2:
        return None

    frames = samples[: frame_count * frame_size].reshape(frame_count, frame_size)
    rms = np.sqrt(np.mean(np.square(frames, dtype=np.float64), axis=1))

    signal = float(np.percentile(rms, 90))
    noise = float(np.percentile(rms, 10))
    if signal <= 0:
        return 0.0
    noise = max(noise, 1e-10)
    return round(float(20 * np.log10(signal / noise)), 2)


def audio_duration(audio_data: Optional[bytes]) -> Optional[float]:
    """音频时长(秒)"""
    decoded = decode_audio(audio_data)
    if decoded is None:
        return None
    samples, sample_rate = decoded
    return round(samples.size / float(sample_rate), 3)
