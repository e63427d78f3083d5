# audio/decode.py
import io
import logging
import math
from typing import Optional, Tuple
import numpy as np
import soundfile as sf
from config import DecodeConfig
from errors import DecodeFailure

def clamp_clip(cfg: DecodeConfig, start_seconds: Optional[float] = None,
               duration_seconds: Optional[float] = None) -> Tuple[float, float]:
    """Sanitize a requested (start, duration) window; duration ends up in [6, 60] s."""
    try:
        start = float(start_seconds or 0.0)
    except (TypeError, ValueError):
        start = 0.0
    try:
        dur = float(duration_seconds) if duration_seconds else cfg.default_clip_seconds
    except (TypeError, ValueError):
        dur = cfg.default_clip_seconds
    if math.isnan(start):
        start = 0.0
    if math.isnan(dur):
        dur = cfg.default_clip_seconds
    start = max(0.0, start)
    dur = max(cfg.min_clip_seconds, min(cfg.max_clip_seconds, dur))
    return start, dur

def decode_audio(data: bytes, start_seconds: float = 0.0,
                 duration_seconds: Optional[float] = None) -> Tuple[np.ndarray, int]:
    """Decode an audio file held in memory to mono float32 samples.

    Returns ``(samples, sample_rate)`` trimmed to the requested window.
    """
    try:
        raw, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, ValueError, TypeError, OSError) as e:
        raise DecodeFailure(f"Unreadable audio input: {e}") from e
    if raw.shape[1] > 1:
        mono = raw.mean(axis=1).astype(np.float32)
    else:
        mono = raw[:, 0]
    start = max(0, int(math.floor(start_seconds * sr)))
    if duration_seconds is None:
        length = len(mono) - start
    else:
        length = min(len(mono) - start, int(math.floor(duration_seconds * sr)))
    samples = mono[start:start + max(0, length)]
    logging.debug("decode_audio: sr=%d, %d samples kept of %d", sr, len(samples), len(mono))
    return samples, int(sr)
