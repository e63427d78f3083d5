# audio/pitch.py
import heapq
import logging
import math
from typing import Callable, List, Optional
import numpy as np
import librosa
from config import DensityConfig, ExtractionConfig
from notes.model import PitchObservation
from notes.reduction import DensityLimiter

ProgressFn = Optional[Callable[[int], None]]

def hz_to_midi(freq: float) -> int:
    # round half up, not banker's rounding
    return int(math.floor(69 + 12 * math.log2(freq / 440.0) + 0.5))

# ---------- estimators ----------
def yin_track(samples: np.ndarray, sample_rate: int, frame_size: int = 1024, hop: int = 256,
              fmin: float = 60.0, fmax: float = 1800.0) -> np.ndarray:
    """pYIN f0 for every frame starting at ``k * hop``; NaN where unvoiced or silent."""
    y = np.asarray(samples, dtype=np.float32)
    if len(y) < frame_size:
        return np.full(0, np.nan)
    f0, voiced, _ = librosa.pyin(y, fmin=fmin, fmax=fmax, sr=sample_rate,
                                 frame_length=frame_size, hop_length=hop, center=False)
    frames = librosa.util.frame(np.ascontiguousarray(y), frame_length=frame_size, hop_length=hop)
    # digital silence has a flat difference function and reads as voiced
    silent = ~np.any(frames, axis=0)
    n = min(len(f0), frames.shape[-1])
    return np.where(voiced[:n] & ~silent[:n], f0[:n], np.nan)

def yin_pitch(frame: np.ndarray, sample_rate: int, fmin: float = 60.0,
              fmax: float = 1800.0) -> Optional[float]:
    """Single-frame pYIN estimate, or None when the frame is unvoiced."""
    track = yin_track(frame, sample_rate, len(frame), len(frame), fmin, fmax)
    if not len(track) or not np.isfinite(track[0]):
        return None
    return float(track[0])

def amdf_pitch(frame: np.ndarray, sample_rate: int, min_hz: float = 82.0, max_hz: float = 1000.0,
               sensitivity: float = 0.1, ratio: float = 5.0) -> Optional[float]:
    """Average magnitude difference estimate, or None when the dip is too shallow."""
    x = np.asarray(frame, dtype=np.float64)
    n = len(x)
    min_period = max(1, int(math.ceil(sample_rate / max_hz)))
    max_period = min(n - 1, int(math.floor(sample_rate / min_hz)))
    if max_period <= min_period:
        return None
    lags = np.arange(min_period, max_period + 1)
    idx = np.arange(n)
    shifted = idx[None, :] + lags[:, None]
    valid = shifted < n
    diffs = np.abs(x[None, :] - x[np.minimum(shifted, n - 1)])
    amd = np.where(valid, diffs, 0.0).sum(axis=1)

    lo, hi = float(amd.min()), float(amd.max())
    cutoff = round(sensitivity * (hi - lo)) + lo
    j = 0
    while j < len(amd) and amd[j] > cutoff:
        j += 1
    if j >= len(amd):
        return None
    search = min_period // 2
    pos = j
    for k in range(j, min(len(amd), j + search + 1)):
        if amd[k] < amd[pos]:
            pos = k
    if round(amd[pos] * ratio) < hi:
        return sample_rate / float(lags[pos])
    return None

def top_peaks(mags: np.ndarray, max_peaks: int, min_bin: int) -> List[tuple]:
    """Strongest (bin, magnitude) pairs, strongest first.

    Keeps a min-heap of size ``max_peaks`` and replaces the weakest kept peak
    only when a later bin is strictly stronger.
    """
    heap: List[tuple] = []
    for b in range(min_bin, len(mags)):
        mag = float(mags[b])
        if not mag:
            continue
        if len(heap) < max_peaks:
            heapq.heappush(heap, (mag, -b))
        elif mag > heap[0][0]:
            heapq.heapreplace(heap, (mag, -b))
    return [(-nb, mag) for mag, nb in sorted(heap, key=lambda p: (-p[0], -p[1]))]

# ---------- extractor ----------
class PitchExtractor:
    """Frame-wise pitch observations for a mono sample buffer.

    ``mode`` is "mono" (one f0 per frame, pYIN then AMDF) or "poly" (up to five
    FFT peaks per frame). Output passes through the density limiter.
    """
    def __init__(self, cfg: ExtractionConfig, density: DensityConfig, mode: str = "mono"):
        if mode not in ("mono", "poly"):
            raise ValueError(f"Unknown extraction mode: {mode}")
        self.cfg = cfg
        self.mode = mode
        self.limiter = DensityLimiter(density, mode)

    def _report(self, progress: ProgressFn, i: int, total: int):
        if progress is None:
            return
        lo, hi = self.cfg.progress_range
        progress(lo + int(math.floor((i / total) * (hi - lo))))

    def _frame_starts(self, n: int):
        return range(0, n - self.cfg.frame_size, self.cfg.hop)

    def extract(self, samples: np.ndarray, sample_rate: int,
                progress: ProgressFn = None) -> List[PitchObservation]:
        samples = np.asarray(samples, dtype=np.float32)
        if self.mode == "poly":
            events = self._extract_poly(samples, sample_rate, progress)
        else:
            events = self._extract_mono(samples, sample_rate, progress)
        kept = self.limiter.apply(events)
        logging.debug("PitchExtractor(%s): %d raw, %d kept", self.mode, len(events), len(kept))
        return kept

    def _extract_mono(self, samples, sample_rate, progress) -> List[PitchObservation]:
        cfg = self.cfg
        lo_hz, hi_hz = cfg.mono_range_hz
        events: List[PitchObservation] = []
        n = len(samples)
        track = yin_track(samples, sample_rate, cfg.frame_size, cfg.hop, lo_hz, hi_hz)
        for k, i in enumerate(self._frame_starts(n)):
            freq = float(track[k]) if k < len(track) and np.isfinite(track[k]) else None
            if not freq:
                freq = amdf_pitch(samples[i:i + cfg.frame_size], sample_rate, cfg.amdf_min_hz,
                                  cfg.amdf_max_hz, cfg.amdf_sensitivity, cfg.amdf_ratio)
            if freq and lo_hz < freq < hi_hz:
                events.append(PitchObservation(time=i / sample_rate, pitch=hz_to_midi(freq), amplitude=1.0))
            if k % cfg.progress_every_frames == 0:
                self._report(progress, i, n)
        return events

    def _extract_poly(self, samples, sample_rate, progress) -> List[PitchObservation]:
        cfg = self.cfg
        lo_hz, hi_hz = cfg.poly_range_hz
        events: List[PitchObservation] = []
        n = len(samples)
        for k, i in enumerate(self._frame_starts(n)):
            frame = samples[i:i + cfg.frame_size]
            mags = np.abs(np.fft.rfft(frame))[: cfg.frame_size // 2]
            for b, mag in top_peaks(mags, cfg.poly_max_peaks, cfg.poly_min_bin):
                freq = b * sample_rate / cfg.frame_size
                if not (lo_hz < freq < hi_hz):
                    continue
                events.append(PitchObservation(time=i / sample_rate, pitch=hz_to_midi(freq), amplitude=mag))
            if k % cfg.progress_every_frames == 0:
                self._report(progress, i, n)
        return events
