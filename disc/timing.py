# disc/timing.py
from dataclasses import dataclass
from typing import Iterable
from config import TimingConfig
from notes.model import Note

@dataclass(frozen=True)
class TimingScale:
    scale: float
    gap: float   # trailing silence, diagnostics only

def source_duration(notes: Iterable[Note]) -> float:
    return max((n.end for n in notes), default=0.0)

def compute_timing_scale(duration: float, cfg: TimingConfig) -> TimingScale:
    """Fit ``duration`` seconds of material into one rotation.

    Compression is capped at ``1 - max_tempo_adjust_fraction`` unless the ideal
    factor is smaller, in which case the ideal wins and the tail spills past the
    window. Expansion is capped at ``1 + max_tempo_adjust_fraction``; if that
    leaves more than ``max_gap_seconds`` of silence, the scale is raised until
    the gap equals ``max_gap_seconds``, even past the tempo cap.
    """
    target = cfg.target_seconds
    if duration <= 0:
        return TimingScale(scale=1.0, gap=target)

    ideal = target / duration
    if duration > target:
        min_scale = 1.0 - cfg.max_tempo_adjust_fraction
        scale = ideal if ideal < min_scale else min_scale
        return TimingScale(scale=scale, gap=0.0)

    scale = min(ideal, 1.0 + cfg.max_tempo_adjust_fraction)
    gap = target - duration * scale
    if gap > cfg.max_gap_seconds:
        scale2 = (target - cfg.max_gap_seconds) / duration
        if scale2 > scale:
            scale = scale2
            gap = target - duration * scale
    return TimingScale(scale=scale, gap=max(0.0, gap))
