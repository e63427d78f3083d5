# ========================= notes/reduction.py =========================
import math
from typing import Dict, Iterable, List
from notes.model import PitchObservation
from config import DensityConfig

def limit_density(observations: Iterable[PitchObservation], max_per_slice: int,
                  slice_ms: float) -> List[PitchObservation]:
    """Keep at most ``max_per_slice`` of the loudest observations per time slice.

    Ties keep insertion order (``list.sort`` is stable). Slices come out in
    order of first appearance, not re-sorted by time.
    """
    slice_sec = slice_ms / 1000.0
    buckets: Dict[int, List[PitchObservation]] = {}
    for o in observations:
        b = int(math.floor(o.time / slice_sec))
        buckets.setdefault(b, []).append(o)
    out: List[PitchObservation] = []
    for arr in buckets.values():
        arr.sort(key=lambda x: -(x.amplitude or 0.0))
        out.extend(arr[:max_per_slice])
    return out

class DensityLimiter:
    """Per-mode cap: 2 per slice for monophonic audio, 5 for polyphonic."""
    def __init__(self, cfg: DensityConfig, mode: str = "mono"):
        self.cfg = cfg
        self.mode = mode

    @property
    def max_per_slice(self) -> int:
        if self.mode == "poly":
            return self.cfg.max_per_slice_poly
        return self.cfg.max_per_slice_mono

    def apply(self, observations: Iterable[PitchObservation]) -> List[PitchObservation]:
        return limit_density(observations, self.max_per_slice, self.cfg.slice_ms)
