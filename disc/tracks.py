# disc/tracks.py
import math
from typing import Callable, Iterable, List, Optional, Sequence
from config import TimingConfig
from notes.model import MappedPin, PitchObservation, TranscriptionResult
from disc.alphabet import NOTE_PIN_BANDS, map_to_allowed
from disc.timing import compute_timing_scale
from disc.transpose import best_transpose

TWO_PI = 2.0 * math.pi

def map_pins(observations: Sequence[PitchObservation], transpose: int, scale: float,
             target_seconds: float, side: str = "A",
             checkpoint: Optional[Callable[[float], None]] = None) -> List[MappedPin]:
    """Place one pin per observation that lands inside the rotation window.

    Out-of-window observations are dropped, never clamped. ``checkpoint`` gets
    the processed fraction about six times per call.
    """
    pins: List[MappedPin] = []
    total = len(observations)
    step = max(1, total // 6)
    for i, o in enumerate(observations):
        scaled = o.time * scale
        if 0.0 <= scaled <= target_seconds:
            mapped = map_to_allowed(o.pitch + transpose)
            inner, outer = NOTE_PIN_BANDS[mapped.index]
            angle = (scaled / target_seconds) * TWO_PI
            if angle >= TWO_PI:
                angle = 0.0  # a pin at the very end of the window shares the start line
            pins.append(MappedPin(inner, outer, angle, mapped.index, side))
        if checkpoint is not None and i % step == 0:
            checkpoint(i / total)
    return pins

def transcribe(observations: Sequence[PitchObservation], duration: float, timing: TimingConfig,
               side_b: Optional[Iterable[PitchObservation]] = None) -> TranscriptionResult:
    """Timing → transpose → pins for one or two sides.

    Side B is laid out with side A's transpose and tempo scale.
    """
    ts = compute_timing_scale(duration, timing)
    transpose = best_transpose(observations)
    pins = map_pins(observations, transpose, ts.scale, timing.target_seconds)
    pins_b: List[MappedPin] = []
    if side_b is not None:
        pins_b = map_pins(list(side_b), transpose, ts.scale, timing.target_seconds, side="B")
    return TranscriptionResult(
        transpose_semitones=transpose,
        tempo_scale=ts.scale,
        trailing_gap_seconds=ts.gap,
        pins=tuple(pins),
        side_b_pins=tuple(pins_b),
    )
