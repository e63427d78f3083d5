# disc/transpose.py
import logging
from typing import Iterable, List, Tuple, Union
from notes.model import PitchObservation
from disc.alphabet import map_to_allowed

MAX_SHIFT = 12

def _pitches(items: Iterable[Union[int, PitchObservation]]) -> List[int]:
    return [int(getattr(x, "pitch", x)) for x in items]

def score_transpose(pitches: Iterable[int], shift: int) -> Tuple[int, int]:
    """(total absolute error, same-pitch-class hits) for one candidate shift."""
    total = 0
    hits = 0
    for p in pitches:
        mapped = map_to_allowed(p + shift)
        total += abs((p + shift) - mapped.midi)
        if mapped.same_pitch_class:
            hits += 1
    return total, hits

def best_transpose(items: Iterable[Union[int, PitchObservation]]) -> int:
    """Exhaustive search over -12..12 semitones.

    Lowest total error wins, then most same-pitch-class hits, then the
    smallest absolute shift.
    """
    pitches = _pitches(items)
    if not pitches:
        return 0
    best_key = None
    best_shift = 0
    for shift in range(-MAX_SHIFT, MAX_SHIFT + 1):
        total, hits = score_transpose(pitches, shift)
        key = (total, -hits, abs(shift))
        if best_key is None or key < best_key:
            best_key, best_shift = key, shift
    logging.debug("best_transpose: shift=%d total=%d hits=%d over %d pitches",
                  best_shift, best_key[0], -best_key[1], len(pitches))
    return best_shift
