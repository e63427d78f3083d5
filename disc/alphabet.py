# disc/alphabet.py
import re
from dataclasses import dataclass
from typing import Optional, Tuple

# 唱盤上可以打的 16 個音，由外圈到內圈
NOTE_NAMES: Tuple[str, ...] = (
    "D6", "C6", "B5", "A5", "G5", "F5", "E5", "D5",
    "C5", "B4", "A4", "G4", "E4", "D4", "C4", "G3",
)

# (inner, outer) radius in mm, same order as NOTE_NAMES
NOTE_PIN_BANDS: Tuple[Tuple[float, float], ...] = (
    (56.9, 58.1),
    (55.7, 56.9),
    (54.11, 55.31),
    (51.315, 52.515),
    (48.555, 49.755),
    (45.825, 47.025),
    (43.0, 44.2),
    (40.225, 41.425),
    (37.425, 38.625),
    (36.225, 37.425),
    (34.71, 35.91),
    (33.51, 34.71),
    (31.89, 33.09),
    (30.69, 31.89),
    (29.15, 30.35),
    (27.95, 29.15),
)

# groove rings cut into the blank, each 2mm wide
TRACK_INNER_RADII: Tuple[float, ...] = (
    28.15, 30.89, 33.71, 36.425, 39.225, 42.0, 44.825, 47.555, 50.315, 53.11, 55.9,
)
GROOVE_WIDTH = 2.0

@dataclass(frozen=True)
class DiscGeometry:
    r_stock: float = 60.58
    r_inset: float = 25.6
    r_center: float = 3.25
    o_drive: float = 21.765
    r_drive: float = 1.565
    pin_width: float = 0.8
    pin_offset: float = -0.5

DISC_GEOMETRY = DiscGeometry()

NOTE_TO_CLASS = {
    "C": 0, "C#": 1, "D": 2, "D#": 3, "E": 4, "F": 5,
    "F#": 6, "G": 7, "G#": 8, "A": 9, "A#": 10, "B": 11,
}
_NOTE_RE = re.compile(r"^([A-G]#?)(-?\d+)$")

def note_name_to_midi(name: str) -> Optional[int]:
    m = _NOTE_RE.match(name)
    if not m:
        return None
    return (int(m.group(2)) + 1) * 12 + NOTE_TO_CLASS[m.group(1)]

ALLOWED_MIDI: Tuple[int, ...] = tuple(note_name_to_midi(n) for n in NOTE_NAMES)

def pitch_class(midi: int) -> int:
    return ((midi % 12) + 12) % 12

@dataclass(frozen=True)
class AllowedPitch:
    index: int
    midi: int
    diff: int
    same_pitch_class: bool

    @property
    def band(self) -> Tuple[float, float]:
        return NOTE_PIN_BANDS[self.index]

def map_to_allowed(midi: int) -> AllowedPitch:
    """Map a (transposed) MIDI pitch onto one alphabet slot.

    Prefers the closest slot with the same pitch class; when the alphabet has
    no such slot (sharps), falls back to the globally nearest slot, ties going
    to the lower pitch. Never fails.
    """
    pc = pitch_class(midi)
    best_same: Optional[AllowedPitch] = None
    for i, allowed in enumerate(ALLOWED_MIDI):
        if allowed % 12 != pc:
            continue
        diff = abs(allowed - midi)
        if best_same is None or diff < best_same.diff:
            best_same = AllowedPitch(i, allowed, diff, True)
    if best_same is not None:
        return best_same

    best: Optional[AllowedPitch] = None
    for i, allowed in enumerate(ALLOWED_MIDI):
        diff = abs(allowed - midi)
        if best is None or diff < best.diff or (diff == best.diff and allowed < best.midi):
            best = AllowedPitch(i, allowed, diff, False)
    return best
