# notes/model.py
from dataclasses import dataclass
from typing import Dict, Tuple

@dataclass(frozen=True)
class Note:
    pitch: int      # MIDI note number
    start: float    # seconds
    end: float      # seconds
    velocity: int
    channel: int

    def to_observation(self) -> "PitchObservation":
        return PitchObservation(time=self.start, pitch=self.pitch, amplitude=self.velocity / 127.0)

@dataclass(frozen=True)
class PitchObservation:
    time: float       # seconds, >= 0
    pitch: int        # MIDI note number
    amplitude: float  # >= 0; 1.0 for monophonic detections

@dataclass(frozen=True)
class MappedPin:
    inner_radius: float
    outer_radius: float
    angle_radians: float   # [0, 2π)
    alphabet_index: int
    side: str = "A"

@dataclass(frozen=True)
class TranscriptionResult:
    transpose_semitones: int
    tempo_scale: float
    trailing_gap_seconds: float
    pins: Tuple[MappedPin, ...]
    side_b_pins: Tuple[MappedPin, ...] = ()

    @property
    def all_pins(self) -> Tuple[MappedPin, ...]:
        return self.pins + self.side_b_pins

    @property
    def total_pin_count(self) -> int:
        return len(self.pins) + len(self.side_b_pins)

@dataclass(frozen=True)
class JobSummary:
    transpose_semitones: int
    tempo_scale: float
    trailing_gap_seconds: float
    total_pin_count: int
    source_duration_seconds: float

    @classmethod
    def from_result(cls, result: TranscriptionResult, source_duration: float) -> "JobSummary":
        return cls(
            transpose_semitones=result.transpose_semitones,
            tempo_scale=result.tempo_scale,
            trailing_gap_seconds=result.trailing_gap_seconds,
            total_pin_count=result.total_pin_count,
            source_duration_seconds=source_duration,
        )

    def to_headers(self) -> Dict[str, str]:
        return {
            "X-Scale-Factor": f"{self.tempo_scale:.4f}",
            "X-Transpose-Semitones": str(self.transpose_semitones),
            "X-Gap-Seconds": f"{self.trailing_gap_seconds:.3f}",
            "X-Total-Notes": str(self.total_pin_count),
            "X-Source-Duration": str(int(round(self.source_duration_seconds))),
        }
