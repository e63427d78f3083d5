# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Tuple

@dataclass(frozen=True)
class TimingConfig:
    target_seconds: float = 36.0          # one full rotation
    max_tempo_adjust_fraction: float = 0.05
    max_gap_seconds: float = 3.6

@dataclass(frozen=True)
class ExtractionConfig:
    frame_size: int = 1024
    hop: int = 256
    amdf_min_hz: float = 82.0
    amdf_max_hz: float = 1000.0
    amdf_sensitivity: float = 0.1
    amdf_ratio: float = 5.0
    mono_range_hz: Tuple[float, float] = (60.0, 1800.0)
    poly_range_hz: Tuple[float, float] = (50.0, 2000.0)
    poly_max_peaks: int = 5
    poly_min_bin: int = 5                 # skip DC / rumble
    progress_every_frames: int = 200
    progress_range: Tuple[int, int] = (40, 60)

@dataclass(frozen=True)
class DensityConfig:
    slice_ms: int = 80
    max_per_slice_mono: int = 2
    max_per_slice_poly: int = 5

@dataclass(frozen=True)
class DecodeConfig:
    min_clip_seconds: float = 6.0
    max_clip_seconds: float = 60.0
    default_clip_seconds: float = 36.0

@dataclass
class RenderConfig:
    size_px: int = 800
    background: Tuple[int, int, int] = (12, 12, 14)
    label_font_px: int = 22

@dataclass
class AppConfig:
    timing: TimingConfig = field(default_factory=TimingConfig)
    extract: ExtractionConfig = field(default_factory=ExtractionConfig)
    density: DensityConfig = field(default_factory=DensityConfig)
    decode: DecodeConfig = field(default_factory=DecodeConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
