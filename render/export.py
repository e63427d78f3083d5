# render/export.py
import json
from dataclasses import asdict
from typing import Optional
from notes.model import MappedPin, TranscriptionResult
from disc.alphabet import DISC_GEOMETRY, GROOVE_WIDTH, NOTE_NAMES, TRACK_INNER_RADII

def sanitize_label(text: Optional[str]) -> str:
    if not text:
        return ""
    return str(text)

def _pin_dict(p: MappedPin) -> dict:
    return {
        "inner": round(p.inner_radius, 4),
        "outer": round(p.outer_radius, 4),
        "angle": round(p.angle_radians, 6),
        "note": NOTE_NAMES[p.alphabet_index],
    }

class LayoutExporter:
    """Pin layout as JSON: what a CAD step needs to cut the disc."""
    def build(self, result: TranscriptionResult, label_a: str = "", label_b: Optional[str] = None) -> dict:
        sides = {"A": {"label": sanitize_label(label_a), "pins": [_pin_dict(p) for p in result.pins]}}
        if result.side_b_pins:
            sides["B"] = {"label": sanitize_label(label_b), "pins": [_pin_dict(p) for p in result.side_b_pins]}
        return {
            "transpose": result.transpose_semitones,
            "scale": result.tempo_scale,
            "gap": result.trailing_gap_seconds,
            "geometry": dict(asdict(DISC_GEOMETRY), grooves=list(TRACK_INNER_RADII), groove_width=GROOVE_WIDTH),
            "sides": sides,
        }

    def serialize(self, model: dict) -> bytes:
        return json.dumps(model, ensure_ascii=False, indent=2).encode("utf-8")
