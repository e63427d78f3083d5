# app.py
import math, re, uuid, logging
from dataclasses import dataclass
from typing import Optional, Protocol
from config import AppConfig
from errors import ConversionError, ConversionFailed, EmptyInput, EmptyResult
from notes.model import JobSummary, TranscriptionResult
from midi.parser import parse_midi_to_notes
from audio.decode import clamp_clip, decode_audio
from audio.pitch import PitchExtractor
from disc.timing import compute_timing_scale, source_duration
from disc.transpose import best_transpose
from disc.tracks import map_pins, transcribe
from render.export import LayoutExporter
from utils.progress import Listener, ProgressChannel
from utils.crashlog import log_exception

_UNSAFE_NAME = re.compile(r'[\\/:%*?"<>|]')

class LayoutBuilder(Protocol):
    def build(self, result: TranscriptionResult, label_a: str = "", label_b: Optional[str] = None): ...
    def serialize(self, model) -> bytes: ...

@dataclass(frozen=True)
class JobOutput:
    job_id: str
    name: str
    payload: bytes
    result: TranscriptionResult
    summary: JobSummary

def new_job_id() -> str:
    return uuid.uuid4().hex[:12]

def safe_output_name(name: Optional[str], fallback: str = "record") -> str:
    cleaned = _UNSAFE_NAME.sub("", name or "").strip()
    return cleaned or fallback

def output_name(label_a: Optional[str], label_b: Optional[str] = None) -> str:
    name_a = safe_output_name(label_a, "record")
    if label_b is None:
        return name_a
    return f"{name_a} - {safe_output_name(label_b, 'side-b')}"

def estimate_midi_seconds(note_count: int, byte_len: int) -> float:
    return min(120.0, 6 + note_count * 0.004 + (byte_len / 1024) * 0.003)

class ConversionJob:
    """One conversion, start to finish, with its own progress channel.

    Nothing is shared between jobs except the read-only alphabet and config,
    so separate instances can run side by side. A job returns a complete
    JobOutput or raises exactly one ConversionError.
    """
    def __init__(self, cfg: AppConfig, builder: Optional[LayoutBuilder] = None,
                 job_id: Optional[str] = None, listener: Optional[Listener] = None):
        self.cfg = cfg
        self.builder = builder if builder is not None else LayoutExporter()
        self.job_id = job_id or new_job_id()
        self.channel = ProgressChannel(self.job_id, listener)

    # ---------- MIDI ----------
    def convert_midi(self, data_a: bytes, data_b: Optional[bytes] = None,
                     label_a: str = "record", label_b: Optional[str] = None) -> JobOutput:
        try:
            return self._convert_midi(data_a, data_b, label_a, label_b)
        except ConversionError as e:
            logging.warning("job %s: %s", self.job_id, e)
            raise
        except Exception as e:
            log_exception("convert_midi", e)
            logging.error("job %s failed", self.job_id, exc_info=True)
            raise ConversionFailed("Failed to convert MIDI.") from e

    def _convert_midi(self, data_a, data_b, label_a, label_b) -> JobOutput:
        ch = self.channel
        timing = self.cfg.timing
        ch.stage("parse")
        ch.progress(5)
        notes, _ = parse_midi_to_notes(data_a)
        notes_b = parse_midi_to_notes(data_b)[0] if data_b else []
        ch.progress(12)
        if not notes:
            raise EmptyInput("No notes found in MIDI.")

        ch.stage("map")
        ch.progress(20)
        duration = source_duration(notes)
        ts = compute_timing_scale(duration, timing)
        ch.progress(28)

        observations = [n.to_observation() for n in notes]
        transpose = best_transpose(observations)
        ch.progress(36)
        ch.eta(estimate_midi_seconds(len(notes), len(data_a)))
        ch.progress(44)

        pins = map_pins(observations, transpose, ts.scale, timing.target_seconds,
                        checkpoint=lambda f: ch.progress(46 + math.floor(f * 18)))
        pins_b = []
        if notes_b:
            pins_b = map_pins([n.to_observation() for n in notes_b], transpose, ts.scale,
                              timing.target_seconds, side="B",
                              checkpoint=lambda f: ch.progress(60 + math.floor(f * 10)))
        result = TranscriptionResult(
            transpose_semitones=transpose,
            tempo_scale=ts.scale,
            trailing_gap_seconds=ts.gap,
            pins=tuple(pins),
            side_b_pins=tuple(pins_b),
        )
        logging.info("job %s: %d notes → %d pins (transpose=%d, scale=%.4f, gap=%.3f)",
                     self.job_id, len(notes) + len(notes_b), result.total_pin_count,
                     transpose, ts.scale, ts.gap)
        side_b_label = (label_b or "side-b") if notes_b else None
        return self._finish(result, duration, label_a, side_b_label)

    # ---------- audio ----------
    def convert_audio(self, data: bytes, mode: str = "mono", start_seconds: Optional[float] = 0.0,
                      duration_seconds: Optional[float] = None, label: str = "record") -> JobOutput:
        try:
            return self._convert_audio(data, mode, start_seconds, duration_seconds, label)
        except ConversionError as e:
            logging.warning("job %s: %s", self.job_id, e)
            raise
        except Exception as e:
            log_exception("convert_audio", e)
            logging.error("job %s failed", self.job_id, exc_info=True)
            raise ConversionFailed("Failed to convert audio.") from e

    def _convert_audio(self, data, mode, start_seconds, duration_seconds, label) -> JobOutput:
        ch = self.channel
        mode = "poly" if mode == "poly" else "mono"
        ch.stage("parse")
        ch.progress(8)
        start, clip = clamp_clip(self.cfg.decode, start_seconds, duration_seconds)
        samples, sample_rate = decode_audio(data, start, clip)

        ch.stage("map")
        ch.progress(35)
        extractor = PitchExtractor(self.cfg.extract, self.cfg.density, mode)
        events = extractor.extract(samples, sample_rate, progress=ch.progress)
        if not events:
            raise EmptyInput("No notes found in audio.")

        duration = len(samples) / float(sample_rate)
        result = transcribe(events, duration, self.cfg.timing)
        logging.info("job %s: %s audio %.1fs, %d events → %d pins (transpose=%d, scale=%.4f)",
                     self.job_id, mode, duration, len(events), result.total_pin_count,
                     result.transpose_semitones, result.tempo_scale)
        return self._finish(result, duration, label, None)

    # ---------- build / serialize / send ----------
    def _finish(self, result: TranscriptionResult, duration: float,
                label_a: str, label_b: Optional[str]) -> JobOutput:
        ch = self.channel
        ch.stage("build")
        ch.progress(70)
        model = self.builder.build(result, label_a, label_b)

        ch.stage("serialize")
        ch.progress(90)
        payload = self.builder.serialize(model)
        if not payload:
            raise EmptyResult("Layout generation failed (empty model).")

        ch.stage("send")
        ch.progress(98)
        out = JobOutput(
            job_id=self.job_id,
            name=output_name(label_a, label_b),
            payload=payload,
            result=result,
            summary=JobSummary.from_result(result, duration),
        )
        ch.done()
        return out
