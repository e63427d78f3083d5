import io
import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import mido
import numpy as np
import pytest
import soundfile as sf

from utils.crashlog import LOG_DIR_ENV


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "logs"))


def _track(events, name=None):
    track = mido.MidiTrack()
    if name:
        track.append(mido.MetaMessage("track_name", name=name, time=0))
    last = 0
    for tick, _, msg in sorted(events, key=lambda e: (e[0], e[1])):
        track.append(msg.copy(time=tick - last))
        last = tick
    return track


@pytest.fixture
def make_midi():
    """Build MIDI bytes from (pitch, start_tick, dur_ticks[, channel]) tuples.

    Tick resolution is 480 per beat; ``tempos`` is a list of (tick, usec_per_beat)
    written to a separate conductor track.
    """
    def _make(notes, tempos=((0, 500000),), tpb=480, extra_tracks=()):
        mid = mido.MidiFile(type=1, ticks_per_beat=tpb)
        mid.tracks.append(_track([(t, 0, mido.MetaMessage("set_tempo", tempo=v)) for t, v in tempos]))
        for group in (notes,) + tuple(extra_tracks):
            events = []
            for n in group:
                pitch, start, dur = n[:3]
                ch = n[3] if len(n) > 3 else 0
                events.append((start, 1, mido.Message("note_on", note=pitch, velocity=100, channel=ch)))
                if dur is not None:
                    events.append((start + dur, 0, mido.Message("note_off", note=pitch, velocity=0, channel=ch)))
            mid.tracks.append(_track(events))
        buf = io.BytesIO()
        mid.save(file=buf)
        return buf.getvalue()
    return _make


def sine(freq, seconds, sr, amp=0.5):
    t = np.arange(int(seconds * sr)) / sr
    return (amp * np.sin(2 * np.pi * freq * t)).astype(np.float32)


@pytest.fixture
def make_wav():
    def _make(samples, sr, channels=1):
        data = np.asarray(samples, dtype=np.float32)
        if channels > 1:
            data = np.stack([data] * channels, axis=1)
        buf = io.BytesIO()
        sf.write(buf, data, sr, format="WAV", subtype="FLOAT")
        return buf.getvalue()
    return _make
