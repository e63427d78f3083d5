import math

import numpy as np
import pytest

from audio.pitch import PitchExtractor, amdf_pitch, hz_to_midi, top_peaks, yin_pitch, yin_track
from config import DensityConfig, ExtractionConfig
from conftest import sine

SR = 44100

def test_hz_to_midi() -> None:
    assert hz_to_midi(440.0) == 69
    assert hz_to_midi(261.63) == 60
    assert hz_to_midi(880.0) == 81

def test_yin_finds_sine_fundamental() -> None:
    frame = sine(440.0, 1024 / SR, SR)
    assert yin_pitch(frame, SR) == pytest.approx(440.0, rel=0.02)

def test_yin_track_is_nan_over_silence() -> None:
    tone = sine(440.0, 0.5, SR)
    samples = np.concatenate([tone, np.zeros_like(tone)])
    track = yin_track(samples, SR, 1024, 256)
    assert len(track) == 1 + (len(samples) - 1024) // 256
    half = len(tone) // 256
    voiced = track[: half - 4]
    assert np.isfinite(voiced).sum() > len(voiced) // 2
    assert np.nanmedian(voiced) == pytest.approx(440.0, rel=0.02)
    assert np.isnan(track[half + 1:]).all()

def test_amdf_finds_sine_fundamental() -> None:
    frame = sine(440.0, 1024 / SR, SR)
    assert amdf_pitch(frame, SR) == pytest.approx(440.0, rel=0.05)

def test_estimators_give_up_on_silence() -> None:
    frame = np.zeros(1024, dtype=np.float32)
    assert yin_pitch(frame, SR) is None
    assert amdf_pitch(frame, SR) is None

def test_top_peaks_strongest_first_and_above_guard() -> None:
    mags = np.zeros(100)
    mags[3] = 100.0  # below the guard bin
    for b, m in ((10, 5.0), (20, 9.0), (30, 1.0), (40, 7.0), (50, 3.0), (60, 8.0)):
        mags[b] = m
    assert top_peaks(mags, 5, 5) == [(20, 9.0), (60, 8.0), (40, 7.0), (10, 5.0), (50, 3.0)]

def test_top_peaks_ties_keep_earlier_bin() -> None:
    mags = np.zeros(32)
    mags[10] = mags[11] = 4.0
    assert top_peaks(mags, 1, 5) == [(10, 4.0)]

def test_mono_extraction_of_a_steady_tone() -> None:
    extractor = PitchExtractor(ExtractionConfig(), DensityConfig(), "mono")
    events = extractor.extract(sine(440.0, 1.0, SR), SR)
    assert events
    assert {e.pitch for e in events} == {69}
    assert all(e.amplitude == 1.0 for e in events)
    per_slice = {}
    for e in events:
        idx = math.floor(e.time / 0.08)
        per_slice[idx] = per_slice.get(idx, 0) + 1
    assert max(per_slice.values()) <= 2

def test_poly_extraction_picks_both_partials() -> None:
    samples = sine(440.0, 0.5, SR) + sine(660.0, 0.5, SR)
    # loose cap so the quieter partial is not crowded out by the louder one
    extractor = PitchExtractor(ExtractionConfig(), DensityConfig(max_per_slice_poly=100), "poly")
    events = extractor.extract(samples, SR)
    frames = range(0, len(samples) - 1024, 256)
    assert len({e.time for e in events}) == len(frames)
    pitches = {e.pitch for e in events}
    assert {69, 76} <= pitches
    assert all(e.amplitude > 0 for e in events)

def test_silence_yields_nothing() -> None:
    silence = np.zeros(SR // 2, dtype=np.float32)
    for mode in ("mono", "poly"):
        assert PitchExtractor(ExtractionConfig(), DensityConfig(), mode).extract(silence, SR) == []

def test_progress_stays_in_sub_range() -> None:
    seen = []
    extractor = PitchExtractor(ExtractionConfig(progress_every_frames=10), DensityConfig(), "mono")
    extractor.extract(sine(330.0, 1.0, SR), SR, progress=seen.append)
    assert seen[0] == 40
    assert all(40 <= v <= 60 for v in seen)
    assert seen == sorted(seen)

def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        PitchExtractor(ExtractionConfig(), DensityConfig(), "stereo")
