import random

from disc.transpose import best_transpose, score_transpose
from notes.model import PitchObservation


def test_empty_input_means_no_shift() -> None:
    assert best_transpose([]) == 0


def test_in_alphabet_note_is_not_moved() -> None:
    assert best_transpose([60]) == 0
    assert best_transpose([PitchObservation(time=0.0, pitch=60, amplitude=1.0)]) == 0


def test_pentatonic_shifted_up_a_semitone_comes_back_down() -> None:
    # C# D# F G# A#; the G-rooted fit (+6) is also exact but shifts further
    assert best_transpose([61, 63, 65, 68, 70]) == -1


def test_score_transpose_counts_error_and_hits() -> None:
    assert score_transpose([61], 0) == (1, 0)
    assert score_transpose([61], -1) == (0, 1)
    assert score_transpose([60, 62], 0) == (0, 2)


def test_result_is_deterministic_and_bounded() -> None:
    rng = random.Random(1234)
    for _ in range(25):
        pitches = [rng.randint(30, 100) for _ in range(rng.randint(1, 40))]
        first = best_transpose(pitches)
        assert -12 <= first <= 12
        assert best_transpose(list(pitches)) == first


def test_selected_shift_has_minimal_error() -> None:
    rng = random.Random(99)
    pitches = [rng.randint(40, 90) for _ in range(30)]
    shift = best_transpose(pitches)
    best_total = min(score_transpose(pitches, s)[0] for s in range(-12, 13))
    assert score_transpose(pitches, shift)[0] == best_total
