import pytest

from utils.progress import ProgressChannel


def test_progress_never_goes_backwards() -> None:
    ch = ProgressChannel("job-1")
    for pct in (5, 12, 8, 40, 120, 50):
        ch.progress(pct)
    assert ch.value == 100
    assert [v for k, v in ch.events if k == "progress"] == [5, 12, 40, 100]


def test_listener_gets_job_id_and_kind() -> None:
    seen = []
    ch = ProgressChannel("job-2", listener=lambda *args: seen.append(args))
    ch.stage("parse")
    ch.progress(5)
    ch.eta(7.5)
    ch.done()
    assert seen == [
        ("job-2", "stage", "parse"),
        ("job-2", "progress", 5),
        ("job-2", "eta", 7.5),
        ("job-2", "progress", 100),
    ]


def test_unknown_stage_is_rejected() -> None:
    with pytest.raises(ValueError):
        ProgressChannel("job-3").stage("render")


def test_failing_listener_does_not_break_the_job() -> None:
    def boom(*_):
        raise RuntimeError("listener gone")

    ch = ProgressChannel("job-4", listener=boom)
    ch.progress(30)
    ch.stage("map")
    assert ch.value == 30
    assert ch.stage_name == "map"
