import math
import random
from collections import defaultdict

from config import DensityConfig
from notes.model import PitchObservation
from notes.reduction import DensityLimiter, limit_density


def obs(t, pitch, amp):
    return PitchObservation(time=t, pitch=pitch, amplitude=amp)


def test_keeps_loudest_per_slice() -> None:
    events = [obs(0.00, 60, 0.1), obs(0.01, 62, 0.9), obs(0.02, 64, 0.5), obs(0.05, 65, 0.7)]
    kept = limit_density(events, 2, 80)
    assert [o.pitch for o in kept] == [62, 65]


def test_ties_keep_insertion_order() -> None:
    events = [obs(0.0, p, 1.0) for p in (60, 61, 62, 63)]
    kept = limit_density(events, 2, 80)
    assert [o.pitch for o in kept] == [60, 61]


def test_slice_boundaries() -> None:
    events = [obs(0.079, 60, 1.0), obs(0.08, 62, 1.0), obs(0.159, 64, 1.0)]
    kept = limit_density(events, 1, 80)
    assert [o.pitch for o in kept] == [60, 62]


def test_cap_holds_for_every_slice() -> None:
    rng = random.Random(7)
    events = [obs(rng.uniform(0, 5), rng.randint(40, 90), rng.random()) for _ in range(600)]
    kept = limit_density(events, 3, 80)

    def by_slice(items):
        out = defaultdict(list)
        for o in items:
            out[math.floor(o.time / 0.08)].append(o)
        return out

    kept_slices = by_slice(kept)
    all_slices = by_slice(events)
    for idx, items in kept_slices.items():
        assert len(items) <= 3
        dropped = [o for o in all_slices[idx] if o not in items]
        if dropped:
            assert min(o.amplitude for o in items) >= max(o.amplitude for o in dropped)
    assert sum(len(v) for v in kept_slices.values()) == sum(min(3, len(v)) for v in all_slices.values())


def test_limiter_picks_cap_by_mode() -> None:
    cfg = DensityConfig()
    assert DensityLimiter(cfg, "mono").max_per_slice == 2
    assert DensityLimiter(cfg, "poly").max_per_slice == 5
    events = [obs(0.0, 60 + i, 1.0 - i / 10) for i in range(8)]
    assert len(DensityLimiter(cfg, "poly").apply(events)) == 5
