from __future__ import annotations

import pytest

from penfilter.state import ComputedSample, RawSample, StateTracker

from tests.helpers import ManualClock


def _sample(x: float = 1.0, y: float = 2.0, p: int = 3) -> RawSample:
    return RawSample(position=(x, y), pressure=p, tilt=(4.0, 5.0), hover_distance=6)


@pytest.mark.parametrize(
    ("timeout", "elapsed", "expected"),
    [
        (-1, 0.0, False),
        (-1, 1e9, False),
        (0, 0.0, True),
        (0, 5.0, True),
        (50, 49.9, False),
        (50, 50.0, True),
        (50, 51.0, True),
    ],
)
def test_should_reset(timeout: int, elapsed: float, expected: bool) -> None:
    tracker = StateTracker(timeout, clock=ManualClock())

    assert tracker.should_reset(elapsed) is expected


def test_initial_state_is_zero(clock: ManualClock) -> None:
    tracker = StateTracker(clock=clock)

    assert tracker.last_raw_position == (0.0, 0.0)
    assert tracker.last_raw_pressure == 0
    assert tracker.last_raw_tilt == (0.0, 0.0)
    assert tracker.last_raw_hover_distance == 0
    assert tracker.last_computed_position == (0.0, 0.0)
    assert tracker.last_computed_pressure == 0


def test_first_report_is_measured_from_creation(clock: ManualClock) -> None:
    tracker = StateTracker(50, clock=clock)
    tracker.update(_sample(9.0, 9.0, 9), ComputedSample(position=(8.0, 8.0), pressure=8))

    clock.advance(49)
    assert tracker.observe_and_maybe_reset(_sample()) is False
    assert tracker.last_raw_position == (9.0, 9.0)


def test_reset_seeds_raw_history_and_clears_computed(clock: ManualClock) -> None:
    tracker = StateTracker(50, clock=clock)
    tracker.update(_sample(9.0, 9.0, 9), ComputedSample(position=(8.0, 8.0), pressure=8))

    clock.advance(50)
    assert tracker.observe_and_maybe_reset(_sample()) is True

    assert tracker.last_raw_position == (1.0, 2.0)
    assert tracker.last_raw_pressure == 3
    assert tracker.last_raw_tilt == (4.0, 5.0)
    assert tracker.last_raw_hover_distance == 6
    assert tracker.last_computed_position == (0.0, 0.0)
    assert tracker.last_computed_pressure == 0


def test_gap_is_measured_between_consecutive_reports(clock: ManualClock) -> None:
    tracker = StateTracker(50, clock=clock)

    clock.advance(30)
    assert tracker.observe_and_maybe_reset(_sample()) is False
    clock.advance(30)
    assert tracker.observe_and_maybe_reset(_sample()) is False
    clock.advance(60)
    assert tracker.observe_and_maybe_reset(_sample()) is True


def test_explicit_timestamp_overrides_clock(clock: ManualClock) -> None:
    tracker = StateTracker(50, clock=clock)

    assert tracker.observe_and_maybe_reset(_sample(), now=0.049) is False
    assert tracker.observe_and_maybe_reset(_sample(), now=0.2) is True


def test_update_keeps_missing_capabilities(clock: ManualClock) -> None:
    tracker = StateTracker(clock=clock)
    tracker.update(_sample(), ComputedSample(position=(10.0, 20.0), pressure=30))

    tracker.update(RawSample(tilt=(7.0, 7.0)), ComputedSample())

    assert tracker.last_raw_position == (1.0, 2.0)
    assert tracker.last_raw_pressure == 3
    assert tracker.last_raw_tilt == (7.0, 7.0)
    assert tracker.last_raw_hover_distance == 6
    assert tracker.last_computed_position == (10.0, 20.0)
    assert tracker.last_computed_pressure == 30


def test_reset_clears_everything(clock: ManualClock) -> None:
    tracker = StateTracker(clock=clock)
    tracker.update(_sample(), ComputedSample(position=(10.0, 20.0), pressure=30))

    tracker.reset()

    assert tracker.last_raw_position == (0.0, 0.0)
    assert tracker.last_raw_tilt == (0.0, 0.0)
    assert tracker.last_computed_pressure == 0
