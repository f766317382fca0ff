from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from penfilter.reports import DeviceExtents, FixedExtents
from penfilter.stage import CustomFilter

from tests.helpers import ManualClock, RecordingNotifier


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def extents() -> FixedExtents:
    return FixedExtents(DeviceExtents(max_x=100.0, max_y=100.0, max_pressure=1000.0))


@pytest.fixture()
def stage(extents: FixedExtents, notifier: RecordingNotifier, clock: ManualClock) -> CustomFilter:
    return CustomFilter(extents, notifier=notifier, clock=clock)


@pytest.fixture()
def forwarded(stage: CustomFilter) -> list[object]:
    sink: list[object] = []
    stage.subscribe(sink.append)
    return sink
