"""Report transform stage applying the channel formulas to device reports."""

from __future__ import annotations

import logging
import time
from typing import Callable, List

from .channels import FILTER_NAME, ChannelBank, ChannelSet
from .interfaces import Clock, ReportSink, SupportsDeviceExtents, SupportsNotifications
from .notifications import LoggingNotifier
from .numeric import saturate_uint
from .reports import DeviceReport, Vector2
from .settings import FilterSettings
from .state import ComputedSample, RawSample, StateTracker
from .vocabulary import VariableVector

__all__ = ["CustomFilter", "PIPELINE_POSITION"]

logger = logging.getLogger(__name__)

PIPELINE_POSITION = "pre_transform"

_ZERO: Vector2 = (0.0, 0.0)


class CustomFilter:
    """Rewrite position, pressure and tilt of each report through user formulas.

    The stage starts without compiled formulas and forwards reports unchanged
    until the host calls :meth:`configure`.  Each processed report is
    transformed in place and handed to every subscribed sink, including
    reports the stage does not understand.
    """

    name = FILTER_NAME
    pipeline_position = PIPELINE_POSITION

    def __init__(
        self,
        extents: SupportsDeviceExtents,
        *,
        notifier: SupportsNotifications | None = None,
        clock: Clock = time.monotonic,
        state: StateTracker | None = None,
    ) -> None:
        self._extents = extents
        self._channels = ChannelBank(notifier if notifier is not None else LoggingNotifier())
        self.state = state if state is not None else StateTracker(clock=clock)
        self.settings: FilterSettings | None = None
        self._vector = VariableVector()
        self._sinks: List[ReportSink] = []

    # ------------------------------------------------------------------
    # Host lifecycle
    # ------------------------------------------------------------------
    @property
    def channels(self) -> ChannelSet | None:
        return self._channels.current

    def configure(self, settings: FilterSettings) -> ChannelSet:
        """Apply ``settings``: recompile every formula and update the reset timeout."""

        self.settings = settings
        self.state.reset_timeout_ms = settings.reset_timeout_ms
        bundle = self._channels.recompile(settings.formulas)
        logger.info(
            "Configured %s",
            FILTER_NAME,
            extra={
                "event": "filter.configured",
                "reset_timeout_ms": settings.reset_timeout_ms,
                "failed": [channel.label for channel in bundle.failed],
            },
        )
        return bundle

    def reset(self) -> None:
        """Forget the tracked history, as when the stage is unloaded."""

        self.state.reset()

    def subscribe(self, sink: ReportSink) -> Callable[[], None]:
        """Register ``sink`` and return a callable that removes it again."""

        self._sinks.append(sink)

        def unsubscribe() -> None:
            if sink in self._sinks:
                self._sinks.remove(sink)

        return unsubscribe

    # ------------------------------------------------------------------
    # Report processing
    # ------------------------------------------------------------------
    def consume(self, report: object) -> None:
        """Transform ``report`` when it carries known capabilities and forward it."""

        if isinstance(report, DeviceReport) and report.has_capabilities:
            self._transform(report)
        self._emit(report)

    __call__ = consume

    def _emit(self, report: object) -> None:
        for sink in tuple(self._sinks):
            sink(report)

    def _transform(self, report: DeviceReport) -> None:
        channels = self._channels.current
        has_position = report.has_position
        raw = RawSample(
            position=report.position if has_position else None,
            pressure=report.pressure if has_position else None,
            tilt=report.tilt,
            hover_distance=report.hover_distance,
        )

        state = self.state
        state.observe_and_maybe_reset(raw)

        position = raw.position or _ZERO
        pressure = raw.pressure or 0
        extents = self._extents.device_extents()
        vector = self._vector
        vector.set_current(position, pressure, raw.tilt or _ZERO, raw.hover_distance or 0)
        vector.set_last(
            state.last_raw_position,
            state.last_raw_pressure,
            state.last_raw_tilt,
            state.last_raw_hover_distance,
        )
        vector.set_extents(extents.max_x, extents.max_y, extents.max_pressure)
        vector.set_computed(state.last_computed_position, state.last_computed_pressure)
        values = vector.values

        computed = ComputedSample()
        if has_position:
            if channels is not None:
                position = (channels.x(values), channels.y(values))
                vector.set_position(position)
                pressure = saturate_uint(channels.p(values))
                vector.set_pressure(pressure)
                vector.set_computed(position, pressure)
            report.position = position
            report.pressure = pressure
            computed = ComputedSample(position=position, pressure=pressure)

        if report.tilt is not None and channels is not None:
            report.tilt = (channels.tx(values), channels.ty(values))

        state.update(raw, computed)
