"""Output channels and the immutable bundle of their compiled formulas."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterator

from .expressions import CompiledFunction, compile_formula, compile_result
from .interfaces import SupportsNotifications
from .notifications import Severity
from .vocabulary import VARIABLES

__all__ = [
    "Channel",
    "ChannelBank",
    "ChannelFormulas",
    "ChannelSet",
    "FILTER_NAME",
    "compile_channel_set",
]

logger = logging.getLogger(__name__)

FILTER_NAME = "Custom Filter"


class Channel(enum.Enum):
    """Output quantities, in evaluation order."""

    X = ("x", "X")
    Y = ("y", "Y")
    P = ("p", "P")
    TX = ("tx", "TX")
    TY = ("ty", "TY")

    # ``identity`` names both the input variable used as fallback formula and
    # the matching field of ChannelFormulas and ChannelSet.
    def __init__(self, identity: str, label: str) -> None:
        self.identity = identity
        self.label = label


@dataclass(frozen=True, slots=True)
class ChannelFormulas:
    """User formulas for the five channels; defaults are the identities."""

    x: str = "x"
    y: str = "y"
    p: str = "p"
    tx: str = "tx"
    ty: str = "ty"

    def __getitem__(self, channel: Channel) -> str:
        return getattr(self, channel.identity)

    def items(self) -> Iterator[tuple[Channel, str]]:
        for channel in Channel:
            yield channel, self[channel]


@dataclass(frozen=True, slots=True)
class ChannelSet:
    """The five compiled formulas, replaced as a whole and never mutated."""

    x: CompiledFunction
    y: CompiledFunction
    p: CompiledFunction
    tx: CompiledFunction
    ty: CompiledFunction
    failed: tuple[Channel, ...] = ()

    def __getitem__(self, channel: Channel) -> CompiledFunction:
        return getattr(self, channel.identity)

    @classmethod
    def identity(cls) -> "ChannelSet":
        return cls(
            **{
                channel.identity: compile_formula(channel.identity, VARIABLES)
                for channel in Channel
            }
        )


def _report_failure(
    notifier: SupportsNotifications | None,
    channel: Channel,
    error: BaseException,
) -> None:
    logger.warning(
        "Falling back to identity for channel %s: %s",
        channel.label,
        error,
        extra={"event": "channel.fallback", "channel": channel.label},
    )
    if notifier is None:
        return
    try:
        notifier.log_exception(error)
    except Exception:
        logger.exception("Notifier failed to log the %s compile error", channel.label)
    try:
        notifier.notify(
            FILTER_NAME,
            f"Error while compiling {channel.label} polynomial! Resetting...",
            Severity.ERROR,
        )
    except Exception:
        logger.exception("Notifier failed to announce the %s compile error", channel.label)


def compile_channel_set(
    formulas: ChannelFormulas,
    *,
    notifier: SupportsNotifications | None = None,
) -> ChannelSet:
    """Compile every channel independently, substituting identities on failure."""

    compiled: dict[str, CompiledFunction] = {}
    failed: list[Channel] = []
    for channel, formula in formulas.items():
        outcome = compile_result(formula, VARIABLES)
        if outcome.function is not None:
            compiled[channel.identity] = outcome.function
            continue
        assert outcome.error is not None
        failed.append(channel)
        _report_failure(notifier, channel, outcome.error)
        compiled[channel.identity] = compile_formula(channel.identity, VARIABLES)
    return ChannelSet(failed=tuple(failed), **compiled)


class ChannelBank:
    """Owner of the current :class:`ChannelSet` reference.

    :meth:`recompile` builds a complete new bundle before publishing it with a
    single reference assignment, so a concurrent reader of :attr:`current`
    sees either the previous bundle or the new one.
    """

    __slots__ = ("_current", "_notifier")

    def __init__(self, notifier: SupportsNotifications | None = None) -> None:
        self._current: ChannelSet | None = None
        self._notifier = notifier

    @property
    def current(self) -> ChannelSet | None:
        """The active bundle, ``None`` until the first recompilation."""

        return self._current

    def recompile(self, formulas: ChannelFormulas) -> ChannelSet:
        bundle = compile_channel_set(formulas, notifier=self._notifier)
        self._current = bundle
        logger.debug(
            "Recompiled all functions",
            extra={"event": "channels.recompiled", "failed": [c.label for c in bundle.failed]},
        )
        return bundle
