"""Deterministic stand-ins for monotonic clocks and interval timers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List


class ManualClock:
    """Callable returning a time that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@dataclass
class RecordingTicker:
    """Ticker factory that records handles and fires them on demand."""

    handles: List["_Handle"] = field(default_factory=list)

    def __call__(self, interval: float, callback: Callable[[], None]):
        handle = _Handle(interval, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> List["_Handle"]:
        return [handle for handle in self.handles if not handle.stopped]

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            for handle in list(self.live):
                handle.callback()


@dataclass
class _Handle:
    interval: float
    callback: Callable[[], None]
    stopped: bool = False

    def stop(self) -> None:
        self.stopped = True
