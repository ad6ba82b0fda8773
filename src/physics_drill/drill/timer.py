"""Elapsed-time ticking for in-progress passes.

The engine never owns a thread. It asks a *ticker factory* for a periodic
callback, with the same call shape as Textual's ``App.set_interval``
(``factory(interval, callback)`` returning an object with ``stop()``). The
console loop uses :class:`PollingScheduler`, which delivers the seconds that
have passed on a monotonic clock whenever the loop polls it.
"""

from __future__ import annotations

import time
from typing import Callable, Protocol

TICK_SECONDS = 1.0

TickCallback = Callable[[], None]


class Ticker(Protocol):
    def stop(self) -> None: ...


TickerFactory = Callable[[float, TickCallback], Ticker]


class SessionClock:
    """Starts and stops one ticker per in-progress pass.

    Every :meth:`start` creates a brand new ticker (stopping any previous
    one) and bumps a generation counter. Callbacks from an older generation
    or arriving after :meth:`stop` are dropped.
    """

    def __init__(
        self,
        factory: TickerFactory | None,
        on_tick: TickCallback,
        *,
        interval: float = TICK_SECONDS,
    ) -> None:
        self._factory = factory
        self._on_tick = on_tick
        self._interval = interval
        self._ticker: Ticker | None = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._ticker is not None

    @property
    def generation(self) -> int:
        return self._generation

    def start(self) -> None:
        self.stop()
        self._generation += 1
        if self._factory is None:
            return
        generation = self._generation

        def _deliver() -> None:
            if self._ticker is not None and generation == self._generation:
                self._on_tick()

        self._ticker = self._factory(self._interval, _deliver)

    def stop(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.stop()


class PollingTicker:
    """A ticker whose due ticks are delivered by :meth:`poll`."""

    def __init__(
        self,
        interval: float,
        callback: TickCallback,
        *,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._callback = callback
        self._now = now
        self._next_due = now() + interval
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def poll(self) -> int:
        """Fire one callback per full interval elapsed; return the count."""

        fired = 0
        current = self._now()
        while not self._stopped and current >= self._next_due:
            self._next_due += self._interval
            fired += 1
            self._callback()
        return fired

    def stop(self) -> None:
        self._stopped = True


class PollingScheduler:
    """Ticker factory for synchronous loops such as the Rich console."""

    def __init__(self, *, now: Callable[[], float] = time.monotonic) -> None:
        self._now = now
        self._tickers: list[PollingTicker] = []

    def __call__(
        self, interval: float, callback: TickCallback
    ) -> PollingTicker:
        ticker = PollingTicker(interval, callback, now=self._now)
        self._tickers.append(ticker)
        return ticker

    @property
    def active(self) -> int:
        return sum(1 for ticker in self._tickers if not ticker.stopped)

    def poll(self) -> int:
        self._tickers = [t for t in self._tickers if not t.stopped]
        return sum(ticker.poll() for ticker in list(self._tickers))
