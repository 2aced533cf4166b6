"""Injectable time source for timers, backoff and polling.

All times are epoch milliseconds. Production code uses AsyncioClock; tests use
VirtualClock so debounce windows and poll intervals run in virtual time.
"""

import asyncio
import heapq
import itertools
import time
from typing import Callable


class TimerHandle:
    """Cancellable handle for a callback scheduled with Clock.call_later()."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._cancelled = False

    def cancel(self) -> None:
        if not self._cancelled:
            self._cancelled = True
            self._cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Clock:
    """Interface for a clock with async sleep and cancellable timers."""

    def now(self) -> float:
        raise NotImplementedError

    async def sleep(self, ms: float) -> None:
        raise NotImplementedError

    def call_later(self, ms: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class AsyncioClock(Clock):
    """Wall-clock time with timers on the running event loop."""

    def now(self) -> float:
        return time.time() * 1000

    async def sleep(self, ms: float) -> None:
        await asyncio.sleep(ms / 1000)

    def call_later(self, ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = asyncio.get_running_loop().call_later(ms / 1000, callback)
        return TimerHandle(handle.cancel)


class VirtualClock(Clock):
    """
    Deterministic clock for tests.

    sleep() advances virtual time by the requested amount (firing any timers
    that fall due) and yields once to the event loop. advance() moves time
    forward explicitly and runs due callbacks in deadline order.
    """

    def __init__(self, start_ms: float = 1_700_000_000_000):
        self._now = start_ms
        self._timers: list[tuple[float, int, Callable[[], None], TimerHandle]] = []
        self._seq = itertools.count()
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._now

    async def sleep(self, ms: float) -> None:
        self.sleeps.append(ms)
        self.advance(ms)
        await asyncio.sleep(0)

    def call_later(self, ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(lambda: None)
        heapq.heappush(self._timers, (self._now + ms, next(self._seq), callback, handle))
        return handle

    def advance(self, ms: float) -> None:
        target = self._now + ms
        while self._timers and self._timers[0][0] <= target:
            due, _, callback, handle = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            self._now = due
            callback()
        self._now = target

    @property
    def pending_timers(self) -> int:
        return sum(1 for *_, handle in self._timers if not handle.cancelled)
