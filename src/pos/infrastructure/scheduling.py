"""Scheduler implementations.

``ThreadingScheduler`` backs the live register with ``threading.Timer``.
Timer threads never run callbacks themselves: they hand them to a dispatcher
(a UI's "run on event thread" hook) or, by default, to a queue that the
owning thread drains with ``run_pending``.  Either way the classifier and
the ledger behind it are only touched from one thread.

``SimulatedScheduler`` keeps a virtual millisecond clock and fires timers only
when told to advance, which is what keystroke replays and tests need.
"""

from __future__ import annotations

import heapq
import itertools
import queue
import threading
import time
from typing import Callable

from pos.domain.service.scheduler import Scheduler, TimerHandle

Dispatcher = Callable[[Callable[[], None]], None]


class _ThreadTimerHandle(TimerHandle):

    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):

    def __init__(self, dispatch: Dispatcher | None = None) -> None:
        self._ready: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()
        self._dispatch = dispatch or self._ready.put

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_ms / 1000.0, self._dispatch, args=(callback,))
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)

    def run_pending(self, timeout: float = 0.0) -> int:
        """Run queued callbacks on the calling thread.

        Waits up to *timeout* seconds for the first one, then drains whatever
        else is ready.  Returns how many ran.  Only used without a dispatcher.
        """
        ran = 0
        try:
            if timeout > 0:
                callback = self._ready.get(timeout=timeout)
            else:
                callback = self._ready.get_nowait()
            while True:
                callback()
                ran += 1
                callback = self._ready.get_nowait()
        except queue.Empty:
            return ran


class _SimulatedHandle(TimerHandle):

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class SimulatedScheduler(Scheduler):

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = start_ms
        self._queue: list[tuple[float, int, _SimulatedHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _SimulatedHandle()
        heapq.heappush(self._queue, (self._now + delay_ms, next(self._seq), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, delta_ms: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        self.advance_to(self._now + delta_ms)

    def advance_to(self, target_ms: float) -> None:
        while self._queue and self._queue[0][0] <= target_ms:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, due)
            callback()
        self._now = max(self._now, target_ms)
