"""Scheduler abstraction for the classifier's inactivity timer.

The classifier never sleeps or reads the wall clock itself: it asks the
scheduler for the current time and for one-shot callbacks.  Production wires
a thread-backed implementation; tests drive a manual clock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle(ABC):

    @abstractmethod
    def cancel(self) -> None:
        """Stop the pending callback.  Safe to call more than once."""


class Scheduler(ABC):

    @abstractmethod
    def now_ms(self) -> float:
        """Monotonic time in milliseconds."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once after *delay_ms* milliseconds."""
