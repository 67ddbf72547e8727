"""Domain service: scan-burst classifier.

USB barcode scanners present themselves as keyboards.  The only thing that
tells a scan apart from a person typing is timing: a scanner delivers the
whole code in one fast, uninterrupted burst.  This classifier watches the
character stream and turns each such burst into exactly one committed item
code.

States:
  IDLE          no pending buffer
  BURST_ACTIVE  buffer non-empty, inactivity timer armed

Anything ambiguous is discarded as noise, never turned into a lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from pos.domain.exceptions import ValidationError
from pos.domain.model.value_objects import MAX_CODE_LEN, MIN_CODE_LEN, normalize_code
from pos.domain.service.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

ENTER_CHARS = ("\n", "\r")


@dataclass(frozen=True)
class ClassifierSettings:
    """Timing and length thresholds.

    The defaults were tuned against real scanners, not derived from a model,
    so they are kept configurable.
    """

    fast_gap_ms: float = 50
    inactivity_commit_ms: float = 100
    min_len: int = MIN_CODE_LEN
    max_len: int = MAX_CODE_LEN

    def __post_init__(self) -> None:
        if self.fast_gap_ms <= 0 or self.inactivity_commit_ms <= 0:
            raise ValidationError("Classifier timings must be positive")
        if self.min_len < 1 or self.max_len < self.min_len:
            raise ValidationError(
                f"Invalid code length bounds {self.min_len}-{self.max_len}"
            )


class ClassifierState(Enum):
    IDLE = "IDLE"
    BURST_ACTIVE = "BURST_ACTIVE"


class RedrawBatch:
    """Handle returned by ``InputClassifier.begin_batch()``.

    While any batch is open the renderer should skip redraws; ending the
    outermost batch forces exactly one redraw.
    """

    def __init__(self, classifier: InputClassifier) -> None:
        self._classifier = classifier
        self._open = True

    @property
    def active(self) -> bool:
        return self._open

    def end(self) -> None:
        if not self._open:
            return
        self._open = False
        self._classifier._end_batch()

    def __enter__(self) -> RedrawBatch:
        return self

    def __exit__(self, *exc_info) -> None:
        self.end()


class InputClassifier:

    def __init__(
        self,
        scheduler: Scheduler,
        on_commit: Callable[[str], None],
        settings: ClassifierSettings | None = None,
        on_redraw: Callable[[], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_commit = on_commit
        self._on_redraw = on_redraw
        self.settings = settings or ClassifierSettings()

        self._buffer: list[str] = []
        self._last_char_ms: float | None = None
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._batch_depth = 0

    # --- Queries --------------------------------------------------------------

    @property
    def state(self) -> ClassifierState:
        return ClassifierState.BURST_ACTIVE if self._buffer else ClassifierState.IDLE

    @property
    def buffer(self) -> str:
        return "".join(self._buffer)

    @property
    def redraw_suppressed(self) -> bool:
        return self._batch_depth > 0

    # --- Event handling -------------------------------------------------------

    def feed(self, char: str, manual_entry_active: bool = False) -> None:
        """Handle one typed character.

        ``manual_entry_active`` is True while the operator is typing into a
        text field; the classifier must stay out of the way then.
        """
        if len(char) != 1:
            raise ValueError(f"Expected a single character, got {char!r}")

        now = self._scheduler.now_ms()

        if char in ENTER_CHARS:
            if manual_entry_active:
                self._discard()
            elif self._is_recent(now):
                self._commit()
            else:
                self._clear_if_stale(now)
            return

        if not (char.isprintable() and char.isalnum()):
            # Noise ends nothing by itself; it only flushes a stale buffer.
            self._clear_if_stale(now)
            return

        if manual_entry_active:
            self._discard()
            return

        continues_burst = (
            self.state == ClassifierState.BURST_ACTIVE
            and self._last_char_ms is not None
            and now - self._last_char_ms <= self.settings.fast_gap_ms
        )
        if not continues_burst:
            self._commit()

        if len(self._buffer) < self.settings.max_len:
            self._buffer.append(char)
        self._last_char_ms = now
        self._arm_timer()

    def commit_pending(self) -> None:
        """Inactivity timeout: commit whatever is buffered."""
        self._commit()

    def inject(self, code: str) -> str:
        """Commit a code that did not come from the keyboard stream.

        Used for quick-key shortcuts and the manual barcode field.  Raises
        InvalidCodeLength before anything is emitted.
        """
        normalized = normalize_code(code, self.settings.min_len, self.settings.max_len)
        self._discard()
        logger.info("Injected code %s", normalized)
        self._on_commit(normalized)
        return normalized

    def inject_many(self, codes: Iterable[str]) -> list[str]:
        """Inject several codes behind a single redraw."""
        committed: list[str] = []
        with self.begin_batch():
            for code in codes:
                committed.append(self.inject(code))
        return committed

    def reset(self) -> None:
        self._discard()

    # --- Redraw batching ------------------------------------------------------

    def begin_batch(self) -> RedrawBatch:
        self._batch_depth += 1
        return RedrawBatch(self)

    def request_redraw(self) -> bool:
        """Redraw now unless a batch is open.  Returns True if it redrew."""
        if self.redraw_suppressed:
            return False
        if self._on_redraw is not None:
            self._on_redraw()
        return True

    def _end_batch(self) -> None:
        self._batch_depth -= 1
        if self._batch_depth == 0 and self._on_redraw is not None:
            self._on_redraw()

    # --- Internal helpers -----------------------------------------------------

    def _is_recent(self, now: float) -> bool:
        if self._last_char_ms is None:
            return False
        return now - self._last_char_ms <= self.settings.inactivity_commit_ms

    def _clear_if_stale(self, now: float) -> None:
        if not self._is_recent(now):
            self._discard()

    def _commit(self) -> None:
        code = self.buffer.strip()
        self._discard()
        if not code:
            return
        if len(code) < self.settings.min_len:
            logger.debug("Discarded short burst %r", code)
            return
        logger.info("Scanned code %s", code)
        self._on_commit(code)

    def _discard(self) -> None:
        self._buffer.clear()
        self._last_char_ms = None
        self._cancel_timer()

    def _arm_timer(self) -> None:
        self._cancel_timer()
        generation = self._generation

        def fire() -> None:
            # A cancelled timer may still fire on another thread; ignore it.
            if generation == self._generation:
                self._timer = None
                self._commit()

        self._timer = self._scheduler.call_later(
            self.settings.inactivity_commit_ms, fire
        )

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
