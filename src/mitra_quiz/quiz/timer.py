"""Cancellable one-second countdown.

The countdown does not own a clock. A *scheduler* supplies ticks: in the
Textual app it is ``App.set_interval``; in tests there is none and
:meth:`Countdown.tick` is called directly to simulate elapsed seconds.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

__all__ = ["Countdown", "Scheduler", "TimerHandle"]

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def stop(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


class Countdown:
    """Counts ``remaining`` seconds down to zero, then fires ``on_expire``.

    ``on_expire`` fires at most once per :meth:`start`. Every start bumps an
    internal generation number; ticks scheduled by an earlier start are
    ignored, so a restarted countdown never double-decrements.
    """

    def __init__(
        self,
        *,
        scheduler: Optional[Scheduler] = None,
        interval: float = 1.0,
    ) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self.remaining = 0
        self.running = False
        self.on_tick: Optional[Callable[[int], None]] = None
        self.on_expire: Optional[Callable[[], None]] = None

    def bind_scheduler(self, scheduler: Optional[Scheduler]) -> None:
        """Attach a scheduler; takes effect on the next :meth:`start`."""

        self._scheduler = scheduler

    def start(self, seconds: int) -> None:
        self._cancel_handle()
        self._generation += 1
        self.remaining = max(0, int(seconds))
        self.running = True
        logger.debug(
            "Countdown started",
            extra={"seconds": self.remaining, "generation": self._generation},
        )
        if self.remaining == 0:
            self._expire()
            return
        if self._scheduler is not None:
            generation = self._generation
            self._handle = self._scheduler(
                self._interval, lambda: self._scheduled_tick(generation)
            )

    def stop(self) -> None:
        """Stop without firing ``on_expire``. Safe to call repeatedly."""

        self._cancel_handle()
        if self.running:
            logger.debug(
                "Countdown stopped", extra={"remaining": self.remaining}
            )
        self.running = False

    def reset(self) -> None:
        self.stop()
        self._generation += 1
        self.remaining = 0

    def tick(self) -> None:
        """Advance one second."""

        if not self.running:
            return
        self.remaining -= 1
        if self.on_tick is not None:
            self.on_tick(self.remaining)
        if self.remaining <= 0 and self.running:
            self._expire()

    def _scheduled_tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        self.tick()

    def _expire(self) -> None:
        self.remaining = 0
        self.stop()
        logger.info("Countdown expired")
        if self.on_expire is not None:
            self.on_expire()

    def _cancel_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.stop()
