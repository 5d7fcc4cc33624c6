"""
Debounced autosave scheduling.

Each `schedule()` cancels the pending timer and starts a new one, so a
burst of edits collapses into one write after the quiet interval (last
write wins; intermediate states are never written).
"""

import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY_SECONDS = 0.25


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def _thread_timer(interval: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


class Debouncer:
    def __init__(
        self,
        action: Callable[[], None],
        delay: float = AUTOSAVE_DELAY_SECONDS,
        timer_factory: TimerFactory = _thread_timer,
    ):
        self.action = action
        self.delay = delay
        self._timer_factory = timer_factory
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation

            def _fire():
                with self._lock:
                    # A timer cancelled too late to stop its thread must not write.
                    if generation != self._generation or self._timer is None:
                        return
                    self._timer = None
                self.action()

            timer = self._timer_factory(self.delay, _fire)
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1

    def flush(self) -> bool:
        """Run a pending action now. Returns False when nothing was pending."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            self._generation += 1
        logger.debug("Flushing pending autosave")
        self.action()
        return True
