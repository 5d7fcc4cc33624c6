import logging
import time
from typing import Callable, Dict, List, Literal, Optional, Tuple

from lozsheet.config import STATUS_CLEAR_SECONDS

logger = logging.getLogger(__name__)

StatusKind = Literal["info", "error"]
StatusListener = Callable[[str, StatusKind], None]


class StatusNotifier:
    """
    User-visible status line.

    `status()` replaces the current message; it expires after a short
    delay. `notify_failure()` is the rate-limited path used by storage
    failures: one notice per failure class per interval, however many
    writes fail in between.
    """

    def __init__(
        self,
        notice_interval: float = 2.5,
        clear_after: float = STATUS_CLEAR_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.notice_interval = notice_interval
        self.clear_after = clear_after
        self._clock = clock
        self._message: str = ""
        self._kind: StatusKind = "info"
        self._posted_at: Optional[float] = None
        self._last_failure: Dict[str, float] = {}
        self._listeners: List[StatusListener] = []
        self.history: List[Tuple[str, StatusKind]] = []

    @property
    def current(self) -> Tuple[str, StatusKind]:
        """The visible (message, kind); empty once the message has expired."""
        if self._posted_at is None:
            return "", "info"
        if self._clock() - self._posted_at >= self.clear_after:
            return "", "info"
        return self._message, self._kind

    def status(self, message: str, kind: StatusKind = "info") -> None:
        self._message = message
        self._kind = kind
        self._posted_at = self._clock()
        self.history.append((message, kind))
        if kind == "error":
            logger.warning(f"Status: {message}")
        else:
            logger.info(f"Status: {message}")
        for listener in list(self._listeners):
            listener(message, kind)

    def notify_failure(self, failure_class: str, message: str) -> bool:
        """Post an error notice unless one of this class was posted recently."""
        now = self._clock()
        last = self._last_failure.get(failure_class)
        if last is not None and now - last < self.notice_interval:
            logger.debug(f"Suppressed repeated '{failure_class}' notice")
            return False
        self._last_failure[failure_class] = now
        self.status(message, "error")
        return True

    def subscribe(self, listener: StatusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)
