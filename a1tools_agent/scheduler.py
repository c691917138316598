"""Fixed-interval timer used to drive polling."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTimer:
    """
    Call ``callback`` every ``interval_seconds`` on a daemon thread.

    The first call happens one interval after :meth:`start`. Cancelling is
    cooperative: :meth:`stop` prevents the next tick but does not interrupt
    a callback that is already running.
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
        name: str = "periodic-timer",
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name=self.name, daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        self._thread = None

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval_seconds):
            try:
                self.callback()
            except Exception as e:
                # the next tick is the retry
                logger.error(f"{self.name} tick failed: {e}", exc_info=True)
