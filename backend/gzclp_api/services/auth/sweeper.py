from __future__ import annotations

import logging
import threading
from collections.abc import Callable

log = logging.getLogger(__name__)


class TokenSweeper:
    """
    Run a token sweep at start-up and then on a fixed interval.

    The sweep runs on a daemon thread. A failing sweep is logged and retried
    on the next tick; it never stops the loop and never reaches request code.

    :param sweep: Callable performing one sweep (wrapped in an app context by
        the caller when it touches the database).
    :param interval_seconds: Pause between two sweeps.
    """

    def __init__(
        self,
        sweep: Callable[[], object],
        *,
        interval_seconds: float,
        name: str = "token-sweeper",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._sweep = sweep
        self._interval = interval_seconds
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> bool:
        """Run one sweep now. :returns: ``False`` if it raised."""
        try:
            self._sweep()
        except Exception:
            log.exception("Token sweep failed", extra={"event": "auth.token_sweep_failed"})
            return False
        return True

    def start(self) -> None:
        """Start the background loop; a second call is a no-op."""
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
            self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            self._stop.set()
            thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)

    def _loop(self) -> None:
        self.run_once()
        while not self._stop.wait(self._interval):
            self.run_once()
