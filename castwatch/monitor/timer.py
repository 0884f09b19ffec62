"""
Background polling timer.

One daemon thread per timer. Ticks fire at a fixed rate, the first one
immediately on start. A tick that overruns its period delays the next tick
instead of queueing missed ones.
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


class PollTimer:
    """
    Fixed-rate timer running a callback on its own thread.

    Usage:
        timer = PollTimer(1.0, tick, name="poll-living-room")
        timer.start()
        ...
        timer.stop()  # idempotent, an in-flight tick may complete
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = "poll-timer",
    ):
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive: {interval}")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_count = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        """True between start() and stop()."""
        return self._thread is not None and not self._stop_event.is_set()

    @property
    def tick_count(self) -> int:
        """Number of ticks fired so far."""
        return self._tick_count

    def start(self) -> None:
        """Start ticking. A timer can only be started once."""
        if self._thread is not None:
            raise RuntimeError(f"Timer {self._name} already started")
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.debug(f"Timer {self._name} started ({self._interval}s)")

    def stop(self) -> None:
        """Stop ticking. Safe to call repeatedly and from the tick itself."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        logger.debug(f"Timer {self._name} stopped after {self._tick_count} tick(s)")

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the timer thread to exit."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)

    def _run(self) -> None:
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            self._tick_count += 1
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Timer {self._name} tick failed: {e}", exc_info=True)

            next_tick += self._interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                # Overran the period, restart the schedule from now
                next_tick = time.monotonic()
                delay = 0
            if self._stop_event.wait(delay):
                break
