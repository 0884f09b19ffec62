"""
Per-device listener.

Owns the monitoring lifecycle of exactly one device: push-event and
connection-event subscriptions plus a polling timer gated by connection
state. Devices do not reliably push every status change, so polling
backstops the push channel; losing the connection suspends polling.

Lifecycle:
    UNINITIALIZED --initialize()--> ACTIVE --destroy()--> DESTROYED

Polling (only while ACTIVE):
    STOPPED --start--> RUNNING --disconnect/destroy--> STOPPED

Push events, connection events and timer ticks arrive on different threads
and may interleave. All transitions happen under one lock; network fetches
happen outside it and re-check the state first.
"""

import logging
import threading
from typing import Callable, Optional

from .base import (
    ConnectionEventListener,
    DeviceHandle,
    DeviceIOError,
    SpontaneousEventListener,
)
from .formatter import format_media_status, format_status, render_fields
from .timer import DEFAULT_POLL_INTERVAL_SECONDS, PollTimer
from .types import (
    ConnectionEvent,
    ListenerState,
    MediaStatusSnapshot,
    PollingState,
    SpontaneousEvent,
    StatusSnapshot,
)

logger = logging.getLogger(__name__)


# (interval, callback, name) -> timer
TimerFactory = Callable[[float, Callable[[], None], str], PollTimer]


class DeviceListener(SpontaneousEventListener, ConnectionEventListener):
    """
    Monitors one device.

    Usage:
        listener = DeviceListener(device, poll_interval=1.0)
        listener.initialize()
        ...
        listener.destroy()
    """

    def __init__(
        self,
        device: DeviceHandle,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        restart_polling_on_reconnect: bool = False,
        timer_factory: TimerFactory = PollTimer,
    ):
        """
        Initialize listener.

        Args:
            device: Device to monitor
            poll_interval: Seconds between poll ticks
            restart_polling_on_reconnect: Restart polling when a disconnected
                device reconnects (otherwise polling stays suspended)
            timer_factory: Creates the polling timer
        """
        self._device = device
        self._poll_interval = poll_interval
        self._restart_polling_on_reconnect = restart_polling_on_reconnect
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._state = ListenerState.UNINITIALIZED
        self._timer: Optional[PollTimer] = None
        self._suspended_by_disconnect = False
        self._events_subscribed = False
        self._connection_subscribed = False

    @property
    def device(self) -> DeviceHandle:
        return self._device

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def polling_state(self) -> PollingState:
        return PollingState.RUNNING if self._timer is not None else PollingState.STOPPED

    @property
    def is_subscribed(self) -> bool:
        """True while registered for push events or connection events."""
        return self._events_subscribed or self._connection_subscribed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """
        Subscribe to the device and start polling.

        Polling only starts if an initial status snapshot can be fetched.
        """
        with self._lock:
            if self._state != ListenerState.UNINITIALIZED:
                logger.warning(f"{self._device.name}: initialize() in state {self._state.value}, ignored")
                return

            self._state = ListenerState.ACTIVE
            self._device.register_listener(self)
            self._events_subscribed = True
            self._device.register_connection_listener(self)
            self._connection_subscribed = True

        logger.info(f"Monitoring {self._device}")

        status = self._fetch_status()
        if status is None:
            logger.warning(f"{self._device.name}: no initial status, polling not started")
            return

        logger.debug(f"{self._device.name}: initial status {render_fields(format_status(status))}")
        self._start_polling()

    def destroy(self) -> None:
        """
        Stop polling and unsubscribe. Idempotent.

        A tick already in flight may complete but reports nothing further.
        """
        with self._lock:
            if self._state == ListenerState.DESTROYED:
                return

            self._state = ListenerState.DESTROYED
            self._stop_polling()

            if self._events_subscribed:
                self._device.unregister_listener(self)
                self._events_subscribed = False
            if self._connection_subscribed:
                self._device.unregister_connection_listener(self)
                self._connection_subscribed = False

        logger.info(f"Stopped monitoring {self._device}")

    # =========================================================================
    # Polling
    # =========================================================================

    def poll_tick(self) -> None:
        """
        Fetch and report status, plus media status when an app is running.

        No-op unless the listener is active and polling. A failed fetch only
        aborts this tick.
        """
        if not self._is_polling():
            logger.debug(f"{self._device.name}: tick skipped ({self._state.value})")
            return

        status = self._fetch_status()
        # Destroyed or disconnected while the fetch was in flight
        if status is None or not self._is_polling():
            return
        self._report_status(status)

        if not status.has_running_app:
            return

        try:
            media_status = self._device.get_media_status()
        except DeviceIOError as e:
            logger.error(f"{self._device.name}: media status fetch failed: {e}")
            return

        if media_status is not None and self._is_polling():
            self._report_media_status(media_status)

    def _start_polling(self) -> bool:
        """Start the polling timer. Returns True if a new timer was started."""
        with self._lock:
            if self._state != ListenerState.ACTIVE or self._timer is not None:
                return False

            timer = self._timer_factory(
                self._poll_interval,
                self.poll_tick,
                f"poll-{self._device.address}",
            )
            # Set before start(): the first tick fires immediately
            self._timer = timer
            timer.start()

        logger.info(f"{self._device.name}: polling every {self._poll_interval}s")
        return True

    def _stop_polling(self) -> bool:
        """Stop the polling timer. Returns True if a timer was running."""
        with self._lock:
            timer = self._timer
            self._timer = None
            if timer is None:
                return False
            timer.stop()

        logger.info(f"{self._device.name}: polling stopped")
        return True

    # =========================================================================
    # Transport callbacks
    # =========================================================================

    def connection_event_received(self, event: ConnectionEvent) -> None:
        """Suspend polling on disconnect; on reconnect apply the restart policy."""
        with self._lock:
            if self._state != ListenerState.ACTIVE:
                return

            logger.info(
                f"{self._device.name}: connection event connected={event.connected}"
                + (f" ({event.detail})" if event.detail else "")
            )

            if not event.connected:
                if self._stop_polling():
                    self._suspended_by_disconnect = True
                return

            # Connecting for the first time, or polling never stopped
            if self._timer is not None or not self._suspended_by_disconnect:
                return

            if self._restart_polling_on_reconnect:
                self._suspended_by_disconnect = False
                self._start_polling()
            else:
                logger.info(f"{self._device.name}: reconnected, polling stays suspended")

    def spontaneous_event_received(self, event: SpontaneousEvent) -> None:
        """Report status and media status pushes; log anything else."""
        with self._lock:
            if self._state != ListenerState.ACTIVE:
                return

        logger.debug(f"{self._device.name}: received {event.type.value} event")

        payload = event.payload
        if isinstance(payload, StatusSnapshot):
            self._report_status(payload)
        elif isinstance(payload, MediaStatusSnapshot):
            self._report_media_status(payload)
        else:
            logger.info(f"{self._device.name}: not handling {event.type.value} event: {payload!r}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _is_polling(self) -> bool:
        with self._lock:
            return self._state == ListenerState.ACTIVE and self._timer is not None

    def _fetch_status(self) -> Optional[StatusSnapshot]:
        try:
            return self._device.get_status()
        except DeviceIOError as e:
            logger.error(f"{self._device.name}: status fetch failed: {e}")
            return None

    def _report_status(self, status: StatusSnapshot) -> None:
        logger.info(f"{self._device.name}: status {render_fields(format_status(status))}")

    def _report_media_status(self, media_status: MediaStatusSnapshot) -> None:
        logger.info(f"{self._device.name}: media {render_fields(format_media_status(media_status))}")
