"""
pychromecast device handle.

Wraps a ``pychromecast.Chromecast`` as a DeviceHandle. pychromecast only
supports adding listeners, so the handle registers itself once and fans
events out to its own subscriber lists.
"""

import logging
import threading
from typing import Any, Optional

import pychromecast
from pychromecast.error import PyChromecastError, UnsupportedNamespace

from castwatch.monitor.base import (
    ConnectionEventListener,
    DeviceHandle,
    DeviceIOError,
    SpontaneousEventListener,
)
from castwatch.monitor.types import (
    ConnectionEvent,
    EventType,
    MediaStatusSnapshot,
    SpontaneousEvent,
    StatusSnapshot,
)

from .convert import (
    has_media_session,
    is_connected,
    to_media_status_snapshot,
    to_status_snapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


class ChromecastDevice(DeviceHandle):
    """DeviceHandle backed by a pychromecast Chromecast."""

    def __init__(
        self,
        cast: pychromecast.Chromecast,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ):
        """
        Initialize device handle.

        Args:
            cast: pychromecast device (socket not necessarily started)
            connect_timeout: Seconds to wait for the first receiver status
        """
        self._cast = cast
        self._connect_timeout = connect_timeout

        cast_info = cast.cast_info
        self._address = f"{cast_info.host}:{cast_info.port}"
        self._name = cast_info.friendly_name or cast_info.host

        self._lock = threading.Lock()
        self._listeners: list[SpontaneousEventListener] = []
        self._connection_listeners: list[ConnectionEventListener] = []

        # pychromecast calls these on its socket thread
        cast.register_status_listener(self)
        cast.media_controller.register_status_listener(self)
        cast.register_connection_listener(self)
        cast.register_launch_error_listener(self)

    @property
    def address(self) -> str:
        return self._address

    @property
    def name(self) -> str:
        return self._name

    @property
    def cast(self) -> pychromecast.Chromecast:
        return self._cast

    def connect(self) -> None:
        """Start the cast socket thread without waiting for it to connect."""
        self._cast.start()

    def disconnect(self) -> None:
        """Close the cast socket."""
        try:
            self._cast.disconnect(timeout=self._connect_timeout)
        except (PyChromecastError, OSError) as e:
            logger.warning(f"Error disconnecting {self}: {e}")

    # =========================================================================
    # DeviceHandle
    # =========================================================================

    def register_listener(self, listener: SpontaneousEventListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unregister_listener(self, listener: SpontaneousEventListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def register_connection_listener(self, listener: ConnectionEventListener) -> None:
        with self._lock:
            if listener not in self._connection_listeners:
                self._connection_listeners.append(listener)

    def unregister_connection_listener(self, listener: ConnectionEventListener) -> None:
        with self._lock:
            if listener in self._connection_listeners:
                self._connection_listeners.remove(listener)

    def get_status(self) -> StatusSnapshot:
        self._ensure_connected()
        self._request_status(self._cast.socket_client.receiver_controller, "receiver status")

        status = self._cast.status
        if status is None:
            raise DeviceIOError(f"No receiver status from {self} after {self._connect_timeout}s")
        return to_status_snapshot(status)

    def get_media_status(self) -> Optional[MediaStatusSnapshot]:
        media_controller = self._cast.media_controller
        try:
            self._request_status(media_controller, "media status")
        except UnsupportedNamespace:
            # Running app has no media channel
            return None

        status = media_controller.status
        if status is None or not has_media_session(status):
            return None
        return to_media_status_snapshot(status)

    def _ensure_connected(self) -> None:
        """Wait for the socket to connect, raising DeviceIOError if it cannot."""
        socket_client = self._cast.socket_client
        if not socket_client.is_alive():
            raise DeviceIOError(f"Socket to {self} is closed")

        try:
            # Returns at once after the first receiver status
            self._cast.wait(timeout=self._connect_timeout)
        except (PyChromecastError, OSError, RuntimeError) as e:
            raise DeviceIOError(f"Cannot reach {self}: {e}") from e

        if not socket_client.is_connected:
            raise DeviceIOError(f"{self} is not connected")

    def _request_status(self, controller: Any, what: str) -> None:
        """Ask the device for a fresh status and wait for the reply."""
        replied = threading.Event()
        outcome: dict[str, bool] = {}

        def on_reply(msg_sent: bool, response: Any) -> None:
            outcome["ok"] = msg_sent
            replied.set()

        try:
            controller.update_status(callback_function=on_reply)
        except UnsupportedNamespace:
            raise
        except (PyChromecastError, OSError) as e:
            raise DeviceIOError(f"{what} request to {self} failed: {e}") from e

        if not replied.wait(self._connect_timeout):
            raise DeviceIOError(f"No {what} reply from {self} after {self._connect_timeout}s")
        if not outcome.get("ok"):
            raise DeviceIOError(f"{what} request to {self} was not answered")

    # =========================================================================
    # pychromecast listener callbacks
    # =========================================================================

    def new_cast_status(self, status: Any) -> None:
        self._emit(SpontaneousEvent(EventType.RECEIVER_STATUS, to_status_snapshot(status)))

    def new_media_status(self, status: Any) -> None:
        self._emit(SpontaneousEvent(EventType.MEDIA_STATUS, to_media_status_snapshot(status)))

    def load_media_failed(self, queue_item_id: int, error_code: int) -> None:
        self._emit(
            SpontaneousEvent(
                EventType.LOAD_FAILED,
                {"queue_item_id": queue_item_id, "error_code": error_code},
            )
        )

    def new_launch_error(self, status: Any) -> None:
        self._emit(SpontaneousEvent(EventType.LAUNCH_ERROR, status))

    def new_connection_status(self, status: Any) -> None:
        event = ConnectionEvent(
            connected=is_connected(status),
            detail=str(getattr(status, "status", "")),
        )
        with self._lock:
            listeners = list(self._connection_listeners)
        for listener in listeners:
            listener.connection_event_received(event)

    def _emit(self, event: SpontaneousEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener.spontaneous_event_received(event)
