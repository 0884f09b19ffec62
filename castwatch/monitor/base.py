"""
Collaborator contracts for the monitoring core.

The discovery mechanism and the device transport are external collaborators.
The core only consumes the capabilities declared here, so it can be driven by
pychromecast in production and by synchronous fakes in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .types import ConnectionEvent, MediaStatusSnapshot, SpontaneousEvent, StatusSnapshot


class DeviceIOError(Exception):
    """Raised when a device transport fetch fails."""

    pass


class SpontaneousEventListener(ABC):
    """Receives push events from a device."""

    @abstractmethod
    def spontaneous_event_received(self, event: SpontaneousEvent) -> None:
        pass


class ConnectionEventListener(ABC):
    """Receives connection state changes from a device."""

    @abstractmethod
    def connection_event_received(self, event: ConnectionEvent) -> None:
        pass


class DeviceHandle(ABC):
    """
    Opaque reference to a discovered device.

    Owned by the discovery collaborator. ``address`` is stable for the
    lifetime of the handle and is used as the coordinator's map key.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Stable network address (e.g. ``host:port``)."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name."""
        pass

    @abstractmethod
    def register_listener(self, listener: SpontaneousEventListener) -> None:
        pass

    @abstractmethod
    def unregister_listener(self, listener: SpontaneousEventListener) -> None:
        pass

    @abstractmethod
    def register_connection_listener(self, listener: ConnectionEventListener) -> None:
        pass

    @abstractmethod
    def unregister_connection_listener(self, listener: ConnectionEventListener) -> None:
        pass

    @abstractmethod
    def get_status(self) -> StatusSnapshot:
        """
        Fetch the current device status.

        Raises:
            DeviceIOError: If the status cannot be fetched
        """
        pass

    @abstractmethod
    def get_media_status(self) -> Optional[MediaStatusSnapshot]:
        """Fetch the current media status, None if no media session exists."""
        pass

    def __str__(self) -> str:
        return f"{self.name} @ {self.address}"


class DiscoveryObserver(ABC):
    """Receives device appeared/removed notifications."""

    @abstractmethod
    def on_device_discovered(self, handle: DeviceHandle) -> None:
        pass

    @abstractmethod
    def on_device_removed(self, handle: DeviceHandle) -> None:
        pass


class DiscoverySource(ABC):
    """Detects devices joining and leaving the network."""

    @abstractmethod
    def register_listener(self, observer: DiscoveryObserver) -> None:
        pass

    @abstractmethod
    def start_discovery(self) -> None:
        pass

    def stop_discovery(self) -> None:
        """Stop discovery. Default implementation does nothing."""
        pass
