"""
Discovery coordinator.

Maps device addresses to their DeviceListener and reacts to discovery
add/remove notifications. A listener exists if and only if its device is
currently known to the coordinator.
"""

import logging
import threading
from typing import Callable, Optional

from .base import DeviceHandle, DiscoveryObserver, DiscoverySource
from .listener import DeviceListener
from .timer import DEFAULT_POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

# Creates the listener for a newly discovered device
ListenerFactory = Callable[[DeviceHandle], DeviceListener]


class DiscoveryCoordinator(DiscoveryObserver):
    """
    Creates and destroys one DeviceListener per discovered device.

    Discovery callbacks may arrive concurrently; the listener map is only
    mutated under the coordinator lock.

    Usage:
        coordinator = DiscoveryCoordinator(discovery, poll_interval=1.0)
        coordinator.start()
        ...
        coordinator.stop()
    """

    def __init__(
        self,
        discovery: DiscoverySource,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        restart_polling_on_reconnect: bool = False,
        listener_factory: Optional[ListenerFactory] = None,
    ):
        """
        Initialize coordinator.

        Args:
            discovery: Discovery collaborator to observe
            poll_interval: Poll interval passed to each listener
            restart_polling_on_reconnect: Reconnect policy passed to each listener
            listener_factory: Overrides listener construction
        """
        self._discovery = discovery
        self._poll_interval = poll_interval
        self._restart_polling_on_reconnect = restart_polling_on_reconnect
        self._listener_factory = listener_factory or self._create_listener

        self._lock = threading.Lock()
        self._listeners: dict[str, DeviceListener] = {}
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def get_listener(self, address: str) -> Optional[DeviceListener]:
        """Get the listener for a device address."""
        with self._lock:
            return self._listeners.get(address)

    def addresses(self) -> list[str]:
        """Addresses of all currently monitored devices."""
        with self._lock:
            return list(self._listeners)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Register with the discovery source and start discovery."""
        logger.info("Looking for cast devices...")
        self._discovery.register_listener(self)
        self._is_running = True
        self._discovery.start_discovery()

    def stop(self) -> None:
        """Destroy every listener, then stop discovery (which closes the devices)."""
        self._is_running = False

        with self._lock:
            listeners = list(self._listeners.values())
            self._listeners.clear()

        for listener in listeners:
            listener.destroy()

        self._discovery.stop_discovery()

        logger.info(f"Discovery stopped, released {len(listeners)} listener(s)")

    # =========================================================================
    # DiscoveryObserver
    # =========================================================================

    def on_device_discovered(self, handle: DeviceHandle) -> None:
        """Create, store and initialize a listener for a new device."""
        with self._lock:
            if handle.address in self._listeners:
                logger.error(f"Device {handle} discovered twice, keeping existing listener")
                return

            listener = self._listener_factory(handle)
            self._listeners[handle.address] = listener
            logger.info(f"Found a cast device: {handle} ({len(self._listeners)} monitored)")

        listener.initialize()

    def on_device_removed(self, handle: DeviceHandle) -> None:
        """Destroy and forget the listener of a removed device."""
        with self._lock:
            listener = self._listeners.pop(handle.address, None)
            remaining = len(self._listeners)

        if listener is None:
            logger.warning(f"Removed device {handle} has no listener, ignoring")
            return

        listener.destroy()
        logger.info(f"Lost a cast device: {handle} ({remaining} monitored)")

    def _create_listener(self, handle: DeviceHandle) -> DeviceListener:
        return DeviceListener(
            handle,
            poll_interval=self._poll_interval,
            restart_polling_on_reconnect=self._restart_polling_on_reconnect,
        )
