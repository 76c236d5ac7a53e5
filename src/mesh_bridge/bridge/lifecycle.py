"""Device removal and banning.

Network and local bookkeeping are kept consistent by ordering:

1. Resolve the reference to an address.
2. If the network has no live record for it, the device counts as already
   removed and only the local cleanup runs.
3. Otherwise the network removal is awaited first. If it fails nothing
   local is touched, so the settings and state of a device that is still
   on the network are never deleted.
4. Cleanup deletes the settings entry and the cached state, then emits
   device_removed / device_banned with the reference as given.
"""

from __future__ import annotations

import logging

from mesh_bridge.bridge.errors import NetworkOperationFailed
from mesh_bridge.bridge.resolver import resolve_device
from mesh_bridge.config.store import SettingsStore
from mesh_bridge.mqtt.publisher import BridgePublisher
from mesh_bridge.network.base import NetworkController, NetworkOperationError
from mesh_bridge.state.cache import DeviceStateCache

logger = logging.getLogger(__name__)


class LifecycleCoordinator:
    """Runs the remove/ban sequence against network, settings and state."""

    def __init__(
        self,
        controller: NetworkController,
        store: SettingsStore,
        cache: DeviceStateCache,
        publisher: BridgePublisher,
    ) -> None:
        self._controller = controller
        self._store = store
        self._cache = cache
        self._publisher = publisher

    async def remove(self, reference: str) -> None:
        await self.remove_or_ban(reference, ban=False)

    async def ban(self, reference: str) -> None:
        await self.remove_or_ban(reference, ban=True)

    async def remove_or_ban(self, reference: str, ban: bool) -> None:
        """Remove (or ban) a device by friendly name or address.

        Raises:
            NetworkOperationFailed: The network refused the removal; no
                local state was changed.
        """
        action = "ban" if ban else "remove"
        address = resolve_device(self._store, reference)

        if self._controller.get_device(address) is not None:
            try:
                await self._controller.remove_device(address, ban=ban)
            except NetworkOperationError as e:
                raise NetworkOperationFailed(f"Failed to {action} {address}: {e}") from e
        else:
            logger.debug("Device %s is not on the network, cleaning up bookkeeping only", address)

        await self._cleanup(reference, address, ban)

    async def _cleanup(self, reference: str, address: str, ban: bool) -> None:
        self._store.remove_device_entry(address)
        self._cache.remove(address)

        logger.info("Successfully %s %s", "banned" if ban else "removed", address)
        await self._publisher.log("device_banned" if ban else "device_removed", reference)
