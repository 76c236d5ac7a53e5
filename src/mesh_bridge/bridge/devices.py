"""Keeps settings entries and cached state in step with network events."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from mesh_bridge.config.store import SettingsStore
from mesh_bridge.network.base import DeviceRecord
from mesh_bridge.state.cache import DeviceStateCache

logger = logging.getLogger(__name__)


class DeviceTracker:
    """Registers joined devices and records their reported state.

    The last_seen policy is read from the settings on every report, so a
    last_seen command takes effect with the next message.
    """

    def __init__(self, store: SettingsStore, cache: DeviceStateCache) -> None:
        self._store = store
        self._cache = cache

    def sync(self, clients: Iterable[DeviceRecord]) -> int:
        """Add settings entries for devices already on the network."""
        added = 0
        for record in clients:
            if self._store.get_device(record.ieee_addr) is None:
                self._store.add_device(record.ieee_addr)
                added += 1
        if added:
            logger.info("Added %d devices found on the network", added)
        return added

    async def on_joined(self, record: DeviceRecord) -> None:
        self._store.add_device(record.ieee_addr)

    async def on_message(self, ieee_addr: str, data: dict[str, Any]) -> None:
        policy = self._store.config.advanced.last_seen
        state = self._cache.set(ieee_addr, data, last_seen=policy)
        logger.debug("State of %s: %s", ieee_addr, state)
