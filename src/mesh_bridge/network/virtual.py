"""In-process network controller for running the bridge without a radio."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from mesh_bridge.network.base import (
    DeviceRecord,
    JoinedCallback,
    MessageCallback,
    NetworkOperationError,
)

logger = logging.getLogger(__name__)

COORDINATOR_ADDR = "0x0000000000000000"


class VirtualNetworkController:
    """Keeps the network membership in memory.

    Useful for development and integration tests: devices can join, report
    state and be removed or banned exactly like on a real network, including
    join permission and the ban list.
    """

    def __init__(self, devices: Iterable[DeviceRecord] = (), latency_s: float = 0.0) -> None:
        self._latency_s = latency_s
        self._permit_join = False
        self._banned: set[str] = set()
        self._devices: dict[str, DeviceRecord] = {
            COORDINATOR_ADDR: DeviceRecord(ieee_addr=COORDINATOR_ADDR, type="Coordinator"),
        }
        for device in devices:
            self._devices[device.ieee_addr] = device
        self._on_joined: list[JoinedCallback] = []
        self._on_message: list[MessageCallback] = []

    @property
    def banned(self) -> set[str]:
        return set(self._banned)

    def on_device_joined(self, callback: JoinedCallback) -> None:
        self._on_joined.append(callback)

    def on_device_message(self, callback: MessageCallback) -> None:
        self._on_message.append(callback)

    async def set_permit_join(self, permit: bool) -> None:
        await self._round_trip()
        self._permit_join = permit
        logger.info("Join permission %s", "enabled" if permit else "disabled")

    def get_permit_join(self) -> bool:
        return self._permit_join

    async def soft_reset(self) -> None:
        await self._round_trip()
        self._permit_join = False
        logger.info("Coordinator soft reset")

    async def remove_device(self, ieee_addr: str, ban: bool = False) -> None:
        await self._round_trip()
        if ieee_addr not in self._devices or ieee_addr == COORDINATOR_ADDR:
            raise NetworkOperationError(f"Device {ieee_addr} is not on the network")
        del self._devices[ieee_addr]
        if ban:
            self._banned.add(ieee_addr)

    def get_device(self, ieee_addr: str) -> DeviceRecord | None:
        return self._devices.get(ieee_addr)

    def get_clients(self) -> list[DeviceRecord]:
        return [d for d in self._devices.values() if d.type != "Coordinator"]

    async def join(self, device: DeviceRecord) -> None:
        """Simulate a device joining the network."""
        if device.ieee_addr in self._banned:
            raise NetworkOperationError(f"Device {device.ieee_addr} is banned")
        if not self._permit_join:
            raise NetworkOperationError("Joining is not permitted")
        self._devices[device.ieee_addr] = device
        logger.info("Device %s joined the network", device.ieee_addr)

        for cb in self._on_joined:
            try:
                await cb(device)
            except Exception:
                logger.exception("Device joined callback error")

    async def report(self, ieee_addr: str, data: dict[str, Any]) -> None:
        """Simulate a state report from a device on the network."""
        if ieee_addr not in self._devices or ieee_addr == COORDINATOR_ADDR:
            raise NetworkOperationError(f"Device {ieee_addr} is not on the network")

        for cb in self._on_message:
            try:
                await cb(ieee_addr, data)
            except Exception:
                logger.exception("Device message callback error")

    async def _round_trip(self) -> None:
        await asyncio.sleep(self._latency_s)
