"""Mesh network controller protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Protocol, runtime_checkable


class NetworkOperationError(Exception):
    """A network-side operation (join toggle, reset, removal) failed."""


@dataclass
class DeviceRecord:
    """A device currently known to the mesh network."""

    ieee_addr: str
    type: str = "EndDevice"  # Coordinator, Router, EndDevice
    model_id: str = ""


# Callbacks for network events, awaited in registration order
JoinedCallback = Callable[[DeviceRecord], Coroutine[Any, Any, None]]
MessageCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


@runtime_checkable
class NetworkController(Protocol):
    """Protocol for mesh network controllers to implement.

    Operations that touch the radio are coroutines; they return once the
    network has acknowledged the request and raise NetworkOperationError
    if it was refused or failed.
    """

    async def set_permit_join(self, permit: bool) -> None:
        """Allow or deny new devices joining the network."""
        ...

    def get_permit_join(self) -> bool:
        """Current join permission."""
        ...

    async def soft_reset(self) -> None:
        """Soft reset the network coordinator."""
        ...

    async def remove_device(self, ieee_addr: str, ban: bool = False) -> None:
        """Remove a device; ban also denies it from joining again."""
        ...

    def get_device(self, ieee_addr: str) -> DeviceRecord | None:
        """Live record for a device, or None if it is not on the network."""
        ...

    def get_clients(self) -> list[DeviceRecord]:
        """All devices except the coordinator."""
        ...

    def on_device_joined(self, callback: JoinedCallback) -> None:
        """Register a callback for devices joining the network."""
        ...

    def on_device_message(self, callback: MessageCallback) -> None:
        """Register a callback for state reports (address, data) from devices."""
        ...
