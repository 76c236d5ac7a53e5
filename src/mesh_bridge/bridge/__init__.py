"""Bridge config command plane."""

from mesh_bridge.bridge.commands import ConfigCommand
from mesh_bridge.bridge.devices import DeviceTracker
from mesh_bridge.bridge.dispatcher import BridgeConfig
from mesh_bridge.bridge.lifecycle import LifecycleCoordinator
from mesh_bridge.bridge.status import BridgeStatus, StatusPublisher

__all__ = [
    "BridgeConfig",
    "BridgeStatus",
    "ConfigCommand",
    "DeviceTracker",
    "LifecycleCoordinator",
    "StatusPublisher",
]
