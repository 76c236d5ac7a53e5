"""Pydantic configuration models for all bridge settings."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LastSeenPolicy(str, Enum):
    """How the last_seen attribute is attached to device state."""

    DISABLED = "disabled"
    ISO_8601 = "ISO_8601"
    EPOCH = "epoch"
    ISO_8601_LOCAL = "ISO_8601_local"


class MQTTConfig(BaseModel):
    base_topic: str = "mesh_bridge"
    broker_host: str = "localhost"
    broker_port: int = 1883
    username: str = ""
    password: str = ""
    client_id: str = ""  # Empty = let the broker assign one
    keepalive_seconds: int = 60


class VirtualDeviceConfig(BaseModel):
    """A device pre-joined to the virtual network adapter."""

    ieee_addr: str
    type: str = "EndDevice"
    model_id: str = ""


class NetworkConfig(BaseModel):
    adapter: str = "virtual"
    devices: list[VirtualDeviceConfig] = Field(default_factory=list)


class AdvancedConfig(BaseModel):
    last_seen: LastSeenPolicy = LastSeenPolicy.DISABLED
    cache_state: bool = True
    state_file: str = "state.json"


class LoggingConfig(BaseModel):
    level: str = "info"
    format: str = "json"
    file: str = ""


class DeviceConfig(BaseModel):
    """Persisted per-device entry. Unknown keys are kept as device options."""

    model_config = ConfigDict(extra="allow")

    friendly_name: str
    retain: bool = False
    qos: int = Field(0, ge=0, le=2)

    @property
    def options(self) -> dict[str, Any]:
        """All settings of the entry except the friendly name."""
        return self.model_dump(exclude={"friendly_name"})


class AppConfig(BaseModel):
    """Root configuration model containing all bridge settings."""

    permit_join: bool = False
    mqtt: MQTTConfig = MQTTConfig()
    network: NetworkConfig = NetworkConfig()
    advanced: AdvancedConfig = AdvancedConfig()
    logging: LoggingConfig = LoggingConfig()
    devices: dict[str, DeviceConfig] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_friendly_names(self) -> AppConfig:
        """A friendly name must identify exactly one device."""
        owners: dict[str, str] = {}
        for address, device in self.devices.items():
            name = device.friendly_name
            if name in owners:
                raise ValueError(
                    f"Friendly name '{name}' is used by both {owners[name]} and {address}"
                )
            if name != address and name in self.devices:
                raise ValueError(
                    f"Friendly name '{name}' of {address} is the address of another device"
                )
            owners[name] = address
        return self
