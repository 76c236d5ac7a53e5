"""Persisted settings store for global options and per-device entries.

All mutations are written straight through to the user configuration file
via ConfigManager; the store keeps no copy of its own beyond the manager's
loaded AppConfig.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Sequence

from mesh_bridge.config.manager import ConfigManager
from mesh_bridge.config.schema import AppConfig, DeviceConfig

logger = logging.getLogger(__name__)


class SettingsStore:
    """Read/write access to bridge settings keyed by canonical address."""

    def __init__(self, manager: ConfigManager) -> None:
        self._manager = manager

    @property
    def config(self) -> AppConfig:
        return self._manager.config

    def devices(self) -> dict[str, DeviceConfig]:
        return dict(self.config.devices)

    def get_device(self, address: str) -> DeviceConfig | None:
        return self.config.devices.get(address)

    def get_address_by_friendly_name(self, friendly_name: str) -> str | None:
        for address, device in self.config.devices.items():
            if device.friendly_name == friendly_name:
                return address
        return None

    def set_global_option(self, path: Sequence[str], value: Any) -> None:
        """Set a nested global option, e.g. ("advanced", "last_seen")."""
        if not path:
            raise ValueError("Option path must not be empty")
        if isinstance(value, Enum):
            value = value.value

        update: dict[str, Any] = {path[-1]: value}
        for key in reversed(path[:-1]):
            update = {key: update}
        self._manager.save_user_config(update)
        logger.debug("Set option %s = %r", ".".join(path), value)

    def add_device(self, address: str, friendly_name: str | None = None) -> DeviceConfig:
        """Create an entry for a newly joined device (no-op if it exists)."""
        existing = self.get_device(address)
        if existing is not None:
            return existing

        name = friendly_name or address
        if self.get_address_by_friendly_name(name) is not None or (
            name != address and self.get_device(name) is not None
        ):
            raise ValueError(f"Friendly name '{name}' is already in use")

        devices = self._dump_devices()
        devices[address] = {"friendly_name": name}
        self._write_devices(devices)
        logger.info("Added device %s as '%s'", address, name)
        return self.config.devices[address]

    def change_device_options(self, address: str, options: dict[str, Any]) -> bool:
        """Merge options into a device entry. Returns False if unknown."""
        devices = self._dump_devices()
        if address not in devices:
            return False
        devices[address].update(options)
        self._write_devices(devices)
        return True

    def rename_device(self, old: str, new: str) -> bool:
        """Atomically move friendly name old to new.

        Fails without changing anything when old is not in use or new is
        already taken by another device, as a name or as an address.
        """
        address = self.get_address_by_friendly_name(old)
        if address is None:
            logger.debug("Rename failed: '%s' is not a known friendly name", old)
            return False

        holder = self.get_address_by_friendly_name(new)
        if holder is not None and holder != address:
            logger.debug("Rename failed: '%s' is already used by %s", new, holder)
            return False
        if new != address and self.get_device(new) is not None:
            logger.debug("Rename failed: '%s' is the address of another device", new)
            return False

        devices = self._dump_devices()
        devices[address]["friendly_name"] = new
        self._write_devices(devices)
        return True

    def remove_device_entry(self, address: str) -> bool:
        """Delete the entry for address. Returns False if there was none."""
        devices = self._dump_devices()
        if devices.pop(address, None) is None:
            return False
        self._write_devices(devices)
        return True

    # ── Internals ────────────────────────────────────────────

    def _dump_devices(self) -> dict[str, dict[str, Any]]:
        return {
            address: device.model_dump()
            for address, device in self.config.devices.items()
        }

    def _write_devices(self, devices: dict[str, dict[str, Any]]) -> None:
        user = self._manager.load_user_config()
        user["devices"] = devices
        self._manager.write_user_config(user)
