"""Runtime device state cache, keyed by canonical address."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mesh_bridge.config.schema import LastSeenPolicy

logger = logging.getLogger(__name__)


def format_last_seen(policy: LastSeenPolicy, when: datetime) -> str | int | None:
    """Render a last-seen timestamp the way the policy asks for."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    if policy is LastSeenPolicy.ISO_8601:
        return when.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    if policy is LastSeenPolicy.ISO_8601_LOCAL:
        return when.astimezone().isoformat(timespec="milliseconds")
    if policy is LastSeenPolicy.EPOCH:
        return int(when.timestamp() * 1000)
    return None


class DeviceStateCache:
    """Last reported state per device.

    Optionally persisted to a JSON file so state survives a restart.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._state: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._state)

    def exists(self, address: str) -> bool:
        return address in self._state

    def get(self, address: str) -> dict[str, Any] | None:
        state = self._state.get(address)
        return dict(state) if state is not None else None

    def set(
        self,
        address: str,
        update: dict[str, Any],
        last_seen: LastSeenPolicy = LastSeenPolicy.DISABLED,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Merge a state update for a device and return the new state."""
        state = self._state.setdefault(address, {})
        state.update(update)
        stamp = format_last_seen(last_seen, now or datetime.now(timezone.utc))
        if stamp is not None:
            state["last_seen"] = stamp
        return dict(state)

    def remove(self, address: str) -> bool:
        """Drop all state for a device. Returns False if there was none."""
        return self._state.pop(address, None) is not None

    def load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read state file %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._state = {k: v for k, v in data.items() if isinstance(v, dict)}
        logger.info("Loaded state for %d devices from %s", len(self._state), self._path)

    def save(self) -> None:
        if self._path is None:
            return
        with open(self._path, "w") as f:
            json.dump(self._state, f, indent=2)
        logger.debug("Saved state for %d devices to %s", len(self._state), self._path)
