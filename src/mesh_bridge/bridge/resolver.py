"""Device reference resolution."""

from __future__ import annotations

from mesh_bridge.config.store import SettingsStore


def resolve_device(store: SettingsStore, reference: str) -> str:
    """Resolve a friendly name or address to a canonical address.

    Unknown friendly names are returned unchanged and treated as an address;
    a bad address simply matches no device later on.
    """
    address = store.get_address_by_friendly_name(reference)
    return address if address is not None else reference
