"""Mesh Bridge: MQTT configuration and command plane for a mesh network bridge."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("mesh-bridge")
except Exception:
    __version__ = "dev"
