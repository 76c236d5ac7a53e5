"""Configuration management for Mesh Bridge."""

from mesh_bridge.config.schema import AppConfig
from mesh_bridge.config.manager import ConfigManager
from mesh_bridge.config.store import SettingsStore

__all__ = ["AppConfig", "ConfigManager", "SettingsStore"]
