"""Configuration loading, saving, and validation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from mesh_bridge.config.schema import AppConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads config from YAML files, validates, and writes user changes back."""

    def __init__(
        self,
        defaults_path: Path | None = None,
        user_path: Path | None = None,
    ) -> None:
        self._defaults_path = defaults_path or Path("config.defaults.yaml")
        self._user_path = user_path or Path("configuration.yaml")
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded. Call load() first.")
        return self._config

    @property
    def user_path(self) -> Path:
        return self._user_path

    def load(self) -> AppConfig:
        """Load configuration from defaults + user overrides."""
        defaults = self._load_yaml(self._defaults_path)
        overrides = self._load_yaml(self._user_path)
        merged = self._deep_merge(defaults, overrides)
        config = AppConfig.model_validate(merged)
        self._config = config
        logger.debug("Configuration loaded from %s", self._user_path)
        return self._config

    def to_json(self) -> str:
        return self.config.model_dump_json(indent=2)

    def load_user_config(self) -> dict[str, Any]:
        """Return the raw user configuration file contents."""
        return self._load_yaml(self._user_path)

    def save_user_config(self, updates: dict[str, Any]) -> AppConfig:
        """Deep-merge updates into the user config file and reload."""
        merged = self._deep_merge(self.load_user_config(), updates)
        return self.write_user_config(merged)

    def write_user_config(self, data: dict[str, Any]) -> AppConfig:
        """Replace the user config file with data and reload.

        The merged result is validated before anything is written, so an
        invalid update leaves the file untouched.
        """
        AppConfig.model_validate(
            self._deep_merge(self._load_yaml(self._defaults_path), data)
        )
        with open(self._user_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        return self.load()

    @staticmethod
    def _load_yaml(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, returning a new dict."""
        result = dict(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigManager._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
