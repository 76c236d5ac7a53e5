"""Shared test fixtures for Mesh Bridge."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from mesh_bridge.bridge.dispatcher import BridgeConfig
from mesh_bridge.config.manager import ConfigManager
from mesh_bridge.config.schema import AppConfig
from mesh_bridge.config.store import SettingsStore
from mesh_bridge.logging.sinks import LogSinks
from mesh_bridge.mqtt.publisher import BridgePublisher
from mesh_bridge.network.base import DeviceRecord
from mesh_bridge.network.virtual import VirtualNetworkController
from mesh_bridge.state.cache import DeviceStateCache

BASE = "mesh_bridge"

USER_CONFIG = """\
devices:
  '0x0001':
    friendly_name: lamp1
  '0x0002':
    friendly_name: sensor1
    retain: true
  '0x0003':
    friendly_name: ghost
"""


def published(publish_fn: AsyncMock, topic: str) -> list[tuple[str, bool, int]]:
    """(payload, retain, qos) of every publish to topic, in order."""
    return [
        (c.args[1], c.args[2], c.args[3])
        for c in publish_fn.call_args_list
        if c.args[0] == topic
    ]


def events(publish_fn: AsyncMock, event_type: str | None = None) -> list[dict]:
    """Decoded bridge log events, optionally filtered by type."""
    decoded = [json.loads(p) for p, _, _ in published(publish_fn, f"{BASE}/bridge/log")]
    if event_type is None:
        return decoded
    return [e for e in decoded if e["type"] == event_type]


def status_publishes(publish_fn: AsyncMock) -> list[dict]:
    return [json.loads(p) for p, _, _ in published(publish_fn, f"{BASE}/bridge/config")]


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with three devices configured."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text(f"mqtt:\n  base_topic: {BASE}\n")
    user = tmp_path / "configuration.yaml"
    user.write_text(USER_CONFIG)
    mgr = ConfigManager(defaults_path=defaults, user_path=user)
    mgr.load()
    return mgr


@pytest.fixture
def store(config_manager: ConfigManager) -> SettingsStore:
    return SettingsStore(config_manager)


@pytest.fixture
def cache() -> DeviceStateCache:
    cache = DeviceStateCache()
    cache.set("0x0001", {"state": "ON", "brightness": 200})
    cache.set("0x0002", {"temperature": 21.5})
    cache.set("0x0003", {"battery": 80})
    return cache


@pytest.fixture
def controller() -> VirtualNetworkController:
    """Network with lamp1 and sensor1 joined; ghost is configured but absent."""
    return VirtualNetworkController([
        DeviceRecord(ieee_addr="0x0001", type="Router", model_id="LCT001"),
        DeviceRecord(ieee_addr="0x0002", type="EndDevice", model_id="lumi.weather"),
    ])


@pytest.fixture
def publish_fn() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def publisher(publish_fn: AsyncMock) -> BridgePublisher:
    return BridgePublisher(publish_fn, BASE)


@pytest.fixture
def sinks() -> LogSinks:
    handlers = [logging.NullHandler(), logging.NullHandler()]
    return LogSinks(handlers, logger=logging.getLogger("mesh_bridge.tests.sinks"))


@pytest.fixture
def bridge(controller, store, cache, publisher, sinks) -> BridgeConfig:
    return BridgeConfig(
        controller=controller,
        store=store,
        cache=cache,
        publisher=publisher,
        sinks=sinks,
    )
