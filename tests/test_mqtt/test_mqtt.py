"""Tests for MQTT topics, publisher, and client dispatch."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import aiomqtt
import pytest

from mesh_bridge.config.schema import MQTTConfig
from mesh_bridge.mqtt.client import MQTTClient
from mesh_bridge.mqtt.publisher import BridgePublisher
from mesh_bridge.mqtt.topics import build_topics, config_command_topic, config_topic_pattern


def _message(topic: str, payload: object) -> SimpleNamespace:
    return SimpleNamespace(topic=aiomqtt.Topic(topic), payload=payload)


# ── Topics Tests ──────────────────────────────────────────────


class TestTopics:
    def test_default_base(self) -> None:
        topics = build_topics()
        assert topics["state"] == "mesh_bridge/bridge/state"
        assert topics["config"] == "mesh_bridge/bridge/config"
        assert topics["log"] == "mesh_bridge/bridge/log"

    def test_custom_base(self) -> None:
        topics = build_topics("zigbee2mqtt")
        assert topics["config_commands"] == "zigbee2mqtt/bridge/config/+"

    def test_config_command_topic(self) -> None:
        assert config_command_topic("zb", "permit_join") == "zb/bridge/config/permit_join"

    def test_pattern_single_segment(self) -> None:
        pattern = config_topic_pattern("zb")
        assert pattern.match("zb/bridge/config/rename")
        assert not pattern.match("zb/bridge/config/rename/x")
        assert not pattern.match("zb/bridge/config/")
        assert not pattern.match("xzb/bridge/config/rename")

    def test_pattern_escapes_base(self) -> None:
        pattern = config_topic_pattern("a.b")
        assert pattern.match("a.b/bridge/config/reset")
        assert not pattern.match("axb/bridge/config/reset")


# ── Publisher Tests ────────────────────────────────────────────


class TestBridgePublisher:
    @pytest.mark.asyncio
    async def test_publish_state(self) -> None:
        publish_fn = AsyncMock()
        publisher = BridgePublisher(publish_fn, "zb")
        await publisher.publish_state(online=False)
        publish_fn.assert_awaited_once_with("zb/bridge/state", "offline", True, 0)

    @pytest.mark.asyncio
    async def test_log_event(self) -> None:
        publish_fn = AsyncMock()
        publisher = BridgePublisher(publish_fn, "zb")
        await publisher.log("device_renamed", {"from": "a", "to": "b"})

        topic, payload, retain, qos = publish_fn.call_args.args
        assert topic == "zb/bridge/log"
        assert json.loads(payload) == {"type": "device_renamed", "message": {"from": "a", "to": "b"}}
        assert retain is False
        assert qos == 0

    @pytest.mark.asyncio
    async def test_publish_suffix(self) -> None:
        publish_fn = AsyncMock()
        publisher = BridgePublisher(publish_fn, "zb")
        await publisher.publish("bridge/config", "{}", retain=True)
        publish_fn.assert_awaited_once_with("zb/bridge/config", "{}", True, 0)
        assert publisher.base_topic == "zb"


# ── Client Tests ───────────────────────────────────────────────


class TestMQTTClient:
    @pytest.mark.asyncio
    async def test_publish_when_disconnected_is_dropped(self) -> None:
        client = MQTTClient(MQTTConfig())
        assert client.is_connected is False
        await client.publish("zb/bridge/state", "online")

    @pytest.mark.asyncio
    async def test_listen_without_connection_returns(self) -> None:
        client = MQTTClient(MQTTConfig())
        client.subscribe("zb/#", AsyncMock())
        await client.listen()

    @pytest.mark.asyncio
    async def test_dispatch_wildcard(self) -> None:
        client = MQTTClient(MQTTConfig())
        config_cb = AsyncMock()
        other_cb = AsyncMock()
        client.subscribe("zb/bridge/config/+", config_cb)
        client.subscribe("zb/lamp/set", other_cb)

        await client._dispatch(_message("zb/bridge/config/permit_join", b"true"))

        config_cb.assert_awaited_once_with("zb/bridge/config/permit_join", b"true")
        other_cb.assert_not_called()

    @pytest.mark.asyncio
    async def test_dispatch_normalizes_payload(self) -> None:
        client = MQTTClient(MQTTConfig())
        callback = AsyncMock()
        client.subscribe("zb/#", callback)

        await client._dispatch(_message("zb/a", None))
        await client._dispatch(_message("zb/b", bytearray(b"x")))
        await client._dispatch(_message("zb/c", 5))

        payloads = [c.args[1] for c in callback.call_args_list]
        assert payloads == [b"", b"x", b"5"]

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_dispatch(self) -> None:
        client = MQTTClient(MQTTConfig())
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        client.subscribe("zb/+", failing)
        client.subscribe("zb/#", healthy)

        await client._dispatch(_message("zb/x", b""))

        healthy.assert_awaited_once()
