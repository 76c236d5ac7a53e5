"""Tests for Application lifecycle wiring."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mesh_bridge.config.schema import AppConfig
from mesh_bridge.main import Application
from mesh_bridge.network.virtual import VirtualNetworkController


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        permit_join=True,
        network={"devices": [{"ieee_addr": "0x0001", "type": "Router", "model_id": "LCT001"}]},
        advanced={"state_file": str(tmp_path / "state.json")},
    )


def _mock_mqtt(connected: bool = True) -> MagicMock:
    client = MagicMock()
    client.is_connected = connected
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.publish = AsyncMock()
    client.listen = AsyncMock()
    return client


class TestApplicationConstruction:
    def test_create_application(self, config, config_manager) -> None:
        app = Application(config, config_manager)
        assert app.config is config
        assert app.config_manager is config_manager
        assert app._running is False

    def test_initial_state(self, config, config_manager) -> None:
        app = Application(config, config_manager)
        assert app._tasks == []
        assert app._controller is None
        assert app._mqtt_client is None
        assert app._bridge is None


class TestControllerCreation:
    def test_virtual_controller_has_configured_devices(self, app_config, config_manager) -> None:
        app = Application(app_config, config_manager)
        controller = app._create_controller()
        assert isinstance(controller, VirtualNetworkController)
        assert [d.ieee_addr for d in controller.get_clients()] == ["0x0001"]

    def test_unknown_adapter_rejected(self, config_manager) -> None:
        app = Application(AppConfig(network={"adapter": "ezsp"}), config_manager)
        with pytest.raises(ValueError, match="ezsp"):
            app._create_controller()


class TestStartStop:
    @pytest.mark.asyncio
    async def test_start_wires_bridge(self, app_config, config_manager) -> None:
        mqtt = _mock_mqtt()
        with patch("mesh_bridge.main.MQTTClient", return_value=mqtt):
            app = Application(app_config, config_manager)
            await app.start()

        assert app._controller.get_permit_join() is True
        mqtt.connect.assert_awaited_once()
        mqtt.subscribe.assert_called_once_with(
            "mesh_bridge/bridge/config/+", app._bridge.handle_message,
        )
        published = {c.args[0]: c.args[1] for c in mqtt.publish.call_args_list}
        assert published["mesh_bridge/bridge/state"] == "online"
        assert json.loads(published["mesh_bridge/bridge/config"]) == {
            "log_level": "info", "permit_join": True,
        }
        mqtt.listen.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_publishes_offline_and_saves_state(
        self, app_config, config_manager,
    ) -> None:
        mqtt = _mock_mqtt()
        with patch("mesh_bridge.main.MQTTClient", return_value=mqtt):
            app = Application(app_config, config_manager)
            await app.start()
            app._state_cache.set("0x0001", {"state": "ON"})
            await app.stop()

        assert app._running is False
        mqtt.publish.assert_any_await("mesh_bridge/bridge/state", "offline", retain=True)
        mqtt.disconnect.assert_awaited_once()
        assert Path(app_config.advanced.state_file).exists()

    @pytest.mark.asyncio
    async def test_network_devices_tracked(self, tmp_path, config_manager) -> None:
        config = AppConfig(
            network={"devices": [{"ieee_addr": "0x0042"}]},
            advanced={"state_file": str(tmp_path / "state.json")},
        )
        mqtt = _mock_mqtt()
        with patch("mesh_bridge.main.MQTTClient", return_value=mqtt):
            app = Application(config, config_manager)
            await app.start()

        assert config_manager.config.devices["0x0042"].friendly_name == "0x0042"

        config_manager.save_user_config({"advanced": {"last_seen": "epoch"}})
        await app._controller.report("0x0042", {"contact": True})
        state = app._state_cache.get("0x0042")
        assert state["contact"] is True
        assert isinstance(state["last_seen"], int)

    @pytest.mark.asyncio
    async def test_start_without_broker(self, app_config, config_manager) -> None:
        mqtt = _mock_mqtt(connected=False)
        with patch("mesh_bridge.main.MQTTClient", return_value=mqtt):
            app = Application(app_config, config_manager)
            await app.start()

        assert app._bridge is None
        mqtt.subscribe.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop_before_start_is_noop(self, config, config_manager) -> None:
        app = Application(config, config_manager)
        await app.stop()
        assert app._running is False
