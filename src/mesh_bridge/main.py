"""Mesh Bridge application entry point and lifecycle orchestrator.

Startup sequence:
  config → logging → settings store → state cache → network controller +
  device tracking → MQTT → bridge config subscription + status → listen
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path

import aiomqtt

from mesh_bridge.bridge.devices import DeviceTracker
from mesh_bridge.bridge.dispatcher import BridgeConfig
from mesh_bridge.config.manager import ConfigManager
from mesh_bridge.config.schema import AppConfig
from mesh_bridge.config.store import SettingsStore
from mesh_bridge.logging.sinks import LogSinks
from mesh_bridge.logging.structured import setup_logging
from mesh_bridge.mqtt.client import MQTTClient
from mesh_bridge.mqtt.publisher import BridgePublisher
from mesh_bridge.mqtt.topics import build_topics
from mesh_bridge.network.base import DeviceRecord, NetworkController
from mesh_bridge.network.virtual import VirtualNetworkController
from mesh_bridge.state.cache import DeviceStateCache

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


class Application:
    """Main application lifecycle manager.

    Wires all modules together and manages startup/shutdown ordering.
    """

    def __init__(
        self,
        config: AppConfig,
        config_manager: ConfigManager,
        sinks: LogSinks | None = None,
    ) -> None:
        self.config = config
        self.config_manager = config_manager
        self.sinks = sinks or LogSinks()
        self._running = False
        self._tasks: list[asyncio.Task] = []
        self._stop_event = asyncio.Event()

        # References held for cleanup
        self._controller: NetworkController | None = None
        self._mqtt_client: MQTTClient | None = None
        self._state_cache: DeviceStateCache | None = None
        self._bridge: BridgeConfig | None = None

    async def start(self) -> None:
        """Start all application components in dependency order."""
        logger.info("Starting Mesh Bridge v%s", VERSION)
        self._running = True
        self._stop_event.clear()

        # ── 1. Settings store ────────────────────────────────
        store = SettingsStore(self.config_manager)

        # ── 2. Device state cache ────────────────────────────
        state_path = Path(self.config.advanced.state_file) if self.config.advanced.cache_state else None
        state_cache = DeviceStateCache(state_path)
        state_cache.load()
        self._state_cache = state_cache

        # ── 3. Network controller ────────────────────────────
        controller = self._create_controller()
        self._controller = controller
        tracker = DeviceTracker(store, state_cache)
        tracker.sync(controller.get_clients())
        controller.on_device_joined(tracker.on_joined)
        controller.on_device_message(tracker.on_message)
        await controller.set_permit_join(self.config.permit_join)

        # ── 4. MQTT ──────────────────────────────────────────
        topics = build_topics(self.config.mqtt.base_topic)
        mqtt_client = MQTTClient(self.config.mqtt)
        await mqtt_client.connect(
            will=aiomqtt.Will(topics["state"], "offline", qos=0, retain=True),
        )
        self._mqtt_client = mqtt_client
        if not mqtt_client.is_connected:
            logger.error("MQTT not connected, bridge config commands unavailable")
            return

        publisher = BridgePublisher(mqtt_client.publish, self.config.mqtt.base_topic)
        await publisher.publish_state(online=True)

        # ── 5. Bridge config commands ────────────────────────
        bridge = BridgeConfig(
            controller=controller,
            store=store,
            cache=state_cache,
            publisher=publisher,
            sinks=self.sinks,
        )
        await bridge.on_mqtt_connected(mqtt_client)
        self._bridge = bridge

        # ── 6. Listen ────────────────────────────────────────
        listener = asyncio.create_task(mqtt_client.listen(), name="mqtt_listener")
        # Broker connection lost: shut down rather than run deaf
        listener.add_done_callback(lambda _: self._stop_event.set())
        self._tasks.append(listener)
        logger.info("Mesh Bridge started, listening on %s", bridge.subscription)

        await self._stop_event.wait()

    async def stop(self) -> None:
        """Gracefully stop all components in reverse order."""
        if not self._running:
            return

        logger.info("Shutting down Mesh Bridge")
        self._running = False
        self._stop_event.set()

        # Cancel background tasks
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        # Publish offline state
        if self._mqtt_client:
            topics = build_topics(self.config.mqtt.base_topic)
            await self._mqtt_client.publish(topics["state"], "offline", retain=True)
            await self._mqtt_client.disconnect()

        if self._state_cache:
            try:
                self._state_cache.save()
            except OSError:
                logger.exception("Error saving device state")

        logger.info("Shutdown complete")

    def _create_controller(self) -> NetworkController:
        """Create the network controller selected in config."""
        adapter = self.config.network.adapter
        if adapter != "virtual":
            raise ValueError(f"Unknown network adapter: {adapter}")

        devices = [
            DeviceRecord(ieee_addr=d.ieee_addr, type=d.type, model_id=d.model_id)
            for d in self.config.network.devices
        ]
        logger.info("Using virtual network with %d devices", len(devices))
        return VirtualNetworkController(devices)


def main() -> None:
    """Entry point for the application."""
    defaults_path = Path(os.environ.get("MESH_BRIDGE_DEFAULTS", "config.defaults.yaml"))
    user_path = Path(os.environ.get("MESH_BRIDGE_CONFIG", "configuration.yaml"))

    config_manager = ConfigManager(defaults_path, user_path)
    config = config_manager.load()

    sinks = setup_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_file=config.logging.file,
    )

    app = Application(config, config_manager, sinks)
    stop_requested = False
    signal_count = 0

    async def _run() -> None:
        try:
            await app.start()
        finally:
            if app._running:
                with contextlib.suppress(Exception):
                    await app.stop()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _request_stop() -> None:
        nonlocal stop_requested, signal_count
        signal_count += 1
        if signal_count >= 2:
            os._exit(130)
        if stop_requested or loop.is_closed():
            return
        stop_requested = True
        loop.call_soon_threadsafe(lambda: asyncio.create_task(app.stop()))

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _request_stop)
    else:
        signal.signal(signal.SIGINT, lambda *_: _request_stop())

    try:
        loop.run_until_complete(_run())
    except KeyboardInterrupt:
        _request_stop()
        with contextlib.suppress(Exception):
            loop.run_until_complete(app.stop())
    finally:
        pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()


if __name__ == "__main__":
    main()
