"""Bridge config command dispatcher and handlers."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from mesh_bridge.bridge.commands import (
    ConfigCommand,
    decode_payload,
    parse_device_options,
    parse_device_reference,
    parse_last_seen,
    parse_log_level,
    parse_permit_join,
    parse_rename,
)
from mesh_bridge.bridge.errors import (
    BridgeCommandError,
    MalformedPayload,
    NetworkOperationFailed,
    StoreOperationFailed,
    UnknownDevice,
)
from mesh_bridge.bridge.lifecycle import LifecycleCoordinator
from mesh_bridge.bridge.registry import CommandRegistry
from mesh_bridge.bridge.status import StatusPublisher
from mesh_bridge.config.store import SettingsStore
from mesh_bridge.logging.context import log_context
from mesh_bridge.logging.sinks import LogSinks
from mesh_bridge.mqtt.client import MQTTClient
from mesh_bridge.mqtt.publisher import BridgePublisher
from mesh_bridge.mqtt.topics import build_topics, config_topic_pattern
from mesh_bridge.network.base import DeviceRecord, NetworkController, NetworkOperationError
from mesh_bridge.network.models import ModelCatalog, ModelLookup
from mesh_bridge.state.cache import DeviceStateCache

logger = logging.getLogger(__name__)


class BridgeConfig:
    """Handles messages on <base_topic>/bridge/config/<command>.

    handle_message() reports whether a message was meant for this handler.
    Whether the command itself succeeded is only visible in the log and in
    the events published on the bridge log topic.
    """

    def __init__(
        self,
        controller: NetworkController,
        store: SettingsStore,
        cache: DeviceStateCache,
        publisher: BridgePublisher,
        sinks: LogSinks,
        models: ModelLookup | None = None,
    ) -> None:
        self._controller = controller
        self._store = store
        self._publisher = publisher
        self._sinks = sinks
        self._models = models or ModelCatalog()
        self._topic_re = config_topic_pattern(publisher.base_topic)

        self.status = StatusPublisher(publisher, controller, sinks)
        self.lifecycle = LifecycleCoordinator(controller, store, cache, publisher)

        self.registry = CommandRegistry()
        self.registry.register(ConfigCommand.PERMIT_JOIN, self.permit_join)
        self.registry.register(ConfigCommand.LAST_SEEN, self.last_seen)
        self.registry.register(ConfigCommand.RESET, self.reset)
        self.registry.register(ConfigCommand.LOG_LEVEL, self.log_level)
        self.registry.register(ConfigCommand.DEVICES, self.devices)
        self.registry.register(ConfigCommand.RENAME, self.rename)
        self.registry.register(ConfigCommand.REMOVE, self.remove)
        self.registry.register(ConfigCommand.BAN, self.ban)
        self.registry.register(ConfigCommand.DEVICE_OPTIONS, self.device_options)

    @property
    def subscription(self) -> str:
        return build_topics(self._publisher.base_topic)["config_commands"]

    async def on_mqtt_connected(self, client: MQTTClient) -> None:
        """Subscribe to config commands and publish the initial status."""
        client.subscribe(self.subscription, self.handle_message)
        await self.status.publish()

    async def handle_message(self, topic: str, payload: str | bytes) -> bool:
        """Dispatch a config command. Returns True if the topic was claimed."""
        if not self._topic_re.match(topic):
            return False

        command = topic.rsplit("/", 1)[-1]
        handler = self.registry.lookup(command)
        if handler is None:
            return False

        message = decode_payload(payload)
        with log_context(command=command, topic=topic):
            try:
                await handler(topic, message)
            except BridgeCommandError as e:
                logger.error("Config command '%s' failed: %s (payload: %r)", command, e, message)
            except Exception:
                logger.exception("Config command '%s' raised unexpectedly (payload: %r)", command, message)
        return True

    # ── Command handlers ─────────────────────────────────────

    async def permit_join(self, topic: str, message: str) -> None:
        permit = parse_permit_join(message)
        try:
            await self._controller.set_permit_join(permit)
        except NetworkOperationError as e:
            raise NetworkOperationFailed(
                f"Failed to {'enable' if permit else 'disable'} joining: {e}"
            ) from e
        await self.status.publish()

    async def reset(self, topic: str, message: str) -> None:
        try:
            await self._controller.soft_reset()
        except NetworkOperationError as e:
            raise NetworkOperationFailed(f"Soft reset failed: {e}") from e
        logger.info("Soft reset the coordinator")

    async def last_seen(self, topic: str, message: str) -> None:
        policy = parse_last_seen(message)
        self._store.set_global_option(("advanced", "last_seen"), policy)
        logger.info("Set last_seen to %s", policy.value)

    async def log_level(self, topic: str, message: str) -> None:
        try:
            level = parse_log_level(message)
            logger.info("Switching log level to '%s'", level.value)
            self._sinks.set_level(level)
        finally:
            await self.status.publish()

    async def devices(self, topic: str, message: str) -> None:
        devices = [self._describe(record) for record in self._controller.get_clients()]
        await self._publisher.log("devices", devices)

    async def rename(self, topic: str, message: str) -> None:
        request = parse_rename(message)
        if not self._store.rename_device(request.old, request.new):
            raise StoreOperationFailed(f"Failed to rename '{request.old}' to '{request.new}'")

        logger.info("Successfully renamed '%s' to '%s'", request.old, request.new)
        await self._publisher.log("device_renamed", {"from": request.old, "to": request.new})

    async def remove(self, topic: str, message: str) -> None:
        await self.lifecycle.remove(parse_device_reference(message))

    async def ban(self, topic: str, message: str) -> None:
        await self.lifecycle.ban(parse_device_reference(message))

    async def device_options(self, topic: str, message: str) -> None:
        request = parse_device_options(message)
        name = request.friendly_name
        address = self._store.get_address_by_friendly_name(name)
        if address is None:
            raise UnknownDevice(name)

        options = dict(request.options)
        if "friendly_name" in options:
            del options["friendly_name"]
            logger.warning("Ignoring friendly_name in options of '%s', use rename instead", name)

        try:
            changed = self._store.change_device_options(address, options)
        except ValidationError as e:
            raise MalformedPayload(f"Invalid options for '{name}': {e.error_count()} errors") from e
        if not changed:
            raise UnknownDevice(name)

        logger.info("Changed device specific options of '%s' (%s)", name, json.dumps(options))

    def _describe(self, record: DeviceRecord) -> dict[str, Any]:
        definition = self._models.find_by_model_id(record.model_id) if record.model_id else None
        entry = self._store.get_device(record.ieee_addr)
        return {
            "ieeeAddr": record.ieee_addr,
            "type": record.type,
            "model": definition.model if definition else record.model_id,
            "friendly_name": entry.friendly_name if entry else record.ieee_addr,
        }
