"""Async MQTT client wrapper using aiomqtt."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, Coroutine

import aiomqtt

from mesh_bridge.config.schema import MQTTConfig

logger = logging.getLogger(__name__)

# Type alias for message callback: (topic, payload) -> None
MessageCallback = Callable[[str, bytes], Coroutine[Any, Any, object]]


class MQTTClient:
    """Async MQTT client wrapping aiomqtt.

    Handles connection and provides publish/subscribe methods. Subscriptions
    may use + and # wildcards; every matching callback is awaited in turn,
    so messages are processed strictly one at a time.
    """

    def __init__(self, config: MQTTConfig) -> None:
        self._config = config
        self._client: aiomqtt.Client | None = None
        self._stack: contextlib.AsyncExitStack | None = None
        self._connected = False
        self._subscriptions: dict[str, MessageCallback] = {}

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self, will: aiomqtt.Will | None = None) -> None:
        """Connect to the MQTT broker."""
        client = aiomqtt.Client(
            hostname=self._config.broker_host,
            port=self._config.broker_port,
            username=self._config.username or None,
            password=self._config.password or None,
            identifier=self._config.client_id or None,
            keepalive=self._config.keepalive_seconds,
            will=will,
        )
        logger.info(
            "MQTT connecting to %s:%d",
            self._config.broker_host, self._config.broker_port,
        )
        stack = contextlib.AsyncExitStack()
        try:
            self._client = await stack.enter_async_context(client)
        except aiomqtt.MqttError as e:
            logger.error("MQTT connect failed: %s", e)
            self._connected = False
            return
        self._stack = stack
        self._connected = True
        logger.info("MQTT connected")

    async def disconnect(self) -> None:
        """Disconnect from the broker."""
        self._connected = False
        if self._stack is not None:
            with contextlib.suppress(aiomqtt.MqttError):
                await self._stack.aclose()
        self._stack = None
        self._client = None

    async def publish(
        self, topic: str, payload: str, retain: bool = False, qos: int = 0,
    ) -> None:
        """Publish a message to a topic."""
        if not self._connected or self._client is None:
            logger.debug("MQTT not connected, dropping publish to %s", topic)
            return

        try:
            await self._client.publish(topic, payload, qos=qos, retain=retain)
        except aiomqtt.MqttError as e:
            logger.error("MQTT publish failed for %s: %s", topic, e)

    def subscribe(self, topic: str, callback: MessageCallback) -> None:
        """Register a subscription callback for a topic pattern."""
        self._subscriptions[topic] = callback

    async def listen(self) -> None:
        """Subscribe to all registered patterns and dispatch messages (blocking)."""
        if not self._connected or self._client is None or not self._subscriptions:
            return

        try:
            for topic in self._subscriptions:
                await self._client.subscribe(topic)
                logger.info("MQTT subscribed to %s", topic)

            async for message in self._client.messages:
                await self._dispatch(message)
        except aiomqtt.MqttError as e:
            logger.error("MQTT listener error: %s", e)
            self._connected = False

    async def _dispatch(self, message: aiomqtt.Message) -> None:
        topic = message.topic.value
        if isinstance(message.payload, (bytes, bytearray)):
            payload = bytes(message.payload)
        elif message.payload is None:
            payload = b""
        else:
            payload = str(message.payload).encode()

        for pattern, callback in self._subscriptions.items():
            if not message.topic.matches(pattern):
                continue
            try:
                await callback(topic, payload)
            except Exception:
                logger.exception("MQTT callback error for %s", topic)
