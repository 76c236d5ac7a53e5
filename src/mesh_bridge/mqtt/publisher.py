"""MQTT bridge status and event publisher."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Coroutine

from mesh_bridge.mqtt.topics import build_topics

logger = logging.getLogger(__name__)

# Type for async publish function: (topic, payload, retain, qos) -> None
PublishFn = Callable[[str, str, bool, int], Coroutine[Any, Any, None]]


class BridgePublisher:
    """Publishes bridge-level messages below the configured base topic."""

    def __init__(self, publish_fn: PublishFn, base_topic: str = "mesh_bridge") -> None:
        self._publish = publish_fn
        self._base_topic = base_topic
        self._topics = build_topics(base_topic)

    @property
    def base_topic(self) -> str:
        return self._base_topic

    async def publish(
        self, suffix: str, payload: str, retain: bool = False, qos: int = 0,
    ) -> None:
        """Publish payload to <base_topic>/<suffix>."""
        await self._publish(f"{self._base_topic}/{suffix}", payload, retain, qos)

    async def publish_state(self, online: bool = True) -> None:
        """Publish bridge online/offline availability."""
        await self._publish(self._topics["state"], "online" if online else "offline", True, 0)

    async def log(self, event_type: str, message: Any) -> None:
        """Emit a bridge event on the log topic, e.g. device_renamed."""
        payload = json.dumps({"type": event_type, "message": message})
        logger.debug("Bridge event %s: %s", event_type, payload)
        await self._publish(self._topics["log"], payload, False, 0)
