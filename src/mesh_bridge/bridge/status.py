"""Bridge status snapshot publishing."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from mesh_bridge.logging.sinks import LogLevel, LogSinks
from mesh_bridge.mqtt.publisher import BridgePublisher
from mesh_bridge.network.base import NetworkController

logger = logging.getLogger(__name__)

STATUS_TOPIC_SUFFIX = "bridge/config"


@dataclass(frozen=True)
class BridgeStatus:
    """Externally visible bridge settings at one moment."""

    log_level: LogLevel
    permit_join: bool

    def to_payload(self) -> dict[str, object]:
        return {"log_level": self.log_level.value, "permit_join": self.permit_join}


class StatusPublisher:
    """Publishes the retained bridge status snapshot."""

    def __init__(
        self,
        publisher: BridgePublisher,
        controller: NetworkController,
        sinks: LogSinks,
    ) -> None:
        self._publisher = publisher
        self._controller = controller
        self._sinks = sinks

    def snapshot(self) -> BridgeStatus:
        return BridgeStatus(
            log_level=self._sinks.level,
            permit_join=self._controller.get_permit_join(),
        )

    async def publish(self) -> BridgeStatus:
        status = self.snapshot()
        await self._publisher.publish(
            STATUS_TOPIC_SUFFIX, json.dumps(status.to_payload()), retain=True, qos=0,
        )
        logger.debug("Published bridge status: %s", status)
        return status
