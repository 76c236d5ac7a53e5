"""Config commands and their payload parsers.

Each parser turns the raw payload text into a typed value or raises a
BridgeCommandError describing what was wrong with it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, StrictStr, ValidationError

from mesh_bridge.bridge.errors import InvalidEnumValue, MalformedPayload
from mesh_bridge.config.schema import LastSeenPolicy
from mesh_bridge.logging.sinks import LogLevel

logger = logging.getLogger(__name__)


class ConfigCommand(str, Enum):
    """Commands accepted on <base_topic>/bridge/config/<command>."""

    PERMIT_JOIN = "permit_join"
    LAST_SEEN = "last_seen"
    RESET = "reset"
    LOG_LEVEL = "log_level"
    DEVICES = "devices"
    RENAME = "rename"
    REMOVE = "remove"
    BAN = "ban"
    DEVICE_OPTIONS = "device_options"


class RenameRequest(BaseModel):
    old: StrictStr = Field(min_length=1)
    new: StrictStr = Field(min_length=1)


class DeviceOptionsRequest(BaseModel):
    friendly_name: StrictStr
    options: dict[str, Any]


def decode_payload(payload: str | bytes) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload


def parse_permit_join(message: str) -> bool:
    """Only a case-insensitive "true" enables joining; anything else disables."""
    value = message.lower()
    if value not in ("true", "false"):
        logger.warning("permit_join expects 'true' or 'false', got '%s'; treating as false", message)
    return value == "true"


def parse_last_seen(message: str) -> LastSeenPolicy:
    allowed = [policy.value for policy in LastSeenPolicy]
    if message not in allowed:
        raise InvalidEnumValue(message, allowed, "last_seen value")
    return LastSeenPolicy(message)


def parse_log_level(message: str) -> LogLevel:
    level = message.lower()
    allowed = [lvl.value for lvl in LogLevel]
    if level not in allowed:
        raise InvalidEnumValue(level, allowed, "log level")
    return LogLevel(level)


def parse_rename(message: str) -> RenameRequest:
    try:
        return RenameRequest.model_validate_json(message)
    except ValidationError as e:
        raise MalformedPayload(
            "Invalid rename message format, expected "
            f"{{\"old\": \"friendly_name\", \"new\": \"new_name\"}}, got {message}"
        ) from e


def parse_device_reference(message: str) -> str:
    reference = message.strip()
    if not reference:
        raise MalformedPayload("Expected a friendly name or device address, got an empty payload")
    return reference


def parse_device_options(message: str) -> DeviceOptionsRequest:
    try:
        return DeviceOptionsRequest.model_validate_json(message)
    except ValidationError as e:
        raise MalformedPayload(
            'Invalid device options message, should contain "friendly_name" and "options" '
            f"({e.error_count()} errors in {message})"
        ) from e
