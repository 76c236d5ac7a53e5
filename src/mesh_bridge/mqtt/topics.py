"""MQTT topic constants."""

from __future__ import annotations

import re


def build_topics(base_topic: str = "mesh_bridge") -> dict[str, str]:
    """Build all bridge topic strings from a configurable base topic."""
    return {
        "state": f"{base_topic}/bridge/state",
        "config": f"{base_topic}/bridge/config",
        "config_commands": f"{base_topic}/bridge/config/+",
        "log": f"{base_topic}/bridge/log",
    }


def config_command_topic(base_topic: str, command: str) -> str:
    """Build the topic a config command is sent to."""
    return f"{base_topic}/bridge/config/{command}"


def config_topic_pattern(base_topic: str) -> re.Pattern[str]:
    """Regex matching any config command topic under base_topic."""
    return re.compile(rf"^{re.escape(base_topic)}/bridge/config/\w+$")
