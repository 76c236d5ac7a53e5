"""Failures of individual bridge config commands.

None of these are fatal: the dispatcher logs them and moves on to the next
message.
"""

from __future__ import annotations

from typing import Iterable


class BridgeCommandError(Exception):
    """A config command could not be carried out."""


class MalformedPayload(BridgeCommandError):
    """Payload is not valid JSON or misses required fields."""


class InvalidEnumValue(BridgeCommandError):
    """Payload value is not one of the allowed values."""

    def __init__(self, value: str, allowed: Iterable[str], what: str = "value") -> None:
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(
            f"'{value}' is not an allowed {what}, possible: {', '.join(self.allowed)}"
        )


class UnknownDevice(BridgeCommandError):
    """Device reference does not resolve to a known device."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Failed to find device '{reference}'")


class NetworkOperationFailed(BridgeCommandError):
    """The network controller reported an error."""


class StoreOperationFailed(BridgeCommandError):
    """The settings store rejected the change."""
