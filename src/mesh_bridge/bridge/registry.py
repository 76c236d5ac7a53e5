"""Config command registry: command name to handler."""

from __future__ import annotations

from typing import Any, Callable, Coroutine

from mesh_bridge.bridge.commands import ConfigCommand

# Handler signature: (topic, message) -> None
CommandHandler = Callable[[str, str], Coroutine[Any, Any, None]]


class CommandRegistry:
    """Maps config commands to their handlers. Lookup only, no state."""

    def __init__(self) -> None:
        self._handlers: dict[ConfigCommand, CommandHandler] = {}

    def register(self, command: ConfigCommand, handler: CommandHandler) -> None:
        """Register a handler for a command.

        Raises:
            ValueError: If the command already has a handler.
        """
        if command in self._handlers:
            raise ValueError(f"Command '{command.value}' already registered")
        self._handlers[command] = handler

    def lookup(self, name: str) -> CommandHandler | None:
        """Handler for a command name, or None if it is not a supported command."""
        try:
            command = ConfigCommand(name)
        except ValueError:
            return None
        return self._handlers.get(command)

    @property
    def commands(self) -> list[ConfigCommand]:
        """All registered commands."""
        return list(self._handlers.keys())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._handlers)
