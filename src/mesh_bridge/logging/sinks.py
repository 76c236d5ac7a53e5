"""Runtime-adjustable log level across every attached log handler."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable


class LogLevel(str, Enum):
    """Log levels as exposed on the bridge config topic."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    @property
    def stdlib_level(self) -> int:
        return _STDLIB_LEVELS[self]

    @classmethod
    def parse(cls, name: str) -> LogLevel:
        """Case-insensitive lookup. Raises ValueError for unknown names."""
        name = name.strip().lower()
        if name == "warning":
            name = "warn"
        return cls(name)


_STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


class LogSinks:
    """The set of handlers the bridge writes its log to.

    Changing the level applies it to every attached handler and to the
    logger feeding them, so the current level is always what is in effect.
    """

    def __init__(
        self,
        handlers: Iterable[logging.Handler] = (),
        level: LogLevel = LogLevel.INFO,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger()
        self._handlers: list[logging.Handler] = []
        self._level = level
        for handler in handlers:
            self.attach(handler)
        self._logger.setLevel(level.stdlib_level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return list(self._handlers)

    @property
    def level(self) -> LogLevel:
        return self._level

    def attach(self, handler: logging.Handler) -> None:
        handler.setLevel(self._level.stdlib_level)
        self._handlers.append(handler)

    def set_level(self, level: LogLevel | str) -> LogLevel:
        if not isinstance(level, LogLevel):
            level = LogLevel.parse(level)
        self._level = level
        for handler in self._handlers:
            handler.setLevel(level.stdlib_level)
        self._logger.setLevel(level.stdlib_level)
        return level
