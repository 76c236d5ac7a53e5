"""Log context enrichment for command handling."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import structlog


def bind_context(**kwargs: object) -> None:
    """Bind key-value pairs to the current logging context (task-local)."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear the current logging context."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


@contextmanager
def log_context(**kwargs: object) -> Iterator[None]:
    """Bind context for the duration of a block, e.g. one command."""
    bind_context(**kwargs)
    try:
        yield
    finally:
        unbind_context(*kwargs)
