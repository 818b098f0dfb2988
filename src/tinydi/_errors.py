from __future__ import annotations

from typing import Any


class TinyDIError(Exception):
    """Base class for every error raised by the container itself."""


class ConfigurationError(TinyDIError, ValueError):
    """A registration can't be accepted as given."""


class ResolutionError(TinyDIError, LookupError):
    """No registration for the requested token in the whole container chain."""

    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(f"Type is not registered: {_describe(token)}")


class LifetimeError(TinyDIError, RuntimeError):
    """A registration holds a lifetime outside the three defined policies."""


def _describe(token: Any) -> str:
    if isinstance(token, type):
        return f"{token.__module__}.{token.__qualname__}"
    return repr(token)
