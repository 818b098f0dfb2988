"""Tiny dependency injection container.

This package maps service tokens (usually abstract classes or protocols) to
construction strategies and resolves object graphs with one of three lifetimes.

Exports:
- `Container`: registers types or factories, resolves them, derives child
  containers with `customize()` and opens scopes with `create_scope()`.
- `Scope`: resolution context sharing PER_SCOPE instances across several calls.
- `Resolver`: protocol handed to factories; it can only resolve.
- `Lifetime`: TRANSIENT, PER_SCOPE or SINGLETON.
- `TinyDIError`, `ConfigurationError`, `ResolutionError`, `LifetimeError`.
"""

from ._container import Container, Resolver, Scope
from ._errors import ConfigurationError, LifetimeError, ResolutionError, TinyDIError
from ._registration import Lifetime


__all__ = [
    "ConfigurationError",
    "Container",
    "Lifetime",
    "LifetimeError",
    "ResolutionError",
    "Resolver",
    "Scope",
    "TinyDIError",
]
