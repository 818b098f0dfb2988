from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, overload

from ._errors import ConfigurationError, ResolutionError
from ._registration import Lifetime, Registration, constructor_factory


logger = logging.getLogger(__name__)

T = TypeVar("T")

if TYPE_CHECKING:
    from collections.abc import Callable

    Token = type[T] | str


class Resolver(Protocol):
    """The only capability handed to factories: resolving further dependencies."""

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: str) -> object: ...

    def resolve(self, token: Any) -> object: ...


class Container:
    """Minimal DI container.

    - register types (constructor injection) or factories
    - lifetimes: transient / per scope / singleton
    - customize: child containers overriding registrations without touching the parent
    - create_scope: share per-scope instances across several resolutions.

    A whole container chain shares one re-entrant lock, created by the root and
    passed down by `customize`.
    """

    def __init__(self, *, _parent: Container | None = None) -> None:
        self._parent = _parent
        self._registrations: dict[Any, Registration] = {}
        # Descendants synchronize on the root lock, so singletons are built once chain-wide.
        self._lock = _parent._lock if _parent is not None else threading.RLock()

    @property
    def parent(self) -> Container | None:
        return self._parent

    @overload
    def register(
        self,
        token: type[T],
        impl: type[T] | None = ...,
        *,
        factory: None = ...,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Container: ...

    @overload
    def register(
        self,
        token: type[T],
        impl: None = ...,
        *,
        factory: Callable[[Resolver], T],
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Container: ...

    @overload
    def register(
        self,
        token: str,
        impl: type | None = ...,
        *,
        factory: Callable[[Resolver], Any] | None = ...,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Container: ...

    def register(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[[Resolver], Any] | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Container:
        """Register a concrete type or a factory for a token.

        A later registration of the same token in this container replaces the
        earlier one. Returns the container so calls can be chained.

        Example:
          container.register(IFoo, FooImpl, lifetime=Lifetime.PER_SCOPE)
          container.register("db", factory=lambda r: create_db(r.resolve(Settings)))

        """
        if impl is not None and factory is not None:
            msg = "Provide either `impl` or `factory`, not both."
            raise ConfigurationError(msg)

        if not isinstance(lifetime, Lifetime):
            msg = f"`lifetime` must be a Lifetime, got {lifetime!r}"
            raise ConfigurationError(msg)

        if factory is not None:
            if not callable(factory):
                msg = f"`factory` must be callable, got {factory!r}"
                raise ConfigurationError(msg)
            build = factory
        else:
            if impl is None:
                if not inspect.isclass(token):
                    msg = f"Token {token!r} is not a class: provide `impl` or `factory`."
                    raise ConfigurationError(msg)
                impl = token
            build = constructor_factory(token, impl)

        self._add_registration(token, Registration(token, build, lifetime))
        return self

    def register_transient(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[[Resolver], Any] | None = None,
    ) -> Container:
        return self.register(token, impl, factory=factory, lifetime=Lifetime.TRANSIENT)

    def register_per_scope(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[[Resolver], Any] | None = None,
    ) -> Container:
        return self.register(token, impl, factory=factory, lifetime=Lifetime.PER_SCOPE)

    def register_singleton(
        self,
        token: Token[T],
        impl: type | None = None,
        *,
        factory: Callable[[Resolver], Any] | None = None,
    ) -> Container:
        return self.register(token, impl, factory=factory, lifetime=Lifetime.SINGLETON)

    def _add_registration(self, token: Any, registration: Registration) -> None:
        with self._lock:
            if token in self._registrations:
                logger.warning("Replacing existing registration for %r", token)
            self._registrations[token] = registration
        logger.debug("Registered %r (%s) at depth %d", token, registration.lifetime.name, self._depth())

    def customize(self) -> Container:
        """Create a child container that can override registrations without affecting this one."""
        return Container(_parent=self)

    def create_scope(self) -> Scope:
        """Create a scope so PER_SCOPE instances are kept across several resolve calls."""
        logger.debug("Creating scope at depth %d", self._depth())
        return Scope(self, _from_container=True)

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: str) -> object: ...

    def resolve(self, token: Token[T]) -> object:
        """Resolve through a throwaway scope.

        PER_SCOPE instances are not shared between two calls; use `create_scope()`
        for that.
        """
        return self.create_scope().resolve(token)

    def is_registered(self, token: Any, *, inherited: bool = True) -> bool:
        with self._lock:
            if not inherited:
                return token in self._registrations
            return self._find(token) is not None

    def _find(self, token: Any) -> Registration | None:
        container: Container | None = self
        while container is not None:
            reg = container._registrations.get(token)
            if reg is not None:
                return reg
            container = container._parent
        return None

    def _depth(self) -> int:
        depth = 0
        container = self._parent
        while container is not None:
            depth += 1
            container = container._parent
        return depth


class Scope:
    """Resolution context caching PER_SCOPE instances.

    Bound to the most nested container it was created from; lookups walk from
    there up through the parents. A scope is meant for one flow of resolutions
    and is not synchronized for use from several threads.
    """

    def __init__(self, container: Container, *, _from_container: bool = False) -> None:
        if not _from_container:
            msg = "Scope instances must be created via Container.create_scope()"
            raise RuntimeError(msg)
        self._container = container
        self._cache: dict[Registration, object] = {}

    @overload
    def resolve(self, token: type[T]) -> T: ...

    @overload
    def resolve(self, token: str) -> object: ...

    def resolve(self, token: Token[T]) -> object:
        # Same lock object for the whole chain; held across nested resolutions.
        with self._container._lock:  # noqa: SLF001
            reg = self._container._find(token)  # noqa: SLF001
            if reg is None:
                raise ResolutionError(token)
            return reg.resolve(self)

    def _can_resolve(self, token: Any) -> bool:
        with self._container._lock:  # noqa: SLF001
            return self._container._find(token) is not None  # noqa: SLF001

    def _try_get_cached(self, registration: Registration) -> tuple[bool, object]:
        if registration in self._cache:
            return True, self._cache[registration]
        return False, None

    def _set_cached(self, registration: Registration, value: object) -> None:
        self._cache[registration] = value
