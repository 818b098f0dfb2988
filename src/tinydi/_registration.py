from __future__ import annotations

import inspect
import logging
import typing
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple, get_type_hints

from ._errors import ConfigurationError, LifetimeError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._container import Scope


class Lifetime(Enum):
    TRANSIENT = "transient"
    PER_SCOPE = "per_scope"
    SINGLETON = "singleton"


_MISSING: Any = object()


class Registration:
    """Binds one token to a factory and a lifetime.

    Registrations hash and compare by identity: per-scope caches are keyed on the
    registration object, so two containers binding the same token never share
    cached instances.
    """

    __slots__ = ("_factory", "_instance", "_lifetime", "token")

    def __init__(self, token: Any, factory: Callable[[Scope], object], lifetime: Lifetime) -> None:
        self.token = token
        self._factory = factory
        self._lifetime = lifetime
        self._instance: object = _MISSING

    @property
    def lifetime(self) -> Lifetime:
        return self._lifetime

    def resolve(self, scope: Scope) -> object:
        """Produce an instance honoring the lifetime.

        The caller holds the container chain lock, so the singleton check-and-set
        runs at most once per registration.
        """
        if self._lifetime is Lifetime.TRANSIENT:
            return self._factory(scope)

        if self._lifetime is Lifetime.SINGLETON:
            if self._instance is _MISSING:
                logger.debug("Constructing singleton for %r", self.token)
                self._instance = self._factory(scope)
            return self._instance

        if self._lifetime is Lifetime.PER_SCOPE:
            found, instance = scope._try_get_cached(self)  # noqa: SLF001
            if not found:
                instance = self._factory(scope)
                scope._set_cached(self, instance)  # noqa: SLF001
            return instance

        msg = f"Unknown lifetime: {self._lifetime!r}"
        raise LifetimeError(msg)

    def __repr__(self) -> str:
        return f"Registration(token={self.token!r}, lifetime={self._lifetime.name})"


class _Dependency(NamedTuple):
    name: str
    token: Any
    positional: bool
    optional: bool  # has a default used when the token is not registered


def constructor_factory(token: Any, impl: Any) -> Callable[[Scope], object]:
    """Build a factory injecting `impl`'s constructor parameters by type annotation.

    Everything that makes the constructor ambiguous is rejected here, at
    registration time, rather than on the first resolve.
    """
    dependencies = _inspect_constructor(impl)
    if token is not impl:
        _validate_impl(token, impl)

    def factory(scope: Scope) -> object:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for dep in dependencies:
            if dep.optional and not scope._can_resolve(dep.token):  # noqa: SLF001
                continue
            value = scope.resolve(dep.token)
            if dep.positional:
                args.append(value)
            else:
                kwargs[dep.name] = value
        return impl(*args, **kwargs)

    factory.__qualname__ = f"constructor_factory[{impl.__qualname__}]"
    return factory


def _ambiguous(impl: Any, reason: str) -> ConfigurationError:
    name = getattr(impl, "__qualname__", repr(impl))
    msg = (
        f"Type '{name}' should have a single unambiguous constructor ({reason}). "
        "Please register it using a factory to avoid ambiguity."
    )
    return ConfigurationError(msg)


def _inspect_constructor(impl: Any) -> list[_Dependency]:  # noqa: C901
    if not inspect.isclass(impl):
        msg = f"Implementation must be a class, got {impl!r}. Use `factory=` for other callables."
        raise ConfigurationError(msg)

    if inspect.isabstract(impl):
        raise _ambiguous(impl, "abstract classes have no usable constructor")

    if _is_protocol(impl):
        raise _ambiguous(impl, "protocols can't be instantiated")

    init = inspect.getattr_static(impl, "__init__")
    if inspect.isfunction(init) and len(typing.get_overloads(init)) > 1:
        raise _ambiguous(impl, "__init__ declares several overloads")

    try:
        sig = inspect.signature(impl)
    except (TypeError, ValueError) as e:
        raise _ambiguous(impl, f"signature unavailable: {e}") from e

    hints = _get_constructor_type_hints(impl)

    dependencies: list[_Dependency] = []
    for name, p in sig.parameters.items():
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue

        ann = hints.get(name, inspect.Parameter.empty)
        has_default = p.default is not inspect.Parameter.empty

        if ann is inspect.Parameter.empty:
            if p.kind is p.POSITIONAL_ONLY:
                raise _ambiguous(impl, f"positional-only parameter '{name}' has no annotation")
            if not has_default:
                raise _ambiguous(impl, f"parameter '{name}' has neither annotation nor default")
            continue

        dependencies.append(
            _Dependency(
                name=name,
                token=ann,
                positional=p.kind is p.POSITIONAL_ONLY,
                optional=has_default and p.kind is not p.POSITIONAL_ONLY,
            )
        )

    return dependencies


def _get_constructor_type_hints(cls: type) -> dict[str, Any]:
    hints: dict[str, Any] = {}
    for attr in ("__new__", "__init__"):
        member = inspect.getattr_static(cls, attr)
        member = getattr(member, "__func__", member)  # unwrap staticmethod
        try:
            hints.update(get_type_hints(member))
        except TypeError:
            # builtin slot wrappers carry no annotations
            continue
        except NameError as exc:
            logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
            raise _ambiguous(cls, f"annotation '{exc.name}' can't be resolved") from exc
    hints.pop("return", None)
    return hints


def _validate_impl(token: Any, impl: type) -> None:
    """Check `impl` is usable for `token` when the token is itself a class.

    - For normal classes/ABCs: require issubclass(impl, token).
    - For Protocols: nominal via MRO, otherwise every protocol member must be present.
    Non-type tokens (like strings) can't be validated.
    """
    if not inspect.isclass(token):
        return

    if not _is_protocol(token):
        if not issubclass(impl, token):
            msg = f"Implementation {impl.__name__} must be a subclass of {token.__name__}"
            raise ConfigurationError(msg)
        return

    if token in impl.__mro__:
        return

    missing = sorted(name for name in _protocol_members(token) if not hasattr(impl, name))
    if missing:
        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{token.__name__}: missing members: {', '.join(missing)}"
        )
        raise ConfigurationError(msg)


def _protocol_members(proto_cls: type) -> set[str]:
    members: set[str] = set()
    for base in proto_cls.__mro__:
        if not _is_protocol(base) or base is typing.Protocol:
            continue
        members.update(getattr(base, "__annotations__", {}))
        members.update(name for name, attr in base.__dict__.items() if callable(attr) or isinstance(attr, property))
    return {name for name in members if not name.startswith("_")}


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: Any) -> bool:
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False))


