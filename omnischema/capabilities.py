"""
Capability tables and attribute-style dispatch.

A capability is a named function or accessor that a provider attaches to
schemas, fields or data types after they have been defined. This module
provides:
- Capability: one installed function or getter/setter pair
- CapabilityTable: name -> Capability mapping (last install wins)
- CapabilityHost: base class giving ``obj.<capability>(...)`` dispatch
- Target: where an installation request is aimed
- parse_capability_spec: turn a provider mixin entry into Capabilities

Invariants:
    - Installing a name that already exists replaces it on that table only
    - Functions are bound to the object they are invoked on, not the
      object they were installed on
    - A missing capability raises CapabilityNotImplementedError, never
      returns a default

Example:
    >>> table = CapabilityTable()
    >>> table.install(Capability("describe", func=lambda self: self.name))
    >>> "describe" in table
    True
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MethodType
from typing import Any

from .errors import CapabilityNotImplementedError, DefinitionError


class _Missing:
    """Sentinel for "not present" (distinct from an explicit None)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def is_present(value: Any) -> bool:
    """Whether a looked-up value counts as defined."""
    return value is not MISSING and value is not None


def lookup_key(obj: Any, key: str) -> Any:
    """Resolve a single key on a mapping or object, MISSING if absent."""
    if obj is MISSING or obj is None:
        return MISSING
    if isinstance(obj, Mapping):
        return obj.get(key, MISSING)
    return getattr(obj, key, MISSING)


def resolve_path(obj: Any, path: str, default: Any = MISSING) -> Any:
    """Resolve a dotted path such as ``"validation.min"``.

    Args:
        obj: Mapping, capability host or plain object to start from
        path: Dot separated keys
        default: Returned when any segment is absent

    Returns:
        The resolved value, or default
    """
    value = obj
    for key in path.split("."):
        value = lookup_key(value, key)
        if value is MISSING:
            return default
    return value


class Target(Enum):
    """Capability installation targets."""

    SCHEMA = "schema"
    FIELD = "field"
    TYPE = "type"


@dataclass(frozen=True)
class Capability:
    """A named function or accessor.

    Exactly one of ``func`` or the ``fget``/``fset`` pair is used. A
    ``staticmethod`` func is called without the receiver.

    Attributes:
        name: Name the capability is invoked by
        func: Function taking the receiver as first argument
        fget: Getter taking the receiver
        fset: Setter taking the receiver and the new value
    """

    name: str
    func: Callable[..., Any] | None = None
    fget: Callable[[Any], Any] | None = None
    fset: Callable[[Any, Any], None] | None = None

    def __post_init__(self) -> None:
        """Validate capability definition."""
        if not self.name or not self.name.isidentifier():
            raise DefinitionError(f"Capability name must be an identifier, got {self.name!r}")
        if self.func is None and self.fget is None and self.fset is None:
            raise DefinitionError(f"Capability '{self.name}' has no function or accessor")
        if self.func is not None and (self.fget is not None or self.fset is not None):
            raise DefinitionError(
                f"Capability '{self.name}' cannot be both a function and an accessor"
            )

    @property
    def is_accessor(self) -> bool:
        return self.func is None

    def bind(self, receiver: Any) -> Callable[..., Any]:
        """Return the function bound to ``receiver``."""
        if self.func is None:
            raise AttributeError(f"'{self.name}' is an accessor, not a function")
        if isinstance(self.func, staticmethod):
            return self.func.__func__
        return MethodType(self.func, receiver)

    def read(self, receiver: Any) -> Any:
        """Read the capability as an attribute of ``receiver``."""
        if self.func is not None:
            return self.bind(receiver)
        if self.fget is None:
            raise AttributeError(f"'{self.name}' is write-only")
        return self.fget(receiver)

    def write(self, receiver: Any, value: Any) -> None:
        if self.fset is None:
            raise AttributeError(f"'{self.name}' is read-only")
        self.fset(receiver, value)


class CapabilityTable:
    """Mapping of capability name to its most recent installation."""

    def __init__(self) -> None:
        self._entries: dict[str, Capability] = {}

    def install(self, capability: Capability) -> None:
        self._entries[capability.name] = capability

    def get(self, name: str) -> Capability | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[Capability]:
        yield from self._entries.values()

    def __len__(self) -> int:
        return len(self._entries)


class CapabilityHost:
    """Base for objects that expose installed capabilities as attributes.

    Subclasses provide ``_find_member`` (capability or attribute value by
    name) and ``_dispatch_name`` (the type name reported on a miss). Real
    class attributes and properties always take precedence, so installed
    capabilities cannot shadow the core API.
    """

    def _find_member(self, name: str) -> Any:
        raise NotImplementedError

    def _dispatch_name(self) -> str:
        raise NotImplementedError

    def get_capability(self, name: str) -> Capability | None:
        member = self._find_member(name)
        return member if isinstance(member, Capability) else None

    def has_capability(self, name: str) -> bool:
        return self.get_capability(name) is not None

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke an installed function capability by name.

        Raises:
            CapabilityNotImplementedError: If nothing named ``name`` is installed
        """
        capability = self.get_capability(name)
        if capability is None or capability.func is None:
            raise CapabilityNotImplementedError(name, self._dispatch_name())
        return capability.bind(self)(*args, **kwargs)

    def lookup(self, path: str, default: Any = MISSING) -> Any:
        """Resolve a dotted attribute path, returning ``default`` if absent."""
        return resolve_path(self, path, default)

    def __getattr__(self, name: str) -> Any:
        # Private names never dispatch; this also keeps copy/pickle probes
        # and half-initialised instances away from the lookup tables.
        if name.startswith("_"):
            raise AttributeError(name)
        member = self._find_member(name)
        if member is MISSING:
            raise CapabilityNotImplementedError(name, self._dispatch_name())
        if isinstance(member, Capability):
            return member.read(self)
        return member

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_"):
            capability = self.get_capability(name)
            if capability is not None and capability.is_accessor:
                capability.write(self, value)
                return
        object.__setattr__(self, name, value)


def _callable_name(func: Any, explicit: str | None) -> str:
    if explicit:
        return explicit
    target = func.__func__ if isinstance(func, staticmethod) else func
    name = getattr(target, "__name__", "")
    if not name or name == "<lambda>":
        raise DefinitionError("Anonymous capability functions need an explicit 'name'")
    return name


def parse_capability_spec(entry: Any) -> tuple[Any, list[Capability]]:
    """Parse one provider mixin entry.

    An entry is either a named function, or a mapping with an optional
    ``matches`` predicate, an optional ``name`` and any of ``func``,
    ``get`` and ``set``.

    Returns:
        Tuple of (match predicate or MISSING, capabilities in install order)

    Example:
        >>> parse_capability_spec({"matches": "enum_values", "func": render_enum})
    """
    if callable(entry) and not isinstance(entry, Mapping):
        return MISSING, [Capability(_callable_name(entry, None), func=entry)]

    if not isinstance(entry, Mapping):
        raise DefinitionError(f"Capability spec must be a mapping or function, got {entry!r}")

    unknown = set(entry) - {"matches", "name", "func", "get", "set"}
    if unknown:
        raise DefinitionError(f"Unknown capability spec keys: {sorted(unknown)}")

    explicit = entry.get("name")
    capabilities: list[Capability] = []

    fget = entry.get("get")
    fset = entry.get("set")
    if fget is not None or fset is not None:
        get_name = _callable_name(fget, explicit) if fget is not None else None
        set_name = _callable_name(fset, explicit) if fset is not None else None
        if get_name and set_name and get_name == set_name:
            capabilities.append(Capability(get_name, fget=fget, fset=fset))
        else:
            if get_name:
                capabilities.append(Capability(get_name, fget=fget))
            if set_name:
                capabilities.append(Capability(set_name, fset=fset))

    func = entry.get("func")
    if func is not None:
        if not callable(func):
            raise DefinitionError(f"Capability 'func' must be callable, got {func!r}")
        capabilities.append(Capability(_callable_name(func, explicit), func=func))

    if not capabilities:
        raise DefinitionError("Capability spec needs at least one of 'func', 'get' or 'set'")

    return entry.get("matches", MISSING), capabilities


def as_spec_list(specs: Any) -> list[Any]:
    """Wrap a single spec so it can be iterated like a list of specs."""
    if isinstance(specs, Sequence) and not isinstance(specs, (str, bytes)):
        return list(specs)
    return [specs]
