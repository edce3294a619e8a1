"""
Type Registry for OmniSchema.

The TypeRegistry is the central authority for all data types and
installed capabilities. It provides:
- Definition (and idempotent re-definition) of data types
- Lookup by name, with suggestions for misspelt names
- Capability installation on schemas, fields and matching types
- Registry description for diagnostics

Invariants:
    - Type names are unique; re-defining a name merges attributes
    - A type's base chain never changes and never loops
    - Type capability installs apply in the order given; the last
      install of a name on a given type wins
    - Schema and field capability tables are shared by every schema and
      field compiled against this registry

How to change safely:
    - Providers register general capabilities first, specific ones later
    - Define provider attributes before installing capabilities that
      match on them

Example:
    >>> registry = TypeRegistry()
    >>> seed_builtin_types(registry)
    >>> registry.install_capability(Target.TYPE, {"matches": "enum_values", "func": options})
    >>> registry.get("YesNo").options()
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from difflib import get_close_matches
from typing import Any

from .builtin_types import seed_builtin_types
from .capabilities import (
    MISSING,
    Capability,
    CapabilityTable,
    Target,
    as_spec_list,
    parse_capability_spec,
)
from .config import Settings
from .errors import DefinitionError, TypeCycleError, TypeNotFoundError
from .predicates import compile_predicate
from .types import DataType, parse_enumeration

logger = logging.getLogger(__name__)

# Global registry instance
_global_registry: TypeRegistry | None = None
_registry_lock = threading.Lock()


class TypeRegistry:
    """Registry of data types and capability tables.

    Thread-safety:
        - Definitions and installs are serialised by an internal lock
        - Lookups are lock-free

    Example:
        >>> registry = TypeRegistry()
        >>> registry.define_native_type("String", str, {"default_value": ""})
        >>> registry.define_string_type("Email")
        >>> registry.get("Email").base_type.name
        'String'
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._types: dict[str, DataType] = {}
        self._schema_capabilities = CapabilityTable()
        self._field_capabilities = CapabilityTable()
        # Re-entrant: user predicates may call back into the registry during installs
        self._lock = threading.RLock()

    @property
    def schema_capabilities(self) -> CapabilityTable:
        return self._schema_capabilities

    @property
    def field_capabilities(self) -> CapabilityTable:
        return self._field_capabilities

    def define_type(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        base_type: DataType | str | None = None,
        to_string: Callable[[Any], Any] | None = None,
        from_string: Callable[[Any], Any] | None = None,
    ) -> DataType:
        """Define a new type or merge attributes into an existing one.

        Args:
            name: Type name
            attributes: Attributes to attach (or merge)
            base_type: Base type (descriptor or registered name); only used
                when the type is new
            to_string: Value -> string marshaller, installed as "to_string"
            from_string: String -> value marshaller, installed as "from_string"

        Returns:
            The (new or existing) DataType

        Raises:
            TypeNotFoundError: If base_type names an unknown type
            TypeCycleError: If base_type already inherits from ``name``
            DefinitionError: If arguments are malformed
        """
        for label, marshaller in (("to_string", to_string), ("from_string", from_string)):
            if marshaller is not None and not callable(marshaller):
                raise DefinitionError(f"{label} for type '{name}' must be callable")

        with self._lock:
            base = self._resolve_base(name, base_type) if base_type is not None else None
            data_type = self._types.get(name)

            if data_type is not None:
                if base is not None and base is not data_type.base_type:
                    logger.warning(
                        f"Ignoring base type '{base.name}' for existing type '{name}'"
                    )
                if attributes:
                    data_type.merge_attributes(attributes)
                logger.debug(f"Merged attributes into type: {name}")
            else:
                data_type = DataType(name, attributes, base)
                self._types[name] = data_type
                logger.debug(
                    f"Defined type: {name}"
                    + (f" (base_type={base.name})" if base is not None else "")
                )

            if to_string is not None:
                data_type.install(Capability("to_string", func=staticmethod(to_string)))
            if from_string is not None:
                data_type.install(Capability("from_string", func=staticmethod(from_string)))

        return data_type

    def _resolve_base(self, name: str, base_type: DataType | str) -> DataType:
        if isinstance(base_type, str):
            base = self.require(base_type)
        elif isinstance(base_type, DataType):
            base = base_type
            if self._types.get(base.name) is not base:
                raise DefinitionError(
                    f"Base type '{base.name}' for '{name}' is not registered in this registry"
                )
        else:
            raise DefinitionError(
                f"Base type for '{name}' must be a DataType or type name, got {base_type!r}"
            )

        if base.is_a(name):
            raise TypeCycleError(name, base.name)
        return base

    def define_native_type(
        self,
        name: str,
        py_type: type | tuple[type, ...],
        attributes: Mapping[str, Any] | None = None,
        to_string: Callable[[Any], Any] | None = None,
        from_string: Callable[[Any], Any] | None = None,
    ) -> DataType:
        """Define a primitive type backed directly by a Python type."""
        return self.define_type(
            name, {"py_type": py_type, **(attributes or {})}, None, to_string, from_string
        )

    def define_string_type(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        to_string: Callable[[Any], Any] | None = None,
        from_string: Callable[[Any], Any] | None = None,
    ) -> DataType:
        return self.define_type(name, attributes, "String", to_string, from_string)

    def define_numeric_type(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        to_string: Callable[[Any], Any] | None = None,
        from_string: Callable[[Any], Any] | None = None,
    ) -> DataType:
        return self.define_type(name, attributes, "Number", to_string, from_string)

    def define_boolean_type(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        to_string: Callable[[Any], Any] | None = None,
        from_string: Callable[[Any], Any] | None = None,
    ) -> DataType:
        return self.define_type(name, attributes, "Boolean", to_string, from_string)

    def define_object_type(
        self,
        name: str,
        py_class: type,
        attributes: Mapping[str, Any] | None = None,
        base_type: DataType | str | None = None,
        to_string: Callable[[Any], Any] | None = None,
        from_string: Callable[[Any], Any] | None = None,
    ) -> DataType:
        """Define a type whose values are instances of ``py_class``."""
        merged = {"py_type": py_class, "py_class_name": py_class.__name__, **(attributes or {})}
        return self.define_type(name, merged, base_type, to_string, from_string)

    def define_enumeration_type(
        self,
        name: str,
        option_spec: str,
        attributes: Mapping[str, Any] | None = None,
        base_type: DataType | str | None = None,
    ) -> DataType:
        """Define an enumerated type from a "Label:value|Label2:value2" spec.

        Raises:
            EnumerationSyntaxError: If option_spec is malformed
            DefinitionError: If base_type is missing
        """
        if base_type is None:
            raise DefinitionError(f"Enumeration '{name}' must declare a base type")
        values = parse_enumeration(option_spec)
        return self.define_type(name, {"enum_values": values, **(attributes or {})}, base_type)

    def get(self, name: str) -> DataType | None:
        """Get a type by name."""
        return self._types.get(name)

    def require(self, name: str, field_name: str | None = None) -> DataType:
        """Get a type by name or raise.

        Raises:
            TypeNotFoundError: With close-match suggestions
        """
        data_type = self._types.get(name)
        if data_type is None:
            suggestions = get_close_matches(name, list(self._types), n=3)
            raise TypeNotFoundError(name, field_name, suggestions)
        return data_type

    def names(self) -> list[str]:
        return list(self._types)

    def find(self, spec: Any = None) -> list[DataType]:
        """All types satisfying a match spec, in definition order."""
        predicate = compile_predicate(spec)
        return [t for t in list(self._types.values()) if predicate.evaluate(t)]

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[DataType]:
        yield from list(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def install_capability(self, target: Target | str, specs: Any) -> None:
        """Install capabilities on schemas, fields or matching types.

        Args:
            target: Target.SCHEMA, Target.FIELD or Target.TYPE (or its value)
            specs: One capability spec or a sequence of them, applied in order

        Raises:
            DefinitionError: If a spec is malformed
            PredicateError: If a match predicate is malformed
        """
        target = Target(target)
        with self._lock:
            for entry in as_spec_list(specs):
                match_spec, capabilities = parse_capability_spec(entry)
                if target is Target.TYPE:
                    self._install_on_types(match_spec, capabilities)
                    continue

                table = (
                    self._schema_capabilities
                    if target is Target.SCHEMA
                    else self._field_capabilities
                )
                if match_spec is not MISSING:
                    logger.debug(
                        f"Ignoring 'matches' for {target.value} capability install: "
                        f"{[c.name for c in capabilities]}"
                    )
                for capability in capabilities:
                    table.install(capability)
                    logger.debug(f"Installed {target.value} capability: {capability.name}")

    def _install_on_types(self, match_spec: Any, capabilities: list[Capability]) -> None:
        predicate = None if match_spec is MISSING else compile_predicate(match_spec)
        installed: list[str] = []
        for data_type in list(self._types.values()):
            if predicate is not None and not predicate.evaluate(data_type):
                continue
            for capability in capabilities:
                data_type.install(capability)
            installed.append(data_type.name)
        logger.debug(
            f"Installed type capabilities {[c.name for c in capabilities]} on {installed}"
        )

    def mixin(
        self,
        on_schema: Any = None,
        on_field: Any = None,
        on_type: Any = None,
    ) -> None:
        """Install schema, field and type capabilities in one call.

        Example:
            >>> registry.mixin(
            ...     on_schema={"func": get_validator},
            ...     on_type=[{"matches": "joi_spec", "func": get_joi_field}],
            ... )
        """
        if on_schema is not None:
            self.install_capability(Target.SCHEMA, on_schema)
        if on_field is not None:
            self.install_capability(Target.FIELD, on_field)
        if on_type is not None:
            self.install_capability(Target.TYPE, on_type)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "types": [t.to_dict() for t in self._types.values()],
            "schema_capabilities": sorted(self._schema_capabilities.names()),
            "field_capabilities": sorted(self._field_capabilities.names()),
        }

    def to_json(self, indent: int | None = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)


def get_registry() -> TypeRegistry:
    """Get the global type registry, seeding it on first use."""
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            settings = Settings()
            registry = TypeRegistry()
            seed_builtin_types(registry, include_derived=settings.seed_derived_types)
            _global_registry = registry
        return _global_registry


def reset_registry() -> None:
    """Reset the global registry (for testing only)."""
    global _global_registry
    with _registry_lock:
        _global_registry = None


def define_type(
    name: str,
    attributes: Mapping[str, Any] | None = None,
    base_type: DataType | str | None = None,
    to_string: Callable[[Any], Any] | None = None,
    from_string: Callable[[Any], Any] | None = None,
) -> DataType:
    """Define or extend a type in the global registry."""
    return get_registry().define_type(name, attributes, base_type, to_string, from_string)


def install_capability(target: Target | str, specs: Any) -> None:
    """Install capabilities in the global registry."""
    get_registry().install_capability(target, specs)


def mixin(on_schema: Any = None, on_field: Any = None, on_type: Any = None) -> None:
    """Install schema, field and type capabilities in the global registry."""
    get_registry().mixin(on_schema=on_schema, on_field=on_field, on_type=on_type)
