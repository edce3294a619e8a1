"""
Core type definitions for the OmniSchema type system.

This module defines the building blocks of the type registry:
- DataType: A named type descriptor with an attribute bag, a capability
  table and at most one base type
- EnumValue: One label/value option of an enumerated type
- parse_enumeration: Parser for the "Label:value|Label2:value2" grammar

Invariants:
    - A DataType's name and base type never change after creation
    - Attribute and capability lookup fall back through the base chain
    - Attribute merges are last-writer-wins per top-level key

How to change safely:
    - Add attributes through TypeRegistry.define_type, never by mutating
      ``attributes`` directly
    - Keep provider attributes inside a namespaced key (e.g. "html_spec")

Example:
    >>> number = DataType("Number", {"py_type": (int, float), "default_value": 0})
    >>> integer = DataType("Integer", {"precision": 0}, base_type=number)
    >>> integer.lookup("default_value")
    0
"""

from __future__ import annotations

import copy
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .capabilities import MISSING, Capability, CapabilityHost, CapabilityTable
from .errors import DefinitionError, EnumerationSyntaxError


@dataclass(frozen=True)
class EnumValue:
    """One option of an enumerated type.

    Attributes:
        label: Human-readable label
        value: Stored value (the label itself when no value was given)
    """

    label: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "value": self.value}


def parse_enumeration(option_spec: str) -> tuple[EnumValue, ...]:
    """Parse an enumeration option spec.

    Args:
        option_spec: Options separated by "|", each "Label" or "Label:value"

    Returns:
        Tuple of EnumValue in declaration order

    Raises:
        EnumerationSyntaxError: If the spec is empty or an option is malformed

    Example:
        >>> parse_enumeration("No:false|Yes:true")
        (EnumValue(label='No', value='false'), EnumValue(label='Yes', value='true'))
    """
    if not isinstance(option_spec, str) or not option_spec.strip():
        raise EnumerationSyntaxError(
            f"Enumeration option spec must be a non-empty string, got {option_spec!r}",
            option_spec,
        )

    values: list[EnumValue] = []
    for position, option in enumerate(option_spec.split("|"), start=1):
        parts = [part.strip() for part in option.split(":")]
        if len(parts) > 2:
            raise EnumerationSyntaxError(
                f"Option {position} ('{option}') has more than one ':' separator",
                option_spec,
            )
        label = parts[0]
        if not label:
            raise EnumerationSyntaxError(
                f"Option {position} ('{option}') has an empty label", option_spec
            )
        value = parts[1] if len(parts) == 2 else label
        values.append(EnumValue(label=label, value=value))

    return tuple(values)


class DataType(CapabilityHost):
    """A named node in the type hierarchy.

    Attributes are free-form (``py_type``, ``enum_values``, ``default_value``,
    provider namespaces, ...). Capabilities are installed by providers
    through the registry and invoked as methods::

        registry.get("Email").to_string("a@b.c")

    Invariants:
        - ``name`` and ``base_type`` are fixed at construction
        - The base chain is acyclic (guarded by TypeRegistry)
    """

    def __init__(
        self,
        name: str,
        attributes: Mapping[str, Any] | None = None,
        base_type: DataType | None = None,
    ) -> None:
        if not name or not isinstance(name, str):
            raise DefinitionError(f"Type name must be a non-empty string, got {name!r}")
        if base_type is not None and not isinstance(base_type, DataType):
            raise DefinitionError(f"Base type of '{name}' must be a DataType, got {base_type!r}")
        self._name = name
        self._base_type = base_type
        self._attributes: dict[str, Any] = {}
        self._capabilities = CapabilityTable()
        if attributes:
            self.merge_attributes(attributes)

    @property
    def name(self) -> str:
        return self._name

    @property
    def base_type(self) -> DataType | None:
        return self._base_type

    @property
    def attributes(self) -> Mapping[str, Any]:
        """Read-only view of this type's own attributes (no inherited ones)."""
        return MappingProxyType(self._attributes)

    @property
    def capabilities(self) -> CapabilityTable:
        """This type's own capability table (no inherited entries)."""
        return self._capabilities

    @property
    def class_name(self) -> str:
        """Name of the primitive this type ultimately derives from."""
        node = self
        while node._base_type is not None:
            node = node._base_type
        return node._name

    @property
    def py_type(self) -> Any:
        """Native Python representation (a type or tuple of types), or None."""
        value = self._inherited_attribute("py_type")
        return None if value is MISSING else value

    @property
    def enum_values(self) -> tuple[EnumValue, ...] | None:
        """Enumeration options, or None for non-enumerated types."""
        value = self._inherited_attribute("enum_values")
        return None if value is MISSING or value is None else tuple(value)

    @property
    def is_enumeration(self) -> bool:
        return bool(self.enum_values)

    @property
    def default_value(self) -> Any:
        """Type-level default; producers are invoked, literals are copied. MISSING when absent."""
        value = self._inherited_attribute("default_value")
        if callable(value):
            return value()
        if value is MISSING:
            return value
        return copy.deepcopy(value)

    def lineage(self) -> Iterator[DataType]:
        """Iterate this type followed by its base chain."""
        node: DataType | None = self
        while node is not None:
            yield node
            node = node._base_type

    def is_a(self, other: DataType | str) -> bool:
        """Whether ``other`` (type or name) is this type or one of its bases."""
        name = other.name if isinstance(other, DataType) else other
        return any(node._name == name for node in self.lineage())

    def merge_attributes(self, attributes: Mapping[str, Any]) -> None:
        """Merge attributes into this type (last writer wins per key)."""
        if not isinstance(attributes, Mapping):
            raise DefinitionError(
                f"Attributes for type '{self._name}' must be a mapping, got {attributes!r}"
            )
        self._attributes.update(attributes)

    def install(self, capability: Capability) -> None:
        """Install a capability on this type only."""
        self._capabilities.install(capability)

    def is_native(self, value: Any) -> bool:
        """Whether ``value`` already uses this type's native representation.

        ``bool`` never counts as a number unless the type is itself boolean.
        """
        py_type = self.py_type
        if py_type is None:
            return False
        types = py_type if isinstance(py_type, tuple) else (py_type,)
        if isinstance(value, bool) and bool not in types:
            return False
        return isinstance(value, types)

    def _inherited_attribute(self, name: str) -> Any:
        for node in self.lineage():
            if name in node._attributes:
                return node._attributes[name]
        return MISSING

    def _find_member(self, name: str) -> Any:
        for node in self.lineage():
            capability = node._capabilities.get(name)
            if capability is not None:
                return capability
            if name in node._attributes:
                return node._attributes[name]
        return MISSING

    def _dispatch_name(self) -> str:
        return self._name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "name": self._name,
            "base_type": self._base_type.name if self._base_type else None,
            "attributes": sorted(self._attributes),
            "capabilities": sorted(self._capabilities.names()),
        }
        if self.enum_values:
            result["enum_values"] = [ev.to_dict() for ev in self.enum_values]
        return result

    def __repr__(self) -> str:
        base = f", base_type={self._base_type.name!r}" if self._base_type else ""
        return f"DataType({self._name!r}{base})"
