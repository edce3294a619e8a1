"""
OmniSchema - declare a data shape once, let capabilities attach to it.

This package provides a runtime schema and capability-dispatch engine:
- Type registry (DataType, TypeRegistry) with single-parent inheritance
- Schema compiler (compile_schema) producing Schema and Field objects
- Capability installation (install_capability, mixin) gated by match
  predicates (matches)
- Record projection and coercion (sanitize, convert, get_default_record)

Example:
    >>> from omnischema import Target, compile_schema, install_capability
    >>>
    >>> # A provider teaches every enumeration to list its options
    >>> install_capability(Target.TYPE, {
    ...     "matches": "enum_values",
    ...     "func": lambda self: [ev.value for ev in self.enum_values],
    ...     "name": "options",
    ... })
    >>>
    >>> Contact = compile_schema({
    ...     "email": {"type": "Email", "db": {"unique": True}},
    ...     "favorite": {"type": "YesNo", "label": "Favorite?"},
    ...     "age": {"type": "Integer", "validation": {"min": 13}},
    ... }, "Contacts")
    >>> Contact.convert({"age": "42"})
    {'age': 42}
    >>> Contact.get_field("favorite").type.options()
    ['false', 'true']

Invariants:
    - The core performs no I/O and validates nothing itself
    - Invoking a capability that was never installed is an error

Version: 1.0.0
"""

__version__ = "1.0.0"

from .capabilities import MISSING, Capability, CapabilityTable, Target
from .compiler import compile_schema
from .config import Settings, configure_logging
from .errors import (
    CapabilityNotImplementedError,
    DefinitionError,
    EnumerationSyntaxError,
    OmniSchemaError,
    PredicateError,
    TypeCycleError,
    TypeNotFoundError,
)
from .predicates import (
    AllOf,
    AnyOf,
    Exists,
    Not,
    Predicate,
    StructuralMatch,
    compile_predicate,
    matches,
)
from .registry import (
    TypeRegistry,
    define_type,
    get_registry,
    install_capability,
    mixin,
    reset_registry,
)
from .builtin_types import seed_builtin_types
from .schema import Field, Schema
from .types import DataType, EnumValue, parse_enumeration

__all__ = [
    # Version
    "__version__",
    # Types
    "DataType",
    "EnumValue",
    "parse_enumeration",
    "seed_builtin_types",
    # Registry
    "TypeRegistry",
    "get_registry",
    "reset_registry",
    "define_type",
    "install_capability",
    "mixin",
    # Capabilities
    "Capability",
    "CapabilityTable",
    "Target",
    "MISSING",
    # Predicates
    "matches",
    "compile_predicate",
    "Exists",
    "AllOf",
    "AnyOf",
    "Not",
    "StructuralMatch",
    "Predicate",
    # Schemas
    "Schema",
    "Field",
    "compile_schema",
    # Config
    "Settings",
    "configure_logging",
    # Errors
    "OmniSchemaError",
    "DefinitionError",
    "TypeNotFoundError",
    "EnumerationSyntaxError",
    "TypeCycleError",
    "PredicateError",
    "CapabilityNotImplementedError",
]
