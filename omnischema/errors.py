"""
Error types for OmniSchema.

This module defines all exception types raised by the engine:
- OmniSchemaError: Base exception
- DefinitionError: Bad type or schema definitions
- TypeNotFoundError: Unknown type name in a template
- EnumerationSyntaxError: Malformed enumeration option spec
- TypeCycleError: Base type chain would loop back on itself
- PredicateError: Malformed match predicate
- CapabilityNotImplementedError: Capability missing on a type/field/schema

Invariants:
    - All errors inherit from OmniSchemaError
    - Errors include context for debugging
    - Coercion problems are never raised as errors
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class OmniSchemaError(Exception):
    """Base exception for all OmniSchema errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "OMNISCHEMA_ERROR"
        self.details = details or {}


class DefinitionError(OmniSchemaError):
    """A type or schema definition is invalid.

    Raised when:
    - A template value cannot be compiled into a field
    - A schema parent is not a schema
    - A type attribute bag is not a mapping
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "DEFINITION_ERROR", details=details)


class TypeNotFoundError(DefinitionError):
    """Unknown type name.

    Includes suggestions for similar registered type names.

    Attributes:
        type_name: The name that failed to resolve
        field_name: The field being compiled, if any
        suggestions: Similar type names
    """

    def __init__(
        self,
        type_name: str,
        field_name: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        suggestions = suggestions or []
        msg = f"Could not locate type named '{type_name}'"
        if field_name:
            msg += f" for field '{field_name}'"
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"

        super().__init__(
            msg,
            code="TYPE_NOT_FOUND",
            details={
                "type_name": type_name,
                "field_name": field_name,
                "suggestions": suggestions,
            },
        )
        self.type_name = type_name
        self.field_name = field_name
        self.suggestions = suggestions


class EnumerationSyntaxError(DefinitionError):
    """Enumeration option spec does not follow "Label:value|Label2:value2"."""

    def __init__(self, message: str, option_spec: Any = None) -> None:
        super().__init__(
            message,
            code="ENUMERATION_SYNTAX",
            details={"option_spec": option_spec},
        )
        self.option_spec = option_spec


class TypeCycleError(DefinitionError):
    """Base type chain would contain the type being defined."""

    def __init__(self, type_name: str, base_name: str) -> None:
        super().__init__(
            f"Type '{type_name}' cannot use '{base_name}' as its base type: "
            f"'{base_name}' already inherits from '{type_name}'",
            code="TYPE_CYCLE",
            details={"type_name": type_name, "base_name": base_name},
        )
        self.type_name = type_name
        self.base_name = base_name


class PredicateError(OmniSchemaError, ValueError):
    """Match predicate cannot be interpreted.

    Raised when:
    - A mapping mixes $or/$and/$not with ordinary keys
    - A mapping carries more than one operator
    - $or/$and are not given a sequence
    """

    def __init__(self, message: str, spec: Any = None) -> None:
        super().__init__(message, code="PREDICATE_ERROR", details={"spec": repr(spec)})
        self.spec = spec


class CapabilityNotImplementedError(OmniSchemaError, AttributeError):
    """Capability has not been installed for this type.

    Subclasses AttributeError so ``hasattr`` and ``getattr(obj, name, default)``
    keep working on types, fields and schemas.

    Attributes:
        capability: Name of the missing capability
        type_name: Name of the type (or schema) it was requested on
    """

    def __init__(self, capability: str, type_name: str) -> None:
        super().__init__(
            f"'{capability}' has not been implemented for type '{type_name}'",
            code="CAPABILITY_NOT_IMPLEMENTED",
            details={"capability": capability, "type_name": type_name},
        )
        self.capability = capability
        self.type_name = type_name
        # AttributeError.name feeds the interpreter's own error hints
        self.name = capability
