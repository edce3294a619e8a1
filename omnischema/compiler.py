"""
Schema compiler.

Turns a declarative template into a Schema of Fields. Template values may
be written in any of these forms::

    {
        "first_name": "FirstName",                        # type name
        "last_name": registry.get("LastName"),            # DataType
        "phones": [{"type": "Phone"}],                    # array field
        "email": {"type": "Email", "db": {"unique": True}},
        "age": {"type": "Integer", "validation": {"min": 13}},
        "address": AddressSchema,                         # composed schema
    }

Invariants:
    - Field order follows template order
    - Every type name resolves in the schema's registry, or compile fails
    - Mapping members other than "type" and "label" are copied verbatim
      onto the field

How to change safely:
    - New template shorthands must not change the meaning of existing ones
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .errors import DefinitionError
from .schema import Field, Schema
from .types import DataType

if TYPE_CHECKING:
    from .registry import TypeRegistry

logger = logging.getLogger(__name__)

_RESERVED_KEYS = ("type", "label")


def compile_schema(
    template: Mapping[str, Any],
    collection_name: str | None = None,
    parent_schema: Schema | None = None,
    registry: TypeRegistry | None = None,
) -> Schema:
    """Compile a schema template.

    Args:
        template: Mapping of field name to field spec
        collection_name: Optional entity/collection name
        parent_schema: Schema to extend
        registry: Registry to resolve type names in (defaults to the
            parent's registry, then the global registry)

    Returns:
        Compiled Schema

    Raises:
        TypeNotFoundError: If a type name is not registered
        DefinitionError: If the template is malformed

    Example:
        >>> Parent = compile_schema({"a": "String"})
        >>> Child = compile_schema({"b": "Number"}, "Child", Parent)
        >>> Child.get_field_list()
        ('a', 'b')
    """
    if not isinstance(template, Mapping):
        raise DefinitionError(f"Schema template must be a mapping, got {template!r}")

    schema = Schema(collection_name, parent_schema, registry)
    for field_name, spec in template.items():
        schema._add_field(_compile_field(schema, field_name, spec))

    logger.debug(
        f"Compiled schema {schema.name} with fields {list(schema.get_field_list())}"
        + (f" (extends {parent_schema.name})" if parent_schema is not None else "")
    )
    return schema


def _compile_field(schema: Schema, field_name: Any, spec: Any) -> Field:
    if not isinstance(field_name, str) or not field_name:
        raise DefinitionError(f"Field names must be non-empty strings, got {field_name!r}")

    is_array = False
    if isinstance(spec, (list, tuple)):
        if len(spec) != 1:
            raise DefinitionError(
                f"Array field '{field_name}' must wrap exactly one type spec, got {len(spec)}"
            )
        is_array = True
        spec = spec[0]

    label = None
    extras: dict[str, Any] = {}
    if isinstance(spec, Mapping):
        if "type" not in spec:
            raise DefinitionError(f"Field '{field_name}' is missing a 'type'")
        field_type = _resolve_type(schema, field_name, spec["type"])
        label = spec.get("label")
        extras = {key: value for key, value in spec.items() if key not in _RESERVED_KEYS}
    else:
        field_type = _resolve_type(schema, field_name, spec)

    field = Field(schema, field_name, field_type, is_array, label)
    field.merge_attributes(extras)
    return field


def _resolve_type(schema: Schema, field_name: str, type_ref: Any) -> DataType | Schema:
    if isinstance(type_ref, (DataType, Schema)):
        return type_ref
    if isinstance(type_ref, str):
        return schema.registry.require(type_ref, field_name=field_name)
    raise DefinitionError(
        f"Field '{field_name}' type must be a type name, DataType or Schema, got {type_ref!r}"
    )
