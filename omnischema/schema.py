"""
Schema and field definitions.

This module provides the compiled form of a schema template:
- Field: One declared member of a schema (type, cardinality, label, extras)
- Schema: Ordered fields with optional single-parent inheritance

Schemas also carry the record projection and conversion operations:
field-list resolution, sanitizing projection, default records and
best-effort type coercion of raw input.

Invariants:
    - Fields are created once by the compiler and owned by one schema
    - Field lists are computed once per schema and projection kind
    - The parent chain is acyclic (parents exist before their children)
    - Coercion never raises for ordinary type mismatches

Example:
    >>> Person = Schema.compile({"name": "FullName", "age": "Integer"}, "People")
    >>> Person.convert({"age": "42"})
    {'age': 42}
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import re
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from .capabilities import MISSING, CapabilityHost, lookup_key, resolve_path
from .errors import DefinitionError
from .registry import get_registry
from .types import DataType

if TYPE_CHECKING:
    from .registry import TypeRegistry

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[A-Z]?[a-z]+|[A-Z]+(?![a-z])|\d+")


def label_from_name(name: str) -> str:
    """Derive a display label: "firstName" -> "First name"."""
    words = _WORD_RE.findall(name)
    if not words:
        return name
    return " ".join(words).capitalize()


def _jsonable(value: Any) -> Any:
    if isinstance(value, (DataType, Schema)):
        return value.name
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if callable(value):
        return f"<callable {getattr(value, '__qualname__', type(value).__name__)}>"
    return str(value)


class Field(CapabilityHost):
    """A field within a schema.

    Template extras (``required``, ``validation``, ``ui``, ``db``,
    ``default``, provider namespaces) are kept verbatim and read back as
    attributes or dotted paths::

        field.db["unique"]
        field.lookup("ui.presentation")

    Attributes:
        schema: Owning schema
        name: Field name, unique within the owning schema
        type: DataType, or Schema for composed records
        is_array: Whether the field holds a list of values
        label: Explicit label, or one derived from the name
    """

    def __init__(
        self,
        schema: Schema,
        name: str,
        type: DataType | Schema,
        is_array: bool = False,
        label: str | None = None,
    ) -> None:
        if not name or not isinstance(name, str):
            raise DefinitionError(f"Field name must be a non-empty string, got {name!r}")
        if not isinstance(type, (DataType, Schema)):
            raise DefinitionError(f"Field '{name}' type must be a DataType or Schema, got {type!r}")
        self._schema = schema
        self._name = name
        self._type = type
        self._is_array = bool(is_array)
        self._label = label
        self._attributes: dict[str, Any] = {}

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> DataType | Schema:
        return self._type

    @property
    def is_array(self) -> bool:
        return self._is_array

    @property
    def label(self) -> str:
        return self._label if self._label else label_from_name(self._name)

    @property
    def attributes(self) -> Mapping[str, Any]:
        """Template extras attached to this field."""
        return dict(self._attributes)

    @property
    def is_schema_reference(self) -> bool:
        return isinstance(self._type, Schema)

    @property
    def is_required(self) -> bool:
        return bool(
            resolve_path(self._attributes, "required", False)
            or resolve_path(self._attributes, "validation.required", False)
        )

    @property
    def min_val(self) -> Any:
        return resolve_path(self._attributes, "validation.min", None)

    @property
    def max_val(self) -> Any:
        return resolve_path(self._attributes, "validation.max", None)

    @property
    def ui_exclude(self) -> bool:
        return bool(resolve_path(self._attributes, "ui.exclude", False))

    @property
    def has_default(self) -> bool:
        return self._attributes.get("default", MISSING) is not MISSING

    @property
    def default(self) -> Any:
        """Field default; producers are invoked, literals are copied. MISSING when absent."""
        value = self._attributes.get("default", MISSING)
        if callable(value):
            return value()
        if value is MISSING:
            return value
        return copy.deepcopy(value)

    def merge_attributes(self, attributes: Mapping[str, Any]) -> None:
        self._attributes.update(attributes)

    def convert_value(self, value: Any) -> Any:
        """Coerce a scalar toward this field type's native representation.

        None is returned unchanged. A value that is not already native is
        stringified and passed through the type's ``from_string``
        capability when it has one. A value that cannot be coerced is
        returned unchanged.
        """
        if value is None:
            return None
        data_type = self._type
        if isinstance(data_type, Schema) or data_type.is_native(value):
            return value
        if not data_type.has_capability("from_string"):
            return value
        try:
            return data_type.invoke("from_string", str(value))
        except (ValueError, TypeError) as e:
            logger.debug(
                f"Leaving {value!r} unconverted for field '{self._name}' "
                f"({data_type.name}): {e}"
            )
            return value

    def _find_member(self, name: str) -> Any:
        if name in self._attributes:
            return self._attributes[name]
        capability = self._schema.registry.field_capabilities.get(name)
        return MISSING if capability is None else capability

    def _dispatch_name(self) -> str:
        return self._type.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "name": self._name,
            "type": self._type.name,
            "label": self.label,
        }
        if self._is_array:
            result["is_array"] = True
        if self.is_schema_reference:
            result["is_schema_reference"] = True
        if self._attributes:
            result["attributes"] = _jsonable(self._attributes)
        return result

    def __repr__(self) -> str:
        type_name = f"[{self._type.name}]" if self._is_array else self._type.name
        return f"Field({self._name!r}, {type_name})"


class Schema(CapabilityHost):
    """An ordered set of fields, optionally extending one parent schema.

    Schemas are built by :func:`omnischema.compiler.compile_schema` (or
    :meth:`Schema.compile`) and are not modified afterwards.

    Attributes:
        collection_name: Optional entity/collection name
        parent_schema: Schema this one extends, if any
        fields: Own field declarations, in declaration order
        registry: Registry supplying types and capability tables
    """

    def __init__(
        self,
        collection_name: str | None = None,
        parent_schema: Schema | None = None,
        registry: TypeRegistry | None = None,
    ) -> None:
        if parent_schema is not None and not isinstance(parent_schema, Schema):
            raise DefinitionError(f"Parent schema must be a Schema, got {parent_schema!r}")
        if registry is None:
            registry = parent_schema.registry if parent_schema is not None else get_registry()
        self._registry = registry
        self._collection_name = collection_name
        self._parent_schema = parent_schema
        self._fields: dict[str, Field] = {}
        self._has_children = False
        self._field_lists: dict[tuple[bool, bool], tuple[str, ...]] = {}
        if parent_schema is not None:
            parent_schema._has_children = True

    @classmethod
    def compile(
        cls,
        template: Mapping[str, Any],
        collection_name: str | None = None,
        parent_schema: Schema | None = None,
        registry: TypeRegistry | None = None,
    ) -> Schema:
        """Compile a template into a Schema. See compiler.compile_schema."""
        from .compiler import compile_schema

        return compile_schema(template, collection_name, parent_schema, registry)

    @property
    def name(self) -> str:
        return self._collection_name or "Schema"

    @property
    def collection_name(self) -> str | None:
        return self._collection_name

    @property
    def parent_schema(self) -> Schema | None:
        return self._parent_schema

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def fields(self) -> Mapping[str, Field]:
        return dict(self._fields)

    @property
    def has_children(self) -> bool:
        return self._has_children

    @property
    def is_subclass(self) -> bool:
        return self._parent_schema is not None

    @property
    def root_schema(self) -> Schema:
        schema = self
        while schema._parent_schema is not None:
            schema = schema._parent_schema
        return schema

    def _add_field(self, field: Field) -> None:
        if field.schema is not self:
            raise DefinitionError(f"Field '{field.name}' belongs to another schema")
        self._fields[field.name] = field

    def get_field(self, name: str) -> Field | None:
        """Get a field by name, searching parent schemas when not declared here."""
        field = self._fields.get(name)
        if field is None and self._parent_schema is not None:
            return self._parent_schema.get_field(name)
        return field

    def get_field_list(self, ui_only: bool = False, exclude_inherited: bool = False) -> tuple[str, ...]:
        """Field names in order: inherited names first, then own declarations.

        Args:
            ui_only: Drop fields flagged ``ui.exclude``
            exclude_inherited: Only this schema's own declarations

        Returns:
            Tuple of field names (computed once per argument combination)
        """
        key = (bool(ui_only), bool(exclude_inherited))
        cached = self._field_lists.get(key)
        if cached is not None:
            return cached

        names: list[str] = []
        if self._parent_schema is not None and not exclude_inherited:
            names.extend(self._parent_schema.get_field_list())
        # Re-declared names keep their inherited position
        names.extend(name for name in self._fields if name not in names)

        if ui_only:
            names = [name for name in names if not self.get_field(name).ui_exclude]

        cached = tuple(names)
        self._field_lists[key] = cached
        return cached

    def iter_fields(self, ui_only: bool = False, exclude_inherited: bool = False) -> Iterator[Field]:
        for name in self.get_field_list(ui_only, exclude_inherited):
            field = self.get_field(name)
            if isinstance(field, Field) and not (ui_only and field.ui_exclude):
                yield field

    def for_each_field(
        self,
        callback: Callable[[Field], Any],
        ui_only: bool = False,
        exclude_inherited: bool = False,
    ) -> None:
        """Call ``callback`` with each field, in field-list order."""
        for field in self.iter_fields(ui_only, exclude_inherited):
            callback(field)

    def sanitize(self, record: Any, ui_only: bool = False) -> dict[str, Any] | None:
        """Project a record onto this schema's fields.

        Only names in the field list that are present on the record are
        copied; schema-typed fields are sanitized recursively.

        Args:
            record: Mapping, or an object with attributes
            ui_only: Also drop fields flagged ``ui.exclude``

        Returns:
            New dict, or None if record is not object-like
        """
        if not isinstance(record, Mapping) and (
            not hasattr(record, "__dict__") or isinstance(record, type)
        ):
            return None

        result: dict[str, Any] = {}
        for name in self.get_field_list(ui_only):
            value = lookup_key(record, name)
            if value is MISSING:
                continue
            field = self.get_field(name)
            if isinstance(field.type, Schema):
                if field.is_array and isinstance(value, (list, tuple)):
                    value = [field.type.sanitize(item, ui_only) for item in value]
                else:
                    value = field.type.sanitize(value, ui_only)
            result[name] = value
        return result

    def convert(self, record: Any, sanitize: bool = False) -> dict[str, Any] | None:
        """Coerce record values toward each field's native representation.

        Args:
            record: Mapping of raw values
            sanitize: Drop keys without a field, and non-list values of
                array fields

        Returns:
            New dict, or None if record is not a mapping
        """
        if not isinstance(record, Mapping):
            return None

        result: dict[str, Any] = {}
        for name, value in record.items():
            field = self.get_field(name)
            if field is None:
                if not sanitize:
                    result[name] = value
                continue

            if not field.is_array:
                result[name] = field.convert_value(value)
            elif isinstance(value, (list, tuple)):
                result[name] = [field.convert_value(item) for item in value]
            elif not sanitize:
                result[name] = [field.convert_value(value)]
        return result

    def get_default_record(self, ui_only: bool = False) -> dict[str, Any]:
        """Build a record populated with field and type defaults."""
        record: dict[str, Any] = {}
        for field in self.iter_fields(ui_only):
            if field.is_array:
                record[field.name] = []
                continue
            if field.has_default:
                record[field.name] = field.default
                continue
            if isinstance(field.type, Schema):
                continue
            value = field.type.default_value
            if value is MISSING:
                continue
            record[field.name] = [] if isinstance(value, list) else value
        return record

    def _find_member(self, name: str) -> Any:
        capability = self._registry.schema_capabilities.get(name)
        return MISSING if capability is None else capability

    def _dispatch_name(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "collection_name": self._collection_name,
            "parent_schema": (
                self._parent_schema.name if self._parent_schema is not None else None
            ),
            "fields": [f.to_dict() for f in self._fields.values()],
        }

    @property
    def fingerprint(self) -> str:
        """SHA-256 fingerprint of the schema description."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return f"sha256:{hashlib.sha256(canonical.encode('utf-8')).hexdigest()}"

    def __getitem__(self, name: str) -> Field:
        field = self.get_field(name)
        if field is None:
            raise KeyError(name)
        return field

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_field(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.get_field_list())

    def __len__(self) -> int:
        return len(self.get_field_list())

    def __repr__(self) -> str:
        parent = ""
        if self._parent_schema is not None:
            parent = f", parent={self._parent_schema.name!r}"
        return f"Schema({self.name!r}, fields={list(self.get_field_list())}{parent})"
