"""
Unit tests for the type registry.

Tests cover:
- Type definition and idempotent re-definition
- Base type resolution and cycle detection
- Helper definers and marshallers
- Lookup, suggestions and search
- The global registry
"""

import json
import logging

import pytest

import omnischema
from omnischema import (
    DataType,
    DefinitionError,
    TypeCycleError,
    TypeNotFoundError,
    TypeRegistry,
    get_registry,
    reset_registry,
)


class TestDefineType:
    """Tests for TypeRegistry.define_type."""

    def test_define_new_type(self):
        """A new type is registered under its name."""
        registry = TypeRegistry()
        data_type = registry.define_type("Thing", {"color": "red"})

        assert isinstance(data_type, DataType)
        assert registry.get("Thing") is data_type
        assert data_type.color == "red"
        assert "Thing" in registry
        assert len(registry) == 1

    def test_redefine_merges_and_keeps_identity(self):
        """Re-defining a name merges attributes into the same object."""
        registry = TypeRegistry()
        first = registry.define_type("Thing", {"color": "red", "size": 1})
        second = registry.define_type("Thing", {"color": "blue"})

        assert second is first
        assert first.color == "blue"
        assert first.size == 1

    def test_redefine_ignores_new_base(self, registry, caplog):
        """The base chain never changes; a different base is logged and ignored."""
        with caplog.at_level(logging.WARNING, logger="omnischema"):
            email = registry.define_type("Email", {"x": 1}, base_type="Number")

        assert email.base_type.name == "String"
        assert email.x == 1
        assert "Ignoring base type 'Number'" in caplog.text

    def test_redefine_with_same_base_is_quiet(self, registry, caplog):
        """Repeating the existing base is not a warning."""
        with caplog.at_level(logging.WARNING, logger="omnischema"):
            registry.define_type("Email", None, base_type="String")
        assert caplog.text == ""

    def test_base_type_by_name_or_descriptor(self, registry):
        """Bases can be given as a name or a registered DataType."""
        by_name = registry.define_type("Slug", base_type="String")
        by_type = registry.define_type("Tag", base_type=registry.get("String"))

        assert by_name.base_type is registry.get("String")
        assert by_type.base_type is registry.get("String")

    def test_unknown_base_type_raises(self):
        """Unknown base names are TypeNotFoundError."""
        registry = TypeRegistry()
        with pytest.raises(TypeNotFoundError):
            registry.define_type("Email", base_type="String")

    def test_foreign_base_type_raises(self, registry):
        """Bases must belong to the same registry."""
        other = TypeRegistry()
        foreign = other.define_type("String")

        with pytest.raises(DefinitionError):
            registry.define_type("Slug", base_type=foreign)

    def test_cycle_is_rejected(self):
        """A type cannot be rebased onto its own descendant."""
        registry = TypeRegistry()
        registry.define_type("A")
        registry.define_type("B", base_type="A")

        with pytest.raises(TypeCycleError) as exc_info:
            registry.define_type("A", base_type="B")

        assert exc_info.value.type_name == "A"
        assert exc_info.value.base_name == "B"
        assert registry.get("A").base_type is None

    def test_self_base_is_a_cycle(self):
        """A type cannot be its own base."""
        registry = TypeRegistry()
        registry.define_type("A")
        with pytest.raises(TypeCycleError):
            registry.define_type("A", base_type="A")

    def test_marshallers_installed(self):
        """to_string/from_string become capabilities called without a receiver."""
        registry = TypeRegistry()
        registry.define_type("Upper", to_string=str.upper, from_string=str.lower)

        upper = registry.get("Upper")
        assert upper.to_string("abc") == "ABC"
        assert upper.from_string("ABC") == "abc"
        assert upper.invoke("to_string", "x") == "X"

    def test_marshaller_must_be_callable(self):
        """Non-callable marshallers are rejected."""
        registry = TypeRegistry()
        with pytest.raises(DefinitionError):
            registry.define_type("Bad", to_string="upper")

    def test_attributes_must_be_mapping(self):
        """Attribute bags are mappings."""
        registry = TypeRegistry()
        with pytest.raises(DefinitionError):
            registry.define_type("Bad", ["py_type"])


class TestHelperDefiners:
    """Tests for the typed definition helpers."""

    def test_native_type(self):
        """Native types record py_type and have no base."""
        registry = TypeRegistry()
        data_type = registry.define_native_type("String", str, {"default_value": ""})

        assert data_type.py_type is str
        assert data_type.base_type is None
        assert data_type.default_value == ""

    def test_string_numeric_boolean(self, registry):
        """Helpers pick the matching primitive base."""
        assert registry.define_string_type("Zip").base_type.name == "String"
        assert registry.define_numeric_type("Percent").base_type.name == "Number"
        assert registry.define_boolean_type("Flag").base_type.name == "Boolean"

    def test_object_type(self, registry):
        """Object types record the class and its name."""

        class Money:
            pass

        money = registry.define_object_type("Money", Money, base_type="Object")

        assert money.py_type is Money
        assert money.py_class_name == "Money"
        assert money.is_native(Money())
        assert money.class_name == "Object"

    def test_enumeration_type(self, registry):
        """Enumerations parse their options and require a base."""
        color = registry.define_enumeration_type("Color", "Red:r|Blue:b", base_type="String")

        assert color.is_enumeration
        assert [ev.label for ev in color.enum_values] == ["Red", "Blue"]
        assert color.default_value == ""

    def test_enumeration_requires_base(self, registry):
        """An enumeration without a base type is rejected."""
        with pytest.raises(DefinitionError):
            registry.define_enumeration_type("Color", "Red|Blue")


class TestLookup:
    """Tests for registry lookup."""

    def test_get_unknown_returns_none(self, registry):
        """get() is non-raising."""
        assert registry.get("Nope") is None

    def test_require_suggests_close_names(self, registry):
        """require() raises with suggestions for typos."""
        with pytest.raises(TypeNotFoundError) as exc_info:
            registry.require("Emial", field_name="contact")

        error = exc_info.value
        assert error.type_name == "Emial"
        assert error.field_name == "contact"
        assert "Email" in error.suggestions
        assert error.code == "TYPE_NOT_FOUND"
        assert "Could not locate type named 'Emial'" in str(error)

    def test_names_in_definition_order(self, registry):
        """Primitives come first."""
        assert registry.names()[:4] == ["String", "Number", "Boolean", "Object"]

    def test_find(self, registry):
        """find() returns matching types in definition order."""
        names = [t.name for t in registry.find("enum_values")]
        assert names == ["YesNo", "Sex", "OnOff"]

    def test_find_structural(self, registry):
        """find() accepts any match spec."""
        names = [t.name for t in registry.find({"py_type": bool})]
        assert names == ["Boolean", "YesNo", "OnOff"]

    def test_to_json(self, registry):
        """The registry describes itself as JSON."""
        data = json.loads(registry.to_json())

        names = [t["name"] for t in data["types"]]
        assert "Email" in names
        assert data["schema_capabilities"] == []
        assert data["field_capabilities"] == []


class TestGlobalRegistry:
    """Tests for the global registry."""

    def test_get_registry_singleton(self):
        """get_registry() returns the same seeded instance."""
        registry = get_registry()

        assert get_registry() is registry
        assert registry.get("Email") is not None

    def test_reset_registry(self):
        """reset_registry() discards the instance."""
        first = get_registry()
        reset_registry()
        assert get_registry() is not first

    def test_module_level_define_type(self):
        """Module-level definers target the global registry."""
        omnischema.define_type("Sku", {"max_length": 12}, base_type="String")
        assert get_registry().get("Sku").max_length == 12

    def test_primitives_only_from_environment(self, monkeypatch):
        """OMNISCHEMA_SEED_DERIVED_TYPES=false seeds primitives only."""
        monkeypatch.setenv("OMNISCHEMA_SEED_DERIVED_TYPES", "false")

        registry = get_registry()

        assert registry.names() == ["String", "Number", "Boolean", "Object"]
