"""
Unit tests for data types.

Tests cover:
- Enumeration option parsing
- DataType attribute lookup through the base chain
- Built-in catalog and string marshalling
"""

from datetime import date, datetime, time, timezone

import pytest

from omnischema import (
    MISSING,
    CapabilityNotImplementedError,
    DataType,
    DefinitionError,
    EnumerationSyntaxError,
    EnumValue,
    parse_enumeration,
)
from omnischema.builtin_types import (
    boolean_from_string,
    datetime_from_string,
    number_from_string,
)


class TestParseEnumeration:
    """Tests for parse_enumeration."""

    def test_label_value_pairs(self):
        """Label:value options keep declaration order."""
        assert parse_enumeration("No:false|Yes:true") == (
            EnumValue("No", "false"),
            EnumValue("Yes", "true"),
        )

    def test_bare_label_is_its_own_value(self):
        """A label without a value uses the label as value."""
        assert parse_enumeration("Red|Green:g") == (
            EnumValue("Red", "Red"),
            EnumValue("Green", "g"),
        )

    def test_whitespace_is_stripped(self):
        """Whitespace around labels and values is ignored."""
        assert parse_enumeration(" A : a | B ") == (EnumValue("A", "a"), EnumValue("B", "B"))

    @pytest.mark.parametrize("spec", ["", "   ", "A||B", ":x", "A:b:c", None])
    def test_malformed_spec_raises(self, spec):
        """Malformed option specs are definition errors."""
        with pytest.raises(EnumerationSyntaxError):
            parse_enumeration(spec)

    def test_syntax_error_is_definition_error(self):
        """EnumerationSyntaxError belongs to the definition error family."""
        with pytest.raises(DefinitionError) as exc_info:
            parse_enumeration("A|")
        assert exc_info.value.code == "ENUMERATION_SYNTAX"


class TestDataType:
    """Tests for DataType."""

    @pytest.fixture
    def number(self):
        return DataType("Number", {"py_type": (int, float), "default_value": 0})

    def test_attribute_falls_back_to_base(self, number):
        """Attributes missing locally are found on the base type."""
        integer = DataType("Integer", {"precision": 0}, base_type=number)

        assert integer.lookup("default_value") == 0
        assert integer.precision == 0
        assert integer.py_type == (int, float)
        assert number.lookup("precision") is MISSING

    def test_own_attribute_overrides_base(self, number):
        """Local attributes shadow inherited ones."""
        currency = DataType("Currency", {"default_value": 1}, base_type=number)
        assert currency.default_value == 1
        assert number.default_value == 0

    def test_dotted_path_lookup(self):
        """Dotted paths descend into nested attribute values."""
        email = DataType("Email", {"html_spec": {"autocomplete": "email"}})

        assert email.lookup("html_spec.autocomplete") == "email"
        assert email.lookup("html_spec.missing", None) is None

    def test_default_value_producer_is_invoked(self):
        """A callable default_value is called on access."""
        stamp = DataType("Stamp", {"default_value": lambda: "now"})
        assert stamp.default_value == "now"

    def test_literal_default_value_is_copied(self):
        """Mutable type defaults come back as fresh copies."""
        tags = DataType("Tags", {"default_value": {"labels": []}})

        tags.default_value["labels"].append("x")

        assert tags.default_value == {"labels": []}

    def test_missing_default_value(self):
        """Types without a default report MISSING."""
        assert DataType("Plain").default_value is MISSING

    def test_unknown_attribute_raises(self, number):
        """Unknown names raise CapabilityNotImplementedError naming the type."""
        with pytest.raises(CapabilityNotImplementedError) as exc_info:
            number.render()

        assert exc_info.value.type_name == "Number"
        assert exc_info.value.capability == "render"
        assert "Number" in str(exc_info.value)

    def test_unknown_attribute_is_attribute_error(self, number):
        """hasattr and getattr defaults keep working."""
        assert hasattr(number, "render") is False
        assert getattr(number, "render", None) is None

    def test_merge_attributes_last_writer_wins(self, number):
        """Merging replaces values per top-level key."""
        number.merge_attributes({"default_value": 5, "scale": 2})

        assert number.default_value == 5
        assert number.scale == 2
        assert number.py_type == (int, float)

    def test_merge_attributes_requires_mapping(self, number):
        """Non-mapping attributes are rejected."""
        with pytest.raises(DefinitionError):
            number.merge_attributes(["py_type"])

    def test_lineage_and_is_a(self, number):
        """lineage walks the base chain; is_a accepts names and types."""
        integer = DataType("Integer", base_type=number)
        small = DataType("SmallInt", base_type=integer)

        assert [t.name for t in small.lineage()] == ["SmallInt", "Integer", "Number"]
        assert small.is_a("Number")
        assert small.is_a(integer)
        assert not number.is_a(small)
        assert small.class_name == "Number"

    def test_is_native_excludes_bool_from_numbers(self, number):
        """bool is not a native number."""
        assert number.is_native(3)
        assert number.is_native(2.5)
        assert not number.is_native(True)
        assert not number.is_native("3")

    def test_is_native_without_py_type(self):
        """Types without py_type have no native representation."""
        assert DataType("Abstract").is_native("anything") is False

    def test_empty_name_raises(self):
        """Type names cannot be empty."""
        with pytest.raises(DefinitionError):
            DataType("")

    def test_base_type_must_be_data_type(self):
        """Base types are descriptors, not names."""
        with pytest.raises(DefinitionError):
            DataType("Integer", base_type="Number")

    def test_to_dict(self, number):
        """Types describe themselves."""
        d = DataType("Integer", {"precision": 0}, base_type=number).to_dict()

        assert d["name"] == "Integer"
        assert d["base_type"] == "Number"
        assert d["attributes"] == ["precision"]
        assert d["capabilities"] == []


class TestBuiltinCatalog:
    """Tests for the seeded built-in types."""

    def test_primitives_have_no_base(self, registry):
        """String, Number, Boolean and Object are roots."""
        for name in ("String", "Number", "Boolean", "Object"):
            assert registry.get(name).base_type is None

    def test_derived_types(self, registry):
        """Derived types hang off the right primitives."""
        assert registry.get("Email").base_type.name == "String"
        assert registry.get("Integer").base_type.name == "Number"
        assert registry.get("Integer").precision == 0
        assert registry.get("Currency").precision == 2
        assert registry.get("Date").is_a("DateTime")
        assert registry.get("Date").is_a("Object")

    def test_enumerations(self, registry):
        """Built-in enumerations carry their options and base."""
        yes_no = registry.get("YesNo")

        assert yes_no.base_type.name == "Boolean"
        assert [ev.value for ev in yes_no.enum_values] == ["false", "true"]
        assert registry.get("Sex").enum_values[0] == EnumValue("Female", "F")
        assert registry.get("String").enum_values is None

    def test_type_defaults(self, registry):
        """Each primitive declares a default; DateTime declares none."""
        assert registry.get("String").default_value == ""
        assert registry.get("Email").default_value == ""
        assert registry.get("Number").default_value == 0
        assert registry.get("Integer").default_value == 0
        assert registry.get("Boolean").default_value is False
        assert registry.get("Object").default_value is None
        assert registry.get("DateTime").default_value is MISSING
        assert registry.get("Date").default_value is MISSING

    def test_marshallers_are_inherited(self, registry):
        """Integer uses Number's marshallers without owning them."""
        integer = registry.get("Integer")

        assert "to_string" not in integer.capabilities
        assert integer.has_capability("to_string")
        assert integer.from_string("42") == 42

    @pytest.mark.parametrize(
        "type_name,value",
        [
            ("String", "hello"),
            ("Number", 42),
            ("Number", 12.5),
            ("Integer", 7),
            ("Currency", 123.45),
            ("Boolean", True),
            ("Boolean", False),
            ("DateTime", datetime(2016, 11, 5, 10, 30)),
            ("Date", date(2016, 11, 5)),
            ("Time", time(8, 15)),
        ],
    )
    def test_string_round_trip(self, registry, type_name, value):
        """from_string(to_string(v)) == v."""
        data_type = registry.get(type_name)
        assert data_type.from_string(data_type.to_string(value)) == value

    def test_object_has_no_marshallers(self, registry):
        """Object values are never coerced."""
        assert not registry.get("Object").has_capability("from_string")


class TestMarshallers:
    """Tests for built-in string parsers."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("true", True),
            ("Yes", True),
            ("Y", True),
            ("t", True),
            ("no", False),
            ("false", False),
            ("0", False),
            ("2", True),
            ("0.0", False),
            ("", None),
            ("   ", None),
            (None, None),
        ],
    )
    def test_boolean_from_string(self, text, expected):
        """Booleans parse words and numbers."""
        assert boolean_from_string(text) is expected

    def test_number_from_string_prefers_int(self):
        """Integral text becomes int, other numbers float."""
        assert isinstance(number_from_string("4"), int)
        assert number_from_string("4.5") == 4.5
        assert number_from_string(" ") is None

    def test_number_from_string_rejects_words(self):
        """Non-numeric text raises ValueError."""
        with pytest.raises(ValueError):
            number_from_string("abc")

    def test_datetime_from_string(self):
        """ISO dates parse; blanks are None; non-strings pass through."""
        assert datetime_from_string("2016-11-05") == datetime(2016, 11, 5)
        assert datetime_from_string("  ") is None
        assert datetime_from_string(5) == 5

    def test_datetime_from_string_accepts_zulu(self):
        """A trailing Z is read as UTC."""
        expected = datetime(2020, 1, 1, tzinfo=timezone.utc)

        assert datetime_from_string("2020-01-01T00:00:00Z") == expected
        assert datetime_from_string("2020-01-01T00:00:00z") == expected
