"""
Built-in type catalog.

Seeds a registry with the primitive types every provider can rely on
(String, Number, Boolean, Object) plus the derived catalog of common
business types (names, contact details, money, dates, yes/no style
enumerations).

Invariants:
    - Primitives are defined before any derived type
    - from_string(to_string(v)) == v for representative non-null values
    - Marshallers return None for blank input instead of raising

How to change safely:
    - Add new derived types at the end of seed_builtin_types
    - Never change a primitive's py_type; providers match on it
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from .capabilities import MISSING

if TYPE_CHECKING:
    from .registry import TypeRegistry

_TRUTHY_WORDS = frozenset({"true", "yes", "y", "t"})


def _identity(value: Any) -> Any:
    return value


def number_to_string(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def number_from_string(text: Any) -> int | float | None:
    """Parse a number, preferring int when the text is integral.

    Raises:
        ValueError: If the text is not numeric
    """
    if text is None:
        return None
    stripped = str(text).strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        return float(stripped)


def boolean_to_string(value: Any) -> str:
    return "true" if value else "false"


def boolean_from_string(text: Any) -> bool | None:
    """Parse a boolean.

    Numeric strings are true when non-zero; otherwise "true", "yes", "y"
    and "t" (any case) are true and everything else false. Blank is None.
    """
    if text is None:
        return None
    if isinstance(text, bool):
        return text
    stripped = str(text).strip()
    if not stripped:
        return None
    try:
        number = float(stripped)
    except ValueError:
        return stripped.lower() in _TRUTHY_WORDS
    if number != number:  # NaN
        return False
    return number != 0


def _iso_to_string(value: Any) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _iso_parser(parse: Any) -> Any:
    def from_string(text: Any) -> Any:
        if not isinstance(text, str):
            return text
        stripped = text.strip()
        if not stripped:
            return None
        # fromisoformat only accepts "Z" from Python 3.11
        if stripped[-1] in "Zz":
            stripped = stripped[:-1] + "+00:00"
        return parse(stripped)

    from_string.__name__ = "from_string"
    return from_string


datetime_from_string = _iso_parser(datetime.fromisoformat)
date_from_string = _iso_parser(date.fromisoformat)
time_from_string = _iso_parser(time.fromisoformat)


def seed_primitive_types(registry: TypeRegistry) -> None:
    """Define String, Number, Boolean and Object."""
    registry.define_native_type("String", str, {"default_value": ""}, _identity, _identity)
    registry.define_native_type(
        "Number", (int, float), {"default_value": 0}, number_to_string, number_from_string
    )
    registry.define_native_type(
        "Boolean", bool, {"default_value": False}, boolean_to_string, boolean_from_string
    )
    registry.define_native_type(
        "Object", object, {"py_class_name": "object", "default_value": None}
    )


def seed_builtin_types(registry: TypeRegistry, include_derived: bool = True) -> None:
    """Seed a registry with the built-in catalog.

    Args:
        registry: Registry to populate
        include_derived: Also define the derived business types
    """
    seed_primitive_types(registry)
    if not include_derived:
        return

    # DateTime has no default, overriding Object's None
    registry.define_object_type(
        "DateTime",
        datetime,
        {"default_value": MISSING},
        base_type="Object",
        to_string=_iso_to_string,
        from_string=datetime_from_string,
    )
    registry.define_object_type(
        "Date", date, base_type="DateTime", to_string=_iso_to_string, from_string=date_from_string
    )
    registry.define_object_type(
        "Time", time, base_type="DateTime", to_string=_iso_to_string, from_string=time_from_string
    )

    for name in (
        "Text",
        "FullName",
        "FirstName",
        "LastName",
        "Password",
        "Phone",
        "Email",
        "Url",
        "StreetAddress",
        "City",
        "State",
        "PostalCode",
        "CreditCardNumber",
    ):
        registry.define_string_type(name)

    registry.define_numeric_type("Integer", {"precision": 0})
    registry.define_numeric_type("Decimal", {"precision": 9})
    registry.define_numeric_type("Currency", {"precision": 2})

    registry.define_enumeration_type("YesNo", "No:false|Yes:true", base_type="Boolean")
    registry.define_enumeration_type("Sex", "Female:F|Male:M", base_type="String")
    registry.define_enumeration_type("OnOff", "Off:false|On:true", base_type="Boolean")
