"""
Match predicates for capability installation.

Providers describe which data types should receive a capability with a
small declarative language:

- None: the type has a native Python representation (``py_type``)
- "a.b.c": the dotted attribute path is present (value irrelevant)
- callable: ``func(descriptor)`` is truthy
- [spec, spec, ...]: all sub-specs match (empty list matches)
- {"$or": [...]}: any sub-spec matches
- {"$and": [...]}: same as a list
- {"$not": spec}: the sub-spec does not match
- any other mapping: partial structural match, nested mappings included

Specs compile into a closed set of frozen node classes, each with an
``evaluate(descriptor)`` method.

Invariants:
    - Evaluation has no side effects beyond calling user predicates
    - A mapping never mixes an operator with ordinary keys

Example:
    >>> matches(registry.get("YesNo"), ["enum_values", {"py_type": bool}])
    True
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .capabilities import MISSING, is_present, lookup_key, resolve_path
from .errors import PredicateError

OR = "$or"
AND = "$and"
NOT = "$not"
OPERATORS = (OR, AND, NOT)


@dataclass(frozen=True)
class Exists:
    """Dotted attribute path resolves to a defined value."""

    path: str

    def evaluate(self, descriptor: Any) -> bool:
        return is_present(resolve_path(descriptor, self.path))


@dataclass(frozen=True)
class AllOf:
    """Logical AND over sub-predicates."""

    predicates: tuple[PredicateNode, ...]

    def evaluate(self, descriptor: Any) -> bool:
        return all(p.evaluate(descriptor) for p in self.predicates)


@dataclass(frozen=True)
class AnyOf:
    """Logical OR over sub-predicates."""

    predicates: tuple[PredicateNode, ...]

    def evaluate(self, descriptor: Any) -> bool:
        return any(p.evaluate(descriptor) for p in self.predicates)


@dataclass(frozen=True)
class Not:
    predicate: PredicateNode

    def evaluate(self, descriptor: Any) -> bool:
        return not self.predicate.evaluate(descriptor)


@dataclass(frozen=True, eq=False)
class StructuralMatch:
    """Every key in ``expected`` is present on the descriptor with an equal value.

    Nested mappings are matched partially as well; extra keys on the
    descriptor are ignored.
    """

    expected: Mapping[str, Any]

    def evaluate(self, descriptor: Any) -> bool:
        return _is_match(descriptor, self.expected)


@dataclass(frozen=True)
class Predicate:
    func: Callable[[Any], Any]

    def evaluate(self, descriptor: Any) -> bool:
        return bool(self.func(descriptor))


PredicateNode = Union[Exists, AllOf, AnyOf, Not, StructuralMatch, Predicate]
_NODE_TYPES = (Exists, AllOf, AnyOf, Not, StructuralMatch, Predicate)

# An omitted match spec selects leaf-usable types only
HAS_NATIVE_TYPE = Exists("py_type")


def _is_match(obj: Any, expected: Mapping[str, Any]) -> bool:
    for key, want in expected.items():
        have = lookup_key(obj, key)
        if have is MISSING:
            return False
        if isinstance(want, Mapping):
            if have is None or not _is_match(have, want):
                return False
        elif have != want:
            return False
    return True


def _compile_operator(spec: Mapping[str, Any]) -> PredicateNode:
    ops = [key for key in spec if key in OPERATORS]
    if len(spec) != 1:
        raise PredicateError(
            f"Operator {ops[0]} cannot be combined with other keys: {sorted(spec)}", spec
        )
    op = ops[0]
    operand = spec[op]
    if op == NOT:
        return Not(compile_predicate(operand))
    if not isinstance(operand, (list, tuple)):
        raise PredicateError(f"{op} expects a list of predicates, got {operand!r}", spec)
    nodes = tuple(compile_predicate(sub) for sub in operand)
    return AnyOf(nodes) if op == OR else AllOf(nodes)


def compile_predicate(spec: Any) -> PredicateNode:
    """Compile a declarative match spec into a predicate node.

    Args:
        spec: Match specification (see module docstring)

    Returns:
        Predicate node; already compiled nodes are returned unchanged

    Raises:
        PredicateError: If the spec is malformed
    """
    if isinstance(spec, _NODE_TYPES):
        return spec
    if spec is None or spec is MISSING:
        return HAS_NATIVE_TYPE
    if isinstance(spec, str):
        if not spec:
            raise PredicateError("Attribute path cannot be empty", spec)
        return Exists(spec)
    if isinstance(spec, (list, tuple)):
        return AllOf(tuple(compile_predicate(sub) for sub in spec))
    if isinstance(spec, Mapping):
        if any(key in OPERATORS for key in spec):
            return _compile_operator(spec)
        unknown = [key for key in spec if isinstance(key, str) and key.startswith("$")]
        if unknown:
            raise PredicateError(f"Unsupported predicate operator(s): {unknown}", spec)
        return StructuralMatch(dict(spec))
    if callable(spec):
        return Predicate(spec)
    raise PredicateError(f"Unsupported match spec: {spec!r}", spec)


def matches(descriptor: Any, spec: Any = None) -> bool:
    """Whether ``descriptor`` satisfies the match spec.

    Args:
        descriptor: DataType, Field, Schema, mapping or plain object
        spec: Match specification

    Returns:
        True if the descriptor matches
    """
    return compile_predicate(spec).evaluate(descriptor)
