"""
Shared fixtures for OmniSchema tests.
"""

import pytest

from omnischema import TypeRegistry, reset_registry, seed_builtin_types


@pytest.fixture(autouse=True)
def fresh_global_registry():
    """Every test starts (and ends) without a global registry."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def registry() -> TypeRegistry:
    """A private registry seeded with the full built-in catalog."""
    registry = TypeRegistry()
    seed_builtin_types(registry)
    return registry
