"""
OmniSchema Test Suite.

This package contains:
- unit/: Unit tests (no external dependencies)
"""
