"""
JIA Town Mapping Test Suite

This package contains tests for the JIA town mapping prototype (nearest-town
snapping, annotation store, per-town report).

Structure:
- unit/: Unit tests for individual components
- integration/: API and CLI tests over in-memory or temporary storage
"""
