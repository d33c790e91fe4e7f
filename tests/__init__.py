"""Test suite for formgraph.

This package contains tests for:
- Schema declaration and form classes
- Graph store, form building and tree walking
- Validity transitions and validators
- Form mutations and dirty checking
- Event system (emission, serialization)
- Runtime scenarios (edit, validate, commit, rollback, remote writes)
"""
