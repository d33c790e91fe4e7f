"""Dirty checking: compares form values with the canonical entity values."""

from typing import Any, List, Mapping

from formgraph.overlay import get_overlay
from formgraph.types import is_tempid


def dirty_fields(form: Mapping[str, Any]) -> List[str]:
    """Names of fields whose form value holds a placeholder id or differs
    from the value stored on the entity."""
    overlay = get_overlay(form)
    if overlay is None:
        return []
    return [
        name
        for name, state in overlay.field_state.items()
        if is_tempid(state.value) or state.value != form.get(name)
    ]


def is_dirty(form: Mapping[str, Any]) -> bool:
    """True if the form has unsaved edits or still holds a placeholder id."""
    return bool(dirty_fields(form))


__all__ = [
    "dirty_fields",
    "is_dirty",
]
