"""Form builder.

Produces the initial overlay for an entity from its form class. Fields the
entity already has keep their values; the rest start from the declared
defaults. Identity fields the entity lacks get a fresh placeholder id.

Usage:
    >>> from formgraph.schema import FormClass, FormSchema, id_field, text_input
    >>> person = FormClass("person", FormSchema([id_field("id"), text_input("name")]))
    >>> form = build_form(person, {"id": 1, "name": "Amy"})
    >>> form["ui/form"].field_state["name"].value
    'Amy'
"""

from typing import Any, Callable, Dict, Mapping, Optional

from formgraph.overlay import FieldState, Overlay, with_overlay
from formgraph.schema import FormClass, FormSchema
from formgraph.types import FieldType, Ident, TempId, UUIDTempIdGenerator
from formgraph.validity import initial_validity

TempIdSource = Callable[[], TempId]

_default_tempids = UUIDTempIdGenerator()


def default_state(schema: FormSchema, tempids: Optional[TempIdSource] = None) -> Dict[str, FieldState]:
    """Field states of a form built from nothing."""
    tempids = tempids or _default_tempids
    state: Dict[str, FieldState] = {}
    for definition in schema:
        is_identity = definition.type == FieldType.IDENTITY
        state[definition.name] = FieldState(
            value=tempids() if is_identity else definition.default_value,
            validity=initial_validity(is_identity),
            css_class=definition.css_class,
        )
    return state


def build_form(
    form_class: FormClass,
    entity: Mapping[str, Any],
    tempids: Optional[TempIdSource] = None,
    ident: Optional[Ident] = None,
) -> Dict[str, Any]:
    """Return entity with a freshly built overlay attached.

    Keys of the entity that the schema does not declare are left untouched.
    The overlay records ident as the form's location in the store. Without
    ident it is computed from the entity by the form class, which yields an
    Ident with a None id for entities that have no id yet.
    """
    state = default_state(form_class.schema, tempids)
    for name, field_state in state.items():
        if name in entity:
            state[name] = field_state.with_value(entity[name])
    overlay = Overlay(
        ident=ident if ident is not None else form_class.ident_of(entity),
        form_class=form_class,
        field_state=state,
    )
    return with_overlay(entity, overlay)


__all__ = [
    "TempIdSource",
    "default_state",
    "build_form",
]
