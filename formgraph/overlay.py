"""Form overlay and form accessors.

An Overlay is the editable, validated state of one entity's form. It is
attached to the entity under OVERLAY_KEY; an entity carrying an overlay is
called a form. The canonical entity values stay untouched next to it until the
form is committed.
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from formgraph.types import Ident, Validity
from formgraph.validity import transition

if TYPE_CHECKING:
    from formgraph.schema import FieldDefinition, FormClass, FormSchema
    from formgraph.store import GraphStore

# Reserved entity key holding the overlay
OVERLAY_KEY = "ui/form"


@dataclass(frozen=True)
class FieldState:
    """Current edit state of one field.

    Attributes:
        value: The (possibly unsaved) value shown in the form
        validity: Result of the last validation
        css_class: Optional - advisory CSS class copied from the definition
    """
    value: Any
    validity: Validity = Validity.UNCHECKED
    css_class: Optional[str] = None

    def with_value(self, value: Any) -> "FieldState":
        return replace(self, value=value)

    def with_validity(self, validity: Validity) -> "FieldState":
        return replace(self, validity=transition(self.validity, validity))


@dataclass(frozen=True)
class Overlay:
    """Form state attached to one entity.

    Attributes:
        ident: Location of the owning entity in the store
        form_class: The class whose schema produced this overlay
        field_state: Field name -> FieldState
    """
    ident: Ident
    form_class: "FormClass" = field(compare=False)
    field_state: Mapping[str, FieldState] = field(default_factory=dict)

    @property
    def schema(self) -> "FormSchema":
        return self.form_class.schema

    @property
    def fields_by_name(self) -> Dict[str, "FieldDefinition"]:
        return self.form_class.schema.by_name

    def update_field(self, name: str, state: FieldState) -> "Overlay":
        """Return a new overlay with name's state replaced."""
        field_state = dict(self.field_state)
        field_state[name] = state
        return replace(self, field_state=field_state)


def get_overlay(form: Optional[Mapping[str, Any]]) -> Optional[Overlay]:
    """Return the overlay attached to an entity, or None."""
    if not isinstance(form, Mapping):
        return None
    overlay = form.get(OVERLAY_KEY)
    return overlay if isinstance(overlay, Overlay) else None


def with_overlay(entity: Optional[Mapping[str, Any]], overlay: Overlay) -> Dict[str, Any]:
    """Return a copy of entity carrying overlay."""
    form = dict(entity or {})
    form[OVERLAY_KEY] = overlay
    return form


def form_ident(form: Mapping[str, Any]) -> Optional[Ident]:
    overlay = get_overlay(form)
    return overlay.ident if overlay is not None else None


def form_class_of(form: Mapping[str, Any]) -> Optional["FormClass"]:
    """Get the class that declared the given form."""
    overlay = get_overlay(form)
    return overlay.form_class if overlay is not None else None


def field_names(form: Mapping[str, Any]) -> List[str]:
    """Names of every field declared on the form, in schema order."""
    overlay = get_overlay(form)
    return overlay.schema.names() if overlay is not None else []


def field_config(form: Mapping[str, Any], name: str) -> Optional["FieldDefinition"]:
    overlay = get_overlay(form)
    return overlay.fields_by_name.get(name) if overlay is not None else None


def _field_state(form: Mapping[str, Any], name: str) -> Optional[FieldState]:
    overlay = get_overlay(form)
    return overlay.field_state.get(name) if overlay is not None else None


def current_value(form: Mapping[str, Any], name: str) -> Any:
    state = _field_state(form, name)
    return state.value if state is not None else None


def current_validity(form: Mapping[str, Any], name: str) -> Optional[Validity]:
    state = _field_state(form, name)
    return state.validity if state is not None else None


def css_class(form: Mapping[str, Any], name: str) -> Optional[str]:
    state = _field_state(form, name)
    return state.css_class if state is not None else None


def validator_ref(form: Mapping[str, Any], name: str) -> Optional[str]:
    definition = field_config(form, name)
    return definition.validator if definition is not None else None


def validator_args(form: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    definition = field_config(form, name)
    return definition.validator_args if definition is not None else {}


def field_value(store: "GraphStore", ident: Ident, name: str, default: Any = "") -> Any:
    """Current form value of a field, read straight from the store."""
    state = _field_state(store.get(ident), name)
    return state.value if state is not None else default


__all__ = [
    "OVERLAY_KEY",
    "FieldState",
    "Overlay",
    "get_overlay",
    "with_overlay",
    "form_ident",
    "form_class_of",
    "field_names",
    "field_config",
    "current_value",
    "current_validity",
    "css_class",
    "validator_ref",
    "validator_args",
    "field_value",
]
