"""Form mutations.

Each mutation is a pure transition of the graph store. A handler receives the
engine context, the current store and its named parameters, and returns a
MutationResult holding the new store and, when the change must also be applied
by a server, a RemoteEcho describing it.

Mutations are looked up by name (see DEFAULT_MUTATIONS) so that a transaction
can be expressed as data, e.g. ``Mutation("forms/validate", {...})``.

Misuse never raises: targeting an entity without a built form, or a field the
form does not declare, reports a Diagnostic and leaves the store unchanged.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from formgraph.errors import Diagnostic
from formgraph.overlay import OVERLAY_KEY, FieldState, Overlay, get_overlay, with_overlay
from formgraph.store import Entity, GraphStore
from formgraph.types import DiagnosticCode, Ident
from formgraph.validation import update_validation, validate_form as validate_form_tree

if TYPE_CHECKING:
    from formgraph.config import EngineContext

# Marker prefixed to dropdown keys by renderers
OPTION_MARKER = ":"

UPDATE_FIELD = "forms/update-field"
TOGGLE_FIELD = "forms/toggle-field"
SELECT_OPTION = "forms/select-option"
VALIDATE = "forms/validate"
VALIDATE_FORM = "forms/validate-form"
COMMIT_TO_ENTITY = "forms/commit-to-entity"
RESET_FROM_ENTITY = "forms/reset-from-entity"


@dataclass(frozen=True)
class RemoteEcho:
    """A write the server side should apply as well.

    Attributes:
        mutation: Name of the mutation that produced it
        ident: The entity that was written
        value: The entity as written, without form state
    """
    mutation: str
    ident: Ident
    value: Entity

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "mutation": self.mutation,
            "ident": self.ident.to_dict(),
            "value": self.value,
        }


@dataclass(frozen=True)
class MutationResult:
    store: GraphStore
    remote: Optional[RemoteEcho] = None


MutationHandler = Callable[..., MutationResult]


def option_value(key: str) -> str:
    """Render a dropdown key the way select_option expects to receive it."""
    return f"{OPTION_MARKER}{key}"


def _lookup_form(ctx: "EngineContext", store: GraphStore, form_ident: Ident, operation: str) -> Optional[Overlay]:
    entity = store.get(form_ident)
    if entity is None:
        ctx.report(Diagnostic(
            code=DiagnosticCode.MISSING_ENTITY,
            message=f"{operation}: no entity stored at {form_ident}",
            ident=form_ident,
        ))
        return None
    overlay = get_overlay(entity)
    if overlay is None:
        ctx.report(Diagnostic(
            code=DiagnosticCode.FORM_NOT_INITIALIZED,
            message=f"{operation}: entity at {form_ident} has no form state. Was the form built with build_form?",
            ident=form_ident,
        ))
    return overlay


def _update_field_state(
    ctx: "EngineContext",
    store: GraphStore,
    form_ident: Ident,
    field: str,
    operation: str,
    fn: Callable[[FieldState], FieldState],
) -> GraphStore:
    overlay = _lookup_form(ctx, store, form_ident, operation)
    if overlay is None:
        return store
    if field not in overlay.field_state:
        ctx.report(Diagnostic(
            code=DiagnosticCode.UNKNOWN_FIELD,
            message=f"{operation}: form {form_ident} declares no field '{field}'",
            ident=form_ident,
            field=field,
        ))
        return store
    updated = overlay.update_field(field, fn(overlay.field_state[field]))
    return store.assoc(form_ident, with_overlay(store.get(form_ident), updated))


def update_field(ctx: "EngineContext", store: GraphStore, form_ident: Ident, field: str, value: Any) -> MutationResult:
    """Set the form value of field. Does not validate."""
    return MutationResult(_update_field_state(
        ctx, store, form_ident, field, UPDATE_FIELD, lambda state: state.with_value(value)
    ))


def toggle_field(ctx: "EngineContext", store: GraphStore, form_ident: Ident, field: str) -> MutationResult:
    """Negate the form value of a boolean field."""
    return MutationResult(_update_field_state(
        ctx, store, form_ident, field, TOGGLE_FIELD, lambda state: state.with_value(not state.value)
    ))


def select_option(ctx: "EngineContext", store: GraphStore, form_ident: Ident, field: str, value: str) -> MutationResult:
    """Store the dropdown key carried by a raw widget value like ``":red"``.

    A value that is not a string (e.g. None from a cleared widget) carries no
    key; it is reported as INVALID_VALUE and the store is left unchanged.
    """
    if not isinstance(value, str):
        ctx.report(Diagnostic(
            code=DiagnosticCode.INVALID_VALUE,
            message=f"{SELECT_OPTION}: expected an option key string for '{field}', got {value!r}",
            ident=form_ident,
            field=field,
        ))
        return MutationResult(store)
    key = value[len(OPTION_MARKER):] if value.startswith(OPTION_MARKER) else value
    return MutationResult(_update_field_state(
        ctx, store, form_ident, field, SELECT_OPTION, lambda state: state.with_value(key)
    ))


def validate(ctx: "EngineContext", store: GraphStore, form_ident: Ident, field: str) -> MutationResult:
    """Validate a single field."""
    overlay = _lookup_form(ctx, store, form_ident, VALIDATE)
    if overlay is None:
        return MutationResult(store)
    if field not in overlay.field_state:
        ctx.report(Diagnostic(
            code=DiagnosticCode.UNKNOWN_FIELD,
            message=f"{VALIDATE}: form {form_ident} declares no field '{field}'",
            ident=form_ident,
            field=field,
        ))
        return MutationResult(store)
    form = update_validation(ctx.validators, store.get(form_ident), field)
    return MutationResult(store.assoc(form_ident, form))


def validate_form(ctx: "EngineContext", store: GraphStore, form_ident: Ident) -> MutationResult:
    """Validate every field of the form and of all of its nested forms."""
    return MutationResult(validate_form_tree(ctx, store, form_ident))


def commit_to_entity(ctx: "EngineContext", store: GraphStore, form_ident: Ident, remote: bool = False) -> MutationResult:
    """Copy every form value onto the canonical entity.

    The form's validity is not checked here; FormRuntime.commit_to_entity is
    the entry point that refuses to commit invalid forms. With remote set, the
    result carries a RemoteEcho of the written entity.
    """
    overlay = _lookup_form(ctx, store, form_ident, COMMIT_TO_ENTITY)
    if overlay is None:
        return MutationResult(store)
    updated = dict(store.get(form_ident))
    for name, state in overlay.field_state.items():
        updated[name] = state.value
    echo = None
    if remote:
        value = {k: v for k, v in updated.items() if k != OVERLAY_KEY}
        echo = RemoteEcho(mutation=COMMIT_TO_ENTITY, ident=form_ident, value=value)
    return MutationResult(store.assoc(form_ident, updated), echo)


def reset_from_entity(ctx: "EngineContext", store: GraphStore, form_ident: Ident) -> MutationResult:
    """Discard unsaved edits by copying the entity values back into the form.

    Validity is left as it was; run validate-form afterwards to refresh it.
    """
    overlay = _lookup_form(ctx, store, form_ident, RESET_FROM_ENTITY)
    if overlay is None:
        return MutationResult(store)
    entity = store.get(form_ident)
    for name, state in overlay.field_state.items():
        if name in entity:
            overlay = overlay.update_field(name, state.with_value(entity[name]))
    return MutationResult(store.assoc(form_ident, with_overlay(entity, overlay)))


DEFAULT_MUTATIONS: Dict[str, MutationHandler] = {
    UPDATE_FIELD: update_field,
    TOGGLE_FIELD: toggle_field,
    SELECT_OPTION: select_option,
    VALIDATE: validate,
    VALIDATE_FORM: validate_form,
    COMMIT_TO_ENTITY: commit_to_entity,
    RESET_FROM_ENTITY: reset_from_entity,
}


__all__ = [
    "OPTION_MARKER",
    "UPDATE_FIELD",
    "TOGGLE_FIELD",
    "SELECT_OPTION",
    "VALIDATE",
    "VALIDATE_FORM",
    "COMMIT_TO_ENTITY",
    "RESET_FROM_ENTITY",
    "RemoteEcho",
    "MutationResult",
    "MutationHandler",
    "DEFAULT_MUTATIONS",
    "option_value",
    "update_field",
    "toggle_field",
    "select_option",
    "validate",
    "validate_form",
    "commit_to_entity",
    "reset_from_entity",
]
