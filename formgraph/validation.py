"""Field validation for formgraph forms.

Validators are plain predicates ``(value, args) -> bool`` registered under a
symbolic name in a ValidatorRegistry. Field definitions refer to validators by
that name and carry the arguments (``validator_args``) to call them with.

Two situations are deliberately kept apart:

- A field that declares no validator is valid.
- A field that names a validator nobody registered is a configuration error
  and raises UnknownValidatorError when it is validated.

Usage:
    >>> registry = ValidatorRegistry.with_builtins()
    >>> registry.check("in-range?", 5, {"min": 1, "max": 10})
    True
    >>> registry.check("in-range?", 0, {"min": 1, "max": 10})
    False
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from jsonschema import Draft7Validator

from formgraph.errors import Diagnostic, FormConfigurationError, UnknownValidatorError
from formgraph.overlay import Overlay, field_names, get_overlay, with_overlay
from formgraph.schema import FormClass
from formgraph.store import Entity, GraphStore
from formgraph.types import DiagnosticCode, Ident, Validity
from formgraph.validity import outcome
from formgraph.walker import update_forms

if TYPE_CHECKING:
    from formgraph.config import EngineContext

logger = logging.getLogger(__name__)

Validator = Callable[[Any, Mapping[str, Any]], bool]


def in_range(value: Any, args: Mapping[str, Any]) -> bool:
    """Require value, as an integer, to lie within [min, max] inclusive.

    Values that cannot be read as an integer are out of range.
    """
    try:
        number = int(value)
    except (TypeError, ValueError):
        return False
    return args["min"] <= number <= args["max"]


def matches_schema(value: Any, args: Mapping[str, Any]) -> bool:
    """Require value to validate against the JSON Schema given as args.

    Raises:
        jsonschema.SchemaError: If args is not a valid JSON Schema
    """
    Draft7Validator.check_schema(args)
    return Draft7Validator(args).is_valid(value)


BUILTIN_VALIDATORS: Dict[str, Validator] = {
    "in-range?": in_range,
    "matches-schema?": matches_schema,
}


class ValidatorRegistry:
    """Named field validators.

    Examples:
        >>> registry = ValidatorRegistry()
        >>> @registry.register("not-blank?")
        ... def not_blank(value, args):
        ...     return bool(str(value).strip())
        >>> registry.check("not-blank?", "  ", {})
        False
    """

    def __init__(self, validators: Optional[Mapping[str, Validator]] = None):
        self._validators: Dict[str, Validator] = dict(validators or {})

    @classmethod
    def with_builtins(cls) -> "ValidatorRegistry":
        return cls(BUILTIN_VALIDATORS)

    def __contains__(self, name: object) -> bool:
        return name in self._validators

    def names(self) -> List[str]:
        return sorted(self._validators)

    def register(self, name: str, fn: Optional[Validator] = None, replace: bool = False) -> Any:
        """Register fn under name. Without fn, returns a decorator.

        Raises:
            FormConfigurationError: If name is taken and replace is False
        """
        def decorator(validator: Validator) -> Validator:
            if name in self._validators and not replace:
                raise FormConfigurationError(f"A validator named '{name}' is already registered")
            self._validators[name] = validator
            return validator

        if fn is None:
            return decorator
        return decorator(fn)

    def unregister(self, name: str) -> None:
        self._validators.pop(name, None)

    def get(self, name: str) -> Validator:
        """Return the validator registered under name.

        Raises:
            UnknownValidatorError: If nothing is registered under name
        """
        try:
            return self._validators[name]
        except KeyError:
            raise UnknownValidatorError(name) from None

    def check(self, name: str, value: Any, args: Optional[Mapping[str, Any]] = None) -> bool:
        return bool(self.get(name)(value, args or {}))


def update_validation(registry: ValidatorRegistry, form: Entity, field: str) -> Entity:
    """Return form with field validated.

    Fields without a validator become valid. Forms without an overlay and
    fields the overlay does not hold are returned unchanged.

    Raises:
        UnknownValidatorError: If the field names an unregistered validator
    """
    overlay = get_overlay(form)
    if overlay is None or field not in overlay.field_state:
        return form
    state = overlay.field_state[field]
    definition = overlay.fields_by_name[field]
    if definition.validator is None:
        validity = Validity.VALID
    else:
        passed = registry.check(definition.validator, state.value, definition.validator_args)
        validity = outcome(passed)
        logger.debug("%s %s.%s -> %s", definition.validator, overlay.ident, field, validity.value)
    return with_overlay(form, overlay.update_field(field, state.with_validity(validity)))


def validate_fields(registry: ValidatorRegistry, form: Entity) -> Entity:
    """Return form with every field validated."""
    for name in field_names(form):
        form = update_validation(registry, form, name)
    return form


def validate_form(
    ctx: "EngineContext",
    store: GraphStore,
    form_ident: Ident,
    form_class: Optional[FormClass] = None,
) -> GraphStore:
    """Validate the form at form_ident and every nested form.

    The form class defaults to the one recorded on the root overlay. If the
    root form was never built, a FORM_NOT_INITIALIZED diagnostic is reported
    and the store is returned unchanged.
    """
    overlay = get_overlay(store.get(form_ident))
    if overlay is None:
        ctx.report(Diagnostic(
            code=DiagnosticCode.FORM_NOT_INITIALIZED,
            message="Unable to validate form: no form state found. Was the form built with build_form?",
            ident=form_ident,
        ))
        return store
    root_class = form_class or overlay.form_class
    return update_forms(
        store, root_class, form_ident, lambda record: validate_fields(ctx.validators, record.entity)
    )


def is_valid(form: Entity, field: Optional[str] = None) -> bool:
    """True iff the field (or every field of the form) has been validated as valid.

    On a whole form this is only trustworthy after validate_fields, since
    unchecked fields make it False without being invalid.
    """
    overlay = get_overlay(form)
    if overlay is None:
        return False
    names = [field] if field is not None else field_names(form)
    return all(_validity(overlay, name) == Validity.VALID for name in names)


def is_invalid(form: Entity, field: Optional[str] = None) -> bool:
    """True iff the field (or any field of the form) failed validation.

    Unchecked fields are not counted as invalid.
    """
    overlay = get_overlay(form)
    if overlay is None:
        return False
    names = [field] if field is not None else field_names(form)
    return any(_validity(overlay, name) == Validity.INVALID for name in names)


def _validity(overlay: Overlay, name: str) -> Optional[Validity]:
    state = overlay.field_state.get(name)
    return state.validity if state is not None else None


__all__ = [
    "Validator",
    "BUILTIN_VALIDATORS",
    "ValidatorRegistry",
    "in_range",
    "matches_schema",
    "update_validation",
    "validate_fields",
    "validate_form",
    "is_valid",
    "is_invalid",
]
