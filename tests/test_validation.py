"""Unit tests for validators and form validation.

Tests cover:
- Built-in validators (in-range?, matches-schema?)
- Validator registration and lookup errors
- Field, form and form-tree validation
- Whole-form valid/invalid predicates
"""

import jsonschema
import pytest

from formgraph.builder import build_form
from formgraph.errors import FormConfigurationError, UnknownValidatorError
from formgraph.overlay import current_validity, get_overlay, with_overlay
from formgraph.schema import FormClass, FormSchema, id_field, integer_input, text_input
from formgraph.types import DiagnosticCode, Ident, Validity
from formgraph.validation import (
    ValidatorRegistry,
    in_range,
    is_invalid,
    is_valid,
    matches_schema,
    update_validation,
    validate_fields,
    validate_form,
)

from tests.conftest import ADDRESS, PERSON, PHONE_1, PHONE_2


@pytest.fixture
def registry():
    return ValidatorRegistry.with_builtins()


@pytest.fixture
def person():
    return FormClass("person", FormSchema([
        id_field("id"),
        text_input("name"),
        integer_input("age", "in-range?", {"min": 0, "max": 120}),
    ]))


class TestInRange:
    """Test the in-range? validator."""

    def test_inside_range(self):
        assert in_range(5, {"min": 1, "max": 10}) is True

    def test_below_range(self):
        assert in_range(0, {"min": 1, "max": 10}) is False

    def test_bounds_are_inclusive(self):
        assert in_range(10, {"min": 1, "max": 10}) is True
        assert in_range(1, {"min": 1, "max": 10}) is True
        assert in_range(11, {"min": 1, "max": 10}) is False

    def test_value_coerced_to_integer(self):
        assert in_range("7", {"min": 1, "max": 10}) is True
        assert in_range(7.9, {"min": 1, "max": 7}) is True

    def test_non_numeric_is_out_of_range(self):
        assert in_range("abc", {"min": 1, "max": 10}) is False
        assert in_range("", {"min": 1, "max": 10}) is False
        assert in_range(None, {"min": 1, "max": 10}) is False


class TestMatchesSchema:
    """Test the matches-schema? validator."""

    def test_matching_value(self):
        assert matches_schema("555-1234", {"type": "string", "minLength": 3}) is True

    def test_non_matching_value(self):
        assert matches_schema("55", {"type": "string", "minLength": 3}) is False
        assert matches_schema(555, {"type": "string"}) is False

    def test_broken_schema_raises(self):
        with pytest.raises(jsonschema.SchemaError):
            matches_schema("x", {"type": "not-a-type"})


class TestValidatorRegistry:
    """Test registering and looking up validators."""

    def test_builtins(self, registry):
        assert "in-range?" in registry
        assert "matches-schema?" in registry
        assert registry.names() == ["in-range?", "matches-schema?"]

    def test_empty_registry(self):
        assert ValidatorRegistry().names() == []

    def test_register(self, registry):
        registry.register("even?", lambda value, args: int(value) % 2 == 0)
        assert registry.check("even?", 4) is True
        assert registry.check("even?", 3) is False

    def test_register_as_decorator(self, registry):
        @registry.register("not-blank?")
        def not_blank(value, args):
            return bool(str(value).strip())

        assert registry.get("not-blank?") is not_blank
        assert registry.check("not-blank?", "  ") is False

    def test_duplicate_registration_raises(self, registry):
        with pytest.raises(FormConfigurationError):
            registry.register("in-range?", lambda value, args: True)

    def test_replace_registration(self, registry):
        registry.register("in-range?", lambda value, args: True, replace=True)
        assert registry.check("in-range?", 1000, {"min": 0, "max": 1}) is True

    def test_unknown_name_raises(self, registry):
        with pytest.raises(UnknownValidatorError) as exc_info:
            registry.get("no-such?")
        assert exc_info.value.name == "no-such?"
        assert isinstance(exc_info.value, FormConfigurationError)

    def test_unregister(self, registry):
        registry.unregister("in-range?")
        assert "in-range?" not in registry
        registry.unregister("in-range?")

    def test_registries_are_independent(self):
        first = ValidatorRegistry.with_builtins()
        second = ValidatorRegistry.with_builtins()
        first.register("extra?", lambda value, args: True)
        assert "extra?" not in second


class TestUpdateValidation:
    """Test validating a single field."""

    def test_field_without_validator_becomes_valid(self, registry, person):
        form = update_validation(registry, build_form(person, {"id": 1, "name": ""}), "name")
        assert current_validity(form, "name") == Validity.VALID

    def test_failing_validator(self, registry, person):
        form = update_validation(registry, build_form(person, {"id": 1, "age": 200}), "age")
        assert current_validity(form, "age") == Validity.INVALID

    def test_passing_validator(self, registry, person):
        form = update_validation(registry, build_form(person, {"id": 1, "age": 30}), "age")
        assert current_validity(form, "age") == Validity.VALID

    def test_only_that_field_changes(self, registry, person):
        form = update_validation(registry, build_form(person, {"id": 1, "age": 30}), "age")
        assert current_validity(form, "name") == Validity.UNCHECKED

    def test_input_form_unchanged(self, registry, person):
        form = build_form(person, {"id": 1, "age": 200})
        update_validation(registry, form, "age")
        assert current_validity(form, "age") == Validity.UNCHECKED

    def test_validator_receives_value_and_args(self, person):
        calls = []
        registry = ValidatorRegistry()
        registry.register("in-range?", lambda value, args: calls.append((value, args)) or True)
        update_validation(registry, build_form(person, {"id": 1, "age": 42}), "age")
        assert calls == [(42, {"min": 0, "max": 120})]

    def test_unregistered_validator_raises(self, registry):
        odd = FormClass("odd", FormSchema([id_field("id"), text_input("nick", "no-such?")]))
        with pytest.raises(UnknownValidatorError):
            update_validation(registry, build_form(odd, {"id": 1}), "nick")

    def test_form_without_overlay_unchanged(self, registry):
        entity = {"id": 1}
        assert update_validation(registry, entity, "id") is entity

    def test_unknown_field_unchanged(self, registry, person):
        form = build_form(person, {"id": 1})
        assert update_validation(registry, form, "missing") is form


class TestValidateFields:
    """Test validating every field of one form."""

    def test_marks_every_field(self, registry, person):
        form = validate_fields(registry, build_form(person, {"id": 1, "name": "Amy", "age": 200}))
        assert current_validity(form, "id") == Validity.VALID
        assert current_validity(form, "name") == Validity.VALID
        assert current_validity(form, "age") == Validity.INVALID

    def test_idempotent(self, registry, person):
        once = validate_fields(registry, build_form(person, {"id": 1, "name": "Amy", "age": 200}))
        twice = validate_fields(registry, once)
        assert get_overlay(twice).field_state == get_overlay(once).field_state


class TestWholeFormPredicates:
    """Test is_valid / is_invalid."""

    def test_unchecked_form_is_neither(self, person):
        form = build_form(person, {"id": 1, "name": "Amy", "age": 200})
        assert is_valid(form) is False
        assert is_invalid(form) is False

    def test_after_validation(self, registry, person):
        invalid = validate_fields(registry, build_form(person, {"id": 1, "name": "Amy", "age": 200}))
        assert is_valid(invalid) is False
        assert is_invalid(invalid) is True

        valid = validate_fields(registry, build_form(person, {"id": 1, "name": "Amy", "age": 30}))
        assert is_valid(valid) is True
        assert is_invalid(valid) is False

    def test_per_field(self, registry, person):
        form = validate_fields(registry, build_form(person, {"id": 1, "name": "Amy", "age": 200}))
        assert is_valid(form, "name") is True
        assert is_invalid(form, "age") is True
        assert is_valid(form, "age") is False

    def test_plain_entity(self):
        assert is_valid({"id": 1}) is False
        assert is_invalid({"id": 1}) is False


class TestValidateForm:
    """Test validating a whole form tree in the store."""

    def test_validates_nested_forms(self, ctx, built_store):
        overlay = get_overlay(built_store.get(PHONE_2))
        overlay = overlay.update_field("number", overlay.field_state["number"].with_value("55"))
        store = built_store.assoc(PHONE_2, with_overlay(built_store.get(PHONE_2), overlay))

        validated = validate_form(ctx, store, PERSON)

        assert current_validity(validated.get(PERSON), "name") == Validity.VALID
        assert current_validity(validated.get(PHONE_1), "number") == Validity.VALID
        assert current_validity(validated.get(PHONE_2), "number") == Validity.INVALID
        assert current_validity(validated.get(ADDRESS), "city") == Validity.VALID

    def test_uses_class_recorded_on_overlay(self, ctx, built_store, person_class):
        explicit = validate_form(ctx, built_store, PERSON, person_class)
        implicit = validate_form(ctx, built_store, PERSON)
        assert explicit == implicit

    def test_never_built_form_reports(self, ctx, reporter, store):
        result = validate_form(ctx, store, PERSON)
        assert result is store
        assert reporter.codes() == [DiagnosticCode.FORM_NOT_INITIALIZED]
        assert reporter.diagnostics[0].ident == PERSON

    def test_missing_entity_reports(self, ctx, reporter, store):
        result = validate_form(ctx, store, Ident("person", 99))
        assert result is store
        assert reporter.codes() == [DiagnosticCode.FORM_NOT_INITIALIZED]

    def test_nested_forms_without_overlay_left_alone(self, ctx, store, person_class):
        store = store.assoc(PERSON, build_form(person_class, store.get(PERSON)))
        validated = validate_form(ctx, store, PERSON)
        assert current_validity(validated.get(PERSON), "age") == Validity.VALID
        assert validated.get(PHONE_1) == store.get(PHONE_1)
