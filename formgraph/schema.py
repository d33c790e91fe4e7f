"""Declarative form schemas.

A form is described by an ordered sequence of FieldDefinitions (a FormSchema)
attached to a FormClass. The FormClass is the capability descriptor the engine
needs for every entity "class" that can appear as a form or subform:

- it produces the Ident of an entity (``ident_of``)
- it declares which of its relations join to other classes (``joins``)
- it exposes a FormSchema (``schema``)

Field helpers build FieldDefinitions the way forms are usually declared:

    >>> person = FormClass(
    ...     "person",
    ...     FormSchema([
    ...         id_field("id"),
    ...         text_input("name"),
    ...         integer_input("age", "in-range?", {"min": 0, "max": 120}),
    ...     ]),
    ... )
    >>> person.ident_of({"id": 1, "name": "Amy"})
    Ident(table='person', id=1)

Schemas can also be declared as data and loaded with FormSchema.from_dict,
which checks the declaration against a JSON Schema first.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from jsonschema import Draft7Validator

from formgraph.errors import DuplicateFieldError, FormConfigurationError
from formgraph.types import Cardinality, FieldType, Ident

# Default value of a dropdown that has no selection yet
NO_SELECTION = "forms/none"


@dataclass(frozen=True)
class Option:
    """One choice of a dropdown field."""
    key: str
    label: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"key": self.key, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Option":
        """Create Option from dict."""
        return cls(key=data["key"], label=data["label"])


@dataclass(frozen=True)
class FieldDefinition:
    """Declaration of a single form field.

    Attributes:
        name: Field name, unique within a schema
        type: Kind of field
        default_value: Value used when the entity does not provide one
        validator: Optional - symbolic name of a registered validator
        validator_args: Configuration passed to the validator
        css_class: Optional - advisory CSS class for renderers
        cardinality: Subform fields only - ONE or MANY
        options: Dropdown fields only - the available choices
    """
    name: str
    type: FieldType
    default_value: Any = None
    validator: Optional[str] = None
    validator_args: Mapping[str, Any] = field(default_factory=dict)
    css_class: Optional[str] = None
    cardinality: Optional[Cardinality] = None
    options: Tuple[Option, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "name": self.name,
            "type": self.type.value if isinstance(self.type, FieldType) else self.type,
        }
        if self.default_value is not None:
            result["defaultValue"] = self.default_value
        if self.validator is not None:
            result["validator"] = self.validator
        if self.validator_args:
            result["validatorArgs"] = dict(self.validator_args)
        if self.css_class is not None:
            result["cssClass"] = self.css_class
        if self.cardinality is not None:
            result["cardinality"] = self.cardinality.value
        if self.options:
            result["options"] = [o.to_dict() for o in self.options]
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDefinition":
        """Create FieldDefinition from dict."""
        field_type = FieldType(data["type"])
        cardinality = data.get("cardinality")
        if cardinality is not None:
            cardinality = Cardinality(cardinality)
        elif field_type == FieldType.SUBFORM:
            cardinality = Cardinality.MANY
        default_value = data.get("defaultValue", _TYPE_DEFAULTS.get(field_type))
        return cls(
            name=data["name"],
            type=field_type,
            default_value=default_value,
            validator=data.get("validator"),
            validator_args=data.get("validatorArgs", {}),
            css_class=data.get("cssClass"),
            cardinality=cardinality,
            options=tuple(Option.from_dict(o) for o in data.get("options", [])),
        )


_TYPE_DEFAULTS: Dict[FieldType, Any] = {
    FieldType.TEXT: "",
    FieldType.INTEGER: "",
    FieldType.CHECKBOX: False,
    FieldType.DROPDOWN: NO_SELECTION,
}


# JSON Schema for declaring form schemas as data
SCHEMA_DECLARATION: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "fields": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "type": {"enum": [t.value for t in FieldType]},
                    "validator": {"type": ["string", "null"]},
                    "validatorArgs": {"type": "object"},
                    "cssClass": {"type": ["string", "null"]},
                    "cardinality": {"enum": [c.value for c in Cardinality]},
                    "options": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "key": {"type": "string"},
                                "label": {"type": "string"},
                            },
                            "required": ["key", "label"],
                        },
                    },
                },
                "required": ["name", "type"],
            },
        },
    },
    "required": ["fields"],
}

_declaration_validator = Draft7Validator(SCHEMA_DECLARATION)


class FormSchema:
    """Ordered field definitions of one form, with lookup by name.

    Raises:
        DuplicateFieldError: If two definitions share a name
    """

    def __init__(self, fields: Sequence[FieldDefinition]):
        by_name: Dict[str, FieldDefinition] = {}
        for definition in fields:
            if definition.name in by_name:
                raise DuplicateFieldError(definition.name)
            by_name[definition.name] = definition
        self.fields: Tuple[FieldDefinition, ...] = tuple(fields)
        self.by_name: Dict[str, FieldDefinition] = by_name

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self.by_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormSchema):
            return NotImplemented
        return self.fields == other.fields

    def __repr__(self) -> str:
        return f"FormSchema({[f.name for f in self.fields]!r})"

    def get(self, name: str) -> Optional[FieldDefinition]:
        return self.by_name.get(name)

    def names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def identity_field(self) -> Optional[FieldDefinition]:
        """The first identity field, if the schema declares one."""
        for definition in self.fields:
            if definition.type == FieldType.IDENTITY:
                return definition
        return None

    def subform_fields(self) -> List[FieldDefinition]:
        return [f for f in self.fields if f.type == FieldType.SUBFORM]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"fields": [f.to_dict() for f in self.fields]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormSchema":
        """Load a schema declared as data.

        Raises:
            FormConfigurationError: If the declaration does not match
                SCHEMA_DECLARATION; the message lists every problem found
        """
        errors = sorted(_declaration_validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
                for error in errors
            )
            raise FormConfigurationError(f"Invalid form schema declaration: {problems}")
        return cls([FieldDefinition.from_dict(f) for f in data["fields"]])


class EntityClass:
    """Describes an entity class that can be referenced from forms.

    An EntityClass knows how to compute the Ident of its entities and which of
    its fields join to other classes. Without a schema it is not a form, so the
    form graph walker does not treat it as one.

    Attributes:
        name: Class name
        table: Ident table of the class (defaults to name)
        joins: Field name -> class that the relation points at
    """

    schema: Optional[FormSchema] = None

    def __init__(
        self,
        name: str,
        table: Optional[str] = None,
        ident_fn: Optional[Callable[[Mapping[str, Any]], Ident]] = None,
        joins: Optional[Dict[str, "EntityClass"]] = None,
    ):
        self.name = name
        self.table = table or name
        self.joins: Dict[str, EntityClass] = dict(joins or {})
        self._ident_fn = ident_fn

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def id_field_name(self) -> str:
        return "id"

    def ident_of(self, entity: Mapping[str, Any]) -> Ident:
        """Compute the Ident of entity."""
        if self._ident_fn is not None:
            return self._ident_fn(entity)
        return Ident(self.table, entity.get(self.id_field_name()))

    def add_join(self, field_name: str, target: "EntityClass") -> "EntityClass":
        """Declare that field_name joins to target. Returns self.

        Joins can be added after construction, which is how mutually
        referencing classes are declared.
        """
        self.joins[field_name] = target
        return self


class FormClass(EntityClass):
    """An entity class that also declares a form schema."""

    def __init__(
        self,
        name: str,
        schema: FormSchema,
        table: Optional[str] = None,
        ident_fn: Optional[Callable[[Mapping[str, Any]], Ident]] = None,
        joins: Optional[Dict[str, EntityClass]] = None,
    ):
        super().__init__(name, table=table, ident_fn=ident_fn, joins=joins)
        self.schema = schema

    def id_field_name(self) -> str:
        identity = self.schema.identity_field if self.schema is not None else None
        return identity.name if identity is not None else "id"


# Field helpers


def id_field(name: str) -> FieldDefinition:
    """Declare a hidden identity field."""
    return FieldDefinition(name=name, type=FieldType.IDENTITY)


def text_input(
    name: str,
    validator: Optional[str] = None,
    validator_args: Optional[Mapping[str, Any]] = None,
) -> FieldDefinition:
    """Declare a text input."""
    return FieldDefinition(
        name=name,
        type=FieldType.TEXT,
        default_value="",
        validator=validator,
        validator_args=dict(validator_args or {}),
    )


def integer_input(
    name: str,
    validator: Optional[str] = None,
    validator_args: Optional[Mapping[str, Any]] = None,
) -> FieldDefinition:
    """Declare an integer input."""
    return FieldDefinition(
        name=name,
        type=FieldType.INTEGER,
        default_value="",
        validator=validator,
        validator_args=dict(validator_args or {}),
    )


def checkbox_input(name: str) -> FieldDefinition:
    """Declare a checkbox."""
    return FieldDefinition(name=name, type=FieldType.CHECKBOX, default_value=False)


def dropdown_input(
    name: str,
    options: Sequence[Option],
    default_value: str = NO_SELECTION,
) -> FieldDefinition:
    """Declare a dropdown selector. Without a default nothing is selected."""
    return FieldDefinition(
        name=name,
        type=FieldType.DROPDOWN,
        default_value=default_value,
        options=tuple(options),
    )


def option(key: str, label: str) -> Option:
    return Option(key=key, label=label)


def subform(name: str, cardinality: Any = Cardinality.MANY) -> FieldDefinition:
    """Declare that the form links to subforms through the relation name.

    Unrecognized cardinalities fall back to MANY.
    """
    try:
        resolved = Cardinality(cardinality)
    except ValueError:
        resolved = Cardinality.MANY
    return FieldDefinition(name=name, type=FieldType.SUBFORM, cardinality=resolved)


def set_class(css_class: str, definition: FieldDefinition) -> FieldDefinition:
    """Return definition with an advisory CSS class."""
    return replace(definition, css_class=css_class)


__all__ = [
    "NO_SELECTION",
    "Option",
    "FieldDefinition",
    "FormSchema",
    "SCHEMA_DECLARATION",
    "EntityClass",
    "FormClass",
    "id_field",
    "text_input",
    "integer_input",
    "checkbox_input",
    "dropdown_input",
    "option",
    "subform",
    "set_class",
]
