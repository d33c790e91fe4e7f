"""Pytest configuration and shared fixtures.

The fixtures describe a small contact book: a person with a to-many ``phones``
relation and a to-one ``address`` relation, both declared as subforms.
"""

import pytest

from formgraph.config import EngineContext
from formgraph.errors import CollectingReporter
from formgraph.schema import (
    FormClass,
    FormSchema,
    checkbox_input,
    dropdown_input,
    id_field,
    integer_input,
    option,
    subform,
    text_input,
)
from formgraph.store import GraphStore
from formgraph.types import Ident
from formgraph.walker import init_form

PERSON = Ident("person", 1)
PHONE_1 = Ident("phone", 1)
PHONE_2 = Ident("phone", 2)
ADDRESS = Ident("address", 10)


@pytest.fixture
def reporter():
    """Collects diagnostics reported during a test."""
    return CollectingReporter()


@pytest.fixture
def ctx(reporter):
    """Engine context reporting into the collecting reporter."""
    return EngineContext(reporter=reporter)


@pytest.fixture
def phone_class():
    return FormClass("phone", FormSchema([
        id_field("id"),
        text_input("number", "matches-schema?", {"type": "string", "minLength": 3}),
        dropdown_input("kind", [option("home", "Home"), option("work", "Work")]),
    ]))


@pytest.fixture
def address_class():
    return FormClass("address", FormSchema([
        id_field("id"),
        text_input("street"),
        text_input("city"),
    ]))


@pytest.fixture
def person_class(phone_class, address_class):
    return FormClass(
        "person",
        FormSchema([
            id_field("id"),
            text_input("name"),
            integer_input("age", "in-range?", {"min": 0, "max": 120}),
            checkbox_input("subscribed"),
            subform("phones", "many"),
            subform("address", "one"),
        ]),
        joins={"phones": phone_class, "address": address_class},
    )


@pytest.fixture
def person_entity():
    return {
        "id": 1,
        "name": "Amy",
        "age": 30,
        "subscribed": False,
        "phones": [PHONE_1, PHONE_2],
        "address": ADDRESS,
    }


@pytest.fixture
def store(person_entity):
    """Canonical data only, no forms built yet."""
    return GraphStore({
        PERSON: person_entity,
        PHONE_1: {"id": 1, "number": "555-1234", "kind": "home"},
        PHONE_2: {"id": 2, "number": "555-9876", "kind": "work"},
        ADDRESS: {"id": 10, "street": "1 Main St", "city": "Springfield"},
    })


@pytest.fixture
def built_store(store, person_class):
    """The same data with forms built for the person and all nested forms."""
    return init_form(store, person_class, PERSON)
