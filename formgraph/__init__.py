"""formgraph: form state for entities in a normalized graph store.

formgraph overlays editable, validated form state onto entities stored in a
normalized, reference-shaped application store and keeps it synchronized with
the canonical entity data, including nested forms linked through to-one and
to-many relations. It provides:
- Declarative form schemas and field helpers
- A form builder and a walker that finds every nested form of a root form
- A pluggable validator registry and per-field validity tracking
- Dirty checking against the canonical entity
- Pure store mutations (edit, validate, commit, reset) and a small
  transaction runtime to run them

Basic usage:
    >>> from formgraph import FormRuntime, FormClass, FormSchema, GraphStore, Ident
    >>> from formgraph.schema import id_field, integer_input
    >>> person = FormClass("person", FormSchema([
    ...     id_field("id"),
    ...     integer_input("age", "in-range?", {"min": 0, "max": 120}),
    ... ]))
    >>> runtime = FormRuntime(GraphStore({Ident("person", 1): {"id": 1, "age": 200}}))
    >>> runtime.init_form(person, Ident("person", 1))
    >>> runtime.commit_to_entity(runtime.store.get(Ident("person", 1)))
    False
"""

__version__ = "0.1.0"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formgraph.config import EngineContext
from formgraph.runtime import FormRuntime, Mutation
from formgraph.schema import FormClass, FormSchema
from formgraph.store import GraphStore
from formgraph.types import Ident

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "EngineContext",
    "FormRuntime",
    "Mutation",
    "FormClass",
    "FormSchema",
    "GraphStore",
    "Ident",
]
