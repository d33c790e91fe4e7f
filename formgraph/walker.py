"""Form graph walker.

Discovers every nested form reachable from a root form and resolves the
declared subform paths to the Idents actually present in the store. The
declarations say where subforms may live; the stored data decides how many
there are (a to-many relation expands into one form per reference).

Usage:
    >>> from formgraph.schema import FormClass, FormSchema, id_field, subform, text_input
    >>> from formgraph.store import GraphStore
    >>> from formgraph.types import Ident
    >>> phone = FormClass("phone", FormSchema([id_field("id"), text_input("number")]))
    >>> person = FormClass("person", FormSchema([id_field("id"), subform("phones")]),
    ...                    joins={"phones": phone})
    >>> store = GraphStore({
    ...     Ident("person", 1): {"id": 1, "phones": [Ident("phone", 1), Ident("phone", 2)]},
    ...     Ident("phone", 1): {"id": 1, "number": "555-1234"},
    ...     Ident("phone", 2): {"id": 2, "number": "555-9876"},
    ... })
    >>> [record.ident for record in get_forms(store, person, Ident("person", 1))]
    [Ident(table='person', id=1), Ident(table='phone', id=1), Ident(table='phone', id=2)]
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple, TypeVar

from formgraph.builder import TempIdSource, build_form
from formgraph.schema import FormClass, FormSchema
from formgraph.store import Entity, GraphStore
from formgraph.types import Ident

logger = logging.getLogger(__name__)

Path = Tuple[str, ...]
T = TypeVar("T")


@dataclass(frozen=True)
class FormRecord:
    """One form found by the walker.

    Attributes:
        ident: Where the form lives in the store
        form_class: The class declaring the form
        entity: The stored entity (with its overlay, if built)
    """
    ident: Ident
    form_class: FormClass
    entity: Entity


def has_form_capabilities(target: Any) -> bool:
    """True if target can be walked into as a nested form.

    It must produce Idents, declare its joins and expose a form schema.
    """
    return (
        callable(getattr(target, "ident_of", None))
        and isinstance(getattr(target, "joins", None), Mapping)
        and isinstance(getattr(target, "schema", None), FormSchema)
    )


def discover_subform_paths(form_class: FormClass) -> List[Tuple[Path, FormClass]]:
    """Every (path, form class) reachable through declared subform fields.

    Direct subforms come first, followed by the discoveries nested under each
    of them. A class already on the current branch is reported but not walked
    into again, so mutually referencing forms terminate.
    """
    return _discover(form_class, (), frozenset({id(form_class)}))


def _discover(form_class: FormClass, path: Path, visited: FrozenSet[int]) -> List[Tuple[Path, FormClass]]:
    direct: List[Tuple[Path, FormClass]] = []
    for definition in form_class.schema.subform_fields():
        target = form_class.joins.get(definition.name)
        if has_form_capabilities(target):
            direct.append((path + (definition.name,), target))

    found = list(direct)
    for sub_path, target in direct:
        if id(target) in visited:
            logger.debug("Not descending into %r at %s: already on this branch", target, sub_path)
            continue
        found.extend(_discover(target, sub_path, visited | {id(target)}))
    return found


def _is_to_many(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, Ident) for v in value)


def resolve_path_to_idents(store: GraphStore, entity: Optional[Mapping[str, Any]], path: Sequence[str]) -> List[Ident]:
    """Follow path through the stored data starting at entity.

    Returns every Ident reached. Missing fields and non-reference values end
    the walk without contributing anything.
    """
    if not path or not isinstance(entity, Mapping):
        return []
    key, remainder = path[0], path[1:]
    value = entity.get(key)
    if isinstance(value, Ident):
        targets: Sequence[Ident] = [value]
    elif _is_to_many(value):
        targets = value
    else:
        return []

    idents: List[Ident] = []
    for ident in targets:
        if remainder:
            idents.extend(resolve_path_to_idents(store, store.get(ident), remainder))
        else:
            idents.append(ident)
    return idents


def get_forms(store: GraphStore, root_class: FormClass, root_ident: Ident) -> List[FormRecord]:
    """The root form followed by every nested form present in the store.

    One record is returned per resolved reference, so a to-many relation
    holding N references yields N records even when some repeat. References
    to entities missing from the store are dropped.
    """
    root = store.get(root_ident)
    candidates: List[Tuple[Ident, FormClass]] = [(root_ident, root_class)]
    for path, form_class in discover_subform_paths(root_class):
        for ident in resolve_path_to_idents(store, root, path):
            candidates.append((ident, form_class))

    records: List[FormRecord] = []
    for ident, form_class in candidates:
        if ident not in store:
            continue
        records.append(FormRecord(ident=ident, form_class=form_class, entity=store.get(ident)))
    return records


def update_forms(
    store: GraphStore,
    root_class: FormClass,
    root_ident: Ident,
    fn: Callable[[FormRecord], Entity],
) -> GraphStore:
    """Apply fn to every form of the tree and write the results back.

    A form reached through several paths is written once, from its first record.
    """
    written: Set[Ident] = set()
    for record in get_forms(store, root_class, root_ident):
        if record.ident in written:
            continue
        written.add(record.ident)
        store = store.assoc(record.ident, fn(record))
    return store


def reduce_forms(
    store: GraphStore,
    root_class: FormClass,
    root_ident: Ident,
    fn: Callable[[T, FormRecord], T],
    initial: T,
) -> T:
    """Fold fn over every form of the tree."""
    acc = initial
    for record in get_forms(store, root_class, root_ident):
        acc = fn(acc, record)
    return acc


def init_form(
    store: GraphStore,
    form_class: FormClass,
    ident: Ident,
    tempids: Optional[TempIdSource] = None,
) -> GraphStore:
    """Build overlays for the form at ident and all of its nested forms."""
    def build(record: FormRecord) -> Entity:
        return build_form(record.form_class, record.entity, tempids, ident=record.ident)

    return update_forms(store, form_class, ident, build)


__all__ = [
    "FormRecord",
    "has_form_capabilities",
    "discover_subform_paths",
    "resolve_path_to_idents",
    "get_forms",
    "update_forms",
    "reduce_forms",
    "init_form",
]
