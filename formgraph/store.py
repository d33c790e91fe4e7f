"""Graph store accessor.

The graph store is a normalized mapping from Ident to entity. Entities are
plain dicts whose values may be Idents (to-one references) or lists of Idents
(to-many references).

GraphStore values are never modified in place: every write returns a new
store that shares untouched entities with the old one.

Usage:
    >>> from formgraph.types import Ident
    >>> store = GraphStore({Ident("person", 1): {"id": 1, "name": "Amy"}})
    >>> store.get_in((Ident("person", 1), "name"))
    'Amy'
    >>> updated = store.assoc_in((Ident("person", 1), "name"), "Bob")
    >>> store.get_in((Ident("person", 1), "name")), updated.get_in((Ident("person", 1), "name"))
    ('Amy', 'Bob')
"""

from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence

from formgraph.types import Ident

Entity = Dict[str, Any]


class GraphStore:
    """Immutable mapping from Ident to entity with deep path access.

    A path is an Ident followed by zero or more keys into the entity.
    """

    def __init__(self, entities: Optional[Mapping[Ident, Entity]] = None):
        self._entities: Dict[Ident, Entity] = dict(entities or {})

    def __contains__(self, ident: object) -> bool:
        return ident in self._entities

    def __iter__(self) -> Iterator[Ident]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphStore):
            return NotImplemented
        return self._entities == other._entities

    def __repr__(self) -> str:
        return f"GraphStore({self._entities!r})"

    def get(self, ident: Ident, default: Any = None) -> Any:
        """Return the entity stored at ident, or default."""
        return self._entities.get(ident, default)

    def get_in(self, path: Sequence[Any], default: Any = None) -> Any:
        """Read the value at path (an Ident followed by keys)."""
        if not path:
            raise ValueError("Path must start with an Ident")
        value: Any = self._entities.get(path[0], _MISSING)
        for key in path[1:]:
            if value is _MISSING or not isinstance(value, Mapping):
                return default
            value = value.get(key, _MISSING)
        return default if value is _MISSING else value

    def assoc(self, ident: Ident, entity: Entity) -> "GraphStore":
        """Return a new store with entity stored at ident."""
        entities = dict(self._entities)
        entities[ident] = entity
        return GraphStore(entities)

    def assoc_in(self, path: Sequence[Any], value: Any) -> "GraphStore":
        """Return a new store with value written at path.

        Intermediate mappings are copied along the path; missing ones are
        created as empty dicts.
        """
        if not path:
            raise ValueError("Path must start with an Ident")
        ident, keys = path[0], list(path[1:])
        if not keys:
            return self.assoc(ident, value)
        return self.assoc(ident, _assoc_in(self._entities.get(ident), keys, value))

    def update(self, ident: Ident, fn: Callable[..., Entity], *args: Any) -> "GraphStore":
        """Return a new store with fn(entity, *args) stored at ident."""
        return self.assoc(ident, fn(self._entities.get(ident), *args))

    def dissoc(self, ident: Ident) -> "GraphStore":
        """Return a new store without the entity at ident."""
        entities = dict(self._entities)
        entities.pop(ident, None)
        return GraphStore(entities)

    def to_dict(self) -> Dict[Ident, Entity]:
        """Return a shallow copy of the underlying mapping."""
        return dict(self._entities)


_MISSING = object()


def _assoc_in(node: Any, keys: Sequence[Any], value: Any) -> Dict[Any, Any]:
    copied = dict(node) if isinstance(node, Mapping) else {}
    head, rest = keys[0], keys[1:]
    copied[head] = _assoc_in(copied.get(head), rest, value) if rest else value
    return copied


__all__ = [
    "Entity",
    "GraphStore",
]
