"""Unit tests for the graph store and core value types.

Tests cover:
- Deep reads and writes by path
- Copy-on-write behaviour of GraphStore
- Ident and TempId values
"""

import pytest

from formgraph.store import GraphStore
from formgraph.types import Ident, TempId, UUIDTempIdGenerator, is_tempid


class TestGraphStoreReads:
    """Test reading entities and nested values."""

    def test_get_entity(self):
        store = GraphStore({Ident("person", 1): {"name": "Amy"}})
        assert store.get(Ident("person", 1)) == {"name": "Amy"}
        assert store.get(Ident("person", 2)) is None
        assert store.get(Ident("person", 2), {}) == {}

    def test_get_in(self):
        store = GraphStore({Ident("person", 1): {"address": {"city": "Springfield"}}})
        assert store.get_in((Ident("person", 1), "address", "city")) == "Springfield"
        assert store.get_in((Ident("person", 1),)) == {"address": {"city": "Springfield"}}

    def test_get_in_missing_path_returns_default(self):
        store = GraphStore({Ident("person", 1): {"name": "Amy"}})
        assert store.get_in((Ident("person", 1), "address", "city")) is None
        assert store.get_in((Ident("person", 1), "name", "first"), "?") == "?"
        assert store.get_in((Ident("person", 9), "name"), "?") == "?"

    def test_get_in_keeps_falsy_values(self):
        store = GraphStore({Ident("person", 1): {"active": False, "age": 0}})
        assert store.get_in((Ident("person", 1), "active"), True) is False
        assert store.get_in((Ident("person", 1), "age"), 99) == 0

    def test_empty_path_raises(self):
        with pytest.raises(ValueError):
            GraphStore().get_in(())

    def test_container_protocol(self):
        store = GraphStore({Ident("a", 1): {}, Ident("b", 1): {}})
        assert Ident("a", 1) in store
        assert Ident("c", 1) not in store
        assert len(store) == 2
        assert set(store) == {Ident("a", 1), Ident("b", 1)}


class TestGraphStoreWrites:
    """Test that writes return new stores and leave the original alone."""

    def test_assoc_returns_new_store(self):
        store = GraphStore()
        updated = store.assoc(Ident("person", 1), {"name": "Amy"})
        assert Ident("person", 1) not in store
        assert updated.get(Ident("person", 1)) == {"name": "Amy"}

    def test_assoc_in_copies_along_path(self):
        entity = {"name": "Amy", "address": {"city": "Springfield"}}
        store = GraphStore({Ident("person", 1): entity})
        updated = store.assoc_in((Ident("person", 1), "address", "city"), "Shelbyville")

        assert updated.get_in((Ident("person", 1), "address", "city")) == "Shelbyville"
        assert entity["address"]["city"] == "Springfield"
        assert store.get_in((Ident("person", 1), "address", "city")) == "Springfield"

    def test_assoc_in_creates_missing_levels(self):
        updated = GraphStore().assoc_in((Ident("person", 1), "address", "city"), "Springfield")
        assert updated.get(Ident("person", 1)) == {"address": {"city": "Springfield"}}

    def test_assoc_in_with_ident_only_replaces_entity(self):
        store = GraphStore({Ident("person", 1): {"name": "Amy"}})
        updated = store.assoc_in((Ident("person", 1),), {"name": "Bob"})
        assert updated.get(Ident("person", 1)) == {"name": "Bob"}

    def test_update(self):
        store = GraphStore({Ident("counter", 1): {"n": 1}})
        updated = store.update(Ident("counter", 1), lambda e, step: {"n": e["n"] + step}, 5)
        assert updated.get(Ident("counter", 1)) == {"n": 6}
        assert store.get(Ident("counter", 1)) == {"n": 1}

    def test_dissoc(self):
        store = GraphStore({Ident("person", 1): {}})
        assert Ident("person", 1) not in store.dissoc(Ident("person", 1))
        assert Ident("person", 1) in store

    def test_equality(self):
        assert GraphStore({Ident("a", 1): {"x": 1}}) == GraphStore({Ident("a", 1): {"x": 1}})
        assert GraphStore({Ident("a", 1): {"x": 1}}) != GraphStore({Ident("a", 1): {"x": 2}})


class TestIdent:
    """Test Ident value semantics."""

    def test_equal_by_value(self):
        assert Ident("person", 1) == Ident("person", 1)
        assert Ident("person", 1) != Ident("person", 2)
        assert Ident("person", 1) != Ident("phone", 1)
        assert len({Ident("person", 1), Ident("person", 1)}) == 1

    def test_immutable(self):
        ident = Ident("person", 1)
        with pytest.raises(AttributeError):
            ident.id = 2

    def test_str(self):
        assert str(Ident("person", 1)) == "[person 1]"

    def test_serialization(self):
        assert Ident("person", 1).to_dict() == {"table": "person", "id": 1}
        assert Ident.from_dict({"table": "person", "id": 1}) == Ident("person", 1)

    def test_serialization_with_tempid(self):
        ident = Ident("person", TempId("abc"))
        assert ident.to_dict() == {"table": "person", "id": {"tempid": "abc"}}
        assert Ident.from_dict(ident.to_dict()) == ident


class TestTempId:
    """Test placeholder ids."""

    def test_generator_produces_unique_ids(self):
        generate = UUIDTempIdGenerator()
        ids = {generate() for _ in range(100)}
        assert len(ids) == 100

    def test_is_tempid(self):
        assert is_tempid(TempId("abc")) is True
        assert is_tempid("abc") is False
        assert is_tempid(None) is False

    def test_repr(self):
        assert repr(TempId("abc")) == "#tempid[abc]"
