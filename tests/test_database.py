from __future__ import annotations

import sqlite3

import pytest

from database import SQLiteFamilyStore
from models import RelationKind
from resolver import children_of, parents_of, resolve_relations


def test_members_keep_insertion_order(tmp_path) -> None:
    db_path = tmp_path / "family.db"
    with SQLiteFamilyStore(db_path) as store:
        store.add_member("Zoe", "Last", member_id="z")
        store.add_member("Adam", "First", birth_date="1950-01-01", gender="M", member_id="a")
        generated = store.add_member("No", "Id")

    with SQLiteFamilyStore(db_path) as store:
        members = store.list_members()

    assert [m.id for m in members] == ["z", "a", generated.id]
    assert members[1].birth_date == "1950-01-01"
    assert members[1].gender == "M"
    assert len(generated.id) == 32


def test_create_relation_writes_inverse() -> None:
    with SQLiteFamilyStore() as store:
        store.add_member("Pat", "Parent", member_id="P")
        store.add_member("Chris", "Child", member_id="C")
        store.create_relation("P", "C", RelationKind.PARENT)

        triples = [(r.source_id, r.kind, r.target_id) for r in store.list_relations()]

    assert triples == [("P", RelationKind.PARENT, "C"), ("C", RelationKind.CHILD, "P")]


def test_stored_pair_resolves_to_parent_and_child() -> None:
    # X (born 1983) recorded as child of Y (born 1956), both sides stored
    with SQLiteFamilyStore() as store:
        store.add_member("X", "Young", birth_date="1983-05-02", member_id="X")
        store.add_member("Y", "Old", birth_date="1956-09-30", member_id="Y")
        store.insert_raw_relation("X", "Y", RelationKind.CHILD)
        store.insert_raw_relation("Y", "X", RelationKind.PARENT)

        resolved = resolve_relations(store.list_members(), store.list_relations())

    assert parents_of(resolved, "X") == ["Y"]
    assert children_of(resolved, "Y") == ["X"]
    assert len(resolved["X"]) == len(resolved["Y"]) == 1


def test_delete_relation_removes_both_sides() -> None:
    with SQLiteFamilyStore() as store:
        store.add_member("A", "A", member_id="A")
        store.add_member("B", "B", member_id="B")
        store.add_member("C", "C", member_id="C")
        relation_id = store.create_relation("A", "B", RelationKind.SPOUSE)
        store.create_relation("A", "C", RelationKind.SIBLING)

        assert store.delete_relation(relation_id) is True
        assert store.delete_relation(relation_id) is False
        remaining = {(r.source_id, r.target_id) for r in store.list_relations()}

    assert remaining == {("A", "C"), ("C", "A")}


def test_relation_requires_known_members() -> None:
    with SQLiteFamilyStore() as store:
        store.add_member("A", "A", member_id="A")
        with pytest.raises(sqlite3.IntegrityError):
            store.insert_raw_relation("A", "ghost", RelationKind.SPOUSE)


def test_delete_relation_with_malformed_id() -> None:
    with SQLiteFamilyStore() as store:
        assert store.delete_relation("not-a-number") is False
