from __future__ import annotations

from layout import LayoutConfig
from pipeline import build_family_tree


def test_build_family_tree(member, edges) -> None:
    members = [
        member("G", "1920-01-01"),
        member("P", "1950-01-01"),
        member("C", "1980-01-01"),
        member("Other", "1990-01-01"),
    ]
    relations = edges(("G", "parent", "P"), ("P", "parent", "C"))

    tree = build_family_tree(members, relations, root_id="G")

    assert tree.root_id == "G"
    assert tree.generations == {"G": 0, "P": 1, "C": 2}
    assert tree.positions["C"].y == 400
    assert tree.unplaced == {"Other"}
    assert tree.warnings == []


def test_build_family_tree_all_branches(member, edges) -> None:
    members = [member("G", "1920-01-01"), member("P", "1950-01-01"), member("Other", "1990-01-01")]
    config = LayoutConfig(generation_gap=100)

    tree = build_family_tree(
        members, edges(("G", "parent", "P")), config=config, include_all_branches=True
    )

    assert tree.root_id == "G"
    # 70 years after the root: floor(70 / 25) == 2
    assert tree.generations["Other"] == 2
    assert tree.positions["Other"].y == 200
    assert tree.unplaced == set()


def test_build_family_tree_empty() -> None:
    tree = build_family_tree([], [])

    assert tree.root_id is None
    assert tree.positions == {}


def test_build_family_tree_collects_warnings(member, edges) -> None:
    members = [member("P", "1990-01-01"), member("C", "1960-01-01")]

    tree = build_family_tree(members, edges(("P", "parent", "C")))

    assert any("born before parent" in w for w in tree.warnings)
