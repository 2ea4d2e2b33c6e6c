from __future__ import annotations

import itertools
import json

import pytest

from errors import ConfigError
from generations import assign_all_generations, assign_generations
from layout import LayoutConfig, compute_layout, layout_bounds, resolve_collisions
from models import Member, Position
from resolver import resolve_relations


def _layout(members, relations, root, config=None, all_branches=False):
    resolved = resolve_relations(members, relations)
    if all_branches:
        generations = assign_all_generations(members, resolved, root)
    else:
        generations = assign_generations(members, resolved, root)
    return generations, compute_layout(members, resolved, generations, config)


def _assert_no_overlap(generations, positions, config) -> None:
    by_gen = {}
    for member_id, pos in positions.items():
        by_gen.setdefault(generations[member_id], []).append(pos.x)
    for xs in by_gen.values():
        for a, b in itertools.combinations(xs, 2):
            assert abs(a - b) >= config.min_spacing - 1e-6


def test_single_member_at_origin() -> None:
    members = [Member("only", "Only", "Child")]
    positions = compute_layout(members, {"only": []}, {"only": 0})

    assert positions == {"only": Position(0.0, 0.0)}


def test_empty_input() -> None:
    assert compute_layout([], {}, {}) == {}


def test_grandparent_chain_is_stacked(member, edges) -> None:
    members = [member("G", "1920-01-01"), member("P", "1950-01-01"), member("C", "1980-01-01")]
    _, positions = _layout(members, edges(("G", "parent", "P"), ("P", "parent", "C")), "G")

    assert [positions[m].y for m in ("G", "P", "C")] == [0, 200, 400]
    assert positions["G"].x == positions["P"].x == positions["C"].x == 0


def test_parent_centred_over_two_children(member, edges) -> None:
    members = [member("P", "1950-01-01"), member("C1", "1975-01-01"), member("C2", "1978-01-01")]
    _, positions = _layout(members, edges(("P", "parent", "C1"), ("P", "parent", "C2")), "P")

    assert positions["P"].x == pytest.approx((positions["C1"].x + positions["C2"].x) / 2, abs=1)
    # older sibling on the left
    assert positions["C1"].x < positions["C2"].x
    assert positions["C2"].x - positions["C1"].x == pytest.approx(180 + 60)


def test_couple_midpoint_over_children(member, edges) -> None:
    members = [
        member("P", "1950-01-01"),
        member("S", "1951-01-01"),
        member("C1", "1975-01-01"),
        member("C2", "1978-01-01"),
    ]
    relations = edges(
        ("P", "spouse", "S"),
        ("P", "parent", "C1"),
        ("P", "parent", "C2"),
        ("S", "parent", "C1"),
        ("S", "parent", "C2"),
    )
    generations, positions = _layout(members, relations, "P")

    couple_mid = (positions["P"].x + positions["S"].x) / 2
    children_mean = (positions["C1"].x + positions["C2"].x) / 2
    assert couple_mid == pytest.approx(children_mean, abs=1)
    assert positions["S"].x - positions["P"].x == pytest.approx(180 + 40)
    assert positions["P"].y == positions["S"].y == 0
    _assert_no_overlap(generations, positions, LayoutConfig())


def test_no_overlap_in_wide_family(member, edges) -> None:
    members = [member("R", "1900-01-01")]
    triples = []
    for i in range(4):
        child = f"C{i}"
        members.append(member(child, f"{1925 + i}-01-01"))
        triples.append(("R", "parent", child))
        members.append(member(f"S{i}", f"{1926 + i}-01-01"))
        triples.append((child, "spouse", f"S{i}"))
        for j in range(3):
            grandchild = f"G{i}{j}"
            members.append(member(grandchild, f"{1950 + i + j}-01-01"))
            triples.append((child, "parent", grandchild))

    config = LayoutConfig()
    generations, positions = _layout(members, edges(*triples), "R", config)

    assert set(positions) == {m.id for m in members}
    _assert_no_overlap(generations, positions, config)
    for m in members:
        assert positions[m.id].y == generations[m.id] * config.generation_gap


def test_disconnected_branches_are_separated(member) -> None:
    members = [member("A"), member("B")]
    config = LayoutConfig()
    _, positions = _layout(members, [], "A", config, all_branches=True)

    assert positions["B"].x - positions["A"].x == pytest.approx(config.node_width + config.branch_gap)
    # centred around zero
    assert positions["A"].x == -positions["B"].x


def test_unassigned_members_are_not_placed(member, edges) -> None:
    members = [member("A"), member("B"), member("Loner")]
    _, positions = _layout(members, edges(("A", "sibling", "B")), "A")

    assert set(positions) == {"A", "B"}


def test_bottom_up_orientation(member, edges) -> None:
    members = [member("P"), member("C")]
    config = LayoutConfig(orientation="bottom-up")
    _, positions = _layout(members, edges(("P", "parent", "C")), "P", config)

    assert positions["C"].y == -config.generation_gap


def test_custom_spacing(member, edges) -> None:
    members = [member("A"), member("B")]
    config = LayoutConfig(node_width=100, spouse_gap=10, collision_margin=5)
    _, positions = _layout(members, edges(("A", "spouse", "B")), "A", config)

    assert positions["B"].x - positions["A"].x == pytest.approx(110)


def test_resolve_collisions_pushes_right() -> None:
    config = LayoutConfig()
    xs = {"a": 0.0, "b": 50.0, "c": 500.0}
    resolve_collisions(["a", "b", "c"], xs, config)

    assert xs == {"a": 0.0, "b": 200.0, "c": 500.0}


def test_layout_bounds_include_node_size() -> None:
    positions = {"a": Position(-100, 0), "b": Position(100, 200)}

    assert layout_bounds(positions) == (-100, 0, 280, 320)
    assert layout_bounds({}) == (0.0, 0.0, 0.0, 0.0)


def test_config_defaults() -> None:
    config = LayoutConfig()

    assert (config.node_width, config.node_height) == (180, 120)
    assert (config.spouse_gap, config.sibling_gap, config.generation_gap) == (40, 60, 200)
    assert (config.family_unit_gap, config.branch_gap) == (80, 300)
    assert config.years_per_generation == 25
    assert config.min_spacing == 200


def test_config_from_dict_accepts_camel_case() -> None:
    config = LayoutConfig.from_dict({"nodeWidth": 150, "generation_gap": 250})

    assert config.node_width == 150
    assert config.generation_gap == 250


@pytest.mark.parametrize(
    "overrides",
    [
        {"node_width": 0},
        {"spouse_gap": -1},
        {"orientation": "sideways"},
        {"unknownSetting": 1},
    ],
)
def test_invalid_config_rejected(overrides) -> None:
    with pytest.raises(ConfigError):
        LayoutConfig.from_dict(overrides)


def test_config_from_json_file(tmp_path) -> None:
    path = tmp_path / "layout.json"
    path.write_text(json.dumps({"branchGap": 500, "orientation": "bottom-up"}), encoding="utf-8")

    config = LayoutConfig.from_json_file(path)
    assert config.branch_gap == 500
    assert config.orientation == "bottom-up"

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        LayoutConfig.from_json_file(path)
    with pytest.raises(ConfigError):
        LayoutConfig.from_json_file(tmp_path / "missing.json")
