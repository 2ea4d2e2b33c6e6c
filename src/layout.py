"""
Two-dimensional placement of a family tree.

Members are stacked by generation (ancestors on top), grouped into sibling
groups and family units (a member plus their spouses), centred over their
children and pushed apart until no two nodes of a generation overlap.
Disconnected branches are laid out independently and set side by side.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from datetime import date
import json
import logging
from pathlib import Path
import re

import networkx as nx

from dates import birth_date_of
from errors import ConfigError
from generations import group_by_generation
from graph import build_graph, find_branches
from models import Member, Position, RelationKind, ResolvedRelation
from resolver import children_of, parents_of, spouses_of


log = logging.getLogger(__name__)

ORIENTATIONS = ("top-down", "bottom-up")


@dataclass(frozen=True)
class LayoutConfig:
    node_width: float = 180
    node_height: float = 120
    spouse_gap: float = 40
    sibling_gap: float = 60
    generation_gap: float = 200
    family_unit_gap: float = 80
    branch_gap: float = 300
    years_per_generation: int = 25
    collision_margin: float = 20
    orientation: str = "top-down"

    def __post_init__(self):
        for name in ("node_width", "node_height", "generation_gap", "years_per_generation"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)!r}")
        for name in ("spouse_gap", "sibling_gap", "family_unit_gap", "branch_gap", "collision_margin"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative, got {getattr(self, name)!r}")
        if self.orientation not in ORIENTATIONS:
            raise ConfigError(f"orientation must be one of {ORIENTATIONS}, got {self.orientation!r}")

    @property
    def min_spacing(self) -> float:
        """Smallest allowed horizontal distance between two nodes of one generation."""
        return self.node_width + self.collision_margin

    @classmethod
    def from_dict(cls, data: Mapping) -> "LayoutConfig":
        """Build a config from overrides; camelCase keys ("nodeWidth") are accepted too."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()
            if name not in known:
                raise ConfigError(f"Unknown layout setting: {key}")
            values[name] = value
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(str(e)) from e

    @classmethod
    def from_json_file(cls, path: Path) -> "LayoutConfig":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read layout config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Layout config {path} must contain a JSON object")
        return cls.from_dict(data)


@dataclass
class FamilyUnit:
    anchor: str  # the sibling the unit was built around
    member_ids: list[str]  # left to right


def _birth_key(member: Member, index: int) -> tuple[date, int]:
    return (birth_date_of(member) or date.max, index)


def _sibling_groups(
    gen_members: list[str],
    resolved: Mapping[str, list[ResolvedRelation]],
    by_id: Mapping[str, Member],
    ranking: Mapping[str, int],
) -> list[list[str]]:
    """
    Group same-generation members that share a parent or are recorded siblings.

    Each group is sorted by birth date (unknown last); groups come back in the
    order of their first member in `gen_members`.
    """
    S = nx.Graph()
    S.add_nodes_from(gen_members)
    in_generation = set(gen_members)

    by_parent: dict[str, list[str]] = {}
    for m in gen_members:
        for p in parents_of(resolved, m):
            by_parent.setdefault(p, []).append(m)
        for rel in resolved.get(m, []):
            if rel.kind is RelationKind.SIBLING and rel.person_id in in_generation:
                S.add_edge(m, rel.person_id)
    for children in by_parent.values():
        for a, b in zip(children, children[1:]):
            S.add_edge(a, b)

    groups = [
        sorted(component, key=lambda m: _birth_key(by_id[m], ranking[m]))
        for component in nx.connected_components(S)
    ]
    groups.sort(key=lambda group: min(ranking[m] for m in group))
    return groups


def _build_units(
    group: list[str],
    resolved: Mapping[str, list[ResolvedRelation]],
    in_generation: set[str],
    claimed: set[str],
) -> list[FamilyUnit]:
    units = []
    for sibling in group:
        if sibling in claimed:
            continue
        claimed.add(sibling)
        spouses = [s for s in spouses_of(resolved, sibling) if s in in_generation and s not in claimed]
        claimed.update(spouses)
        units.append(FamilyUnit(sibling, [sibling] + spouses))

    # Spouses sit on the outer edges of a sibling group: left of the first sibling
    if len(units) > 1 and len(units[0].member_ids) > 1:
        first = units[0]
        first.member_ids = first.member_ids[1:] + [first.anchor]
    return units


def _unit_width(unit: FamilyUnit, config: LayoutConfig) -> float:
    n = len(unit.member_ids)
    return n * config.node_width + (n - 1) * config.spouse_gap


def _group_width(units: list[FamilyUnit], config: LayoutConfig) -> float:
    return sum(_unit_width(u, config) for u in units) + (len(units) - 1) * config.sibling_gap


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def resolve_collisions(member_ids: Iterable[str], xs: dict[str, float], config: LayoutConfig):
    """Push nodes right, in x order, until neighbours are at least `min_spacing` apart."""
    ordered = sorted(member_ids, key=lambda m: xs[m])
    for prev, curr in zip(ordered, ordered[1:]):
        min_x = xs[prev] + config.min_spacing
        if xs[curr] < min_x:
            xs[curr] = min_x


def _layout_branch(
    branch: list[str],
    by_id: Mapping[str, Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    generations: Mapping[str, int],
    ranking: Mapping[str, int],
    config: LayoutConfig,
) -> dict[str, float]:
    """Horizontal positions for one connected branch, shallowest generation first."""
    xs: dict[str, float] = {}
    members_by_gen = group_by_generation({m: generations[m] for m in branch})
    gens = list(members_by_gen)
    units_by_gen: dict[int, list[FamilyUnit]] = {}

    for g in gens:
        gen_members = members_by_gen[g]
        in_generation = set(gen_members)
        groups = _sibling_groups(gen_members, resolved, by_id, ranking)

        # Under their placed parents first, then the rest in input order
        def placement_key(group: list[str]) -> tuple:
            parent_xs = [
                xs[p]
                for m in group
                for p in parents_of(resolved, m)
                if p in xs and generations.get(p, g) < g
            ]
            if parent_xs:
                return (0, _mean(parent_xs), ranking[group[0]])
            return (1, 0.0, ranking[group[0]])

        keyed = sorted(((placement_key(grp), grp) for grp in groups), key=lambda kg: kg[0])

        claimed: set[str] = set()
        units_by_gen[g] = []
        prev_right: float | None = None
        for key, group in keyed:
            units = _build_units(group, resolved, in_generation, claimed)
            if not units:
                continue
            width = _group_width(units, config)

            if key[0] == 0:
                left = key[1] - (width - config.node_width) / 2
                if prev_right is not None:
                    left = max(left, prev_right + config.family_unit_gap)
            elif prev_right is not None:
                left = prev_right + config.family_unit_gap
            else:
                left = 0.0

            x = left
            for i, unit in enumerate(units):
                if i:
                    x += config.sibling_gap
                for j, member_id in enumerate(unit.member_ids):
                    if j:
                        x += config.spouse_gap
                    xs[member_id] = x
                    x += config.node_width
            prev_right = x
            units_by_gen[g].extend(units)

    # Centre parents over their children, deepest generation first, so every
    # unit is moved against children that are already final.
    for g in reversed(gens):
        for unit in units_by_gen[g]:
            child_xs = [
                xs[c]
                for m in unit.member_ids
                for c in children_of(resolved, m)
                if c in xs and generations.get(c) == g + 1
            ]
            if not child_xs:
                continue
            unit_xs = [xs[m] for m in unit.member_ids]
            shift = _mean(list(dict.fromkeys(child_xs))) - (min(unit_xs) + max(unit_xs)) / 2
            for m in unit.member_ids:
                xs[m] += shift
        resolve_collisions(members_by_gen[g], xs, config)

    return xs


def compute_layout(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    generations: Mapping[str, int],
    config: LayoutConfig | None = None,
) -> dict[str, Position]:
    """
    Compute a position for every member that has a generation.

    Members missing from `generations` are not placed. The result is centred
    so the midpoint of the horizontal extent is 0; y is the generation times
    the generation gap (negated for a bottom-up orientation).
    """
    config = config or LayoutConfig()
    members = [m for m in members if m.id in generations]
    if not members:
        return {}

    by_id = {m.id: m for m in members}
    ranking = {m.id: i for i, m in enumerate(members)}

    G = build_graph(members, resolved)
    branches = find_branches(G, order=[m.id for m in members])

    xs: dict[str, float] = {}
    branch_right: float | None = None
    for branch in branches:
        branch_xs = _layout_branch(branch, by_id, resolved, generations, ranking, config)
        offset = -min(branch_xs.values())
        if branch_right is not None:
            offset += branch_right + config.node_width + config.branch_gap
        for m, x in branch_xs.items():
            xs[m] = x + offset
        branch_right = max(xs[m] for m in branch)

    log.debug("Laid out %d members in %d branches", len(xs), len(branches))

    # Branches occupy disjoint x ranges, so this only matters for malformed generations
    for gen_members in group_by_generation({m: generations[m] for m in xs}).values():
        resolve_collisions(gen_members, xs, config)

    center = (min(xs.values()) + max(xs.values())) / 2
    sign = 1 if config.orientation == "top-down" else -1
    return {
        m: Position(x=xs[m] - center, y=sign * generations[m] * config.generation_gap)
        for m in xs
    }


def layout_bounds(positions: Mapping[str, Position], config: LayoutConfig | None = None):
    """(min_x, min_y, max_x, max_y) of the laid out nodes, including node size."""
    config = config or LayoutConfig()
    if not positions:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        min(p.x for p in positions.values()),
        min(p.y for p in positions.values()),
        max(p.x for p in positions.values()) + config.node_width,
        max(p.y for p in positions.values()) + config.node_height,
    )
