"""Generation (depth) assignment relative to a root member."""

from collections import deque
from collections.abc import Iterable, Mapping
import logging
import math

from dates import birth_date_of, birth_year_of
from graph import build_graph, find_branches
from models import Member, RelationKind, ResolvedRelation


log = logging.getLogger(__name__)


def _propagate(
    resolved: Mapping[str, list[ResolvedRelation]],
    generations: dict[str, int],
    seed: str,
    max_expansions: int,
) -> set[str]:
    """
    Spread generations outward from `seed`, which must already be assigned.

    Parents are pulled to the minimum consistent generation and children to
    the maximum; spouses and siblings only fill in unassigned members. A
    member is re-queued whenever its generation changes, but expanded at most
    `max_expansions` times. Returns the members that hit that bound.
    """
    expansions: dict[str, int] = {}
    cyclic: set[str] = set()
    queue = deque([seed])

    while queue:
        member_id = queue.popleft()
        if expansions.get(member_id, 0) >= max_expansions:
            cyclic.add(member_id)
            continue
        expansions[member_id] = expansions.get(member_id, 0) + 1
        generation = generations[member_id]

        for rel in resolved.get(member_id, []):
            other = rel.person_id
            current = generations.get(other)

            if rel.kind is RelationKind.PARENT:
                wanted = generation - 1
                if current is None or current > wanted:
                    generations[other] = wanted
                    queue.append(other)
            elif rel.kind is RelationKind.CHILD:
                wanted = generation + 1
                if current is None or current < wanted:
                    generations[other] = wanted
                    queue.append(other)
            elif current is None:
                generations[other] = generation
                queue.append(other)

    return cyclic


def assign_generations(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    root_id: str,
) -> dict[str, int]:
    """
    Assign every member reachable from `root_id` a generation (root = 0).

    Members with no path to the root are left out of the result. An unknown
    root yields an empty map.
    """
    members = list(members)
    if root_id not in {m.id for m in members}:
        log.warning("Root member %s not found; no generations assigned", root_id)
        return {}

    generations = {root_id: 0}
    cyclic = _propagate(resolved, generations, root_id, max_expansions=max(len(members), 1))
    if cyclic:
        log.warning(
            "Relationship cycle prevents consistent generations for: %s",
            ", ".join(sorted(cyclic)),
        )
    return generations


def _branch_seed(branch: list[str], by_id: Mapping[str, Member]) -> str:
    """Earliest-born member of a branch; the first listed when nobody has a date."""
    dated = [(birth_date_of(by_id[m]), i, m) for i, m in enumerate(branch)]
    dated = [d for d in dated if d[0] is not None]
    if not dated:
        return branch[0]
    return min(dated)[2]


def assign_all_generations(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    root_id: str | None = None,
    years_per_generation: int = 25,
) -> dict[str, int]:
    """
    Assign generations to every branch, not only the root's.

    The root's branch is assigned exactly like `assign_generations`. Every
    other branch is seeded at its earliest-born member, whose generation is
    estimated from the birth-year distance to the root
    (floor(years / years_per_generation)), or 0 when either year is unknown.
    """
    members = list(members)
    if not members:
        return {}
    by_id = {m.id: m for m in members}
    if root_id not in by_id:
        root_id = members[0].id

    generations = assign_generations(members, resolved, root_id)
    root_year = birth_year_of(by_id[root_id])

    G = build_graph(members, resolved)
    for branch in find_branches(G, order=[m.id for m in members]):
        if any(m in generations for m in branch):
            continue
        seed = _branch_seed(branch, by_id)
        seed_year = birth_year_of(by_id[seed])
        offset = 0
        if root_year is not None and seed_year is not None and years_per_generation > 0:
            offset = math.floor((seed_year - root_year) / years_per_generation)

        branch_generations = {seed: offset}
        cyclic = _propagate(resolved, branch_generations, seed, max_expansions=len(members))
        if cyclic:
            log.warning(
                "Relationship cycle prevents consistent generations for: %s",
                ", ".join(sorted(cyclic)),
            )
        generations.update(branch_generations)

    return generations


def find_root(
    members: Iterable[Member], root_id: str | None = None, current_user_id: str | None = None
) -> Member | None:
    """Pick the traversal root: the requested member, else the user's own, else the first."""
    members = list(members)
    if not members:
        return None
    for wanted in (root_id, current_user_id):
        if wanted is None:
            continue
        for m in members:
            if m.id == wanted:
                return m
    return members[0]


def group_by_generation(generations: Mapping[str, int]) -> dict[int, list[str]]:
    grouped: dict[int, list[str]] = {}
    for member_id, generation in generations.items():
        grouped.setdefault(generation, []).append(member_id)
    return dict(sorted(grouped.items()))
