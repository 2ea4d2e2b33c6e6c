"""Data-quality checks over resolved family relations."""

from collections.abc import Iterable, Mapping

from dates import birth_date_of, to_date
from graph import find_parent_cycle
from models import Member, RelationKind, ResolvedRelation
from resolver import parents_of


def validate_family_graph(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    generations: Mapping[str, int] | None = None,
) -> list[str]:
    """
    Validate resolved family relations for:
    - Cycles in parent-child relationships
    - Members with more than two parents
    - Impossible ages (child born before parent) and very young parents
    - Deaths recorded before births
    - Pairs whose resolved kinds disagree (A sees B as parent, B sees A as spouse)
    - Generation numbers that contradict parent, spouse or sibling links

    Returns a list of warning messages.
    """
    warnings: list[str] = []
    by_id = {m.id: m for m in members}

    def name(member_id: str) -> str:
        member = by_id.get(member_id)
        return member.name if member else member_id

    cycle = find_parent_cycle(resolved)
    if cycle:
        warnings.append(f"Cycle detected in parent-child relationships: {[name(m) for m in cycle]}")

    for member_id in resolved:
        parents = parents_of(resolved, member_id)
        if len(parents) > 2:
            warnings.append(
                f"Suspicious: {name(member_id)} has {len(parents)} parents "
                f"({', '.join(name(p) for p in parents)})"
            )

    # Check for impossible ages (child born before parent)
    for child_id, relations in resolved.items():
        child = by_id.get(child_id)
        for rel in relations:
            if rel.kind is not RelationKind.PARENT:
                continue
            parent = by_id.get(rel.person_id)
            if child is None or parent is None:
                continue

            parent_birth = birth_date_of(parent)
            child_birth = birth_date_of(child)
            if parent_birth is None or child_birth is None:
                continue
            if child_birth < parent_birth:
                warnings.append(f"Impossible: {child.name} born before parent {parent.name}")
            elif (child_birth - parent_birth).days < 12 * 365:
                warnings.append(
                    f"Suspicious: {parent.name} was less than 12 years old when {child.name} was born"
                )

    # Check death before birth
    for member in by_id.values():
        birth = birth_date_of(member)
        death = to_date(member.death_date)
        if birth and death and death < birth:
            warnings.append(f"Impossible: {member.name} died before being born")

    seen_pairs: set[frozenset] = set()
    for member_id, relations in resolved.items():
        for rel in relations:
            pair = frozenset((member_id, rel.person_id))
            if pair in seen_pairs:
                continue
            seen_pairs.add(pair)
            back = next(
                (r for r in resolved.get(rel.person_id, []) if r.person_id == member_id), None
            )
            if back is not None and back.kind is not rel.kind.inverse():
                warnings.append(
                    f"Conflicting relationship: {name(member_id)} sees {name(rel.person_id)} as "
                    f"{rel.kind.value}, but {name(rel.person_id)} sees {name(member_id)} as {back.kind.value}"
                )

    if generations is not None:
        warnings.extend(_check_generations(resolved, generations, name))

    return warnings


def _check_generations(resolved, generations, name) -> list[str]:
    warnings = []
    reported: set[frozenset] = set()
    for member_id, relations in resolved.items():
        if member_id not in generations:
            continue
        generation = generations[member_id]
        for rel in relations:
            other = generations.get(rel.person_id)
            if other is None:
                continue
            if rel.kind is RelationKind.PARENT and other != generation - 1:
                warnings.append(
                    f"Inconsistent generations: parent {name(rel.person_id)} is at generation "
                    f"{other}, child {name(member_id)} at {generation}"
                )
            elif (
                rel.kind in (RelationKind.SPOUSE, RelationKind.SIBLING)
                and other != generation
                and frozenset((member_id, rel.person_id)) not in reported
            ):
                reported.add(frozenset((member_id, rel.person_id)))
                warnings.append(
                    f"Inconsistent generations: {rel.kind.value}s {name(member_id)} ({generation}) "
                    f"and {name(rel.person_id)} ({other})"
                )
    return warnings
