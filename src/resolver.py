"""Turn stored relation edges into per-member perspective relations."""

from collections.abc import Iterable, Mapping
import logging

from models import Member, RawRelation, RelationKind, ResolvedRelation


log = logging.getLogger(__name__)


def perspective(rel: RawRelation, member_id: str) -> ResolvedRelation:
    """
    Express a stored edge from one endpoint's point of view.

    A stored edge (source, K, target) reads "source is K of target". From the
    source's view the target is therefore K.inverse(); from the target's view
    the source is K.
    """
    if rel.source_id == member_id:
        return ResolvedRelation(rel.kind.inverse(), rel.target_id, rel.id, from_source=True)
    if rel.target_id == member_id:
        return ResolvedRelation(rel.kind, rel.source_id, rel.id, from_source=False)
    raise ValueError(f"Relation {rel.id} does not touch member {member_id}")


def resolve_relations(
    members: Iterable[Member], relations: Iterable[RawRelation]
) -> dict[str, list[ResolvedRelation]]:
    """
    Build the deduplicated relation list of every member.

    At most one resolved relation is kept per (member, other member) pair.
    The first candidate wins, except that a parent/child candidate coming
    from an edge the member is the source of replaces an earlier one, in
    place. Spouse and sibling candidates never replace anything.

    Edges to unknown members and self-relations are skipped.
    """
    members = list(members)
    relations = list(relations)
    known = {m.id for m in members}

    touching: dict[str, list[RawRelation]] = {m.id: [] for m in members}
    for rel in relations:
        if rel.source_id == rel.target_id:
            log.debug("Skipping self-relation %s on %s", rel.id, rel.source_id)
            continue
        if rel.source_id not in known or rel.target_id not in known:
            log.debug("Skipping relation %s with an unknown endpoint", rel.id)
            continue
        touching[rel.source_id].append(rel)
        touching[rel.target_id].append(rel)

    resolved: dict[str, list[ResolvedRelation]] = {}
    for m in members:
        kept: list[ResolvedRelation] = []
        index_by_person: dict[str, int] = {}

        for rel in touching[m.id]:
            candidate = perspective(rel, m.id)
            existing = index_by_person.get(candidate.person_id)
            if existing is None:
                index_by_person[candidate.person_id] = len(kept)
                kept.append(candidate)
                continue

            if candidate.kind.is_directional and candidate.from_source:
                previous = kept[existing]
                if previous.kind is not candidate.kind:
                    log.debug(
                        "Conflicting relations between %s and %s: %s overrides %s",
                        m.id,
                        candidate.person_id,
                        candidate.kind.value,
                        previous.kind.value,
                    )
                kept[existing] = candidate

        resolved[m.id] = kept

    return resolved


def relatives_of(
    resolved: Mapping[str, list[ResolvedRelation]], member_id: str, kind: RelationKind
) -> list[str]:
    """Ids of the members that are `kind` of `member_id`."""
    return [rel.person_id for rel in resolved.get(member_id, []) if rel.kind is kind]


def parents_of(resolved: Mapping[str, list[ResolvedRelation]], member_id: str) -> list[str]:
    return relatives_of(resolved, member_id, RelationKind.PARENT)


def children_of(resolved: Mapping[str, list[ResolvedRelation]], member_id: str) -> list[str]:
    return relatives_of(resolved, member_id, RelationKind.CHILD)


def spouses_of(resolved: Mapping[str, list[ResolvedRelation]], member_id: str) -> list[str]:
    return relatives_of(resolved, member_id, RelationKind.SPOUSE)


def siblings_of(resolved: Mapping[str, list[ResolvedRelation]], member_id: str) -> list[str]:
    return relatives_of(resolved, member_id, RelationKind.SIBLING)


def find_relation_between(
    relations: Iterable[RawRelation], a: str, b: str
) -> RawRelation | None:
    """First stored edge linking a and b, in either direction."""
    for rel in relations:
        if {rel.source_id, rel.target_id} == {a, b} and a != b:
            return rel
    return None
