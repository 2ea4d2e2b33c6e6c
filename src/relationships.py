"""
Relationship creation with chronological validation and direction correction.

A requested relation (from_id, kind, to_id) reads "from_id is `kind` of
to_id". Parent/child requests are checked against birth dates; when the
requested direction contradicts them, `create_relationship_smart` swaps the
direction once and reports the correction instead of failing.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Protocol

import networkx as nx

from dates import birth_date_of, birth_year_of, years_between
from errors import (
    ChronologyViolationError,
    CircularRelationshipError,
    DuplicateRelationshipError,
    RelationshipError,
    SelfRelationshipError,
    UnknownMemberError,
)
from graph import build_raw_parent_graph
from models import Member, RawRelation, RelationKind
from resolver import find_relation_between


log = logging.getLogger(__name__)

MIN_PARENT_AGE_GAP = 12
MAX_PARENT_AGE_GAP = 80
MAX_SPOUSE_AGE_GAP = 30
MAX_SIBLING_AGE_GAP = 20


class FamilyStore(Protocol):
    """Persistence collaborator the engine reads snapshots from and writes relations to."""

    def list_members(self) -> list[Member]: ...

    def list_relations(self) -> list[RawRelation]: ...

    def create_relation(self, from_id: str, to_id: str, kind: RelationKind) -> str: ...


@dataclass
class ValidationReport:
    warnings: list[str] = field(default_factory=list)


@dataclass
class SmartCreateResult:
    success: bool
    actual_kind: RelationKind | None = None
    corrected: bool = False
    error: RelationshipError | None = None
    relation_id: str | None = None
    suggestion: str | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        out: dict = {"success": self.success, "corrected": self.corrected}
        if self.actual_kind is not None:
            out["actualKind"] = self.actual_kind.value
        if self.relation_id is not None:
            out["relationId"] = self.relation_id
        if self.error is not None:
            out["error"] = {"code": self.error.code, "message": str(self.error)}
        if self.suggestion:
            out["suggestion"] = self.suggestion
        if self.warnings:
            out["warnings"] = list(self.warnings)
        return out


def suggest_direction(from_member: Member, to_member: Member) -> tuple[RelationKind, str] | None:
    """
    Suggest whether `from_member` should be the parent or the child of `to_member`.

    Returns None when either birth date is missing or unparseable, or when the
    two are equal.
    """
    from_birth = birth_date_of(from_member)
    to_birth = birth_date_of(to_member)
    if from_birth is None or to_birth is None or from_birth == to_birth:
        return None
    if from_birth < to_birth:
        return (
            RelationKind.PARENT,
            f"{from_member.first_name} is older than {to_member.first_name}, "
            "so they should be the parent",
        )
    return (
        RelationKind.CHILD,
        f"{from_member.first_name} is younger than {to_member.first_name}, "
        "so they should be the child",
    )


def _check_chronology(
    from_member: Member, to_member: Member, kind: RelationKind, report: ValidationReport
):
    if kind is RelationKind.PARENT:
        parent, child = from_member, to_member
    else:
        parent, child = to_member, from_member

    if not parent.birth_date or not child.birth_date:
        report.warnings.append(
            "Birth dates are recommended for parent-child relationships to ensure accuracy"
        )
        return

    parent_birth = birth_date_of(parent)
    child_birth = birth_date_of(child)
    if parent_birth is None or child_birth is None:
        report.warnings.append("Invalid birth date format detected")
        return
    if parent_birth == child_birth:
        # Indeterminate, not invalid
        return

    if parent_birth > child_birth:
        suggestion = suggest_direction(from_member, to_member)
        raise ChronologyViolationError(
            f"{parent.name} (born {parent_birth.year}) cannot be the parent of "
            f"{child.name} (born {child_birth.year}). Parents must be born before their children.",
            from_member.id,
            to_member.id,
            requested_kind=kind,
            suggested_kind=suggestion[0] if suggestion else None,
        )

    gap = years_between(parent_birth, child_birth)
    if gap < MIN_PARENT_AGE_GAP:
        report.warnings.append(
            f"Age difference of {gap} years is quite small for a parent-child relationship. "
            "Please verify this is correct."
        )
    elif gap > MAX_PARENT_AGE_GAP:
        report.warnings.append(
            f"Age difference of {gap} years is quite large for a parent-child relationship. "
            "Please verify this is correct."
        )


def _check_peer(
    from_member: Member, to_member: Member, kind: RelationKind, report: ValidationReport
):
    if (
        kind is RelationKind.SPOUSE
        and from_member.gender
        and to_member.gender
        and from_member.gender.upper() == to_member.gender.upper()
    ):
        report.warnings.append(
            "Both members have the same gender - this may be intentional for same-sex relationships"
        )

    from_year = birth_year_of(from_member)
    to_year = birth_year_of(to_member)
    if from_year is None or to_year is None:
        report.warnings.append(f"Birth dates are recommended for {kind.value} relationships")
        return

    gap = abs(from_year - to_year)
    limit = MAX_SPOUSE_AGE_GAP if kind is RelationKind.SPOUSE else MAX_SIBLING_AGE_GAP
    if gap > limit:
        report.warnings.append(
            f"Age difference of {gap} years is quite large for a {kind.value} relationship"
        )


def _check_circular(
    relations: list[RawRelation], from_id: str, to_id: str, kind: RelationKind
):
    parent_id, child_id = (from_id, to_id) if kind is RelationKind.PARENT else (to_id, from_id)
    P = build_raw_parent_graph(relations)
    if child_id in P and parent_id in P and nx.has_path(P, child_id, parent_id):
        raise CircularRelationshipError(
            "This relationship would create a circular parent-child relationship",
            from_id,
            to_id,
        )


def validate_relationship(
    members: Iterable[Member],
    relations: Iterable[RawRelation],
    from_id: str,
    to_id: str,
    kind: RelationKind | str,
) -> ValidationReport:
    """
    Check a requested relation against the current snapshot.

    Raises a RelationshipError subclass when the relation must not be
    created; otherwise returns the non-blocking warnings. Self and duplicate
    checks run before any date is looked at; for parent/child requests the
    birth-date check runs before the cycle check.
    """
    kind = RelationKind.parse(kind)
    if from_id == to_id:
        raise SelfRelationshipError("A family member cannot be related to themselves", from_id, to_id)

    by_id = {m.id: m for m in members}
    missing = [mid for mid in (from_id, to_id) if mid not in by_id]
    if missing:
        raise UnknownMemberError(f"Family member not found: {', '.join(missing)}", from_id, to_id)
    from_member, to_member = by_id[from_id], by_id[to_id]

    relations = list(relations)
    existing = find_relation_between(relations, from_id, to_id)
    if existing is not None:
        # Express the stored edge as "from_member is X of to_member"
        existing_kind = existing.kind if existing.source_id == from_id else existing.kind.inverse()
        raise DuplicateRelationshipError(
            f"Relationship already exists: {from_member.name} is already "
            f"{existing_kind.value} of {to_member.name}",
            from_id,
            to_id,
            existing_kind=existing_kind,
        )

    report = ValidationReport()
    if kind.is_directional:
        _check_chronology(from_member, to_member, kind, report)
        _check_circular(relations, from_id, to_id, kind)
    else:
        _check_peer(from_member, to_member, kind, report)
    return report


def create_relationship(
    store: FamilyStore, from_id: str, to_id: str, kind: RelationKind | str
) -> tuple[str, ValidationReport]:
    """Validate against a fresh snapshot of the store, then persist. Raises on rejection."""
    kind = RelationKind.parse(kind)
    report = validate_relationship(
        store.list_members(), store.list_relations(), from_id, to_id, kind
    )
    if report.warnings:
        log.info("Relationship %s -%s-> %s created with warnings: %s", from_id, kind.value, to_id, report.warnings)
    relation_id = store.create_relation(from_id, to_id, kind)
    return relation_id, report


def create_relationship_smart(
    store: FamilyStore, from_id: str, to_id: str, desired_kind: RelationKind | str
) -> SmartCreateResult:
    """
    Create a relation, flipping a parent/child direction that contradicts birth dates.

    Never raises for a rejected relation: the failure comes back as a
    SmartCreateResult with the error and, for chronology problems that could
    not be corrected, a suggested direction.
    """
    try:
        desired_kind = RelationKind.parse(desired_kind)
    except ValueError as e:
        return SmartCreateResult(success=False, error=RelationshipError(str(e), from_id, to_id))

    try:
        relation_id, report = create_relationship(store, from_id, to_id, desired_kind)
        return SmartCreateResult(
            success=True,
            actual_kind=desired_kind,
            relation_id=relation_id,
            warnings=report.warnings,
        )
    except ChronologyViolationError as e:
        first_error = e
    except RelationshipError as e:
        return SmartCreateResult(success=False, error=e)

    corrected_kind = first_error.suggested_kind
    if corrected_kind is None or corrected_kind is desired_kind:
        return SmartCreateResult(success=False, error=first_error)

    try:
        relation_id, report = create_relationship(store, from_id, to_id, corrected_kind)
    except RelationshipError as e:
        log.debug("Corrected direction %s also rejected: %s", corrected_kind.value, e)
        return SmartCreateResult(
            success=False,
            error=first_error,
            suggestion=f"Try creating the relationship as {corrected_kind.value} instead",
        )

    log.info(
        "Corrected relationship %s -> %s from %s to %s using birth dates",
        from_id,
        to_id,
        desired_kind.value,
        corrected_kind.value,
    )
    return SmartCreateResult(
        success=True,
        actual_kind=corrected_kind,
        corrected=True,
        relation_id=relation_id,
        warnings=report.warnings,
    )


@dataclass
class RelationshipSuggestion:
    member: Member
    kind: RelationKind
    confidence: float
    reason: str


def suggest_relationships(
    members: Iterable[Member],
    relations: Iterable[RawRelation],
    member_id: str,
    today: date | None = None,
) -> list[RelationshipSuggestion]:
    """
    Age-based guesses at how unrelated members might relate to `member_id`.

    15-50 years apart suggests parent/child, 10 or fewer suggests siblings.
    The suggested kind is what the other member would be of `member_id`.
    """
    members = list(members)
    by_id = {m.id: m for m in members}
    member = by_id.get(member_id)
    if member is None:
        return []
    this_year = (today or date.today()).year

    related = set()
    for rel in relations:
        if rel.source_id == member_id:
            related.add(rel.target_id)
        elif rel.target_id == member_id:
            related.add(rel.source_id)

    member_year = birth_year_of(member)
    if member_year is None:
        return []
    member_age = this_year - member_year

    suggestions = []
    for other in members:
        if other.id == member_id or other.id in related:
            continue
        other_year = birth_year_of(other)
        if other_year is None:
            continue
        other_age = this_year - other_year
        gap = abs(member_age - other_age)

        if 15 <= gap <= 50:
            kind = RelationKind.CHILD if member_age > other_age else RelationKind.PARENT
            suggestions.append(
                RelationshipSuggestion(
                    other, kind, 0.8, f"Age difference of {gap} years suggests parent-child relationship"
                )
            )
        elif gap <= 10:
            suggestions.append(
                RelationshipSuggestion(
                    other,
                    RelationKind.SIBLING,
                    0.6,
                    f"Similar age ({gap} years difference) suggests sibling relationship",
                )
            )

    suggestions.sort(key=lambda s: s.confidence, reverse=True)
    return suggestions
