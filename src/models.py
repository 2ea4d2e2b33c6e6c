"""Data classes for family tree entities."""

from dataclasses import dataclass
from enum import Enum


class RelationKind(Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"

    def inverse(self) -> "RelationKind":
        """Return the kind seen from the other end of the relation."""
        return _INVERSE[self]

    @property
    def is_directional(self) -> bool:
        return self in (RelationKind.PARENT, RelationKind.CHILD)

    @classmethod
    def parse(cls, value: "str | RelationKind") -> "RelationKind":
        """Accept an enum member or its stored string ("parent", "CHILD", ...)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown relation kind: {value!r}") from None


_INVERSE = {
    RelationKind.PARENT: RelationKind.CHILD,
    RelationKind.CHILD: RelationKind.PARENT,
    RelationKind.SPOUSE: RelationKind.SPOUSE,
    RelationKind.SIBLING: RelationKind.SIBLING,
}


@dataclass(frozen=True)
class Member:
    id: str
    first_name: str
    last_name: str
    birth_date: str | None = None  # ISO format YYYY-MM-DD preferred
    death_date: str | None = None
    gender: str | None = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class RawRelation:
    id: str
    source_id: str
    target_id: str
    kind: RelationKind  # source is `kind` of target


@dataclass(frozen=True)
class ResolvedRelation:
    kind: RelationKind  # related member is `kind` of the owning member
    person_id: str
    relation_id: str
    from_source: bool  # owning member was the source of the raw edge


@dataclass(frozen=True)
class Position:
    x: float
    y: float
