"""Exceptions raised by relationship creation and configuration loading."""

from models import RelationKind


class FamilyTreeError(Exception):
    code = "family_tree_error"


class ConfigError(FamilyTreeError):
    code = "invalid_config"


class RelationshipError(FamilyTreeError):
    """A relationship that cannot be created, with a user-facing message."""

    code = "relationship_error"

    def __init__(self, message: str, from_id: str | None = None, to_id: str | None = None):
        super().__init__(message)
        self.from_id = from_id
        self.to_id = to_id


class SelfRelationshipError(RelationshipError):
    code = "self_relationship"


class UnknownMemberError(RelationshipError):
    code = "unknown_member"


class DuplicateRelationshipError(RelationshipError):
    code = "duplicate_relationship"

    def __init__(self, message: str, from_id: str, to_id: str, existing_kind: RelationKind):
        super().__init__(message, from_id, to_id)
        self.existing_kind = existing_kind


class CircularRelationshipError(RelationshipError):
    code = "circular_relationship"


class ChronologyViolationError(RelationshipError):
    """A parent/child direction that contradicts known birth dates."""

    code = "chronology_violation"

    def __init__(
        self,
        message: str,
        from_id: str,
        to_id: str,
        requested_kind: RelationKind,
        suggested_kind: RelationKind | None = None,
    ):
        super().__init__(message, from_id, to_id)
        self.requested_kind = requested_kind
        self.suggested_kind = suggested_kind
