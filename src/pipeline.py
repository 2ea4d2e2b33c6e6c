"""One full pass: resolve relations, assign generations, lay out."""

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from generations import assign_all_generations, assign_generations, find_root
from layout import LayoutConfig, compute_layout
from models import Member, Position, RawRelation, ResolvedRelation
from resolver import resolve_relations
from validation import validate_family_graph


log = logging.getLogger(__name__)


@dataclass
class FamilyTree:
    root_id: str | None
    resolved: dict[str, list[ResolvedRelation]] = field(default_factory=dict)
    generations: dict[str, int] = field(default_factory=dict)
    positions: dict[str, Position] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def unplaced(self) -> set[str]:
        return set(self.resolved) - set(self.positions)


def build_family_tree(
    members: Iterable[Member],
    relations: Iterable[RawRelation],
    root_id: str | None = None,
    config: LayoutConfig | None = None,
    include_all_branches: bool = False,
) -> FamilyTree:
    """
    Run the whole engine on one snapshot of members and relations.

    With `include_all_branches`, branches not connected to the root are
    placed too (see `assign_all_generations`); otherwise they are left out.
    """
    config = config or LayoutConfig()
    members = list(members)
    root = find_root(members, root_id)
    if root is None:
        return FamilyTree(root_id=None)

    resolved = resolve_relations(members, relations)
    if include_all_branches:
        generations = assign_all_generations(
            members, resolved, root.id, years_per_generation=config.years_per_generation
        )
    else:
        generations = assign_generations(members, resolved, root.id)
    positions = compute_layout(members, resolved, generations, config)
    warnings = validate_family_graph(members, resolved, generations)
    for w in warnings:
        log.warning(w)

    return FamilyTree(
        root_id=root.id,
        resolved=resolved,
        generations=generations,
        positions=positions,
        warnings=warnings,
    )
