"""Preview rendering of a computed family tree layout."""

from collections.abc import Iterable, Mapping
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch
import pydot

from dates import birth_year_of, to_date
from layout import LayoutConfig, layout_bounds
from models import Member, Position, RelationKind, ResolvedRelation


def _fill_color(gender: str | None) -> str:
    # Color by gender
    if gender and gender.upper() in ("M", "MALE"):
        return "lightblue"
    if gender and gender.upper() in ("F", "FEMALE"):
        return "lightpink"
    return "lightgray"


def _label(member: Member) -> str:
    birth_year = birth_year_of(member)
    death = to_date(member.death_date)
    years = f"{birth_year or ''}-{death.year if death else ''}"
    return f"{member.first_name}\n{member.last_name}\n{years}"


def _edges(
    resolved: Mapping[str, list[ResolvedRelation]], positions: Mapping[str, Position]
) -> list[tuple[str, str, RelationKind]]:
    """Unique (source, target, kind) drawing edges; parent/child always points parent -> child."""
    seen = set()
    edges = []
    for member_id, relations in resolved.items():
        for rel in relations:
            if member_id not in positions or rel.person_id not in positions:
                continue
            pair = frozenset((member_id, rel.person_id))
            if pair in seen:
                continue
            seen.add(pair)
            if rel.kind is RelationKind.PARENT:
                edges.append((rel.person_id, member_id, RelationKind.PARENT))
            elif rel.kind is RelationKind.CHILD:
                edges.append((member_id, rel.person_id, RelationKind.PARENT))
            else:
                edges.append((member_id, rel.person_id, rel.kind))
    return edges


EDGE_STYLES = {
    RelationKind.PARENT: {"color": "#16a34a", "linestyle": "-"},
    RelationKind.SPOUSE: {"color": "#dc2626", "linestyle": "--"},
    RelationKind.SIBLING: {"color": "#9333ea", "linestyle": ":"},
}


def plot_layout(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    positions: Mapping[str, Position],
    output_path: Path,
    config: LayoutConfig | None = None,
):
    """
    Draw the laid out tree with matplotlib and save it to `output_path`.

    Nodes are drawn as boxes at their computed coordinates (y grows
    downwards, as in the layout); parent links run from the bottom of the
    parent box to the top of the child box, spouse and sibling links run
    between box centres.
    """
    config = config or LayoutConfig()
    w, h = config.node_width, config.node_height
    by_id = {m.id: m for m in members}

    min_x, min_y, max_x, max_y = layout_bounds(positions, config)
    fig, ax = plt.subplots(figsize=(max((max_x - min_x) / 100, 4), max((max_y - min_y) / 100, 3)))

    for source, target, kind in _edges(resolved, positions):
        a, b = positions[source], positions[target]
        if kind is RelationKind.PARENT:
            ys = [a.y + h, b.y]
        else:
            ys = [a.y + h / 2, b.y + h / 2]
        ax.plot([a.x + w / 2, b.x + w / 2], ys, linewidth=1.5, zorder=1, **EDGE_STYLES[kind])

    for member_id, pos in positions.items():
        member = by_id.get(member_id)
        if member is None:
            continue
        ax.add_patch(
            FancyBboxPatch(
                (pos.x, pos.y),
                w,
                h,
                boxstyle="round,pad=2",
                facecolor=_fill_color(member.gender),
                edgecolor="darkgray",
                zorder=2,
            )
        )
        ax.text(pos.x + w / 2, pos.y + h / 2, _label(member), ha="center", va="center", fontsize=7, zorder=3)

    ax.set_xlim(min_x - w / 2, max_x + w / 2)
    ax.set_ylim(max_y + h / 2, min_y - h / 2)
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_title(f"Family Tree ({len(positions)} people)")
    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def layout_to_dot(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    positions: Mapping[str, Position],
    config: LayoutConfig | None = None,
) -> pydot.Dot:
    """
    Build a pydot graph with every node pinned at its computed position.

    Render with `neato -n2` so Graphviz keeps the coordinates. Graphviz uses
    points with y growing upwards, so y is flipped and sizes are converted
    from pixels (72 points per inch).
    """
    config = config or LayoutConfig()
    by_id = {m.id: m for m in members}

    P = pydot.Dot(graph_type="digraph")
    P.set("splines", "line")
    P.set("outputorder", "edgesfirst")

    for member_id, pos in positions.items():
        member = by_id.get(member_id)
        if member is None:
            continue
        cx = pos.x + config.node_width / 2
        cy = -(pos.y + config.node_height / 2)
        P.add_node(
            pydot.Node(
                member_id,
                label=_label(member),
                shape="box",
                style="rounded,filled",
                fillcolor=_fill_color(member.gender),
                fontsize="10",
                width=f"{config.node_width / 72:.2f}",
                height=f"{config.node_height / 72:.2f}",
                fixedsize="true",
                pos=f"{cx:.1f},{cy:.1f}!",
            )
        )

    for source, target, kind in _edges(resolved, positions):
        if kind is RelationKind.PARENT:
            P.add_edge(pydot.Edge(source, target, color="darkgray"))
        else:
            P.add_edge(
                pydot.Edge(
                    source,
                    target,
                    dir="none",
                    style="dashed" if kind is RelationKind.SPOUSE else "dotted",
                    color=EDGE_STYLES[kind]["color"],
                )
            )

    return P


def write_dot(
    members: Iterable[Member],
    resolved: Mapping[str, list[ResolvedRelation]],
    positions: Mapping[str, Position],
    output_path: Path,
    config: LayoutConfig | None = None,
):
    """Write the pinned layout as DOT source (no Graphviz binary needed)."""
    P = layout_to_dot(members, resolved, positions, config)
    Path(output_path).write_text(P.to_string(), encoding="utf-8")
