"""NetworkX views over resolved family relations."""

from collections.abc import Iterable, Mapping

import networkx as nx

from models import Member, RawRelation, RelationKind, ResolvedRelation


ResolvedMap = Mapping[str, list[ResolvedRelation]]


def build_graph(members: Iterable[Member], resolved: ResolvedMap) -> nx.Graph:
    """
    Build an undirected graph of every member and every resolved relation.

    Nodes carry the member attributes; edges carry the relation kind as seen
    by whichever endpoint was resolved first. Used for branch (connected
    component) detection.
    """
    G = nx.Graph()
    for m in members:
        G.add_node(
            m.id,
            member_name=m.name,
            gender=m.gender,
            birth_date=m.birth_date,
            death_date=m.death_date,
        )

    for member_id, relations in resolved.items():
        for rel in relations:
            if member_id in G and rel.person_id in G and not G.has_edge(member_id, rel.person_id):
                G.add_edge(member_id, rel.person_id, relationship_type=rel.kind.value)

    return G


def build_parent_graph(resolved: ResolvedMap) -> nx.DiGraph:
    """Build a DiGraph with one parent -> child edge per resolved parent/child relation."""
    P = nx.DiGraph()
    for member_id, relations in resolved.items():
        P.add_node(member_id)
        for rel in relations:
            if rel.kind is RelationKind.PARENT:
                P.add_edge(rel.person_id, member_id)
            elif rel.kind is RelationKind.CHILD:
                P.add_edge(member_id, rel.person_id)
    return P


def build_raw_parent_graph(relations: Iterable[RawRelation]) -> nx.DiGraph:
    """Build a parent -> child DiGraph straight from stored edges."""
    P = nx.DiGraph()
    for rel in relations:
        if rel.kind is RelationKind.PARENT:
            P.add_edge(rel.source_id, rel.target_id)
        elif rel.kind is RelationKind.CHILD:
            P.add_edge(rel.target_id, rel.source_id)
    return P


def find_branches(G: nx.Graph, order: Iterable[str] | None = None) -> list[list[str]]:
    """
    Split the graph into branches (connected components).

    Each branch lists its members in `order` (defaults to node insertion
    order), and branches are sorted by their first member's position in it.
    """
    ranking = {node: i for i, node in enumerate(order if order is not None else G.nodes)}
    branches = []
    for component in nx.connected_components(G):
        ranked = sorted((n for n in component if n in ranking), key=ranking.__getitem__)
        if ranked:
            branches.append(ranked)
    branches.sort(key=lambda branch: ranking[branch[0]])
    return branches


def find_parent_cycle(resolved: ResolvedMap) -> list[str] | None:
    """Return the members of one parent/child cycle, or None if the links are acyclic."""
    try:
        cycle = nx.find_cycle(build_parent_graph(resolved), orientation="original")
    except nx.NetworkXNoCycle:
        return None
    return [edge[0] for edge in cycle]
