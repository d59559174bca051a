"""Structural validation of parent references before the tree is built."""

from collections import Counter

import networkx as nx

from models import PersonNode

# Arena position of the root sentinel in the reference graph
ROOT = 0


class TreeStructureError(ValueError):
    """Input that cannot be turned into a single rooted tree."""


class DuplicateNodeError(TreeStructureError):
    pass


class CyclicReferenceError(TreeStructureError):
    pass


class MissingRootError(TreeStructureError):
    pass


def build_reference_graph(nodes: list[PersonNode]) -> nx.DiGraph:
    """
    Build a directed graph of parent references, keyed by arena position.

    Node 0 is the root sentinel; every other node is a record in input order.
    An edge parent -> child exists for each reference that resolves to a
    known id. References to unknown ids produce no edge.

    Args:
        nodes: Arena of nodes, root first

    Returns:
        A DiGraph whose nodes carry `id` and `lineage` attributes
    """
    duplicates = sorted(
        node_id
        for node_id, count in Counter(n.id for n in nodes[1:] if n.id is not None).items()
        if count > 1
    )
    if duplicates:
        raise DuplicateNodeError(f"Duplicate record id(s): {', '.join(duplicates)}")

    position = {node.id: i for i, node in enumerate(nodes) if i != ROOT and node.id is not None}

    G = nx.DiGraph()
    for i, node in enumerate(nodes):
        G.add_node(i, id=node.id, lineage=node.lineage)

    for i, node in enumerate(nodes):
        if i == ROOT:
            continue
        if node.parent_id is None:
            G.add_edge(ROOT, i)
        elif node.parent_id in position:
            G.add_edge(position[node.parent_id], i)

    return G


def check_cycles(G: nx.DiGraph) -> None:
    """Raise CyclicReferenceError if parent references loop."""
    try:
        cycle = nx.find_cycle(G, orientation="original")
    except nx.NetworkXNoCycle:
        return
    cycle_ids = [G.nodes[edge[0]]["id"] for edge in cycle]
    raise CyclicReferenceError(f"Cycle detected in parent references: {cycle_ids}")


def find_orphans(G: nx.DiGraph) -> list[int]:
    """
    Return arena positions of nodes that cannot be attached under the root.

    A node is an orphan when its parent reference resolves to nothing, or
    when it hangs (directly or transitively) beneath an invalid attachment:
    a spouse record pointing at the root or at another spouse.
    """
    attachable = G.copy()
    for parent, child in list(G.edges()):
        if G.nodes[child]["lineage"]:
            continue
        if parent == ROOT or not G.nodes[parent]["lineage"]:
            attachable.remove_edge(parent, child)

    reachable = nx.descendants(attachable, ROOT)
    return [i for i in G.nodes if i != ROOT and i not in reachable]


def check_structure(nodes: list[PersonNode]) -> list[int]:
    """
    Validate the parent references of an arena of nodes.

    Raises DuplicateNodeError or CyclicReferenceError for input that cannot
    form a tree, and MissingRootError when no lineage record attaches to the
    root. Returns the arena positions of orphan nodes.
    """
    G = build_reference_graph(nodes)
    check_cycles(G)

    if not any(G.nodes[child]["lineage"] for child in G.successors(ROOT)):
        raise MissingRootError("No lineage record attaches to the root (empty parent reference)")

    return find_orphans(G)
