"""Family tree construction: records to linked PersonNodes."""

import logging

import networkx as nx

from levels import resolve_levels
from models import FamilyTree, PersonNode, Record
from validation import ROOT, CyclicReferenceError, check_structure

logger = logging.getLogger(__name__)


def create_root() -> PersonNode:
    """Create the root sentinel: a lineage node that is its own parent and ancestor."""
    root = PersonNode(id=None, lineage=True)
    root.parent = root
    root.ancestor = root
    root.elements = [root]
    return root


def attach_nodes(nodes: list[PersonNode], excluded: set[int]) -> None:
    """
    Resolve `parent`, `spouses` and `level` for every attachable node.

    Walks depth-first from the root with an explicit stack. A node whose
    parent reference matches the current node becomes a spouse of it when it
    is not of lineage type, otherwise it descends from it one generation down.
    """
    dependents: dict[str | None, list[int]] = {}
    for i, node in enumerate(nodes):
        if i == ROOT or i in excluded:
            continue
        dependents.setdefault(node.parent_id, []).append(i)

    visited = {ROOT}
    stack = [ROOT]
    while stack:
        current = nodes[stack.pop()]
        if current.id is None and not current.is_root:
            # Nothing can reference a record without id
            continue

        matches = dependents.get(current.id, [])
        for i in matches:
            if i in visited:
                raise CyclicReferenceError(f"Record {nodes[i].id!r} reached twice while attaching")
            visited.add(i)

            node = nodes[i]
            node.parent = current
            if node.lineage:
                node.level = current.level + 1
            else:
                node.level = current.level
                current.spouses.append(node)

        # Reversed so that records are expanded in input order
        stack.extend(reversed(matches))


def find_ancestor(node: PersonNode) -> PersonNode:
    """Nearest lineage node strictly above this node's generation."""
    if node.is_root:
        return node
    current = node.parent
    while not (current.lineage and current.level < node.level):
        current = current.parent
    return current


def link_children(tree: FamilyTree) -> None:
    """Resolve ancestors and aggregate lineage children onto ancestors and spouse parents."""
    for node in tree.nodes[1:]:
        if node.parent is None:
            continue
        node.ancestor = find_ancestor(node)
        if node.lineage:
            node.ancestor.children.append(node)
            if node.parent is not node.ancestor:
                node.parent.children.append(node)


def build_tree(records: list[Record]) -> FamilyTree:
    """
    Build a leveled family tree from ordered records.

    Args:
        records: Included records, in input order

    Returns:
        A FamilyTree whose attached nodes have parent, spouses, children,
        ancestor, level, index and elements resolved

    Raises:
        TreeStructureError: duplicate ids, cyclic references, or no root
    """
    root = create_root()
    nodes = [root] + [PersonNode.from_record(r) for r in records]

    orphan_positions = check_structure(nodes)
    attach_nodes(nodes, set(orphan_positions))

    orphans = [nodes[i] for i in orphan_positions]
    for orphan in orphans:
        logger.warning(
            "Excluding record %r: parent reference %r cannot be attached",
            orphan.id,
            orphan.parent_id,
        )

    tree = FamilyTree(
        root=root,
        nodes=[n for n in nodes if n.parent is not None],
        by_id={n.id: n for n in nodes if n.parent is not None and n.id is not None},
        orphans=orphans,
    )
    link_children(tree)
    resolve_levels(tree)

    logger.info(
        "Built tree: %d node(s) over %d generation(s), %d orphan(s)",
        len(tree.nodes) - 1,
        len(tree.levels) - 1,
        len(orphans),
    )
    return tree


def tree_graph(tree: FamilyTree) -> nx.DiGraph:
    """
    Export the resolved tree as a NetworkX graph (parent -> node edges).

    Nodes are keyed by record id, the root by "ROOT" and records without id
    by "#<position>". Useful for checking that the result is an arborescence
    or for ad-hoc analysis.
    """
    G = nx.DiGraph()
    key = {}
    for i, node in enumerate(tree.nodes):
        if node.is_root:
            key[id(node)] = "ROOT"
        else:
            key[id(node)] = node.id if node.id is not None else f"#{i}"
    for node in tree.nodes:
        G.add_node(
            key[id(node)],
            lineage=node.lineage,
            level=node.level,
            index=node.index,
            person_name=node.display_name,
            sex=node.sex,
        )
    for node in tree.nodes[1:]:
        relationship_type = "PARENT_OF" if node.lineage else "SPOUSE_OF"
        G.add_edge(key[id(node.parent)], key[id(node)], relationship_type=relationship_type)
    return G
