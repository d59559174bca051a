"""Generation levels and deterministic sibling/spouse ordering."""

from models import FamilyTree, PersonNode


def order_spouses(node: PersonNode) -> None:
    """Sort spouses by (sex, id) and index them by position."""
    node.spouses.sort(key=lambda s: (s.sex or "", s.id or ""))
    for k, spouse in enumerate(node.spouses):
        spouse.index = k


def build_elements(node: PersonNode) -> list[PersonNode]:
    """
    Left-to-right family row of a lineage node.

    A male lineage node leads its spouses; otherwise the spouses precede it.
    """
    if node.is_root:
        return [node]
    if node.sex == "male":
        return [node] + node.spouses
    return node.spouses + [node]


def group_rank(node: PersonNode) -> int:
    """Position of the node's attachment point within its ancestor's family row."""
    return node.ancestor.elements.index(node.parent)


def sibling_key(node: PersonNode) -> tuple[int, int, str]:
    return (node.ancestor.index, group_rank(node), node.id or "")


def resolve_levels(tree: FamilyTree) -> list[list[PersonNode]]:
    """
    Group lineage nodes into generations and index them.

    Level l+1 holds the children of every node of level l, sorted by
    (ancestor index, group rank, id). Python's sort is stable, so equal keys
    keep their discovery order.
    """
    for node in tree.nodes:
        if node.lineage:
            order_spouses(node)
            node.elements = build_elements(node)

    tree.root.index = 0
    levels: list[list[PersonNode]] = []
    level = [tree.root]
    while level:
        levels.append(level)
        next_level = [child for node in level for child in node.children]
        next_level.sort(key=sibling_key)
        for i, node in enumerate(next_level):
            node.index = i
        level = next_level

    # Keep children lists in level order for first/last-child lookups
    for node in tree.nodes:
        node.children.sort(key=lambda c: c.index)

    tree.levels = levels
    return levels
