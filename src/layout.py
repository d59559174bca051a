"""Geometric layout: footprints bottom-up, coordinates top-down."""

import logging

from config import LayoutConfig
from models import FamilyTree, PersonNode

logger = logging.getLogger(__name__)


# ============================================================================
# Geometry helpers
# ============================================================================


def distance(a: PersonNode, b: PersonNode) -> float:
    """Raw horizontal distance between two family rows."""
    if a.row_left < b.row_left:
        return b.row_left - (a.row_left + a.width)
    return a.row_left - (b.row_left + b.width)


def space(a: PersonNode, b: PersonNode) -> float:
    """Distance between two family rows net of their facing margins."""
    if a.row_left < b.row_left:
        return distance(a, b) - (a.margins[1] + b.margins[0])
    return distance(a, b) - (a.margins[0] + b.margins[1])


def clearance(left: PersonNode, right: PersonNode) -> float:
    """Post-margin space between two ordered neighbours; negative means overlap."""
    return (
        right.row_left
        - right.margins[0]
        - (left.row_left + left.width + left.margins[1])
    )


def row_span(level: list[PersonNode]) -> float:
    """Total horizontal extent of a generation row."""
    first, last = level[0], level[-1]
    return last.row_left + last.width - first.row_left


def shift_node(node: PersonNode, offset: float) -> None:
    """Move every box of a family row."""
    for element in node.elements:
        element.left += offset


def iter_subtree(node: PersonNode):
    """Yield a lineage node and all its lineage descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def shift_subtree(node: PersonNode, offset: float) -> None:
    for member in iter_subtree(node):
        shift_node(member, offset)


# ============================================================================
# Layout passes
# ============================================================================


def place_root(tree: FamilyTree, config: LayoutConfig) -> None:
    """Centre the root on the origin, one row pitch above the first generation."""
    root = tree.root
    root.width = config.box_width
    root.left = config.origin_left - 0.5 * config.box_width
    root.top = config.origin_top - config.row_pitch


def measure_tree(tree: FamilyTree, config: LayoutConfig) -> None:
    """
    Bottom-up pass: width, margins and size of every lineage node.

    Each node's footprint (size plus margins) is accumulated into its
    ancestor, so by the time a level is processed its nodes already carry
    the footprint of their children.
    """
    for node in tree.nodes:
        node.size = 0.0
        if not node.lineage:
            node.width = config.box_width
            node.size = config.box_width
            node.margins = [0.0, 0.0]

    for level in reversed(tree.levels[1:]):
        for i, node in enumerate(level):
            prev_same = i > 0 and level[i - 1].ancestor is node.ancestor
            next_same = i < len(level) - 1 and level[i + 1].ancestor is node.ancestor

            node.width = len(node.elements) * config.box_width
            node.margins = [
                0.5 * (config.same_family_gap if prev_same else config.diff_family_gap),
                0.5 * (config.same_family_gap if next_same else config.diff_family_gap),
            ]
            node.size = max(node.width, node.size)
            node.ancestor.size += node.size + node.margins[0] + node.margins[1]

    tree.root.size = max(tree.root.width, tree.root.size)


def place_tree(tree: FamilyTree, config: LayoutConfig) -> None:
    """
    Top-down pass: left/top of every box.

    Each ancestor's run of children is centred under the ancestor's own
    family row; every child gets half its slack (size - width) as padding on
    both sides.
    """
    for level in tree.levels[1:]:
        offset = 0.0
        ancestor = None
        for node in level:
            if node.ancestor is not ancestor:
                ancestor = node.ancestor
                offset = ancestor.row_left - 0.5 * ancestor.size + 0.5 * ancestor.width

            padding = 0.5 * (node.size - node.width)
            offset += node.margins[0] + padding

            top = ancestor.top + config.row_pitch
            for element in node.elements:
                element.left = offset
                element.top = top
                offset += config.box_width

            offset += node.margins[1] + padding


def resolve_overlaps(tree: FamilyTree, config: LayoutConfig) -> int:
    """
    Remove negative gaps between neighbours of the same level.

    The right neighbour's whole subtree is shifted right by the deficit, and
    so is every later subtree of the level. Returns the number of repairs.
    """
    repairs = 0
    for depth, level in enumerate(tree.levels[1:], start=1):
        for i in range(1, len(level)):
            deficit = -clearance(level[i - 1], level[i])
            if round(deficit, config.precision) <= 0:
                continue
            logger.debug(
                "Level %d: shifting %d subtree(s) from %r by %.2f",
                depth,
                len(level) - i,
                level[i].id,
                deficit,
            )
            for node in level[i:]:
                shift_subtree(node, deficit)
            repairs += 1
    return repairs


def layout_tree(tree: FamilyTree, config: LayoutConfig) -> FamilyTree:
    """Compute width, size, margins and coordinates for every node of the tree."""
    config = config.scaled()
    place_root(tree, config)
    measure_tree(tree, config)
    place_tree(tree, config)
    repairs = resolve_overlaps(tree, config)
    if repairs:
        logger.info("Repaired %d overlap(s) after placement", repairs)
    return tree
