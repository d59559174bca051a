"""
Row compaction: remove horizontal slack left over by the top-down placement.

Every generation row is relaxed with two pointers moving inwards from both
ends. A node may move toward its neighbour by at most the smaller of
- the post-margin space between the two family rows, and
- the room left in its alignment corridor, bounded by its ancestor's row
  (when it is the ancestor's first or last child) and by the extent of its
  own children's rows.

Moves are settled to a fixed decimal precision so the fixed-point loops
terminate despite floating-point noise.
"""

from dataclasses import dataclass
import logging
import math

from config import LayoutConfig
from layout import row_span, shift_node, space
from models import FamilyTree, PersonNode

logger = logging.getLogger(__name__)

RIGHT = 1
LEFT = -1


@dataclass
class CompactionReport:
    passes: int
    improvement: float
    converged: bool


def settle(value: float, precision: int = 2) -> float:
    """
    Truncate a move down to `precision` decimal places.

    Flooring (rather than rounding) never moves a node further than the
    space it was measured against; the small epsilon absorbs representation
    noise such as 2.9999999999999996.

    A consequence for settled rows: when both ends of a row are adjacent the
    move is halved, and half of one precision step floors to 0. A settled
    row can therefore keep a gap of up to two precision steps (0.02 at the
    default precision) rather than exactly 0.
    """
    factor = 10**precision
    return round(math.floor(value * factor + 1e-9) / factor, precision)


def corridor(node: PersonNode, direction: int, precision: int = 2) -> float | None:
    """
    Room a node has to move in `direction` before leaving its alignment corridor.

    Args:
        node: Lineage node of a generation row (not the root)
        direction: RIGHT (+1) or LEFT (-1)
        precision: Decimal places of the returned value

    Returns:
        The available room, possibly negative, or None when nothing
        constrains the node on that side
    """
    ancestor = node.ancestor
    lower: float | None = None
    upper: float | None = None

    siblings = ancestor.children
    if siblings and (node is siblings[0] or node is siblings[-1]):
        if direction == RIGHT:
            bound = ancestor.row_left
        else:
            bound = ancestor.row_left + ancestor.width - node.width

        # Classify at the settled precision: repeated moves leave float noise
        delta = round(bound - node.row_left, precision)
        if delta < 0:
            lower = bound
        elif delta > 0:
            upper = bound
        elif direction == RIGHT:
            upper = bound
        else:
            lower = bound

    if node.children:
        first, last = node.children[0], node.children[-1]
        child_lower = first.row_left
        child_upper = last.row_left + last.width - node.width
        lower = child_lower if lower is None else max(lower, child_lower)
        upper = child_upper if upper is None else min(upper, child_upper)

    if direction == RIGHT:
        room = None if upper is None else upper - node.row_left
    else:
        room = None if lower is None else node.row_left - lower

    return None if room is None else settle(room, precision)


def gap(a: PersonNode, b: PersonNode, precision: int = 2) -> float:
    """How far `a` may move toward `b`."""
    direction = RIGHT if a.row_left < b.row_left else LEFT
    available = space(a, b)
    room = corridor(a, direction, precision)
    if room is not None:
        available = min(available, room)
    return settle(available, precision)


def compact_row(level: list[PersonNode], config: LayoutConfig) -> float:
    """
    Shrink one generation row until neither end can move inwards.

    Returns the total improvement applied.
    """
    precision = config.precision
    total = 0.0
    left_index = 0
    right_index = len(level) - 1
    improvement = 0.0

    while True:
        if improvement > 0:
            total += improvement
            shift_node(level[left_index], improvement)
            shift_node(level[right_index], -improvement)

        left_improvement = 0.0
        for k in range(left_index, right_index):
            test = gap(level[k], level[k + 1], precision)
            if test > 0:
                left_index = k
                left_improvement = test
                break

        right_improvement = 0.0
        for k in range(right_index, left_index, -1):
            test = gap(level[k], level[k - 1], precision)
            if test > 0:
                right_index = k
                right_improvement = test
                break

        improvement = min(left_improvement, right_improvement)
        if left_index == right_index - 1:
            # Both ends move toward each other: split the space
            improvement = 0.5 * improvement
        improvement = settle(improvement, precision)

        if improvement <= 0:
            return total


def compact_tree(tree: FamilyTree, config: LayoutConfig) -> CompactionReport:
    """
    Compact every generation row until a full pass yields no improvement.

    Each pass visits the rows widest first, so the rows with the most slack
    claim contested space before their neighbours.
    """
    config = config.scaled()
    rows = [level for level in tree.levels[1:] if level]
    grand_total = 0.0

    for passes in range(1, config.max_passes + 1):
        total = 0.0
        for level in sorted(rows, key=row_span, reverse=True):
            total += compact_row(level, config)
        grand_total += total
        logger.debug("Compaction pass %d: improvement %.2f", passes, total)
        if total <= 0:
            return CompactionReport(passes=passes, improvement=grand_total, converged=True)

    logger.warning(
        "Compaction stopped after %d pass(es) without reaching a fixed point",
        config.max_passes,
    )
    return CompactionReport(passes=config.max_passes, improvement=grand_total, converged=False)
