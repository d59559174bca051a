"""Rendering of a finished layout with matplotlib or Graphviz (pydot)."""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
import pydot

from config import LayoutConfig, mm_to_points
from export import connectors, drawn_nodes, person_label, placements
from models import FamilyTree

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4


def fill_color(sex: str | None) -> str:
    if sex == "male":
        return "lightblue"
    if sex == "female":
        return "lightpink"
    return "lightgray"


def _node_name(person_id: str | None, position: int) -> str:
    return person_id if person_id is not None else f"#{position}"


def plot_layout(tree: FamilyTree, config: LayoutConfig, output_path: Path | None = None):
    """
    Draw the laid-out tree: one box per person, orthogonal connectors.

    Args:
        tree: Tree after layout (and usually compaction)
        config: Geometric configuration the layout was computed with
        output_path: Image path (PNG, SVG, PDF). If None, displays interactively.

    Returns:
        The matplotlib Figure
    """
    config = config.scaled()
    boxes = list(zip(placements(tree, config), drawn_nodes(tree)))
    if not boxes:
        raise ValueError("Nothing to plot: the tree has no placed nodes")

    min_x = min(p.left for p, _ in boxes)
    max_x = max(p.left + p.width for p, _ in boxes)
    min_y = min(p.top for p, _ in boxes)
    max_y = max(p.top + p.height for p, _ in boxes)

    # Keep the drawing roughly to scale, within sane figure bounds
    width_in = min(max((max_x - min_x) / MM_PER_INCH, 6), 200)
    height_in = min(max((max_y - min_y) / MM_PER_INCH, 4), 200)
    fig, ax = plt.subplots(figsize=(width_in, height_in))

    for placement, (_, person) in boxes:
        ax.add_patch(
            Rectangle(
                (placement.left, placement.top),
                placement.width,
                placement.height,
                facecolor=fill_color(person.sex),
                edgecolor="darkgray",
                linewidth=0.5,
            )
        )
        ax.text(
            placement.left + 0.5 * placement.width,
            placement.top + 0.5 * placement.height,
            person_label(person),
            ha="center",
            va="center",
            fontsize=4,
        )

    for connector in connectors(tree, config):
        (x1, y1), (x2, y2) = connector.start, connector.end
        mid_y = 0.5 * (y1 + y2)
        ax.plot([x1, x1, x2, x2], [y1, mid_y, mid_y, y2], color="gray", linewidth=0.5)

    margin = config.box_width
    ax.set_xlim(min_x - margin, max_x + margin)
    # Generations grow downwards
    ax.set_ylim(max_y + margin, min_y - margin)
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_title(f"Family Tree ({len(boxes)} people, {len(tree.levels) - 1} generations)")
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info("Layout plot saved to %s", output_path)
    else:
        plt.show()
    return fig


def to_dot(tree: FamilyTree, config: LayoutConfig) -> pydot.Dot:
    """
    Build a Graphviz graph with every box pinned at its computed position.

    Positions are in points with the y axis flipped, so the graph renders
    as laid out with `neato -n2`.
    """
    config = config.scaled()
    P = pydot.Dot(graph_type="digraph")
    P.set("layout", "neato")
    P.set("splines", "ortho")
    P.set("outputorder", "edgesfirst")

    names: dict[int, str] = {}
    rows: list[list[str]] = []
    current_row = None
    for position, (placement, (row, person)) in enumerate(zip(placements(tree, config), drawn_nodes(tree))):
        name = _node_name(placement.id, position)
        names[id(person)] = name
        if row is not current_row:
            rows.append([])
            current_row = row
        rows[-1].append(name)

        x = mm_to_points(placement.left + 0.5 * placement.width)
        y = -mm_to_points(placement.top + 0.5 * placement.height)
        P.add_node(
            pydot.Node(
                name,
                label=person_label(person),
                shape="box",
                style="rounded,filled",
                fillcolor=fill_color(person.sex),
                fixedsize="true",
                width=f"{placement.width / MM_PER_INCH:.4f}",
                height=f"{placement.height / MM_PER_INCH:.4f}",
                pos=f"{x:.2f},{y:.2f}!",
                fontsize="8",
            )
        )

    # Family rows: spouses on the same rank, joined without arrows
    for i, row_names in enumerate(rows):
        if len(row_names) < 2:
            continue
        sg = pydot.Subgraph(f"couple_{i}", rank="same")
        for a, b in zip(row_names, row_names[1:]):
            sg.add_node(pydot.Node(a))
            sg.add_node(pydot.Node(b))
            P.add_edge(pydot.Edge(a, b, dir="none", color="darkgray"))
        P.add_subgraph(sg)

    for level in tree.levels[2:]:
        for child in level:
            P.add_edge(pydot.Edge(names[id(child.parent)], names[id(child)], color="darkgray"))

    return P


def write_dot(tree: FamilyTree, config: LayoutConfig, output_path: Path) -> Path:
    """
    Write the pinned Graphviz graph.

    ".dot"/".gv" files are written as DOT source; any other extension is
    rendered through Graphviz (which must be installed).
    """
    output_path = Path(output_path)
    P = to_dot(tree, config)
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("dot", "gv", ""):
        P.write(str(output_path), format="raw")
    else:
        P.write(str(output_path), prog=["neato", "-n2"], format=ext)
    logger.info("Graphviz output saved to %s", output_path)
    return output_path
