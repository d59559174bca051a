"""Layout output: placements and connectors handed to a renderer."""

from dataclasses import asdict
import json
from pathlib import Path

from compaction import CompactionReport
from config import LayoutConfig
from layout import row_span
from models import Connector, FamilyTree, PersonNode, Placement


def drawn_nodes(tree: FamilyTree):
    """Yield (family row, person) for every drawn box, in placement order."""
    for node in tree.lineage_nodes():
        for element in node.elements:
            yield node, element


def placements(tree: FamilyTree, config: LayoutConfig) -> list[Placement]:
    """One Placement per included person, by generation then left to right."""
    config = config.scaled()
    result: list[Placement] = []
    for node, element in drawn_nodes(tree):
        result.append(
            Placement(
                id=element.id,
                elements=tuple(e.id for e in node.elements),
                left=element.left,
                top=element.top,
                width=config.box_width,
                height=config.box_height,
                lineage=element.lineage,
                level=element.level,
            )
        )
    return result


def person_label(person: PersonNode) -> str:
    """Three-line box label: first name, last name, years."""
    years = ""
    if person.birth or person.death:
        years = f"{person.birth or ''}-{person.death or ''}"
    return f"{person.first_name or ''}\n{person.last_name or ''}\n{years}"


def connectors(tree: FamilyTree, config: LayoutConfig) -> list[Connector]:
    """
    Parent-to-child connector endpoints for every drawn lineage edge.

    The line starts at the bottom of the parent group (between the two boxes
    of the couple when the child descends through a spouse) and ends at the
    top centre of the child's box. Edges from the root are not drawn.
    """
    config = config.scaled()
    half = 0.5 * config.box_width
    result: list[Connector] = []
    for level in tree.levels[2:]:
        for child in level:
            parent = child.parent
            if parent.lineage:
                start_x = parent.left + half
            else:
                partner = parent.parent
                start_x = 0.5 * (parent.left + partner.left) + half
            result.append(
                Connector(
                    parent_id=parent.id,
                    child_id=child.id,
                    start=(start_x, parent.top + config.box_height),
                    end=(child.left + half, child.top),
                )
            )
    return result


def layout_to_dict(
    tree: FamilyTree, config: LayoutConfig, report: CompactionReport | None = None
) -> dict:
    """Serializable summary of a finished layout."""
    summary = {
        "people": len(tree.nodes) - 1,
        "generations": len(tree.levels) - 1,
        "orphans": [orphan.id for orphan in tree.orphans],
        "spans": [round(row_span(level), config.precision) for level in tree.levels[1:]],
    }
    if report is not None:
        summary["compaction"] = asdict(report)

    return {
        "config": config.to_dict(),
        "summary": summary,
        "placements": [asdict(p) for p in placements(tree, config)],
        "connectors": [asdict(c) for c in connectors(tree, config)],
    }


def write_layout_json(
    tree: FamilyTree,
    config: LayoutConfig,
    output_path: Path,
    report: CompactionReport | None = None,
) -> Path:
    """Write the layout document as JSON and return its path."""
    output_path = Path(output_path)
    data = layout_to_dict(tree, config, report)
    output_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return output_path
