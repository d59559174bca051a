"""
1) Read the genealogical records from a CSV file.
2) Build the family tree (parents, spouses, children, ancestors).
3) Group lineage nodes into generations and order siblings.
4) Compute footprints bottom-up and coordinates top-down.
5) Compact every generation row.
6) Write the layout as JSON, optionally plot it or export it to Graphviz.
"""

import argparse
from dataclasses import replace
import logging
from pathlib import Path

from compaction import CompactionReport, compact_tree
from config import LayoutConfig, load_config
from export import write_layout_json
from graph import build_tree
from layout import layout_tree, row_span
from models import FamilyTree, Record
from parsing import read_records
from plotting import plot_layout, write_dot
from validation import TreeStructureError


def run_pipeline(
    records: list[Record], config: LayoutConfig, compact: bool = True
) -> tuple[FamilyTree, CompactionReport | None]:
    """Build, lay out and (optionally) compact a tree from records."""
    tree = build_tree(records)
    layout_tree(tree, config)
    report = compact_tree(tree, config) if compact else None
    return tree, report


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute a family tree layout from a CSV file.")
    parser.add_argument("input_csv", type=Path, help="Path to the input CSV file.")
    parser.add_argument("-c", "--config", type=Path, help="JSON file with layout settings.")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("layout.json"),
        help="Path to the output JSON layout (default: layout.json).",
    )
    parser.add_argument("--plot", type=Path, help="Also draw the layout to an image (PNG, SVG, PDF).")
    parser.add_argument("--dot", type=Path, help="Also export a pinned Graphviz graph (.dot or image).")
    parser.add_argument("--scale", type=float, help="Uniform scale factor for all lengths.")
    parser.add_argument("--no-compact", action="store_true", help="Skip row compaction.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config) if args.config else LayoutConfig()
    if args.scale is not None:
        config = replace(config, scale=args.scale)

    print(f"Reading records: {args.input_csv}")
    records = read_records(args.input_csv)
    print(f"  Found {len(records)} included records")

    print("Building tree and computing layout...")
    try:
        tree, report = run_pipeline(records, config, compact=not args.no_compact)
    except TreeStructureError as e:
        print(f"Error: {e}")
        return 1

    print(f"  Tree has {len(tree.nodes) - 1} people over {len(tree.levels) - 1} generations")
    if tree.orphans:
        print(f"  Excluded {len(tree.orphans)} orphan record(s):")
        for orphan in tree.orphans[:10]:  # Show first 10 orphans
            print(f"    - {orphan.id} (parent {orphan.parent_id})")
        if len(tree.orphans) > 10:
            print(f"    ... and {len(tree.orphans) - 10} more")

    if report is not None:
        status = "converged" if report.converged else "stopped early"
        print(f"  Compaction {status} after {report.passes} pass(es), improvement {report.improvement:.2f}")
    widest = max((row_span(level) for level in tree.levels[1:]), default=0.0)
    print(f"  Widest generation spans {widest:.2f}")

    print(f"Writing layout to: {args.output}")
    write_layout_json(tree, config, args.output, report)

    if args.plot:
        print(f"Plotting layout to: {args.plot}")
        plot_layout(tree, config, args.plot)

    if args.dot:
        print(f"Exporting Graphviz graph to: {args.dot}")
        write_dot(tree, config, args.dot)

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
