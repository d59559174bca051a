from dataclasses import replace
import logging

import pytest

from compaction import LEFT, RIGHT, compact_row, compact_tree, corridor, gap, settle
from graph import build_tree
from layout import clearance, layout_tree, row_span, shift_node
from parsing import read_records

# P has two sons, each with three sons of their own
WIDE_SIBLINGS = """
    1,P,true,,,male,,,,
    1,A,true,,,male,,,,P
    1,B,true,,,male,,,,P
    1,A1,true,,,male,,,,A
    1,A2,true,,,male,,,,A
    1,A3,true,,,male,,,,A
    1,B1,true,,,male,,,,B
    1,B2,true,,,male,,,,B
    1,B3,true,,,male,,,,B
"""

# A has three sons; B is a daughter whose two children hang from her husband
ONE_SIDED = """
    1,P,true,,,male,,,,
    1,A,true,,,male,,,,P
    1,B,true,,,female,,,,P
    1,S,false,,,male,,,,B
    1,A1,true,,,male,,,,A
    1,A2,true,,,male,,,,A
    1,A3,true,,,male,,,,A
    1,B1,true,,,male,,,,S
    1,B2,true,,,female,,,,S
"""


def positions(tree):
    return [(node.id, node.left, node.top) for node in tree.nodes]


def over_children(node, tol=1e-6):
    """Whether a family row sits within the span of its children's rows."""
    first, last = node.children[0], node.children[-1]
    lower = first.row_left
    upper = last.row_left + last.width - node.width
    return lower - tol <= node.row_left <= upper + tol


def aligned_parents(tree):
    return [node for node in tree.lineage_nodes() if node.children and over_children(node)]


def test_settle_truncates():
    assert settle(0.019) == 0.01
    assert settle(0.03) == 0.03
    assert settle(0.005) == 0.0
    assert settle(32.0) == 32.0
    assert settle(-0.004) < 0
    assert settle(1.23456, precision=3) == 1.234


def test_corridor_and_gap_after_layout(make_tree, config):
    tree = make_tree(WIDE_SIBLINGS)
    layout_tree(tree, config)
    a, b = tree.by_id["A"], tree.by_id["B"]

    # A may move right until it sits over its last child, B symmetrically
    assert corridor(a, RIGHT) == 32
    assert corridor(a, LEFT) == 32
    assert corridor(b, LEFT) == 32
    assert gap(a, b) == 32
    assert gap(b, a) == 32

    # A leaf in the middle of its siblings is unconstrained
    assert corridor(tree.by_id["A2"], RIGHT) is None


def test_corridor_on_ancestor_edge_ignores_float_noise(make_tree, config):
    tree = make_tree(
        """
        1,P,true,,,male,,,,
        1,A,true,,,male,,,,P
        1,B,true,,,male,,,,P
        """
    )
    layout_tree(tree, config)
    p, b = tree.by_id["P"], tree.by_id["B"]

    # B, the last child, exactly under the right edge of P
    shift_node(b, p.row_left - b.row_left)
    assert corridor(b, LEFT) == 0

    shift_node(b, -1e-12)
    assert corridor(b, LEFT) == 0

    shift_node(b, 2e-12)
    assert corridor(b, LEFT) == 0


def test_wide_siblings_row_shrinks(make_tree, config):
    tree = make_tree(WIDE_SIBLINGS)
    layout_tree(tree, config)
    spans_before = [row_span(level) for level in tree.levels[1:]]

    report = compact_tree(tree, config)
    spans_after = [row_span(level) for level in tree.levels[1:]]

    assert report.converged
    assert report.improvement > 0
    for before, after in zip(spans_before, spans_after):
        assert after <= before + 1e-9
    assert spans_after[1] < spans_before[1]

    for level in tree.levels[1:]:
        for left, right in zip(level, level[1:]):
            assert clearance(left, right) >= -1e-6
    for node in tree.nodes:
        assert node.size >= node.width


def test_one_sided_subtrees_row_does_not_grow(make_tree, config):
    tree = make_tree(ONE_SIDED)
    layout_tree(tree, config)
    assert [n.id for n in tree.by_id["B"].elements] == ["S", "B"]
    assert [n.id for n in tree.levels[3]] == ["A1", "A2", "A3", "B1", "B2"]
    spans_before = [row_span(level) for level in tree.levels[1:]]
    aligned = aligned_parents(tree)

    report = compact_tree(tree, config)

    assert report.converged
    for level, before in zip(tree.levels[1:], spans_before):
        assert row_span(level) <= before + 1e-9
        for left, right in zip(level, level[1:]):
            assert clearance(left, right) >= -1e-6
    assert row_span(tree.levels[2]) < spans_before[1]
    for node in aligned:
        assert over_children(node), node.id


def test_parents_stay_over_their_children(make_tree, sample_csv, config):
    trees = [make_tree(WIDE_SIBLINGS), make_tree(ONE_SIDED), build_tree(read_records(sample_csv))]
    for tree in trees:
        layout_tree(tree, config)
        aligned = aligned_parents(tree)
        assert aligned

        compact_tree(tree, config)

        for node in aligned:
            assert over_children(node), node.id


def test_settled_rows_have_no_positive_gap(make_tree, config):
    tree = make_tree(WIDE_SIBLINGS)
    layout_tree(tree, config)
    compact_tree(tree, config)

    # Halving between adjacent ends can leave at most two precision steps
    tolerance = 2 * 10**-config.precision
    for level in tree.levels[1:]:
        for left, right in zip(level, level[1:]):
            assert gap(left, right) <= tolerance
            assert gap(right, left) <= tolerance


def test_compaction_is_idempotent(sample_csv, config):
    tree = build_tree(read_records(sample_csv))
    layout_tree(tree, config)
    compact_tree(tree, config)
    settled = positions(tree)

    report = compact_tree(tree, config)

    assert report.improvement == 0
    assert report.passes == 1
    assert positions(tree) == settled


def test_compaction_is_deterministic(sample_csv, config):
    runs = []
    for _ in range(2):
        tree = build_tree(read_records(sample_csv))
        layout_tree(tree, config)
        compact_tree(tree, config)
        runs.append(positions(tree))
    assert runs[0] == runs[1]


def test_sample_keeps_invariants(sample_csv, config):
    tree = build_tree(read_records(sample_csv))
    layout_tree(tree, config)
    spans_before = [row_span(level) for level in tree.levels[1:]]
    compact_tree(tree, config)

    for level, before in zip(tree.levels[1:], spans_before):
        assert row_span(level) <= before + 1e-9
        for left, right in zip(level, level[1:]):
            assert clearance(left, right) >= -1e-6
        for node in level:
            for k, element in enumerate(node.elements):
                assert element.left == pytest.approx(node.row_left + k * config.box_width)


def test_single_node_rows_do_not_move(make_tree, config):
    tree = make_tree(
        """
        1,A,true,,,male,,,,
        1,B,true,,,male,,,,A
        """
    )
    layout_tree(tree, config)
    before = positions(tree)

    assert compact_row(tree.levels[1], config) == 0
    report = compact_tree(tree, config)

    assert report.converged and report.passes == 1
    assert positions(tree) == before


def test_max_passes_guard(make_tree, config, caplog):
    tree = make_tree(WIDE_SIBLINGS)
    layout_tree(tree, config)

    with caplog.at_level(logging.WARNING, logger="compaction"):
        report = compact_tree(tree, replace(config, max_passes=1))

    assert not report.converged
    assert report.passes == 1
    assert "without reaching a fixed point" in caplog.text
