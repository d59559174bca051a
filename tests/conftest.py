import textwrap
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pytest

from config import LayoutConfig
from graph import build_tree
from parsing import parse_records

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def config():
    # Box 26 x 16, family gaps 6 / 10, vertical gaps 10 / 16
    return LayoutConfig(
        box_width=26,
        box_height=16,
        same_family_gap=6,
        diff_family_gap=10,
        gap_before=10,
        gap_after=16,
    )


@pytest.fixture
def sample_csv():
    return DATA_DIR / "sample.csv"


@pytest.fixture
def make_tree():
    """Build a tree from CSV rows (check,id,lineage,first,last,sex,birth,death,wedding,parent)."""

    def _make(text):
        lines = textwrap.dedent(text).strip().splitlines()
        return build_tree(parse_records(lines))

    return _make
