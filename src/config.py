"""Geometric configuration for the layout engine."""

from dataclasses import asdict, dataclass, fields, replace
import json
from pathlib import Path

# Millimetres to PostScript points
MM_TO_POINTS = 2.83464566929134


@dataclass(frozen=True)
class LayoutConfig:
    """
    Named constants driving the layout. Lengths are in millimetres.

    Attributes:
        box_width: Width of one person box
        box_height: Height of one person box
        same_family_gap: Horizontal gap between siblings sharing an ancestor
        diff_family_gap: Horizontal gap between nodes of different ancestors
        gap_before: Vertical gap above a generation row
        gap_after: Vertical gap below a generation row
        origin_left: Horizontal centre of the root
        origin_top: Top of the first generation row
        scale: Uniform factor applied to all lengths by `scaled()`
        precision: Decimal places used to settle compaction moves
        max_passes: Upper bound on outer compaction passes
    """

    box_width: float = 25.90
    box_height: float = 16.00
    same_family_gap: float = 6.10
    diff_family_gap: float = 9.90
    gap_before: float = 9.90
    gap_after: float = 16.00
    origin_left: float = 594.50
    origin_top: float = 100.00
    scale: float = 1.0
    precision: int = 2
    max_passes: int = 10000

    @property
    def row_pitch(self) -> float:
        """Vertical distance between the tops of two consecutive generations."""
        return self.box_height + self.gap_before + self.gap_after

    def scaled(self) -> "LayoutConfig":
        """Return a copy with every length multiplied by `scale` (and scale reset to 1)."""
        if self.scale == 1.0:
            return self
        s = self.scale
        return replace(
            self,
            box_width=self.box_width * s,
            box_height=self.box_height * s,
            same_family_gap=self.same_family_gap * s,
            diff_family_gap=self.diff_family_gap * s,
            gap_before=self.gap_before * s,
            gap_after=self.gap_after * s,
            origin_left=self.origin_left * s,
            origin_top=self.origin_top * s,
            scale=1.0,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def mm_to_points(measure: float) -> float:
    return measure * MM_TO_POINTS


def config_from_dict(data: dict) -> LayoutConfig:
    """Build a LayoutConfig from a mapping, rejecting unknown keys."""
    known = {f.name: f for f in fields(LayoutConfig)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown layout setting(s): {', '.join(unknown)}")

    values = {}
    for key, value in data.items():
        # Integer settings stay integers, everything else is a length
        if key in ("precision", "max_passes"):
            values[key] = int(value)
        else:
            values[key] = float(value)
    return LayoutConfig(**values)


def load_config(path: Path) -> LayoutConfig:
    """Load a LayoutConfig from a JSON file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Layout configuration must be a JSON object: {path}")
    return config_from_dict(data)
