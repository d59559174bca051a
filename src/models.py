"""Data classes for family tree records, layout nodes and layout output."""

from dataclasses import dataclass, field


@dataclass
class Record:
    id: str | None
    lineage: bool
    first_name: str | None
    last_name: str | None
    sex: str | None  # "male", "female" or None
    birth: str | None
    death: str | None
    wedding: str | None
    parent_id: str | None
    line_number: int = 0


@dataclass(eq=False)
class PersonNode:
    id: str | None
    lineage: bool
    first_name: str | None = None
    last_name: str | None = None
    sex: str | None = None
    birth: str | None = None
    death: str | None = None
    wedding: str | None = None
    parent_id: str | None = None

    # Tree links (filled in by the graph builder and level resolver)
    parent: "PersonNode | None" = field(default=None, repr=False)
    ancestor: "PersonNode | None" = field(default=None, repr=False)
    children: list["PersonNode"] = field(default_factory=list, repr=False)
    spouses: list["PersonNode"] = field(default_factory=list, repr=False)
    elements: list["PersonNode"] = field(default_factory=list, repr=False)

    # Layout state
    level: int = 0
    index: int = 0
    width: float = 0.0
    size: float = 0.0
    margins: list[float] = field(default_factory=lambda: [0.0, 0.0])
    left: float = 0.0
    top: float = 0.0

    @classmethod
    def from_record(cls, record: Record) -> "PersonNode":
        return cls(
            id=record.id,
            lineage=record.lineage,
            first_name=record.first_name,
            last_name=record.last_name,
            sex=record.sex,
            birth=record.birth,
            death=record.death,
            wedding=record.wedding,
            parent_id=record.parent_id,
        )

    @property
    def is_root(self) -> bool:
        return self.parent is self

    @property
    def row_left(self) -> float:
        """Left coordinate of the first box of this node's family row."""
        if self.elements:
            return self.elements[0].left
        return self.left

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else (self.id or "")


@dataclass
class FamilyTree:
    root: PersonNode
    nodes: list[PersonNode]  # root first, then records in input order
    by_id: dict[str, PersonNode]
    levels: list[list[PersonNode]] = field(default_factory=list)
    orphans: list[PersonNode] = field(default_factory=list)

    def lineage_nodes(self) -> list[PersonNode]:
        """Lineage nodes in level order, root excluded."""
        return [node for level in self.levels[1:] for node in level]


@dataclass
class Placement:
    id: str | None
    elements: tuple[str | None, ...]  # ids of the family row, left to right
    left: float
    top: float
    width: float
    height: float
    lineage: bool
    level: int


@dataclass
class Connector:
    parent_id: str | None
    child_id: str | None
    start: tuple[float, float]
    end: tuple[float, float]
