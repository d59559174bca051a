"""CSV record parsing and field normalization utilities."""

import csv
from collections.abc import Iterable
import logging
from pathlib import Path
import re

from models import Record

logger = logging.getLogger(__name__)

# check, id, lineage, first_name, last_name, sex, birth, death, wedding, parent_id
RECORD_FIELDS = 10

LINEAGE_MARKERS = {"true", "1", "yes", "y", "x"}

SEX_MAP = {
    "M": "male",
    "MALE": "male",
    "H": "male",
    "HOMME": "male",
    "F": "female",
    "FEMALE": "female",
    "FEMME": "female",
}


def nullify(value: str | None) -> str | None:
    """Map empty (or whitespace-only) fields to None."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def parse_lineage(value: str | None) -> bool:
    value = nullify(value)
    return value is not None and value.lower() in LINEAGE_MARKERS


def parse_sex(value: str | None) -> str | None:
    value = nullify(value)
    if value is None:
        return None
    return SEX_MAP.get(value.upper())


def parse_year(year_str: str | None) -> str | None:
    """
    Normalize a year field to its bare digits.
    Returns None for empty fields; unrecognized text is kept verbatim.

    Handles formats like:
    - "1615"
    - "ABT 1615"
    - "(1789?)"
    - "~1650"
    - "bef. 1700"
    - "1659-03-12"
    """
    s = nullify(year_str)
    if s is None:
        return None

    # Remove parentheses, trailing question marks and approximation marks
    cleaned = s.strip("()").rstrip("?").lstrip("~").strip()
    # Remove qualifiers (ABT, ABOUT, BEF, AFT, CIRCA, ...) - with optional colon
    cleaned = re.sub(
        r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|CIRCA|CA\.?|AROUND|VERS):?\s*",
        "",
        cleaned,
        flags=re.IGNORECASE,
    )

    match = re.search(r"\b(\d{3,4})\b", cleaned)
    if match:
        return match.group(1)
    return s


def parse_row(row: list[str], line_number: int = 0) -> Record | None:
    """
    Turn one CSV row into a Record.

    Returns None for rows that are blank, too short, or not checked for
    inclusion (the inclusion flag must be "1").
    """
    if not row or all(not cell.strip() for cell in row):
        return None
    if len(row) < RECORD_FIELDS:
        logger.debug("Skipping line %d: %d field(s)", line_number, len(row))
        return None
    if row[0].strip() != "1":
        logger.debug("Skipping line %d: not checked", line_number)
        return None

    return Record(
        id=nullify(row[1]),
        lineage=parse_lineage(row[2]),
        first_name=nullify(row[3]),
        last_name=nullify(row[4]),
        sex=parse_sex(row[5]),
        birth=parse_year(row[6]),
        death=parse_year(row[7]),
        wedding=parse_year(row[8]),
        parent_id=nullify(row[9]),
        line_number=line_number,
    )


def parse_records(lines: Iterable[str]) -> list[Record]:
    """Parse comma-separated lines into Records, preserving input order."""
    records: list[Record] = []
    reader = csv.reader(lines)
    for row in reader:
        record = parse_row(row, reader.line_num)
        if record is not None:
            records.append(record)
    return records


def read_records(filepath: Path) -> list[Record]:
    """Read a CSV file and return its included Records."""
    with open(filepath, newline="", encoding="utf-8-sig") as f:
        return parse_records(f)
