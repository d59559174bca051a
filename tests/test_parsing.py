from parsing import nullify, parse_lineage, parse_records, parse_row, parse_sex, parse_year, read_records


def test_read_records_filters_rows(sample_csv):
    records = read_records(sample_csv)

    ids = [r.id for r in records]
    assert len(records) == 18
    assert ids[0] == "01-01"
    assert "04-02" not in ids, "unchecked row must be skipped"
    assert "09-02" not in ids, "short row must be skipped"
    assert "check" not in ids, "header row must be skipped"

    pierre = records[3]
    assert pierre.id == "01-04"
    assert pierre.lineage is False
    assert pierre.sex == "male"
    assert pierre.birth == "1584"
    assert pierre.wedding == "1610"
    assert pierre.parent_id == "01-03"
    assert pierre.line_number == 5


def test_parse_row_maps_fields_and_nulls():
    record = parse_row(["1", "A", "true", "Jean", "", "M", "", "1640", "", "", "extra note"])

    assert record.id == "A"
    assert record.lineage is True
    assert record.first_name == "Jean"
    assert record.last_name is None
    assert record.sex == "male"
    assert record.birth is None
    assert record.death == "1640"
    assert record.parent_id is None


def test_parse_records_skips_blank_and_unchecked():
    lines = [
        "1,A,true,,,,,,,",
        "",
        ",,,,,,,,,",
        "0,B,true,,,,,,,A",
        "x,C,true,,,,,,,A",
        "1,D,false,,,female,,,,A",
    ]
    records = parse_records(lines)
    assert [r.id for r in records] == ["A", "D"]


def test_parse_lineage_markers():
    assert parse_lineage("true")
    assert parse_lineage("TRUE")
    assert parse_lineage("1")
    assert parse_lineage("x")
    assert not parse_lineage("false")
    assert not parse_lineage("")
    assert not parse_lineage(None)


def test_parse_sex_normalization():
    assert parse_sex("male") == "male"
    assert parse_sex("F") == "female"
    assert parse_sex("Female") == "female"
    assert parse_sex("") is None
    assert parse_sex("unknown") is None


def test_parse_year_variants():
    assert parse_year("1615") == "1615"
    assert parse_year("ABT 1615") == "1615"
    assert parse_year("(1789?)") == "1789"
    assert parse_year("~1650") == "1650"
    assert parse_year("bef. 1700") == "1700"
    assert parse_year("1659-03-12") == "1659"
    assert parse_year("") is None
    assert parse_year("unknown") == "unknown"


def test_nullify():
    assert nullify("") is None
    assert nullify("   ") is None
    assert nullify(" a ") == "a"
    assert nullify(None) is None
