"""
Tests for farol_engine.ingestion.bundle — the data-access boundary.

What we test
------------
- bundle_from_dict(): valid bundle, every invalid row reported, unknown
  school references rejected.
- load_bundle(): missing file / bad JSON / non-object raise
  DataUnavailableError (distinct from a red classification).
- parse_records_csv(): typed rows, boolean parsing, bad rows, empty file.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from farol_engine.errors import DataUnavailableError, InvalidInputError, UnknownEntityError
from farol_engine.ingestion.bundle import (
    DataBundle,
    bundle_from_dict,
    load_bundle,
    parse_records_csv,
)
from farol_engine.models.records import AttendanceRecord, InfrastructureRecord, OpenClassRecord


# ── bundle_from_dict ──────────────────────────────────────────────────────────

def test_sample_bundle_loads(sample_bundle: DataBundle, sample_bundle_raw: dict):
    assert len(sample_bundle.schools) == 3
    assert len(sample_bundle.records) == len(sample_bundle_raw["records"])
    assert isinstance(sample_bundle.records[0], AttendanceRecord)


def test_every_invalid_row_reported():
    raw = {
        "schools": [{"id": "s1", "name": "EE Alfa"}],
        "records": [
            {"kind": "quality", "school_id": "s1", "year": 2025, "month": 3, "score": 9},
            {"kind": "vacancy", "school_id": "s1", "year": 2025, "fortnight": 5,
             "total_open": 1, "days_open": 1},
        ],
        "targets": [{"metric": "quality", "school_id": "s1", "year": 2025, "target": 4}],
    }
    with pytest.raises(InvalidInputError) as exc_info:
        bundle_from_dict(raw)
    msg = str(exc_info.value)
    assert msg.startswith("3 row(s) failed validation")
    assert "records[0]" in msg
    assert "records[1]" in msg
    assert "targets[0]" in msg


def test_section_must_be_list():
    with pytest.raises(InvalidInputError, match="expected a list"):
        bundle_from_dict({"schools": {"id": "s1"}})


def test_unknown_school_reference_rejected():
    raw = {
        "schools": [{"id": "s1", "name": "EE Alfa"}],
        "records": [{"kind": "frequency", "school_id": "ghost", "year": 2025, "result": 90}],
    }
    with pytest.raises(UnknownEntityError) as exc_info:
        bundle_from_dict(raw)
    assert exc_info.value.entity_ids == ["ghost"]


def test_bundle_lookups(sample_bundle: DataBundle):
    assert sample_bundle.school("s2").name == "EE Beta"
    assert sample_bundle.regional_name("r1") == "Regional Norte"
    assert sample_bundle.regional_name("unknown") == "unknown"
    assert [s.id for s in sample_bundle.schools_in("r1")] == ["s1", "s2"]
    with pytest.raises(UnknownEntityError):
        sample_bundle.school("nope")


# ── load_bundle ───────────────────────────────────────────────────────────────

def test_load_bundle_from_file(bundle_file: Path):
    bundle = load_bundle(bundle_file)
    assert {s.id for s in bundle.schools} == {"s1", "s2", "s3"}


def test_load_bundle_missing_file(tmp_path: Path):
    with pytest.raises(DataUnavailableError, match="file not found"):
        load_bundle(tmp_path / "missing.json")


def test_load_bundle_invalid_json(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DataUnavailableError, match="invalid JSON"):
        load_bundle(path)


def test_load_bundle_not_an_object(tmp_path: Path):
    path = tmp_path / "list.json"
    path.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(DataUnavailableError):
        load_bundle(path)


def test_data_unavailable_is_not_invalid_input(tmp_path: Path):
    with pytest.raises(DataUnavailableError) as exc_info:
        load_bundle(tmp_path / "missing.json")
    assert not isinstance(exc_info.value, InvalidInputError)


# ── parse_records_csv ─────────────────────────────────────────────────────────

def _write_csv(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "records.csv"
    p.write_text(content, encoding="utf-8")
    return p


def test_parse_attendance_csv(tmp_path: Path):
    path = _write_csv(
        tmp_path,
        "school_id,year,fortnight,category,worked,expected,headcount\n"
        "s1,2025,1,teachers,38,40,\n"
        "s2,2025,2,support,9.5,10,3\n",
    )
    records = parse_records_csv(path, "attendance")
    assert len(records) == 2
    assert records[0].headcount is None
    assert records[1].worked == 9.5


@pytest.mark.parametrize("text, expected", [("Sim", True), ("não", False), ("1", True), ("false", False)])
def test_parse_boolean_columns(tmp_path: Path, text, expected):
    path = _write_csv(tmp_path, f"school_id,year,fortnight,has_open_class\ns1,2025,1,{text}\n")
    (record,) = parse_records_csv(path, "open_class")
    assert isinstance(record, OpenClassRecord)
    assert record.has_open_class is expected


def test_parse_infrastructure_completed(tmp_path: Path):
    path = _write_csv(tmp_path, "school_id,year,month,completed\ns1,2025,3,sim\n")
    (record,) = parse_records_csv(path, "infrastructure")
    assert isinstance(record, InfrastructureRecord)
    assert record.completed is True


def test_parse_invalid_boolean(tmp_path: Path):
    path = _write_csv(tmp_path, "school_id,year,fortnight,has_open_class\ns1,2025,1,maybe\n")
    with pytest.raises(InvalidInputError, match="Row 2"):
        parse_records_csv(path, "open_class")


def test_parse_reports_every_bad_row(tmp_path: Path):
    path = _write_csv(
        tmp_path,
        "school_id,year,month,score\n"
        "s1,2025,3,4.5\n"
        "s1,2025,13,4.5\n"
        "s1,2025,3,-1\n",
    )
    with pytest.raises(InvalidInputError) as exc_info:
        parse_records_csv(path, "quality")
    msg = str(exc_info.value)
    assert "2 row(s)" in msg
    assert "Row 3" in msg
    assert "Row 4" in msg


def test_parse_unknown_kind(tmp_path: Path):
    path = _write_csv(tmp_path, "school_id,year\ns1,2025\n")
    with pytest.raises(InvalidInputError, match="Unknown record kind"):
        parse_records_csv(path, "weather")


def test_parse_missing_file(tmp_path: Path):
    with pytest.raises(DataUnavailableError):
        parse_records_csv(tmp_path / "nope.csv", "quality")


def test_parse_header_only(tmp_path: Path):
    path = _write_csv(tmp_path, "school_id,year,month,score\n")
    assert parse_records_csv(path, "quality") == []


def test_parse_empty_file(tmp_path: Path):
    path = _write_csv(tmp_path, "")
    with pytest.raises(InvalidInputError, match="no header"):
        parse_records_csv(path, "quality")
