"""
Shared pytest fixtures for the farol engine test suite.

Provides:
  - ``period_2025``: a year-only ``PeriodFilter``.
  - ``sample_bundle_raw``: the JSON-shaped dict behind ``sample_bundle``.
  - ``sample_bundle``: a small three-school, two-regional ``DataBundle``.
  - ``bundle_file``: the same bundle written to a temp JSON file.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from farol_engine.ingestion.bundle import DataBundle, bundle_from_dict
from farol_engine.models.period import PeriodFilter


# ── Bundle fixtures ───────────────────────────────────────────────────────────

_SAMPLE_BUNDLE_RAW: dict = {
    "regionals": [
        {"id": "r1", "name": "Regional Norte"},
        {"id": "r2", "name": "Regional Sul"},
    ],
    "schools": [
        {"id": "s1", "name": "EE Alfa", "regional_id": "r1"},
        {"id": "s2", "name": "EE Beta", "regional_id": "r1"},
        {"id": "s3", "name": "EE Gama", "regional_id": "r2"},
    ],
    "records": [
        {"kind": "attendance", "school_id": "s1", "year": 2025, "fortnight": 1,
         "category": "teachers", "worked": 38, "expected": 40},
        {"kind": "attendance", "school_id": "s2", "year": 2025, "fortnight": 1,
         "category": "teachers", "worked": 36, "expected": 40},
        {"kind": "attendance", "school_id": "s2", "year": 2025, "fortnight": 2,
         "category": "teachers", "worked": 40, "expected": 40},
        {"kind": "open_class", "school_id": "s2", "year": 2025, "fortnight": 1,
         "has_open_class": True},
        {"kind": "quality", "school_id": "s1", "year": 2025, "month": 3, "score": 4.6},
        {"kind": "quality", "school_id": "s2", "year": 2025, "month": 3, "score": 3.9},
        {"kind": "infrastructure", "school_id": "s1", "year": 2025, "month": 3,
         "completed": True},
        {"kind": "vacancy", "school_id": "s2", "year": 2025, "fortnight": 1,
         "total_open": 2, "days_open": 12},
        {"kind": "routine", "school_id": "s1", "year": 2025, "fortnight": 1,
         "completed": 10, "goal": 10},
        {"kind": "frequency", "school_id": "s1", "year": 2025, "result": 95.5},
        {"kind": "frequency", "school_id": "s2", "year": 2025, "result": 88.0},
        {"kind": "frequency", "school_id": "s3", "year": 2025, "result": 92.0},
        {"kind": "nps", "school_id": "s1", "year": 2025, "month": 3,
         "promoters_pct": 70, "detractors_pct": 10},
        {"kind": "nps", "school_id": "s2", "year": 2025, "month": 3,
         "promoters_pct": 40, "detractors_pct": 20},
    ],
    "targets": [
        {"metric": "frequency", "school_id": "s1", "year": 2025, "target": 93.0},
        {"metric": "frequency", "school_id": "s2", "year": 2025, "target": 93.0},
        {"metric": "nps", "school_id": "s1", "year": 2025, "target": 50},
        {"metric": "nps", "school_id": "s2", "year": 2025, "target": 50},
    ],
}


@pytest.fixture
def period_2025() -> PeriodFilter:
    return PeriodFilter(year=2025)


@pytest.fixture
def sample_bundle_raw() -> dict:
    """The raw JSON-shaped dict behind ``sample_bundle`` (a fresh copy)."""
    return copy.deepcopy(_SAMPLE_BUNDLE_RAW)


@pytest.fixture
def sample_bundle() -> DataBundle:
    """Three schools: s1 (mostly green), s2 (mostly red), s3 (little data)."""
    return bundle_from_dict(_SAMPLE_BUNDLE_RAW, source="fixture")


@pytest.fixture
def bundle_file(tmp_path: Path) -> Path:
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(_SAMPLE_BUNDLE_RAW), encoding="utf-8")
    return path
