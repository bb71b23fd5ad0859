"""
Data bundle: the fully materialised input of one engine call, and its loaders.

The engine never fetches data. Callers resolve every record and target up
front and hand over a ``DataBundle``; this module is the data-access boundary
where raw rows are validated into typed records.

JSON bundle format::

    {
      "regionals": [{"id": "r1", "name": "Norte"}],
      "schools":   [{"id": "s1", "name": "EE Alfa", "regional_id": "r1"}],
      "records":   [{"kind": "attendance", "school_id": "s1", "year": 2025,
                     "fortnight": 1, "category": "teachers",
                     "worked": 38, "expected": 40}],
      "targets":   [{"metric": "frequency", "school_id": "s1",
                     "year": 2025, "target": 93.0}]
    }

All rows are validated before any are returned. If **any** row fails, a
single :class:`InvalidInputError` is raised listing the first 10 failures.
A bundle that cannot be read at all raises :class:`DataUnavailableError`,
which callers must render as "data unavailable", never as a red farol.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from farol_engine.errors import DataUnavailableError, InvalidInputError, UnknownEntityError
from farol_engine.models.records import (
    RECORD_KINDS,
    MeasurementRecord,
    Regional,
    School,
    Target,
    parse_record,
)

logger = logging.getLogger(__name__)

_MAX_ERRORS_SHOWN = 10


class DataBundle(BaseModel):
    """Entities, records and targets handed to the engine in one piece.

    Attributes:
        regionals: Known regionals.
        schools:   Known schools.
        records:   Measurement records of any kind.
        targets:   Annual targets (frequency, NPS).
    """

    model_config = ConfigDict(frozen=True)

    regionals: tuple[Regional, ...] = ()
    schools: tuple[School, ...] = ()
    records: tuple[MeasurementRecord, ...] = ()
    targets: tuple[Target, ...] = ()

    def school(self, school_id: str) -> School:
        """Return the school with ``school_id``.

        Raises:
            UnknownEntityError: If no such school exists.
        """
        for s in self.schools:
            if s.id == school_id:
                return s
        raise UnknownEntityError([school_id], "DataBundle.schools")

    def regional_name(self, regional_id: Optional[str]) -> str:
        for r in self.regionals:
            if r.id == regional_id:
                return r.name
        return regional_id or ""

    def schools_in(self, regional_id: Optional[str] = None) -> list[School]:
        """Schools ordered by name, optionally restricted to one regional."""
        chosen = [s for s in self.schools if regional_id is None or s.regional_id == regional_id]
        return sorted(chosen, key=lambda s: (s.name, s.id))


def validate_references(bundle: DataBundle) -> None:
    """Check that every record and target points at a known school.

    Raises:
        UnknownEntityError: Listing all unknown school ids.
    """
    known = {s.id for s in bundle.schools}
    unknown = {r.school_id for r in bundle.records if r.school_id not in known}
    unknown |= {t.school_id for t in bundle.targets if t.school_id not in known}
    if unknown:
        raise UnknownEntityError(sorted(unknown), "bundle records/targets")


def bundle_from_dict(raw: dict[str, Any], source: str = "<dict>") -> DataBundle:
    """Validate a raw bundle dict into a :class:`DataBundle`.

    Raises:
        InvalidInputError: If any row fails validation.
        UnknownEntityError: If a record or target references an unknown school.
    """
    errors: list[tuple[str, str]] = []

    def _collect(section: str, parser) -> list[Any]:
        parsed: list[Any] = []
        rows = raw.get(section) or []
        if not isinstance(rows, list):
            errors.append((section, f"expected a list, got {type(rows).__name__}"))
            return parsed
        for idx, row in enumerate(rows):
            try:
                parsed.append(parser(row))
            except (ValueError, ValidationError, TypeError) as exc:
                errors.append((f"{section}[{idx}]", str(exc)))
        return parsed

    regionals = _collect("regionals", lambda row: Regional(**row))
    schools   = _collect("schools", lambda row: School(**row))
    records   = _collect("records", parse_record)
    targets   = _collect("targets", lambda row: Target(**row))

    if errors:
        detail = "\n".join(f"  {where}: {msg}" for where, msg in errors[:_MAX_ERRORS_SHOWN])
        suffix = (
            f"\n  … and {len(errors) - _MAX_ERRORS_SHOWN} more"
            if len(errors) > _MAX_ERRORS_SHOWN else ""
        )
        raise InvalidInputError(
            f"{len(errors)} row(s) failed validation in {source}:\n{detail}{suffix}"
        )

    bundle = DataBundle(
        regionals=tuple(regionals),
        schools=tuple(schools),
        records=tuple(records),
        targets=tuple(targets),
    )
    validate_references(bundle)
    logger.info(
        "Loaded bundle from %s: %d schools, %d records, %d targets",
        source, len(bundle.schools), len(bundle.records), len(bundle.targets),
    )
    return bundle


def load_bundle(path: Path) -> DataBundle:
    """Load and validate a JSON bundle file.

    Raises:
        DataUnavailableError: If the file is missing, unreadable or not JSON.
        InvalidInputError: If any row fails validation.
        UnknownEntityError: If a record or target references an unknown school.
    """
    path = Path(path)
    if not path.exists():
        raise DataUnavailableError(str(path), "file not found")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise DataUnavailableError(str(path), f"could not read file ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise DataUnavailableError(str(path), f"invalid JSON ({exc})") from exc
    if not isinstance(raw, dict):
        raise DataUnavailableError(str(path), "bundle must be a JSON object")
    return bundle_from_dict(raw, source=path.name)


# ── CSV records ───────────────────────────────────────────────────────────────

def parse_records_csv(path: Path, kind: str) -> list[Any]:
    """Parse a CSV file holding records of a single ``kind``.

    Empty cells are treated as absent; boolean columns accept
    ``true/1/yes/sim`` and ``false/0/no/não``.

    Raises:
        DataUnavailableError: If the file does not exist.
        InvalidInputError: On an unknown kind, a missing header, or bad rows.
    """
    if kind not in RECORD_KINDS:
        raise InvalidInputError(f"Unknown record kind '{kind}'. Must be one of {sorted(RECORD_KINDS)}.")
    path = Path(path)
    if not path.exists():
        raise DataUnavailableError(str(path), "file not found")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise InvalidInputError(f"CSV file is empty or has no header row: {path}")
        rows = list(reader)

    if not rows:
        logger.warning("Records CSV is empty (header only): %s", path)
        return []

    records: list[Any] = []
    errors: list[tuple[int, str]] = []
    for i, row in enumerate(rows):
        line_no = i + 2  # 1-based, skip header row
        try:
            records.append(parse_record(_csv_row(row, kind)))
        except (ValueError, ValidationError) as exc:
            errors.append((line_no, str(exc)))

    if errors:
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:_MAX_ERRORS_SHOWN])
        suffix = (
            f"\n  … and {len(errors) - _MAX_ERRORS_SHOWN} more"
            if len(errors) > _MAX_ERRORS_SHOWN else ""
        )
        raise InvalidInputError(
            f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}"
        )

    logger.info("Parsed %d %s records from %s", len(records), kind, path.name)
    return records


_TRUE = frozenset({"true", "1", "yes", "y", "t", "sim", "s"})
_FALSE = frozenset({"false", "0", "no", "n", "f", "não", "nao"})
_BOOL_FIELDS = frozenset({"has_open_class", "completed"})


def _csv_row(row: dict[str, str], kind: str) -> dict[str, Any]:
    out: dict[str, Any] = {"kind": kind}
    for key, val in row.items():
        if key is None or val is None or not val.strip():
            continue
        val = val.strip()
        if key in _BOOL_FIELDS and kind in ("open_class", "infrastructure"):
            low = val.lower()
            if low in _TRUE:
                out[key] = True
            elif low in _FALSE:
                out[key] = False
            else:
                raise ValueError(f"Invalid boolean for '{key}': {val!r}")
        else:
            out[key] = val
    return out
