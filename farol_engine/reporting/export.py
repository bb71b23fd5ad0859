"""
Export helpers for spreadsheets and manual analysis.

All writers create parent directories and return the written ``Path``.
They accept generic ``list[dict]`` data to stay decoupled from specific
report shapes.

CSV exports are flat (one row per school and metric), so they load directly
in Excel or a BI tool without an unpivot step.

Adapters
--------
``flatten_matrix_for_export()``   MatrixRow list → one row per (school, metric)
``flatten_records_for_export()``  raw records → one row per record, each
                                  record classified on its own (audit trail)
``flatten_ranking_for_export()``  GapEntry list → one row per entity
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable, Sequence

from farol_engine.aggregation.aggregators import aggregate_metric
from farol_engine.models.matrix import GapEntry, MatrixRow
from farol_engine.models.period import PeriodFilter
from farol_engine.taxonomy.metric_taxonomy import ATTENDANCE_METRICS, MATRIX_COLUMNS, Metric

MATRIX_EXPORT_COLUMNS = [
    "school_id", "school_name", "regional_id", "period",
    "metric", "metric_label", "raw_value", "value", "status", "hint",
]

RECORD_EXPORT_COLUMNS = [
    "school_id", "regional_id", "kind", "year", "month", "fortnight",
    "metric", "value", "status", "hint",
]

RANKING_EXPORT_COLUMNS = ["rank", "entity_id", "entity_name", "result", "target", "gap"]


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records and fieldnames is None:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file (UTF-8, accents kept)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, indent=2, default=str, ensure_ascii=False),
        encoding="utf-8",
    )
    return path


def flatten_matrix_for_export(
    rows: Sequence[MatrixRow],
    period: PeriodFilter,
) -> list[dict]:
    """Flatten matrix rows into one export row per (school, metric).

    ``raw_value`` is the unformatted number behind the cell (empty when the
    period had no data). ``value``, ``status`` and ``hint`` are the cell's
    own fields, copied as they are.
    """
    out: list[dict] = []
    for row in rows:
        for metric in MATRIX_COLUMNS:
            cell = row.cells[metric]
            raw = row.raw.get(metric)
            out.append(
                {
                    "school_id":    row.school_id,
                    "school_name":  row.school_name,
                    "regional_id":  row.regional_id or "",
                    "period":       period.label,
                    "metric":       metric.value,
                    "metric_label": metric.label,
                    "raw_value":    "" if raw is None else raw,
                    "value":        cell.value,
                    "status":       cell.status.value,
                    "hint":         cell.hint or "",
                }
            )
    return out


def _record_metrics(record: Any) -> list[Metric]:
    if record.kind == "attendance":
        return [ATTENDANCE_METRICS[record.category]]
    return [Metric(record.kind)]


def flatten_records_for_export(
    records: Iterable[Any],
    targets_by_school: dict[str, dict[Metric, float]] | None = None,
) -> list[dict]:
    """Classify each record on its own, for auditing a matrix cell.

    Args:
        records:           Raw measurement records.
        targets_by_school: Optional school_id → {metric → target} used by
                           frequency and NPS records.

    Returns:
        One row per record, in input order.
    """
    targets_by_school = targets_by_school or {}
    out: list[dict] = []
    for record in records:
        for metric in _record_metrics(record):
            target = targets_by_school.get(record.school_id, {}).get(metric)
            cell = aggregate_metric(metric, [record], target).cell
            out.append(
                {
                    "school_id":   record.school_id,
                    "regional_id": record.regional_id or "",
                    "kind":        record.kind,
                    "year":        record.year,
                    "month":       getattr(record, "month", ""),
                    "fortnight":   getattr(record, "fortnight", ""),
                    "metric":      metric.value,
                    "value":       cell.value,
                    "status":      cell.status.value,
                    "hint":        cell.hint or "",
                }
            )
    return out


def flatten_ranking_for_export(entries: Sequence[GapEntry]) -> list[dict]:
    """One row per ranked entity, rank starting at 1."""
    return [
        {
            "rank":        rank,
            "entity_id":   e.entity_id,
            "entity_name": e.entity_name,
            "result":      round(e.result, 4),
            "target":      round(e.target, 4),
            "gap":         round(e.gap, 4),
        }
        for rank, e in enumerate(entries, start=1)
    ]
