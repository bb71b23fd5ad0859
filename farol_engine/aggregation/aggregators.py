"""
Per-metric aggregators: reduce one entity's records for a period to a single
representative value, then classify it.

Reduction rules
---------------
  attendance      sum ``worked`` and ``expected`` first, then one ratio
  routine         sum ``completed`` and ``goal`` first, then one ratio
  quality         arithmetic mean of scores (unweighted)
  NPS             arithmetic mean of per-record ``promoters - detractors``
  open class      logical OR across records
  infrastructure  True only if ≥ 1 record AND every record completed;
                  zero records is the no-data case (red)
  vacancy         classify each record, keep the most severe cell
  frequency       the single (school, year) record; target may be absent

Summing first is NOT the same as averaging per-record ratios when the
denominators differ: ``[9/9, 0/1]`` is 90% sum-first but 50% averaged.

Every aggregator accepts an already period-filtered iterable and returns an
``Aggregate`` holding the classified cell, the raw representative value
(``None`` when there was no data) and the number of records reduced.
Sums are plain additions, so the result does not depend on record order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from farol_engine.classification.classifiers import (
    classify_attendance,
    classify_frequency,
    classify_infrastructure,
    classify_nps,
    classify_open_class,
    classify_quality,
    classify_routine,
    classify_vacancy,
)
from farol_engine.errors import InvalidInputError
from farol_engine.models.cell import Cell, worst_cell
from farol_engine.models.matrix import RawValue
from farol_engine.models.records import (
    AttendanceRecord,
    FrequencyRecord,
    InfrastructureRecord,
    NpsRecord,
    OpenClassRecord,
    QualityRecord,
    RoutineRecord,
    Target,
    VacancyRecord,
)
from farol_engine.taxonomy.metric_taxonomy import (
    ATTENDANCE_METRICS,
    Metric,
    StaffCategory,
)


@dataclass(frozen=True)
class Aggregate:
    """Result of reducing one metric for one entity.

    Attributes:
        cell:         Classified cell.
        raw:          Representative raw value behind the cell, or ``None``
                      when the period had no usable data.
        record_count: Number of records that were reduced.
    """

    cell: Cell
    raw: RawValue
    record_count: int


def _only(records: Iterable[Any], record_type: type) -> list[Any]:
    return [r for r in records if isinstance(r, record_type)]


# ── Ratio metrics (sum-first) ─────────────────────────────────────────────────

def aggregate_attendance(
    records: Iterable[AttendanceRecord],
    category: StaffCategory | None = None,
) -> Aggregate:
    """Sum-first attendance ratio, optionally restricted to one staff category."""
    rows = _only(records, AttendanceRecord)
    if category is not None:
        rows = [r for r in rows if r.category == category]
    worked   = sum(r.worked for r in rows)
    expected = sum(r.expected for r in rows)
    raw = worked * 100.0 / expected if expected > 0 else None
    return Aggregate(cell=classify_attendance(worked, expected), raw=raw, record_count=len(rows))


def aggregate_routine(records: Iterable[RoutineRecord]) -> Aggregate:
    """Sum-first routine compliance ratio."""
    rows = _only(records, RoutineRecord)
    completed = sum(r.completed for r in rows)
    goal      = sum(r.goal for r in rows)
    raw = completed * 100.0 / goal if goal > 0 else None
    return Aggregate(cell=classify_routine(completed, goal), raw=raw, record_count=len(rows))


# ── Mean metrics ──────────────────────────────────────────────────────────────

def _mean(values: list[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def aggregate_quality(records: Iterable[QualityRecord]) -> Aggregate:
    """Unweighted mean of quality scores."""
    rows = _only(records, QualityRecord)
    mean = _mean([r.score for r in rows])
    return Aggregate(cell=classify_quality(mean), raw=mean, record_count=len(rows))


def aggregate_nps(
    records: Iterable[NpsRecord],
    annual_target: Optional[float],
) -> Aggregate:
    """Unweighted mean of monthly NPS values against the annual target."""
    rows = _only(records, NpsRecord)
    mean = _mean([r.nps for r in rows])
    return Aggregate(cell=classify_nps(mean, annual_target), raw=mean, record_count=len(rows))


# ── Flag metrics ──────────────────────────────────────────────────────────────

def aggregate_open_class(records: Iterable[OpenClassRecord]) -> Aggregate:
    """True if ANY record in the period flagged an open class."""
    rows = _only(records, OpenClassRecord)
    has_open = any(r.has_open_class for r in rows)
    return Aggregate(
        cell=classify_open_class(has_open),
        raw=has_open if rows else None,
        record_count=len(rows),
    )


def aggregate_infrastructure(records: Iterable[InfrastructureRecord]) -> Aggregate:
    """All-completed requires at least one record; zero records is no data."""
    rows = _only(records, InfrastructureRecord)
    all_completed: Optional[bool] = all(r.completed for r in rows) if rows else None
    return Aggregate(
        cell=classify_infrastructure(all_completed),
        raw=all_completed,
        record_count=len(rows),
    )


# ── Worst-of ──────────────────────────────────────────────────────────────────

def aggregate_vacancy(records: Iterable[VacancyRecord]) -> Aggregate:
    """Keep the most severe per-record vacancy cell.

    Equally severe records are ordered by ``days_open`` then ``total_open``
    (larger is worse), so the pick never depends on input order. Zero
    records classify as ``0/0`` green: no reported vacancy is treated as no
    open vacancy.
    """
    rows = _only(records, VacancyRecord)
    if not rows:
        return Aggregate(cell=classify_vacancy(0, 0), raw=None, record_count=0)

    classified = [(classify_vacancy(r.total_open, r.days_open), r) for r in rows]
    cell, worst = worst_cell(
        classified,
        cell_of=lambda pair: pair[0],
        tie_break=lambda pair: (pair[1].days_open, pair[1].total_open),
    )
    return Aggregate(cell=cell, raw=float(worst.total_open), record_count=len(rows))


# ── Annual target metrics ─────────────────────────────────────────────────────

def lookup_target(
    targets: Iterable[Target],
    school_id: str,
    year: int,
    metric: Metric,
) -> Optional[float]:
    """Return the target for ``(school_id, year, metric)`` or ``None``.

    Raises:
        InvalidInputError: If more than one target row matches.
    """
    matches = [
        t.target for t in targets
        if t.school_id == school_id and t.year == year and t.metric == metric
    ]
    if len(matches) > 1:
        raise InvalidInputError(
            f"{len(matches)} {metric} targets for school '{school_id}' in {year}; expected one."
        )
    return matches[0] if matches else None


def aggregate_frequency(
    records: Iterable[FrequencyRecord],
    target: Optional[float],
) -> Aggregate:
    """Classify the single annual frequency result against its target.

    Raises:
        InvalidInputError: If more than one record is supplied.
    """
    rows = _only(records, FrequencyRecord)
    if len(rows) > 1:
        raise InvalidInputError(
            f"Expected at most one frequency record per (school, year), got {len(rows)}."
        )
    result = rows[0].result if rows else None
    return Aggregate(cell=classify_frequency(result, target), raw=result, record_count=len(rows))


# ── Dispatcher ────────────────────────────────────────────────────────────────

_CATEGORY_BY_METRIC: dict[Metric, StaffCategory] = {
    metric: category for category, metric in ATTENDANCE_METRICS.items()
}


def aggregate_metric(
    metric: Metric,
    records: Iterable[Any],
    target: Optional[float] = None,
) -> Aggregate:
    """Aggregate and classify ``metric`` from a mixed-kind record collection.

    Records of other kinds are ignored, so a school's whole period-filtered
    record list can be passed for every metric.

    Args:
        metric:  Matrix column to produce.
        records: Period-filtered records of one entity (any kinds).
        target:  Resolved annual target, used by frequency and NPS only.
    """
    try:
        metric = Metric(metric)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown metric: {metric!r}") from exc

    records = list(records)
    if metric in _CATEGORY_BY_METRIC:
        return aggregate_attendance(records, _CATEGORY_BY_METRIC[metric])
    if metric is Metric.FREQUENCY:
        return aggregate_frequency(records, target)
    if metric is Metric.NPS:
        return aggregate_nps(records, target)
    if metric is Metric.OPEN_CLASS:
        return aggregate_open_class(records)
    if metric is Metric.QUALITY:
        return aggregate_quality(records)
    if metric is Metric.INFRASTRUCTURE:
        return aggregate_infrastructure(records)
    if metric is Metric.VACANCY:
        return aggregate_vacancy(records)
    return aggregate_routine(records)
