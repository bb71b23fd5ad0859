"""
Period series for dashboard charts.

Each function buckets an already scope-filtered record collection by its
period field (fortnight or month) and reduces every bucket with the same
rule the matrix uses for that metric, so a chart and a matrix cell built
from the same records always agree:

  attendance_rate_by_fortnight      sum-first ratio per (fortnight, category)
  routine_compliance_by_fortnight   sum-first ratio per fortnight
  open_class_incidence_by_fortnight % of records flagged per fortnight
  infrastructure_completion_by_month % of records completed per month
  vacancy_lead_time_by_fortnight    Σ days_open / Σ total_open per fortnight
  quality_mean_by_month             mean score per month, all 12 months
  nps_mean_by_month                 mean NPS per month

Buckets are returned as dicts ordered by period. A ratio whose denominator
sums to zero is ``None`` rather than 0, so charts can leave a gap.

``SERIES`` registers each function by name with its bucket granularity and
display unit; ``build_series(name, records)`` is the lookup used by the CLI.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from farol_engine.errors import InvalidInputError
from farol_engine.models.records import (
    AttendanceRecord,
    InfrastructureRecord,
    NpsRecord,
    OpenClassRecord,
    QualityRecord,
    RoutineRecord,
    VacancyRecord,
)
from farol_engine.taxonomy.metric_taxonomy import Granularity, StaffCategory


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    return numerator * 100.0 / denominator if denominator > 0 else None


def attendance_rate_by_fortnight(
    records: Iterable[Any],
) -> dict[int, dict[StaffCategory, Optional[float]]]:
    """Attendance % per fortnight for each staff category.

    Categories without records in a fortnight map to ``None``.
    """
    sums: dict[tuple[int, StaffCategory], list[float]] = defaultdict(lambda: [0.0, 0.0])
    fortnights: set[int] = set()
    for r in records:
        if not isinstance(r, AttendanceRecord):
            continue
        acc = sums[(r.fortnight, r.category)]
        acc[0] += r.worked
        acc[1] += r.expected
        fortnights.add(r.fortnight)

    result: dict[int, dict[StaffCategory, Optional[float]]] = {}
    for q in sorted(fortnights):
        result[q] = {}
        for category in StaffCategory:
            worked, expected = sums.get((q, category), (0.0, 0.0))
            result[q][category] = _ratio(worked, expected)
    return result


def routine_compliance_by_fortnight(records: Iterable[Any]) -> dict[int, Optional[float]]:
    sums: dict[int, list[float]] = defaultdict(lambda: [0.0, 0.0])
    for r in records:
        if isinstance(r, RoutineRecord):
            sums[r.fortnight][0] += r.completed
            sums[r.fortnight][1] += r.goal
    return {q: _ratio(done, goal) for q, (done, goal) in sorted(sums.items())}


def open_class_incidence_by_fortnight(records: Iterable[Any]) -> dict[int, float]:
    """Share of records (in %) that flagged an open class, per fortnight."""
    counts: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    for r in records:
        if isinstance(r, OpenClassRecord):
            counts[r.fortnight][0] += 1
            counts[r.fortnight][1] += 1 if r.has_open_class else 0
    return {q: flagged * 100.0 / total for q, (total, flagged) in sorted(counts.items())}


def infrastructure_completion_by_month(records: Iterable[Any]) -> dict[int, float]:
    """Share of records (in %) with all plans completed, per month."""
    counts: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    for r in records:
        if isinstance(r, InfrastructureRecord):
            counts[r.month][0] += 1
            counts[r.month][1] += 1 if r.completed else 0
    return {m: ok * 100.0 / total for m, (total, ok) in sorted(counts.items())}


def vacancy_lead_time_by_fortnight(records: Iterable[Any]) -> dict[int, Optional[float]]:
    """Average days a vacancy stays open, per fortnight."""
    sums: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    for r in records:
        if isinstance(r, VacancyRecord):
            sums[r.fortnight][0] += r.total_open
            sums[r.fortnight][1] += r.days_open
    return {
        q: (days / vacancies if vacancies > 0 else None)
        for q, (vacancies, days) in sorted(sums.items())
    }


def quality_mean_by_month(records: Iterable[Any]) -> dict[int, Optional[float]]:
    """Mean quality score for each of the 12 months (``None`` without data)."""
    scores: dict[int, list[float]] = defaultdict(list)
    for r in records:
        if isinstance(r, QualityRecord):
            scores[r.month].append(r.score)
    return {
        m: (sum(scores[m]) / len(scores[m]) if scores.get(m) else None)
        for m in range(1, 13)
    }


def nps_mean_by_month(records: Iterable[Any]) -> dict[int, float]:
    values: dict[int, list[float]] = defaultdict(list)
    for r in records:
        if isinstance(r, NpsRecord):
            values[r.month].append(r.nps)
    return {m: sum(v) / len(v) for m, v in sorted(values.items())}


# ── Registry ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SeriesDefinition:
    """How one named series is bucketed and displayed.

    Attributes:
        build:       Bucketing function over a record collection.
        granularity: Bucket period (fortnight or month).
        decimals:    Display precision of bucket values.
        suffix:      Display unit appended to bucket values.
    """

    build:       Callable[[Iterable[Any]], dict]
    granularity: Granularity
    decimals:    int = 1
    suffix:      str = "%"


SERIES: dict[str, SeriesDefinition] = {
    "attendance":        SeriesDefinition(attendance_rate_by_fortnight, Granularity.FORTNIGHTLY),
    "routine":           SeriesDefinition(routine_compliance_by_fortnight, Granularity.FORTNIGHTLY),
    "open_class":        SeriesDefinition(open_class_incidence_by_fortnight, Granularity.FORTNIGHTLY),
    "infrastructure":    SeriesDefinition(infrastructure_completion_by_month, Granularity.MONTHLY),
    "vacancy_lead_time": SeriesDefinition(
        vacancy_lead_time_by_fortnight, Granularity.FORTNIGHTLY, suffix=" dias"
    ),
    "quality":           SeriesDefinition(quality_mean_by_month, Granularity.MONTHLY, 2, ""),
    "nps":               SeriesDefinition(nps_mean_by_month, Granularity.MONTHLY, 0, ""),
}


def build_series(name: str, records: Iterable[Any]) -> dict:
    """Bucket ``records`` with the series registered under ``name``.

    Raises:
        InvalidInputError: If ``name`` is not a registered series.
    """
    definition = SERIES.get(name)
    if definition is None:
        raise InvalidInputError(
            f"Unknown series '{name}'. Valid: {', '.join(SERIES)}."
        )
    return definition.build(records)
