"""
Gap-to-target leaderboards, attention list and farol distribution.

Usage flow
----------
1. collect_results(bundle, period, metric)
   -> list[GapCandidate]  (one per target school, result/target may be None)

2. rank_by_gap(candidates, ascending=True)
   -> list[GapEntry]  (entities missing a result or a target are excluded)

3. rank_schools_by_gap / rank_regionals_by_gap
   -> the two leaderboards built on 1 + 2

``schools_needing_attention()`` and ``farol_distribution()`` work on an
already built matrix.

Ordering contract: the sort key is the signed gap ``result - target``; equal
gaps are broken by entity name ascending (then id) in BOTH directions, so a
leaderboard never depends on input order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from farol_engine.aggregation.aggregators import aggregate_metric, lookup_target
from farol_engine.classification.formatting import NO_DATA
from farol_engine.errors import InvalidInputError
from farol_engine.ingestion.bundle import DataBundle
from farol_engine.matrix.builder import select_schools
from farol_engine.models.matrix import GapEntry, MatrixRow
from farol_engine.models.period import PeriodFilter
from farol_engine.taxonomy.metric_taxonomy import (
    MATRIX_COLUMNS,
    TARGET_METRICS,
    Farol,
    Metric,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GapCandidate:
    """An entity's aggregated result and resolved target, either may be missing.

    Attributes:
        entity_id:   School or regional PK.
        entity_name: Display name.
        result:      Aggregated result for the period, or ``None``.
        target:      Resolved target, or ``None``.
    """

    entity_id:   str
    entity_name: str
    result:      Optional[float]
    target:      Optional[float]


@dataclass
class AttentionItem:
    """A school with at least one red cell backed by data.

    Attributes:
        school_id:   School PK.
        school_name: Display name.
        regional_id: Regional of the school, if known.
        problems:    One description per red metric, in matrix column order.
    """

    school_id:   str
    school_name: str
    regional_id: Optional[str]
    problems:    list[str] = field(default_factory=list)


def _check_target_metric(metric: Metric) -> Metric:
    try:
        metric = Metric(metric)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown metric: {metric!r}") from exc
    if metric not in TARGET_METRICS:
        raise InvalidInputError(
            f"Metric '{metric}' has no target; rankable metrics are "
            f"{sorted(m.value for m in TARGET_METRICS)}."
        )
    return metric


# ── Ranking ───────────────────────────────────────────────────────────────────

def rank_by_gap(
    candidates: Iterable[GapCandidate],
    ascending:  bool = True,
) -> list[GapEntry]:
    """Order entities by signed gap ``result - target``.

    A missing result or target excludes the entity; it is never treated as
    a zero gap.

    Args:
        candidates: Entities with their result and target.
        ascending:  ``True`` puts the worst (most negative) gap first.

    Returns:
        GapEntry list, ties broken by name ascending regardless of direction.
    """
    entries: list[GapEntry] = []
    for c in candidates:
        if c.result is None or c.target is None:
            logger.debug(
                "Excluded '%s' from gap ranking: missing %s",
                c.entity_id, "result" if c.result is None else "target",
            )
            continue
        entries.append(
            GapEntry(
                entity_id=c.entity_id,
                entity_name=c.entity_name,
                result=c.result,
                target=c.target,
                gap=c.result - c.target,
            )
        )

    sign = 1 if ascending else -1
    return sorted(entries, key=lambda e: (sign * e.gap, e.entity_name, e.entity_id))


def collect_results(
    bundle: DataBundle,
    period: PeriodFilter,
    metric: Metric,
) -> list[GapCandidate]:
    """Aggregated result and resolved target of ``metric`` per target school."""
    metric = _check_target_metric(metric)
    candidates: list[GapCandidate] = []
    for school in select_schools(bundle, period):
        records = [
            r for r in bundle.records
            if r.school_id == school.id and period.matches(r)
        ]
        target = lookup_target(bundle.targets, school.id, period.year, metric)
        agg = aggregate_metric(metric, records, target)
        candidates.append(
            GapCandidate(
                entity_id=school.id,
                entity_name=school.name,
                result=agg.raw,
                target=target,
            )
        )
    return candidates


def rank_schools_by_gap(
    bundle:    DataBundle,
    period:    PeriodFilter,
    metric:    Metric,
    ascending: bool = True,
) -> list[GapEntry]:
    """School leaderboard for a target metric (frequency or NPS).

    Raises:
        InvalidInputError: If ``metric`` has no target.
    """
    return rank_by_gap(collect_results(bundle, period, metric), ascending=ascending)


def rank_regionals_by_gap(
    bundle:    DataBundle,
    period:    PeriodFilter,
    metric:    Metric,
    ascending: bool = True,
) -> list[GapEntry]:
    """Regional leaderboard: mean result minus mean target over its schools.

    Only schools having both a result and a target contribute. Schools with
    no regional are left out; a regional with no contributing school is
    excluded from the ranking.

    Raises:
        InvalidInputError: If ``metric`` has no target.
    """
    region_of = {s.id: s.regional_id for s in bundle.schools}
    pairs: dict[str, list[tuple[float, float]]] = defaultdict(list)
    for c in collect_results(bundle, period, metric):
        regional_id = region_of.get(c.entity_id)
        if regional_id is None or c.result is None or c.target is None:
            continue
        pairs[regional_id].append((c.result, c.target))

    regionals = {r.id for r in bundle.regionals} | set(pairs)
    if period.regional_id is not None:
        regionals &= {period.regional_id}

    candidates = []
    for regional_id in regionals:
        values = pairs.get(regional_id, [])
        n = len(values)
        candidates.append(
            GapCandidate(
                entity_id=regional_id,
                entity_name=bundle.regional_name(regional_id),
                result=sum(r for r, _ in values) / n if n else None,
                target=sum(t for _, t in values) / n if n else None,
            )
        )
    return rank_by_gap(candidates, ascending=ascending)


# ── Matrix views ──────────────────────────────────────────────────────────────

def schools_needing_attention(
    rows:  Sequence[MatrixRow],
    limit: int | None = None,
) -> list[AttentionItem]:
    """Schools with red cells backed by data, most problems first.

    A red cell without data behind it (raw value ``None``, or a ``"-"``
    value such as a frequency result with no target) is not listed.

    Args:
        rows:  Matrix rows.
        limit: Max schools returned; ``None`` returns all.

    Returns:
        AttentionItem list ordered by problem count desc, then school name.
    """
    items: list[AttentionItem] = []
    for row in rows:
        problems = [
            f"{m.label}: {row.cells[m].value}"
            for m in row.red_metrics()
            if row.raw.get(m) is not None and row.cells[m].value != NO_DATA
        ]
        if problems:
            items.append(
                AttentionItem(
                    school_id=row.school_id,
                    school_name=row.school_name,
                    regional_id=row.regional_id,
                    problems=problems,
                )
            )

    items.sort(key=lambda i: (-len(i.problems), i.school_name, i.school_id))
    if limit is not None:
        if limit < 0:
            raise InvalidInputError(f"limit must be non-negative, got {limit}.")
        items = items[:limit]
    return items


def farol_distribution(
    rows:   Sequence[MatrixRow],
    metric: Metric | None = None,
) -> dict[Farol, int]:
    """Count cells per farol status, over one metric or every matrix column."""
    metrics = MATRIX_COLUMNS if metric is None else (Metric(metric),)
    counts = {status: 0 for status in Farol}
    for row in rows:
        for m in metrics:
            counts[row.status_of(m)] += 1
    return counts
