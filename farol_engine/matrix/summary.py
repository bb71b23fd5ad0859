"""
Network-wide and regional KPI summaries.

A scope summary classifies each metric once for a whole set of schools:

  - records-based metrics pool every in-period record of the scope through
    the same aggregator the matrix uses (sum-first, mean, OR, all-of,
    worst-of), so a network attendance cell is one sum-first ratio over all
    schools, not a mean of school percentages;
  - target metrics (frequency, NPS) compare the mean result against the
    mean target, both taken over the schools that have a result AND a
    target. No school with both gives the no-data cell.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from farol_engine.aggregation.aggregators import aggregate_metric
from farol_engine.classification.classifiers import CLASSIFIERS
from farol_engine.ingestion.bundle import DataBundle
from farol_engine.matrix.builder import select_schools
from farol_engine.matrix.ranking import collect_results
from farol_engine.models.cell import Cell
from farol_engine.models.matrix import RawValue
from farol_engine.models.period import PeriodFilter
from farol_engine.taxonomy.metric_taxonomy import MATRIX_COLUMNS, TARGET_METRICS, Metric

logger = logging.getLogger(__name__)


@dataclass
class ScopeSummary:
    """Classified KPIs for a scope (whole network or one regional).

    Attributes:
        scope_label:  Display label of the scope ("Rede" or the regional name).
        period_label: ``PeriodFilter.label`` of the period summarised.
        school_count: Number of schools in scope.
        cells:        Metric → classified cell (every matrix column).
        raw:          Metric → raw value behind the cell.
        targets:      Mean target per target metric, ``None`` when absent.
    """

    scope_label:  str
    period_label: str
    school_count: int
    cells:        dict[Metric, Cell] = field(default_factory=dict)
    raw:          dict[Metric, RawValue] = field(default_factory=dict)
    targets:      dict[Metric, Optional[float]] = field(default_factory=dict)


def _mean(values: list[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def scope_label(bundle: DataBundle, period: PeriodFilter, schools: list) -> str:
    """School name, regional name or "Rede", matching the scope of ``period``."""
    if period.school_id is not None and schools:
        return schools[0].name
    if period.regional_id is not None:
        return bundle.regional_name(period.regional_id)
    return "Rede"


def summarize_scope(bundle: DataBundle, period: PeriodFilter) -> ScopeSummary:
    """Classify every matrix metric for the scope selected by ``period``.

    The scope is the whole network, or one regional when
    ``period.regional_id`` is set (or one school when ``period.school_id``
    is set).
    """
    schools = select_schools(bundle, period)
    ids = {s.id for s in schools}
    pooled = [r for r in bundle.records if r.school_id in ids and period.matches(r)]

    summary = ScopeSummary(
        scope_label=scope_label(bundle, period, schools),
        period_label=period.label,
        school_count=len(schools),
    )
    for metric in MATRIX_COLUMNS:
        if metric in TARGET_METRICS:
            both = [
                c for c in collect_results(bundle, period, metric)
                if c.result is not None and c.target is not None
            ]
            result = _mean([c.result for c in both])
            target = _mean([c.target for c in both])
            summary.cells[metric] = CLASSIFIERS[metric](result, target)
            summary.raw[metric] = result
            summary.targets[metric] = target
        else:
            agg = aggregate_metric(metric, pooled)
            summary.cells[metric] = agg.cell
            summary.raw[metric] = agg.raw

    logger.info(
        "Summarised %s for %s: %d schools, %d records",
        summary.scope_label, period.label, len(schools), len(pooled),
    )
    return summary
