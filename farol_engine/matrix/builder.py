"""
Farol matrix builder.

Given the target schools, a ``PeriodFilter`` and pre-fetched records and
targets grouped by school, ``build_matrix()`` runs every metric's aggregator
and classifier and returns one ``MatrixRow`` per school:

  1. For each school and each metric in ``MATRIX_COLUMNS``, aggregate the
     school's period-filtered records, then classify.
  2. A school with no records for a metric still receives a cell (the
     classifier's own no-data branch); keys are never absent.

``build_matrix_from_bundle()`` is the convenience entry point used by the
CLI: it selects the target schools (regional / school restriction of the
filter), filters records by period and groups them before delegating.

Rows come back in the order of the ``schools`` argument. Classification of
independent (school, metric) pairs has no relative order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Mapping, Sequence

from farol_engine.aggregation.aggregators import aggregate_metric, lookup_target
from farol_engine.errors import UnknownEntityError
from farol_engine.ingestion.bundle import DataBundle
from farol_engine.models.matrix import MatrixRow
from farol_engine.models.period import PeriodFilter
from farol_engine.models.records import School, Target
from farol_engine.taxonomy.metric_taxonomy import MATRIX_COLUMNS

logger = logging.getLogger(__name__)


def group_by_school(items: Iterable[Any]) -> dict[str, list[Any]]:
    """Group records or targets by ``school_id``, preserving input order."""
    grouped: dict[str, list[Any]] = defaultdict(list)
    for item in items:
        grouped[item.school_id].append(item)
    return dict(grouped)


def _check_keys(mapping: Mapping[str, Any], known: set[str], context: str) -> None:
    unknown = [k for k in mapping if k not in known]
    if unknown:
        raise UnknownEntityError(unknown, context)


def build_row(
    school: School,
    period: PeriodFilter,
    records: Sequence[Any],
    targets: Sequence[Target],
) -> MatrixRow:
    """Build one school's row from its own (unfiltered) records and targets."""
    in_period = [r for r in records if period.matches(r)]
    cells = {}
    raw = {}
    for metric in MATRIX_COLUMNS:
        target = (
            lookup_target(targets, school.id, period.year, metric)
            if metric.requires_target else None
        )
        agg = aggregate_metric(metric, in_period, target)
        cells[metric] = agg.cell
        raw[metric] = agg.raw
    return MatrixRow(
        school_id=school.id,
        school_name=school.name,
        regional_id=school.regional_id,
        cells=cells,
        raw=raw,
    )


def build_matrix(
    schools: Sequence[School],
    period: PeriodFilter,
    records_by_school: Mapping[str, Sequence[Any]],
    targets_by_school: Mapping[str, Sequence[Target]] | None = None,
) -> list[MatrixRow]:
    """Build one ``MatrixRow`` per school.

    Args:
        schools:           Target schools, in display order.
        period:            Period filter; records outside it are ignored.
        records_by_school: school_id → that school's records (any kinds).
        targets_by_school: school_id → that school's targets.

    Returns:
        Rows in the order of ``schools``.

    Raises:
        UnknownEntityError: If either map holds a school id that is not in
            ``schools`` (the caller fetched for the wrong entity set).
    """
    targets_by_school = targets_by_school or {}
    known = {s.id for s in schools}
    _check_keys(records_by_school, known, "records_by_school")
    _check_keys(targets_by_school, known, "targets_by_school")

    rows = [
        build_row(
            school,
            period,
            records_by_school.get(school.id, ()),
            targets_by_school.get(school.id, ()),
        )
        for school in schools
    ]
    logger.debug("Built farol matrix: %d rows for period %s", len(rows), period.label)
    return rows


def select_schools(bundle: DataBundle, period: PeriodFilter) -> list[School]:
    """Target schools of ``period``'s scope, ordered by name.

    Raises:
        UnknownEntityError: If ``period.school_id`` is not in the bundle.
    """
    if period.school_id is not None:
        school = bundle.school(period.school_id)
        if period.regional_id is not None and school.regional_id != period.regional_id:
            return []
        return [school]
    return bundle.schools_in(period.regional_id)


def build_matrix_from_bundle(bundle: DataBundle, period: PeriodFilter) -> list[MatrixRow]:
    """Select target schools from ``bundle`` and build their matrix rows."""
    schools = select_schools(bundle, period)
    ids = {s.id for s in schools}
    records = [r for r in bundle.records if r.school_id in ids and r.year == period.year]
    targets = [t for t in bundle.targets if t.school_id in ids and t.year == period.year]
    rows = build_matrix(schools, period, group_by_school(records), group_by_school(targets))
    logger.info(
        "Farol matrix for %s: %d schools, %d records in year",
        period.label, len(rows), len(records),
    )
    return rows
