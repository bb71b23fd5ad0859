"""
Tests for farol_engine.aggregation.aggregators.

What we test
------------
- Sum-first attendance and routine (NOT the mean of per-record ratios).
- Mean quality / NPS; OR open class; all-of infrastructure with the
  zero-records no-data case.
- Worst-of vacancy, with an order-independent pick among equals.
- Frequency: one record per (school, year), graceful missing target.
- aggregate_metric() ignores other record kinds.
"""

from __future__ import annotations

import pytest

from farol_engine.aggregation.aggregators import (
    aggregate_attendance,
    aggregate_frequency,
    aggregate_infrastructure,
    aggregate_metric,
    aggregate_nps,
    aggregate_open_class,
    aggregate_quality,
    aggregate_routine,
    aggregate_vacancy,
    lookup_target,
)
from farol_engine.classification.classifiers import classify_vacancy
from farol_engine.errors import InvalidInputError
from farol_engine.models.cell import worst_cell
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
from farol_engine.taxonomy.metric_taxonomy import Farol, Metric, StaffCategory


# ── Record builders ───────────────────────────────────────────────────────────

def att(worked, expected, category=StaffCategory.TEACHERS, school_id="s1", year=2025, fortnight=1):
    return AttendanceRecord(
        school_id=school_id, year=year, fortnight=fortnight,
        category=category, worked=worked, expected=expected,
    )


def freq(result, school_id="s1", year=2025):
    return FrequencyRecord(school_id=school_id, year=year, result=result)


def infra(completed, school_id="s1", year=2025, month=3):
    return InfrastructureRecord(school_id=school_id, year=year, month=month, completed=completed)


def nps(promoters, detractors, school_id="s1", year=2025, month=3):
    return NpsRecord(
        school_id=school_id, year=year, month=month,
        promoters_pct=promoters, detractors_pct=detractors,
    )


def open_class(flag, school_id="s1", year=2025, fortnight=1):
    return OpenClassRecord(school_id=school_id, year=year, fortnight=fortnight, has_open_class=flag)


def quality(score, school_id="s1", year=2025, month=3):
    return QualityRecord(school_id=school_id, year=year, month=month, score=score)


def routine(completed, goal, school_id="s1", year=2025, fortnight=1):
    return RoutineRecord(
        school_id=school_id, year=year, fortnight=fortnight, completed=completed, goal=goal,
    )


def vac(total_open, days_open, school_id="s1", year=2025, fortnight=1):
    return VacancyRecord(
        school_id=school_id, year=year, fortnight=fortnight,
        total_open=total_open, days_open=days_open,
    )


# ── Attendance / routine (sum-first) ──────────────────────────────────────────

def test_attendance_is_sum_first():
    agg = aggregate_attendance([att(9, 9), att(0, 1)])
    assert agg.raw == pytest.approx(90.0)
    assert agg.cell.status is Farol.YELLOW
    assert agg.cell.value == "90.0%"
    assert agg.record_count == 2


def test_attendance_filters_category():
    records = [
        att(10, 10, category=StaffCategory.TEACHERS),
        att(0, 10, category=StaffCategory.SUPPORT),
    ]
    agg = aggregate_attendance(records, StaffCategory.TEACHERS)
    assert agg.cell.status is Farol.GREEN
    assert agg.record_count == 1


def test_attendance_no_records_is_zero_denominator():
    agg = aggregate_attendance([])
    assert agg.raw is None
    assert agg.cell.status is Farol.RED
    assert agg.cell.value == "0%"


def test_attendance_order_independent():
    records = [att(9, 9), att(0, 1), att(5, 7)]
    assert aggregate_attendance(records) == aggregate_attendance(list(reversed(records)))


def test_routine_is_sum_first():
    agg = aggregate_routine([routine(9, 9), routine(0, 1)])
    assert agg.raw == pytest.approx(90.0)
    assert agg.cell.status is Farol.YELLOW


# ── Quality / NPS (mean) ──────────────────────────────────────────────────────

def test_quality_mean():
    agg = aggregate_quality([quality(5.0), quality(4.0)])
    assert agg.raw == pytest.approx(4.5)
    assert agg.cell.status is Farol.GREEN


def test_quality_no_records():
    agg = aggregate_quality([])
    assert agg.raw is None
    assert agg.cell.value == "-"


def test_nps_mean_against_target():
    agg = aggregate_nps([nps(70, 10), nps(40, 20)], annual_target=40)
    assert agg.raw == pytest.approx(40.0)
    assert agg.cell.status is Farol.GREEN


def test_nps_missing_target():
    agg = aggregate_nps([nps(70, 10)], annual_target=None)
    assert agg.cell.status is Farol.RED
    assert agg.cell.value == "-"


# ── Flags ─────────────────────────────────────────────────────────────────────

def test_open_class_any():
    agg = aggregate_open_class([open_class(False), open_class(True), open_class(False)])
    assert agg.raw is True
    assert agg.cell.status is Farol.RED


def test_open_class_none_flagged():
    agg = aggregate_open_class([open_class(False)])
    assert agg.cell.status is Farol.GREEN


def test_open_class_no_records():
    agg = aggregate_open_class([])
    assert agg.raw is None
    assert agg.cell.status is Farol.GREEN


def test_infrastructure_all_completed():
    assert aggregate_infrastructure([infra(True), infra(True)]).cell.status is Farol.GREEN


def test_infrastructure_one_incomplete():
    assert aggregate_infrastructure([infra(True), infra(False)]).cell.status is Farol.RED


def test_infrastructure_zero_records_is_no_data():
    agg = aggregate_infrastructure([])
    assert agg.cell.status is Farol.RED
    assert agg.cell.value == "-"
    assert agg.raw is None


# ── Vacancy (worst-of) ────────────────────────────────────────────────────────

def test_vacancy_worst_of():
    agg = aggregate_vacancy([vac(1, 3), vac(2, 10)])
    assert agg.cell.status is Farol.RED
    assert agg.cell.value == "2/10"


def test_vacancy_worst_of_never_averages():
    agg = aggregate_vacancy([vac(2, 10), vac(0, 0), vac(0, 0)])
    assert agg.cell.status is Farol.RED


def test_vacancy_tie_break_is_order_independent():
    a, b = vac(1, 9), vac(3, 20)
    assert aggregate_vacancy([a, b]).cell == aggregate_vacancy([b, a]).cell
    assert aggregate_vacancy([a, b]).cell.value == "3/20"


def test_vacancy_agrees_with_worst_cell():
    records = [vac(1, 9), vac(3, 20)]
    expected, _ = worst_cell(
        [(classify_vacancy(r.total_open, r.days_open), r) for r in records],
        cell_of=lambda pair: pair[0],
        tie_break=lambda pair: (pair[1].days_open, pair[1].total_open),
    )
    assert aggregate_vacancy(records).cell == expected
    assert expected.value == "3/20"


def test_vacancy_zero_records_green():
    agg = aggregate_vacancy([])
    assert agg.cell.status is Farol.GREEN
    assert agg.cell.value == "0/0"
    assert agg.raw is None


# ── Frequency / targets ───────────────────────────────────────────────────────

def test_frequency_single_record():
    agg = aggregate_frequency([freq(95.5)], target=93.0)
    assert agg.cell.status is Farol.GREEN
    assert agg.raw == 95.5


def test_frequency_multiple_records_raise():
    with pytest.raises(InvalidInputError):
        aggregate_frequency([freq(95.5), freq(90.0)], target=93.0)


def test_lookup_target_missing_returns_none():
    targets = [Target(school_id="s2", year=2025, metric="frequency", target=93.0)]
    assert lookup_target(targets, "s1", 2025, Metric.FREQUENCY) is None


def test_lookup_target_matches_metric_and_year():
    targets = [
        Target(school_id="s1", year=2024, metric="frequency", target=90.0),
        Target(school_id="s1", year=2025, metric="nps", target=50.0),
        Target(school_id="s1", year=2025, metric="frequency", target=93.0),
    ]
    assert lookup_target(targets, "s1", 2025, Metric.FREQUENCY) == 93.0


def test_lookup_target_duplicate_raises():
    targets = [
        Target(school_id="s1", year=2025, metric="nps", target=50.0),
        Target(school_id="s1", year=2025, metric="nps", target=60.0),
    ]
    with pytest.raises(InvalidInputError):
        lookup_target(targets, "s1", 2025, Metric.NPS)


# ── Dispatcher ────────────────────────────────────────────────────────────────

def test_aggregate_metric_ignores_other_kinds():
    records = [att(10, 10), quality(3.0), vac(1, 20), infra(True)]
    assert aggregate_metric(Metric.ATTENDANCE_TEACHERS, records).cell.status is Farol.GREEN
    assert aggregate_metric(Metric.QUALITY, records).cell.status is Farol.RED
    assert aggregate_metric(Metric.INFRASTRUCTURE, records).cell.status is Farol.GREEN


def test_aggregate_metric_every_column_without_records():
    for metric in Metric:
        agg = aggregate_metric(metric, [])
        assert agg.cell is not None
        assert agg.record_count == 0


def test_aggregate_metric_unknown_metric_raises():
    with pytest.raises(InvalidInputError):
        aggregate_metric("weather", [])
