"""
Tests for farol_engine.classification.classifiers — one block per metric.

What we test
------------
- Status AND hint for every branch (green / yellow / red / no-data).
- Boundary values: attendance 95 / 90, quality 4.5 / 3.75, vacancy 7 days,
  routine 100 / 70, frequency target + 2 (inclusive), NPS target.
- Zero denominators and missing values resolve to red cells, never raise.
- Out-of-domain inputs (negative, NaN, bool-as-number, score > 5) raise
  InvalidInputError.
"""

from __future__ import annotations

import math

import pytest

from farol_engine.classification.classifiers import (
    CLASSIFIERS,
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
from farol_engine.taxonomy.metric_taxonomy import Farol, Metric


# ── Open class ────────────────────────────────────────────────────────────────

def test_open_class_true_is_red():
    cell = classify_open_class(True)
    assert cell.status is Farol.RED
    assert cell.value == "Sim"
    assert "Tem aulas vagas" in cell.hint


def test_open_class_false_is_green():
    cell = classify_open_class(False)
    assert cell.status is Farol.GREEN
    assert cell.value == "Não"
    assert "Não tem aulas vagas" in cell.hint


# ── Attendance ────────────────────────────────────────────────────────────────

class TestAttendance:
    def test_green_at_95(self):
        cell = classify_attendance(95, 100)
        assert cell.status is Farol.GREEN
        assert cell.value == "95.0%"
        assert "≥95%" in cell.hint
        assert "95/100 dias" in cell.hint

    def test_yellow_between_90_and_95(self):
        cell = classify_attendance(94.9, 100)
        assert cell.status is Farol.YELLOW
        assert "≥90% e <95%" in cell.hint

    def test_yellow_at_exactly_90(self):
        assert classify_attendance(90, 100).status is Farol.YELLOW

    def test_red_below_90(self):
        cell = classify_attendance(89, 100)
        assert cell.status is Farol.RED
        assert "<90%" in cell.hint

    @pytest.mark.parametrize("worked", [0, 5, 1000])
    def test_expected_zero_is_red_zero_percent(self, worked):
        cell = classify_attendance(worked, 0)
        assert cell.status is Farol.RED
        assert cell.value == "0%"
        assert "Esperado = 0" in cell.hint

    def test_negative_raises(self):
        with pytest.raises(InvalidInputError):
            classify_attendance(-1, 10)

    def test_nan_raises(self):
        with pytest.raises(InvalidInputError):
            classify_attendance(math.nan, 10)

    def test_bool_raises(self):
        with pytest.raises(InvalidInputError):
            classify_attendance(True, 10)


# ── Quality ───────────────────────────────────────────────────────────────────

class TestQuality:
    def test_green_at_4_5(self):
        cell = classify_quality(4.5)
        assert cell.status is Farol.GREEN
        assert cell.value == "4.50"
        assert "≥4,50" in cell.hint

    def test_yellow_at_3_75(self):
        cell = classify_quality(3.75)
        assert cell.status is Farol.YELLOW
        assert "≥3,75 e <4,50" in cell.hint

    def test_red_below_3_75(self):
        cell = classify_quality(3.74)
        assert cell.status is Farol.RED
        assert "<3,75" in cell.hint

    def test_missing_is_red_dash(self):
        cell = classify_quality(None)
        assert cell.status is Farol.RED
        assert cell.value == "-"
        assert "Sem avaliação" in cell.hint

    def test_monotonic(self):
        scores = [i / 100 for i in range(0, 501)]
        severities = [classify_quality(s).severity for s in scores]
        assert all(a >= b for a, b in zip(severities, severities[1:]))

    def test_above_five_raises(self):
        with pytest.raises(InvalidInputError):
            classify_quality(5.5)

    def test_negative_raises(self):
        with pytest.raises(InvalidInputError):
            classify_quality(-0.1)


# ── Infrastructure ────────────────────────────────────────────────────────────

def test_infrastructure_completed_green():
    cell = classify_infrastructure(True)
    assert cell.status is Farol.GREEN
    assert cell.value == "Sim"
    assert "Planos concluídos" in cell.hint


def test_infrastructure_not_completed_red():
    cell = classify_infrastructure(False)
    assert cell.status is Farol.RED
    assert cell.value == "Não"
    assert "não concluídos" in cell.hint


def test_infrastructure_no_data_red_dash():
    cell = classify_infrastructure(None)
    assert cell.status is Farol.RED
    assert cell.value == "-"
    assert "Sem dados de infraestrutura" in cell.hint


# ── Vacancy ───────────────────────────────────────────────────────────────────

class TestVacancy:
    def test_none_open_green(self):
        cell = classify_vacancy(0, 30)
        assert cell.status is Farol.GREEN
        assert cell.value == "0/30"
        assert "0 vagas em aberto" in cell.hint

    def test_open_seven_days_yellow(self):
        cell = classify_vacancy(2, 7)
        assert cell.status is Farol.YELLOW
        assert cell.value == "2/7"
        assert "≤7 dias" in cell.hint

    def test_open_eight_days_red(self):
        cell = classify_vacancy(2, 8)
        assert cell.status is Farol.RED
        assert ">7 dias" in cell.hint

    def test_negative_raises(self):
        with pytest.raises(InvalidInputError):
            classify_vacancy(-1, 0)


# ── Routine ───────────────────────────────────────────────────────────────────

class TestRoutine:
    def test_exactly_100_green(self):
        cell = classify_routine(10, 10)
        assert cell.status is Farol.GREEN
        assert cell.value == "100.0%"
        assert "100% das rotinas" in cell.hint
        assert "10/10 rotinas" in cell.hint

    def test_above_70_yellow(self):
        cell = classify_routine(7.1, 10)
        assert cell.status is Farol.YELLOW
        assert ">70%" in cell.hint

    def test_exactly_70_red(self):
        cell = classify_routine(7, 10)
        assert cell.status is Farol.RED
        assert "≤70%" in cell.hint

    def test_above_100_is_not_green(self):
        assert classify_routine(12, 10).status is Farol.YELLOW

    def test_goal_zero_red_zero_percent(self):
        cell = classify_routine(3, 0)
        assert cell.status is Farol.RED
        assert cell.value == "0%"
        assert "Meta = 0" in cell.hint


# ── Frequency ─────────────────────────────────────────────────────────────────

class TestFrequency:
    def test_green_boundary_inclusive(self):
        cell = classify_frequency(95.0, 93.0)
        assert cell.status is Farol.GREEN
        assert cell.value == "95.00%"

    def test_just_below_green_is_yellow(self):
        assert classify_frequency(94.999, 93.0).status is Farol.YELLOW

    def test_at_target_yellow(self):
        cell = classify_frequency(93.0, 93.0)
        assert cell.status is Farol.YELLOW
        assert "meta ≤ resultado" in cell.hint

    def test_below_target_red(self):
        cell = classify_frequency(92.99, 93.0)
        assert cell.status is Farol.RED
        assert "resultado < meta" in cell.hint

    def test_hint_states_green_threshold(self):
        cell = classify_frequency(80.0, 93.0)
        assert "Meta 93.00%" in cell.hint
        assert "verde ≥ 95.00%" in cell.hint

    def test_missing_result(self):
        cell = classify_frequency(None, 93.0)
        assert cell.status is Farol.RED
        assert cell.value == "-"
        assert "Sem resultado" in cell.hint

    def test_missing_target(self):
        cell = classify_frequency(95.0, None)
        assert cell.status is Farol.RED
        assert cell.value == "-"
        assert "Sem meta" in cell.hint


# ── NPS ───────────────────────────────────────────────────────────────────────

class TestNps:
    def test_at_target_green(self):
        cell = classify_nps(50, 50)
        assert cell.status is Farol.GREEN
        assert cell.value == "50"
        assert "Meta 50" in cell.hint

    def test_below_target_red_no_yellow(self):
        cell = classify_nps(49.9, 50)
        assert cell.status is Farol.RED
        assert "NPS < meta anual" in cell.hint

    def test_value_rounds_half_up(self):
        assert classify_nps(42.5, 0).value == "43"
        assert classify_nps(-42.5, -100).value == "-42"
        assert classify_nps(-42.6, -100).value == "-43"

    def test_missing_nps(self):
        cell = classify_nps(None, 50)
        assert cell.status is Farol.RED
        assert cell.value == "-"
        assert cell.hint == "Sem NPS (Vermelho)"

    def test_missing_target(self):
        cell = classify_nps(50, None)
        assert cell.status is Farol.RED
        assert "Sem meta anual de NPS" in cell.hint


# ── Classifier table ──────────────────────────────────────────────────────────

def test_every_metric_has_a_classifier():
    assert set(CLASSIFIERS) == set(Metric)


def test_classifiers_are_deterministic():
    assert classify_attendance(91, 100) == classify_attendance(91, 100)
