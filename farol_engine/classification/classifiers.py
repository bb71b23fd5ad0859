"""
Canonical farol classifiers — one pure function per metric.

Every classifier maps one (already aggregated) measurement, plus an optional
target, to a ``Cell``. All thresholds are fixed domain constants defined in
this module; there is exactly one implementation of each business rule.

Rules
-----
  Metric            Green                 Yellow              Red / edge case
  ----------------  --------------------  ------------------  ------------------------------
  open class        no open class         -                   any open class
  attendance        pct ≥ 95              pct ≥ 90            else; expected = 0 → "0%"
  quality           score ≥ 4.50          score ≥ 3.75        else; missing → "-"
  infrastructure    all plans completed   -                   not completed; no data → "-"
  vacancy backlog   0 vacancies open      open ≤ 7 days       open > 7 days
  routine           pct == 100            pct > 70            else; goal = 0 → "0%"
  frequency         result ≥ target + 2   result ≥ target     else; missing → "-"
  NPS               nps ≥ annual target   -                   else; missing → "-"

Every returned cell carries a ``hint`` naming the branch that fired and the
thresholds used, so tooltips and exports are auditable.

Missing data never raises. Out-of-domain inputs (negative counts, NaN, a
quality score above 5) raise ``InvalidInputError``: they indicate a caller
bug and must not be silently painted red or green.
"""

from __future__ import annotations

import math
from typing import Callable, Optional

from farol_engine.classification.formatting import (
    FREQUENCY_DECIMALS,
    NO_DATA,
    ZERO_BASE,
    format_bool,
    format_integer,
    format_percentage,
    format_score,
)
from farol_engine.errors import InvalidInputError
from farol_engine.models.cell import Cell
from farol_engine.taxonomy.metric_taxonomy import Farol, Metric

# ── Thresholds ────────────────────────────────────────────────────────────────

ATTENDANCE_GREEN_PCT = 95.0
ATTENDANCE_YELLOW_PCT = 90.0

QUALITY_GREEN_SCORE = 4.5
QUALITY_YELLOW_SCORE = 3.75
QUALITY_MAX_SCORE = 5.0

VACANCY_YELLOW_MAX_DAYS = 7

ROUTINE_GREEN_PCT = 100.0
ROUTINE_YELLOW_PCT = 70.0

FREQUENCY_GREEN_MARGIN = 2.0


# ── Input guards ──────────────────────────────────────────────────────────────

def _check_number(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}.")
    if math.isnan(value):
        raise InvalidInputError(f"{name} must be a number, got NaN.")
    return value


def _check_non_negative(name: str, value: float) -> float:
    _check_number(name, value)
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}.")
    return value


# ── Classifiers ───────────────────────────────────────────────────────────────

def classify_open_class(has_open_class: bool) -> Cell:
    """Open-class incidence: any open class in the period is red."""
    if has_open_class:
        return Cell(value=format_bool(True), status=Farol.RED,
                    hint="Tem aulas vagas (Vermelho)")
    return Cell(value=format_bool(False), status=Farol.GREEN,
                hint="Não tem aulas vagas (Verde)")


def classify_attendance(worked: float, expected: float) -> Cell:
    """Staff attendance: ``worked / expected`` against 95% / 90%.

    Args:
        worked:   Days worked, already summed over the period.
        expected: Days expected, already summed over the period.
    """
    _check_non_negative("worked", worked)
    _check_non_negative("expected", expected)
    if expected == 0:
        return Cell(value=ZERO_BASE, status=Farol.RED,
                    hint="Esperado = 0, sem base de cálculo (Vermelho)")

    pct = worked * 100.0 / expected
    days = f"{worked:g}/{expected:g} dias"
    if pct >= ATTENDANCE_GREEN_PCT:
        status, rule = Farol.GREEN, "≥95% presença (Verde)"
    elif pct >= ATTENDANCE_YELLOW_PCT:
        status, rule = Farol.YELLOW, "≥90% e <95% presença (Amarelo)"
    else:
        status, rule = Farol.RED, "<90% presença (Vermelho)"
    return Cell(value=format_percentage(pct), status=status, hint=f"{rule}; {days}")


def classify_quality(score: Optional[float]) -> Cell:
    """Quality score (0–5) against 4.50 / 3.75."""
    if score is None:
        return Cell(value=NO_DATA, status=Farol.RED,
                    hint="Sem avaliação de qualidade no período (Vermelho)")
    _check_non_negative("score", score)
    if score > QUALITY_MAX_SCORE:
        raise InvalidInputError(f"score must be in [0, 5], got {score}.")

    if score >= QUALITY_GREEN_SCORE:
        status, hint = Farol.GREEN, "≥4,50 pontos (Verde)"
    elif score >= QUALITY_YELLOW_SCORE:
        status, hint = Farol.YELLOW, "≥3,75 e <4,50 pontos (Amarelo)"
    else:
        status, hint = Farol.RED, "<3,75 pontos (Vermelho)"
    return Cell(value=format_score(score), status=status, hint=hint)


def classify_infrastructure(all_completed: Optional[bool]) -> Cell:
    """Infrastructure plan completion.

    ``None`` means the period had no records; absence of data is not
    success, so it is red.
    """
    if all_completed is None:
        return Cell(value=NO_DATA, status=Farol.RED,
                    hint="Sem dados de infraestrutura no período (Vermelho)")
    if all_completed:
        return Cell(value=format_bool(True), status=Farol.GREEN,
                    hint="Planos concluídos (Verde)")
    return Cell(value=format_bool(False), status=Farol.RED,
                hint="Planos não concluídos (Vermelho)")


def classify_vacancy(total_open: int, days_open: int) -> Cell:
    """Open-vacancy backlog: none open is green, open ≤ 7 days is yellow."""
    _check_non_negative("total_open", total_open)
    _check_non_negative("days_open", days_open)
    value = f"{total_open:g}/{days_open:g}"
    if total_open == 0:
        return Cell(value=value, status=Farol.GREEN, hint="0 vagas em aberto (Verde)")
    if days_open <= VACANCY_YELLOW_MAX_DAYS:
        return Cell(value=value, status=Farol.YELLOW,
                    hint=f"{total_open:g} vaga(s) aberta(s) há ≤7 dias (Amarelo)")
    return Cell(value=value, status=Farol.RED,
                hint=f"{total_open:g} vaga(s) aberta(s) há >7 dias (Vermelho)")


def classify_routine(completed: float, goal: float) -> Cell:
    """Routine compliance: exactly 100% is green, above 70% is yellow."""
    _check_non_negative("completed", completed)
    _check_non_negative("goal", goal)
    if goal == 0:
        return Cell(value=ZERO_BASE, status=Farol.RED,
                    hint="Meta = 0, sem base de cálculo (Vermelho)")

    pct = completed * 100.0 / goal
    done = f"{completed:g}/{goal:g} rotinas"
    if pct == ROUTINE_GREEN_PCT:
        status, rule = Farol.GREEN, "100% das rotinas cumpridas (Verde)"
    elif pct > ROUTINE_YELLOW_PCT:
        status, rule = Farol.YELLOW, ">70% das rotinas, fora de 100% (Amarelo)"
    else:
        status, rule = Farol.RED, "≤70% das rotinas cumpridas (Vermelho)"
    return Cell(value=format_percentage(pct), status=status, hint=f"{rule}; {done}")


def classify_frequency(result: Optional[float], target: Optional[float]) -> Cell:
    """Annual student frequency against the school's annual target.

    Green requires at least ``target + 2`` percentage points (inclusive);
    reaching the target alone is yellow.
    """
    if result is None or target is None:
        missing = "resultado" if result is None else "meta"
        return Cell(value=NO_DATA, status=Farol.RED,
                    hint=f"Sem {missing} de frequência para o ano (Vermelho)")
    _check_non_negative("result", result)
    _check_number("target", target)

    green_at = target + FREQUENCY_GREEN_MARGIN
    base = f"Meta {target:.2f}% (verde ≥ {green_at:.2f}%)"
    if result >= green_at:
        status, rule = Farol.GREEN, "resultado ≥ meta + 2 p.p. (Verde)"
    elif result >= target:
        status, rule = Farol.YELLOW, "meta ≤ resultado < meta + 2 p.p. (Amarelo)"
    else:
        status, rule = Farol.RED, "resultado < meta (Vermelho)"
    return Cell(
        value=format_percentage(result, FREQUENCY_DECIMALS),
        status=status,
        hint=f"{base}; {rule}",
    )


def classify_nps(nps: Optional[float], annual_target: Optional[float]) -> Cell:
    """NPS (period or annual mean) against the annual target; no yellow tier."""
    if nps is None or annual_target is None:
        missing = "NPS" if nps is None else "meta anual de NPS"
        return Cell(value=NO_DATA, status=Farol.RED, hint=f"Sem {missing} (Vermelho)")
    _check_number("nps", nps)
    _check_number("annual_target", annual_target)

    base = f"Meta {format_integer(annual_target)}"
    if nps >= annual_target:
        return Cell(value=format_integer(nps), status=Farol.GREEN,
                    hint=f"{base}; NPS ≥ meta anual (Verde)")
    return Cell(value=format_integer(nps), status=Farol.RED,
                hint=f"{base}; NPS < meta anual (Vermelho)")


# Canonical metric → classifier table. Attendance categories share one rule.
CLASSIFIERS: dict[Metric, Callable[..., Cell]] = {
    Metric.FREQUENCY:              classify_frequency,
    Metric.OPEN_CLASS:             classify_open_class,
    Metric.ATTENDANCE_TEACHERS:    classify_attendance,
    Metric.ATTENDANCE_PEDAGOGICAL: classify_attendance,
    Metric.ATTENDANCE_SUPPORT:     classify_attendance,
    Metric.NPS:                    classify_nps,
    Metric.QUALITY:                classify_quality,
    Metric.INFRASTRUCTURE:         classify_infrastructure,
    Metric.VACANCY:                classify_vacancy,
    Metric.ROUTINE:                classify_routine,
}
