"""
Metric taxonomy for the school farol dashboard.

Four small vocabularies describe every classified value:
  - ``Farol``        — the traffic-light status, ordered by severity.
  - ``Metric``       — which indicator a cell belongs to (one matrix column).
  - ``StaffCategory``— staff group for attendance records.
  - ``Granularity``  — reporting period of the raw records behind a metric.

Usage example::

    from farol_engine.taxonomy.metric_taxonomy import Farol, Metric

    Farol.RED.severity > Farol.YELLOW.severity          # True
    Metric.QUALITY.granularity                          # Granularity.MONTHLY

This module has NO imports from any other ``farol_engine`` package.
"""

from __future__ import annotations

from enum import StrEnum


class Farol(StrEnum):
    """Traffic-light status of one metric for one entity."""

    GREEN = "green"
    """Target attained."""

    YELLOW = "yellow"
    """Close to target; attention recommended."""

    RED = "red"
    """Target missed, or no data to prove otherwise."""

    @property
    def severity(self) -> int:
        """1 (green) < 2 (yellow) < 3 (red)."""
        return _SEVERITY[self]

    @property
    def label(self) -> str:
        """Portuguese label used in legends and exports."""
        return _FAROL_LABELS[self]


_SEVERITY: dict[Farol, int] = {Farol.GREEN: 1, Farol.YELLOW: 2, Farol.RED: 3}

_FAROL_LABELS: dict[Farol, str] = {
    Farol.GREEN: "Verde",
    Farol.YELLOW: "Amarelo",
    Farol.RED: "Vermelho",
}


class Granularity(StrEnum):
    """Reporting period of the raw records feeding a metric."""

    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    ANNUAL = "annual"


class StaffCategory(StrEnum):
    """Staff group of an attendance record."""

    TEACHERS = "teachers"
    PEDAGOGICAL = "pedagogical"
    SUPPORT = "support"


class Metric(StrEnum):
    """One column of the farol matrix."""

    FREQUENCY = "frequency"
    OPEN_CLASS = "open_class"
    ATTENDANCE_TEACHERS = "attendance_teachers"
    ATTENDANCE_PEDAGOGICAL = "attendance_pedagogical"
    ATTENDANCE_SUPPORT = "attendance_support"
    NPS = "nps"
    QUALITY = "quality"
    INFRASTRUCTURE = "infrastructure"
    VACANCY = "vacancy"
    ROUTINE = "routine"

    @property
    def granularity(self) -> Granularity:
        return _GRANULARITY[self]

    @property
    def label(self) -> str:
        """Portuguese column header."""
        return _METRIC_LABELS[self]

    @property
    def requires_target(self) -> bool:
        """True for metrics classified against a per-school annual target."""
        return self in TARGET_METRICS


_GRANULARITY: dict[Metric, Granularity] = {
    Metric.FREQUENCY:              Granularity.ANNUAL,
    Metric.OPEN_CLASS:             Granularity.FORTNIGHTLY,
    Metric.ATTENDANCE_TEACHERS:    Granularity.FORTNIGHTLY,
    Metric.ATTENDANCE_PEDAGOGICAL: Granularity.FORTNIGHTLY,
    Metric.ATTENDANCE_SUPPORT:     Granularity.FORTNIGHTLY,
    Metric.NPS:                    Granularity.MONTHLY,
    Metric.QUALITY:                Granularity.MONTHLY,
    Metric.INFRASTRUCTURE:         Granularity.MONTHLY,
    Metric.VACANCY:                Granularity.FORTNIGHTLY,
    Metric.ROUTINE:                Granularity.FORTNIGHTLY,
}

_METRIC_LABELS: dict[Metric, str] = {
    Metric.FREQUENCY:              "Frequência",
    Metric.OPEN_CLASS:             "Aulas Vagas",
    Metric.ATTENDANCE_TEACHERS:    "P&C (Prof.)",
    Metric.ATTENDANCE_PEDAGOGICAL: "P&C (TP)",
    Metric.ATTENDANCE_SUPPORT:     "P&C (Apoio)",
    Metric.NPS:                    "NPS",
    Metric.QUALITY:                "Qualidade",
    Metric.INFRASTRUCTURE:         "Plano Infra",
    Metric.VACANCY:                "Vagas em Aberto",
    Metric.ROUTINE:                "Rotina",
}

# Matrix column order (left to right).
MATRIX_COLUMNS: tuple[Metric, ...] = (
    Metric.FREQUENCY,
    Metric.OPEN_CLASS,
    Metric.ATTENDANCE_TEACHERS,
    Metric.ATTENDANCE_PEDAGOGICAL,
    Metric.ATTENDANCE_SUPPORT,
    Metric.NPS,
    Metric.QUALITY,
    Metric.INFRASTRUCTURE,
    Metric.VACANCY,
    Metric.ROUTINE,
)

TARGET_METRICS: frozenset[Metric] = frozenset({Metric.FREQUENCY, Metric.NPS})

ATTENDANCE_METRICS: dict[StaffCategory, Metric] = {
    StaffCategory.TEACHERS:    Metric.ATTENDANCE_TEACHERS,
    StaffCategory.PEDAGOGICAL: Metric.ATTENDANCE_PEDAGOGICAL,
    StaffCategory.SUPPORT:     Metric.ATTENDANCE_SUPPORT,
}
