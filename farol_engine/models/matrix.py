"""
Matrix and ranking output models.

``MatrixRow`` is the presentation unit of the farol matrix: one per school,
one ``Cell`` per tracked metric. It is used only for rendering and export and is
never fed back into further computation.

``GapEntry`` is one line of a gap-to-target leaderboard.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator

from farol_engine.models.cell import Cell
from farol_engine.taxonomy.metric_taxonomy import MATRIX_COLUMNS, Farol, Metric

RawValue = Union[float, bool, None]


class MatrixRow(BaseModel):
    """One school's classified metrics for a period.

    Attributes:
        school_id:   School PK.
        school_name: Display name.
        regional_id: Regional the school belongs to, if known.
        cells:       Metric → classified cell; every metric is present.
        raw:         Metric → aggregated raw value behind the cell
                     (``None`` when the period had no data for the metric).
    """

    model_config = ConfigDict(frozen=True)

    school_id: str
    school_name: str
    regional_id: Optional[str] = None
    cells: dict[Metric, Cell]
    raw: dict[Metric, RawValue]

    @model_validator(mode="after")
    def validate_all_metrics_present(self) -> "MatrixRow":
        missing = [m.value for m in MATRIX_COLUMNS if m not in self.cells]
        if missing:
            raise ValueError(f"MatrixRow for '{self.school_id}' is missing cells: {missing}.")
        return self

    def status_of(self, metric: Metric) -> Farol:
        return self.cells[metric].status

    def red_metrics(self) -> list[Metric]:
        """Metrics whose cell is red, in matrix column order."""
        return [m for m in MATRIX_COLUMNS if self.cells[m].status is Farol.RED]


class GapEntry(BaseModel):
    """Signed distance between an aggregated result and its target.

    Attributes:
        entity_id:   School or regional PK.
        entity_name: Display name; tie-breaker for equal gaps.
        result:      Aggregated result.
        target:      Resolved target.
        gap:         ``result - target`` (negative = below target).
    """

    model_config = ConfigDict(frozen=True)

    entity_id: str
    entity_name: str
    result: float
    target: float
    gap: float
