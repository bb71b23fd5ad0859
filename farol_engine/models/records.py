"""
Raw measurement, target and entity models.

Every measurement row is one variant of the ``MeasurementRecord`` tagged
union, discriminated on ``kind``. Rows are validated here, at the
data-access boundary, so classifiers and aggregators never receive untyped
blobs or out-of-domain values.

Record variants
---------------
  kind             period           payload
  ---------------  ---------------  ---------------------------------------
  open_class       year, fortnight  has_open_class
  attendance       year, fortnight  category, worked, expected, headcount
  quality          year, month      score (0–5)
  infrastructure   year, month      completed
  vacancy          year, fortnight  total_open, days_open
  routine          year, fortnight  completed, goal
  frequency        year             result (percentage)
  nps              year, month      promoters_pct, detractors_pct

All models are frozen; the lifecycle of the underlying rows is owned by the
external data store.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from farol_engine.taxonomy.metric_taxonomy import Granularity, Metric, StaffCategory

MIN_YEAR = 2000
MAX_YEAR = 2100


# ── Entities ──────────────────────────────────────────────────────────────────


class Regional(BaseModel):
    """Regional directorate grouping several schools."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class School(BaseModel):
    """A school tracked by the dashboard."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    regional_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("School name must not be empty.")
        return v.strip()


# ── Record base ───────────────────────────────────────────────────────────────


class _RecordBase(BaseModel):
    """Fields shared by every measurement record."""

    model_config = ConfigDict(frozen=True)

    school_id: str
    regional_id: Optional[str] = None
    year: int

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if not MIN_YEAR <= v <= MAX_YEAR:
            raise ValueError(f"year must be in [{MIN_YEAR}, {MAX_YEAR}], got {v}.")
        return v


class _FortnightlyRecord(_RecordBase):
    granularity: ClassVar[Granularity] = Granularity.FORTNIGHTLY
    fortnight: int

    @field_validator("fortnight")
    @classmethod
    def validate_fortnight(cls, v: int) -> int:
        if v not in (1, 2):
            raise ValueError(f"fortnight must be 1 or 2, got {v}.")
        return v


class _MonthlyRecord(_RecordBase):
    granularity: ClassVar[Granularity] = Granularity.MONTHLY
    month: int

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: int) -> int:
        if not 1 <= v <= 12:
            raise ValueError(f"month must be in [1, 12], got {v}.")
        return v


def _non_negative(v: float, field_name: str) -> float:
    if v != v:  # NaN
        raise ValueError(f"{field_name} must be a number, got NaN.")
    if v < 0:
        raise ValueError(f"{field_name} must be non-negative, got {v}.")
    return v


# ── Variants ──────────────────────────────────────────────────────────────────


class OpenClassRecord(_FortnightlyRecord):
    """Whether the school had classes without a teacher in the fortnight."""

    kind: Literal["open_class"] = "open_class"
    has_open_class: bool


class AttendanceRecord(_FortnightlyRecord):
    """Days worked vs days expected for one staff category.

    Attributes:
        category:  Staff group (teachers, pedagogical, support).
        worked:    Days actually worked (summed across the group).
        expected:  Days the group should have worked.
        headcount: Number of people in the group, informational only.
    """

    kind: Literal["attendance"] = "attendance"
    category: StaffCategory
    worked: float
    expected: float
    headcount: Optional[int] = None

    @field_validator("worked", "expected")
    @classmethod
    def validate_days(cls, v: float, info) -> float:
        return _non_negative(v, info.field_name)

    @field_validator("headcount")
    @classmethod
    def validate_headcount(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"headcount must be non-negative, got {v}.")
        return v


class QualityRecord(_MonthlyRecord):
    """Monthly quality audit score on a 0–5 scale."""

    kind: Literal["quality"] = "quality"
    score: float

    @field_validator("score")
    @classmethod
    def validate_score(cls, v: float) -> float:
        _non_negative(v, "score")
        if v > 5.0:
            raise ValueError(f"score must be in [0, 5], got {v}.")
        return v


class InfrastructureRecord(_MonthlyRecord):
    """Whether every infrastructure plan item due in the month was completed."""

    kind: Literal["infrastructure"] = "infrastructure"
    completed: bool


class VacancyRecord(_FortnightlyRecord):
    """Open staff vacancies and how many days they have been open."""

    kind: Literal["vacancy"] = "vacancy"
    total_open: int
    days_open: int

    @field_validator("total_open", "days_open")
    @classmethod
    def validate_counts(cls, v: int, info) -> int:
        if v < 0:
            raise ValueError(f"{info.field_name} must be non-negative, got {v}.")
        return v


class RoutineRecord(_FortnightlyRecord):
    """Management routines completed vs routines planned."""

    kind: Literal["routine"] = "routine"
    completed: float
    goal: float

    @field_validator("completed", "goal")
    @classmethod
    def validate_counts(cls, v: float, info) -> float:
        return _non_negative(v, info.field_name)


class FrequencyRecord(_RecordBase):
    """Annual student frequency result, in percent."""

    granularity: ClassVar[Granularity] = Granularity.ANNUAL
    kind: Literal["frequency"] = "frequency"
    result: float

    @field_validator("result")
    @classmethod
    def validate_result(cls, v: float) -> float:
        return _non_negative(v, "result")


class NpsRecord(_MonthlyRecord):
    """Monthly NPS survey: share of promoters and detractors, in percent."""

    kind: Literal["nps"] = "nps"
    promoters_pct: float
    detractors_pct: float

    @field_validator("promoters_pct", "detractors_pct")
    @classmethod
    def validate_pct(cls, v: float, info) -> float:
        _non_negative(v, info.field_name)
        if v > 100.0:
            raise ValueError(f"{info.field_name} must be in [0, 100], got {v}.")
        return v

    @property
    def nps(self) -> float:
        return self.promoters_pct - self.detractors_pct


MeasurementRecord = Annotated[
    Union[
        OpenClassRecord,
        AttendanceRecord,
        QualityRecord,
        InfrastructureRecord,
        VacancyRecord,
        RoutineRecord,
        FrequencyRecord,
        NpsRecord,
    ],
    Field(discriminator="kind"),
]

RECORD_KINDS: dict[str, type[BaseModel]] = {
    "open_class":     OpenClassRecord,
    "attendance":     AttendanceRecord,
    "quality":        QualityRecord,
    "infrastructure": InfrastructureRecord,
    "vacancy":        VacancyRecord,
    "routine":        RoutineRecord,
    "frequency":      FrequencyRecord,
    "nps":            NpsRecord,
}

_RECORD_ADAPTER: TypeAdapter[Any] = TypeAdapter(MeasurementRecord)


def parse_record(raw: dict[str, Any]) -> Any:
    """Validate one raw row into its ``MeasurementRecord`` variant.

    Raises:
        pydantic.ValidationError: On an unknown ``kind`` or invalid fields.
    """
    return _RECORD_ADAPTER.validate_python(raw)


# ── Targets ───────────────────────────────────────────────────────────────────


class Target(BaseModel):
    """Annual goal of one school for a target-based metric."""

    model_config = ConfigDict(frozen=True)

    school_id: str
    regional_id: Optional[str] = None
    year: int
    metric: Metric
    target: float

    @field_validator("metric")
    @classmethod
    def validate_metric(cls, v: Metric) -> Metric:
        if not v.requires_target:
            raise ValueError(f"Metric '{v}' is not classified against a target.")
        return v

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if not MIN_YEAR <= v <= MAX_YEAR:
            raise ValueError(f"year must be in [{MIN_YEAR}, {MAX_YEAR}], got {v}.")
        return v

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: float) -> float:
        if v != v:
            raise ValueError("target must be a number, got NaN.")
        return v
