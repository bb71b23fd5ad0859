"""
Period filter value object.

Every engine call receives an explicit ``PeriodFilter``; there is no ambient
filter state. The filter's fields apply by granularity:

  - annual metrics      → ``year`` only
  - monthly metrics     → ``year`` and, when set, ``month``
  - fortnightly metrics → ``year`` and, when set, ``fortnight``

``regional_id`` and ``school_id`` restrict the scope of entities; they are
applied by the matrix builder, not by ``matches()``.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from farol_engine.models.records import MAX_YEAR, MIN_YEAR
from farol_engine.taxonomy.metric_taxonomy import Granularity

_MONTH_LABELS = (
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
)


class PeriodFilter(BaseModel):
    """Year (mandatory) plus optional month / fortnight / scope restrictions.

    Attributes:
        year:        Calendar year; mandatory for every metric.
        month:       1–12; filters monthly metrics only.
        fortnight:   1 or 2; filters fortnightly metrics only.
        regional_id: Restrict target schools to one regional.
        school_id:   Restrict target schools to one school.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    month: Optional[int] = None
    fortnight: Optional[int] = None
    regional_id: Optional[str] = None
    school_id: Optional[str] = None

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if not MIN_YEAR <= v <= MAX_YEAR:
            raise ValueError(f"year must be in [{MIN_YEAR}, {MAX_YEAR}], got {v}.")
        return v

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 12:
            raise ValueError(f"month must be in [1, 12], got {v}.")
        return v

    @field_validator("fortnight")
    @classmethod
    def validate_fortnight(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in (1, 2):
            raise ValueError(f"fortnight must be 1 or 2, got {v}.")
        return v

    def matches(self, record: Any) -> bool:
        """True if ``record`` falls inside this period for its granularity."""
        if record.year != self.year:
            return False
        granularity = record.granularity
        if granularity is Granularity.MONTHLY and self.month is not None:
            return record.month == self.month
        if granularity is Granularity.FORTNIGHTLY and self.fortnight is not None:
            return record.fortnight == self.fortnight
        return True

    @property
    def label(self) -> str:
        """Compact label used in export rows, e.g. ``"2025 - M3 - Q1"``."""
        parts = [str(self.year)]
        if self.month is not None:
            parts.append(f"M{self.month}")
        if self.fortnight is not None:
            parts.append(f"Q{self.fortnight}")
        return " - ".join(parts)


def month_label(month: int) -> str:
    """Portuguese month name; empty string outside 1–12."""
    if 1 <= month <= 12:
        return _MONTH_LABELS[month - 1]
    return ""


def fortnight_label(fortnight: int) -> str:
    return "1ª Quinzena" if fortnight == 1 else "2ª Quinzena"
