"""
Display formatting for cell values, and the inverse parser.

Cell values are display strings. Numeric-origin values use a dot decimal
separator and a fixed precision per metric:

  percentages (attendance, routine)  1 decimal   "92.5%"
  frequency                          2 decimals  "93.50%"
  quality score                      2 decimals  "4.25"
  NPS                                integer     "42" (half up)
  zero denominator                   literal     "0%"

``parse_cell_value()`` recovers the number from any of these strings (and
from pt-BR renderings using a comma), so a formatted value round-trips
within its stated precision. Non-numeric values ("-", "Sim", "Não",
"3/10") parse to ``None``.
"""

from __future__ import annotations

import math
import re

NO_DATA = "-"
YES = "Sim"
NO = "Não"
ZERO_BASE = "0%"

PERCENT_DECIMALS = 1
FREQUENCY_DECIMALS = 2
SCORE_DECIMALS = 2

_NUMERIC_RE = re.compile(r"^\s*([+-]?\d+(?:[.,]\d+)?)\s*%?\s*$")


def format_percentage(value: float, decimals: int = PERCENT_DECIMALS) -> str:
    """``92.456`` → ``"92.5%"``."""
    return f"{value:.{decimals}f}%"


def format_score(value: float, decimals: int = SCORE_DECIMALS) -> str:
    """``4.256`` → ``"4.26"``."""
    return f"{value:.{decimals}f}"


def format_integer(value: float) -> str:
    """Round half up, so ``42.5`` → ``"43"`` and ``-42.5`` → ``"-42"``."""
    return str(math.floor(value + 0.5))


def format_bool(flag: bool) -> str:
    return YES if flag else NO


def parse_cell_value(value: str) -> float | None:
    """Parse a numeric display value back into a float.

    Accepts optional ``%`` suffix and either ``.`` or ``,`` as the decimal
    separator. Returns ``None`` for non-numeric values.
    """
    if value is None:
        return None
    match = _NUMERIC_RE.match(value)
    if match is None:
        return None
    return float(match.group(1).replace(",", "."))
