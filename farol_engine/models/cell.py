"""
Classified cell model — the unit of output of every classifier.

A ``Cell`` couples a display-formatted value with its farol status and a hint
documenting which branch fired. Cells are frozen: they are produced fresh on
every classification call and never mutated afterwards.

``value`` is a human-readable rendering ("92.5%", "4.25", "Sim", "3/10",
"-"), NOT a raw number. Callers needing the raw number keep it alongside the
cell (see ``MatrixRow.raw``).
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from farol_engine.taxonomy.metric_taxonomy import Farol

T = TypeVar("T")


class Cell(BaseModel):
    """One classified value.

    Attributes:
        value:  Display string.
        status: Farol status.
        hint:   Explanation of the branch that fired and its thresholds.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    status: Farol
    hint: Optional[str] = None

    @property
    def severity(self) -> int:
        return self.status.severity


def _identity(item):
    return item


def _no_tie_break(item) -> tuple:
    return ()


def worst_cell(
    items: Iterable[T],
    cell_of: Callable[[T], Cell] = _identity,
    tie_break: Callable[[T], tuple] = _no_tie_break,
) -> T:
    """Return the item whose cell is the most severe.

    This is the single worst-of rule of the engine. ``items`` are cells by
    default; pass ``cell_of`` to rank richer items (for example a
    ``(cell, record)`` pair) by their cell. Equally severe items are ordered
    by ``tie_break(item)``, larger being worse. Items still tied after that
    keep input order, so the first one encountered wins.

    Args:
        items:     Cells, or items carrying a cell.
        cell_of:   Extracts the cell from an item.
        tie_break: Secondary sort key among equally severe items.

    Raises:
        ValueError: If ``items`` is empty.

    Example::

        worst_cell([green, red, yellow])                       # red
        cell, record = worst_cell(
            pairs,
            cell_of=lambda p: p[0],
            tie_break=lambda p: (p[1].days_open, p[1].total_open),
        )
    """
    worst: Optional[T] = None
    worst_key: tuple = ()
    for item in items:
        key = (cell_of(item).severity, *tie_break(item))
        if worst is None or key > worst_key:
            worst, worst_key = item, key
    if worst is None:
        raise ValueError("worst_cell() requires at least one cell.")
    return worst
