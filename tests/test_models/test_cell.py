"""Tests for farol_engine.models.cell — Cell immutability and worst_cell()."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from farol_engine.models.cell import Cell, worst_cell
from farol_engine.taxonomy.metric_taxonomy import Farol


def test_cell_is_frozen():
    cell = Cell(value="92.5%", status=Farol.YELLOW)
    with pytest.raises(ValidationError):
        cell.value = "100%"


def test_cell_hint_optional():
    assert Cell(value="-", status=Farol.RED).hint is None


def test_cell_status_from_string():
    assert Cell(value="Sim", status="red").status is Farol.RED


def test_cell_severity_follows_status():
    assert Cell(value="x", status=Farol.YELLOW).severity == 2


def test_worst_cell_picks_highest_severity():
    cells = [
        Cell(value="a", status=Farol.GREEN),
        Cell(value="b", status=Farol.RED),
        Cell(value="c", status=Farol.YELLOW),
    ]
    assert worst_cell(cells).value == "b"


def test_worst_cell_keeps_first_among_equals():
    cells = [Cell(value="first", status=Farol.RED), Cell(value="second", status=Farol.RED)]
    assert worst_cell(cells).value == "first"


def test_worst_cell_empty_raises():
    with pytest.raises(ValueError):
        worst_cell([])


def test_worst_cell_tie_break_orders_equally_severe_items():
    pairs = [
        (Cell(value="1/9", status=Farol.RED), (9, 1)),
        (Cell(value="3/20", status=Farol.RED), (20, 3)),
    ]
    for ordering in (pairs, list(reversed(pairs))):
        cell, _ = worst_cell(ordering, cell_of=lambda p: p[0], tie_break=lambda p: p[1])
        assert cell.value == "3/20"


def test_worst_cell_severity_beats_tie_break():
    pairs = [
        (Cell(value="red", status=Farol.RED), (0,)),
        (Cell(value="yellow", status=Farol.YELLOW), (99,)),
    ]
    cell, _ = worst_cell(pairs, cell_of=lambda p: p[0], tie_break=lambda p: p[1])
    assert cell.value == "red"
