"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept engine outputs (matrix rows, gap entries, summaries)
and return plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Status markers
--------------
Terminals may not render colour, so each cell is suffixed with a one-letter
status marker::

  [G] green    [Y] yellow    [R] red

Data-unavailable banner
-----------------------
When the bundle cannot be read at all, the CLI prints
``format_data_unavailable()`` instead of a matrix. A red farol always means
"target missed or no data for the period", never "could not load".
"""

from __future__ import annotations

from typing import Sequence

from farol_engine.aggregation.series import SeriesDefinition
from farol_engine.classification.formatting import NO_DATA, parse_cell_value
from farol_engine.matrix.ranking import AttentionItem
from farol_engine.matrix.summary import ScopeSummary
from farol_engine.models.cell import Cell
from farol_engine.models.matrix import GapEntry, MatrixRow
from farol_engine.models.period import fortnight_label, month_label
from farol_engine.taxonomy.metric_taxonomy import (
    ATTENDANCE_METRICS,
    MATRIX_COLUMNS,
    Farol,
    Granularity,
    Metric,
)

_MARKERS: dict[Farol, str] = {Farol.GREEN: "G", Farol.YELLOW: "Y", Farol.RED: "R"}

_NAME_WIDTH = 28


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def localize(value: str, decimal_separator: str = ".") -> str:
    """Swap the decimal separator of a numeric display value for the terminal.

    Only the first dot is replaced; non-numeric values ("3/10", "Sim", "-")
    are returned unchanged. Terminal output only; exports keep cell values
    as classified.
    """
    if decimal_separator == "." or parse_cell_value(value) is None:
        return value
    return value.replace(".", decimal_separator, 1)


def format_cell(cell: Cell, decimal_separator: str = ".") -> str:
    """``Cell("92.5%", yellow)`` → ``"92.5% [Y]"``."""
    return f"{localize(cell.value, decimal_separator)} [{_MARKERS[cell.status]}]"


def format_legend() -> str:
    return "  Legenda: " + "  ".join(
        f"[{_MARKERS[s]}] {s.label}" for s in Farol
    )


def format_data_unavailable(source: str, reason: str) -> str:
    """Banner shown instead of any matrix when the input cannot be read."""
    return "\n".join([
        "",
        "  [DATA UNAVAILABLE] The farol matrix was not computed.",
        f"  Source: {source}",
        f"  Reason: {reason}",
    ])


# ── Matrix ────────────────────────────────────────────────────────────────────


def format_matrix_table(
    rows:              Sequence[MatrixRow],
    period_label:      str,
    decimal_separator: str = ".",
) -> str:
    """Format the farol matrix as one block per school.

    The matrix has ten metric columns, too wide for a terminal row, so each
    school is printed as a block of ``metric  value [marker]`` lines::

        EE Alfa (s1)
          Frequência         95.00% [G]
          Aulas Vagas        Não [G]
          ...

    Args:
        rows:              Matrix rows, already ordered.
        period_label:      ``PeriodFilter.label`` for the header.
        decimal_separator: Display separator for numeric values.
    """
    lines: list[str] = []
    lines.append("")
    lines.append("=== Farol Matrix ===")
    lines.append(f"  Period:  {period_label}")
    lines.append(f"  Schools: {len(rows)}")
    lines.append(format_legend())

    if not rows:
        lines.append("")
        lines.append("  (no schools in scope)")
        return "\n".join(lines)

    label_width = max(len(m.label) for m in MATRIX_COLUMNS)
    for row in rows:
        lines.append("")
        lines.append(f"  {row.school_name} ({row.school_id})")
        for metric in MATRIX_COLUMNS:
            cell = row.cells[metric]
            lines.append(
                f"    {metric.label:<{label_width}}  {format_cell(cell, decimal_separator)}"
            )
    return "\n".join(lines)


def format_summary(summary: ScopeSummary, decimal_separator: str = ".") -> str:
    """Format a scope summary with one line per metric and its hint."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Resumo: {summary.scope_label} ===")
    lines.append(f"  Period:  {summary.period_label}")
    lines.append(f"  Schools: {summary.school_count}")
    lines.append("")

    label_width = max(len(m.label) for m in MATRIX_COLUMNS)
    for metric in MATRIX_COLUMNS:
        cell = summary.cells[metric]
        hint = f"  {cell.hint}" if cell.hint else ""
        lines.append(
            f"    {metric.label:<{label_width}}  "
            f"{format_cell(cell, decimal_separator):<14}{hint}"
        )
    return "\n".join(lines)


def format_ranking_table(
    entries:   Sequence[GapEntry],
    metric:    Metric,
    title:     str,
    ascending: bool = True,
) -> str:
    """Format a gap leaderboard::

        Rank  Entity                        Result   Target      Gap
        ------------------------------------------------------------
           1  EE Beta                        88.00    93.00    -5.00
    """
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {title}: {metric.label} ===")
    lines.append(f"  Order: {'worst gap first' if ascending else 'best gap first'}")

    if not entries:
        lines.append("")
        lines.append("  (no entity has both a result and a target)")
        return "\n".join(lines)

    header = (
        f"    {'Rank':>4}  {'Entity':<{_NAME_WIDTH}}  "
        f"{'Result':>8}  {'Target':>8}  {'Gap':>8}"
    )
    lines.append("")
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for rank, e in enumerate(entries, start=1):
        lines.append(
            f"    {rank:>4}  {_truncate(e.entity_name, _NAME_WIDTH):<{_NAME_WIDTH}}  "
            f"{e.result:>8.2f}  {e.target:>8.2f}  {e.gap:>+8.2f}"
        )
    return "\n".join(lines)


def format_attention_list(items: Sequence[AttentionItem], period_label: str) -> str:
    """Format the schools-needing-attention list, one block per school."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Escolas que precisam de atenção ===")
    lines.append(f"  Period: {period_label}")

    if not items:
        lines.append("")
        lines.append("  (no red cells backed by data in this period)")
        return "\n".join(lines)

    for item in items:
        lines.append("")
        lines.append(f"  {item.school_name} ({item.school_id}): {len(item.problems)} problem(s)")
        for problem in item.problems:
            lines.append(f"    - {problem}")
    return "\n".join(lines)


def format_distribution(counts: dict[Farol, int]) -> str:
    total = sum(counts.values())
    parts = []
    for status in Farol:
        n = counts.get(status, 0)
        pct = n * 100.0 / total if total else 0.0
        parts.append(f"{status.label}: {n} ({pct:.1f}%)")
    return "  Distribuição: " + "  ".join(parts)


def _series_value(value, definition: SeriesDefinition, decimal_separator: str) -> str:
    if value is None:
        return NO_DATA
    return localize(f"{value:.{definition.decimals}f}{definition.suffix}", decimal_separator)


def format_series(
    name: str,
    buckets: dict,
    definition: SeriesDefinition,
    scope: str,
    period_label: str,
    decimal_separator: str = ".",
) -> str:
    """Format one chart series as a bucket-per-line table.

    Bucket keys are labelled ``"1ª Quinzena"`` / ``"Março"`` according to the
    series granularity. Attendance buckets list one value per staff category.
    """
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Série: {name} ({scope}) ===")
    lines.append(f"  Period: {period_label}")
    lines.append("")

    if not buckets:
        lines.append("  (no records for this series)")
        return "\n".join(lines)

    for key, value in buckets.items():
        if definition.granularity is Granularity.MONTHLY:
            label = month_label(key)
        else:
            label = fortnight_label(key)
        if isinstance(value, dict):
            shown = "  ".join(
                f"{ATTENDANCE_METRICS[category].label}: "
                f"{_series_value(v, definition, decimal_separator)}"
                for category, v in value.items()
            )
        else:
            shown = _series_value(value, definition, decimal_separator)
        lines.append(f"  {label:<14}{shown}")
    return "\n".join(lines)
