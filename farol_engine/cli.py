"""
Farol engine — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs (period filter, bundle).
  4. Run the engine (matrix, summary, ranking, ...).
  5. Report result to stdout.

Exit codes:
  0  success
  1  invalid configuration, period or input rows  (``[ERROR]``)
  2  input data could not be read at all          (``[DATA UNAVAILABLE]``)

Install and run::

    pip install -e .
    farol-engine --help
    farol-engine validate-config
    farol-engine matrix --year 2025 --month 3 --fortnight 1
    farol-engine summary --year 2025 --regional r1
    farol-engine ranking --year 2025 --metric frequency --scope regional
    farol-engine attention --year 2025 --limit 5
    farol-engine series --year 2025 --name attendance --regional r1
    farol-engine export --year 2025 --format csv
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="farol-engine",
    help="School farol (traffic-light) classification and aggregation engine.",
    add_completion=False,
)

EXIT_ERROR = 1
EXIT_DATA_UNAVAILABLE = 2


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from farol_engine.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)


def _configure_logging(config):
    """Set up logging from config."""
    from farol_engine.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _period_or_exit(
    year: int,
    month: Optional[int],
    fortnight: Optional[int],
    regional: Optional[str],
    school: Optional[str],
):
    """Build a PeriodFilter, exiting with ``[ERROR]`` on invalid values."""
    from pydantic import ValidationError

    from farol_engine.models.period import PeriodFilter

    try:
        return PeriodFilter(
            year=year,
            month=month,
            fortnight=fortnight,
            regional_id=regional,
            school_id=school,
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid period filter:\n{exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)


def _load_bundle_or_exit(bundle_path: Optional[str], config):
    """Load the data bundle.

    A bundle that cannot be read prints the data-unavailable banner and
    exits with code 2; rows that fail validation exit with code 1.
    """
    from farol_engine.errors import DataUnavailableError, FarolEngineError
    from farol_engine.ingestion.bundle import load_bundle
    from farol_engine.reporting.formatters import format_data_unavailable

    path = Path(bundle_path) if bundle_path else Path(config.data.bundle_path)
    try:
        return load_bundle(path)
    except DataUnavailableError as exc:
        typer.echo(format_data_unavailable(exc.source, exc.reason), err=True)
        raise typer.Exit(code=EXIT_DATA_UNAVAILABLE)
    except FarolEngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)


def _run_or_exit(fn, *args, **kwargs):
    """Call an engine function, mapping engine errors to ``[ERROR]`` exit 1."""
    from farol_engine.errors import FarolEngineError

    try:
        return fn(*args, **kwargs)
    except FarolEngineError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)


# Shared option declarations.
_YEAR = typer.Option(..., "--year", "-y", help="Calendar year (2000-2100).")
_MONTH = typer.Option(None, "--month", "-m", help="Month 1-12; filters monthly metrics.")
_FORTNIGHT = typer.Option(None, "--fortnight", "-q", help="Fortnight 1 or 2; filters fortnightly metrics.")
_REGIONAL = typer.Option(None, "--regional", help="Restrict to one regional id.")
_SCHOOL = typer.Option(None, "--school", help="Restrict to one school id.")
_BUNDLE = typer.Option(None, "--bundle", "-b", help="Path to the JSON data bundle (default: config.data.bundle_path).")
_CONFIG = typer.Option(None, "--config", help="Path to TOML config file.")


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Bundle path:       {config.data.bundle_path}")
    typer.echo(f"  Output dir:        {config.data.output_dir}")
    typer.echo(f"  Ranking order:     {config.reporting.ranking_order}")
    typer.echo(f"  Attention limit:   {config.reporting.attention_limit}")
    typer.echo(f"  Decimal separator: {config.reporting.decimal_separator}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("matrix")
def matrix(
    year: int = _YEAR,
    month: Optional[int] = _MONTH,
    fortnight: Optional[int] = _FORTNIGHT,
    regional: Optional[str] = _REGIONAL,
    school: Optional[str] = _SCHOOL,
    bundle_path: Optional[str] = _BUNDLE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Print the farol matrix: one block per school, one cell per metric."""
    from farol_engine.matrix.builder import build_matrix_from_bundle
    from farol_engine.matrix.ranking import farol_distribution
    from farol_engine.reporting.formatters import format_distribution, format_matrix_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    period = _period_or_exit(year, month, fortnight, regional, school)
    bundle = _load_bundle_or_exit(bundle_path, config)

    rows = _run_or_exit(build_matrix_from_bundle, bundle, period)
    typer.echo(format_matrix_table(rows, period.label, config.reporting.decimal_separator))
    if rows:
        typer.echo("")
        typer.echo(format_distribution(farol_distribution(rows)))


@app.command("summary")
def summary(
    year: int = _YEAR,
    month: Optional[int] = _MONTH,
    fortnight: Optional[int] = _FORTNIGHT,
    regional: Optional[str] = _REGIONAL,
    school: Optional[str] = _SCHOOL,
    bundle_path: Optional[str] = _BUNDLE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Print network-wide (or regional) KPI cells for the period."""
    from farol_engine.matrix.summary import summarize_scope
    from farol_engine.reporting.formatters import format_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    period = _period_or_exit(year, month, fortnight, regional, school)
    bundle = _load_bundle_or_exit(bundle_path, config)

    result = _run_or_exit(summarize_scope, bundle, period)
    typer.echo(format_summary(result, config.reporting.decimal_separator))


@app.command("ranking")
def ranking(
    year: int = _YEAR,
    metric: str = typer.Option(
        "frequency",
        "--metric",
        help="Target metric to rank: 'frequency' or 'nps'.",
    ),
    scope: str = typer.Option(
        "school",
        "--scope",
        help="Rank 'school' or 'regional' entities.",
    ),
    order: Optional[str] = typer.Option(
        None,
        "--order",
        help="'ascending' (worst gap first) or 'descending'. Default from config.",
    ),
    month: Optional[int] = _MONTH,
    regional: Optional[str] = _REGIONAL,
    bundle_path: Optional[str] = _BUNDLE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Print a gap-to-target leaderboard for frequency or NPS."""
    from farol_engine.matrix.ranking import rank_regionals_by_gap, rank_schools_by_gap
    from farol_engine.reporting.formatters import format_ranking_table
    from farol_engine.taxonomy.metric_taxonomy import TARGET_METRICS, Metric

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if metric not in {m.value for m in TARGET_METRICS}:
        typer.echo(f"[ERROR] --metric must be 'frequency' or 'nps', got '{metric}'.", err=True)
        raise typer.Exit(code=EXIT_ERROR)
    if scope not in ("school", "regional"):
        typer.echo(f"[ERROR] --scope must be 'school' or 'regional', got '{scope}'.", err=True)
        raise typer.Exit(code=EXIT_ERROR)
    order = order or config.reporting.ranking_order
    if order not in ("ascending", "descending"):
        typer.echo(f"[ERROR] --order must be 'ascending' or 'descending', got '{order}'.", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    period = _period_or_exit(year, month, None, regional, None)
    bundle = _load_bundle_or_exit(bundle_path, config)

    ascending = order == "ascending"
    rank_fn = rank_schools_by_gap if scope == "school" else rank_regionals_by_gap
    entries = _run_or_exit(rank_fn, bundle, period, Metric(metric), ascending=ascending)
    title = "Ranking de escolas" if scope == "school" else "Ranking de regionais"
    typer.echo(format_ranking_table(entries, Metric(metric), title, ascending=ascending))


@app.command("attention")
def attention(
    year: int = _YEAR,
    month: Optional[int] = _MONTH,
    fortnight: Optional[int] = _FORTNIGHT,
    regional: Optional[str] = _REGIONAL,
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        help="Max schools listed (default: config.reporting.attention_limit).",
    ),
    bundle_path: Optional[str] = _BUNDLE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """List schools with red cells backed by data, most problems first."""
    from farol_engine.matrix.builder import build_matrix_from_bundle
    from farol_engine.matrix.ranking import schools_needing_attention
    from farol_engine.reporting.formatters import format_attention_list

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    period = _period_or_exit(year, month, fortnight, regional, None)
    bundle = _load_bundle_or_exit(bundle_path, config)

    rows = _run_or_exit(build_matrix_from_bundle, bundle, period)
    items = _run_or_exit(
        schools_needing_attention,
        rows,
        limit if limit is not None else config.reporting.attention_limit,
    )
    typer.echo(format_attention_list(items, period.label))


@app.command("series")
def series(
    name: str = typer.Option(
        ...,
        "--name",
        help=(
            "Series: attendance, routine, open_class, infrastructure, "
            "vacancy_lead_time, quality, nps."
        ),
    ),
    year: int = _YEAR,
    regional: Optional[str] = _REGIONAL,
    school: Optional[str] = _SCHOOL,
    bundle_path: Optional[str] = _BUNDLE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Print one chart series for the year, bucketed by fortnight or month."""
    from farol_engine.aggregation.series import SERIES, build_series
    from farol_engine.matrix.builder import select_schools
    from farol_engine.matrix.summary import scope_label
    from farol_engine.reporting.formatters import format_series

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    period = _period_or_exit(year, None, None, regional, school)
    bundle = _load_bundle_or_exit(bundle_path, config)

    schools = _run_or_exit(select_schools, bundle, period)
    ids = {s.id for s in schools}
    records = [r for r in bundle.records if r.school_id in ids and period.matches(r)]
    buckets = _run_or_exit(build_series, name, records)
    typer.echo(
        format_series(
            name,
            buckets,
            SERIES[name],
            scope_label(bundle, period, schools),
            period.label,
            config.reporting.decimal_separator,
        )
    )


@app.command("export")
def export(
    year: int = _YEAR,
    month: Optional[int] = _MONTH,
    fortnight: Optional[int] = _FORTNIGHT,
    regional: Optional[str] = _REGIONAL,
    school: Optional[str] = _SCHOOL,
    fmt: str = typer.Option(
        "csv",
        "--format",
        "-f",
        help="Output format: 'csv' or 'json'.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file (default: <output_dir>/farol_<period>.<format>).",
    ),
    records: bool = typer.Option(
        False,
        "--records",
        help="Export every in-period record classified on its own (audit trail).",
    ),
    bundle_path: Optional[str] = _BUNDLE,
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Export the farol matrix (or per-record audit rows) to CSV or JSON."""
    from farol_engine.matrix.builder import build_matrix_from_bundle, select_schools
    from farol_engine.reporting.export import (
        MATRIX_EXPORT_COLUMNS,
        RECORD_EXPORT_COLUMNS,
        export_to_csv,
        export_to_json,
        flatten_matrix_for_export,
        flatten_records_for_export,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    fmt = fmt.lower()
    if fmt not in ("csv", "json"):
        typer.echo(f"[ERROR] Unsupported format '{fmt}'. Use csv or json.", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    period = _period_or_exit(year, month, fortnight, regional, school)
    bundle = _load_bundle_or_exit(bundle_path, config)

    if records:
        schools = _run_or_exit(select_schools, bundle, period)
        ids = {s.id for s in schools}
        in_period = [r for r in bundle.records if r.school_id in ids and period.matches(r)]
        targets: dict = {}
        for t in bundle.targets:
            if t.school_id in ids and t.year == period.year:
                targets.setdefault(t.school_id, {})[t.metric] = t.target
        rows = _run_or_exit(flatten_records_for_export, in_period, targets)
        columns = RECORD_EXPORT_COLUMNS
        stem = "farol_records"
    else:
        matrix_rows = _run_or_exit(build_matrix_from_bundle, bundle, period)
        rows = flatten_matrix_for_export(matrix_rows, period)
        columns = MATRIX_EXPORT_COLUMNS
        stem = "farol_matrix"

    if output:
        out_path = Path(output)
    else:
        slug = period.label.replace(" - ", "_")
        out_path = Path(config.data.output_dir) / f"{stem}_{slug}.{fmt}"

    if fmt == "csv":
        export_to_csv(rows, out_path, fieldnames=columns)
    else:
        export_to_json(rows, out_path)

    typer.echo(f"  Rows written: {len(rows)}")
    typer.echo(f"  Output:       {out_path}")
    typer.echo("[OK] Export complete.")


@app.command("validate-records")
def validate_records(
    records_file: str = typer.Option(
        ...,
        "--file",
        "-f",
        help="CSV file holding records of a single kind.",
    ),
    kind: str = typer.Option(
        ...,
        "--kind",
        "-k",
        help="Record kind (attendance, quality, nps, vacancy, ...).",
    ),
    config_path: Optional[str] = _CONFIG,
) -> None:
    """Validate a single-kind records CSV without computing anything.

    Every failing row is reported (first 10 shown).
    """
    from farol_engine.errors import DataUnavailableError, FarolEngineError
    from farol_engine.ingestion.bundle import parse_records_csv
    from farol_engine.reporting.formatters import format_data_unavailable

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    typer.echo(f"Validating {kind} records from: {records_file}")
    try:
        parsed = parse_records_csv(Path(records_file), kind)
    except DataUnavailableError as exc:
        typer.echo(format_data_unavailable(exc.source, exc.reason), err=True)
        raise typer.Exit(code=EXIT_DATA_UNAVAILABLE)
    except FarolEngineError as exc:
        typer.echo(f"[ERROR] CSV parse failed:\n{exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    typer.echo(f"  Validated {len(parsed)} record(s).")
    typer.echo("[OK] Records valid.")


if __name__ == "__main__":
    app()
