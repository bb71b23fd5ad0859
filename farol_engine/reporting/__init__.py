"""
farol_engine.reporting — Terminal formatting and flat-file export.

Modules:
  formatters — ASCII terminal formatters for Typer CLI commands.
  export     — CSV/JSON flat-file export helpers and row adapters.
"""
