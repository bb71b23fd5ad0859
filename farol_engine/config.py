"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local env overrides (gitignored)
  4. Environment variables        — ``FAROL_ENGINE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Classification thresholds are domain constants in
``farol_engine.classification.classifiers`` and are not part of
this configuration.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem paths for the input bundle and exported files."""

    model_config = ConfigDict(frozen=True)

    bundle_path: str = "data/bundle.json"
    output_dir: str = "data/outputs"


class ReportingConfig(BaseModel):
    """Defaults for CLI reports.

    ``decimal_separator`` applies to terminal output only.
    """

    model_config = ConfigDict(frozen=True)

    ranking_order: Literal["ascending", "descending"] = "ascending"
    attention_limit: int = 10
    decimal_separator: str = "."

    @field_validator("attention_limit")
    @classmethod
    def validate_attention_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"attention_limit must be >= 1, got {v}.")
        return v

    @field_validator("decimal_separator")
    @classmethod
    def validate_decimal_separator(cls, v: str) -> str:
        if v not in (".", ","):
            raise ValueError(f"decimal_separator must be '.' or ',', got '{v}'.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    CLI commands receive an ``AppConfig`` instance built by ``load_config()``,
    which merges TOML + .env + environment variables.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    reporting: ReportingConfig = ReportingConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    # Also merge local.toml if present (gitignored local overrides)
    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply FAROL_ENGINE_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply FAROL_ENGINE_* env vars to the raw config dict.

    Supported overrides:
      FAROL_ENGINE_DATA_PATH   → raw["data"]["bundle_path"]
      FAROL_ENGINE_OUTPUT_DIR  → raw["data"]["output_dir"]
      FAROL_ENGINE_LOG_LEVEL   → raw["logging"]["level"]
      FAROL_ENGINE_DEBUG       → raw["debug"]
    """
    if data_path := os.environ.get("FAROL_ENGINE_DATA_PATH"):
        raw.setdefault("data", {})["bundle_path"] = data_path

    if output_dir := os.environ.get("FAROL_ENGINE_OUTPUT_DIR"):
        raw.setdefault("data", {})["output_dir"] = output_dir

    if log_level := os.environ.get("FAROL_ENGINE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("FAROL_ENGINE_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        reporting=ReportingConfig(**raw.get("reporting", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
