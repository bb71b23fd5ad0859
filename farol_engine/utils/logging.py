"""
Logging setup for the farol engine CLI.

Call ``configure_logging(config, debug=...)`` once at CLI entry, after the
config is loaded and before any bundle is read. Report output goes to
stdout; log lines go to stderr (and optionally a file), so a matrix or a
ranking can be piped without log noise.

Library modules use ``logging.getLogger(__name__)`` and never configure
handlers themselves. The engine logs at two levels:

  INFO   one line per computed matrix, summary or loaded bundle
  DEBUG  per-entity decisions (schools left out of a ranking) and row counts

``AppConfig.debug`` (or ``FAROL_ENGINE_DEBUG=1``) lowers the level to DEBUG
whatever ``[logging] level`` says.

JSON format (``json_format = true`` in config/default.toml [logging]) emits
one JSON object per line, with ``extra=`` fields at the top level::

    {"ts": "2025-03-14T15:00:00Z", "level": "INFO", "logger": "...", "msg": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from farol_engine.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Instance attributes of a bare LogRecord; anything else came from ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per log line: ``ts``, ``level``, ``logger``, ``msg``.

    ``exc`` is added when an exception is attached. Non-ASCII text (school
    names, pt-BR hints) is written as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(payload, default=str, ensure_ascii=False)


def resolve_level(config: "LoggingConfig", debug: bool = False) -> int:
    """Numeric level for ``config``; ``debug`` forces ``logging.DEBUG``."""
    if debug:
        return logging.DEBUG
    return getattr(logging, config.level.upper(), logging.INFO)


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
        debug:  ``AppConfig.debug``; when set, logs at DEBUG regardless of
            ``config.level``.
    """
    level = resolve_level(config, debug)
    formatter: logging.Formatter = (
        JsonFormatter() if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
