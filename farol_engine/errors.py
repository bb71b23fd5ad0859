"""
Error taxonomy for the farol engine.

Missing data (no records, no target, zero denominator) is NOT an error: the
classifiers resolve it to a documented red branch with an explanatory hint.
The exceptions below are reserved for programmer errors and for the
data-access boundary.

  FarolEngineError
    ├── InvalidInputError     — negative counts, NaN, bad period values, bad rows
    ├── UnknownEntityError    — an id in a pre-fetched map that the caller
    │                           did not declare as a target entity
    └── DataUnavailableError  — raw records could not be obtained at all
"""

from __future__ import annotations


class FarolEngineError(Exception):
    """Base class for all farol engine errors."""


class InvalidInputError(FarolEngineError, ValueError):
    """Raised when an input violates its declared domain (caller bug)."""


class UnknownEntityError(FarolEngineError, LookupError):
    """Raised when a lookup map references an entity outside the target set.

    Attributes:
        entity_ids: Offending ids, sorted.
        context:    Name of the map or collection that held them.
    """

    def __init__(self, entity_ids: list[str], context: str) -> None:
        self.entity_ids = sorted(entity_ids)
        self.context    = context
        shown = ", ".join(self.entity_ids[:5])
        more  = f" (+{len(self.entity_ids) - 5} more)" if len(self.entity_ids) > 5 else ""
        super().__init__(
            f"{context} references {len(self.entity_ids)} unknown entity id(s): {shown}{more}"
        )


class DataUnavailableError(FarolEngineError, RuntimeError):
    """Raised by the ingestion boundary when raw records cannot be obtained.

    This is distinct from a red classification: callers must render an
    explicit "data unavailable" state instead of a matrix.

    Attributes:
        source: Path or description of the unavailable source.
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Data unavailable from {source}: {reason}")
