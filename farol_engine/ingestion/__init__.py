"""
Ingestion layer — the data-access boundary of the engine.

Submodules:
  bundle  — ``DataBundle`` model, JSON bundle loader and single-kind CSV
            records parser. Raises ``DataUnavailableError`` when the input
            cannot be read at all.
"""
