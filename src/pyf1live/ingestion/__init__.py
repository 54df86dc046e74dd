"""Ingestion layer.

This package contains the polling orchestrator that fetches feed deltas
and hands them to the state layer, plus the normalization helpers used
at the parsing boundary.
"""

__all__: list[str] = []
