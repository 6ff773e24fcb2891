"""Shared type definitions for structfuzz.

This module defines the TypedDict shapes of the JSON-ready dictionaries that
flow out of the engine (log entries, session logbooks, run metadata). Keeping
them in a dedicated module avoids circular imports between the logbook, the
engine and the CLI.

TypedDict is used instead of dataclasses because these values are written
straight to JSON files and read back by other tools as plain dicts.
"""

from __future__ import annotations

from typing import TypedDict


class LogEntryDict(TypedDict, total=False):
    """One node of a provenance log tree.

    Uses total=False because:
    - `children` is only present on parent and add entries.
    - `detail` is only present on add entries.
    - `error_type` is only present on error entries.
    """

    kind: str
    message: str
    detail: str
    error_type: str
    children: list[LogEntryDict]


class SessionLogDict(TypedDict):
    """A serialized `SessionLogbook`."""

    started: str  # ISO 8601, UTC
    duration_seconds: float
    mutations: int
    added: int
    noops: int
    errors: int
    session_log: LogEntryDict


class HardwareInfo(TypedDict):
    cpu_count_logical: int | None
    cpu_count_physical: int | None
    total_ram_gb: float
    process_rss_mb: float


class RunMetadata(TypedDict, total=False):
    """Metadata describing one CLI run, saved next to the session logs."""

    run_id: str
    started: str
    seed: int
    environment: dict[str, str]
    hardware: HardwareInfo
    configuration: dict[str, object]
