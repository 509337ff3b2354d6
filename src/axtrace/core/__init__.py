"""Core module exports."""

from axtrace.core.errors import (
    AxTraceError,
    ConfigError,
    ErrorCode,
    ManifestError,
    SnapshotError,
    TraceError,
)
from axtrace.core.logging import (
    clear_scan_id,
    configure_logging,
    get_scan_id,
    set_scan_id,
)
from axtrace.core.progress import spinner, status

__all__ = [
    # Errors
    "AxTraceError",
    "ConfigError",
    "ErrorCode",
    "ManifestError",
    "SnapshotError",
    "TraceError",
    # Logging
    "clear_scan_id",
    "configure_logging",
    "get_scan_id",
    "set_scan_id",
    # Progress
    "spinner",
    "status",
]
