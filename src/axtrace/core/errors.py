"""axtrace error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index / manifest parsing
- 4xxx: Snapshot input
- 5xxx: Interaction tracing
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_PATH_OUTSIDE_ROOT = 2005

    # Index (3xxx)
    MANIFEST_MALFORMED = 3001

    # Snapshot (4xxx)
    SNAPSHOT_INVALID = 4001

    # Trace (5xxx)
    TRACE_UNMAPPED = 5001
    TRACE_OUTSIDE_ROOT = 5002
    TRACE_SOURCE_NOT_FOUND = 5003


@dataclass(frozen=True, slots=True)
class AxTraceError(Exception):
    """Base error with structured context for CLI and tool responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AxTraceError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def path_outside_root(cls, path: str, root: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PATH_OUTSIDE_ROOT,
            message=f"Path '{path}' escapes the project root {root}",
            details={"path": path, "root": root},
        )


class ManifestError(AxTraceError):
    """A project manifest could not be parsed."""

    @classmethod
    def malformed(cls, path: str, reason: str, **details: Any) -> "ManifestError":
        return cls(
            code=ErrorCode.MANIFEST_MALFORMED,
            message=f"Malformed manifest {path}: {reason}",
            details={"path": path, "reason": reason, **details},
        )


class SnapshotError(AxTraceError):
    """The accessibility snapshot handed to the engine is unusable."""

    @classmethod
    def invalid(cls, reason: str, **details: Any) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_INVALID,
            message=f"Invalid accessibility snapshot: {reason}",
            details=details,
        )


class TraceError(AxTraceError):
    """An element's mapped source cannot be read for interaction tracing."""

    @classmethod
    def unmapped(cls, element_id: str) -> "TraceError":
        return cls(
            code=ErrorCode.TRACE_UNMAPPED,
            message=f"No mapped source file for {element_id}",
            details={"element_id": element_id},
        )

    @classmethod
    def outside_root(cls, path: str, root: str) -> "TraceError":
        return cls(
            code=ErrorCode.TRACE_OUTSIDE_ROOT,
            message=f"Refusing to read {path}: outside the project root {root}",
            details={"path": path, "root": root},
        )

    @classmethod
    def source_not_found(cls, path: str) -> "TraceError":
        return cls(
            code=ErrorCode.TRACE_SOURCE_NOT_FOUND,
            message=f"Mapped source file not found: {path}",
            details={"path": path},
        )
