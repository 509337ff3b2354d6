"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (AXTRACE__SECTION__KEY)
3. Project YAML (<project>/.axtrace/config.yaml)
4. Global YAML (~/.config/axtrace/config.yaml)
5. Built-in defaults (this file)

Examples:
    AXTRACE__LOGGING__LEVEL=DEBUG
    AXTRACE__MATCHING__BASE_AMBIGUITY_THRESHOLD=0.2
    AXTRACE__INDEX__STATE_DIR=/tmp/axtrace-state
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        AXTRACE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every discovery strategy attempt.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexConfig(BaseModel):
    """Source indexing configuration.

    Env vars:
        AXTRACE__INDEX__STATE_DIR: Where the index cache and learned weights live
        AXTRACE__INDEX__MAX_FILE_SIZE_KB: Skip larger source files
    """

    source_extensions: list[str] = Field(
        default_factory=lambda: [".swift"],
        description="File extensions treated as source files by every discovery strategy.",
    )
    state_dir: str | None = Field(
        default=None,
        description="Override the state directory. Default: <project>/.axtrace.",
    )
    max_file_size_kb: int = Field(
        default=2048,
        description="Skip source files larger than this (KB). Generated files are rarely useful.",
    )
    use_cache: bool = Field(
        default=True,
        description="Reuse serialized indexes when the content fingerprint is unchanged.",
    )

    @field_validator("source_extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one source extension is required")
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]


class MatchingConfig(BaseModel):
    """Candidate matching and ambiguity tuning.

    The relative ordering of these values is what matters; the defaults were
    chosen empirically.
    """

    boost_factor: float = Field(
        default=0.3,
        description="Share of each non-dominant evidence weight added to the best weight.",
    )
    base_ambiguity_threshold: float = Field(default=0.15)
    crowded_ambiguity_threshold: float = Field(
        default=0.20,
        description="Threshold when more than crowded_candidate_count candidates compete.",
    )
    strong_signal_ambiguity_threshold: float = Field(
        default=0.10,
        description="Threshold when the winner holds a strong signal the runner-up lacks.",
    )
    competitive_window: float = Field(
        default=0.25,
        description="Candidates closer than this to the best count as competitive.",
    )
    crowded_candidate_count: int = Field(default=3)
    strong_signal_weight: float = Field(default=0.7)
    max_candidates: int = Field(
        default=5,
        description="Candidates kept on each enriched element for diagnostics.",
    )

    @field_validator(
        "boost_factor",
        "base_ambiguity_threshold",
        "crowded_ambiguity_threshold",
        "strong_signal_ambiguity_threshold",
        "competitive_window",
        "strong_signal_weight",
    )
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not (0.0 <= v <= 1.0):
            raise ValueError(f"Must be within [0, 1], got {v}")
        return v


class RegistryConfig(BaseModel):
    """Identifier registry configuration.

    Env vars:
        AXTRACE__REGISTRY__ENABLED: Apply the registry after matching
        AXTRACE__REGISTRY__FALLBACK_DIR: Tool-local registry directory
    """

    enabled: bool = Field(default=True)
    filename: str = Field(default="identifier-registry.json")
    fallback_dir: str = Field(
        default="~/.cache/axtrace/artifacts",
        description="Tool-local location used when the project has no registry of its own.",
    )
    confidence: float = Field(
        default=0.96,
        description="Confidence assigned to registry hits.",
    )


class AxTraceConfig(BaseModel):
    """Root configuration for axtrace."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
