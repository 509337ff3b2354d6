"""Configuration module."""

from axtrace.config.loader import get_state_dir, load_config
from axtrace.config.models import (
    AxTraceConfig,
    IndexConfig,
    LoggingConfig,
    LogOutputConfig,
    MatchingConfig,
    RegistryConfig,
)
from axtrace.config.overrides import (
    CriticalMapping,
    OverrideConfig,
    OverrideEntry,
    load_overrides,
)

__all__ = [
    "AxTraceConfig",
    "CriticalMapping",
    "IndexConfig",
    "LogOutputConfig",
    "LoggingConfig",
    "MatchingConfig",
    "OverrideConfig",
    "OverrideEntry",
    "RegistryConfig",
    "get_state_dir",
    "load_config",
    "load_overrides",
]
