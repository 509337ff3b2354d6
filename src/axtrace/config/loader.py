"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (AXTRACE__SECTION__KEY)
3. Project config (<project>/.axtrace/config.yaml)
4. Global config (~/.config/axtrace/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from axtrace.config.models import (
    AxTraceConfig,
    IndexConfig,
    LoggingConfig,
    MatchingConfig,
    RegistryConfig,
)
from axtrace.core.errors import ConfigError

GLOBAL_CONFIG_DIR = Path("~/.config/axtrace").expanduser()
GLOBAL_CONFIG_PATH = GLOBAL_CONFIG_DIR / "config.yaml"
PROJECT_STATE_DIRNAME = ".axtrace"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class bound to one merged YAML document."""

    class AxTraceSettings(BaseSettings):
        """Root config. Env vars: AXTRACE__LOGGING__LEVEL, AXTRACE__MATCHING__BOOST_FACTOR, etc."""

        model_config = SettingsConfigDict(
            env_prefix="AXTRACE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        index: IndexConfig = IndexConfig()
        matching: MatchingConfig = MatchingConfig()
        registry: RegistryConfig = RegistryConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return AxTraceSettings


def load_config(project_root: Path | None = None, **kwargs: Any) -> AxTraceConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        project_root: Project whose .axtrace/config.yaml should be applied.
                      Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    project_root = project_root or Path.cwd()

    yaml_config = _load_yaml(GLOBAL_CONFIG_PATH)
    project_config = _load_yaml(project_root / PROJECT_STATE_DIRNAME / "config.yaml")
    if project_config:
        yaml_config = _deep_merge(yaml_config, project_config)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return AxTraceConfig.model_validate(settings.model_dump())


def get_state_dir(project_root: Path, config: AxTraceConfig | None = None) -> Path:
    """Directory holding the index cache and learned weights for a project."""
    config = config or load_config(project_root)
    if config.index.state_dir:
        return Path(config.index.state_dir).expanduser()
    return project_root / PROJECT_STATE_DIRNAME
