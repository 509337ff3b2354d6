"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence
- get_state_dir() function
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from axtrace.config.loader import _deep_merge, _load_yaml, get_state_dir, load_config
from axtrace.config.models import MatchingConfig
from axtrace.core.errors import ConfigError


def _write_project_config(root: Path, text: str) -> None:
    state = root / ".axtrace"
    state.mkdir(exist_ok=True)
    (state / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("matching:\n  boost_factor: 0.25\n")

        assert _load_yaml(yaml_file) == {"matching": {"boost_factor": 0.25}}

    def test_returns_empty_for_yaml_null(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "null.yaml"
        yaml_file.write_text("null\n")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"index": {"use_cache": True, "max_file_size_kb": 10}}
        override = {"index": {"use_cache": False}}

        assert _deep_merge(base, override) == {
            "index": {"use_cache": False, "max_file_size_kb": 10}
        }

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}

        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})

        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config.logging.level == "INFO"
        assert config.matching == MatchingConfig()
        assert config.index.source_extensions == [".swift"]

    def test_global_config_is_applied(self, tmp_path: Path, isolated_global_config: Path) -> None:
        (isolated_global_config / "config.yaml").write_text("matching:\n  max_candidates: 3\n")

        assert load_config(tmp_path).matching.max_candidates == 3

    def test_project_config_overrides_global(
        self, tmp_path: Path, isolated_global_config: Path
    ) -> None:
        (isolated_global_config / "config.yaml").write_text(
            "matching:\n  max_candidates: 3\n  boost_factor: 0.2\n"
        )
        _write_project_config(tmp_path, "matching:\n  max_candidates: 7\n")

        config = load_config(tmp_path)

        assert config.matching.max_candidates == 7
        assert config.matching.boost_factor == 0.2

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        _write_project_config(tmp_path, "logging:\n  level: INFO\n")

        with patch.dict(os.environ, {"AXTRACE__LOGGING__LEVEL": "WARNING"}):
            config = load_config(tmp_path)

        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "index:\n  use_cache: true\n")

        config = load_config(tmp_path, index={"use_cache": False})

        assert config.index.use_cache is False

    def test_extensions_normalized(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "index:\n  source_extensions: [swift, .m]\n")

        assert load_config(tmp_path).index.source_extensions == [".swift", ".m"]

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "matching:\n  boost_factor: 3\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)

        assert "boost_factor" in exc_info.value.details["field"]


class TestGetStateDir:
    def test_defaults_to_project_state_dir(self, tmp_path: Path) -> None:
        assert get_state_dir(tmp_path) == tmp_path / ".axtrace"

    def test_configured_state_dir(self, tmp_path: Path) -> None:
        config = load_config(tmp_path, index={"state_dir": str(tmp_path / "elsewhere")})

        assert get_state_dir(tmp_path, config) == tmp_path / "elsewhere"
