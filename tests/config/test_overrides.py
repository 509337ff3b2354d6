"""Tests for override config ingestion."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from axtrace.config.overrides import (
    CriticalMapping,
    OverrideConfig,
    OverrideEntry,
    compile_pattern,
    is_glob,
    load_overrides,
    merge_override_configs,
)


def _write_map(directory: Path, data: dict, name: str = "inspector-map.json") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(json.dumps(data))
    return path


class TestPatterns:
    """Override pattern syntax."""

    @pytest.mark.parametrize(
        ("pattern", "value", "expected"),
        [
            ("home.header.*", "home.header.logo", True),
            ("home.header.*", "home.header.logo.image", True),
            ("home.*", "home.header.logo", True),
            ("home.*", "homepage.title", False),
            ("home.**", "home.header.logo.image", True),
            ("home.*.logo", "home.header.logo", True),
            ("home.*.logo", "home.header.logo.image", False),
            ("*.title", "settings.header.title", True),
            ("row.(1)", "row.(1)", True),
            ("/^card\\.[0-9]+$/", "card.12", True),
            ("/^card\\.[0-9]+$/", "card.x", False),
        ],
    )
    def test_compile_pattern(self, pattern: str, value: str, expected: bool) -> None:
        assert bool(compile_pattern(pattern).search(value)) is expected

    def test_is_glob(self) -> None:
        assert is_glob("home.*")
        assert is_glob("/home/")
        assert not is_glob("home.create")
        assert not is_glob("/")


class TestModels:
    def test_camel_case_aliases(self) -> None:
        config = OverrideConfig.model_validate(
            {
                "overrides": [{"pattern": "a", "file": "A.swift", "ownerType": "AView"}],
                "modulePriority": ["App"],
                "criticalMappings": [{"pattern": "a", "minConfidence": 0.9}],
            }
        )

        assert config.overrides[0].owner_type == "AView"
        assert config.module_priority == ["App"]
        assert config.critical_mappings[0].min_confidence == 0.9

    def test_to_file_dict_round_trips(self) -> None:
        config = OverrideConfig(
            overrides=[OverrideEntry(pattern="a", file="A.swift", line=3)],
            sources=["/tmp/x"],
        )

        data = config.to_file_dict()

        assert data["overrides"] == [{"pattern": "a", "file": "A.swift", "line": 3}]
        assert "sources" not in data
        assert OverrideConfig.model_validate(data).overrides == config.overrides


class TestMerge:
    def test_later_config_wins_per_pattern(self) -> None:
        first = OverrideConfig(
            overrides=[
                OverrideEntry(pattern="a", file="Old.swift"),
                OverrideEntry(pattern="b", file="B.swift"),
            ],
            module_priority=["Core"],
            critical_mappings=[CriticalMapping(pattern="a", min_confidence=0.5)],
        )
        second = OverrideConfig(
            overrides=[OverrideEntry(pattern="a", file="New.swift")],
            critical_mappings=[CriticalMapping(pattern="a", min_confidence=0.9)],
        )

        merged = merge_override_configs([first, second])

        assert {e.pattern: e.file for e in merged.overrides} == {
            "a": "New.swift",
            "b": "B.swift",
        }
        assert merged.module_priority == ["Core"]
        assert merged.critical_mappings == [CriticalMapping(pattern="a", min_confidence=0.9)]


class TestLoadOverrides:
    def test_precedence_global_then_hidden_then_checked_in(
        self, tmp_path: Path, isolated_global_config: Path
    ) -> None:
        _write_map(
            isolated_global_config,
            {
                "overrides": [{"pattern": "x", "file": "Global.swift"}],
                "modulePriority": ["Shared"],
            },
        )
        _write_map(
            tmp_path / ".axtrace",
            {
                "overrides": [
                    {"pattern": "x", "file": "Hidden.swift"},
                    {"pattern": "y", "file": "Y.swift"},
                ]
            },
        )
        _write_map(tmp_path, {"overrides": [{"pattern": "y", "file": "CheckedIn.swift"}]})

        config = load_overrides(tmp_path)

        assert {e.pattern: e.file for e in config.overrides} == {
            "x": "Hidden.swift",
            "y": "CheckedIn.swift",
        }
        assert config.module_priority == ["Shared"]
        assert len(config.sources) == 3

    def test_yaml_file(self, tmp_path: Path) -> None:
        (tmp_path / "inspector-map.yaml").write_text(
            "overrides:\n  - pattern: home.create\n    file: App/Home.swift\n    line: 42\n"
        )

        config = load_overrides(tmp_path)

        assert config.overrides == [
            OverrideEntry(pattern="home.create", file="App/Home.swift", line=42)
        ]

    def test_malformed_file_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "inspector-map.json").write_text("{not json")
        _write_map(tmp_path / ".axtrace", {"overrides": [{"pattern": "ok", "file": "A.swift"}]})

        config = load_overrides(tmp_path)

        assert [e.pattern for e in config.overrides] == ["ok"]

    def test_invalid_shape_is_skipped(self, tmp_path: Path) -> None:
        _write_map(tmp_path, {"overrides": [{"file": "missing-pattern.swift"}]})

        assert load_overrides(tmp_path).overrides == []

    def test_no_files(self, tmp_path: Path) -> None:
        config = load_overrides(tmp_path)

        assert config.overrides == []
        assert config.module_priority == []
