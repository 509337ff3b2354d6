"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from axtrace.config.models import (
    AxTraceConfig,
    IndexConfig,
    LogOutputConfig,
    MatchingConfig,
)


class TestLogOutputConfig:
    def test_console_destinations(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/axtrace.log")


class TestIndexConfig:
    def test_requires_an_extension(self) -> None:
        with pytest.raises(ValidationError):
            IndexConfig(source_extensions=[])


class TestMatchingConfig:
    def test_default_thresholds_keep_their_order(self) -> None:
        """Crowded > base > strong-signal, for the ambiguity verdict to make sense."""
        config = MatchingConfig()

        assert (
            config.crowded_ambiguity_threshold
            > config.base_ambiguity_threshold
            > config.strong_signal_ambiguity_threshold
        )
        assert config.boost_factor == 0.3
        assert config.max_candidates == 5

    @pytest.mark.parametrize("field", ["boost_factor", "competitive_window"])
    def test_unit_interval(self, field: str) -> None:
        with pytest.raises(ValidationError):
            MatchingConfig(**{field: 1.5})


class TestAxTraceConfig:
    def test_sections(self) -> None:
        config = AxTraceConfig()

        assert config.registry.confidence == 0.96
        assert config.registry.filename == "identifier-registry.json"
        assert config.index.use_cache is True
