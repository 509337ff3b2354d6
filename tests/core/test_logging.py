"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import structlog

from axtrace.config.models import LoggingConfig, LogOutputConfig
from axtrace.core.logging import (
    clear_scan_id,
    configure_logging,
    get_scan_id,
    set_scan_id,
)


class TestScanIdCorrelation:
    """Scan ID context variable tests."""

    def setup_method(self) -> None:
        clear_scan_id()

    def test_given_scan_id_when_set_then_can_retrieve(self) -> None:
        # When
        result = set_scan_id("scan-123")

        # Then
        assert result == "scan-123"
        assert get_scan_id() == "scan-123"

    def test_given_no_id_when_set_then_generates_short_hex(self) -> None:
        sid = set_scan_id()

        assert len(sid) == 12
        int(sid, 16)

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_scan_id("to-clear")

        clear_scan_id()

        assert get_scan_id() is None


class TestConfigureLogging:
    """Logging configuration tests."""

    def teardown_method(self) -> None:
        clear_scan_id()
        configure_logging(level="WARNING")

    def test_given_level_when_configured_then_root_level_set(self) -> None:
        configure_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_given_file_output_when_logging_then_writes_json_with_scan_id(
        self, tmp_path: Path
    ) -> None:
        # Given
        log_file = tmp_path / "logs" / "axtrace.jsonl"
        config = LoggingConfig(
            level="INFO",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )
        configure_logging(config=config)
        set_scan_id("abc123")

        # When
        structlog.get_logger("test").info("module_index.strategy_selected", strategy="package")
        for handler in logging.getLogger().handlers:
            handler.flush()

        # Then
        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "module_index.strategy_selected"
        assert record["strategy"] == "package"
        assert record["scan_id"] == "abc123"
        assert record["level"] == "info"
