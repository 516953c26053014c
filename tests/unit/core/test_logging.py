"""
Unit tests for the logging subsystem: context propagation and JSON output.
"""

import json
import logging

import pytest

from arise.core.config import Config
from arise.core.logging import (
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
    setup_logging,
    shutdown_logging,
)
from arise.core.logging.logger import ContextFilter, JSONFormatter


def _record(message="engine call", **extra):
    record = logging.LogRecord("arise.modules.loot", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.mark.unit
class TestLogContext:
    """ContextVar-backed operation context."""

    def test_context_is_active_only_inside_block(self):
        # Arrange & Act
        with LogContext(character_id="hunter-1", operation="complete_mission", component="engine"):
            inside = get_log_context()
        outside = get_log_context()

        # Assert
        assert inside["character_id"] == "hunter-1"
        assert inside["operation"] == "complete_mission"
        assert len(inside["correlation_id"]) == 8
        assert outside == {}

    def test_set_log_context_merges(self):
        # Arrange
        set_log_context(character_id="hunter-1")

        # Act
        set_log_context(operation="resolve_dungeon", floor=10)

        # Assert
        assert get_log_context() == {
            "character_id": "hunter-1",
            "operation": "resolve_dungeon",
            "floor": 10,
        }

    def test_filter_enriches_records(self):
        # Arrange
        record = _record()

        # Act
        with LogContext(operation="resolve_dungeon", correlation_id="abc12345"):
            ContextFilter().filter(record)

        # Assert
        assert record.operation == "resolve_dungeon"
        assert record.correlation_id == "abc12345"
        assert record.component == "arise"
        assert record.character_id == "N/A"

    def test_explicit_operation_wins_over_context(self):
        # Arrange
        record = _record(operation="salvage_item")

        # Act
        with LogContext(operation="bulk_salvage"):
            ContextFilter().filter(record)

        # Assert
        assert record.operation == "salvage_item"


@pytest.mark.unit
class TestJSONFormatter:
    """Structured output."""

    def test_json_carries_context_and_extra(self):
        # Arrange
        record = _record(item_id="eq_1", shards=70)
        with LogContext(character_id="hunter-1", operation="salvage_item"):
            ContextFilter().filter(record)

        # Act
        data = json.loads(JSONFormatter().format(record))

        # Assert
        assert data["message"] == "engine call"
        assert data["level"] == "INFO"
        assert data["character_id"] == "hunter-1"
        assert data["operation"] == "salvage_item"
        assert data["extra"] == {"item_id": "eq_1", "shards": 70}


@pytest.mark.unit
class TestSetup:
    """Handler lifecycle."""

    def test_setup_is_idempotent_and_shutdown_detaches(self):
        # Arrange
        package_logger = logging.getLogger("arise")
        setup_logging()
        handlers = list(package_logger.handlers)

        # Act
        setup_logging()
        same = list(package_logger.handlers)
        shutdown_logging()
        after_shutdown = list(package_logger.handlers)
        setup_logging()

        # Assert
        assert same == handlers
        assert after_shutdown == []
        assert len(package_logger.handlers) == 1

    def test_config_summary_reports_environment_loading(self):
        # Arrange & Act
        summary = Config.get_config_summary()

        # Assert
        assert summary["environment"] == "testing"
        assert summary["load"]["total_configs"] > 0
        assert "ENVIRONMENT" not in summary["load"]["defaults_used"]
