"""Unit tests for structured logging setup."""

import json

import pytest

from cas_store.infrastructure.logging import get_logger, setup_logging


@pytest.mark.unit
class TestLogging:
    """Test structlog configuration."""

    def test_json_event_carries_logger_name(self, capsys):
        setup_logging("INFO", "json")
        get_logger("cas_store.tests").info("object_put", bucket="docs", size=11)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "object_put"
        assert event["logger"] == "cas_store.tests"
        assert event["level"] == "info"
        assert event["bucket"] == "docs"
        assert "timestamp" in event

    def test_level_filters_lower_events(self, capsys):
        setup_logging("WARNING", "json")
        logger = get_logger("cas_store.tests")
        logger.info("hidden_event")
        logger.warning("shown_event")

        out = capsys.readouterr().out
        assert "hidden_event" not in out
        assert "shown_event" in out

    def test_initial_context_is_bound(self, capsys):
        setup_logging("INFO", "json")
        get_logger("cas_store.tests", node_id="node-9").info("storage_node_starting")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["node_id"] == "node-9"
