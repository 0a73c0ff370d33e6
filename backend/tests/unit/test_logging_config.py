"""
Unit tests for logging configuration.
"""

import json
import logging

import pytest

from backend.src.utils.logging_config import JSONFormatter, get_logger


class TestJSONFormatter:
    """Tests for the production formatter."""

    def test_includes_extra_fields(self):
        record = logging.LogRecord(
            "meetboard.services", logging.INFO, __file__, 10, "Approved event", None, None
        )
        record.event_id = "evt_01hgw2bbg00000000000000000"

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "meetboard.services"
        assert data["message"] == "Approved event"
        assert data["event_id"] == "evt_01hgw2bbg00000000000000000"
        assert data["timestamp"].endswith("Z")

    def test_includes_exception(self):
        try:
            raise RuntimeError("storage down")
        except RuntimeError:
            import sys
            record = logging.LogRecord(
                "meetboard.db", logging.ERROR, __file__, 10, "Write failed", None, sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: storage down" in data["exception"]


class TestGetLogger:
    """Tests for named loggers."""

    @pytest.mark.parametrize("name", ["api", "services", "db"])
    def test_known_names(self, name):
        assert get_logger(name).name == f"meetboard.{name}"

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            get_logger("photos")

    def test_service_state_changes_are_logged(self, caplog, sample_event, event_service, admin):
        """Test lifecycle transitions are logged at INFO."""
        event = sample_event()

        with caplog.at_level(logging.INFO, logger="meetboard.services"):
            event_service.apply_action(event.id, admin, "approve")

        assert any("Approved event spring-meet" in r.getMessage() for r in caplog.records)
