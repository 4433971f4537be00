"""Tests for structured logging setup."""

import io
import json
import logging

import pytest

from healthbridge.config import get_settings
from healthbridge.core.logging import get_logger, setup_logging


@pytest.fixture
def log_stream():
    """JSON logging into a buffer, restored to the app's setup afterwards."""
    stream = io.StringIO()
    setup_logging(debug=False, log_level="INFO", stream=stream)
    try:
        yield stream
    finally:
        settings = get_settings()
        setup_logging(debug=settings.debug, log_level=settings.log_level)


def entries(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestEngineEvents:
    """Tests for events logged through get_logger."""

    def test_event_carries_module_name(self, log_stream):
        """Should render the event name, module and keyword context as one JSON line."""
        get_logger("healthbridge.store.sql").warning("store_operation_failed", operation="read_records")

        [entry] = entries(log_stream)
        assert entry["event"] == "store_operation_failed"
        assert entry["logger"] == "healthbridge.store.sql"
        assert entry["operation"] == "read_records"
        assert entry["level"] == "warning"
        assert "timestamp" in entry

    def test_below_level_dropped(self, log_stream):
        """Should drop debug events when the level is INFO."""
        get_logger("healthbridge.services.reader").debug("page_fetched", records=3)

        assert entries(log_stream) == []


class TestStdlibRecords:
    """Tests for stdlib records passing through the same pipeline."""

    def test_extra_fields_rendered(self, log_stream):
        """Should render stdlib records as JSON with their extra fields."""
        logging.getLogger("healthbridge.core.error_handlers").warning(
            "Validation error: %s",
            "bad limit",
            extra={"path": "/api/health/samples/read", "method": "POST"},
        )

        [entry] = entries(log_stream)
        assert entry["event"] == "Validation error: bad limit"
        assert entry["logger"] == "healthbridge.core.error_handlers"
        assert entry["level"] == "warning"
        assert entry["path"] == "/api/health/samples/read"
        assert entry["method"] == "POST"

    def test_exception_formatted(self, log_stream):
        """Should include the traceback of logged exceptions."""
        try:
            raise RuntimeError("store exploded")
        except RuntimeError:
            logging.getLogger("healthbridge.core.error_handlers").exception("Unhandled exception")

        [entry] = entries(log_stream)
        assert entry["level"] == "error"
        assert "RuntimeError: store exploded" in entry["exception"]

    def test_noisy_libraries_quieted(self, log_stream):
        """Should keep SQLAlchemy statement logging out of the output."""
        logging.getLogger("sqlalchemy.engine").info("SELECT 1")

        assert entries(log_stream) == []
