"""Unit tests for structured logging setup."""

from __future__ import annotations

import io
import json
from typing import Generator

import pytest
import structlog

from bucketfs.domain.exceptions import PartialDeleteError
from bucketfs.infrastructure.logging import expand_error, get_logger, setup_logging
from bucketfs.ports.outbound import ObjectStoreError


@pytest.fixture
def log_stream() -> Generator[io.StringIO, None, None]:
    """Route structlog output to a buffer for the duration of a test."""
    stream = io.StringIO()
    setup_logging(level="DEBUG", log_format="json", stream=stream)
    yield stream
    structlog.reset_defaults()


@pytest.mark.unit
class TestExpandError:
    """Tests for the exception-flattening processor."""

    def test_backend_error(self) -> None:
        event = expand_error(None, "warning", {"event": "x", "error": ObjectStoreError("busy", status=503)})

        assert event == {"event": "x", "error": "busy", "error_type": "ObjectStoreError", "status": 503}

    def test_explicit_status_wins(self) -> None:
        event = expand_error(
            None, "warning", {"event": "x", "status": 500, "error": ObjectStoreError("busy", status=503)}
        )

        assert event["status"] == 500

    def test_filesystem_error(self) -> None:
        error = PartialDeleteError("docs", deleted=1, remaining=2)

        event = expand_error(None, "error", {"event": "x", "error": error})

        assert event["error_type"] == "PartialDeleteError"
        assert "deleted=1" in event["error"]
        assert "status" not in event

    def test_plain_values_untouched(self) -> None:
        event = {"event": "x", "error": "already a string"}

        assert expand_error(None, "info", dict(event)) == event


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_json_lines(self, log_stream: io.StringIO) -> None:
        logger = get_logger("bucketfs.tests", bucket="media")

        logger.warning("rename_source_delete_failed", source="a.txt", error=ObjectStoreError("denied", status=403))

        record = json.loads(log_stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "rename_source_delete_failed"
        assert record["level"] == "warning"
        assert record["bucket"] == "media"
        assert record["source"] == "a.txt"
        assert record["error"] == "denied"
        assert record["status"] == 403
        assert "timestamp" in record

    def test_level_filtering(self) -> None:
        stream = io.StringIO()
        setup_logging(level="WARNING", stream=stream)
        try:
            logger = get_logger("bucketfs.tests")
            logger.info("file_written", path="a.txt")
            logger.warning("application_name_missing")
        finally:
            structlog.reset_defaults()

        lines = stream.getvalue().strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["event"] == "application_name_missing"
