"""
Tests for Error Reporting
"""

import logging
from unittest.mock import MagicMock

from clone_retrieval.models.retrieval import RetrievalRequest
from clone_retrieval.monitoring.error_reporter import (
    LoggingErrorReporter,
    build_error_context,
    report_safely,
)


def raised(error):
    try:
        raise error
    except Exception as e:
        return e


class TestErrorContext:
    """Tests for build_error_context."""

    def test_context_fields(self):
        request = RetrievalRequest(query="where do I work?", user_id=7, app_id=3)

        context = build_error_context(request, raised(RuntimeError("chroma down")))

        assert context["query"] == "where do I work?"
        assert context["user_id"] == 7
        assert context["app_id"] == 3
        assert context["error"] == "chroma down"
        assert "RuntimeError: chroma down" in context["stack"]

    def test_empty_message_uses_class_name(self):
        request = RetrievalRequest(query="q", user_id=1)

        context = build_error_context(request, raised(TimeoutError()))

        assert context["error"] == "TimeoutError"


class TestReporters:
    """Tests for reporter implementations and report_safely."""

    def test_logging_reporter(self, caplog):
        reporter = LoggingErrorReporter()

        with caplog.at_level(logging.ERROR, logger="clone_retrieval.errors"):
            reporter.error("Error in memory search", {"user_id": 7})

        record = caplog.records[0]
        assert record.getMessage() == "Error in memory search"
        assert record.error_context == {"user_id": 7}

    def test_report_safely_swallows_reporter_failure(self):
        reporter = MagicMock()
        reporter.error.side_effect = ConnectionError("tracker unreachable")

        report_safely(reporter, "Error in Chroma search", {"user_id": 1})

        reporter.error.assert_called_once_with("Error in Chroma search", {"user_id": 1})

    def test_report_safely_without_reporter(self):
        report_safely(None, "ignored", {})
