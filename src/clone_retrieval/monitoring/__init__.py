"""Monitoring package - error reporting."""

from clone_retrieval.monitoring.error_reporter import (
    ErrorReporter,
    LoggingErrorReporter,
    build_error_context,
    report_safely,
)

__all__ = ["ErrorReporter", "LoggingErrorReporter", "build_error_context", "report_safely"]
