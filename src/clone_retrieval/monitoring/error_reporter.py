"""
Error Reporting

Fire-and-forget error telemetry used at every degradation point of the
retrieval flow.
"""

import logging
import traceback
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ErrorReporter(ABC):
    """
    Abstract error tracker.

    Implementations forward an error message plus a context dict to an
    external tracking service. They must not block or raise.
    """

    @abstractmethod
    def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        pass


class LoggingErrorReporter(ErrorReporter):
    """Reports errors to the 'clone_retrieval.errors' logger."""

    def __init__(self, logger_name: str = "clone_retrieval.errors"):
        self.logger = logging.getLogger(logger_name)

    def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.logger.error(message, extra={"error_context": context or {}})


def build_error_context(request: Any, error: BaseException) -> Dict[str, Any]:
    """
    Build the standard error context for a failed request.

    Args:
        request: RetrievalRequest being served
        error: The caught exception

    Returns:
        Dict with query, user_id, app_id, error message and stack
    """
    return {
        "query": getattr(request, "query", None),
        "user_id": getattr(request, "user_id", None),
        "app_id": getattr(request, "app_id", None),
        "error": str(error) or error.__class__.__name__,
        "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
    }


def report_safely(
    reporter: Optional[ErrorReporter],
    message: str,
    context: Dict[str, Any],
) -> None:
    """Send to the reporter; a failing reporter is logged and ignored."""
    if reporter is None:
        return
    try:
        reporter.error(message, context)
    except Exception as e:
        logging.getLogger("clone_retrieval.errors").warning(f"Error reporter failed: {e}")
