"""structlog-backed implementation of LoggerProtocol.

Writes one event per line to stdout: a colored key/value line in
development, JSON everywhere else (see ``get_logger`` in the container).
Context bound with ``structlog.contextvars`` (trace id) is merged into
every line.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _with_error(context: dict[str, Any], error: Exception | None) -> dict[str, Any]:
    if error is not None:
        context["error_type"] = type(error).__name__
        context["error_message"] = str(error)
    return context


class ConsoleAdapter:
    """Structured stdout logger.

    Args:
        use_json: Render JSON lines instead of the colored console format.
        level: Minimum level name; unknown names fall back to INFO.
    """

    def __init__(self, *, use_json: bool = False, level: str = "INFO") -> None:
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer()
            if use_json
            else structlog.dev.ConsoleRenderer(colors=True)
        )
        min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                renderer,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(min_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
            cache_logger_on_first_use=True,
        )
        self._logger = structlog.get_logger()

    def debug(self, message: str, /, **context: Any) -> None:
        self._logger.debug(message, **context)

    def info(self, message: str, /, **context: Any) -> None:
        self._logger.info(message, **context)

    def warning(self, message: str, /, **context: Any) -> None:
        self._logger.warning(message, **context)

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log at error level; ``error`` adds ``error_type`` and ``error_message``."""
        self._logger.error(message, **_with_error(context, error))

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        self._logger.critical(message, **_with_error(context, error))

    def bind(self, **context: Any) -> ConsoleAdapter:
        """Child adapter carrying ``context`` on every line; this one is unchanged."""
        child = ConsoleAdapter.__new__(ConsoleAdapter)
        child._logger = self._logger.bind(**context)
        return child
