"""LoggerProtocol definition for structured logging.

Implementations MUST keep logs structured (message + key-value context)
and safe: never log condition context values, only their keys.

Usage:
    from gatekeeper.core.container import get_logger

    logger = get_logger()
    logger.info("role_assigned", user_id=str(user_id), role_id=str(role_id))

    request_logger = logger.bind(correlation_id=correlation_id)
    request_logger.info("authorization_check")  # correlation_id included
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    Supports 5 standard log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    and context binding for request-scoped logging.
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message."""
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message."""
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: Event name (snake_case).
            error: Optional exception instance; implementation may include
                error_type and error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a critical-level message for catastrophic failures."""
        ...

    def bind(self, **context: Any) -> "LoggerProtocol":
        """Return new logger with permanently bound context.

        Original logger instance remains unchanged (immutable pattern).
        """
        ...
