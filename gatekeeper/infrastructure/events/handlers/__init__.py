"""Event handlers subscribed by the container."""

from gatekeeper.infrastructure.events.handlers.logging_event_handler import (
    LoggingEventHandler,
)

__all__ = ["LoggingEventHandler"]
