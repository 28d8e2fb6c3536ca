"""Process-local event bus.

Handlers are keyed by exact event class and run concurrently on publish.
A failing handler is logged and never affects the other handlers or the
publisher: by the time an event is published the change it describes has
already committed.
"""

import asyncio
from collections import defaultdict

from gatekeeper.domain.events.base_event import DomainEvent
from gatekeeper.domain.protocols.event_bus_protocol import EventHandler
from gatekeeper.domain.protocols.logger_protocol import LoggerProtocol


class InMemoryEventBus:
    """EventBusProtocol for single-process deployments (not thread-safe)."""

    def __init__(self, logger: LoggerProtocol) -> None:
        self._handlers: defaultdict[type[DomainEvent], list[EventHandler]] = defaultdict(list)
        self._logger = logger

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type`` only; subclasses do not match."""
        self._handlers[event_type].append(handler)

    async def publish(self, event: DomainEvent) -> None:
        handlers = list(self._handlers.get(type(event), ()))
        if not handlers:
            return

        event_name = type(event).__name__
        self._logger.debug(
            "event_publishing",
            event_type=event_name,
            event_id=str(event.event_id),
            handler_count=len(handlers),
        )

        outcomes = await asyncio.gather(
            *(handler(event) for handler in handlers), return_exceptions=True
        )
        for handler, outcome in zip(handlers, outcomes, strict=True):
            if isinstance(outcome, Exception):
                self._logger.warning(
                    "event_handler_failed",
                    event_type=event_name,
                    event_id=str(event.event_id),
                    handler_name=getattr(handler, "__qualname__", repr(handler)),
                    error_type=type(outcome).__name__,
                    error_message=str(outcome),
                )
