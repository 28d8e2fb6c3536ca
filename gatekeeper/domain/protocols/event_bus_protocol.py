"""Event bus protocol (port) for domain events.

Requirements for implementations:
    1. Fail-open: one handler failure must NOT prevent other handlers
       from executing, and never propagates to the publisher.
    2. Handlers are async and run concurrently; no ordering guarantees.
    3. Handlers registered for a type only receive events of that exact type.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from gatekeeper.domain.events.base_event import DomainEvent

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations."""

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register event handler for specific event type."""
        ...

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all registered handlers (never raises)."""
        ...
