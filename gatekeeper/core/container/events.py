"""Event bus dependency factory.

Application-scoped singleton for domain event publishing. Handlers are
subscribed once, when the bus is first created.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gatekeeper.domain.protocols import EventBusProtocol


@lru_cache()
def get_event_bus() -> "EventBusProtocol":
    """Get event bus singleton (app-scoped).

    Returns:
        InMemoryEventBus with the logging handler subscribed to every
        authorization event.

    Usage:
        event_bus = get_event_bus()
        event_bus.subscribe(RoleAssigned, notify_user)
    """
    from gatekeeper.core.container.infrastructure import get_logger
    from gatekeeper.infrastructure.events import InMemoryEventBus
    from gatekeeper.infrastructure.events.handlers import LoggingEventHandler

    event_bus = InMemoryEventBus(logger=get_logger())
    LoggingEventHandler(logger=get_logger()).subscribe_all(event_bus)
    return event_bus
