"""Event bus adapters."""

from gatekeeper.infrastructure.events.in_memory_event_bus import InMemoryEventBus

__all__ = ["InMemoryEventBus"]
