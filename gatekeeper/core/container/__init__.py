"""Container module - Centralized dependency injection.

All factory functions are re-exported here:

    from gatekeeper.core.container import get_authorization_service, get_logger

The container is organized into modules:
- infrastructure: Database, unit of work, cache, audit, logging
- events: Event bus and subscriptions
- services: Authorization engine services
"""

from gatekeeper.core.container.events import get_event_bus
from gatekeeper.core.container.infrastructure import (
    get_audit,
    get_cache,
    get_database,
    get_effective_permission_cache,
    get_logger,
    get_uow_factory,
)
from gatekeeper.core.container.services import (
    get_assignment_service,
    get_authorization_cache,
    get_authorization_service,
    get_bulk_assignment_service,
    get_change_recorder,
    get_permission_catalog_service,
    get_resolver,
    get_role_graph_service,
    get_template_service,
)

ALL_FACTORIES = (
    get_database,
    get_uow_factory,
    get_cache,
    get_effective_permission_cache,
    get_audit,
    get_logger,
    get_event_bus,
    get_resolver,
    get_authorization_cache,
    get_change_recorder,
    get_authorization_service,
    get_permission_catalog_service,
    get_role_graph_service,
    get_assignment_service,
    get_bulk_assignment_service,
    get_template_service,
)


def clear_container_cache() -> None:
    """Drop every cached singleton (tests and reconfiguration)."""
    for factory in ALL_FACTORIES:
        factory.cache_clear()


__all__ = [
    "clear_container_cache",
    "get_assignment_service",
    "get_audit",
    "get_authorization_cache",
    "get_authorization_service",
    "get_bulk_assignment_service",
    "get_cache",
    "get_change_recorder",
    "get_database",
    "get_effective_permission_cache",
    "get_event_bus",
    "get_logger",
    "get_permission_catalog_service",
    "get_resolver",
    "get_role_graph_service",
    "get_template_service",
    "get_uow_factory",
]
