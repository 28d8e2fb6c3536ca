"""Pytest configuration and shared fixtures.

Fixture layers:
1. Mocks for cross-cutting collaborators (logger, audit, event bus)
2. Real infrastructure on throwaway backends: a fresh SQLite file database
   per test and an in-process fake Redis (fakeredis), both bypassing the
   container singletons
3. ``engine``: every engine service wired to that infrastructure, plus
   small builders for permissions, roles and users
"""

from collections.abc import Sequence
from dataclasses import dataclass
from unittest.mock import AsyncMock, Mock
from uuid import UUID

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from uuid_extensions import uuid7

from gatekeeper.application.services import (
    AssignmentService,
    AuthorizationCache,
    AuthorizationService,
    BulkAssignmentService,
    ChangeRecorder,
    EffectivePermissionResolver,
    PermissionCatalogService,
    RoleGraphService,
    TemplateService,
)
from gatekeeper.core.result import Success
from gatekeeper.domain.entities import Permission, Role
from gatekeeper.domain.enums import ConditionType
from gatekeeper.infrastructure.audit.database_adapter import DatabaseAuditAdapter
from gatekeeper.infrastructure.cache.cache_keys import CacheKeys
from gatekeeper.infrastructure.cache.effective_permission_cache import (
    RedisEffectivePermissionCache,
)
from gatekeeper.infrastructure.cache.redis_adapter import RedisAdapter
from gatekeeper.infrastructure.events.in_memory_event_bus import InMemoryEventBus
from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWorkFactory


# =============================================================================
# Reusable Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger():
    """Provide a mock logger with the LoggerProtocol methods."""
    logger = Mock()
    logger.debug = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    logger.critical = Mock()
    return logger


@pytest.fixture
def mock_audit():
    """Provide a mock audit collaborator that always succeeds."""
    audit = AsyncMock()
    audit.record = AsyncMock(return_value=Success(value=None))
    return audit


@pytest.fixture
def mock_event_bus():
    """Provide a mock event bus."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=None)
    event_bus.subscribe = Mock()
    return event_bus


# =============================================================================
# Infrastructure (fresh per test)
# =============================================================================


@pytest_asyncio.fixture
async def test_database(tmp_path):
    """Provide a Database on a fresh SQLite file with all tables created."""
    db = Database(database_url=f"sqlite+aiosqlite:///{tmp_path / 'gatekeeper.db'}")
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
def uow_factory(test_database):
    return SqlAlchemyUnitOfWorkFactory(test_database)


@pytest_asyncio.fixture
async def redis_test_client():
    """Provide an isolated in-process Redis client."""
    client = FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache_adapter(redis_test_client):
    return RedisAdapter(redis_client=redis_test_client)


@pytest.fixture
def effective_permission_cache(cache_adapter, mock_logger):
    return RedisEffectivePermissionCache(
        cache=cache_adapter,
        keys=CacheKeys(prefix="test"),
        ttl_seconds=900,
        logger=mock_logger,
    )


@pytest.fixture
def event_bus(mock_logger):
    return InMemoryEventBus(logger=mock_logger)


@pytest.fixture
def audit(test_database):
    return DatabaseAuditAdapter(database=test_database)


# =============================================================================
# Engine
# =============================================================================


@dataclass
class Engine:
    """All engine services sharing one database, cache and recorder."""

    uow_factory: SqlAlchemyUnitOfWorkFactory
    resolver: EffectivePermissionResolver
    cache: AuthorizationCache
    recorder: ChangeRecorder
    authorization: AuthorizationService
    catalog: PermissionCatalogService
    roles: RoleGraphService
    assignments: AssignmentService
    bulk: BulkAssignmentService
    templates: TemplateService

    async def permission(
        self,
        resource: str,
        action: str,
        *,
        supports_conditions: bool = False,
        allowed_condition_types: Sequence[ConditionType] = (),
        is_system: bool = False,
    ) -> Permission:
        result = await self.catalog.create_permission(
            resource=resource,
            action=action,
            display_name=f"{resource} {action}",
            supports_conditions=supports_conditions,
            allowed_condition_types=allowed_condition_types,
            is_system=is_system,
        )
        assert isinstance(result, Success), result
        return result.value

    async def role(
        self,
        name: str,
        *,
        parent: Role | None = None,
        permissions: Sequence[Permission] = (),
        is_system: bool = False,
    ) -> Role:
        result = await self.roles.create_role(
            name=name,
            display_name=name.title(),
            parent_role_id=parent.id if parent else None,
            permission_ids=[p.id for p in permissions],
            is_system=is_system,
        )
        assert isinstance(result, Success), result
        return result.value

    async def user_with(self, *roles: Role) -> UUID:
        user_id = uuid7()
        for role in roles:
            result = await self.assignments.assign_role(user_id, role.id)
            assert isinstance(result, Success), result
        return user_id

    async def allowed(
        self, user_id: UUID, resource: str, action: str, context: dict | None = None
    ) -> bool:
        result = await self.authorization.check(user_id, resource, action, context)
        assert isinstance(result, Success), result
        return result.value.allowed


def build_engine(uow_factory, effective_permission_cache, audit, event_bus, logger) -> Engine:
    resolver = EffectivePermissionResolver(uow_factory=uow_factory, logger=logger)
    cache = AuthorizationCache(resolver=resolver, cache=effective_permission_cache, logger=logger)
    recorder = ChangeRecorder(audit=audit, event_bus=event_bus, logger=logger)
    mutation_args = dict(uow_factory=uow_factory, cache=cache, recorder=recorder, logger=logger)
    return Engine(
        uow_factory=uow_factory,
        resolver=resolver,
        cache=cache,
        recorder=recorder,
        authorization=AuthorizationService(cache=cache, logger=logger),
        catalog=PermissionCatalogService(**mutation_args),
        roles=RoleGraphService(**mutation_args),
        assignments=AssignmentService(**mutation_args),
        bulk=BulkAssignmentService(**mutation_args),
        templates=TemplateService(**mutation_args),
    )


@pytest.fixture
def engine(uow_factory, effective_permission_cache, audit, event_bus, mock_logger) -> Engine:
    """Engine wired to SQLite, fake Redis, the database audit trail and a real bus."""
    return build_engine(uow_factory, effective_permission_cache, audit, event_bus, mock_logger)


@pytest.fixture
def uncached_engine(uow_factory, audit, event_bus, mock_logger) -> Engine:
    """Engine with caching disabled (every check resolves from the database)."""
    return build_engine(uow_factory, None, audit, event_bus, mock_logger)


@pytest.fixture
def make_engine(uow_factory, mock_logger):
    """Build an engine with custom cache, audit or event bus collaborators."""

    def _make(*, cache, audit, event_bus) -> Engine:
        return build_engine(uow_factory, cache, audit, event_bus, mock_logger)

    return _make
