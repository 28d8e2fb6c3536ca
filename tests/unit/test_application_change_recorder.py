"""Unit tests for ChangeRecorder (post-commit audit and events)."""

from unittest.mock import AsyncMock

import pytest
from uuid_extensions import uuid7

from gatekeeper.application.services import ChangeRecorder
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure
from gatekeeper.domain.enums import AuditAction
from gatekeeper.domain.errors import AuditError
from gatekeeper.domain.events import RoleAssigned, RoleRevoked


@pytest.mark.unit
class TestChangeRecorder:
    @pytest.mark.asyncio
    async def test_records_audit_then_publishes(self, mock_audit, mock_event_bus, mock_logger):
        recorder = ChangeRecorder(mock_audit, mock_event_bus, mock_logger)
        user_id, role_id, actor_id = uuid7(), uuid7(), uuid7()
        event = RoleAssigned(user_id=user_id, role_id=role_id, role_name="ACCOUNTANT")

        await recorder.record(
            action=AuditAction.ROLE_ASSIGNED,
            target_type="user",
            target_id=user_id,
            actor_id=actor_id,
            correlation_id="req-1",
            new_value={"role_id": str(role_id)},
            event=event,
        )

        kwargs = mock_audit.record.call_args[1]
        assert kwargs["event_type"] is AuditAction.ROLE_ASSIGNED
        assert kwargs["target_id"] == str(user_id)
        assert kwargs["actor_id"] == actor_id
        assert kwargs["correlation_id"] == "req-1"
        mock_event_bus.publish.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_audit_failure_is_logged_and_events_still_published(
        self, mock_audit, mock_event_bus, mock_logger
    ):
        mock_audit.record = AsyncMock(
            return_value=Failure(
                error=AuditError(code=ErrorCode.AUDIT_RECORD_FAILED, message="db down")
            )
        )
        recorder = ChangeRecorder(mock_audit, mock_event_bus, mock_logger)
        user_id = uuid7()

        await recorder.record(
            action=AuditAction.ROLE_REVOKED,
            target_type="user",
            target_id=user_id,
            actor_id=None,
            correlation_id=None,
            event=RoleRevoked(
                user_id=user_id, role_id=uuid7(), role_name="ACCOUNTANT", reason="left team"
            ),
        )

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[0][0] == "audit_record_failed"
        assert mock_logger.error.call_args[1]["error_code"] == "audit_record_failed"
        mock_event_bus.publish.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publishes_event_list_in_order(self, mock_audit, mock_event_bus, mock_logger):
        recorder = ChangeRecorder(mock_audit, mock_event_bus, mock_logger)
        first = RoleAssigned(user_id=uuid7(), role_id=uuid7(), role_name="A")
        second = RoleAssigned(user_id=uuid7(), role_id=uuid7(), role_name="B")

        await recorder.record(
            action=AuditAction.BULK_PERMISSIONS_ASSIGNED,
            target_type="role",
            target_id="bulk",
            actor_id=None,
            correlation_id=None,
            events=[first, second],
        )

        published = [c[0][0] for c in mock_event_bus.publish.call_args_list]
        assert published == [first, second]
