"""Unit tests for the in-memory event bus and the structlog console adapter."""

import json

import pytest
from uuid_extensions import uuid7

from gatekeeper.domain.events import RoleAssigned, RoleRevoked
from gatekeeper.infrastructure.events.handlers.logging_event_handler import LoggingEventHandler
from gatekeeper.infrastructure.events.in_memory_event_bus import InMemoryEventBus
from gatekeeper.infrastructure.logging.console_adapter import ConsoleAdapter


def role_assigned() -> RoleAssigned:
    return RoleAssigned(user_id=uuid7(), role_id=uuid7(), role_name="ACCOUNTANT")


@pytest.mark.unit
class TestInMemoryEventBus:
    @pytest.mark.asyncio
    async def test_handlers_receive_exact_type_only(self, mock_logger):
        bus = InMemoryEventBus(logger=mock_logger)
        assigned, revoked = [], []

        async def on_assigned(event):
            assigned.append(event)

        async def on_revoked(event):
            revoked.append(event)

        bus.subscribe(RoleAssigned, on_assigned)
        bus.subscribe(RoleRevoked, on_revoked)
        event = role_assigned()

        await bus.publish(event)

        assert assigned == [event]
        assert revoked == []

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self, mock_logger):
        bus = InMemoryEventBus(logger=mock_logger)
        received = []

        async def broken(event):
            raise RuntimeError("handler down")

        async def working(event):
            received.append(event)

        bus.subscribe(RoleAssigned, broken)
        bus.subscribe(RoleAssigned, working)

        await bus.publish(role_assigned())

        assert len(received) == 1
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args[0][0] == "event_handler_failed"
        assert mock_logger.warning.call_args[1]["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_logging_handler_writes_one_line_per_event(self, mock_logger):
        bus = InMemoryEventBus(logger=mock_logger)
        LoggingEventHandler(logger=mock_logger).subscribe_all(bus)
        event = role_assigned()

        await bus.publish(event)

        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args[0][0] == "role_assigned"
        assert mock_logger.info.call_args[1]["role_name"] == "ACCOUNTANT"
        assert mock_logger.info.call_args[1]["event_id"] == str(event.event_id)


@pytest.mark.unit
class TestConsoleAdapter:
    def test_json_output_carries_context(self, capsys):
        logger = ConsoleAdapter(use_json=True, level="INFO")

        logger.info("authorization_check", user_id="u1", allowed=True)

        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["event"] == "authorization_check"
        assert line["user_id"] == "u1"
        assert line["allowed"] is True
        assert line["level"] == "info"

    def test_level_filters_debug(self, capsys):
        logger = ConsoleAdapter(use_json=True, level="INFO")

        logger.debug("effective_permissions_cache_hit", user_id="u1")

        assert capsys.readouterr().out == ""

    def test_error_adds_exception_fields(self, capsys):
        logger = ConsoleAdapter(use_json=True, level="INFO")

        logger.error("audit_record_failed", error=ValueError("boom"))

        line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert line["error_type"] == "ValueError"
        assert line["error_message"] == "boom"

    def test_bind_keeps_original_unchanged(self, capsys):
        logger = ConsoleAdapter(use_json=True, level="INFO")

        logger.bind(correlation_id="req-1").info("bound")
        logger.info("plain")

        bound, plain = (
            json.loads(line) for line in capsys.readouterr().out.strip().splitlines()[-2:]
        )
        assert bound["correlation_id"] == "req-1"
        assert "correlation_id" not in plain
