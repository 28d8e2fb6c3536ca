"""Audit adapters."""

from gatekeeper.infrastructure.audit.database_adapter import DatabaseAuditAdapter

__all__ = ["DatabaseAuditAdapter"]
