"""Base domain event class.

Domain events represent "things that happened" and are named in past tense
(RoleAssigned, RolePermissionsChanged). They are published only after the
mutation committed.

Usage:
    >>> @dataclass(frozen=True, kw_only=True, slots=True)
    >>> class RoleAssigned(DomainEvent):
    ...     user_id: UUID
    ...     role_id: UUID
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, kw_only=True, slots=True)
class DomainEvent:
    """Base class for all domain events.

    Attributes:
        event_id: Unique identifier for this event instance.
        occurred_at: Timestamp when the event occurred (UTC).
        correlation_id: Correlation id of the request that caused it.
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    correlation_id: str | None = None
