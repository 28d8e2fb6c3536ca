"""Results of authorization checks."""

from dataclasses import dataclass, field
from typing import Any

from gatekeeper.domain.enums import CheckMode, DecisionReason


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthorizationDecision:
    """Outcome of a single ``Check``.

    Attributes:
        allowed: Final decision.
        reason: Granted, ExplicitDeny, ConditionFailed or NoGrant.
        permission_key: Requested ``resource.action``.
        matched_key: Entry that decided the outcome (may be ``resource.*``).
        source: ``role:NAME`` or ``direct`` of the deciding entry.
        via_wildcard: Wildcard key the match came through, if any.
        failed_condition: Type of the first condition that failed.
    """

    allowed: bool
    reason: DecisionReason
    permission_key: str
    matched_key: str | None = None
    source: str | None = None
    via_wildcard: str | None = None
    failed_condition: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CheckItem:
    """One ``(resource, action)`` request inside a batch check."""

    resource: str
    action: str
    context: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CheckManyResult:
    """Combined outcome of ``CheckMany`` plus the per-item breakdown."""

    allowed: bool
    mode: CheckMode
    results: list[AuthorizationDecision] = field(default_factory=list)
