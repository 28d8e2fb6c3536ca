"""Authorization check API.

Single check, batch check (ALL / ANY) and effective permission listing.

Decision order for ``resource.action``:
1. Exact key denied            -> ExplicitDeny
2. Exact key granted           -> evaluate conditions (fail closed)
3. No exact key: ``resource.*`` with the same two rules
4. Nothing matched             -> NoGrant

"Not permitted" is a normal ``allowed=False`` decision, never a Failure.
Only malformed input (bad resource/action token, bad batch) is a Failure.
"""

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from gatekeeper.application.services.authorization_cache import AuthorizationCache
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities import (
    AuthorizationDecision,
    CheckItem,
    CheckManyResult,
    EffectivePermissionSet,
)
from gatekeeper.domain.enums import CheckMode, DecisionReason
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects import PermissionKey, first_failed_condition


def decide(
    permissions: EffectivePermissionSet,
    key: PermissionKey,
    context: Mapping[str, Any] | None = None,
) -> AuthorizationDecision:
    """Evaluate one permission key against a resolved set (pure)."""
    entry = permissions.get(key)
    via_wildcard = entry.via_wildcard if entry is not None else None
    if entry is None and not key.is_wildcard:
        entry = permissions.get(key.wildcard())
        via_wildcard = str(key.wildcard()) if entry is not None else None

    if entry is None:
        return AuthorizationDecision(
            allowed=False,
            reason=DecisionReason.NO_GRANT,
            permission_key=str(key),
        )

    if entry.is_denied:
        return AuthorizationDecision(
            allowed=False,
            reason=DecisionReason.EXPLICIT_DENY,
            permission_key=str(key),
            matched_key=entry.key,
            source=entry.source_label,
            via_wildcard=via_wildcard,
        )

    failed = first_failed_condition(entry.conditions, context)
    if failed is not None:
        return AuthorizationDecision(
            allowed=False,
            reason=DecisionReason.CONDITION_FAILED,
            permission_key=str(key),
            matched_key=entry.key,
            source=entry.source_label,
            via_wildcard=via_wildcard,
            failed_condition=failed.type,
        )

    return AuthorizationDecision(
        allowed=True,
        reason=DecisionReason.GRANTED,
        permission_key=str(key),
        matched_key=entry.key,
        source=entry.source_label,
        via_wildcard=via_wildcard,
    )


class AuthorizationService:
    """Boundary surface used by route guards, login flows and UI rendering.

    Dependencies (injected via constructor):
        - AuthorizationCache: Read-through effective permissions
        - LoggerProtocol: Structured logging (context keys only, never values)
    """

    def __init__(
        self,
        cache: AuthorizationCache,
        logger: LoggerProtocol,
        max_check_many_items: int = 50,
    ) -> None:
        self._cache = cache
        self._logger = logger
        self._max_check_many_items = max_check_many_items

    async def check(
        self,
        user_id: UUID,
        resource: str,
        action: str,
        context: Mapping[str, Any] | None = None,
    ) -> Result[AuthorizationDecision, ValidationError]:
        """Decide whether ``user_id`` may perform ``resource.action``.

        Returns:
            Success(AuthorizationDecision) for every well-formed request.
            Failure(ValidationError) for malformed resource/action tokens.
        """
        match PermissionKey.create(resource, action):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=key):
                pass

        permissions = await self._cache.get(user_id)
        decision = decide(permissions, key, context)
        self._log_decision(user_id, decision, context)
        return Success(value=decision)

    async def check_many(
        self,
        user_id: UUID,
        items: Sequence[CheckItem],
        mode: CheckMode = CheckMode.ALL,
    ) -> Result[CheckManyResult, ValidationError]:
        """Evaluate several keys against one resolution and combine per ``mode``."""
        if not items:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message="At least one check item is required",
                    field="checks",
                )
            )
        if len(items) > self._max_check_many_items:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message=f"At most {self._max_check_many_items} check items are allowed",
                    field="checks",
                    details={"max_items": str(self._max_check_many_items)},
                )
            )

        keys: list[PermissionKey] = []
        for index, item in enumerate(items):
            match PermissionKey.create(item.resource, item.action):
                case Failure(error=error):
                    return Failure(
                        error=ValidationError(
                            code=error.code,
                            message=error.message,
                            field=f"checks[{index}].{error.field or 'permission'}",
                            details=error.details,
                        )
                    )
                case Success(value=key):
                    keys.append(key)

        permissions = await self._cache.get(user_id)
        decisions = [
            decide(permissions, key, item.context) for key, item in zip(keys, items, strict=True)
        ]
        if mode is CheckMode.ALL:
            allowed = all(d.allowed for d in decisions)
        else:
            allowed = any(d.allowed for d in decisions)

        self._logger.info(
            "authorization_batch_check",
            user_id=str(user_id),
            mode=mode.value,
            item_count=len(decisions),
            allowed=allowed,
        )
        return Success(value=CheckManyResult(allowed=allowed, mode=mode, results=decisions))

    async def get_effective_permissions(self, user_id: UUID) -> EffectivePermissionSet:
        return await self._cache.get(user_id)

    async def has_role(self, user_id: UUID, role_name: str) -> bool:
        """Whether the user actively holds ``role_name`` (directly assigned)."""
        permissions = await self._cache.get(user_id)
        return role_name in permissions.role_names

    def _log_decision(
        self,
        user_id: UUID,
        decision: AuthorizationDecision,
        context: Mapping[str, Any] | None,
    ) -> None:
        self._logger.info(
            "authorization_check",
            user_id=str(user_id),
            permission=decision.permission_key,
            allowed=decision.allowed,
            reason=decision.reason.value,
            source=decision.source,
            failed_condition=decision.failed_condition,
            context_keys=sorted(context) if context else [],
        )
