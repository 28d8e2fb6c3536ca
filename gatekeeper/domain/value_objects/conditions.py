"""Data-scoped permission conditions.

Conditions are a closed set of tagged variants, each carrying its own typed
payload, evaluated by exhaustive ``match``. Evaluation is a pure function of
``(condition, context)`` and fails closed: a missing context field, an
incomparable value, or an unrecognised stored condition denies.

Stored form (JSON column, cache snapshot):
    {"type": "own_organization"}
    {"type": "own_records"}
    {"type": "department", "value": "dept-42"}        # value optional
    {"type": "custom", "value": {"field": "amount", "operator": "lte", "value": 1000}}

Context keys are snake_case; camelCase aliases are accepted
(``orgId``/``actorOrgId``, ``ownerId``/``actorId``,
``departmentId``/``actorDepartmentId``).
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.enums import ConditionType, CustomOperator

CONTEXT_ALIASES: dict[str, str] = {
    "orgId": "org_id",
    "actorOrgId": "actor_org_id",
    "ownerId": "owner_id",
    "actorId": "actor_id",
    "departmentId": "department_id",
    "actorDepartmentId": "actor_department_id",
}


@dataclass(frozen=True, slots=True)
class OwnOrganization:
    """Actor's organisation must equal the target's organisation."""

    type: ClassVar[str] = ConditionType.OWN_ORGANIZATION.value


@dataclass(frozen=True, slots=True)
class OwnRecords:
    """Actor must own the target record."""

    type: ClassVar[str] = ConditionType.OWN_RECORDS.value


@dataclass(frozen=True, slots=True)
class Department:
    """Actor's department must match the target (or a fixed) department."""

    type: ClassVar[str] = ConditionType.DEPARTMENT.value

    department_id: str | None = None


@dataclass(frozen=True, slots=True)
class Custom:
    """``context[field] <operator> value`` predicate."""

    type: ClassVar[str] = ConditionType.CUSTOM.value

    field: str
    operator: CustomOperator
    value: Any = None


@dataclass(frozen=True, slots=True)
class UnknownCondition:
    """A stored condition whose type this engine does not recognise.

    Only produced when loading persisted or cached data; it always denies.
    """

    type_name: str
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.type_name


type Condition = OwnOrganization | OwnRecords | Department | Custom | UnknownCondition


def _invalid(message: str, **details: str) -> Failure[ValidationError]:
    return Failure(
        error=ValidationError(
            code=ErrorCode.INVALID_CONDITION,
            message=message,
            field="conditions",
            details=details or None,
        )
    )


def parse_condition(raw: Mapping[str, Any]) -> Result[Condition, ValidationError]:
    """Parse one condition from its stored/wire form (strict).

    Unknown types are rejected; use :func:`load_condition` for persisted data.
    """
    type_name = raw.get("type")
    try:
        condition_type = ConditionType(type_name)
    except ValueError:
        return _invalid(f"Unknown condition type '{type_name}'", type=str(type_name))

    value = raw.get("value")
    match condition_type:
        case ConditionType.OWN_ORGANIZATION:
            return Success(value=OwnOrganization())
        case ConditionType.OWN_RECORDS:
            return Success(value=OwnRecords())
        case ConditionType.DEPARTMENT:
            if value is not None and not isinstance(value, (str, int)):
                return _invalid("Department condition value must be a department id")
            return Success(value=Department(None if value is None else str(value)))
        case ConditionType.CUSTOM:
            if not isinstance(value, Mapping):
                return _invalid("Custom condition value must be an object")
            field_name = value.get("field")
            if not isinstance(field_name, str) or not field_name:
                return _invalid("Custom condition requires a non-empty 'field'")
            try:
                operator = CustomOperator(value.get("operator"))
            except ValueError:
                return _invalid(
                    f"Unknown custom operator '{value.get('operator')}'",
                    operator=str(value.get("operator")),
                )
            expected = value.get("value")
            if operator in (CustomOperator.IN, CustomOperator.NOT_IN) and not isinstance(
                expected, (list, tuple)
            ):
                return _invalid(f"Operator '{operator.value}' requires a list value")
            return Success(value=Custom(field_name, operator, expected))


def parse_conditions(
    raw_conditions: Iterable[Mapping[str, Any]],
    *,
    supports_conditions: bool,
    allowed_types: Sequence[ConditionType],
) -> Result[list[Condition], ValidationError]:
    """Parse an ordered condition list for a permission at write time.

    When the permission declares ``supports_conditions``, every condition
    type must also appear in its ``allowed_types``.
    """
    parsed: list[Condition] = []
    for raw in raw_conditions:
        match parse_condition(raw):
            case Failure() as failure:
                return failure
            case Success(value=condition):
                if supports_conditions and allowed_types and ConditionType(
                    condition.type
                ) not in allowed_types:
                    return _invalid(
                        f"Condition type '{condition.type}' is not allowed for this permission",
                        type=condition.type,
                    )
                parsed.append(condition)
    if parsed and not supports_conditions:
        return _invalid("Permission does not support conditions")
    return Success(value=parsed)


def load_condition(raw: Mapping[str, Any]) -> Condition:
    """Load a persisted condition; anything unrecognised fails closed later."""
    match parse_condition(raw):
        case Success(value=condition):
            return condition
        case _:
            return UnknownCondition(str(raw.get("type")), dict(raw))


def condition_to_dict(condition: Condition) -> dict[str, Any]:
    """Serialise a condition to its stored form."""
    match condition:
        case OwnOrganization() | OwnRecords():
            return {"type": condition.type}
        case Department(department_id=department_id):
            data: dict[str, Any] = {"type": condition.type}
            if department_id is not None:
                data["value"] = department_id
            return data
        case Custom(field=field_name, operator=operator, value=value):
            return {
                "type": condition.type,
                "value": {"field": field_name, "operator": operator.value, "value": value},
            }
        case UnknownCondition(payload=payload):
            return dict(payload)


def normalize_context(context: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of ``context`` with camelCase aliases mapped to snake_case."""
    normalized = dict(context or {})
    for alias, canonical in CONTEXT_ALIASES.items():
        if alias in normalized and canonical not in normalized:
            normalized[canonical] = normalized[alias]
    return normalized


def _same_present(context: Mapping[str, Any], left: str, right: str) -> bool:
    a = context.get(left)
    b = context.get(right)
    if a is None or b is None:
        return False
    return str(a) == str(b)


def _apply_operator(operator: CustomOperator, actual: Any, expected: Any) -> bool:
    try:
        match operator:
            case CustomOperator.EQ:
                return bool(actual == expected)
            case CustomOperator.NE:
                return bool(actual != expected)
            case CustomOperator.IN:
                return isinstance(expected, (list, tuple)) and actual in expected
            case CustomOperator.NOT_IN:
                return isinstance(expected, (list, tuple)) and actual not in expected
            case CustomOperator.GT:
                return bool(actual > expected)
            case CustomOperator.GTE:
                return bool(actual >= expected)
            case CustomOperator.LT:
                return bool(actual < expected)
            case CustomOperator.LTE:
                return bool(actual <= expected)
            case CustomOperator.CONTAINS:
                return isinstance(actual, (str, list, tuple, set, dict)) and expected in actual
    except TypeError:
        return False


def evaluate_condition(condition: Condition, context: Mapping[str, Any]) -> bool:
    """Evaluate one condition against an already-normalized context."""
    match condition:
        case OwnOrganization():
            return _same_present(context, "actor_org_id", "org_id")
        case OwnRecords():
            return _same_present(context, "actor_id", "owner_id")
        case Department(department_id=None):
            return _same_present(context, "actor_department_id", "department_id")
        case Department(department_id=fixed):
            actor_department = context.get("actor_department_id")
            return actor_department is not None and str(actor_department) == fixed
        case Custom(field=field_name, operator=operator, value=expected):
            if field_name not in context:
                return False
            return _apply_operator(operator, context[field_name], expected)
        case UnknownCondition():
            return False


def first_failed_condition(
    conditions: Sequence[Condition],
    context: Mapping[str, Any] | None,
) -> Condition | None:
    """Evaluate conditions in order; return the first that fails, else None."""
    normalized = normalize_context(context)
    for condition in conditions:
        if not evaluate_condition(condition, normalized):
            return condition
    return None
