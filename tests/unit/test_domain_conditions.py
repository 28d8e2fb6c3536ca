"""Unit tests for permission conditions.

Evaluation is a pure function of (condition, context) and fails closed.
"""

import pytest

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.enums import ConditionType, CustomOperator
from gatekeeper.domain.value_objects import (
    Custom,
    Department,
    OwnOrganization,
    OwnRecords,
    UnknownCondition,
    condition_to_dict,
    first_failed_condition,
    load_condition,
    parse_condition,
    parse_conditions,
)


@pytest.mark.unit
class TestConditionEvaluation:
    def test_own_organization_matches_same_org(self):
        context = {"orgId": "A", "actorOrgId": "A"}

        assert first_failed_condition([OwnOrganization()], context) is None

    def test_own_organization_fails_other_org(self):
        failed = first_failed_condition([OwnOrganization()], {"orgId": "A", "actorOrgId": "B"})

        assert failed == OwnOrganization()

    def test_own_organization_fails_closed_on_missing_context(self):
        assert first_failed_condition([OwnOrganization()], {"org_id": "A"}) is not None
        assert first_failed_condition([OwnOrganization()], None) is not None

    def test_own_records_uses_snake_case_or_alias(self):
        same = {"actor_id": "u1", "owner_id": "u1"}
        other = {"actorId": "u1", "ownerId": "u2"}

        assert first_failed_condition([OwnRecords()], same) is None
        assert first_failed_condition([OwnRecords()], other) is not None

    def test_department_compares_actor_and_target(self):
        condition = Department()

        assert first_failed_condition(
            [condition], {"actor_department_id": "d1", "department_id": "d1"}
        ) is None
        assert first_failed_condition(
            [condition], {"actor_department_id": "d1", "department_id": "d2"}
        ) is not None

    def test_fixed_department_compares_actor_only(self):
        condition = Department("d7")

        assert first_failed_condition([condition], {"actorDepartmentId": "d7"}) is None
        assert first_failed_condition([condition], {"actor_department_id": "d1"}) is not None

    @pytest.mark.parametrize(
        ("operator", "expected", "actual", "passes"),
        [
            (CustomOperator.EQ, "gold", "gold", True),
            (CustomOperator.NE, "gold", "gold", False),
            (CustomOperator.IN, ["eu", "us"], "eu", True),
            (CustomOperator.NOT_IN, ["eu", "us"], "eu", False),
            (CustomOperator.GT, 10, 11, True),
            (CustomOperator.GTE, 10, 10, True),
            (CustomOperator.LT, 10, 10, False),
            (CustomOperator.LTE, 1000, 999.5, True),
            (CustomOperator.CONTAINS, "vip", ["vip", "beta"], True),
        ],
    )
    def test_custom_operators(self, operator, expected, actual, passes):
        condition = Custom("value", operator, expected)

        failed = first_failed_condition([condition], {"value": actual})

        assert (failed is None) is passes

    def test_custom_fails_closed_on_missing_field(self):
        condition = Custom("amount", CustomOperator.LTE, 1000)

        assert first_failed_condition([condition], {"other": 1}) == condition

    def test_custom_fails_closed_on_incomparable_types(self):
        condition = Custom("amount", CustomOperator.GT, 10)

        assert first_failed_condition([condition], {"amount": "eleven"}) == condition

    def test_unknown_condition_always_fails(self):
        condition = UnknownCondition("geo_fence", {"type": "geo_fence"})

        assert first_failed_condition([condition], {"anything": True}) == condition

    def test_returns_first_failing_condition_in_order(self):
        conditions = [OwnRecords(), OwnOrganization()]
        context = {"actor_id": "u1", "owner_id": "u1", "org_id": "A", "actor_org_id": "B"}

        assert first_failed_condition(conditions, context) == OwnOrganization()


@pytest.mark.unit
class TestConditionParsing:
    def test_parse_custom_condition(self):
        result = parse_condition(
            {"type": "custom", "value": {"field": "amount", "operator": "lte", "value": 1000}}
        )

        assert isinstance(result, Success)
        assert result.value == Custom("amount", CustomOperator.LTE, 1000)

    def test_parse_rejects_unknown_type(self):
        result = parse_condition({"type": "geo_fence"})

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.INVALID_CONDITION

    def test_parse_rejects_unknown_operator(self):
        result = parse_condition(
            {"type": "custom", "value": {"field": "amount", "operator": "between", "value": 1}}
        )

        assert isinstance(result, Failure)
        assert result.error.details == {"operator": "between"}

    def test_parse_requires_list_for_membership_operators(self):
        result = parse_condition(
            {"type": "custom", "value": {"field": "region", "operator": "in", "value": "eu"}}
        )

        assert isinstance(result, Failure)

    def test_parse_conditions_rejects_conditions_on_unconditional_permission(self):
        result = parse_conditions(
            [{"type": "own_records"}], supports_conditions=False, allowed_types=[]
        )

        assert isinstance(result, Failure)

    def test_parse_conditions_enforces_allowed_types(self):
        result = parse_conditions(
            [{"type": "department"}],
            supports_conditions=True,
            allowed_types=[ConditionType.OWN_ORGANIZATION],
        )

        assert isinstance(result, Failure)
        assert result.error.details == {"type": "department"}

    def test_load_condition_keeps_unknown_types_as_fail_closed_variant(self):
        condition = load_condition({"type": "geo_fence", "radius": 5})

        assert isinstance(condition, UnknownCondition)
        assert condition_to_dict(condition) == {"type": "geo_fence", "radius": 5}

    def test_stored_form_of_department_with_fixed_value(self):
        assert condition_to_dict(Department("d1")) == {"type": "department", "value": "d1"}
        assert condition_to_dict(Department()) == {"type": "department"}
