"""Unit tests for the role permission table."""

from uuid import uuid4

import pytest

from vehicle_cover.core.errors import ErrorKind
from vehicle_cover.core.permissions import (
    PERMISSION_TABLE,
    Operation,
    authorize,
    can_access_customer,
    is_allowed,
    scoped_customer_id,
)
from vehicle_cover.core.result_types import Err, Ok
from vehicle_cover.models.user import Principal, Role


class TestPermissionTable:
    def test_every_operation_has_an_entry(self) -> None:
        assert set(PERMISSION_TABLE) == set(Operation)

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PERMISSION_TABLE[Operation.POLICY_VIEW] = frozenset()  # type: ignore[index]

    @pytest.mark.parametrize(
        ("role", "operation", "expected"),
        [
            (Role.ADMIN, Operation.POLICY_MANAGE, True),
            (Role.STAFF, Operation.POLICY_MANAGE, False),
            (Role.CUSTOMER, Operation.POLICY_MANAGE, False),
            (Role.CUSTOMER, Operation.POLICY_VIEW, True),
            (Role.STAFF, Operation.POLICY_STATS, True),
            (Role.CUSTOMER, Operation.POLICY_STATS, False),
            (Role.ADMIN, Operation.CLAIM_PROCESS, True),
            (Role.STAFF, Operation.CLAIM_PROCESS, False),
            (Role.ADMIN, Operation.RENEWAL_DECIDE, True),
            (Role.STAFF, Operation.RENEWAL_DECIDE, False),
            (Role.STAFF, Operation.RENEWAL_REMIND, True),
            (Role.CUSTOMER, Operation.RENEWAL_REMIND, False),
            (Role.STAFF, Operation.CUSTOMER_REGISTER, True),
            (Role.CUSTOMER, Operation.CUSTOMER_LIST, False),
            (Role.CUSTOMER, Operation.CUSTOMER_UPDATE, True),
            (Role.STAFF, Operation.CUSTOMER_UPDATE, False),
            (Role.ADMIN, Operation.CUSTOMER_UPDATE, True),
            (Role.STAFF, Operation.CUSTOMER_STATS, True),
            (Role.CUSTOMER, Operation.VEHICLE_STATS, False),
            (Role.CUSTOMER, Operation.DASHBOARD_CUSTOMER, True),
            (Role.ADMIN, Operation.DASHBOARD_CUSTOMER, False),
            (Role.CUSTOMER, Operation.DASHBOARD_ADMIN, False),
        ],
    )
    def test_is_allowed(self, role: Role, operation: Operation, expected: bool) -> None:
        assert is_allowed(role, operation) is expected


class TestAuthorize:
    def test_allowed_role_gets_ok(self, admin_principal: Principal) -> None:
        assert isinstance(authorize(admin_principal, Operation.CLAIM_PROCESS), Ok)

    def test_denied_role_gets_forbidden(self, customer_principal: Principal) -> None:
        result = authorize(customer_principal, Operation.CLAIM_PROCESS)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.FORBIDDEN
        assert "claim:process" in result.error.message


class TestOwnership:
    def test_customer_sees_only_itself(self, customer_principal: Principal) -> None:
        assert can_access_customer(customer_principal, customer_principal.customer_id)
        assert not can_access_customer(customer_principal, uuid4())

    def test_staff_sees_everyone(self, staff_principal: Principal) -> None:
        assert can_access_customer(staff_principal, uuid4())

    def test_customer_scope_ignores_requested_filter(
        self, customer_principal: Principal
    ) -> None:
        assert scoped_customer_id(customer_principal, uuid4()) == customer_principal.customer_id

    def test_staff_scope_follows_requested_filter(self, staff_principal: Principal) -> None:
        requested = uuid4()

        assert scoped_customer_id(staff_principal, requested) == requested
        assert scoped_customer_id(staff_principal, None) is None
