# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Role-based access control.

One table maps each operation to the roles allowed to run it. Services call
:func:`authorize` first thing; ownership of customer data is checked
separately with :func:`can_access_customer`.
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from uuid import UUID

from beartype import beartype

from ..models.user import Principal, Role
from .errors import DomainError, forbidden
from .result_types import Err, Ok, Result


class Operation(str, Enum):
    """Operations guarded by the permission table."""

    POLICY_VIEW = "policy:view"
    POLICY_MANAGE = "policy:manage"
    POLICY_STATS = "policy:stats"
    PREMIUM_QUOTE = "premium:quote"
    PREMIUM_PURCHASE = "premium:purchase"
    PREMIUM_PAY = "premium:pay"
    PREMIUM_VIEW = "premium:view"
    RENEWAL_SUBMIT = "renewal:submit"
    RENEWAL_VIEW = "renewal:view"
    RENEWAL_DECIDE = "renewal:decide"
    RENEWAL_REMIND = "renewal:remind"
    RENEWAL_SWEEP = "renewal:sweep"
    CLAIM_SUBMIT = "claim:submit"
    CLAIM_VIEW = "claim:view"
    CLAIM_PROCESS = "claim:process"
    VEHICLE_MANAGE = "vehicle:manage"
    VEHICLE_VIEW = "vehicle:view"
    VEHICLE_STATS = "vehicle:stats"
    CUSTOMER_REGISTER = "customer:register"
    CUSTOMER_VIEW = "customer:view"
    CUSTOMER_LIST = "customer:list"
    CUSTOMER_UPDATE = "customer:update"
    CUSTOMER_STATS = "customer:stats"
    CUSTOMER_TOGGLE = "customer:toggle"
    STAFF_ACCOUNT_CREATE = "staff:create"
    DASHBOARD_ADMIN = "dashboard:admin"
    DASHBOARD_CUSTOMER = "dashboard:customer"


_ALL = frozenset(Role)
_STAFF = frozenset({Role.STAFF, Role.ADMIN})
_ADMIN = frozenset({Role.ADMIN})
_ADMIN_OR_SELF = frozenset({Role.ADMIN, Role.CUSTOMER})
_CUSTOMER = frozenset({Role.CUSTOMER})

PERMISSION_TABLE: Mapping[Operation, frozenset[Role]] = MappingProxyType(
    {
        Operation.POLICY_VIEW: _ALL,
        Operation.POLICY_MANAGE: _ADMIN,
        Operation.POLICY_STATS: _STAFF,
        Operation.PREMIUM_QUOTE: _ALL,
        Operation.PREMIUM_PURCHASE: _ALL,
        Operation.PREMIUM_PAY: _ALL,
        Operation.PREMIUM_VIEW: _ALL,
        Operation.RENEWAL_SUBMIT: _ALL,
        Operation.RENEWAL_VIEW: _ALL,
        Operation.RENEWAL_DECIDE: _ADMIN,
        Operation.RENEWAL_REMIND: _STAFF,
        Operation.RENEWAL_SWEEP: _ADMIN,
        Operation.CLAIM_SUBMIT: _ALL,
        Operation.CLAIM_VIEW: _ALL,
        Operation.CLAIM_PROCESS: _ADMIN,
        Operation.VEHICLE_MANAGE: _ALL,
        Operation.VEHICLE_VIEW: _ALL,
        Operation.VEHICLE_STATS: _STAFF,
        Operation.CUSTOMER_REGISTER: _STAFF,
        Operation.CUSTOMER_VIEW: _ALL,
        Operation.CUSTOMER_LIST: _STAFF,
        Operation.CUSTOMER_UPDATE: _ADMIN_OR_SELF,
        Operation.CUSTOMER_STATS: _STAFF,
        Operation.CUSTOMER_TOGGLE: _ADMIN,
        Operation.STAFF_ACCOUNT_CREATE: _ADMIN,
        Operation.DASHBOARD_ADMIN: _STAFF,
        Operation.DASHBOARD_CUSTOMER: _CUSTOMER,
    }
)


@beartype
def is_allowed(role: Role, operation: Operation) -> bool:
    return role in PERMISSION_TABLE.get(operation, frozenset())


@beartype
def authorize(principal: Principal, operation: Operation) -> Result[None, DomainError]:
    """Check the permission table for ``principal``'s role."""
    if not is_allowed(principal.role, operation):
        return Err(forbidden(f"Role {principal.role.value} may not perform {operation.value}"))
    return Ok(None)


@beartype
def can_access_customer(principal: Principal, customer_id: UUID) -> bool:
    """Staff and Admin see every customer; customers only themselves."""
    return principal.is_staff or principal.customer_id == customer_id


@beartype
def scoped_customer_id(principal: Principal, requested: UUID | None) -> UUID | None:
    """Customer filter to apply to a list query.

    Customers are always pinned to their own id; staff may narrow to any
    customer or see everyone.
    """
    if principal.is_staff:
        return requested
    return principal.customer_id
