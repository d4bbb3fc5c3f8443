# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Premium record lifecycle: quote, purchase and payment.

    Quoted (not stored) -> Pending -> Paid -> Expired (flag set by the sweep)

Purchase re-prices inside the same transaction that inserts the record, so
the stored breakdown is exactly what the caller gets back. Payment is a
conditional update on ``payment_status = 'Pending'``; of two concurrent
payments exactly one wins and the other sees ``ALREADY_PAID``.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.cache import Cache
from ..core.database import Database
from ..core.errors import (
    ALREADY_PAID,
    DUPLICATE_PURCHASE,
    DomainError,
    conflict,
    forbidden,
    not_found,
    state_transition_rejected,
    validation_error,
)
from ..core.permissions import Operation, authorize, can_access_customer, scoped_customer_id
from ..core.result_types import Err, Ok, Result
from ..models.base import Page, PageRequest
from ..models.notification import MessageType
from ..models.policy import CoverageType
from ..models.premium import (
    PaymentRequest,
    PaymentStatus,
    PremiumBreakdown,
    PremiumFilter,
    PremiumQuoteRequest,
    PremiumRecord,
    PurchaseRequest,
    add_months,
)
from ..models.user import Principal
from .cache_keys import CacheKeys
from .cache_ops import invalidate
from .notifier import Notifier
from .premium_calculator import PremiumCalculator
from .query import WhereBuilder
from .row_mappers import row_to_policy, row_to_premium, row_to_vehicle
from .sequences import Sequence, generate_transaction_id, next_code

logger = logging.getLogger(__name__)

_ACTIVE_VEHICLE = "SELECT * FROM vehicles WHERE id = $1 AND deleted_at IS NULL"


class PremiumService:
    """Prices, sells and collects payment for policies."""

    def __init__(
        self,
        db: Database,
        cache: Cache,
        notifier: Notifier,
        calculator: PremiumCalculator,
    ) -> None:
        self._db = db
        self._cache = cache
        self._notifier = notifier
        self._calculator = calculator

    @beartype
    async def quote(
        self, principal: Principal, request: PremiumQuoteRequest
    ) -> Result[PremiumBreakdown, DomainError]:
        """Preview the premium. Nothing is stored."""
        auth = authorize(principal, Operation.PREMIUM_QUOTE)
        if isinstance(auth, Err):
            return auth

        policy_row = await self._db.fetchrow(
            "SELECT * FROM policies WHERE id = $1", request.policy_id
        )
        if policy_row is None:
            return Err(not_found("Policy"))
        vehicle_row = await self._db.fetchrow(_ACTIVE_VEHICLE, request.vehicle_id)
        if vehicle_row is None:
            return Err(not_found("Vehicle"))

        vehicle = row_to_vehicle(vehicle_row)
        if not can_access_customer(principal, vehicle.customer_id):
            return Err(forbidden("You can only price your own vehicles"))

        return self._calculator.calculate(
            row_to_policy(policy_row), vehicle, request.coverage_type
        )

    @beartype
    async def purchase(
        self, principal: Principal, policy_id: UUID, request: PurchaseRequest
    ) -> Result[PremiumRecord, DomainError]:
        """Create a Pending premium record with a freshly computed price."""
        auth = authorize(principal, Operation.PREMIUM_PURCHASE)
        if isinstance(auth, Err):
            return auth

        try:
            async with self._db.transaction() as conn:
                policy_row = await conn.fetchrow(
                    "SELECT * FROM policies WHERE id = $1", policy_id
                )
                if policy_row is None:
                    return Err(not_found("Policy"))
                vehicle_row = await conn.fetchrow(
                    _ACTIVE_VEHICLE + " FOR UPDATE", request.vehicle_id
                )
                if vehicle_row is None:
                    return Err(not_found("Vehicle"))

                vehicle = row_to_vehicle(vehicle_row)
                if not can_access_customer(principal, vehicle.customer_id):
                    return Err(forbidden("You can only insure your own vehicles"))

                customer_active = await conn.fetchval(
                    "SELECT is_active FROM customers WHERE id = $1", vehicle.customer_id
                )
                if not customer_active:
                    return Err(validation_error("Customer account is inactive"))

                policy = row_to_policy(policy_row)
                priced = self._calculator.calculate(policy, vehicle, request.coverage_type)
                if isinstance(priced, Err):
                    return priced
                breakdown = priced.unwrap()

                duplicate = await self._check_duplicates(
                    conn, vehicle.id, policy.id, breakdown.coverage_type
                )
                if duplicate is not None:
                    return Err(duplicate)

                premium_code = await next_code(conn, Sequence.PREMIUM)
                now = datetime.now(timezone.utc)
                row = await conn.fetchrow(
                    """
                    INSERT INTO premiums (
                        id, premium_code, customer_id, vehicle_id, policy_id,
                        coverage_type, calculated_amount, payment_status,
                        calculation_breakdown, policy_duration_months,
                        is_expired, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, 'Pending', $8, $9, FALSE, $10, $10)
                    RETURNING *
                    """,
                    uuid4(),
                    premium_code,
                    vehicle.customer_id,
                    vehicle.id,
                    policy.id,
                    breakdown.coverage_type.value,
                    breakdown.final_amount,
                    breakdown.model_dump(mode="json"),
                    policy.policy_duration_months,
                    now,
                )
        except asyncpg.UniqueViolationError:
            return Err(
                conflict(
                    "A pending purchase already exists for this vehicle and policy",
                    DUPLICATE_PURCHASE,
                )
            )

        record = row_to_premium(row)
        logger.info(
            "Premium %s created: policy=%s vehicle=%s amount=%s",
            record.premium_code,
            policy_id,
            request.vehicle_id,
            record.calculated_amount,
        )
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        return Ok(record)

    async def _check_duplicates(
        self,
        conn: asyncpg.Connection,
        vehicle_id: UUID,
        policy_id: UUID,
        coverage_type: CoverageType,
    ) -> DomainError | None:
        existing_status = await conn.fetchval(
            """
            SELECT payment_status FROM premiums
            WHERE vehicle_id = $1 AND policy_id = $2
              AND payment_status IN ('Pending', 'Paid') AND NOT is_expired
            ORDER BY payment_status DESC
            LIMIT 1
            """,
            vehicle_id,
            policy_id,
        )
        if existing_status == PaymentStatus.PENDING.value:
            return conflict(
                "A pending purchase already exists for this vehicle and policy",
                DUPLICATE_PURCHASE,
            )
        if existing_status == PaymentStatus.PAID.value:
            return conflict(
                "This vehicle already holds this policy; request a renewal instead",
                DUPLICATE_PURCHASE,
            )

        same_coverage = await conn.fetchval(
            """
            SELECT 1 FROM premiums
            WHERE vehicle_id = $1 AND coverage_type = $2
              AND payment_status = 'Paid' AND NOT is_expired
            LIMIT 1
            """,
            vehicle_id,
            coverage_type.value,
        )
        if same_coverage is not None:
            return conflict(
                f"This vehicle already has active {coverage_type.value} coverage; "
                "request a renewal instead",
                DUPLICATE_PURCHASE,
            )
        return None

    @beartype
    async def pay(
        self, principal: Principal, premium_id: UUID, request: PaymentRequest
    ) -> Result[PremiumRecord, DomainError]:
        """Record a successful payment and open the coverage window."""
        auth = authorize(principal, Operation.PREMIUM_PAY)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow("SELECT * FROM premiums WHERE id = $1", premium_id)
        if row is None:
            return Err(not_found("Premium"))
        current = row_to_premium(row)
        if not can_access_customer(principal, current.customer_id):
            return Err(forbidden("You can only pay for your own premiums"))
        if current.payment_status == PaymentStatus.PAID:
            return Err(conflict("Premium has already been paid", ALREADY_PAID))
        if current.payment_status != PaymentStatus.PENDING:
            return Err(
                state_transition_rejected(
                    f"Cannot pay a premium in {current.payment_status.value} state"
                )
            )

        paid_at = datetime.now(timezone.utc)
        transaction_id = request.transaction_id or generate_transaction_id()
        try:
            updated = await self._db.fetchrow(
                """
                UPDATE premiums
                SET payment_status = 'Paid', payment_date = $2, transaction_id = $3,
                    expiry_date = $4, updated_at = $2
                WHERE id = $1 AND payment_status = 'Pending'
                RETURNING *
                """,
                premium_id,
                paid_at,
                transaction_id,
                add_months(paid_at, current.policy_duration_months),
            )
        except asyncpg.UniqueViolationError:
            return Err(conflict("Transaction ID has already been recorded"))
        if updated is None:
            return Err(conflict("Premium has already been paid", ALREADY_PAID))

        record = row_to_premium(updated)
        await invalidate(self._cache, CacheKeys.admin_dashboard(), CacheKeys.policy_stats())
        logger.info(
            "Premium %s paid (transaction %s)", record.premium_code, record.transaction_id
        )
        await self._notifier.notify(
            record.customer_id,
            MessageType.PAYMENT,
            "Payment received",
            f"Payment of {record.calculated_amount} for {record.premium_code} confirmed. "
            f"Coverage is valid until {record.expiry_date:%Y-%m-%d}.",
            reference=record.premium_code,
        )
        return Ok(record)

    @beartype
    async def get_premium(
        self, principal: Principal, premium_id: UUID
    ) -> Result[PremiumRecord, DomainError]:
        auth = authorize(principal, Operation.PREMIUM_VIEW)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow("SELECT * FROM premiums WHERE id = $1", premium_id)
        if row is None:
            return Err(not_found("Premium"))
        record = row_to_premium(row)
        if not can_access_customer(principal, record.customer_id):
            return Err(not_found("Premium"))
        return Ok(record)

    @beartype
    async def list_premiums(
        self, principal: Principal, filters: PremiumFilter, page: PageRequest
    ) -> Result[Page[PremiumRecord], DomainError]:
        auth = authorize(principal, Operation.PREMIUM_VIEW)
        if isinstance(auth, Err):
            return auth

        where = WhereBuilder()
        where.add_if(scoped_customer_id(principal, filters.customer_id), "customer_id = {}")
        if filters.payment_status is not None:
            where.add("payment_status = {}", filters.payment_status.value)
        where.add_if(filters.expired, "is_expired = {}")

        total = await self._db.fetchval(
            f"SELECT COUNT(*) FROM premiums WHERE {where.sql}", *where.params
        )
        limit_sql, params = where.paged(page)
        rows = await self._db.fetch(
            f"SELECT * FROM premiums WHERE {where.sql} ORDER BY created_at DESC {limit_sql}",
            *params,
        )
        return Ok(
            Page[PremiumRecord](
                items=[row_to_premium(row) for row in rows],
                total=int(total or 0),
                page=page.page,
                limit=page.limit,
            )
        )
