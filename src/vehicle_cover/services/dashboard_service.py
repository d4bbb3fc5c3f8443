# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Read-only rollups for the admin and customer dashboards."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from beartype import beartype

from ..core.cache import Cache
from ..core.database import Database
from ..core.errors import DomainError
from ..core.permissions import Operation, authorize
from ..core.result_types import Err, Ok, Result
from ..models.dashboard import AdminDashboard, CustomerDashboard
from ..models.user import Principal
from .cache_keys import CacheKeys
from .cache_ops import cached_get, cached_set


class DashboardService:
    def __init__(self, db: Database, cache: Cache, expiring_window_days: int = 30) -> None:
        self._db = db
        self._cache = cache
        self._expiring_window_days = expiring_window_days

    @beartype
    async def admin_dashboard(
        self, principal: Principal
    ) -> Result[AdminDashboard, DomainError]:
        auth = authorize(principal, Operation.DASHBOARD_ADMIN)
        if isinstance(auth, Err):
            return auth

        cached = await cached_get(self._cache, CacheKeys.admin_dashboard())
        if cached:
            return Ok(AdminDashboard.model_validate(cached))

        row = await self._db.fetchrow(
            """
            SELECT
                (SELECT COUNT(*) FROM customers) AS total_customers,
                (SELECT COUNT(*) FROM customers WHERE is_active) AS active_customers,
                (SELECT COUNT(*) FROM policies) AS total_policies,
                (SELECT COUNT(*) FROM policies WHERE is_active) AS active_policies,
                (SELECT COUNT(*) FROM premiums
                 WHERE payment_status = 'Paid' AND NOT is_expired) AS active_coverages,
                (SELECT COUNT(*) FROM premiums
                 WHERE payment_status = 'Pending') AS pending_payments,
                (SELECT COALESCE(SUM(calculated_amount), 0) FROM premiums
                 WHERE payment_status = 'Paid') AS premium_collected,
                (SELECT COALESCE(SUM(claim_amount), 0) FROM claims
                 WHERE claim_status = 'Approved') AS claims_paid,
                (SELECT COUNT(*) FROM claims
                 WHERE claim_status IN ('Pending', 'Under-Review')) AS pending_claims,
                (SELECT COUNT(*) FROM renewals
                 WHERE renewal_status = 'Pending') AS pending_renewals
            """
        )
        dashboard = AdminDashboard(
            total_customers=int(row["total_customers"]),
            active_customers=int(row["active_customers"]),
            total_policies=int(row["total_policies"]),
            active_policies=int(row["active_policies"]),
            active_coverages=int(row["active_coverages"]),
            pending_payments=int(row["pending_payments"]),
            premium_collected=Decimal(row["premium_collected"]),
            claims_paid=Decimal(row["claims_paid"]),
            pending_claims=int(row["pending_claims"]),
            pending_renewals=int(row["pending_renewals"]),
        )
        await cached_set(
            self._cache,
            CacheKeys.admin_dashboard(),
            dashboard.model_dump(mode="json"),
            CacheKeys.DASHBOARD_TTL,
        )
        return Ok(dashboard)

    @beartype
    async def customer_dashboard(
        self, principal: Principal
    ) -> Result[CustomerDashboard, DomainError]:
        """Own figures only, read live."""
        auth = authorize(principal, Operation.DASHBOARD_CUSTOMER)
        if isinstance(auth, Err):
            return auth

        now = datetime.now(timezone.utc)
        row = await self._db.fetchrow(
            """
            SELECT
                (SELECT COUNT(*) FROM vehicles
                 WHERE customer_id = $1 AND deleted_at IS NULL) AS vehicles,
                (SELECT COUNT(*) FROM premiums
                 WHERE customer_id = $1 AND payment_status = 'Paid'
                   AND NOT is_expired) AS active_policies,
                (SELECT COUNT(*) FROM premiums
                 WHERE customer_id = $1 AND payment_status = 'Pending') AS pending_payments,
                (SELECT COALESCE(SUM(calculated_amount), 0) FROM premiums
                 WHERE customer_id = $1 AND payment_status = 'Paid') AS total_premium_paid,
                (SELECT COUNT(*) FROM claims
                 WHERE customer_id = $1
                   AND claim_status IN ('Pending', 'Under-Review')) AS open_claims,
                (SELECT COUNT(*) FROM renewals
                 WHERE customer_id = $1 AND renewal_status = 'Pending') AS pending_renewals,
                (SELECT COUNT(*) FROM premiums
                 WHERE customer_id = $1 AND payment_status = 'Paid' AND NOT is_expired
                   AND expiry_date BETWEEN $2 AND $3) AS expiring_soon
            """,
            principal.customer_id,
            now,
            now + timedelta(days=self._expiring_window_days),
        )
        return Ok(
            CustomerDashboard(
                vehicles=int(row["vehicles"]),
                active_policies=int(row["active_policies"]),
                pending_payments=int(row["pending_payments"]),
                total_premium_paid=Decimal(row["total_premium_paid"]),
                open_claims=int(row["open_claims"]),
                pending_renewals=int(row["pending_renewals"]),
                expiring_soon=int(row["expiring_soon"]),
            )
        )
