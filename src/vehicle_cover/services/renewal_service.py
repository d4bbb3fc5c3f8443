# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Renewal workflow.

    Pending -> Approved | Rejected

Only one Pending renewal may exist per premium record; a partial unique index
backs the in-transaction check. Reminders are a side channel on Approved
renewals and can be sent once. The expiry sweep flags paid records whose
coverage ended without an approved renewal.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.cache import Cache
from ..core.database import Database
from ..core.errors import (
    OPEN_RENEWAL_EXISTS,
    REMINDER_ALREADY_SENT,
    DomainError,
    conflict,
    forbidden,
    not_found,
    state_transition_rejected,
)
from ..core.permissions import Operation, authorize, can_access_customer, scoped_customer_id
from ..core.result_types import Err, Ok, Result
from ..models.base import Page, PageRequest
from ..models.notification import MessageType
from ..models.premium import PaymentStatus
from ..models.renewal import (
    ExpirySweepResult,
    Renewal,
    RenewalCreate,
    RenewalDecision,
    RenewalFilter,
    RenewalStatus,
)
from ..models.user import Principal
from .cache_keys import CacheKeys
from .cache_ops import invalidate
from .notifier import Notifier
from .query import WhereBuilder
from .row_mappers import row_to_premium, row_to_renewal
from .sequences import Sequence, next_code

logger = logging.getLogger(__name__)


class RenewalService:
    """Renewal requests, admin decisions, reminders and the expiry sweep."""

    def __init__(
        self,
        db: Database,
        cache: Cache,
        notifier: Notifier,
        expiring_window_days: int = 30,
    ) -> None:
        self._db = db
        self._cache = cache
        self._notifier = notifier
        self._expiring_window_days = expiring_window_days

    @beartype
    async def submit_renewal(
        self, principal: Principal, data: RenewalCreate
    ) -> Result[Renewal, DomainError]:
        auth = authorize(principal, Operation.RENEWAL_SUBMIT)
        if isinstance(auth, Err):
            return auth

        now = datetime.now(timezone.utc)
        try:
            async with self._db.transaction() as conn:
                premium_row = await conn.fetchrow(
                    "SELECT * FROM premiums WHERE id = $1 FOR UPDATE", data.premium_id
                )
                if premium_row is None:
                    return Err(not_found("Premium"))
                premium = row_to_premium(premium_row)
                if not can_access_customer(principal, premium.customer_id):
                    return Err(forbidden("You can only renew your own policies"))
                if premium.payment_status != PaymentStatus.PAID:
                    return Err(
                        state_transition_rejected("Only paid policies can be renewed")
                    )
                if (
                    premium.is_expired
                    or premium.expiry_date is None
                    or premium.expiry_date < now
                ):
                    return Err(
                        state_transition_rejected(
                            "Coverage has already expired; purchase a new policy instead"
                        )
                    )

                open_request = await conn.fetchval(
                    "SELECT 1 FROM renewals WHERE premium_id = $1 AND renewal_status = 'Pending'",
                    premium.id,
                )
                if open_request is not None:
                    return Err(
                        conflict(
                            "A renewal request is already pending for this policy",
                            OPEN_RENEWAL_EXISTS,
                        )
                    )

                renewal_code = await next_code(conn, Sequence.RENEWAL)
                row = await conn.fetchrow(
                    """
                    INSERT INTO renewals (
                        id, renewal_code, premium_id, customer_id, renewal_status,
                        renewal_date, expiry_date, reminder_sent_status,
                        created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, 'Pending', $5, $6, FALSE, $5, $5)
                    RETURNING *
                    """,
                    uuid4(),
                    renewal_code,
                    premium.id,
                    premium.customer_id,
                    now,
                    premium.expiry_date,
                )
        except asyncpg.UniqueViolationError:
            return Err(
                conflict(
                    "A renewal request is already pending for this policy",
                    OPEN_RENEWAL_EXISTS,
                )
            )

        renewal = row_to_renewal(row)
        logger.info("Renewal %s requested for premium %s", renewal.renewal_code, premium.id)
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        await self._notifier.notify(
            renewal.customer_id,
            MessageType.RENEWAL,
            "Renewal requested",
            f"Your renewal request {renewal.renewal_code} has been received.",
            reference=renewal.renewal_code,
        )
        return Ok(renewal)

    @beartype
    async def approve_renewal(
        self, principal: Principal, renewal_id: UUID, decision: RenewalDecision
    ) -> Result[Renewal, DomainError]:
        """Approve a pending renewal. Extending or re-billing coverage is not done here."""
        return await self._decide(principal, renewal_id, decision, RenewalStatus.APPROVED)

    @beartype
    async def reject_renewal(
        self, principal: Principal, renewal_id: UUID, decision: RenewalDecision
    ) -> Result[Renewal, DomainError]:
        return await self._decide(principal, renewal_id, decision, RenewalStatus.REJECTED)

    async def _decide(
        self,
        principal: Principal,
        renewal_id: UUID,
        decision: RenewalDecision,
        outcome: RenewalStatus,
    ) -> Result[Renewal, DomainError]:
        auth = authorize(principal, Operation.RENEWAL_DECIDE)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow("SELECT * FROM renewals WHERE id = $1", renewal_id)
        if row is None:
            return Err(not_found("Renewal"))
        current = RenewalStatus(row["renewal_status"])
        if current != RenewalStatus.PENDING:
            return Err(
                state_transition_rejected(
                    f"Renewal is already {current.value.lower()} and cannot be "
                    f"{outcome.value.lower()}"
                )
            )

        now = datetime.now(timezone.utc)
        updated = await self._db.fetchrow(
            """
            UPDATE renewals
            SET renewal_status = $2, admin_remarks = $3, processed_at = $4, updated_at = $4
            WHERE id = $1 AND renewal_status = 'Pending'
            RETURNING *
            """,
            renewal_id,
            outcome.value,
            decision.admin_remarks,
            now,
        )
        if updated is None:
            return Err(state_transition_rejected("Renewal was decided concurrently"))

        renewal = row_to_renewal(updated)
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        logger.info(
            "Renewal %s %s by %s",
            renewal.renewal_code,
            outcome.value.lower(),
            principal.user_id,
        )
        remarks = f" Remarks: {decision.admin_remarks}" if decision.admin_remarks else ""
        await self._notifier.notify(
            renewal.customer_id,
            MessageType.RENEWAL,
            f"Renewal {outcome.value.lower()}",
            f"Your renewal request {renewal.renewal_code} was {outcome.value.lower()}.{remarks}",
            reference=renewal.renewal_code,
        )
        return Ok(renewal)

    @beartype
    async def send_reminder(
        self, principal: Principal, renewal_id: UUID
    ) -> Result[Renewal, DomainError]:
        """Send the one-off renewal reminder for an approved renewal."""
        auth = authorize(principal, Operation.RENEWAL_REMIND)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow("SELECT * FROM renewals WHERE id = $1", renewal_id)
        if row is None:
            return Err(not_found("Renewal"))
        current = row_to_renewal(row)
        if current.renewal_status != RenewalStatus.APPROVED:
            return Err(
                state_transition_rejected("Reminders can only be sent for approved renewals")
            )
        if current.reminder_sent_status:
            return Err(conflict("Reminder has already been sent", REMINDER_ALREADY_SENT))

        now = datetime.now(timezone.utc)
        updated = await self._db.fetchrow(
            """
            UPDATE renewals
            SET reminder_sent_status = TRUE, reminder_sent_date = $2, updated_at = $2
            WHERE id = $1 AND renewal_status = 'Approved' AND NOT reminder_sent_status
            RETURNING *
            """,
            renewal_id,
            now,
        )
        if updated is None:
            return Err(conflict("Reminder has already been sent", REMINDER_ALREADY_SENT))

        renewal = row_to_renewal(updated)
        await self._notifier.notify(
            renewal.customer_id,
            MessageType.RENEWAL,
            "Renewal reminder",
            f"Your coverage expires on {renewal.expiry_date:%Y-%m-%d}. "
            f"Please complete renewal {renewal.renewal_code}.",
            reference=renewal.renewal_code,
        )
        logger.info("Reminder sent for renewal %s", renewal.renewal_code)
        return Ok(renewal)

    @beartype
    async def mark_expired_policies(
        self, principal: Principal
    ) -> Result[ExpirySweepResult, DomainError]:
        """Manual trigger for the expiry sweep."""
        auth = authorize(principal, Operation.RENEWAL_SWEEP)
        if isinstance(auth, Err):
            return auth
        return Ok(await self.sweep_expired())

    @beartype
    async def sweep_expired(self) -> ExpirySweepResult:
        """Flag paid records past their expiry date that have no approved renewal."""
        now = datetime.now(timezone.utc)
        rows = await self._db.fetch(
            """
            UPDATE premiums p
            SET is_expired = TRUE, updated_at = $1
            WHERE p.payment_status = 'Paid'
              AND NOT p.is_expired
              AND p.expiry_date < $1
              AND NOT EXISTS (
                  SELECT 1 FROM renewals r
                  WHERE r.premium_id = p.id AND r.renewal_status = 'Approved'
              )
            RETURNING p.id, p.customer_id, p.premium_code
            """,
            now,
        )

        for row in rows:
            await self._notifier.notify(
                row["customer_id"],
                MessageType.EXPIRY,
                "Policy expired",
                f"Coverage for {row['premium_code']} has expired.",
                reference=row["premium_code"],
            )
        if rows:
            await invalidate(self._cache, CacheKeys.admin_dashboard())
        logger.info("Expiry sweep flagged %d premium record(s)", len(rows))
        return ExpirySweepResult(
            expired_count=len(rows),
            premium_ids=[row["id"] for row in rows],
            swept_at=now,
        )

    @beartype
    async def get_renewal(
        self, principal: Principal, renewal_id: UUID
    ) -> Result[Renewal, DomainError]:
        auth = authorize(principal, Operation.RENEWAL_VIEW)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow("SELECT * FROM renewals WHERE id = $1", renewal_id)
        if row is None:
            return Err(not_found("Renewal"))
        renewal = row_to_renewal(row)
        if not can_access_customer(principal, renewal.customer_id):
            return Err(not_found("Renewal"))
        return Ok(renewal)

    @beartype
    async def list_renewals(
        self, principal: Principal, filters: RenewalFilter, page: PageRequest
    ) -> Result[Page[Renewal], DomainError]:
        auth = authorize(principal, Operation.RENEWAL_VIEW)
        if isinstance(auth, Err):
            return auth

        where = WhereBuilder()
        where.add_if(scoped_customer_id(principal, filters.customer_id), "customer_id = {}")
        if filters.renewal_status is not None:
            where.add("renewal_status = {}", filters.renewal_status.value)
        return Ok(await self._page(where, page, "renewal_date DESC"))

    @beartype
    async def get_expiring_renewals(
        self, principal: Principal, page: PageRequest, days: int | None = None
    ) -> Result[Page[Renewal], DomainError]:
        """Approved renewals whose coverage ends within ``days`` days."""
        auth = authorize(principal, Operation.RENEWAL_VIEW)
        if isinstance(auth, Err):
            return auth

        now = datetime.now(timezone.utc)
        horizon = now + timedelta(days=days or self._expiring_window_days)
        where = WhereBuilder()
        where.add_if(scoped_customer_id(principal, None), "customer_id = {}")
        where.add("renewal_status = 'Approved'")
        where.add("expiry_date BETWEEN {} AND {}", now, horizon)
        return Ok(await self._page(where, page, "expiry_date ASC"))

    async def _page(
        self, where: WhereBuilder, page: PageRequest, order: str
    ) -> Page[Renewal]:
        total = await self._db.fetchval(
            f"SELECT COUNT(*) FROM renewals WHERE {where.sql}", *where.params
        )
        limit_sql, params = where.paged(page)
        rows = await self._db.fetch(
            f"SELECT * FROM renewals WHERE {where.sql} ORDER BY {order} {limit_sql}",
            *params,
        )
        return Page[Renewal](
            items=[row_to_renewal(row) for row in rows],
            total=int(total or 0),
            page=page.page,
            limit=page.limit,
        )
