# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Claim workflow.

    Pending -> Under-Review (optional) -> Approved | Rejected

Approved and Rejected are terminal. ``claim_amount`` is set only when a claim
is approved and may not exceed the policy base amount times the configured
payout multiplier.
"""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.cache import Cache
from ..core.database import Database
from ..core.errors import (
    CLAIM_ALREADY_FINALIZED,
    OPEN_CLAIM_EXISTS,
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
from ..models.claim import (
    CLAIM_REASON_MAX_LENGTH,
    CLAIM_REASON_MIN_LENGTH,
    Claim,
    ClaimCreate,
    ClaimFilter,
    ClaimProcess,
    ClaimStatus,
)
from ..models.notification import MessageType
from ..models.premium import PaymentStatus
from ..models.user import Principal
from .cache_keys import CacheKeys
from .cache_ops import invalidate
from .notifier import Notifier
from .query import WhereBuilder
from .row_mappers import row_to_claim, row_to_premium
from .sequences import Sequence, next_code

logger = logging.getLogger(__name__)


class ClaimService:
    """Claim submission and processing."""

    def __init__(
        self,
        db: Database,
        cache: Cache,
        notifier: Notifier,
        payout_cap_multiplier: float = 1.0,
    ) -> None:
        self._db = db
        self._cache = cache
        self._notifier = notifier
        self._payout_cap_multiplier = Decimal(str(payout_cap_multiplier))

    @beartype
    async def submit_claim(
        self, principal: Principal, data: ClaimCreate
    ) -> Result[Claim, DomainError]:
        auth = authorize(principal, Operation.CLAIM_SUBMIT)
        if isinstance(auth, Err):
            return auth

        reason = data.claim_reason.strip()
        if len(reason) < CLAIM_REASON_MIN_LENGTH:
            return Err(
                validation_error(f"Minimum {CLAIM_REASON_MIN_LENGTH} characters required")
            )
        if len(reason) > CLAIM_REASON_MAX_LENGTH:
            return Err(
                validation_error(f"Maximum {CLAIM_REASON_MAX_LENGTH} characters allowed")
            )

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
                    return Err(forbidden("You can only claim against your own policies"))
                if (
                    premium.payment_status != PaymentStatus.PAID
                    or premium.is_expired
                    or premium.expiry_date is None
                    or premium.expiry_date < now
                ):
                    return Err(
                        state_transition_rejected(
                            "Claims can only be filed against an active, paid policy"
                        )
                    )
                if (
                    premium.policy_id != data.policy_id
                    or premium.vehicle_id != data.vehicle_id
                ):
                    return Err(
                        validation_error("Policy and vehicle do not match the premium record")
                    )

                open_claim = await conn.fetchval(
                    """
                    SELECT 1 FROM claims
                    WHERE premium_id = $1 AND claim_status IN ('Pending', 'Under-Review')
                    """,
                    premium.id,
                )
                if open_claim is not None:
                    return Err(
                        conflict("An open claim already exists for this policy", OPEN_CLAIM_EXISTS)
                    )

                claim_code = await next_code(conn, Sequence.CLAIM)
                row = await conn.fetchrow(
                    """
                    INSERT INTO claims (
                        id, claim_code, premium_id, customer_id, vehicle_id, policy_id,
                        claim_status, claim_reason, claim_date, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, 'Pending', $7, $8, $8, $8)
                    RETURNING *
                    """,
                    uuid4(),
                    claim_code,
                    premium.id,
                    premium.customer_id,
                    premium.vehicle_id,
                    premium.policy_id,
                    reason,
                    now,
                )
        except asyncpg.UniqueViolationError:
            return Err(
                conflict("An open claim already exists for this policy", OPEN_CLAIM_EXISTS)
            )

        claim = row_to_claim(row)
        logger.info("Claim %s submitted against premium %s", claim.claim_code, premium.id)
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        await self._notifier.notify(
            claim.customer_id,
            MessageType.CLAIM_UPDATE,
            "Claim submitted",
            f"Your claim {claim.claim_code} has been received and is pending review.",
            reference=claim.claim_code,
        )
        return Ok(claim)

    @beartype
    async def process_claim(
        self, principal: Principal, claim_id: UUID, data: ClaimProcess
    ) -> Result[Claim, DomainError]:
        """Move a claim forward. Terminal claims reject every further call."""
        auth = authorize(principal, Operation.CLAIM_PROCESS)
        if isinstance(auth, Err):
            return auth

        if data.claim_status == ClaimStatus.PENDING:
            return Err(validation_error("A claim cannot be moved back to Pending"))
        if data.claim_status == ClaimStatus.APPROVED:
            if data.claim_amount is None or data.claim_amount <= 0:
                return Err(
                    validation_error("A positive claim amount is required for approval")
                )
        elif data.claim_amount is not None:
            return Err(validation_error("Claim amount can only be set when approving"))

        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                """
                SELECT c.*, p.base_amount AS policy_base_amount
                FROM claims c
                JOIN policies p ON p.id = c.policy_id
                WHERE c.id = $1
                FOR UPDATE OF c
                """,
                claim_id,
            )
            if row is None:
                return Err(not_found("Claim"))

            current = ClaimStatus(row["claim_status"])
            if current.is_terminal:
                return Err(
                    state_transition_rejected(
                        f"Claim has already been {current.value.lower()}",
                        CLAIM_ALREADY_FINALIZED,
                    )
                )
            if current == data.claim_status:
                return Err(state_transition_rejected(f"Claim is already {current.value}"))

            amount = None
            if data.claim_status == ClaimStatus.APPROVED:
                cap = (Decimal(row["policy_base_amount"]) * self._payout_cap_multiplier).quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                )
                if data.claim_amount > cap:
                    return Err(
                        validation_error(f"Claim amount exceeds the maximum payout of {cap}")
                    )
                amount = data.claim_amount

            now = datetime.now(timezone.utc)
            updated = await conn.fetchrow(
                """
                UPDATE claims
                SET claim_status = $2, claim_amount = $3, admin_remarks = $4,
                    processed_date = $5, updated_at = $5
                WHERE id = $1 AND claim_status IN ('Pending', 'Under-Review')
                RETURNING *
                """,
                claim_id,
                data.claim_status.value,
                amount,
                data.admin_remarks,
                now,
            )
            if updated is None:
                return Err(
                    state_transition_rejected(
                        "Claim has already been finalized", CLAIM_ALREADY_FINALIZED
                    )
                )

        claim = row_to_claim(updated)
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        logger.info(
            "Claim %s moved %s -> %s by %s",
            claim.claim_code,
            current.value,
            claim.claim_status.value,
            principal.user_id,
        )
        detail = f" Approved amount: {claim.claim_amount}." if claim.claim_amount else ""
        await self._notifier.notify(
            claim.customer_id,
            MessageType.CLAIM_UPDATE,
            f"Claim {claim.claim_status.value}",
            f"Your claim {claim.claim_code} is now {claim.claim_status.value}.{detail}",
            reference=claim.claim_code,
        )
        return Ok(claim)

    @beartype
    async def get_claim(
        self, principal: Principal, claim_id: UUID
    ) -> Result[Claim, DomainError]:
        auth = authorize(principal, Operation.CLAIM_VIEW)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow("SELECT * FROM claims WHERE id = $1", claim_id)
        if row is None:
            return Err(not_found("Claim"))
        claim = row_to_claim(row)
        if not can_access_customer(principal, claim.customer_id):
            return Err(not_found("Claim"))
        return Ok(claim)

    @beartype
    async def list_claims(
        self, principal: Principal, filters: ClaimFilter, page: PageRequest
    ) -> Result[Page[Claim], DomainError]:
        auth = authorize(principal, Operation.CLAIM_VIEW)
        if isinstance(auth, Err):
            return auth

        where = WhereBuilder()
        where.add_if(scoped_customer_id(principal, filters.customer_id), "customer_id = {}")
        if filters.claim_status is not None:
            where.add("claim_status = {}", filters.claim_status.value)

        total = await self._db.fetchval(
            f"SELECT COUNT(*) FROM claims WHERE {where.sql}", *where.params
        )
        limit_sql, params = where.paged(page)
        rows = await self._db.fetch(
            f"SELECT * FROM claims WHERE {where.sql} ORDER BY claim_date DESC {limit_sql}",
            *params,
        )
        return Ok(
            Page[Claim](
                items=[row_to_claim(row) for row in rows],
                total=int(total or 0),
                page=page.page,
                limit=page.limit,
            )
        )
