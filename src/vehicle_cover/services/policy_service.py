# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Policy catalogue service."""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.cache import Cache
from ..core.database import Database
from ..core.errors import DomainError, conflict, not_found
from ..core.permissions import Operation, authorize
from ..core.result_types import Err, Ok, Result
from ..models.base import Page, PageRequest
from ..models.policy import Policy, PolicyCreate, PolicyFilter, PolicyStats, PolicyUpdate
from ..models.user import Principal
from .cache_keys import CacheKeys
from .cache_ops import cached_get, cached_set, invalidate
from .query import WhereBuilder
from .row_mappers import row_to_policy
from .sequences import Sequence, next_code

logger = logging.getLogger(__name__)


class PolicyService:
    """Create, edit, deactivate and browse insurance policies."""

    def __init__(self, db: Database, cache: Cache) -> None:
        self._db = db
        self._cache = cache

    @beartype
    async def create_policy(
        self, principal: Principal, data: PolicyCreate
    ) -> Result[Policy, DomainError]:
        auth = authorize(principal, Operation.POLICY_MANAGE)
        if isinstance(auth, Err):
            return auth

        if await self._name_taken(data.name):
            return Err(conflict(f"A policy named '{data.name}' already exists"))

        now = datetime.now(timezone.utc)
        try:
            async with self._db.transaction() as conn:
                policy_code = await next_code(conn, Sequence.POLICY)
                row = await conn.fetchrow(
                    """
                    INSERT INTO policies (
                        id, policy_code, name, description, coverage_type,
                        base_amount, policy_duration_months, is_active,
                        premium_rules, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, TRUE, $8, $9, $9)
                    RETURNING *
                    """,
                    uuid4(),
                    policy_code,
                    data.name,
                    data.description,
                    data.coverage_type.value,
                    data.base_amount,
                    data.policy_duration_months,
                    data.premium_rules.model_dump(mode="json"),
                    now,
                )
        except asyncpg.UniqueViolationError:
            return Err(conflict(f"A policy named '{data.name}' already exists"))

        policy = row_to_policy(row)
        await invalidate(
            self._cache, CacheKeys.policy_stats(), CacheKeys.admin_dashboard()
        )
        logger.info("Policy %s created by %s", policy.policy_code, principal.user_id)
        return Ok(policy)

    @beartype
    async def get_policy(
        self, principal: Principal, policy_id: UUID
    ) -> Result[Policy, DomainError]:
        """Customers only see active policies; inactive ones read as missing."""
        auth = authorize(principal, Operation.POLICY_VIEW)
        if isinstance(auth, Err):
            return auth

        policy = await self._load_policy(policy_id)
        if policy is None or (not policy.is_active and not principal.is_staff):
            return Err(not_found("Policy"))
        return Ok(policy)

    @beartype
    async def list_policies(
        self,
        principal: Principal,
        filters: PolicyFilter,
        page: PageRequest,
    ) -> Result[Page[Policy], DomainError]:
        auth = authorize(principal, Operation.POLICY_VIEW)
        if isinstance(auth, Err):
            return auth

        where = WhereBuilder()
        if not principal.is_staff:
            where.add("is_active = TRUE")
        else:
            where.add_if(filters.is_active, "is_active = {}")
        if filters.search:
            where.add("(name ILIKE {0} OR description ILIKE {0})", f"%{filters.search}%")
        if filters.coverage_type is not None:
            where.add("coverage_type = {}", filters.coverage_type.value)
        where.add_if(filters.policy_duration_months, "policy_duration_months = {}")
        where.add_if(filters.min_amount, "base_amount >= {}")
        where.add_if(filters.max_amount, "base_amount <= {}")

        # sort_by and sort_order are Literal-validated
        order = f"{filters.sort_by} {filters.sort_order.upper()}"
        total = await self._db.fetchval(
            f"SELECT COUNT(*) FROM policies WHERE {where.sql}", *where.params
        )
        limit_sql, params = where.paged(page)
        rows = await self._db.fetch(
            f"SELECT * FROM policies WHERE {where.sql} ORDER BY {order} {limit_sql}",
            *params,
        )
        return Ok(
            Page[Policy](
                items=[row_to_policy(row) for row in rows],
                total=int(total or 0),
                page=page.page,
                limit=page.limit,
            )
        )

    @beartype
    async def update_policy(
        self, principal: Principal, policy_id: UUID, data: PolicyUpdate
    ) -> Result[Policy, DomainError]:
        """Edit a policy. Issued premium records keep their own price snapshot."""
        auth = authorize(principal, Operation.POLICY_MANAGE)
        if isinstance(auth, Err):
            return auth

        existing = await self._db.fetchrow("SELECT * FROM policies WHERE id = $1", policy_id)
        if existing is None:
            return Err(not_found("Policy"))

        if (
            data.name is not None
            and data.name.lower() != existing["name"].lower()
            and await self._name_taken(data.name, exclude_id=policy_id)
        ):
            return Err(conflict(f"A policy named '{data.name}' already exists"))

        changes = data.model_dump(exclude_none=True)
        if not changes:
            return Ok(row_to_policy(existing))

        params: list[Any] = [policy_id]
        assignments = []
        for column, value in changes.items():
            if column == "premium_rules":
                value = data.premium_rules.model_dump(mode="json")
            elif isinstance(value, Enum):
                value = value.value
            params.append(value)
            assignments.append(f"{column} = ${len(params)}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")

        try:
            row = await self._db.fetchrow(
                f"UPDATE policies SET {', '.join(assignments)} WHERE id = $1 RETURNING *",
                *params,
            )
        except asyncpg.UniqueViolationError:
            return Err(conflict(f"A policy named '{data.name}' already exists"))
        if row is None:
            return Err(not_found("Policy"))

        await self._invalidate(policy_id)
        logger.info("Policy %s updated (%s)", row["policy_code"], ", ".join(changes))
        return Ok(row_to_policy(row))

    @beartype
    async def toggle_policy_status(
        self, principal: Principal, policy_id: UUID
    ) -> Result[Policy, DomainError]:
        """Deactivate an active policy or reactivate an inactive one."""
        auth = authorize(principal, Operation.POLICY_MANAGE)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow(
            """
            UPDATE policies SET is_active = NOT is_active, updated_at = $2
            WHERE id = $1
            RETURNING *
            """,
            policy_id,
            datetime.now(timezone.utc),
        )
        if row is None:
            return Err(not_found("Policy"))

        await self._invalidate(policy_id)
        policy = row_to_policy(row)
        logger.info(
            "Policy %s %s",
            policy.policy_code,
            "activated" if policy.is_active else "deactivated",
        )
        return Ok(policy)

    @beartype
    async def get_policy_stats(
        self, principal: Principal
    ) -> Result[PolicyStats, DomainError]:
        auth = authorize(principal, Operation.POLICY_STATS)
        if isinstance(auth, Err):
            return auth

        cached = await cached_get(self._cache, CacheKeys.policy_stats())
        if cached:
            return Ok(PolicyStats.model_validate(cached))

        counts = await self._db.fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(*) FILTER (WHERE is_active) AS active
            FROM policies
            """
        )
        coverage_rows = await self._db.fetch(
            "SELECT coverage_type, COUNT(*) AS count FROM policies GROUP BY coverage_type"
        )
        revenue = await self._db.fetchrow(
            """
            SELECT COALESCE(SUM(calculated_amount), 0) AS revenue,
                   COALESCE(AVG(calculated_amount), 0) AS average
            FROM premiums
            WHERE payment_status = 'Paid'
            """
        )

        total = int(counts["total"])
        active = int(counts["active"])
        stats = PolicyStats(
            total_policies=total,
            active_policies=active,
            inactive_policies=total - active,
            by_coverage_type={r["coverage_type"]: int(r["count"]) for r in coverage_rows},
            total_revenue=Decimal(revenue["revenue"]),
            average_premium=Decimal(revenue["average"]).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            ),
        )
        await cached_set(
            self._cache,
            CacheKeys.policy_stats(),
            stats.model_dump(mode="json"),
            CacheKeys.DASHBOARD_TTL,
        )
        return Ok(stats)

    async def _load_policy(self, policy_id: UUID) -> Policy | None:
        cache_key = CacheKeys.policy_by_id(policy_id)
        cached = await cached_get(self._cache, cache_key)
        if cached:
            return Policy.model_validate(cached)

        row = await self._db.fetchrow("SELECT * FROM policies WHERE id = $1", policy_id)
        if row is None:
            return None
        policy = row_to_policy(row)
        await cached_set(
            self._cache, cache_key, policy.model_dump(mode="json"), CacheKeys.POLICY_TTL
        )
        return policy

    async def _name_taken(self, name: str, exclude_id: UUID | None = None) -> bool:
        found = await self._db.fetchval(
            """
            SELECT 1 FROM policies
            WHERE lower(name) = lower($1) AND ($2::uuid IS NULL OR id <> $2)
            """,
            name,
            exclude_id,
        )
        return found is not None

    async def _invalidate(self, policy_id: UUID) -> None:
        await invalidate(
            self._cache,
            CacheKeys.policy_by_id(policy_id),
            CacheKeys.policy_stats(),
            CacheKeys.admin_dashboard(),
        )
