# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Customer records."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.cache import Cache
from ..core.database import Database
from ..core.errors import DomainError, conflict, forbidden, not_found
from ..core.permissions import Operation, authorize, can_access_customer
from ..core.result_types import Err, Ok, Result
from ..models.base import Page, PageRequest, growth_percent
from ..models.customer import (
    Customer,
    CustomerCreate,
    CustomerFilter,
    CustomerStats,
    CustomerUpdate,
)
from ..models.user import Principal
from .cache_keys import CacheKeys
from .cache_ops import invalidate
from .query import WhereBuilder
from .row_mappers import row_to_customer
from .sequences import Sequence, next_code

logger = logging.getLogger(__name__)


async def find_contact_clash(
    conn: Any,
    email: str | None,
    contact_number: str | None,
    exclude_id: UUID | None = None,
) -> DomainError | None:
    """Conflict error if the email or phone number already belongs to someone.

    ``None`` skips that check; ``exclude_id`` ignores the customer being edited.
    """
    row = await conn.fetchrow(
        """
        SELECT (lower(email) = lower($1)) IS TRUE AS email_taken,
               (contact_number = $2) IS TRUE AS phone_taken
        FROM customers
        WHERE (lower(email) = lower($1) OR contact_number = $2)
          AND ($3::uuid IS NULL OR id <> $3)
        LIMIT 1
        """,
        email,
        contact_number,
        exclude_id,
    )
    if row is None:
        return None
    if row["email_taken"]:
        return conflict("A customer with this email already exists")
    return conflict("A customer with this contact number already exists")


async def insert_customer(conn: Any, data: CustomerCreate) -> Mapping[str, Any]:
    """Insert a customer row inside the caller's transaction."""
    customer_code = await next_code(conn, Sequence.CUSTOMER)
    now = datetime.now(timezone.utc)
    return await conn.fetchrow(
        """
        INSERT INTO customers (
            id, customer_code, name, email, contact_number, address,
            is_active, created_at, updated_at
        ) VALUES ($1, $2, $3, $4, $5, $6, TRUE, $7, $7)
        RETURNING *
        """,
        uuid4(),
        customer_code,
        data.name,
        str(data.email).lower(),
        data.contact_number,
        data.address,
        now,
    )


class CustomerService:
    def __init__(self, db: Database, cache: Cache) -> None:
        self._db = db
        self._cache = cache

    @beartype
    async def register_customer(
        self, principal: Principal, data: CustomerCreate
    ) -> Result[Customer, DomainError]:
        """Staff-side registration; the customer gets no login of its own."""
        auth = authorize(principal, Operation.CUSTOMER_REGISTER)
        if isinstance(auth, Err):
            return auth

        clash = await find_contact_clash(self._db, str(data.email), data.contact_number)
        if clash is not None:
            return Err(clash)

        try:
            async with self._db.transaction() as conn:
                row = await insert_customer(conn, data)
        except asyncpg.UniqueViolationError:
            return Err(conflict("A customer with this email or contact number already exists"))

        customer = row_to_customer(row)
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        logger.info("Customer %s registered by %s", customer.customer_code, principal.user_id)
        return Ok(customer)

    @beartype
    async def get_customer(
        self, principal: Principal, customer_id: UUID
    ) -> Result[Customer, DomainError]:
        auth = authorize(principal, Operation.CUSTOMER_VIEW)
        if isinstance(auth, Err):
            return auth
        if not can_access_customer(principal, customer_id):
            return Err(not_found("Customer"))

        row = await self._db.fetchrow("SELECT * FROM customers WHERE id = $1", customer_id)
        if row is None:
            return Err(not_found("Customer"))
        return Ok(row_to_customer(row))

    @beartype
    async def list_customers(
        self, principal: Principal, filters: CustomerFilter, page: PageRequest
    ) -> Result[Page[Customer], DomainError]:
        auth = authorize(principal, Operation.CUSTOMER_LIST)
        if isinstance(auth, Err):
            return auth

        where = WhereBuilder()
        if filters.search:
            where.add(
                "(name ILIKE {0} OR email ILIKE {0} OR contact_number ILIKE {0})",
                f"%{filters.search}%",
            )
        where.add_if(filters.is_active, "is_active = {}")

        total = await self._db.fetchval(
            f"SELECT COUNT(*) FROM customers WHERE {where.sql}", *where.params
        )
        limit_sql, params = where.paged(page)
        rows = await self._db.fetch(
            f"SELECT * FROM customers WHERE {where.sql} ORDER BY created_at DESC {limit_sql}",
            *params,
        )
        return Ok(
            Page[Customer](
                items=[row_to_customer(row) for row in rows],
                total=int(total or 0),
                page=page.page,
                limit=page.limit,
            )
        )

    @beartype
    async def update_customer(
        self, principal: Principal, customer_id: UUID, data: CustomerUpdate
    ) -> Result[Customer, DomainError]:
        """Edit a profile. An email change is carried over to the linked login."""
        auth = authorize(principal, Operation.CUSTOMER_UPDATE)
        if isinstance(auth, Err):
            return auth
        if not can_access_customer(principal, customer_id):
            return Err(forbidden("You can only update your own profile"))

        changes = data.model_dump(exclude_none=True)
        if "email" in changes:
            changes["email"] = str(changes["email"]).lower()

        try:
            async with self._db.transaction() as conn:
                row = await conn.fetchrow(
                    "SELECT * FROM customers WHERE id = $1 FOR UPDATE", customer_id
                )
                if row is None:
                    return Err(not_found("Customer"))
                current = row_to_customer(row)
                if not changes:
                    return Ok(current)

                new_email = changes.get("email")
                if new_email == current.email:
                    new_email = None
                new_phone = changes.get("contact_number")
                if new_phone == current.contact_number:
                    new_phone = None
                if new_email is not None or new_phone is not None:
                    clash = await find_contact_clash(conn, new_email, new_phone, customer_id)
                    if clash is not None:
                        return Err(clash)
                if new_email is not None:
                    login_taken = await conn.fetchval(
                        """
                        SELECT 1 FROM users
                        WHERE lower(email) = $1 AND customer_id IS DISTINCT FROM $2
                        """,
                        new_email,
                        customer_id,
                    )
                    if login_taken is not None:
                        return Err(conflict("A user with this email already exists"))

                params: list[Any] = [customer_id]
                assignments = []
                for column, value in changes.items():
                    params.append(value)
                    assignments.append(f"{column} = ${len(params)}")
                now = datetime.now(timezone.utc)
                params.append(now)
                assignments.append(f"updated_at = ${len(params)}")

                updated = await conn.fetchrow(
                    f"UPDATE customers SET {', '.join(assignments)} WHERE id = $1 RETURNING *",
                    *params,
                )
                if new_email is not None:
                    await conn.execute(
                        "UPDATE users SET email = $2, updated_at = $3 WHERE customer_id = $1",
                        customer_id,
                        new_email,
                        now,
                    )
        except asyncpg.UniqueViolationError:
            return Err(conflict("A customer with this email or contact number already exists"))

        logger.info("Customer %s updated (%s)", current.customer_code, ", ".join(changes))
        return Ok(row_to_customer(updated))

    @beartype
    async def get_customer_stats(
        self, principal: Principal
    ) -> Result[CustomerStats, DomainError]:
        auth = authorize(principal, Operation.CUSTOMER_STATS)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(*) FILTER (WHERE is_active) AS active,
                   COUNT(*) FILTER (
                       WHERE created_at >= date_trunc('month', now())
                   ) AS this_month,
                   COUNT(*) FILTER (
                       WHERE created_at >= date_trunc('month', now()) - interval '1 month'
                         AND created_at < date_trunc('month', now())
                   ) AS last_month
            FROM customers
            """
        )
        total = int(row["total"])
        active = int(row["active"])
        this_month = int(row["this_month"])
        last_month = int(row["last_month"])
        return Ok(
            CustomerStats(
                total_customers=total,
                active_customers=active,
                inactive_customers=total - active,
                new_this_month=this_month,
                new_last_month=last_month,
                growth_percent=growth_percent(this_month, last_month),
            )
        )

    @beartype
    async def toggle_customer_status(
        self, principal: Principal, customer_id: UUID
    ) -> Result[Customer, DomainError]:
        """Flip ``is_active``. Inactive customers cannot log in or buy cover."""
        auth = authorize(principal, Operation.CUSTOMER_TOGGLE)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow(
            """
            UPDATE customers SET is_active = NOT is_active, updated_at = $2
            WHERE id = $1
            RETURNING *
            """,
            customer_id,
            datetime.now(timezone.utc),
        )
        if row is None:
            return Err(not_found("Customer"))

        customer = row_to_customer(row)
        await invalidate(self._cache, CacheKeys.admin_dashboard())
        logger.info(
            "Customer %s %s by %s",
            customer.customer_code,
            "activated" if customer.is_active else "deactivated",
            principal.user_id,
        )
        return Ok(customer)
