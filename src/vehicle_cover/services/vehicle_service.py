# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Vehicle registry.

Vehicles are soft deleted (``deleted_at``) so premium records that reference
them stay readable.
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.database import Database
from ..core.errors import (
    DomainError,
    conflict,
    forbidden,
    not_found,
    state_transition_rejected,
    validation_error,
)
from ..core.permissions import Operation, authorize, can_access_customer, scoped_customer_id
from ..core.result_types import Err, Ok, Result
from ..models.base import Page, PageRequest, growth_percent
from ..models.user import Principal
from ..models.vehicle import (
    AGE_BUCKETS,
    Vehicle,
    VehicleCreate,
    VehicleFilter,
    VehicleStats,
    VehicleType,
    VehicleUpdate,
)
from .query import WhereBuilder
from .row_mappers import row_to_vehicle

logger = logging.getLogger(__name__)

_ACTIVE_VEHICLE = "SELECT * FROM vehicles WHERE id = $1 AND deleted_at IS NULL"


class VehicleService:
    """Add, edit, browse and remove customer vehicles."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @beartype
    async def add_vehicle(
        self, principal: Principal, data: VehicleCreate
    ) -> Result[Vehicle, DomainError]:
        auth = authorize(principal, Operation.VEHICLE_MANAGE)
        if isinstance(auth, Err):
            return auth

        if principal.is_staff:
            if data.customer_id is None:
                return Err(validation_error("customer_id is required"))
            customer_id = data.customer_id
        else:
            if data.customer_id is not None and data.customer_id != principal.customer_id:
                return Err(forbidden("You can only add vehicles to your own account"))
            customer_id = principal.customer_id

        customer_active = await self._db.fetchval(
            "SELECT is_active FROM customers WHERE id = $1", customer_id
        )
        if customer_active is None:
            return Err(not_found("Customer"))
        if not customer_active:
            return Err(validation_error("Customer account is inactive"))

        if await self._number_taken(data.vehicle_number):
            return Err(self._duplicate(data.vehicle_number))

        now = datetime.now(timezone.utc)
        try:
            row = await self._db.fetchrow(
                """
                INSERT INTO vehicles (
                    id, customer_id, vehicle_number, vehicle_type, model,
                    registration_year, created_at, updated_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $7)
                RETURNING *
                """,
                uuid4(),
                customer_id,
                data.vehicle_number,
                data.vehicle_type.value,
                data.model,
                data.registration_year,
                now,
            )
        except asyncpg.UniqueViolationError:
            return Err(self._duplicate(data.vehicle_number))

        vehicle = row_to_vehicle(row)
        logger.info("Vehicle %s added for customer %s", vehicle.vehicle_number, customer_id)
        return Ok(vehicle)

    @beartype
    async def get_vehicle(
        self, principal: Principal, vehicle_id: UUID
    ) -> Result[Vehicle, DomainError]:
        auth = authorize(principal, Operation.VEHICLE_VIEW)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow(_ACTIVE_VEHICLE, vehicle_id)
        if row is None:
            return Err(not_found("Vehicle"))
        vehicle = row_to_vehicle(row)
        if not can_access_customer(principal, vehicle.customer_id):
            return Err(not_found("Vehicle"))
        return Ok(vehicle)

    @beartype
    async def list_vehicles(
        self, principal: Principal, filters: VehicleFilter, page: PageRequest
    ) -> Result[Page[Vehicle], DomainError]:
        auth = authorize(principal, Operation.VEHICLE_VIEW)
        if isinstance(auth, Err):
            return auth

        where = WhereBuilder().add("deleted_at IS NULL")
        where.add_if(scoped_customer_id(principal, filters.customer_id), "customer_id = {}")
        if filters.vehicle_type is not None:
            where.add("vehicle_type = {}", filters.vehicle_type.value)
        if filters.search:
            where.add(
                "(vehicle_number ILIKE {0} OR model ILIKE {0})", f"%{filters.search}%"
            )

        total = await self._db.fetchval(
            f"SELECT COUNT(*) FROM vehicles WHERE {where.sql}", *where.params
        )
        limit_sql, params = where.paged(page)
        rows = await self._db.fetch(
            f"SELECT * FROM vehicles WHERE {where.sql} ORDER BY created_at DESC {limit_sql}",
            *params,
        )
        return Ok(
            Page[Vehicle](
                items=[row_to_vehicle(row) for row in rows],
                total=int(total or 0),
                page=page.page,
                limit=page.limit,
            )
        )

    @beartype
    async def update_vehicle(
        self, principal: Principal, vehicle_id: UUID, data: VehicleUpdate
    ) -> Result[Vehicle, DomainError]:
        """Edit a vehicle. The type is locked while a live premium prices it."""
        auth = authorize(principal, Operation.VEHICLE_MANAGE)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow(_ACTIVE_VEHICLE, vehicle_id)
        if row is None:
            return Err(not_found("Vehicle"))
        current = row_to_vehicle(row)
        if not can_access_customer(principal, current.customer_id):
            return Err(forbidden("You can only edit your own vehicles"))

        if data.vehicle_type is not None and data.vehicle_type != current.vehicle_type:
            live_premium = await self._db.fetchval(
                """
                SELECT 1 FROM premiums
                WHERE vehicle_id = $1 AND payment_status IN ('Pending', 'Paid')
                  AND NOT is_expired
                LIMIT 1
                """,
                vehicle_id,
            )
            if live_premium is not None:
                return Err(
                    state_transition_rejected(
                        "Vehicle type cannot change while a policy on this vehicle "
                        "is pending or active"
                    )
                )

        if (
            data.vehicle_number is not None
            and data.vehicle_number != current.vehicle_number
            and await self._number_taken(data.vehicle_number)
        ):
            return Err(self._duplicate(data.vehicle_number))

        changes = data.model_dump(exclude_none=True)
        if not changes:
            return Ok(current)

        params: list[Any] = [vehicle_id]
        assignments = []
        for column, value in changes.items():
            params.append(value.value if isinstance(value, Enum) else value)
            assignments.append(f"{column} = ${len(params)}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")

        try:
            updated = await self._db.fetchrow(
                f"""
                UPDATE vehicles SET {', '.join(assignments)}
                WHERE id = $1 AND deleted_at IS NULL
                RETURNING *
                """,
                *params,
            )
        except asyncpg.UniqueViolationError:
            return Err(self._duplicate(data.vehicle_number or current.vehicle_number))
        if updated is None:
            return Err(not_found("Vehicle"))

        logger.info("Vehicle %s updated (%s)", vehicle_id, ", ".join(changes))
        return Ok(row_to_vehicle(updated))

    @beartype
    async def delete_vehicle(
        self, principal: Principal, vehicle_id: UUID
    ) -> Result[None, DomainError]:
        auth = authorize(principal, Operation.VEHICLE_MANAGE)
        if isinstance(auth, Err):
            return auth

        row = await self._db.fetchrow(_ACTIVE_VEHICLE, vehicle_id)
        if row is None:
            return Err(not_found("Vehicle"))
        vehicle = row_to_vehicle(row)
        if not can_access_customer(principal, vehicle.customer_id):
            return Err(forbidden("You can only delete your own vehicles"))

        blockers = await self._db.fetchrow(
            """
            SELECT
                (SELECT COUNT(*) FROM premiums
                 WHERE vehicle_id = $1 AND payment_status = 'Paid'
                   AND NOT is_expired) AS active_policies,
                (SELECT COUNT(*) FROM premiums
                 WHERE vehicle_id = $1 AND payment_status = 'Pending') AS pending_payments,
                (SELECT COUNT(*) FROM claims
                 WHERE vehicle_id = $1
                   AND claim_status IN ('Pending', 'Under-Review')) AS open_claims
            """,
            vehicle_id,
        )
        reasons = [
            label
            for key, label in (
                ("active_policies", "an active policy"),
                ("pending_payments", "a pending payment"),
                ("open_claims", "an open claim"),
            )
            if blockers[key]
        ]
        if reasons:
            return Err(
                conflict(f"Vehicle cannot be deleted while it has {' and '.join(reasons)}")
            )

        await self._db.execute(
            "UPDATE vehicles SET deleted_at = $2, updated_at = $2 WHERE id = $1",
            vehicle_id,
            datetime.now(timezone.utc),
        )
        logger.info("Vehicle %s deleted by %s", vehicle.vehicle_number, principal.user_id)
        return Ok(None)

    @beartype
    async def get_vehicle_stats(
        self, principal: Principal
    ) -> Result[VehicleStats, DomainError]:
        """Counts over the live registry, by type, by age and by month added."""
        auth = authorize(principal, Operation.VEHICLE_STATS)
        if isinstance(auth, Err):
            return auth

        counts = await self._db.fetchrow(
            """
            SELECT COUNT(*) AS total,
                   COUNT(*) FILTER (
                       WHERE created_at >= date_trunc('month', now())
                   ) AS this_month,
                   COUNT(*) FILTER (
                       WHERE created_at >= date_trunc('month', now()) - interval '1 month'
                         AND created_at < date_trunc('month', now())
                   ) AS last_month
            FROM vehicles
            WHERE deleted_at IS NULL
            """
        )
        type_rows = await self._db.fetch(
            """
            SELECT vehicle_type, COUNT(*) AS count
            FROM vehicles
            WHERE deleted_at IS NULL
            GROUP BY vehicle_type
            """
        )
        age_rows = await self._db.fetch(
            """
            SELECT CASE
                       WHEN age < 3 THEN '0-2'
                       WHEN age < 6 THEN '3-5'
                       WHEN age < 10 THEN '6-9'
                       ELSE '10+'
                   END AS bucket,
                   COUNT(*) AS count
            FROM (
                SELECT $1 - registration_year AS age
                FROM vehicles
                WHERE deleted_at IS NULL
            ) AS ages
            GROUP BY bucket
            """,
            date.today().year,
        )

        this_month = int(counts["this_month"])
        last_month = int(counts["last_month"])
        by_type = {vehicle_type.value: 0 for vehicle_type in VehicleType}
        by_type.update({r["vehicle_type"]: int(r["count"]) for r in type_rows})
        by_age = dict.fromkeys(AGE_BUCKETS, 0)
        by_age.update({r["bucket"]: int(r["count"]) for r in age_rows})
        return Ok(
            VehicleStats(
                total_vehicles=int(counts["total"]),
                by_vehicle_type=by_type,
                by_age=by_age,
                added_this_month=this_month,
                added_last_month=last_month,
                growth_percent=growth_percent(this_month, last_month),
            )
        )

    async def _number_taken(self, vehicle_number: str) -> bool:
        found = await self._db.fetchval(
            "SELECT 1 FROM vehicles WHERE vehicle_number = $1 AND deleted_at IS NULL",
            vehicle_number,
        )
        return found is not None

    @staticmethod
    def _duplicate(vehicle_number: str) -> DomainError:
        return conflict(f"Vehicle {vehicle_number} is already registered")
