# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Database row to domain model conversion shared by the services."""

import json
from collections.abc import Mapping
from typing import Any

from ..models.claim import Claim, ClaimStatus
from ..models.customer import Customer
from ..models.policy import CoverageType, Policy, PremiumRules
from ..models.premium import PaymentStatus, PremiumBreakdown, PremiumRecord
from ..models.renewal import Renewal, RenewalStatus
from ..models.user import Role, User
from ..models.vehicle import Vehicle, VehicleType

Row = Mapping[str, Any]


def _json(value: Any) -> Any:
    # JSONB arrives decoded once the pool codec is registered
    return json.loads(value) if isinstance(value, str) else value


def row_to_customer(row: Row) -> Customer:
    return Customer(
        id=row["id"],
        customer_code=row["customer_code"],
        name=row["name"],
        email=row["email"],
        contact_number=row["contact_number"],
        address=row["address"] or "",
        is_active=row["is_active"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_user(row: Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        customer_id=row["customer_id"],
        is_active=row["is_active"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_vehicle(row: Row) -> Vehicle:
    return Vehicle(
        id=row["id"],
        customer_id=row["customer_id"],
        vehicle_number=row["vehicle_number"],
        vehicle_type=VehicleType(row["vehicle_type"]),
        model=row["model"],
        registration_year=row["registration_year"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_policy(row: Row) -> Policy:
    return Policy(
        id=row["id"],
        policy_code=row["policy_code"],
        name=row["name"],
        description=row["description"] or "",
        coverage_type=CoverageType(row["coverage_type"]),
        base_amount=row["base_amount"],
        policy_duration_months=row["policy_duration_months"],
        is_active=row["is_active"],
        premium_rules=PremiumRules.model_validate(_json(row["premium_rules"])),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_premium(row: Row) -> PremiumRecord:
    return PremiumRecord(
        id=row["id"],
        premium_code=row["premium_code"],
        customer_id=row["customer_id"],
        vehicle_id=row["vehicle_id"],
        policy_id=row["policy_id"],
        coverage_type=CoverageType(row["coverage_type"]),
        calculated_amount=row["calculated_amount"],
        payment_status=PaymentStatus(row["payment_status"]),
        calculation_breakdown=PremiumBreakdown.model_validate(
            _json(row["calculation_breakdown"])
        ),
        policy_duration_months=row["policy_duration_months"],
        transaction_id=row["transaction_id"],
        payment_date=row["payment_date"],
        expiry_date=row["expiry_date"],
        is_expired=row["is_expired"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_renewal(row: Row) -> Renewal:
    return Renewal(
        id=row["id"],
        renewal_code=row["renewal_code"],
        premium_id=row["premium_id"],
        customer_id=row["customer_id"],
        renewal_status=RenewalStatus(row["renewal_status"]),
        renewal_date=row["renewal_date"],
        expiry_date=row["expiry_date"],
        reminder_sent_status=row["reminder_sent_status"],
        reminder_sent_date=row["reminder_sent_date"],
        admin_remarks=row["admin_remarks"],
        processed_at=row["processed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def row_to_claim(row: Row) -> Claim:
    return Claim(
        id=row["id"],
        claim_code=row["claim_code"],
        premium_id=row["premium_id"],
        customer_id=row["customer_id"],
        vehicle_id=row["vehicle_id"],
        policy_id=row["policy_id"],
        claim_status=ClaimStatus(row["claim_status"]),
        claim_reason=row["claim_reason"],
        claim_amount=row["claim_amount"],
        admin_remarks=row["admin_remarks"],
        claim_date=row["claim_date"],
        processed_date=row["processed_date"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
