# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium record models: price breakdown, purchase and payment payloads."""

import calendar
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import Field, computed_field

from .base import BaseModelConfig, IdentifiableModel
from .policy import CoverageType
from .vehicle import VehicleType


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"


class LifecycleState(str, Enum):
    """Payment status with expiry folded in."""

    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    EXPIRED = "Expired"


class PremiumBreakdown(BaseModelConfig):
    """Every factor that went into a premium, kept for display and audit."""

    base_amount: Decimal
    vehicle_type: VehicleType
    vehicle_type_multiplier: float
    coverage_type: CoverageType
    coverage_multiplier: float
    vehicle_age_years: int = Field(..., ge=0)
    age_depreciation_percent: float = Field(..., ge=0.0, le=100.0)
    final_amount: Decimal


class PremiumRecord(IdentifiableModel):
    """A priced, payable policy purchase for one vehicle."""

    premium_code: str
    customer_id: UUID
    vehicle_id: UUID
    policy_id: UUID
    coverage_type: CoverageType
    calculated_amount: Decimal
    payment_status: PaymentStatus
    calculation_breakdown: PremiumBreakdown
    policy_duration_months: int
    transaction_id: str | None = None
    payment_date: datetime | None = None
    expiry_date: datetime | None = None
    is_expired: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def lifecycle_state(self) -> LifecycleState:
        if self.is_expired:
            return LifecycleState.EXPIRED
        return LifecycleState(self.payment_status.value)


class PremiumQuoteRequest(BaseModelConfig):
    """Preview a premium without persisting anything."""

    policy_id: UUID
    vehicle_id: UUID
    coverage_type: CoverageType | None = None


class PurchaseRequest(BaseModelConfig):
    vehicle_id: UUID
    coverage_type: CoverageType | None = None


class PaymentRequest(BaseModelConfig):
    """Outcome reported by the payment gateway."""

    transaction_id: str | None = Field(
        default=None, min_length=4, max_length=64, pattern=r"^[A-Za-z0-9_-]+$"
    )


class PremiumFilter(BaseModelConfig):
    customer_id: UUID | None = None
    payment_status: PaymentStatus | None = None
    expired: bool | None = None


def add_months(start: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)
