# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Policy catalogue models and the per-policy rate table."""

from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import Field, field_validator

from .base import BaseModelConfig, IdentifiableModel
from .vehicle import VehicleType

ALLOWED_DURATIONS = (12, 24, 36)


class CoverageType(str, Enum):
    """Coverage offered by a policy."""

    COMPREHENSIVE = "Comprehensive"
    THIRD_PARTY = "Third-Party"
    OWN_DAMAGE = "Own-Damage"


DEFAULT_VEHICLE_TYPE_MULTIPLIERS: dict[VehicleType, float] = {
    VehicleType.TWO_WHEELER: 0.8,
    VehicleType.FOUR_WHEELER: 1.0,
    VehicleType.COMMERCIAL: 1.5,
}

DEFAULT_COVERAGE_MULTIPLIERS: dict[CoverageType, float] = {
    CoverageType.THIRD_PARTY: 0.6,
    CoverageType.COMPREHENSIVE: 1.0,
    CoverageType.OWN_DAMAGE: 0.8,
}


def _check_positive(values: dict) -> dict:
    for key, ratio in values.items():
        if ratio <= 0:
            raise ValueError(f"Multiplier for {getattr(key, 'value', key)} must be positive")
    return values


class PremiumRules(BaseModelConfig):
    """Rate table for one policy.

    Premium records copy the factors they were priced with, so editing these
    rules never changes an already issued premium.
    """

    vehicle_type_multiplier: dict[VehicleType, float] = Field(
        default_factory=lambda: dict(DEFAULT_VEHICLE_TYPE_MULTIPLIERS)
    )
    coverage_multiplier: dict[CoverageType, float] = Field(
        default_factory=lambda: dict(DEFAULT_COVERAGE_MULTIPLIERS)
    )
    age_depreciation_rate: float = Field(
        default=0.02, ge=0.0, le=1.0, description="Depreciation per year of vehicle age"
    )
    base_rate: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("vehicle_type_multiplier", "coverage_multiplier")
    @classmethod
    def multipliers_positive(cls, v: dict) -> dict:
        return _check_positive(v)


def _check_duration(v: int | None) -> int | None:
    if v is not None and v not in ALLOWED_DURATIONS:
        raise ValueError("Policy duration must be 12, 24, or 36 months")
    return v


class Policy(IdentifiableModel):
    """Insurance product template."""

    policy_code: str
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    coverage_type: CoverageType
    base_amount: Decimal = Field(..., ge=Decimal("0"), decimal_places=2)
    policy_duration_months: int
    is_active: bool = True
    premium_rules: PremiumRules = Field(default_factory=PremiumRules)


class PolicyCreate(BaseModelConfig):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(default="", max_length=1000)
    coverage_type: CoverageType
    base_amount: Decimal = Field(..., ge=Decimal("0"), max_digits=12, decimal_places=2)
    policy_duration_months: int
    premium_rules: PremiumRules = Field(default_factory=PremiumRules)

    @field_validator("policy_duration_months")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        return _check_duration(v)


class PolicyUpdate(BaseModelConfig):
    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    coverage_type: CoverageType | None = None
    base_amount: Decimal | None = Field(
        default=None, ge=Decimal("0"), max_digits=12, decimal_places=2
    )
    policy_duration_months: int | None = None
    premium_rules: PremiumRules | None = None

    @field_validator("policy_duration_months")
    @classmethod
    def validate_duration(cls, v: int | None) -> int | None:
        return _check_duration(v)


class PolicyFilter(BaseModelConfig):
    """Catalogue search options."""

    search: str | None = Field(default=None, max_length=100)
    coverage_type: CoverageType | None = None
    policy_duration_months: int | None = None
    min_amount: Decimal | None = Field(default=None, ge=Decimal("0"))
    max_amount: Decimal | None = Field(default=None, ge=Decimal("0"))
    is_active: bool | None = None
    sort_by: Literal["created_at", "name", "base_amount"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class PolicyStats(BaseModelConfig):
    total_policies: int = 0
    active_policies: int = 0
    inactive_policies: int = 0
    by_coverage_type: dict[str, int] = Field(default_factory=dict)
    total_revenue: Decimal = Decimal("0")
    average_premium: Decimal = Decimal("0")
