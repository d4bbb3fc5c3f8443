# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Premium calculation.

    final = base x vehicle-type multiplier x coverage multiplier x (1 - depreciation)
    depreciation = min(age_years x age_depreciation_rate, cap)

Ratios stay floats in the breakdown; the arithmetic runs on ``Decimal``
built from their string form and only the final amount is rounded, to the
smallest currency unit.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from beartype import beartype

from ..core.errors import (
    POLICY_INACTIVE,
    UNSUPPORTED_VEHICLE_TYPE,
    DomainError,
    validation_error,
)
from ..core.result_types import Err, Ok, Result
from ..models.policy import DEFAULT_COVERAGE_MULTIPLIERS, CoverageType, Policy
from ..models.premium import PremiumBreakdown
from ..models.vehicle import Vehicle

MINOR_UNIT = Decimal("0.01")
HUNDRED = Decimal("100")


class PremiumCalculator:
    """Pure premium pricing for (policy, vehicle, coverage type)."""

    def __init__(self, depreciation_cap_percent: float = 50.0) -> None:
        if not 0.0 <= depreciation_cap_percent <= 100.0:
            raise ValueError("depreciation_cap_percent must be within [0, 100]")
        self._cap = Decimal(str(depreciation_cap_percent)) / HUNDRED

    @beartype
    def calculate(
        self,
        policy: Policy,
        vehicle: Vehicle,
        coverage_type: CoverageType | None = None,
        *,
        as_of: date | None = None,
    ) -> Result[PremiumBreakdown, DomainError]:
        """Price ``vehicle`` under ``policy``.

        Args:
            policy: Policy whose rate table applies; must be active
            vehicle: Vehicle being insured
            coverage_type: Defaults to the policy's own coverage type
            as_of: Pricing date, today when omitted

        Returns:
            Result containing the full breakdown or the rejection reason
        """
        if not policy.is_active:
            return Err(validation_error("Policy is not active", POLICY_INACTIVE))

        rules = policy.premium_rules
        vehicle_multiplier = rules.vehicle_type_multiplier.get(vehicle.vehicle_type)
        if vehicle_multiplier is None:
            return Err(
                validation_error(
                    f"Policy does not cover {vehicle.vehicle_type.value} vehicles",
                    UNSUPPORTED_VEHICLE_TYPE,
                )
            )

        coverage = coverage_type or policy.coverage_type
        coverage_multiplier = rules.coverage_multiplier.get(
            coverage, DEFAULT_COVERAGE_MULTIPLIERS[coverage]
        )

        age_result = self.vehicle_age(vehicle.registration_year, as_of or date.today())
        if isinstance(age_result, Err):
            return age_result
        age_years = age_result.unwrap()

        depreciation = self.depreciation_fraction(age_years, rules.age_depreciation_rate)
        raw = (
            policy.base_amount
            * Decimal(str(vehicle_multiplier))
            * Decimal(str(coverage_multiplier))
            * (Decimal("1") - depreciation)
        )

        return Ok(
            PremiumBreakdown(
                base_amount=policy.base_amount,
                vehicle_type=vehicle.vehicle_type,
                vehicle_type_multiplier=vehicle_multiplier,
                coverage_type=coverage,
                coverage_multiplier=coverage_multiplier,
                vehicle_age_years=age_years,
                age_depreciation_percent=float(depreciation * HUNDRED),
                final_amount=raw.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP),
            )
        )

    @staticmethod
    @beartype
    def vehicle_age(registration_year: int, as_of: date) -> Result[int, DomainError]:
        age = as_of.year - registration_year
        if age < 0:
            return Err(validation_error("Registration year cannot be in the future"))
        return Ok(age)

    @beartype
    def depreciation_fraction(self, age_years: int, rate: float) -> Decimal:
        return min(Decimal(str(rate)) * age_years, self._cap)
