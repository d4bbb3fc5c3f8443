"""Unit tests for premium calculation."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from vehicle_cover.core.errors import POLICY_INACTIVE, UNSUPPORTED_VEHICLE_TYPE, ErrorKind
from vehicle_cover.core.result_types import Err, Ok
from vehicle_cover.models.policy import CoverageType, Policy, PremiumRules
from vehicle_cover.models.vehicle import Vehicle, VehicleType
from vehicle_cover.services.premium_calculator import PremiumCalculator

AS_OF = date(2025, 6, 15)
STAMP = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_policy(**overrides) -> Policy:
    values = {
        "id": uuid4(),
        "policy_code": "POL-00001",
        "name": "Comprehensive Shield",
        "coverage_type": CoverageType.COMPREHENSIVE,
        "base_amount": Decimal("1000.00"),
        "policy_duration_months": 12,
        "premium_rules": PremiumRules(
            vehicle_type_multiplier={VehicleType.FOUR_WHEELER: 2.5},
            coverage_multiplier={CoverageType.COMPREHENSIVE: 1.2},
            age_depreciation_rate=0.05,
        ),
        "created_at": STAMP,
        "updated_at": STAMP,
    }
    values.update(overrides)
    return Policy(**values)


def make_vehicle(
    age_years: int = 3, vehicle_type: VehicleType = VehicleType.FOUR_WHEELER
) -> Vehicle:
    return Vehicle(
        id=uuid4(),
        customer_id=uuid4(),
        vehicle_number="MH12AB1234",
        vehicle_type=vehicle_type,
        model="Hyundai i20",
        registration_year=AS_OF.year - age_years,
        created_at=STAMP,
        updated_at=STAMP,
    )


@pytest.fixture
def calculator() -> PremiumCalculator:
    return PremiumCalculator(depreciation_cap_percent=50.0)


class TestCalculate:
    def test_reference_scenario(self, calculator: PremiumCalculator) -> None:
        result = calculator.calculate(make_policy(), make_vehicle(3), as_of=AS_OF)

        assert isinstance(result, Ok)
        breakdown = result.unwrap()
        assert breakdown.age_depreciation_percent == pytest.approx(15.0)
        assert breakdown.final_amount == Decimal("2550.00")
        assert breakdown.vehicle_age_years == 3
        assert breakdown.vehicle_type_multiplier == 2.5
        assert breakdown.coverage_multiplier == 1.2
        assert breakdown.coverage_type == CoverageType.COMPREHENSIVE

    def test_is_pure_for_fixed_inputs(self, calculator: PremiumCalculator) -> None:
        policy, vehicle = make_policy(), make_vehicle(5)

        first = calculator.calculate(policy, vehicle, as_of=AS_OF).unwrap()
        second = calculator.calculate(policy, vehicle, as_of=AS_OF).unwrap()

        assert first == second

    def test_older_vehicles_never_cost_more(self, calculator: PremiumCalculator) -> None:
        policy = make_policy()
        amounts = [
            calculator.calculate(policy, make_vehicle(age), as_of=AS_OF).unwrap().final_amount
            for age in range(0, 21)
        ]

        assert all(later <= earlier for earlier, later in zip(amounts, amounts[1:]))

    def test_depreciation_is_capped(self) -> None:
        calculator = PremiumCalculator(depreciation_cap_percent=30.0)

        breakdown = calculator.calculate(make_policy(), make_vehicle(20), as_of=AS_OF).unwrap()

        assert breakdown.age_depreciation_percent == pytest.approx(30.0)
        assert breakdown.final_amount == Decimal("2100.00")

    def test_new_vehicle_has_no_depreciation(self, calculator: PremiumCalculator) -> None:
        breakdown = calculator.calculate(make_policy(), make_vehicle(0), as_of=AS_OF).unwrap()

        assert breakdown.age_depreciation_percent == 0.0
        assert breakdown.final_amount == Decimal("3000.00")

    def test_coverage_override_uses_default_multiplier(
        self, calculator: PremiumCalculator
    ) -> None:
        breakdown = calculator.calculate(
            make_policy(), make_vehicle(0), CoverageType.THIRD_PARTY, as_of=AS_OF
        ).unwrap()

        assert breakdown.coverage_type == CoverageType.THIRD_PARTY
        assert breakdown.coverage_multiplier == 0.6
        assert breakdown.final_amount == Decimal("1500.00")

    def test_rounds_half_up_to_minor_unit(self, calculator: PremiumCalculator) -> None:
        policy = make_policy(base_amount=Decimal("333.33"))

        breakdown = calculator.calculate(policy, make_vehicle(1), as_of=AS_OF).unwrap()

        # 333.33 * 2.5 * 1.2 * 0.95 = 949.99050
        assert breakdown.final_amount == Decimal("949.99")

    def test_inactive_policy_rejected(self, calculator: PremiumCalculator) -> None:
        result = calculator.calculate(make_policy(is_active=False), make_vehicle(), as_of=AS_OF)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == POLICY_INACTIVE

    def test_vehicle_type_without_multiplier_rejected(
        self, calculator: PremiumCalculator
    ) -> None:
        result = calculator.calculate(
            make_policy(), make_vehicle(vehicle_type=VehicleType.COMMERCIAL), as_of=AS_OF
        )

        assert isinstance(result, Err)
        assert result.error.code == UNSUPPORTED_VEHICLE_TYPE

    def test_future_registration_year_rejected(self, calculator: PremiumCalculator) -> None:
        vehicle = make_vehicle(0)

        result = calculator.calculate(make_policy(), vehicle, as_of=date(AS_OF.year - 1, 1, 1))

        assert isinstance(result, Err)
        assert "future" in result.error.message


class TestConstruction:
    @pytest.mark.parametrize("cap", [-1.0, 100.5])
    def test_cap_outside_percent_range_rejected(self, cap: float) -> None:
        with pytest.raises(ValueError):
            PremiumCalculator(depreciation_cap_percent=cap)
