# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Vehicle domain models."""

import re
from datetime import date
from enum import Enum
from uuid import UUID

from pydantic import Field, field_validator

from .base import BaseModelConfig, IdentifiableModel

VEHICLE_NUMBER_PATTERN = re.compile(r"^[A-Z]{2}\d{2}[A-Z]{1,2}\d{4}$")
MIN_REGISTRATION_YEAR = 1990
AGE_BUCKETS = ("0-2", "3-5", "6-9", "10+")


class VehicleType(str, Enum):
    """Vehicle classes priced by the premium rules."""

    TWO_WHEELER = "2-Wheeler"
    FOUR_WHEELER = "4-Wheeler"
    COMMERCIAL = "Commercial"


def normalize_vehicle_number(value: str) -> str:
    """Uppercase, drop spaces and dashes, and check the registration format."""
    normalized = re.sub(r"[\s-]", "", value).upper()
    if not VEHICLE_NUMBER_PATTERN.match(normalized):
        raise ValueError("Invalid vehicle number format (e.g. MH12AB1234)")
    return normalized


def check_registration_year(value: int) -> int:
    current_year = date.today().year
    if value < MIN_REGISTRATION_YEAR or value > current_year:
        raise ValueError(
            f"Registration year must be between {MIN_REGISTRATION_YEAR} and {current_year}"
        )
    return value


class Vehicle(IdentifiableModel):
    """A vehicle owned by exactly one customer."""

    customer_id: UUID
    vehicle_number: str
    vehicle_type: VehicleType
    model: str = Field(..., min_length=1, max_length=100)
    registration_year: int = Field(..., ge=1900)


class VehicleCreate(BaseModelConfig):
    """Add a vehicle. Staff and Admin must name the owning customer."""

    vehicle_number: str = Field(..., min_length=1, max_length=20)
    vehicle_type: VehicleType
    model: str = Field(..., min_length=1, max_length=100)
    registration_year: int
    customer_id: UUID | None = None

    @field_validator("vehicle_number")
    @classmethod
    def validate_number(cls, v: str) -> str:
        return normalize_vehicle_number(v)

    @field_validator("registration_year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        return check_registration_year(v)


class VehicleUpdate(BaseModelConfig):
    vehicle_number: str | None = Field(default=None, max_length=20)
    vehicle_type: VehicleType | None = None
    model: str | None = Field(default=None, min_length=1, max_length=100)
    registration_year: int | None = None

    @field_validator("vehicle_number")
    @classmethod
    def validate_number(cls, v: str | None) -> str | None:
        return normalize_vehicle_number(v) if v is not None else None

    @field_validator("registration_year")
    @classmethod
    def validate_year(cls, v: int | None) -> int | None:
        return check_registration_year(v) if v is not None else None


class VehicleFilter(BaseModelConfig):
    customer_id: UUID | None = None
    vehicle_type: VehicleType | None = None
    search: str | None = Field(default=None, max_length=50)


class VehicleStats(BaseModelConfig):
    """Registry counts. Age buckets are keyed by years since registration."""

    total_vehicles: int = 0
    by_vehicle_type: dict[str, int] = Field(default_factory=dict)
    by_age: dict[str, int] = Field(default_factory=dict)
    added_this_month: int = 0
    added_last_month: int = 0
    growth_percent: int = 0
