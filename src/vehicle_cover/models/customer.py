# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Customer domain models."""

from pydantic import EmailStr, Field

from .base import BaseModelConfig, IdentifiableModel


class Customer(IdentifiableModel):
    """Policy holder."""

    customer_code: str = Field(..., description="Human-readable ID, e.g. CUST-00001")
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    contact_number: str = Field(..., pattern=r"^\d{10}$")
    address: str = Field(default="", max_length=500)
    is_active: bool = True


class CustomerCreate(BaseModelConfig):
    """Staff-side customer registration."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    contact_number: str = Field(..., pattern=r"^\d{10}$")
    address: str = Field(default="", max_length=500)


class CustomerFilter(BaseModelConfig):
    search: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class CustomerUpdate(BaseModelConfig):
    """Profile edit; omitted fields keep their current value."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    contact_number: str | None = Field(default=None, pattern=r"^\d{10}$")
    address: str | None = Field(default=None, min_length=1, max_length=500)


class CustomerStats(BaseModelConfig):
    total_customers: int = 0
    active_customers: int = 0
    inactive_customers: int = 0
    new_this_month: int = 0
    new_last_month: int = 0
    growth_percent: int = 0
