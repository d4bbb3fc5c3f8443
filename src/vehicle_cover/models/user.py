# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Identity models: roles, the authenticated principal and auth payloads."""

from enum import Enum
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from .base import BaseModelConfig, IdentifiableModel


class Role(str, Enum):
    """User roles."""

    CUSTOMER = "Customer"
    STAFF = "Staff"
    ADMIN = "Admin"


class Principal(BaseModelConfig):
    """The authenticated caller every service operation acts on behalf of."""

    user_id: UUID
    role: Role
    customer_id: UUID | None = None

    @model_validator(mode="after")
    def customer_link_required(self) -> "Principal":
        if self.role == Role.CUSTOMER and self.customer_id is None:
            raise ValueError("Customer principals must be linked to a customer")
        return self

    @property
    def is_staff(self) -> bool:
        """Staff and Admin share read/write access across customers."""
        return self.role in (Role.STAFF, Role.ADMIN)


class User(IdentifiableModel):
    """Login account."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: Role
    customer_id: UUID | None = None
    is_active: bool = True


class RegisterRequest(BaseModelConfig):
    """Customer self-registration."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    contact_number: str = Field(..., pattern=r"^\d{10}$")
    address: str = Field(default="", max_length=500)


class LoginRequest(BaseModelConfig):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class StaffAccountCreate(BaseModelConfig):
    """Admin-created staff or admin account."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: Role = Role.STAFF

    @model_validator(mode="after")
    def staff_roles_only(self) -> "StaffAccountCreate":
        if self.role == Role.CUSTOMER:
            raise ValueError("Use customer registration for customer accounts")
        return self


class AuthToken(BaseModelConfig):
    """Issued bearer token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: User


class ForgotPasswordRequest(BaseModelConfig):
    email: EmailStr


class ResetPasswordRequest(BaseModelConfig):
    password: str = Field(..., min_length=8, max_length=128)


class PasswordResetIssued(BaseModelConfig):
    """Outcome of a reset request; identical whether or not the email exists.

    ``reset_token`` is only filled outside production, since no mail
    delivery is wired in.
    """

    reset_token: str | None = None
