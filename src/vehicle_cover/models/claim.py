# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Claim domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import Field, model_validator

from .base import BaseModelConfig, IdentifiableModel

CLAIM_REASON_MIN_LENGTH = 10
CLAIM_REASON_MAX_LENGTH = 1000


class ClaimStatus(str, Enum):
    PENDING = "Pending"
    UNDER_REVIEW = "Under-Review"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (ClaimStatus.APPROVED, ClaimStatus.REJECTED)


class Claim(IdentifiableModel):
    """Settlement request against a paid premium record."""

    claim_code: str
    premium_id: UUID
    customer_id: UUID
    vehicle_id: UUID
    policy_id: UUID
    claim_status: ClaimStatus
    claim_reason: str
    claim_amount: Decimal | None = None
    admin_remarks: str | None = None
    claim_date: datetime
    processed_date: datetime | None = None

    @model_validator(mode="after")
    def amount_only_when_approved(self) -> "Claim":
        if self.claim_amount is not None and self.claim_status != ClaimStatus.APPROVED:
            raise ValueError("claim_amount is only set on approved claims")
        return self


class ClaimCreate(BaseModelConfig):
    """Claim submission. Reason length is checked by the claim service."""

    premium_id: UUID
    policy_id: UUID
    vehicle_id: UUID
    claim_reason: str


class ClaimProcess(BaseModelConfig):
    claim_status: ClaimStatus
    claim_amount: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    admin_remarks: str | None = Field(default=None, max_length=500)


class ClaimFilter(BaseModelConfig):
    claim_status: ClaimStatus | None = None
    customer_id: UUID | None = None
