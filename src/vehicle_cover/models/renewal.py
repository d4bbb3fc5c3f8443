# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Renewal request models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field

from .base import BaseModelConfig, IdentifiableModel


class RenewalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Renewal(IdentifiableModel):
    renewal_code: str
    premium_id: UUID
    customer_id: UUID
    renewal_status: RenewalStatus
    renewal_date: datetime
    expiry_date: datetime
    reminder_sent_status: bool = False
    reminder_sent_date: datetime | None = None
    admin_remarks: str | None = None
    processed_at: datetime | None = None


class RenewalCreate(BaseModelConfig):
    premium_id: UUID


class RenewalDecision(BaseModelConfig):
    admin_remarks: str | None = Field(default=None, max_length=500)


class RenewalFilter(BaseModelConfig):
    renewal_status: RenewalStatus | None = None
    customer_id: UUID | None = None


class ExpirySweepResult(BaseModelConfig):
    """Premium records flagged expired by one sweep."""

    expired_count: int = Field(default=0, ge=0)
    premium_ids: list[UUID] = Field(default_factory=list)
    swept_at: datetime
