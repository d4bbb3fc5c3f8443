# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Outbound notification events."""

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import Field

from .base import BaseModelConfig


class MessageType(str, Enum):
    EXPIRY = "Expiry"
    RENEWAL = "Renewal"
    CLAIM_UPDATE = "Claim-Update"
    PAYMENT = "Payment"
    GENERAL = "General"


class NotificationEvent(BaseModelConfig):
    """Fire-and-forget message for the notification service."""

    event_id: UUID = Field(default_factory=uuid4)
    customer_id: UUID
    message_type: MessageType
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    reference: str | None = Field(default=None, description="Code of the related entity")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
