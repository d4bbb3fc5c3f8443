# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Base Pydantic model configuration for all domain models.

Every entity is immutable and rejects unknown fields; list endpoints wrap
their items in :class:`Page`.
"""

import math
from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


@beartype
class BaseModelConfig(BaseModel):
    """Base model with strict configuration for all domain entities."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )


@beartype
class TimestampedModel(BaseModelConfig):
    """Base model with timestamp fields."""

    created_at: datetime = Field(
        ..., description="Timestamp when the entity was created"
    )
    updated_at: datetime = Field(
        ..., description="Timestamp when the entity was last updated"
    )


@beartype
class IdentifiableModel(TimestampedModel):
    """Base model with UUID identifier and timestamps."""

    id: UUID = Field(..., description="Unique identifier for the entity")


class Pagination(BaseModelConfig):
    """Pagination block of the list response envelope."""

    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_records: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    has_next_page: bool
    has_prev_page: bool


class Page(BaseModelConfig, Generic[T]):
    """One page of results plus the totals needed to describe it."""

    items: list[T] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def pagination(self) -> Pagination:
        total_pages = math.ceil(self.total / self.limit) if self.total else 0
        return Pagination(
            current_page=self.page,
            total_pages=total_pages,
            total_records=self.total,
            limit=self.limit,
            has_next_page=self.page < total_pages,
            has_prev_page=self.page > 1,
        )


class PageRequest(BaseModelConfig):
    """Requested page number and size."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=1000)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@beartype
def growth_percent(current: int, previous: int) -> int:
    """Month-over-month change in whole percent; 100 when growing from zero."""
    if previous > 0:
        return math.floor((current - previous) * 100 / previous + 0.5)
    return 100 if current > 0 else 0
