# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Premium record endpoints."""

from typing import Any
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Depends, Response

from ...models.premium import PaymentRequest, PremiumFilter
from ...models.user import Principal
from ...services.premium_service import PremiumService
from ..dependencies import PaginationParams, get_current_user, get_premium_service
from ..response_patterns import (
    ErrorResponse,
    SuccessResponse,
    handle_page_result,
    handle_result,
)

router = APIRouter(prefix="/premiums", tags=["premiums"])


@router.get("")
@beartype
async def list_premiums(
    response: Response,
    filters: PremiumFilter = Depends(),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: PremiumService = Depends(get_premium_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.list_premiums(principal, filters, pagination.request)
    return handle_page_result(result, response)


@router.get("/{premium_id}")
@beartype
async def get_premium(
    premium_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PremiumService = Depends(get_premium_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_premium(principal, premium_id)
    return handle_result(result, response)


@router.put("/{premium_id}/pay")
@beartype
async def pay_premium(
    premium_id: UUID,
    request: PaymentRequest,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PremiumService = Depends(get_premium_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Record the payment outcome. A second call on a paid record is a 409."""
    result = await service.pay(principal, premium_id, request)
    return handle_result(result, response, message="Payment successful")
