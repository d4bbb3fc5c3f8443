# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Renewal workflow endpoints."""

from typing import Any
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Body, Depends, Query, Response, status

from ...models.renewal import RenewalCreate, RenewalDecision, RenewalFilter
from ...models.user import Principal
from ...services.renewal_service import RenewalService
from ..dependencies import PaginationParams, get_current_user, get_renewal_service
from ..response_patterns import (
    ErrorResponse,
    SuccessResponse,
    handle_page_result,
    handle_result,
)

router = APIRouter(prefix="/renewals", tags=["renewals"])


@router.post("", status_code=status.HTTP_201_CREATED)
@beartype
async def submit_renewal(
    request: RenewalCreate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.submit_renewal(principal, request)
    return handle_result(
        result, response, status.HTTP_201_CREATED, "Renewal request submitted"
    )


@router.get("")
@beartype
async def list_renewals(
    response: Response,
    filters: RenewalFilter = Depends(),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.list_renewals(principal, filters, pagination.request)
    return handle_page_result(result, response)


@router.get("/expiring")
@beartype
async def expiring_renewals(
    response: Response,
    days: int | None = Query(default=None, ge=1, le=365),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Approved renewals whose coverage ends within the next ``days`` days."""
    result = await service.get_expiring_renewals(principal, pagination.request, days)
    return handle_page_result(result, response)


@router.put("/mark-expired")
@beartype
async def mark_expired(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Manual run of the expiry sweep that also runs on a schedule."""
    result = await service.mark_expired_policies(principal)
    message = None
    if result.is_ok():
        message = f"{result.unwrap().expired_count} policies marked as expired"
    return handle_result(result, response, message=message)


@router.get("/{renewal_id}")
@beartype
async def get_renewal(
    renewal_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_renewal(principal, renewal_id)
    return handle_result(result, response)


@router.put("/{renewal_id}/approve")
@beartype
async def approve_renewal(
    renewal_id: UUID,
    response: Response,
    decision: RenewalDecision | None = Body(default=None),
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.approve_renewal(
        principal, renewal_id, decision or RenewalDecision()
    )
    return handle_result(result, response, message="Renewal approved")


@router.put("/{renewal_id}/reject")
@beartype
async def reject_renewal(
    renewal_id: UUID,
    response: Response,
    decision: RenewalDecision | None = Body(default=None),
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.reject_renewal(
        principal, renewal_id, decision or RenewalDecision()
    )
    return handle_result(result, response, message="Renewal rejected")


@router.post("/{renewal_id}/remind")
@beartype
async def send_reminder(
    renewal_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: RenewalService = Depends(get_renewal_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.send_reminder(principal, renewal_id)
    return handle_result(result, response, message="Reminder sent")
