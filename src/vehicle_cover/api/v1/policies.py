# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Policy catalogue, premium preview and purchase endpoints."""

from typing import Any
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status

from ...models.policy import PolicyCreate, PolicyFilter, PolicyUpdate
from ...models.premium import PremiumQuoteRequest, PurchaseRequest
from ...models.user import Principal
from ...services.policy_service import PolicyService
from ...services.premium_service import PremiumService
from ..dependencies import (
    PaginationParams,
    get_current_user,
    get_policy_service,
    get_premium_service,
)
from ..response_patterns import (
    ErrorResponse,
    SuccessResponse,
    handle_page_result,
    handle_result,
)

router = APIRouter(prefix="/policies", tags=["policies"])


@router.get("")
@beartype
async def list_policies(
    response: Response,
    filters: PolicyFilter = Depends(),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: PolicyService = Depends(get_policy_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """List policies. Customers only ever see active ones."""
    result = await service.list_policies(principal, filters, pagination.request)
    return handle_page_result(result, response)


@router.get("/stats")
@beartype
async def policy_stats(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PolicyService = Depends(get_policy_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_policy_stats(principal)
    return handle_result(result, response)


@router.post("/calculate-premium")
@beartype
async def calculate_premium(
    request: PremiumQuoteRequest,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PremiumService = Depends(get_premium_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Preview the premium for a vehicle. Nothing is stored."""
    result = await service.quote(principal, request)
    return handle_result(result, response)


@router.post("", status_code=status.HTTP_201_CREATED)
@beartype
async def create_policy(
    request: PolicyCreate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PolicyService = Depends(get_policy_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.create_policy(principal, request)
    return handle_result(result, response, status.HTTP_201_CREATED, "Policy created")


@router.get("/{policy_id}")
@beartype
async def get_policy(
    policy_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PolicyService = Depends(get_policy_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_policy(principal, policy_id)
    return handle_result(result, response)


@router.put("/{policy_id}")
@beartype
async def update_policy(
    policy_id: UUID,
    request: PolicyUpdate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PolicyService = Depends(get_policy_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.update_policy(principal, policy_id, request)
    return handle_result(result, response, message="Policy updated")


@router.delete("/{policy_id}")
@beartype
async def toggle_policy_status(
    policy_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PolicyService = Depends(get_policy_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Deactivate (or reactivate) a policy. Policies are never hard deleted."""
    result = await service.toggle_policy_status(principal, policy_id)
    message = None
    if result.is_ok():
        message = "Policy activated" if result.unwrap().is_active else "Policy deactivated"
    return handle_result(result, response, message=message)


@router.post("/{policy_id}/purchase", status_code=status.HTTP_201_CREATED)
@beartype
async def purchase_policy(
    policy_id: UUID,
    request: PurchaseRequest,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: PremiumService = Depends(get_premium_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Buy a policy for a vehicle. The premium is re-priced and awaits payment."""
    result = await service.purchase(principal, policy_id, request)
    return handle_result(
        result, response, status.HTTP_201_CREATED, "Policy purchased; payment pending"
    )
