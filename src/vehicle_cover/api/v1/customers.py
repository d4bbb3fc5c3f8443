# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Customer management endpoints."""

from typing import Any
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status

from ...models.customer import CustomerCreate, CustomerFilter, CustomerUpdate
from ...models.user import Principal
from ...services.customer_service import CustomerService
from ..dependencies import PaginationParams, get_current_user, get_customer_service
from ..response_patterns import (
    ErrorResponse,
    SuccessResponse,
    handle_page_result,
    handle_result,
)

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", status_code=status.HTTP_201_CREATED)
@beartype
async def register_customer(
    request: CustomerCreate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.register_customer(principal, request)
    return handle_result(
        result, response, status.HTTP_201_CREATED, "Customer registered"
    )


@router.get("")
@beartype
async def list_customers(
    response: Response,
    filters: CustomerFilter = Depends(),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.list_customers(principal, filters, pagination.request)
    return handle_page_result(result, response)


@router.get("/stats")
@beartype
async def get_customer_stats(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_customer_stats(principal)
    return handle_result(result, response)


@router.get("/{customer_id}")
@beartype
async def get_customer(
    customer_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_customer(principal, customer_id)
    return handle_result(result, response)


@router.put("/{customer_id}")
@beartype
async def update_customer(
    customer_id: UUID,
    request: CustomerUpdate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.update_customer(principal, customer_id, request)
    return handle_result(result, response, message="Customer updated")


@router.patch("/{customer_id}/toggle-status")
@beartype
async def toggle_customer_status(
    customer_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: CustomerService = Depends(get_customer_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.toggle_customer_status(principal, customer_id)
    message = None
    if result.is_ok():
        message = (
            "Customer activated" if result.unwrap().is_active else "Customer deactivated"
        )
    return handle_result(result, response, message=message)
