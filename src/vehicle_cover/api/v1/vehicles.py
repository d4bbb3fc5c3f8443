# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Vehicle endpoints."""

from typing import Any
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status

from ...models.user import Principal
from ...models.vehicle import VehicleCreate, VehicleFilter, VehicleUpdate
from ...services.vehicle_service import VehicleService
from ..dependencies import PaginationParams, get_current_user, get_vehicle_service
from ..response_patterns import (
    ErrorResponse,
    SuccessResponse,
    handle_page_result,
    handle_result,
)

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("", status_code=status.HTTP_201_CREATED)
@beartype
async def add_vehicle(
    request: VehicleCreate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.add_vehicle(principal, request)
    return handle_result(result, response, status.HTTP_201_CREATED, "Vehicle added")


@router.get("")
@beartype
async def list_vehicles(
    response: Response,
    filters: VehicleFilter = Depends(),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.list_vehicles(principal, filters, pagination.request)
    return handle_page_result(result, response)


@router.get("/stats")
@beartype
async def get_vehicle_stats(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_vehicle_stats(principal)
    return handle_result(result, response)


@router.get("/{vehicle_id}")
@beartype
async def get_vehicle(
    vehicle_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_vehicle(principal, vehicle_id)
    return handle_result(result, response)


@router.put("/{vehicle_id}")
@beartype
async def update_vehicle(
    vehicle_id: UUID,
    request: VehicleUpdate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.update_vehicle(principal, vehicle_id, request)
    return handle_result(result, response, message="Vehicle updated")


@router.delete("/{vehicle_id}")
@beartype
async def delete_vehicle(
    vehicle_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.delete_vehicle(principal, vehicle_id)
    return handle_result(result, response, message="Vehicle deleted")
