# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Dashboard rollups."""

from typing import Any

from beartype import beartype
from fastapi import APIRouter, Depends, Response

from ...models.user import Principal
from ...services.dashboard_service import DashboardService
from ..dependencies import get_current_user, get_dashboard_service
from ..response_patterns import ErrorResponse, SuccessResponse, handle_result

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/admin")
@beartype
async def admin_dashboard(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.admin_dashboard(principal)
    return handle_result(result, response)


@router.get("/customer")
@beartype
async def customer_dashboard(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.customer_dashboard(principal)
    return handle_result(result, response)
