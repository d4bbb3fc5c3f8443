# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Claim endpoints with workflow management."""

from typing import Any
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status

from ...models.claim import ClaimCreate, ClaimFilter, ClaimProcess
from ...models.user import Principal
from ...services.claim_service import ClaimService
from ..dependencies import PaginationParams, get_claim_service, get_current_user
from ..response_patterns import (
    ErrorResponse,
    SuccessResponse,
    handle_page_result,
    handle_result,
)

router = APIRouter(prefix="/claims", tags=["claims"])


@router.post("", status_code=status.HTTP_201_CREATED)
@beartype
async def submit_claim(
    request: ClaimCreate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: ClaimService = Depends(get_claim_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.submit_claim(principal, request)
    return handle_result(result, response, status.HTTP_201_CREATED, "Claim submitted")


@router.get("")
@beartype
async def list_claims(
    response: Response,
    filters: ClaimFilter = Depends(),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_user),
    service: ClaimService = Depends(get_claim_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.list_claims(principal, filters, pagination.request)
    return handle_page_result(result, response)


@router.get("/{claim_id}")
@beartype
async def get_claim(
    claim_id: UUID,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: ClaimService = Depends(get_claim_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_claim(principal, claim_id)
    return handle_result(result, response)


@router.put("/{claim_id}/process")
@beartype
async def process_claim(
    claim_id: UUID,
    request: ClaimProcess,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: ClaimService = Depends(get_claim_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Admin decision on a claim. Approved and Rejected claims are final."""
    result = await service.process_claim(principal, claim_id, request)
    return handle_result(result, response, message="Claim updated")
