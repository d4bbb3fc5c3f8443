# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Authentication endpoints."""

from typing import Any

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status

from ...models.user import (
    ForgotPasswordRequest,
    LoginRequest,
    Principal,
    RegisterRequest,
    ResetPasswordRequest,
    StaffAccountCreate,
)
from ...services.auth_service import AuthService
from ..dependencies import get_auth_service, get_current_user
from ..response_patterns import ErrorResponse, SuccessResponse, handle_result

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
@beartype
async def register(
    request: RegisterRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Customer self-registration. Returns a token for the new account."""
    result = await service.register(request)
    return handle_result(
        result, response, status.HTTP_201_CREATED, "Registration successful"
    )


@router.post("/login")
@beartype
async def login(
    request: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.login(request)
    return handle_result(result, response, message="Login successful")


@router.post("/staff", status_code=status.HTTP_201_CREATED)
@beartype
async def create_staff_account(
    request: StaffAccountCreate,
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> SuccessResponse[Any] | ErrorResponse:
    """Admin-only creation of Staff and Admin accounts."""
    result = await service.create_staff_account(principal, request)
    return handle_result(result, response, status.HTTP_201_CREATED, "Account created")


@router.get("/me")
@beartype
async def me(
    response: Response,
    principal: Principal = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.get_me(principal)
    return handle_result(result, response)


@router.post("/forgot-password")
@beartype
async def forgot_password(
    request: ForgotPasswordRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.forgot_password(request)
    return handle_result(
        result,
        response,
        message="If an account exists with this email, a reset link will be sent.",
    )


@router.put("/reset-password/{token}")
@beartype
async def reset_password(
    token: str,
    request: ResetPasswordRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> SuccessResponse[Any] | ErrorResponse:
    result = await service.reset_password(token, request)
    return handle_result(
        result,
        response,
        message="Password reset successful. Please log in with your new password.",
    )
