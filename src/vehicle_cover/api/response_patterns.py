# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""API response patterns following Result[T, E] + HTTP semantics."""

from typing import Any, Generic, TypeVar

from beartype import beartype
from fastapi import Response
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import DomainError, ErrorKind
from ..core.result_types import Result
from ..models.base import Page, Pagination

T = TypeVar("T")


@beartype
class ErrorResponse(BaseModel):
    """Standardized error response for business logic failures."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )

    success: bool = Field(default=False, description="Always false for error responses")
    error: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(default=None, description="Machine-readable error code")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


class SuccessResponse(BaseModel, Generic[T]):
    """Standardized success response wrapper."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        validate_default=True,
    )

    success: bool = Field(default=True, description="Always true for success responses")
    data: T = Field(..., description="Response payload")
    message: str | None = Field(default=None)
    pagination: Pagination | None = Field(default=None)


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STATE_TRANSITION: 409,
    ErrorKind.UPSTREAM: 502,
}


class APIResponseHandler:
    """Turns service results into HTTP responses."""

    @staticmethod
    @beartype
    def map_error_to_status(error: DomainError) -> int:
        return STATUS_BY_KIND.get(error.kind, 500)

    @staticmethod
    @beartype
    def error_response(error: DomainError, response: Response) -> ErrorResponse:
        response.status_code = APIResponseHandler.map_error_to_status(error)
        return ErrorResponse(
            error=error.message,
            error_code=error.code or error.kind.value.upper(),
        )

    @staticmethod
    def from_result(
        result: Result[T, DomainError],
        response: Response,
        success_status: int = 200,
        message: str | None = None,
    ) -> SuccessResponse[Any] | ErrorResponse:
        """Convert Result[T, DomainError] to the response envelope."""
        if result.is_err():
            return APIResponseHandler.error_response(result.unwrap_err(), response)

        response.status_code = success_status
        return SuccessResponse[Any](data=result.unwrap(), message=message)

    @staticmethod
    def from_page_result(
        result: Result[Page[T], DomainError],
        response: Response,
    ) -> SuccessResponse[Any] | ErrorResponse:
        if result.is_err():
            return APIResponseHandler.error_response(result.unwrap_err(), response)

        page = result.unwrap()
        response.status_code = 200
        return SuccessResponse[Any](data=page.items, pagination=page.pagination)


def handle_result(
    result: Result[T, DomainError],
    response: Response,
    success_status: int = 200,
    message: str | None = None,
) -> SuccessResponse[Any] | ErrorResponse:
    """Convenience function for standard result handling."""
    return APIResponseHandler.from_result(result, response, success_status, message)


def handle_page_result(
    result: Result[Page[T], DomainError],
    response: Response,
) -> SuccessResponse[Any] | ErrorResponse:
    """Convenience function for list endpoints."""
    return APIResponseHandler.from_page_result(result, response)
