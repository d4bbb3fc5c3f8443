# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Domain error taxonomy shared by services and the HTTP layer."""

from enum import Enum

from attrs import field, frozen
from beartype import beartype


class ErrorKind(str, Enum):
    """Kinds of domain failure, each mapped to one HTTP status."""

    VALIDATION = "validation_failure"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    STATE_TRANSITION = "state_transition_rejected"
    UPSTREAM = "upstream_failure"


@frozen
class DomainError:
    """A short, user-facing failure description."""

    kind: ErrorKind = field()
    message: str = field()
    code: str | None = field(default=None)

    def __str__(self) -> str:
        return self.message


@beartype
def validation_error(message: str, code: str | None = None) -> DomainError:
    return DomainError(ErrorKind.VALIDATION, message, code)


@beartype
def not_found(entity: str) -> DomainError:
    return DomainError(ErrorKind.NOT_FOUND, f"{entity} not found", "NOT_FOUND")


@beartype
def unauthorized(message: str = "Authentication required") -> DomainError:
    return DomainError(ErrorKind.UNAUTHORIZED, message, "UNAUTHORIZED")


@beartype
def forbidden(message: str = "You are not allowed to perform this action") -> DomainError:
    return DomainError(ErrorKind.FORBIDDEN, message, "FORBIDDEN")


@beartype
def conflict(message: str, code: str | None = None) -> DomainError:
    return DomainError(ErrorKind.CONFLICT, message, code)


@beartype
def state_transition_rejected(message: str, code: str | None = None) -> DomainError:
    return DomainError(ErrorKind.STATE_TRANSITION, message, code)


POLICY_INACTIVE = "POLICY_INACTIVE"
UNSUPPORTED_VEHICLE_TYPE = "UNSUPPORTED_VEHICLE_TYPE"
ALREADY_PAID = "ALREADY_PAID"
CLAIM_ALREADY_FINALIZED = "CLAIM_ALREADY_FINALIZED"
DUPLICATE_PURCHASE = "DUPLICATE_PURCHASE"
OPEN_RENEWAL_EXISTS = "OPEN_RENEWAL_EXISTS"
OPEN_CLAIM_EXISTS = "OPEN_CLAIM_EXISTS"
REMINDER_ALREADY_SENT = "REMINDER_ALREADY_SENT"
