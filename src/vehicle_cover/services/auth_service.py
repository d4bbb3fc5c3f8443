# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Account registration, login and staff provisioning."""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import asyncpg
from beartype import beartype

from ..core.database import Database
from ..core.errors import (
    DomainError,
    conflict,
    forbidden,
    not_found,
    unauthorized,
    validation_error,
)
from ..core.permissions import Operation, authorize
from ..core.result_types import Err, Ok, Result
from ..core.security import Security
from ..models.customer import CustomerCreate
from ..models.user import (
    AuthToken,
    ForgotPasswordRequest,
    LoginRequest,
    PasswordResetIssued,
    Principal,
    RegisterRequest,
    ResetPasswordRequest,
    Role,
    StaffAccountCreate,
    User,
)
from .customer_service import find_contact_clash, insert_customer
from .row_mappers import row_to_user

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Issues bearer tokens for customers, staff and admins."""

    def __init__(
        self, db: Database, security: Security, expose_reset_token: bool = False
    ) -> None:
        self._db = db
        self._security = security
        self._expose_reset_token = expose_reset_token

    @beartype
    async def register(self, data: RegisterRequest) -> Result[AuthToken, DomainError]:
        """Create a customer together with its login and sign it in."""
        email = str(data.email).lower()
        if await self._email_taken(email):
            return Err(conflict("An account with this email already exists"))
        clash = await find_contact_clash(self._db, email, data.contact_number)
        if clash is not None:
            return Err(clash)

        password_hash = self._security.hash_password(data.password)
        try:
            async with self._db.transaction() as conn:
                customer_row = await insert_customer(
                    conn,
                    CustomerCreate(
                        name=data.name,
                        email=email,
                        contact_number=data.contact_number,
                        address=data.address,
                    ),
                )
                user_row = await self._insert_user(
                    conn,
                    name=data.name,
                    email=email,
                    password_hash=password_hash,
                    role=Role.CUSTOMER,
                    customer_id=customer_row["id"],
                )
        except asyncpg.UniqueViolationError:
            return Err(conflict("An account with this email or contact number already exists"))

        user = row_to_user(user_row)
        logger.info("Customer %s registered", customer_row["customer_code"])
        return Ok(self._issue(user))

    @beartype
    async def login(self, data: LoginRequest) -> Result[AuthToken, DomainError]:
        row = await self._db.fetchrow(
            """
            SELECT u.*, c.is_active AS customer_active
            FROM users u
            LEFT JOIN customers c ON c.id = u.customer_id
            WHERE lower(u.email) = lower($1)
            """,
            str(data.email),
        )
        if row is None or not self._security.verify_password(
            data.password, row["password_hash"]
        ):
            return Err(unauthorized(_INVALID_CREDENTIALS))
        if not row["is_active"] or row["customer_active"] is False:
            return Err(forbidden("Account is inactive"))

        await self._db.execute(
            "UPDATE users SET last_login_at = $2 WHERE id = $1",
            row["id"],
            datetime.now(timezone.utc),
        )
        return Ok(self._issue(row_to_user(row)))

    @beartype
    async def create_staff_account(
        self, principal: Principal, data: StaffAccountCreate
    ) -> Result[User, DomainError]:
        auth = authorize(principal, Operation.STAFF_ACCOUNT_CREATE)
        if isinstance(auth, Err):
            return auth

        email = str(data.email).lower()
        if await self._email_taken(email):
            return Err(conflict("An account with this email already exists"))

        try:
            row = await self._insert_user(
                self._db,
                name=data.name,
                email=email,
                password_hash=self._security.hash_password(data.password),
                role=data.role,
                customer_id=None,
            )
        except asyncpg.UniqueViolationError:
            return Err(conflict("An account with this email already exists"))

        user = row_to_user(row)
        logger.info("%s account %s created by %s", user.role.value, user.id, principal.user_id)
        return Ok(user)

    @beartype
    async def get_me(self, principal: Principal) -> Result[User, DomainError]:
        row = await self._db.fetchrow("SELECT * FROM users WHERE id = $1", principal.user_id)
        if row is None:
            return Err(not_found("User"))
        return Ok(row_to_user(row))

    @beartype
    async def forgot_password(
        self, data: ForgotPasswordRequest
    ) -> Result[PasswordResetIssued, DomainError]:
        """Store a fresh reset token hash. Unknown emails look the same to callers."""
        row = await self._db.fetchrow(
            "SELECT id FROM users WHERE lower(email) = lower($1) AND is_active",
            str(data.email),
        )
        if row is None:
            return Ok(PasswordResetIssued())

        reset = self._security.issue_reset_token()
        await self._db.execute(
            """
            UPDATE users
            SET password_reset_token = $2, password_reset_expires = $3, updated_at = $4
            WHERE id = $1
            """,
            row["id"],
            reset.token_hash,
            reset.expires_at,
            datetime.now(timezone.utc),
        )
        logger.info("Password reset requested for user %s", row["id"])
        return Ok(
            PasswordResetIssued(reset_token=reset.token if self._expose_reset_token else None)
        )

    @beartype
    async def reset_password(
        self, token: str, data: ResetPasswordRequest
    ) -> Result[None, DomainError]:
        """Set a new password with a live reset token; the token is single use."""
        now = datetime.now(timezone.utc)
        row = await self._db.fetchrow(
            """
            UPDATE users
            SET password_hash = $2, password_reset_token = NULL,
                password_reset_expires = NULL, updated_at = $3
            WHERE password_reset_token = $1 AND password_reset_expires > $3
            RETURNING id
            """,
            self._security.hash_reset_token(token),
            self._security.hash_password(data.password),
            now,
        )
        if row is None:
            return Err(validation_error("Invalid or expired reset token"))
        logger.info("Password reset completed for user %s", row["id"])
        return Ok(None)

    def _issue(self, user: User) -> AuthToken:
        principal = Principal(user_id=user.id, role=user.role, customer_id=user.customer_id)
        token = self._security.create_access_token(principal)
        return AuthToken(
            access_token=token.access_token,
            expires_in=token.expires_in,
            user=user,
        )

    async def _email_taken(self, email: str) -> bool:
        found = await self._db.fetchval(
            "SELECT 1 FROM users WHERE lower(email) = lower($1)", email
        )
        return found is not None

    @staticmethod
    async def _insert_user(
        conn: Any,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        customer_id: UUID | None,
    ) -> Any:
        now = datetime.now(timezone.utc)
        return await conn.fetchrow(
            """
            INSERT INTO users (
                id, name, email, password_hash, role, customer_id,
                is_active, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, TRUE, $7, $7)
            RETURNING *
            """,
            uuid4(),
            name,
            email,
            password_hash,
            role.value,
            customer_id,
            now,
        )
