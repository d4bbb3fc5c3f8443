# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""JWT issuing/verification and bcrypt password hashing."""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt
from attrs import field, frozen
from beartype import beartype

from ..models.user import Principal, Role
from .config import get_settings


@frozen
class TokenPayload:
    """Decoded access token claims."""

    sub: str = field()
    role: str = field()
    exp: datetime = field()
    iat: datetime = field()
    jti: str = field()
    customer_id: str | None = field(default=None)

    def to_principal(self) -> Principal:
        return Principal(
            user_id=UUID(self.sub),
            role=Role(self.role),
            customer_id=UUID(self.customer_id) if self.customer_id else None,
        )


@frozen
class IssuedToken:
    access_token: str = field()
    expires_in: int = field()


@frozen
class ResetToken:
    """One-time password reset token; only the hash is stored."""

    token: str = field()
    token_hash: str = field()
    expires_at: datetime = field()


class Security:
    """Password hashing and token handling bound to the current settings."""

    def __init__(self, bcrypt_rounds: int = 12) -> None:
        settings = get_settings()
        self._jwt_secret = settings.jwt_secret
        self._jwt_algorithm = settings.jwt_algorithm
        self._jwt_expiration_minutes = settings.jwt_expiration_minutes
        self._reset_expiry_minutes = settings.password_reset_expiry_minutes
        self._bcrypt_rounds = bcrypt_rounds

    @beartype
    def hash_password(self, password: str) -> str:
        if len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")
        salt = bcrypt.gensalt(rounds=self._bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @beartype
    def verify_password(self, password: str, hashed_password: str) -> bool:
        try:
            return bool(
                bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
            )
        except ValueError:
            # malformed stored hash
            return False

    @beartype
    def create_access_token(
        self,
        principal: Principal,
        expires_delta: timedelta | None = None,
    ) -> IssuedToken:
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._jwt_expiration_minutes)

        payload = {
            "sub": str(principal.user_id),
            "role": principal.role.value,
            "customer_id": str(principal.customer_id) if principal.customer_id else None,
            "exp": now + expires_delta,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": "access",
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm=self._jwt_algorithm)
        return IssuedToken(
            access_token=token, expires_in=int(expires_delta.total_seconds())
        )

    @beartype
    def decode_token(self, token: str) -> TokenPayload | None:
        """Return the claims, or None for an invalid or expired token."""
        try:
            payload = jwt.decode(token, self._jwt_secret, algorithms=[self._jwt_algorithm])
            return TokenPayload(
                sub=payload["sub"],
                role=payload["role"],
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                jti=payload["jti"],
                customer_id=payload.get("customer_id"),
            )
        except (jwt.InvalidTokenError, KeyError):
            return None

    @beartype
    def issue_reset_token(self) -> ResetToken:
        token = secrets.token_hex(32)
        return ResetToken(
            token=token,
            token_hash=self.hash_reset_token(token),
            expires_at=datetime.now(timezone.utc)
            + timedelta(minutes=self._reset_expiry_minutes),
        )

    @staticmethod
    @beartype
    def hash_reset_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()



_security: Security | None = None


@beartype
def get_security() -> Security:
    """Get global security instance."""
    global _security
    if _security is None:
        _security = Security()
    return _security


@beartype
def reset_security() -> None:
    """Drop the cached instance so new settings take effect (for testing)."""
    global _security
    _security = None
