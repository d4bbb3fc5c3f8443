"""Unit tests for registration, login, staff provisioning and password resets."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from vehicle_cover.core.errors import ErrorKind
from vehicle_cover.core.result_types import Ok
from vehicle_cover.core.security import Security
from vehicle_cover.models.user import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    Role,
    StaffAccountCreate,
)
from vehicle_cover.services.auth_service import AuthService

PASSWORD = "s3cure-pass"


@pytest.fixture
def security() -> Security:
    return Security(bcrypt_rounds=4)


@pytest.fixture
def service(mock_db, security) -> AuthService:
    return AuthService(mock_db, security)


@pytest.fixture
def registration() -> RegisterRequest:
    return RegisterRequest(
        name="Asha Verma",
        email="ASHA@example.com",
        password=PASSWORD,
        contact_number="9876543210",
        address="12 MG Road, Pune",
    )


class TestRegister:
    async def test_creates_customer_and_login(
        self, service, security, mock_db, registration, customer_row, user_row
    ) -> None:
        mock_db.fetchval.side_effect = [None, 1]
        mock_db.fetchrow.side_effect = [None, customer_row(), user_row()]

        result = await service.register(registration)

        token = result.unwrap()
        assert token.token_type == "bearer"
        assert token.user.role == Role.CUSTOMER
        claims = security.decode_token(token.access_token)
        assert claims.to_principal().customer_id == token.user.customer_id

        user_insert = mock_db.fetchrow.call_args.args
        assert user_insert[3] == "asha@example.com"
        assert security.verify_password(PASSWORD, user_insert[4])
        assert user_insert[5] == "Customer"

    async def test_taken_email_conflicts(self, service, mock_db, registration) -> None:
        mock_db.fetchval.return_value = 1

        result = await service.register(registration)

        assert result.error.kind == ErrorKind.CONFLICT
        mock_db.fetchrow.assert_not_awaited()

    async def test_taken_phone_conflicts(self, service, mock_db, registration) -> None:
        mock_db.fetchrow.return_value = {"email_taken": False, "phone_taken": True}

        result = await service.register(registration)

        assert result.error.kind == ErrorKind.CONFLICT
        assert "contact number" in result.error.message


class TestLogin:
    async def test_valid_credentials(self, service, security, mock_db, user_row) -> None:
        row = user_row(password_hash=security.hash_password(PASSWORD))
        mock_db.fetchrow.return_value = {**row, "customer_active": True}

        result = await service.login(LoginRequest(email="asha@example.com", password=PASSWORD))

        token = result.unwrap()
        assert token.user.id == row["id"]
        assert security.decode_token(token.access_token).sub == str(row["id"])
        mock_db.execute.assert_awaited_once()

    async def test_wrong_password(self, service, security, mock_db, user_row) -> None:
        row = user_row(password_hash=security.hash_password(PASSWORD))
        mock_db.fetchrow.return_value = {**row, "customer_active": True}

        result = await service.login(
            LoginRequest(email="asha@example.com", password="wrong-pass")
        )

        assert result.error.kind == ErrorKind.UNAUTHORIZED
        mock_db.execute.assert_not_awaited()

    async def test_unknown_email_looks_like_wrong_password(self, service) -> None:
        result = await service.login(LoginRequest(email="nobody@example.com", password=PASSWORD))

        assert result.error.kind == ErrorKind.UNAUTHORIZED
        assert result.error.message == "Invalid email or password"

    async def test_deactivated_customer_forbidden(
        self, service, security, mock_db, user_row
    ) -> None:
        row = user_row(password_hash=security.hash_password(PASSWORD))
        mock_db.fetchrow.return_value = {**row, "customer_active": False}

        result = await service.login(LoginRequest(email="asha@example.com", password=PASSWORD))

        assert result.error.kind == ErrorKind.FORBIDDEN

    async def test_staff_without_customer_link(
        self, service, security, mock_db, user_row
    ) -> None:
        row = user_row(
            password_hash=security.hash_password(PASSWORD), role="Staff", customer_id=None
        )
        mock_db.fetchrow.return_value = {**row, "customer_active": None}

        result = await service.login(LoginRequest(email="asha@example.com", password=PASSWORD))

        assert result.unwrap().user.role == Role.STAFF


class TestStaffAccounts:
    @pytest.fixture
    def staff_account(self) -> StaffAccountCreate:
        return StaffAccountCreate(name="Ravi Rao", email="ravi@example.com", password=PASSWORD)

    async def test_admin_creates_staff(
        self, service, mock_db, admin_principal, staff_account, user_row
    ) -> None:
        mock_db.fetchrow.return_value = user_row(
            email="ravi@example.com", role="Staff", customer_id=None
        )

        result = await service.create_staff_account(admin_principal, staff_account)

        assert result.unwrap().role == Role.STAFF
        assert mock_db.fetchrow.call_args.args[6] is None

    async def test_staff_cannot_create_accounts(
        self, service, mock_db, staff_principal, staff_account
    ) -> None:
        result = await service.create_staff_account(staff_principal, staff_account)

        assert result.error.kind == ErrorKind.FORBIDDEN
        mock_db.fetchval.assert_not_awaited()

    async def test_taken_email_conflicts(
        self, service, mock_db, admin_principal, staff_account
    ) -> None:
        mock_db.fetchval.return_value = 1

        result = await service.create_staff_account(admin_principal, staff_account)

        assert result.error.kind == ErrorKind.CONFLICT


class TestMe:
    async def test_returns_current_user(
        self, service, mock_db, customer_principal, user_row
    ) -> None:
        row = user_row(id=customer_principal.user_id)
        mock_db.fetchrow.return_value = row

        result = await service.get_me(customer_principal)

        assert result.unwrap().id == customer_principal.user_id

    async def test_deleted_user(self, service, customer_principal) -> None:
        result = await service.get_me(customer_principal)

        assert result.error.kind == ErrorKind.NOT_FOUND


class TestPasswordReset:
    async def test_forgot_stores_hash_and_returns_token(
        self, service, security, mock_db
    ) -> None:
        user_id = uuid4()
        mock_db.fetchrow.return_value = {"id": user_id}
        exposing = AuthService(mock_db, security, expose_reset_token=True)

        issued = (
            await exposing.forgot_password(ForgotPasswordRequest(email="asha@example.com"))
        ).unwrap()

        _, stored_for, token_hash, expires_at, _ = mock_db.execute.call_args.args
        assert stored_for == user_id
        assert token_hash == security.hash_reset_token(issued.reset_token)
        assert token_hash != issued.reset_token
        assert expires_at > datetime.now(timezone.utc)

    async def test_token_withheld_unless_exposed(self, service, mock_db) -> None:
        mock_db.fetchrow.return_value = {"id": uuid4()}

        issued = (
            await service.forgot_password(ForgotPasswordRequest(email="asha@example.com"))
        ).unwrap()

        assert issued.reset_token is None
        mock_db.execute.assert_awaited_once()

    async def test_unknown_email_reports_success(self, service, mock_db) -> None:
        result = await service.forgot_password(
            ForgotPasswordRequest(email="nobody@example.com")
        )

        assert result.unwrap().reset_token is None
        mock_db.execute.assert_not_awaited()

    async def test_reset_sets_new_password(self, service, security, mock_db) -> None:
        mock_db.fetchrow.return_value = {"id": uuid4()}

        result = await service.reset_password(
            "a" * 64, ResetPasswordRequest(password="n3w-passw0rd")
        )

        assert isinstance(result, Ok)
        sql, token_hash, password_hash, _ = mock_db.fetchrow.call_args.args
        assert "password_reset_expires > $3" in sql
        assert token_hash == security.hash_reset_token("a" * 64)
        assert security.verify_password("n3w-passw0rd", password_hash)

    async def test_expired_or_used_token_rejected(self, service) -> None:
        result = await service.reset_password(
            "stale-token", ResetPasswordRequest(password="n3w-passw0rd")
        )

        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.message == "Invalid or expired reset token"
