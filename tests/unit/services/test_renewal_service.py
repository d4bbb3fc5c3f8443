"""Unit tests for the renewal workflow and the expiry sweep."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import asyncpg
import pytest

from vehicle_cover.core.errors import OPEN_RENEWAL_EXISTS, REMINDER_ALREADY_SENT, ErrorKind
from vehicle_cover.models.base import PageRequest
from vehicle_cover.models.notification import MessageType
from vehicle_cover.models.renewal import RenewalCreate, RenewalDecision, RenewalFilter
from vehicle_cover.services.cache_keys import CacheKeys
from vehicle_cover.services.renewal_service import RenewalService


@pytest.fixture
def service(mock_db, mock_cache, mock_notifier) -> RenewalService:
    return RenewalService(mock_db, mock_cache, mock_notifier, expiring_window_days=30)


class TestSubmitRenewal:
    async def test_submits_pending_request(
        self,
        service,
        mock_db,
        mock_cache,
        mock_notifier,
        customer_principal,
        paid_premium_row,
        renewal_row,
    ) -> None:
        premium = paid_premium_row()
        created = renewal_row(premium_id=premium["id"], expiry_date=premium["expiry_date"])
        mock_db.fetchrow.side_effect = [premium, created]
        mock_db.fetchval.side_effect = [None, 1]

        result = await service.submit_renewal(
            customer_principal, RenewalCreate(premium_id=premium["id"])
        )

        renewal = result.unwrap()
        assert renewal.renewal_status.value == "Pending"
        insert_args = mock_db.fetchrow.call_args.args
        assert insert_args[2] == "REN-00001"
        assert insert_args[6] == premium["expiry_date"]
        assert mock_notifier.notify.call_args.args[1] == MessageType.RENEWAL
        mock_cache.delete.assert_awaited_once_with(CacheKeys.admin_dashboard())

    async def test_second_request_conflicts(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        mock_db.fetchrow.return_value = paid_premium_row()
        mock_db.fetchval.return_value = 1

        result = await service.submit_renewal(customer_principal, RenewalCreate(premium_id=uuid4()))

        assert result.error.kind == ErrorKind.CONFLICT
        assert result.error.code == OPEN_RENEWAL_EXISTS
        assert mock_db.fetchrow.await_count == 1

    async def test_unique_index_race_conflicts(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        mock_db.fetchrow.side_effect = [
            paid_premium_row(),
            asyncpg.UniqueViolationError("uq_renewals_open_per_premium"),
        ]
        mock_db.fetchval.side_effect = [None, 2]

        result = await service.submit_renewal(customer_principal, RenewalCreate(premium_id=uuid4()))

        assert result.error.code == OPEN_RENEWAL_EXISTS

    async def test_unpaid_premium_rejected(
        self, service, mock_db, customer_principal, premium_row
    ) -> None:
        mock_db.fetchrow.return_value = premium_row()

        result = await service.submit_renewal(customer_principal, RenewalCreate(premium_id=uuid4()))

        assert result.error.kind == ErrorKind.STATE_TRANSITION

    @pytest.mark.parametrize(
        "overrides",
        [
            {"is_expired": True},
            {"expiry_date": datetime.now(timezone.utc) - timedelta(days=1)},
        ],
    )
    async def test_expired_coverage_rejected(
        self, service, mock_db, customer_principal, paid_premium_row, overrides
    ) -> None:
        mock_db.fetchrow.return_value = paid_premium_row(**overrides)

        result = await service.submit_renewal(customer_principal, RenewalCreate(premium_id=uuid4()))

        assert result.error.kind == ErrorKind.STATE_TRANSITION
        assert "expired" in result.error.message

    async def test_other_customer_forbidden(
        self, service, mock_db, other_customer_principal, paid_premium_row
    ) -> None:
        mock_db.fetchrow.return_value = paid_premium_row()

        result = await service.submit_renewal(
            other_customer_principal, RenewalCreate(premium_id=uuid4())
        )

        assert result.error.kind == ErrorKind.FORBIDDEN

    async def test_missing_premium(self, service, customer_principal) -> None:
        result = await service.submit_renewal(customer_principal, RenewalCreate(premium_id=uuid4()))

        assert result.error.kind == ErrorKind.NOT_FOUND


class TestDecisions:
    async def test_admin_approves(
        self, service, mock_db, mock_cache, mock_notifier, admin_principal, renewal_row
    ) -> None:
        pending = renewal_row()
        approved = {**pending, "renewal_status": "Approved", "admin_remarks": "Good record"}
        mock_db.fetchrow.side_effect = [pending, approved]

        result = await service.approve_renewal(
            admin_principal, pending["id"], RenewalDecision(admin_remarks="Good record")
        )

        assert result.unwrap().renewal_status.value == "Approved"
        assert mock_db.fetchrow.call_args.args[2] == "Approved"
        mock_cache.delete.assert_awaited_once_with(CacheKeys.admin_dashboard())
        assert "Good record" in mock_notifier.notify.call_args.args[3]

    async def test_approving_rejected_renewal_fails(
        self, service, mock_db, admin_principal, renewal_row
    ) -> None:
        rejected = renewal_row(renewal_status="Rejected")
        mock_db.fetchrow.return_value = rejected

        result = await service.approve_renewal(admin_principal, rejected["id"], RenewalDecision())

        assert result.error.kind == ErrorKind.STATE_TRANSITION
        assert mock_db.fetchrow.await_count == 1

    async def test_concurrent_decision_rejected(
        self, service, mock_db, admin_principal, renewal_row
    ) -> None:
        mock_db.fetchrow.side_effect = [renewal_row(), None]

        result = await service.reject_renewal(admin_principal, uuid4(), RenewalDecision())

        assert result.error.kind == ErrorKind.STATE_TRANSITION

    async def test_staff_cannot_decide(self, service, mock_db, staff_principal) -> None:
        result = await service.reject_renewal(staff_principal, uuid4(), RenewalDecision())

        assert result.error.kind == ErrorKind.FORBIDDEN
        mock_db.fetchrow.assert_not_awaited()


class TestReminders:
    async def test_sends_once(
        self, service, mock_db, mock_notifier, staff_principal, renewal_row
    ) -> None:
        approved = renewal_row(renewal_status="Approved")
        sent = {
            **approved,
            "reminder_sent_status": True,
            "reminder_sent_date": approved["renewal_date"],
        }
        mock_db.fetchrow.side_effect = [approved, sent]

        result = await service.send_reminder(staff_principal, approved["id"])

        assert result.unwrap().reminder_sent_status is True
        mock_notifier.notify.assert_awaited_once()

    async def test_second_reminder_conflicts(
        self, service, mock_db, staff_principal, renewal_row
    ) -> None:
        mock_db.fetchrow.return_value = renewal_row(
            renewal_status="Approved", reminder_sent_status=True
        )

        result = await service.send_reminder(staff_principal, uuid4())

        assert result.error.code == REMINDER_ALREADY_SENT

    async def test_pending_renewal_cannot_be_reminded(
        self, service, mock_db, staff_principal, renewal_row
    ) -> None:
        mock_db.fetchrow.return_value = renewal_row()

        result = await service.send_reminder(staff_principal, uuid4())

        assert result.error.kind == ErrorKind.STATE_TRANSITION


class TestExpirySweep:
    async def test_flags_and_notifies(self, service, mock_db, mock_cache, mock_notifier) -> None:
        expired = [
            {"id": uuid4(), "customer_id": uuid4(), "premium_code": "PREM-00001"},
            {"id": uuid4(), "customer_id": uuid4(), "premium_code": "PREM-00002"},
        ]
        mock_db.fetch.return_value = expired

        result = await service.sweep_expired()

        assert result.expired_count == 2
        assert result.premium_ids == [row["id"] for row in expired]
        assert mock_notifier.notify.await_count == 2
        assert mock_notifier.notify.call_args.args[1] == MessageType.EXPIRY
        sql = mock_db.fetch.call_args.args[0]
        assert "renewal_status = 'Approved'" in sql
        mock_cache.delete.assert_awaited_once_with(CacheKeys.admin_dashboard())

    async def test_nothing_to_expire(self, service, mock_db, mock_cache, mock_notifier) -> None:
        result = await service.sweep_expired()

        assert result.expired_count == 0
        mock_notifier.notify.assert_not_awaited()
        mock_cache.delete.assert_not_awaited()

    async def test_manual_trigger_admin_only(
        self, service, mock_db, admin_principal, staff_principal
    ) -> None:
        assert (await service.mark_expired_policies(admin_principal)).unwrap().expired_count == 0
        denied = await service.mark_expired_policies(staff_principal)
        assert denied.error.kind == ErrorKind.FORBIDDEN


class TestRenewalQueries:
    async def test_other_customers_renewal_reads_as_missing(
        self, service, mock_db, other_customer_principal, renewal_row
    ) -> None:
        mock_db.fetchrow.return_value = renewal_row()

        result = await service.get_renewal(other_customer_principal, uuid4())

        assert result.error.kind == ErrorKind.NOT_FOUND

    async def test_list_filters_by_status(
        self, service, mock_db, staff_principal, renewal_row
    ) -> None:
        mock_db.fetchval.return_value = 1
        mock_db.fetch.return_value = [renewal_row()]

        page = (
            await service.list_renewals(
                staff_principal, RenewalFilter(renewal_status="Pending"), PageRequest()
            )
        ).unwrap()

        assert page.total == 1
        sql, *params = mock_db.fetch.call_args.args
        assert "renewal_status = $1" in sql
        assert params == ["Pending", 10, 0]

    async def test_expiring_uses_window(
        self, service, mock_db, customer_principal
    ) -> None:
        mock_db.fetchval.return_value = 0

        await service.get_expiring_renewals(customer_principal, PageRequest(), days=7)

        sql, customer, start, horizon, *_ = mock_db.fetch.call_args.args
        assert "renewal_status = 'Approved'" in sql
        assert customer == customer_principal.customer_id
        assert horizon - start == timedelta(days=7)

    async def test_expiring_defaults_to_configured_window(
        self, service, mock_db, staff_principal
    ) -> None:
        mock_db.fetchval.return_value = 0

        await service.get_expiring_renewals(staff_principal, PageRequest())

        _, start, horizon, *_ = mock_db.fetch.call_args.args
        assert horizon - start == timedelta(days=30)
