"""Unit tests for claim submission and processing."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import asyncpg
import pytest

from vehicle_cover.core.errors import CLAIM_ALREADY_FINALIZED, OPEN_CLAIM_EXISTS, ErrorKind
from vehicle_cover.models.base import PageRequest
from vehicle_cover.models.claim import ClaimCreate, ClaimFilter, ClaimProcess, ClaimStatus
from vehicle_cover.models.notification import MessageType
from vehicle_cover.services.cache_keys import CacheKeys
from vehicle_cover.services.claim_service import ClaimService


@pytest.fixture
def service(mock_db, mock_cache, mock_notifier) -> ClaimService:
    return ClaimService(mock_db, mock_cache, mock_notifier, payout_cap_multiplier=1.0)


def claim_for(premium: dict, reason: str = "Front bumper dented in traffic") -> ClaimCreate:
    return ClaimCreate(
        premium_id=premium["id"],
        policy_id=premium["policy_id"],
        vehicle_id=premium["vehicle_id"],
        claim_reason=reason,
    )


class TestSubmitClaim:
    async def test_nine_character_reason_rejected_before_any_query(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        result = await service.submit_claim(
            customer_principal, claim_for(paid_premium_row(), "123456789")
        )

        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.message == "Minimum 10 characters required"
        mock_db.fetchrow.assert_not_awaited()

    async def test_reason_is_measured_after_trimming(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        result = await service.submit_claim(
            customer_principal, claim_for(paid_premium_row(), "   short    ")
        )

        assert result.error.message == "Minimum 10 characters required"

    async def test_overlong_reason_rejected(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        result = await service.submit_claim(
            customer_principal, claim_for(paid_premium_row(), "x" * 1001)
        )

        assert result.error.message == "Maximum 1000 characters allowed"
        mock_db.fetchrow.assert_not_awaited()

    async def test_ten_character_reason_creates_pending_claim(
        self,
        service,
        mock_db,
        mock_cache,
        mock_notifier,
        customer_principal,
        paid_premium_row,
        claim_row,
    ) -> None:
        premium = paid_premium_row()
        stored = claim_row(
            premium_id=premium["id"],
            policy_id=premium["policy_id"],
            vehicle_id=premium["vehicle_id"],
            claim_reason="1234567890",
        )
        mock_db.fetchrow.side_effect = [premium, stored]
        mock_db.fetchval.side_effect = [None, 1]

        result = await service.submit_claim(customer_principal, claim_for(premium, "1234567890"))

        claim = result.unwrap()
        assert claim.claim_status == ClaimStatus.PENDING
        assert claim.claim_amount is None
        insert_args = mock_db.fetchrow.call_args.args
        assert insert_args[2] == "CLM-00001"
        assert insert_args[7] == "1234567890"
        assert mock_notifier.notify.call_args.args[1] == MessageType.CLAIM_UPDATE
        mock_cache.delete.assert_awaited_once_with(CacheKeys.admin_dashboard())

    async def test_open_claim_conflicts(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        premium = paid_premium_row()
        mock_db.fetchrow.return_value = premium
        mock_db.fetchval.return_value = 1

        result = await service.submit_claim(customer_principal, claim_for(premium))

        assert result.error.kind == ErrorKind.CONFLICT
        assert result.error.code == OPEN_CLAIM_EXISTS

    async def test_unique_index_race_conflicts(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        premium = paid_premium_row()
        mock_db.fetchrow.side_effect = [premium, asyncpg.UniqueViolationError("open claim")]
        mock_db.fetchval.side_effect = [None, 3]

        result = await service.submit_claim(customer_principal, claim_for(premium))

        assert result.error.code == OPEN_CLAIM_EXISTS

    @pytest.mark.parametrize(
        "overrides",
        [
            {"payment_status": "Pending"},
            {"is_expired": True},
            {"expiry_date": datetime.now(timezone.utc) - timedelta(days=10)},
            {"expiry_date": None},
        ],
    )
    async def test_only_active_paid_cover_is_claimable(
        self, service, mock_db, customer_principal, paid_premium_row, overrides
    ) -> None:
        premium = paid_premium_row(**overrides)
        mock_db.fetchrow.return_value = premium

        result = await service.submit_claim(customer_principal, claim_for(premium))

        assert result.error.kind == ErrorKind.STATE_TRANSITION

    async def test_mismatched_vehicle_rejected(
        self, service, mock_db, customer_principal, paid_premium_row
    ) -> None:
        premium = paid_premium_row()
        mock_db.fetchrow.return_value = premium
        request = ClaimCreate(
            premium_id=premium["id"],
            policy_id=premium["policy_id"],
            vehicle_id=uuid4(),
            claim_reason="Side mirror broken overnight",
        )

        result = await service.submit_claim(customer_principal, request)

        assert result.error.kind == ErrorKind.VALIDATION

    async def test_other_customers_premium_forbidden(
        self, service, mock_db, other_customer_principal, paid_premium_row
    ) -> None:
        premium = paid_premium_row()
        mock_db.fetchrow.return_value = premium

        result = await service.submit_claim(other_customer_principal, claim_for(premium))

        assert result.error.kind == ErrorKind.FORBIDDEN


class TestProcessClaim:
    async def test_approve_sets_amount(
        self, service, mock_db, mock_cache, mock_notifier, admin_principal, claim_row
    ) -> None:
        pending = claim_row()
        approved = {
            **pending,
            "claim_status": "Approved",
            "claim_amount": Decimal("800.00"),
            "processed_date": pending["claim_date"],
        }
        mock_db.fetchrow.side_effect = [
            {**pending, "policy_base_amount": Decimal("1000.00")},
            approved,
        ]

        result = await service.process_claim(
            admin_principal,
            pending["id"],
            ClaimProcess(claim_status=ClaimStatus.APPROVED, claim_amount=Decimal("800.00")),
        )

        claim = result.unwrap()
        assert claim.claim_status == ClaimStatus.APPROVED
        assert claim.claim_amount == Decimal("800.00")
        update_args = mock_db.fetchrow.call_args.args
        assert update_args[2] == "Approved"
        assert update_args[3] == Decimal("800.00")
        mock_cache.delete.assert_awaited_once_with(CacheKeys.admin_dashboard())
        assert "800.00" in mock_notifier.notify.call_args.args[3]

    async def test_move_to_review_without_amount(
        self, service, mock_db, admin_principal, claim_row
    ) -> None:
        pending = claim_row()
        mock_db.fetchrow.side_effect = [
            {**pending, "policy_base_amount": Decimal("1000.00")},
            {**pending, "claim_status": "Under-Review"},
        ]

        result = await service.process_claim(
            admin_principal, pending["id"], ClaimProcess(claim_status=ClaimStatus.UNDER_REVIEW)
        )

        assert result.unwrap().claim_status == ClaimStatus.UNDER_REVIEW
        assert mock_db.fetchrow.call_args.args[3] is None

    @pytest.mark.parametrize("final_status", ["Approved", "Rejected"])
    async def test_finalized_claim_is_terminal(
        self, service, mock_db, mock_notifier, admin_principal, claim_row, final_status
    ) -> None:
        amount = Decimal("500.00") if final_status == "Approved" else None
        done = claim_row(claim_status=final_status, claim_amount=amount)
        mock_db.fetchrow.return_value = {**done, "policy_base_amount": Decimal("1000.00")}

        result = await service.process_claim(
            admin_principal, done["id"], ClaimProcess(claim_status=ClaimStatus.REJECTED)
        )

        assert result.error.kind == ErrorKind.STATE_TRANSITION
        assert result.error.code == CLAIM_ALREADY_FINALIZED
        assert mock_db.fetchrow.await_count == 1
        mock_notifier.notify.assert_not_awaited()

    async def test_amount_above_cap_rejected(
        self, service, mock_db, admin_principal, claim_row
    ) -> None:
        mock_db.fetchrow.return_value = {**claim_row(), "policy_base_amount": Decimal("1000.00")}

        result = await service.process_claim(
            admin_principal,
            uuid4(),
            ClaimProcess(claim_status=ClaimStatus.APPROVED, claim_amount=Decimal("1000.01")),
        )

        assert result.error.kind == ErrorKind.VALIDATION
        assert "1000.00" in result.error.message

    async def test_cap_scales_with_multiplier(
        self, mock_db, mock_cache, mock_notifier, admin_principal, claim_row
    ) -> None:
        service = ClaimService(mock_db, mock_cache, mock_notifier, payout_cap_multiplier=1.5)
        pending = claim_row()
        mock_db.fetchrow.side_effect = [
            {**pending, "policy_base_amount": Decimal("1000.00")},
            {**pending, "claim_status": "Approved", "claim_amount": Decimal("1500.00")},
        ]

        result = await service.process_claim(
            admin_principal,
            pending["id"],
            ClaimProcess(claim_status=ClaimStatus.APPROVED, claim_amount=Decimal("1500.00")),
        )

        assert result.unwrap().claim_amount == Decimal("1500.00")

    @pytest.mark.parametrize(
        "request_body",
        [
            ClaimProcess(claim_status=ClaimStatus.PENDING),
            ClaimProcess(claim_status=ClaimStatus.APPROVED),
            ClaimProcess(claim_status=ClaimStatus.APPROVED, claim_amount=Decimal("0")),
            ClaimProcess(claim_status=ClaimStatus.REJECTED, claim_amount=Decimal("10")),
        ],
    )
    async def test_invalid_requests_rejected_before_lookup(
        self, service, mock_db, admin_principal, request_body
    ) -> None:
        result = await service.process_claim(admin_principal, uuid4(), request_body)

        assert result.error.kind == ErrorKind.VALIDATION
        mock_db.fetchrow.assert_not_awaited()

    async def test_same_status_rejected(self, service, mock_db, admin_principal, claim_row) -> None:
        review = claim_row(claim_status="Under-Review")
        mock_db.fetchrow.return_value = {**review, "policy_base_amount": Decimal("1000.00")}

        result = await service.process_claim(
            admin_principal, review["id"], ClaimProcess(claim_status=ClaimStatus.UNDER_REVIEW)
        )

        assert result.error.kind == ErrorKind.STATE_TRANSITION

    async def test_lost_race_reports_finalized(
        self, service, mock_db, admin_principal, claim_row
    ) -> None:
        mock_db.fetchrow.side_effect = [
            {**claim_row(), "policy_base_amount": Decimal("1000.00")},
            None,
        ]

        result = await service.process_claim(
            admin_principal, uuid4(), ClaimProcess(claim_status=ClaimStatus.REJECTED)
        )

        assert result.error.code == CLAIM_ALREADY_FINALIZED

    async def test_staff_cannot_process(self, service, staff_principal) -> None:
        result = await service.process_claim(
            staff_principal, uuid4(), ClaimProcess(claim_status=ClaimStatus.REJECTED)
        )

        assert result.error.kind == ErrorKind.FORBIDDEN

    async def test_missing_claim(self, service, admin_principal) -> None:
        result = await service.process_claim(
            admin_principal, uuid4(), ClaimProcess(claim_status=ClaimStatus.REJECTED)
        )

        assert result.error.kind == ErrorKind.NOT_FOUND


class TestClaimQueries:
    async def test_other_customers_claim_reads_as_missing(
        self, service, mock_db, other_customer_principal, claim_row
    ) -> None:
        mock_db.fetchrow.return_value = claim_row()

        result = await service.get_claim(other_customer_principal, uuid4())

        assert result.error.kind == ErrorKind.NOT_FOUND

    async def test_owner_reads_claim(self, service, mock_db, customer_principal, claim_row) -> None:
        row = claim_row()
        mock_db.fetchrow.return_value = row

        result = await service.get_claim(customer_principal, row["id"])

        assert result.unwrap().claim_code == "CLM-00001"

    async def test_list_scoped_and_filtered(
        self, service, mock_db, customer_principal, claim_row
    ) -> None:
        mock_db.fetchval.return_value = 1
        mock_db.fetch.return_value = [claim_row()]

        page = (
            await service.list_claims(
                customer_principal,
                ClaimFilter(claim_status=ClaimStatus.PENDING),
                PageRequest(limit=5),
            )
        ).unwrap()

        assert len(page.items) == 1
        _, *params = mock_db.fetch.call_args.args
        assert params == [customer_principal.customer_id, "Pending", 5, 0]
