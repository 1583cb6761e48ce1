"""Unit tests for RecordInvoicePayment use case"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.prepaid.record_invoice_payment import RecordInvoicePayment
from src.domain.errors import ConcurrencyConflictError
from src.domain.invoice import Invoice, InvoiceCategory, InvoiceStatus
from src.domain.ledger_transaction import LedgerTransaction, TransactionType


@pytest.fixture
def top_up_invoice():
    return Invoice(
        id=7,
        invoice_number="INV-2025-000007",
        client_id="client_abc",
        trainer_id="trainer_123",
        workspace_id="ws_1",
        amount=Decimal("450.00"),
        status=InvoiceStatus.SENT,
        category=InvoiceCategory.PREPAID_TOPUP,
    )


@pytest.fixture
def mock_invoice_repo(top_up_invoice):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=top_up_invoice)

    async def transition_status(invoice, from_status, to_status, paid_at=None):
        invoice.status = to_status
        invoice.paid_at = paid_at
        return invoice

    repo.transition_status = AsyncMock(side_effect=transition_status)
    return repo


@pytest.fixture
def mock_profile_repo(prepaid_profile):
    prepaid_profile.current_balance = Decimal("50.00")
    repo = MagicMock()
    repo.get_by_client_id = AsyncMock(return_value=prepaid_profile)
    repo.apply_delta = AsyncMock(side_effect=lambda profile, delta: profile.current_balance + delta)
    return repo


@pytest.fixture
def mock_transaction_repo():
    repo = MagicMock()
    repo.find_by_linked_invoice = AsyncMock(return_value=None)

    async def record(entry):
        entry.id = 99
        entry.created_at = datetime.utcnow()
        return entry

    repo.record = AsyncMock(side_effect=record)
    return repo


@pytest.fixture
def use_case(mock_uow, mock_invoice_repo, mock_profile_repo, mock_transaction_repo, fast_policy):
    return RecordInvoicePayment(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        profile_repo=mock_profile_repo,
        transaction_repo=mock_transaction_repo,
        policy=fast_policy,
    )


@pytest.mark.asyncio
class TestRecordTopUpPayment:

    async def test_paid_top_up_credits_balance(
        self, use_case, mock_invoice_repo, mock_profile_repo, mock_transaction_repo, mock_uow
    ):
        """
        Given: Balance 50.00 and a SENT 450.00 top-up invoice
        When: The invoice is paid
        Then: Invoice PAID, balance 500.00, CREDIT linked to the invoice
        """
        result = await use_case.execute(7)

        assert result.is_ok()
        response = result.value
        assert response.status == "PAID"
        assert response.is_top_up is True
        assert response.amount_credited == Decimal("450.00")
        assert response.new_balance == Decimal("500.00")
        assert response.transaction_id == 99
        assert response.already_paid is False

        args = mock_invoice_repo.transition_status.call_args[0]
        assert args[1] == InvoiceStatus.SENT
        assert args[2] == InvoiceStatus.PAID
        assert mock_invoice_repo.transition_status.call_args.kwargs["paid_at"] is not None

        mock_profile_repo.apply_delta.assert_called_once()
        assert mock_profile_repo.apply_delta.call_args[0][1] == Decimal("450.00")

        entry = mock_transaction_repo.record.call_args[0][0]
        assert entry.transaction_type == TransactionType.CREDIT
        assert entry.amount == Decimal("450.00")
        assert entry.balance_after == Decimal("500.00")
        assert entry.linked_invoice_id == 7
        mock_uow.commit.assert_called_once()

    async def test_standard_invoice_is_only_marked_paid(
        self, use_case, top_up_invoice, mock_profile_repo, mock_transaction_repo
    ):
        top_up_invoice.category = InvoiceCategory.STANDARD
        top_up_invoice.notes = "March sessions"

        result = await use_case.execute(7)

        assert result.is_ok()
        assert result.value.status == "PAID"
        assert result.value.is_top_up is False
        mock_profile_repo.apply_delta.assert_not_called()
        mock_transaction_repo.record.assert_not_called()

    async def test_paying_twice_is_a_no_op(
        self, use_case, top_up_invoice, mock_invoice_repo, mock_profile_repo, mock_transaction_repo
    ):
        top_up_invoice.status = InvoiceStatus.PAID
        mock_transaction_repo.find_by_linked_invoice = AsyncMock(
            return_value=LedgerTransaction(
                id=99,
                client_profile_id=1,
                transaction_type=TransactionType.CREDIT,
                amount=Decimal("450.00"),
                balance_after=Decimal("500.00"),
                description="Prepaid balance replenishment - invoice paid",
                linked_invoice_id=7,
            )
        )

        result = await use_case.execute(7)

        assert result.is_ok()
        assert result.value.already_paid is True
        assert result.value.transaction_id == 99
        assert result.value.amount_credited == Decimal("0")
        mock_invoice_repo.transition_status.assert_not_called()
        mock_profile_repo.apply_delta.assert_not_called()


@pytest.mark.asyncio
class TestRecordPaymentErrors:

    async def test_invoice_not_found(self, use_case, mock_invoice_repo):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await use_case.execute(404)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_other_workspace_is_not_found(self, use_case):
        result = await use_case.execute(7, workspace_id="ws_other")

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_cancelled_invoice_cannot_be_paid(self, use_case, top_up_invoice, mock_profile_repo):
        top_up_invoice.status = InvoiceStatus.CANCELLED

        result = await use_case.execute(7)

        assert result.is_err()
        assert result.error.code == "INVOICE_ALREADY_CANCELLED"
        mock_profile_repo.apply_delta.assert_not_called()

    async def test_draft_invoice_cannot_be_paid(
        self, use_case, top_up_invoice, mock_invoice_repo, mock_profile_repo
    ):
        """
        Given: An invoice still in DRAFT
        When: Payment is recorded
        Then: INVOICE_NOT_SENT; status and balance untouched
        """
        top_up_invoice.status = InvoiceStatus.DRAFT

        result = await use_case.execute(7)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_SENT"
        assert top_up_invoice.status == InvoiceStatus.DRAFT
        mock_invoice_repo.transition_status.assert_not_called()
        mock_profile_repo.apply_delta.assert_not_called()

    async def test_lost_status_race_is_retried(
        self, use_case, mock_invoice_repo, top_up_invoice, mock_profile_repo
    ):
        async def lose_then_see_paid(invoice, from_status, to_status, paid_at=None):
            # Another payer won: the invoice reads as PAID on the next attempt
            top_up_invoice.status = InvoiceStatus.PAID
            raise ConcurrencyConflictError("Invoice", invoice.id, from_status.value)

        mock_invoice_repo.transition_status = AsyncMock(side_effect=lose_then_see_paid)

        result = await use_case.execute(7)

        assert result.is_ok()
        assert result.value.already_paid is True
        mock_profile_repo.apply_delta.assert_not_called()
