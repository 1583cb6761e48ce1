"""Unit tests for prepaid billing domain entities"""

from datetime import datetime
from decimal import Decimal
from src.domain.base import to_money
from src.domain.client_billing_profile import BillingMode, ClientBillingProfile
from src.domain.invoice import Invoice, InvoiceCategory, InvoiceStatus, TOP_UP_MARKER
from src.domain.ledger_transaction import LedgerTransaction, TransactionType
from src.domain.training_session import GroupOverride, SessionStatus, TrainingSession


class TestClientBillingProfile:
    """Test ClientBillingProfile defaults and helpers"""

    def test_defaults(self):
        profile = ClientBillingProfile(
            client_id="client_abc",
            trainer_id="trainer_123",
            workspace_id="ws_1",
            individual_rate=Decimal("100.00"),
        )

        assert profile.billing_mode == BillingMode.PER_SESSION
        assert profile.current_balance == Decimal("0")
        assert profile.target_balance is None
        assert profile.group_rate is None
        assert profile.version == 0
        assert profile.is_prepaid is False

    def test_is_prepaid(self):
        profile = ClientBillingProfile(
            client_id="client_abc",
            trainer_id="trainer_123",
            workspace_id="ws_1",
            billing_mode=BillingMode.PREPAID,
            target_balance=Decimal("500.00"),
            individual_rate=Decimal("100.00"),
        )

        assert profile.is_prepaid is True

    def test_billing_mode_values_match_names(self):
        for mode in BillingMode:
            assert mode.value == mode.name


class TestInvoiceTopUpDetection:
    """Top-up invoices are recognised by category or by the legacy notes marker"""

    def _invoice(self, **overrides):
        data = {
            "invoice_number": "INV-2025-000001",
            "client_id": "client_abc",
            "trainer_id": "trainer_123",
            "workspace_id": "ws_1",
            "amount": Decimal("450.00"),
            "status": InvoiceStatus.SENT,
        }
        data.update(overrides)
        return Invoice(**data)

    def test_category_marks_top_up(self):
        invoice = self._invoice(category=InvoiceCategory.PREPAID_TOPUP)
        assert invoice.is_top_up is True

    def test_legacy_notes_marker_marks_top_up(self):
        invoice = self._invoice(
            notes=f"{TOP_UP_MARKER} to $500.00. Current balance: $50.00"
        )
        assert invoice.category == InvoiceCategory.STANDARD
        assert invoice.is_top_up is True

    def test_standard_invoice_is_not_top_up(self):
        invoice = self._invoice(notes="March sessions")
        assert invoice.is_top_up is False

    def test_invoice_without_notes_is_not_top_up(self):
        assert self._invoice().is_top_up is False

    def test_default_currency(self):
        assert self._invoice().currency == "USD"


class TestLedgerTransaction:

    def test_create_deduction(self):
        entry = LedgerTransaction(
            client_profile_id=1,
            transaction_type=TransactionType.DEDUCTION,
            amount=Decimal("100.00"),
            balance_after=Decimal("350.00"),
            description="Training session on Mar 5, 2025",
            linked_session_id="sess_789",
        )

        assert entry.transaction_type == TransactionType.DEDUCTION
        assert entry.linked_invoice_id is None
        assert isinstance(entry.created_at, datetime)


class TestTrainingSession:

    def test_defaults(self):
        session = TrainingSession(
            trainer_id="trainer_123",
            client_id="client_abc",
            workspace_id="ws_1",
            start_time=datetime(2025, 3, 5, 10, 0),
            end_time=datetime(2025, 3, 5, 11, 0),
        )

        assert session.id
        assert session.status == SessionStatus.SCHEDULED
        assert session.group_override == GroupOverride.DEFAULT


class TestToMoney:

    def test_quantizes_to_cents(self):
        assert to_money(Decimal("10.005")) == Decimal("10.01")
        assert to_money(Decimal("10.004")) == Decimal("10.00")

    def test_accepts_int_and_float(self):
        assert to_money(5) == Decimal("5.00")
        assert to_money(0.1) == Decimal("0.10")
