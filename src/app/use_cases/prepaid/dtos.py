"""Data Transfer Objects for Prepaid Billing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class ResolvedRateDTO(BaseModel):
    """Price chosen for one session"""

    rate: Decimal = Field(..., description="Amount to charge")
    is_group_session: bool = Field(..., description="Whether the group path was taken")
    participant_count: int = Field(default=1, description="Clients sharing the slot")


class SessionDeductionOutcomeDTO(BaseModel):
    """
    Outcome of deducting one completed session

    Contract between the deduction engine and the billing pipeline.
    """

    session_id: str = Field(..., description="Charged session")
    client_profile_id: int = Field(..., description="Charged profile")
    success: bool = Field(
        ...,
        description="True only if the full rate was collected"
    )
    amount_deducted: Decimal = Field(..., description="Amount actually taken")
    new_balance: Decimal = Field(..., description="Balance after the deduction")
    rate: Optional[Decimal] = Field(default=None, description="Resolved session rate")
    is_group_session: bool = Field(default=False)
    should_generate_invoice: bool = Field(
        ...,
        description="Balance is short or cannot cover another session; top up"
    )
    # Clients are never switched off PREPAID automatically; switching is an operator action
    should_switch_to_per_session: Literal[False] = Field(default=False)
    transaction_id: Optional[int] = Field(default=None, description="DEDUCTION ledger entry")
    already_processed: bool = Field(
        default=False,
        description="Session had been deducted before; recorded values returned"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "session_id": "sess_789",
                "client_profile_id": 1,
                "success": False,
                "amount_deducted": "30.00",
                "new_balance": "0.00",
                "rate": "100.00",
                "is_group_session": False,
                "should_generate_invoice": True,
                "should_switch_to_per_session": False,
                "transaction_id": 42,
                "already_processed": False,
            }
        }


class AddCreditCommandDTO(BaseModel):
    """
    Command DTO for adding prepaid credit

    Amount is validated in the use case so that a non-positive amount is
    reported as INVALID_AMOUNT rather than a schema error.
    """

    client_id: str = Field(..., description="Client identifier")
    amount: Decimal = Field(..., description="Credit to add (must be > 0)")
    notes: Optional[str] = Field(default=None, description="Ledger description")
    workspace_id: Optional[str] = Field(default=None, description="Caller's workspace")


class AddCreditResponseDTO(BaseModel):
    client_id: str
    client_profile_id: int
    amount: Decimal
    new_balance: Decimal
    transaction_id: int
    switched_to_prepaid: bool = False


class UpdateBillingSettingsCommandDTO(BaseModel):
    client_id: str = Field(..., description="Client identifier")
    billing_mode: str = Field(..., description="PER_SESSION, MONTHLY or PREPAID")
    target_balance: Optional[Decimal] = Field(
        default=None,
        description="Required and > 0 for PREPAID"
    )
    workspace_id: Optional[str] = Field(default=None)


class BillingSettingsResponseDTO(BaseModel):
    client_id: str
    client_profile_id: int
    billing_mode: str
    target_balance: Optional[Decimal]
    current_balance: Decimal


class TopUpInvoiceResponseDTO(BaseModel):
    """
    Response DTO for top-up invoice generation
    """

    invoice_id: int = Field(..., description="Invoice ID")
    invoice_number: str = Field(..., description="Invoice number")
    client_id: str = Field(..., description="Billed client")
    amount: Decimal = Field(..., description="Amount needed to reach the target balance")
    status: str = Field(..., description="Invoice status (SENT)")
    reused: bool = Field(
        default=False,
        description="An unresolved top-up invoice already existed and was returned"
    )
    notified: bool = Field(default=False, description="Handed to the delivery channel")

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": 7,
                "invoice_number": "INV-2025-000007",
                "client_id": "client_abc",
                "amount": "450.00",
                "status": "SENT",
                "reused": False,
                "notified": True,
            }
        }


class InvoicePaymentResponseDTO(BaseModel):
    invoice_id: int
    status: str
    is_top_up: bool
    amount_credited: Decimal = Decimal("0")
    new_balance: Optional[Decimal] = None
    transaction_id: Optional[int] = None
    already_paid: bool = False


class VoidAndSwitchResponseDTO(BaseModel):
    """
    Response DTO for voiding a top-up invoice and leaving prepaid billing
    """

    success: bool = True
    invoice_id: int
    credit_amount: Decimal = Field(..., description="Residual balance retained as credit")
    new_billing_mode: str
    transaction_id: Optional[int] = Field(
        default=None,
        description="Retention memo entry (absent when the balance was zero)"
    )


class TransactionDTO(BaseModel):
    """Ledger entry as shown in history"""

    id: int
    transaction_type: str
    amount: Decimal
    balance_after: Decimal
    description: str
    linked_session_id: Optional[str] = None
    linked_invoice_id: Optional[int] = None
    created_at: datetime


class ListTransactionsResponseDTO(BaseModel):
    client_profile_id: int
    transactions: List[TransactionDTO]
    total: int
    limit: int
    offset: int
    has_more: bool


class PrepaidClientSummaryDTO(BaseModel):
    client_id: str
    client_profile_id: int
    client_name: str
    client_email: Optional[str] = None
    current_balance: Decimal
    target_balance: Decimal
    sessions_consumed_since_last_credit: int
    last_transaction_at: Optional[datetime] = None
    balance_status: Literal["healthy", "low", "empty"]


class PrepaidSummaryTotalsDTO(BaseModel):
    total_balance: Decimal
    total_target: Decimal
    client_count: int
    clients_needing_attention: int


class PrepaidClientsSummaryResponseDTO(BaseModel):
    clients: List[PrepaidClientSummaryDTO]
    totals: PrepaidSummaryTotalsDTO


class BalanceCheckResponseDTO(BaseModel):
    client_id: str
    invoice_generated: bool
    invoice: Optional[TopUpInvoiceResponseDTO] = None


class SessionBillingResponseDTO(BaseModel):
    """Result of the billing pipeline for one completed session"""

    session_id: str
    prepaid: bool = Field(..., description="False when the client is not billed from a prepaid balance")
    deduction: Optional[SessionDeductionOutcomeDTO] = None
    invoice: Optional[TopUpInvoiceResponseDTO] = None
    invoice_error: Optional[str] = Field(
        default=None,
        description="Error code if the top-up invoice could not be generated"
    )


class LedgerDiscrepancyDTO(BaseModel):
    """One profile whose ledger does not replay to its stored balance"""

    client_profile_id: int
    client_id: str
    stored_balance: Decimal
    replayed_balance: Optional[Decimal] = Field(
        default=None,
        description="balance_after of the last entry (None when the ledger is empty)"
    )
    broken_entry_ids: List[int] = Field(
        default_factory=list,
        description="Entries whose balance_after does not follow from the previous one"
    )


class ReconciliationResultDTO(BaseModel):
    total_profiles_checked: int
    discrepancies_found: int
    discrepancies: List[LedgerDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int
