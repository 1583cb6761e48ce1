"""Ledger Transaction Domain Entity

Immutable append-only record of every prepaid balance change.
Each entry carries the balance that resulted from it, so replaying a client's
entries in id order reconstructs the current balance.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, ForeignKey, String, text
from src.domain.base import BaseModel, BigIntPK, Money


class TransactionType(str, Enum):
    """Ledger entry types"""
    CREDIT = "CREDIT"          # Funds added (manual credit, paid top-up, retained credit memo)
    DEDUCTION = "DEDUCTION"    # Session charged against the balance


class LedgerTransaction(BaseModel, table=True):
    """
    Ledger Transaction - Immutable audit trail of balance mutations

    Domain Rules:
    - Entries are never updated or deleted
    - At most one DEDUCTION per linked_session_id (exactly-once charging)
    - At most one CREDIT per linked_invoice_id (exactly-once payment credit)
    - amount is > 0 for every entry that moves money; the retained-credit
      memo written when switching off prepaid has amount 0
    """

    __tablename__ = "prepaid_transactions"
    __table_args__ = (
        Index('ix_prepaid_transactions_profile_created', 'client_profile_id', 'created_at'),
        Index(
            'ux_prepaid_transactions_session_deduction',
            'linked_session_id',
            unique=True,
            postgresql_where=text("transaction_type = 'DEDUCTION'"),
            sqlite_where=text("transaction_type = 'DEDUCTION'"),
        ),
        Index(
            'ux_prepaid_transactions_invoice_credit',
            'linked_invoice_id',
            unique=True,
            postgresql_where=text("transaction_type = 'CREDIT'"),
            sqlite_where=text("transaction_type = 'CREDIT'"),
        ),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (monotonic)"
    )

    client_profile_id: int = Field(
        sa_column=Column(
            BigInteger,
            ForeignKey("client_billing_profiles.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        description="Foreign key to ClientBillingProfile"
    )

    transaction_type: TransactionType = Field(
        description="CREDIT or DEDUCTION"
    )

    amount: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Amount moved by this entry"
    )

    balance_after: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Balance after this entry was applied"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Human-readable description"
    )

    linked_session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Training session charged by a DEDUCTION"
    )

    linked_invoice_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True),
        description="Top-up invoice whose payment produced a CREDIT"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Transaction timestamp (immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 12,
                "client_profile_id": 1,
                "transaction_type": "DEDUCTION",
                "amount": "100.00",
                "balance_after": "350.00",
                "description": "Training session on Mar 5, 2025",
                "linked_session_id": "sess_789",
                "linked_invoice_id": None,
                "created_at": "2025-03-05T10:00:00Z"
            }
        }
