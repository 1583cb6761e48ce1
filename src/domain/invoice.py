"""Invoice Domain Entity

Tracks client invoices and payment status. Prepaid top-up invoices are a
specialization tagged by category (and, for legacy rows, by a notes marker).
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Date, Text
from src.domain.base import BaseModel, BigIntPK, Money

# Legacy invoices predate the category column and are recognised by this text
TOP_UP_MARKER = "Prepaid balance replenishment"


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class InvoiceCategory(str, Enum):
    STANDARD = "STANDARD"
    PREPAID_TOPUP = "PREPAID_TOPUP"


class Invoice(BaseModel, table=True):
    """
    Invoice - Bill sent to a client

    Domain Rules:
    - invoice_number must be unique
    - Top-up invoices are created SENT; transitions SENT -> PAID or SENT -> CANCELLED
    - Status transitions are compare-and-swap on the current status
    - paid_at is set when the invoice becomes PAID
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_client_status', 'client_id', 'status'),
        Index('ix_invoices_invoice_number', 'invoice_number', unique=True),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Unique invoice number (e.g., INV-2025-000001)"
    )

    client_id: str = Field(description="Billed client")

    trainer_id: str = Field(description="Issuing trainer")

    workspace_id: str = Field(index=True, description="Workspace (tenant)")

    amount: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Invoice total"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    status: InvoiceStatus = Field(description="DRAFT, SENT, PAID or CANCELLED")

    category: InvoiceCategory = Field(
        default=InvoiceCategory.STANDARD,
        description="STANDARD or PREPAID_TOPUP"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Free text shown on the invoice"
    )

    due_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
        description="Payment due date"
    )

    paid_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when invoice was paid"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def is_top_up(self) -> bool:
        """True for prepaid replenishment invoices, including legacy marker-only rows"""
        if self.category == InvoiceCategory.PREPAID_TOPUP:
            return True
        return bool(self.notes) and TOP_UP_MARKER in self.notes

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "invoice_number": "INV-2025-000001",
                "client_id": "client_abc",
                "trainer_id": "trainer_123",
                "workspace_id": "ws_1",
                "amount": "450.00",
                "currency": "USD",
                "status": "SENT",
                "category": "PREPAID_TOPUP",
                "notes": "Prepaid balance replenishment to $500.00. Current balance: $50.00",
                "due_date": "2025-04-04",
                "paid_at": None,
            }
        }
