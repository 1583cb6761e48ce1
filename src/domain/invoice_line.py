"""Invoice Line Domain Entity

One charged session (or a lump top-up amount) on an invoice.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, ForeignKey, String
from src.domain.base import BaseModel, BigIntPK, Money


class InvoiceLine(BaseModel, table=True):
    """
    Invoice Line - Individual line item within an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice
    - total = quantity * unit_price
    - Top-up invoices carry one line per session deducted since the last credit
    """

    __tablename__ = "invoice_lines"
    __table_args__ = (
        Index('ix_invoice_lines_invoice_id', 'invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique invoice line identifier (auto-increment)"
    )

    invoice_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Training session this line bills, if any"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description (e.g., 'Training session on Mar 5, 2025')"
    )

    quantity: int = Field(
        default=1,
        description="Number of units"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Price per unit"
    )

    total: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Line total (quantity * unit_price)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Line item creation timestamp"
    )
