"""Client Billing Profile Domain Entity

Holds a client's billing mode, session rates and prepaid balance.
Each client has exactly one profile. The balance is always >= 0 and is only
mutated through ledger-writing operations (deductions and credits).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Integer, String
from src.domain.base import BaseModel, BigIntPK, Money


class BillingMode(str, Enum):
    """How a client is billed for sessions"""
    PER_SESSION = "PER_SESSION"
    MONTHLY = "MONTHLY"
    PREPAID = "PREPAID"


class ClientBillingProfile(BaseModel, table=True):
    """
    Client Billing Profile - Prepaid balance and rate configuration

    Domain Rules:
    - One profile per client (client_id is unique)
    - current_balance must be non-negative
    - target_balance must be > 0 while billing_mode is PREPAID
    - current_balance changes only through the balance store compare-and-swap,
      which bumps version on every mutation
    """

    __tablename__ = "client_billing_profiles"
    __table_args__ = (
        CheckConstraint('current_balance >= 0', name='current_balance_non_negative'),
        CheckConstraint('target_balance IS NULL OR target_balance > 0', name='target_balance_positive'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
        description="Unique profile identifier (auto-increment)"
    )

    client_id: str = Field(
        index=True,
        unique=True,
        description="Client user ID (unique - one profile per client)"
    )

    trainer_id: str = Field(
        index=True,
        description="Trainer who bills this client"
    )

    workspace_id: str = Field(
        index=True,
        description="Workspace (tenant) the client belongs to"
    )

    client_name: str = Field(
        default="",
        sa_column=Column(String(255), nullable=False, default=""),
        description="Display name from the client directory"
    )

    client_email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Contact email from the client directory"
    )

    billing_mode: BillingMode = Field(
        default=BillingMode.PER_SESSION,
        description="Billing mode (PER_SESSION, MONTHLY, PREPAID)"
    )

    current_balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Money(), nullable=False, default=0),
        description="Remaining prepaid funds (must be >= 0)"
    )

    target_balance: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Money(), nullable=True),
        description="Balance that top-up invoices replenish to"
    )

    individual_rate: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Price of an individual session"
    )

    group_rate: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Money(), nullable=True),
        description="Price of a group session (None = fall back)"
    )

    version: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Optimistic concurrency counter"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Profile creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last mutation timestamp"
    )

    @property
    def is_prepaid(self) -> bool:
        return self.billing_mode == BillingMode.PREPAID

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "client_id": "client_abc",
                "trainer_id": "trainer_123",
                "workspace_id": "ws_1",
                "client_name": "Jane Doe",
                "billing_mode": "PREPAID",
                "current_balance": "350.00",
                "target_balance": "500.00",
                "individual_rate": "100.00",
                "group_rate": "75.00",
                "version": 3,
            }
        }
