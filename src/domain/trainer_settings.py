"""Trainer Billing Settings Domain Entity

Per-trainer pricing policy supplied by the trainer directory.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Integer
from src.domain.base import BaseModel, BigIntPK, Money


class GroupMatchingStrategy(str, Enum):
    """How two sessions are judged to share a time slot"""
    EXACT_MATCH = "EXACT_MATCH"    # same start and end
    START_MATCH = "START_MATCH"    # same start
    END_MATCH = "END_MATCH"        # same end
    ANY_OVERLAP = "ANY_OVERLAP"    # time ranges intersect


class TrainerBillingSettings(BaseModel, table=True):
    """
    Trainer Billing Settings

    Domain Rules:
    - One settings row per trainer
    - default_group_rate applies when a client has no group rate of its own
    """

    __tablename__ = "trainer_billing_settings"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntPK, primary_key=True, autoincrement=True),
    )

    trainer_id: str = Field(index=True, unique=True)

    group_matching: GroupMatchingStrategy = Field(
        default=GroupMatchingStrategy.EXACT_MATCH,
        description="Group session detection strategy"
    )

    default_group_rate: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Money(), nullable=True),
        description="Fallback group rate for clients without one"
    )

    invoice_due_days: int = Field(
        default=30,
        sa_column=Column(Integer, nullable=False, default=30),
        description="Days until a generated invoice is due"
    )
