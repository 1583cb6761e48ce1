"""Request schemas for Prepaid Billing API

Pydantic models for validating incoming HTTP requests.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class AddCreditRequestSchema(BaseModel):
    """
    Request schema for adding prepaid credit

    Used for POST /prepaid/clients/{client_id}/credits endpoint.
    """

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Credit amount to add (must be > 0)"
    )

    notes: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Description shown in the transaction history"
    )

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        """Ensure amount has at most cent precision"""
        if v.as_tuple().exponent < -2:
            raise ValueError("Amount cannot have more than 2 decimal places")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "500.00",
                "notes": "Initial prepaid deposit"
            }
        }


class UpdateBillingRequestSchema(BaseModel):
    """
    Request schema for changing billing mode

    Used for PUT /prepaid/clients/{client_id}/billing endpoint.
    """

    billing_mode: str = Field(
        ...,
        description="PER_SESSION, MONTHLY or PREPAID"
    )

    target_balance: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Balance top-up invoices replenish to (required for PREPAID)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "billing_mode": "PREPAID",
                "target_balance": "500.00"
            }
        }


class TopUpInvoiceRequestSchema(BaseModel):
    trainer_id: Optional[str] = Field(
        default=None,
        description="Issuing trainer (defaults to the client's trainer)"
    )


class VoidAndSwitchRequestSchema(BaseModel):
    """
    Request schema for voiding a top-up invoice

    Used for POST /invoices/{invoice_id}/void-and-switch endpoint.
    """

    new_billing_mode: str = Field(
        ...,
        description="PER_SESSION or MONTHLY"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "new_billing_mode": "PER_SESSION"
            }
        }
