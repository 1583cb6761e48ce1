"""Shared base for SQLModel entities"""

import uuid
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import BigInteger, Integer, Numeric
from sqlmodel import SQLModel

# BIGINT primary keys do not alias ROWID on SQLite, so autoincrement needs INTEGER there
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

MONEY_QUANT = Decimal("0.01")


def Money() -> Numeric:
    """Column type for monetary amounts (2 decimal places)"""
    return Numeric(12, 2)


def to_money(value) -> Decimal:
    """Quantize a number to monetary precision"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def generate_uuid() -> str:
    return str(uuid.uuid4())


class BaseModel(SQLModel):
    """Base class for all domain entities"""
    pass
