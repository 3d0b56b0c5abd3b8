"""Pydantic schemas for the customer ledger statement."""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LedgerEntry(BaseModel):
    entry_date: date
    particulars: str
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    invoice_id: Optional[UUID] = None


class LedgerStatement(BaseModel):
    """
    Statement derived from a customer's invoices. Nothing here is stored;
    it is rebuilt on every request.
    """
    customer_id: Optional[UUID] = None
    customer_name: str = ""
    years: List[int] = Field(default_factory=list)
    months: List[int] = Field(default_factory=list, description="0-based, 0 = January")
    entries: List[LedgerEntry] = Field(default_factory=list)
    total_debit: Decimal = Decimal("0")
    total_credit: Decimal = Decimal("0")
    final_balance: Decimal = Decimal("0")
    balance_in_words: str = ""


class PreviousBalanceResponse(BaseModel):
    customer_id: Optional[UUID] = None
    customer_name: str = ""
    previous_balance: Decimal
