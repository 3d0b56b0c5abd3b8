"""Pydantic schemas for delivery challans."""
from datetime import date
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from billbook.schemas.base import BaseCreateSchema, BaseUpdateSchema, TimestampedResponse
from billbook.schemas.lines import ChallanLine


class ChallanLineInput(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=300)
    qty: Decimal = Field(..., ge=0)
    rate: Decimal = Field(..., ge=0)


class ChallanCreate(BaseCreateSchema):
    """
    New challan. ``challan_number`` and ``previous_balance`` are computed
    when omitted.
    """
    challan_number: Optional[str] = Field(None, max_length=20)
    challan_date: date = Field(default_factory=date.today)
    customer_id: Optional[UUID] = None
    customer_name: str = Field("", max_length=200)
    customer_address: Optional[str] = None
    customer_phone: Optional[str] = Field(None, max_length=20)
    items: List[ChallanLineInput] = Field(default_factory=list)
    previous_balance: Optional[Decimal] = None


class ChallanUpdate(BaseUpdateSchema):
    challan_number: Optional[str] = Field(None, max_length=20)
    challan_date: Optional[date] = None
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_address: Optional[str] = None
    customer_phone: Optional[str] = Field(None, max_length=20)
    items: Optional[List[ChallanLineInput]] = None
    previous_balance: Optional[Decimal] = None


class ChallanResponse(TimestampedResponse):
    challan_number: str
    challan_date: date
    customer_id: Optional[UUID] = None
    customer_name: str
    customer_address: Optional[str] = None
    customer_phone: Optional[str] = None
    items: List[ChallanLine]
    current_amount: Decimal
    previous_balance: Decimal
    grand_total: Decimal
    is_billed: bool
    bill_id: Optional[UUID] = None


class ChallanListResponse(BaseModel):
    items: List[ChallanResponse]
    total: int
