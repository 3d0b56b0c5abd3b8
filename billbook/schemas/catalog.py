"""Pydantic schemas for customers and catalog items."""
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field

from billbook.schemas.base import BaseCreateSchema, BaseUpdateSchema, TimestampedResponse


# ==================== Customer Schemas ====================

class CustomerCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    gstin: Optional[str] = Field(None, max_length=15)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)


class CustomerUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, max_length=200)
    gstin: Optional[str] = Field(None, max_length=15)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)


class CustomerResponse(TimestampedResponse):
    name: str
    gstin: Optional[str] = None
    address: str = ""
    phone: Optional[str] = None


class CustomerListResponse(BaseModel):
    items: List[CustomerResponse]
    total: int


# ==================== Item Schemas ====================

class ItemCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=300)
    hsn_code: Optional[str] = Field("", max_length=20)
    rate: Decimal = Field(Decimal("0"), ge=0)


class ItemUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(None, max_length=300)
    hsn_code: Optional[str] = Field(None, max_length=20)
    rate: Optional[Decimal] = Field(None, ge=0)


class ItemResponse(TimestampedResponse):
    name: str
    hsn_code: str = ""
    rate: Decimal


class ItemListResponse(BaseModel):
    items: List[ItemResponse]
    total: int
