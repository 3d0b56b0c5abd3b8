"""Pydantic schemas for bills and tax invoices."""
from datetime import date
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from billbook.config import settings
from billbook.core.amount_words import amount_to_words
from billbook.core.enum_utils import (
    create_uppercase_validator, VALID_BILL_STATUSES, VALID_INVOICE_STATUSES,
)
from billbook.models.billing import BillStatus, InvoiceStatus
from billbook.schemas.base import (
    BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema, TimestampedResponse,
)
from billbook.schemas.lines import BillLine, InvoiceLine


# ==================== Bill Schemas ====================

class BillConvertRequest(BaseCreateSchema):
    """Convert a customer's selected unbilled challans into one bill."""
    customer_id: UUID
    challan_ids: List[UUID] = Field(default_factory=list)
    gst_rate: Optional[Decimal] = Field(None, ge=0, description="Flat GST rate, split into CGST/SGST")
    bill_date: Optional[date] = None

    @field_validator("gst_rate")
    @classmethod
    def validate_gst_rate(cls, v):
        if v is not None and v > settings.MAX_GST_RATE:
            raise ValueError(f"GST rate cannot exceed {settings.MAX_GST_RATE}%")
        return v


class BillStatusUpdate(BaseModel):
    status: BillStatus

    normalize_status = create_uppercase_validator("status", VALID_BILL_STATUSES)


class BillResponse(TimestampedResponse):
    bill_number: str
    bill_date: date
    customer_id: Optional[UUID] = None
    customer_name: str
    customer_gstin: Optional[str] = None
    customer_address: Optional[str] = None
    challan_ids: List[UUID]
    items: List[BillLine]
    subtotal: Decimal
    cgst_total: Decimal
    sgst_total: Decimal
    gst_amount: Decimal
    round_off: Decimal
    net_amount: Decimal
    status: str
    amount_in_words: Optional[str] = None

    @model_validator(mode="after")
    def fill_amount_in_words(self):
        if self.amount_in_words is None:
            self.amount_in_words = amount_to_words(self.net_amount)
        return self


class BillListResponse(BaseModel):
    items: List[BillResponse]
    total: int


class LinkIssue(BaseModel):
    """One broken bill/challan link."""
    problem: str
    challan_id: UUID
    challan_number: Optional[str] = None
    bill_id: Optional[UUID] = None
    bill_number: Optional[str] = None


class LinkReport(BaseModel):
    checked_bills: int = 0
    checked_challans: int = 0
    issues: List[LinkIssue] = Field(default_factory=list)
    repaired: int = 0

    @property
    def is_consistent(self) -> bool:
        return not self.issues


# ==================== Invoice Schemas ====================

class InvoiceLineInput(BaseCreateSchema):
    """
    Invoice line as entered. Percents default to half of DEFAULT_GST_RATE
    each when omitted.
    """
    item_id: Optional[UUID] = None
    name: str = Field("", max_length=300)
    hsn_code: Optional[str] = Field(None, max_length=20)
    qty: Decimal = Field(..., ge=0)
    rate: Decimal = Field(..., ge=0)
    cgst_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    sgst_percent: Optional[Decimal] = Field(None, ge=0, le=100)


class InvoiceCreate(BaseCreateSchema):
    invoice_number: Optional[str] = Field(None, max_length=20)
    invoice_date: date = Field(default_factory=date.today)
    po: str = Field("", max_length=100)

    customer_id: Optional[UUID] = None
    customer_name: str = Field("", max_length=200)
    gstin: str = Field("", max_length=15)
    address: str = ""

    items: List[InvoiceLineInput] = Field(default_factory=list)
    status: InvoiceStatus = InvoiceStatus.PENDING
    bill_id: Optional[UUID] = None

    normalize_status = create_uppercase_validator("status", VALID_INVOICE_STATUSES)


class InvoiceUpdate(BaseUpdateSchema):
    invoice_number: Optional[str] = Field(None, max_length=20)
    invoice_date: Optional[date] = None
    po: Optional[str] = Field(None, max_length=100)
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = Field(None, max_length=200)
    gstin: Optional[str] = Field(None, max_length=15)
    address: Optional[str] = None
    items: Optional[List[InvoiceLineInput]] = None
    status: Optional[InvoiceStatus] = None

    normalize_status = create_uppercase_validator("status", VALID_INVOICE_STATUSES)


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus

    normalize_status = create_uppercase_validator("status", VALID_INVOICE_STATUSES)


class InvoiceResponse(TimestampedResponse):
    invoice_number: str
    invoice_date: date
    po: str = ""
    customer_id: Optional[UUID] = None
    customer_name: str
    gstin: str = ""
    address: str = ""
    bill_id: Optional[UUID] = None
    items: List[InvoiceLine]
    without_gst: Decimal
    cgst_total: Decimal
    sgst_total: Decimal
    gst_amount: Decimal
    grand_total: Decimal
    status: str
    amount_in_words: Optional[str] = None

    @model_validator(mode="after")
    def fill_amount_in_words(self):
        if self.amount_in_words is None:
            self.amount_in_words = amount_to_words(self.grand_total)
        return self


class InvoiceListResponse(BaseModel):
    items: List[InvoiceResponse]
    total: int


class SalesSummary(BaseResponseSchema):
    """Dashboard figures over all of the owner's invoices."""
    invoice_count: int = 0
    total_revenue: Decimal = Decimal("0")
    paid_count: int = 0
    pending_count: int = 0
    pending_amount: Decimal = Decimal("0")
