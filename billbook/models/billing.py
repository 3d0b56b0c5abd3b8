"""Bill and tax invoice models.

Bills are built only by converting delivery challans; ``challan_ids``
lists the challans that point back at the bill. Invoices are numbered in
their own family and are independent of challans and bills, except that
a draft may be pre-populated from a bill (``bill_id``).
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, DateTime, Date, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from billbook.core.enum_utils import enum_comment
from billbook.database import Base
from billbook.db_types import UUIDType, JSONType, MoneyType
from billbook.schemas.lines import BillLine, InvoiceLine, lines_from_storage


class BillStatus(str, Enum):
    """Bill status. A bill is settled in full or not at all."""
    PAID = "PAID"
    UNPAID = "UNPAID"


class InvoiceStatus(str, Enum):
    """Invoice status enumeration."""
    PAID = "PAID"
    PENDING = "PENDING"


class Bill(Base):
    """
    Consolidated, tax-bearing bill for one customer.

    Totals: subtotal = Σamount, gst_amount = cgst_total + sgst_total,
    net_amount = round(subtotal + gst_amount), round_off = net_amount -
    (subtotal + gst_amount).
    """
    __tablename__ = "bills"
    __table_args__ = (
        Index("ix_bills_owner_number", "owner_id", "bill_number"),
        Index("ix_bills_customer_date", "customer_id", "bill_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)

    bill_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Financial-year scoped number e.g. 2025-26-014"
    )
    bill_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Customer
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    customer_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    challan_ids: Mapped[list] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="Ids (as strings) of the challans this bill was built from"
    )
    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Amounts
    subtotal: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    cgst_total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    sgst_total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    round_off: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=BillStatus.UNPAID.value,
        nullable=False,
        index=True,
        comment=enum_comment(BillStatus)
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    @property
    def lines(self) -> List[BillLine]:
        return lines_from_storage(BillLine, self.items)

    @property
    def challan_uuids(self) -> List[uuid.UUID]:
        return [uuid.UUID(str(cid)) for cid in (self.challan_ids or [])]

    def __repr__(self) -> str:
        return f"<Bill({self.bill_number}, {self.status}, {self.net_amount})>"


class Invoice(Base):
    """
    Tax invoice. Lines carry their own CGST/SGST percents and the grand
    total is the exact sum of line totals (no round-off).
    """
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_owner_number", "owner_id", "invoice_number"),
        Index("ix_invoices_customer_date", "customer_id", "invoice_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)

    invoice_number: Mapped[str] = mapped_column(String(20), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    po: Mapped[str] = mapped_column(
        String(100),
        default="",
        nullable=False,
        comment="Customer purchase order reference"
    )

    # Customer
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    gstin: Mapped[str] = mapped_column(String(15), default="", nullable=False)
    address: Mapped[str] = mapped_column(Text, default="", nullable=False)

    bill_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        nullable=True,
        comment="Bill this invoice was drafted from, if any"
    )

    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Amounts
    without_gst: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    cgst_total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    sgst_total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=InvoiceStatus.PENDING.value,
        nullable=False,
        index=True,
        comment=enum_comment(InvoiceStatus)
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    @property
    def lines(self) -> List[InvoiceLine]:
        return lines_from_storage(InvoiceLine, self.items)

    def __repr__(self) -> str:
        return f"<Invoice({self.invoice_number}, {self.status}, {self.grand_total})>"
