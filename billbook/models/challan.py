"""Delivery challan model.

A challan records goods dispatched to a customer before they are taxed.
Lifecycle:
    created (is_billed=False)
      → billed (is_billed=True, bill_id=<bill>) when included in a bill
      → released (is_billed=False, bill_id=None) if that bill is deleted

``bill_id`` is set if and only if ``is_billed`` is true. A billed challan
cannot be edited or deleted.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import String, Boolean, DateTime, Date, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from billbook.database import Base
from billbook.db_types import UUIDType, JSONType, MoneyType
from billbook.schemas.lines import ChallanLine, lines_from_storage


class DeliveryChallan(Base):
    __tablename__ = "delivery_challans"
    __table_args__ = (
        Index("ix_delivery_challans_owner_number", "owner_id", "challan_number"),
        Index("ix_delivery_challans_customer", "customer_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)

    challan_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Financial-year scoped number e.g. 2025-26-001"
    )
    challan_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Customer (optional link + denormalized details)
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        nullable=True,
        comment="Null for walk-in or unlinked customers"
    )
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    items: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Amounts
    current_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    previous_balance: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    # Billing link
    is_billed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    bill_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)

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
    def lines(self) -> List[ChallanLine]:
        return lines_from_storage(ChallanLine, self.items)

    def __repr__(self) -> str:
        return f"<DeliveryChallan({self.challan_number}, billed={self.is_billed})>"
