import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from billbook.database import Base
from billbook.db_types import UUIDType


class Customer(Base):
    """
    Customer a challan, bill or invoice is issued to.

    Documents reference a customer by ``customer_id`` and also keep a
    denormalized ``customer_name``; see customer_match() for how the two
    are reconciled.
    """
    __tablename__ = "customers"
    __table_args__ = (
        Index("ix_customers_owner_name", "owner_id", "name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        nullable=False,
        index=True,
        comment="Owning user/tenant; every query is scoped by it"
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    address: Mapped[str] = mapped_column(Text, default="", nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

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

    def __repr__(self) -> str:
        return f"<Customer({self.name})>"
