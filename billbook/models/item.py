import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from billbook.database import Base
from billbook.db_types import UUIDType, MoneyType


class Item(Base):
    """Catalog item. Used for HSN code lookup when lines are billed."""
    __tablename__ = "items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(300), nullable=False)
    hsn_code: Mapped[str] = mapped_column(
        String(20),
        default="",
        nullable=False,
        comment="HSN/SAC tariff code"
    )
    rate: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Default unit rate"
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

    def __repr__(self) -> str:
        return f"<Item({self.name})>"
