"""Typed line item records.

Each document family keeps its own line shape. Lines are persisted inside
a JSON column and always pass through these models on the way in and out,
so a stored line is never an unchecked dict.

Every tax-bearing line satisfies, exactly (no per-line rounding)::

    amount      = qty * rate
    cgst_amount = amount * cgst_percent / 100
    sgst_amount = amount * sgst_percent / 100
    total       = amount + cgst_amount + sgst_amount
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Literal, Optional, Type, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


L = TypeVar("L", bound="LineBase")


class LineBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=300)
    qty: Decimal = Field(..., ge=0)
    rate: Decimal = Field(..., ge=0)

    def to_storage(self) -> Dict[str, Any]:
        """JSON-safe dict for the ``items`` column (Decimals as strings)."""
        return self.model_dump(mode="json")


class ChallanLine(LineBase):
    """Goods line on a delivery challan; ``total = qty * rate``."""
    kind: Literal["challan"] = "challan"
    total: Decimal = Decimal("0")

    @model_validator(mode="after")
    def compute_total(self):
        self.total = self.qty * self.rate
        return self


class TaxLine(LineBase):
    """Common shape of bill and invoice lines."""
    hsn_code: str = Field("", max_length=20)
    cgst_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    sgst_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    amount: Decimal = Decimal("0")
    cgst_amount: Decimal = Decimal("0")
    sgst_amount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    @model_validator(mode="before")
    @classmethod
    def default_hsn_code(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("hsn_code") is None:
            data = {**data, "hsn_code": ""}
        return data


class BillLine(TaxLine):
    kind: Literal["bill"] = "bill"


class InvoiceLine(TaxLine):
    kind: Literal["invoice"] = "invoice"
    item_id: Optional[UUID] = None


def lines_from_storage(line_cls: Type[L], raw: Optional[Iterable[Dict[str, Any]]]) -> List[L]:
    """Rebuild typed lines from a stored JSON list (missing column -> [])."""
    return [line_cls.model_validate(item) for item in (raw or [])]


def lines_to_storage(lines: Iterable[LineBase]) -> List[Dict[str, Any]]:
    return [line.to_storage() for line in lines]
