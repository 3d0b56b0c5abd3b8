"""Line and document tax computation.

GST here is always intra-state: a rate is split evenly into CGST and SGST.
Line figures are exact Decimal arithmetic; the only rounding is the bill
round-off to a whole rupee.

This module does no validation. Quantities, rates and percents are checked
by the line schemas before they get here.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from billbook.schemas.lines import BillLine, TaxLine


HUNDRED = Decimal("100")
ZERO = Decimal("0")

T = TypeVar("T", bound=TaxLine)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    cgst_total: Decimal
    sgst_total: Decimal
    gst_amount: Decimal
    grand_total: Decimal  # Σ line totals


@dataclass(frozen=True)
class RoundedTotals(DocumentTotals):
    round_off: Decimal
    net_amount: Decimal


def split_gst_rate(gst_rate: Decimal) -> Tuple[Decimal, Decimal]:
    """18 → (9, 9). Returns (cgst_percent, sgst_percent)."""
    half = Decimal(gst_rate) / 2
    return half, half


def compute_line(
    line_cls: Type[T],
    name: str,
    qty: Decimal,
    rate: Decimal,
    cgst_percent: Decimal,
    sgst_percent: Decimal,
    hsn_code: Optional[str] = "",
    **extra,
) -> T:
    """Build a fully computed tax line. Any ``extra`` fields (id, item_id) pass through."""
    amount = Decimal(qty) * Decimal(rate)
    cgst_amount = amount * Decimal(cgst_percent) / HUNDRED
    sgst_amount = amount * Decimal(sgst_percent) / HUNDRED

    fields = dict(
        name=name,
        qty=Decimal(qty),
        rate=Decimal(rate),
        hsn_code=hsn_code or "",
        cgst_percent=Decimal(cgst_percent),
        sgst_percent=Decimal(sgst_percent),
        amount=amount,
        cgst_amount=cgst_amount,
        sgst_amount=sgst_amount,
        total=amount + cgst_amount + sgst_amount,
    )
    fields.update(extra)
    # model_construct fills defaults (id, kind) without re-validating
    return line_cls.model_construct(**fields)


def price_at_flat_rate(
    entries: Iterable[Tuple[str, Decimal, Decimal, str]],
    gst_rate: Decimal,
    line_cls: Type[T] = BillLine,
) -> List[T]:
    """
    Price ``(name, qty, rate, hsn_code)`` entries at one document-level GST
    rate, split evenly between CGST and SGST.
    """
    cgst_percent, sgst_percent = split_gst_rate(gst_rate)
    return [
        compute_line(line_cls, name, qty, rate, cgst_percent, sgst_percent, hsn_code)
        for name, qty, rate, hsn_code in entries
    ]


def aggregate(lines: Sequence[TaxLine]) -> DocumentTotals:
    """Document totals; grand_total is the exact sum of line totals."""
    subtotal = sum((line.amount for line in lines), ZERO)
    cgst_total = sum((line.cgst_amount for line in lines), ZERO)
    sgst_total = sum((line.sgst_amount for line in lines), ZERO)
    return DocumentTotals(
        subtotal=subtotal,
        cgst_total=cgst_total,
        sgst_total=sgst_total,
        gst_amount=cgst_total + sgst_total,
        grand_total=sum((line.total for line in lines), ZERO),
    )


def round_to_rupee(value: Decimal) -> Decimal:
    """Nearest whole rupee, halves rounded up."""
    return Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def aggregate_with_round_off(lines: Sequence[TaxLine]) -> RoundedTotals:
    """
    Bill totals: net_amount = round(subtotal + gst_amount) and the signed
    round_off = net_amount - (subtotal + gst_amount), |round_off| < 1.
    """
    totals = aggregate(lines)
    net_before_round = totals.subtotal + totals.gst_amount
    net_amount = round_to_rupee(net_before_round)
    return RoundedTotals(
        subtotal=totals.subtotal,
        cgst_total=totals.cgst_total,
        sgst_total=totals.sgst_total,
        gst_amount=totals.gst_amount,
        grand_total=totals.grand_total,
        round_off=net_amount - net_before_round,
        net_amount=net_amount,
    )
