"""
Challan to bill conversion.

Converting a customer's unbilled challans produces one tax-bearing bill:

    1. merge the challan lines by (name, rate), summing quantities
    2. look up each merged line's HSN code in the item catalog
    3. price the lines at one flat GST rate and round the bill to a rupee
    4. number the bill in the BILL family for the bill date
    5. save the bill as UNPAID and mark every challan billed against it

Deleting a bill walks the same links backwards: the challans are released
first and the bill is deleted last. Both directions run inside a
UnitOfWork so a failure part-way is compensated instead of leaving bills
and challans pointing past each other.
"""
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from billbook.config import settings
from billbook.core.enum_utils import parse_enum
from billbook.core.exceptions import ValidationError
from billbook.models import Bill, BillStatus, Customer, DeliveryChallan
from billbook.schemas.billing import (
    InvoiceCreate, InvoiceLineInput, LinkIssue, LinkReport,
)
from billbook.schemas.lines import lines_to_storage
from billbook.services.customer_service import customer_match
from billbook.services.document_sequence_service import DocumentFamily, DocumentSequenceService
from billbook.services.item_service import ItemService
from billbook.services.record_store import RecordStore
from billbook.services.tax_service import aggregate_with_round_off, price_at_flat_rate
from billbook.services.unit_of_work import UnitOfWork


logger = logging.getLogger(__name__)


def merge_challan_lines(challans: Iterable[DeliveryChallan]) -> List[Tuple[str, Decimal, Decimal]]:
    """
    Merge challan lines keyed by (name, rate).

    Lines with the same name and rate sum their quantities; the merged
    lines keep the order in which each key was first seen.

    Returns:
        [(name, qty, rate), ...]
    """
    merged: Dict[Tuple[str, Decimal], Decimal] = {}
    for challan in challans:
        for line in challan.lines:
            key = (line.name, line.rate)
            merged[key] = merged.get(key, Decimal("0")) + line.qty
    return [(name, qty, rate) for (name, rate), qty in merged.items()]


def belongs_to(challan: DeliveryChallan, customer: Customer) -> bool:
    """In-memory form of customer_match for an already loaded challan."""
    if challan.customer_id is not None:
        return challan.customer_id == customer.id
    return challan.customer_name == customer.name


class BillConversionService:
    """Builds bills from challans and keeps the two linked."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.sequences = DocumentSequenceService(store)
        self.items = ItemService(store)

    # ==================== Queries ====================

    async def list_bills(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_name: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Bill]:
        criteria = []
        if customer_id is not None or customer_name:
            criteria.append(customer_match(Bill, customer_id, customer_name))
        if status:
            criteria.append(Bill.status == parse_enum(status, BillStatus).value)
        return await self.store.list(
            Bill, *criteria, order_by=[Bill.bill_date.desc(), Bill.created_at.desc()]
        )

    async def get_bill(self, bill_id: uuid.UUID) -> Bill:
        return await self.store.get_or_404(Bill, bill_id, "Bill")

    # ==================== Conversion ====================

    async def _load_selection(
        self,
        customer: Customer,
        challan_ids: List[uuid.UUID],
    ) -> List[DeliveryChallan]:
        challans = []
        for challan_id in challan_ids:
            challan = await self.store.get(DeliveryChallan, challan_id)
            if challan is None:
                raise ValidationError(
                    "Challan not found", details={"challan_id": str(challan_id)}
                )
            if not belongs_to(challan, customer):
                raise ValidationError(
                    f"Challan {challan.challan_number} does not belong to {customer.name}",
                    details={"challan_id": str(challan_id)},
                )
            if challan.is_billed:
                raise ValidationError(
                    f"Challan {challan.challan_number} is already billed",
                    details={"challan_id": str(challan_id), "bill_id": str(challan.bill_id)},
                )
            challans.append(challan)
        return challans

    async def convert_challans_to_bill(
        self,
        customer_id: uuid.UUID,
        challan_ids: List[uuid.UUID],
        gst_rate: Optional[Decimal] = None,
        bill_date: Optional[date] = None,
    ) -> Bill:
        """
        Convert the selected unbilled challans of one customer into a bill.

        Args:
            customer_id: Customer the bill is for
            challan_ids: Selected challans; all must be unbilled and the customer's
            gst_rate: Flat GST rate (default DEFAULT_GST_RATE), split into CGST/SGST
            bill_date: Bill date, also selects the financial year (default today)

        Raises:
            ValidationError: Empty selection, unknown customer, or a challan
                that is missing, someone else's or already billed
        """
        self.store.require_owner()

        # Preserve selection order, ignore repeats
        challan_ids = list(dict.fromkeys(challan_ids or []))
        if not challan_ids:
            raise ValidationError("No challans selected")

        customer = await self.store.get(Customer, customer_id)
        if customer is None:
            raise ValidationError("Customer not found", details={"customer_id": str(customer_id)})

        challans = await self._load_selection(customer, challan_ids)

        gst_rate = settings.DEFAULT_GST_RATE if gst_rate is None else Decimal(gst_rate)
        bill_date = bill_date or date.today()

        merged = merge_challan_lines(challans)
        hsn_codes = await self.items.hsn_codes_for(name for name, _, _ in merged)
        lines = price_at_flat_rate(
            [(name, qty, rate, hsn_codes.get(name.strip().lower(), "")) for name, qty, rate in merged],
            gst_rate,
        )
        totals = aggregate_with_round_off(lines)

        bill_number = await self.sequences.get_next_number(DocumentFamily.BILL, bill_date)

        async with UnitOfWork(f"convert challans to bill {bill_number}") as uow:
            bill = await self.store.insert(Bill(
                bill_number=bill_number,
                bill_date=bill_date,
                customer_id=customer.id,
                customer_name=customer.name,
                customer_gstin=customer.gstin,
                customer_address=customer.address,
                challan_ids=[str(c.id) for c in challans],
                items=lines_to_storage(lines),
                subtotal=totals.subtotal,
                cgst_total=totals.cgst_total,
                sgst_total=totals.sgst_total,
                gst_amount=totals.gst_amount,
                round_off=totals.round_off,
                net_amount=totals.net_amount,
                status=BillStatus.UNPAID.value,
            ))
            uow.on_rollback(f"delete bill {bill_number}", self.store.delete, Bill, bill.id)

            for challan in challans:
                await self._mark(challan.id, bill.id)
                uow.on_rollback(f"release challan {challan.challan_number}", self._release, challan.id)

        logger.info(
            f"Bill {bill.bill_number} created for {customer.name} from "
            f"{len(challans)} challan(s): net={bill.net_amount}"
        )
        return bill

    async def _mark(self, challan_id: uuid.UUID, bill_id: uuid.UUID) -> None:
        await self.store.update(DeliveryChallan, challan_id, is_billed=True, bill_id=bill_id)

    async def _release(self, challan_id: uuid.UUID) -> None:
        await self.store.update(DeliveryChallan, challan_id, is_billed=False, bill_id=None)

    # ==================== Bill lifecycle ====================

    async def delete_bill(self, bill_id: uuid.UUID) -> None:
        """Release the bill's challans, then delete the bill."""
        self.store.require_owner()
        bill = await self.get_bill(bill_id)

        async with UnitOfWork(f"delete bill {bill.bill_number}") as uow:
            for challan_id in bill.challan_uuids:
                challan = await self.store.get(DeliveryChallan, challan_id)
                if challan is None:
                    logger.warning(f"Bill {bill.bill_number} lists missing challan {challan_id}")
                    continue
                if challan.bill_id is not None and challan.bill_id != bill.id:
                    logger.warning(
                        f"Challan {challan.challan_number} points at bill {challan.bill_id}, "
                        f"not {bill.bill_number}; leaving it"
                    )
                    continue
                await self._release(challan.id)
                uow.on_rollback(
                    f"re-mark challan {challan.challan_number}", self._mark, challan.id, bill.id
                )

            await self.store.delete(Bill, bill.id)

        logger.info(f"Bill {bill.bill_number} deleted")

    async def set_bill_status(self, bill_id: uuid.UUID, status: BillStatus) -> Bill:
        self.store.require_owner()
        status = parse_enum(status, BillStatus)
        bill = await self.store.update(Bill, bill_id, status=status.value)
        logger.info(f"Bill {bill.bill_number} marked {status.value}")
        return bill

    async def draft_invoice_from_bill(self, bill_id: uuid.UUID) -> InvoiceCreate:
        """
        Pre-populate an invoice from a bill. The draft is not saved; it
        becomes an invoice only when submitted to InvoiceService.
        """
        bill = await self.get_bill(bill_id)
        return InvoiceCreate(
            invoice_date=bill.bill_date,
            customer_id=bill.customer_id,
            customer_name=bill.customer_name,
            gstin=bill.customer_gstin or "",
            address=bill.customer_address or "",
            items=[
                InvoiceLineInput(
                    name=line.name,
                    hsn_code=line.hsn_code,
                    qty=line.qty,
                    rate=line.rate,
                    cgst_percent=line.cgst_percent,
                    sgst_percent=line.sgst_percent,
                )
                for line in bill.lines
            ],
            bill_id=bill.id,
        )

    # ==================== Link verification ====================

    async def verify_bill_links(self, repair: bool = False) -> LinkReport:
        """
        Check that bills and challans point at each other.

        Reported problems:
        - not_marked: a bill lists a challan that does not point back at it
        - missing_challan: a bill lists a challan that no longer exists
        - bill_missing: a challan points at a bill that does not exist
        - not_listed: a challan points at a bill that does not list it
        - inconsistent_flags: is_billed is set without bill_id, or the reverse

        With ``repair=True`` listed challans are re-marked and every other
        broken challan is released. Missing challans cannot be repaired.
        """
        if repair:
            self.store.require_owner()

        bills = await self.store.list(Bill)
        challans = await self.store.list(DeliveryChallan)
        bills_by_id = {b.id: b for b in bills}
        challans_by_id = {c.id: c for c in challans}

        report = LinkReport(checked_bills=len(bills), checked_challans=len(challans))
        to_mark: List[Tuple[uuid.UUID, uuid.UUID]] = []
        to_release: List[uuid.UUID] = []
        seen = set()

        for bill in bills:
            for challan_id in bill.challan_uuids:
                challan = challans_by_id.get(challan_id)
                if challan is None:
                    report.issues.append(LinkIssue(
                        problem="missing_challan", challan_id=challan_id,
                        bill_id=bill.id, bill_number=bill.bill_number,
                    ))
                    continue
                seen.add(challan.id)
                if not challan.is_billed or challan.bill_id != bill.id:
                    report.issues.append(LinkIssue(
                        problem="not_marked", challan_id=challan.id,
                        challan_number=challan.challan_number,
                        bill_id=bill.id, bill_number=bill.bill_number,
                    ))
                    to_mark.append((challan.id, bill.id))

        for challan in challans:
            if challan.id in seen:
                continue
            problem = None
            if challan.bill_id is not None:
                bill = bills_by_id.get(challan.bill_id)
                if bill is None:
                    problem = "bill_missing"
                else:
                    problem = "not_listed"
            elif challan.is_billed:
                problem = "inconsistent_flags"

            if problem:
                report.issues.append(LinkIssue(
                    problem=problem, challan_id=challan.id,
                    challan_number=challan.challan_number, bill_id=challan.bill_id,
                ))
                to_release.append(challan.id)

        if report.issues:
            logger.warning(
                f"Found {len(report.issues)} broken bill/challan link(s): "
                f"{sorted({issue.problem for issue in report.issues})}"
            )

        if repair:
            for challan_id, bill_id in to_mark:
                await self._mark(challan_id, bill_id)
            for challan_id in to_release:
                await self._release(challan_id)
            report.repaired = len(to_mark) + len(to_release)
            if report.repaired:
                logger.info(f"Repaired {report.repaired} challan link(s)")

        return report
