"""
Tax invoice service.

Invoices are numbered in their own INVOICE family and carry CGST/SGST
percents per line. Unlike bills there is no round-off: the grand total
is the exact sum of the line totals.

Creating an invoice also fills the catalog: a customer or item named on
the invoice that is not known yet (case-insensitive name) is created.
"""
import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from billbook.config import settings
from billbook.core.enum_utils import parse_enum
from billbook.core.exceptions import ValidationError
from billbook.models import Invoice, InvoiceStatus
from billbook.schemas.billing import InvoiceCreate, InvoiceLineInput, InvoiceUpdate, SalesSummary
from billbook.schemas.catalog import ItemCreate
from billbook.schemas.lines import InvoiceLine, lines_to_storage
from billbook.services.customer_service import CustomerService, customer_match
from billbook.services.document_sequence_service import DocumentFamily, DocumentSequenceService
from billbook.services.item_service import ItemService
from billbook.services.record_store import RecordStore
from billbook.services.tax_service import aggregate, compute_line, split_gst_rate


logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, store: RecordStore):
        self.store = store
        self.sequences = DocumentSequenceService(store)
        self.customers = CustomerService(store)
        self.items = ItemService(store)

    async def list_invoices(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_name: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Invoice]:
        criteria = []
        if customer_id is not None or customer_name:
            criteria.append(customer_match(Invoice, customer_id, customer_name))
        if status:
            criteria.append(Invoice.status == parse_enum(status, InvoiceStatus).value)
        return await self.store.list(
            Invoice, *criteria, order_by=[Invoice.invoice_date.desc(), Invoice.created_at.desc()]
        )

    async def get_invoice(self, invoice_id: uuid.UUID) -> Invoice:
        return await self.store.get_or_404(Invoice, invoice_id, "Invoice")

    def _validate_lines(self, items: List[InvoiceLineInput]) -> None:
        if not items:
            raise ValidationError("Please add at least one item")
        for index, item in enumerate(items, start=1):
            if not item.name or not item.name.strip():
                raise ValidationError(f"Please enter item name for row {index}", details={"row": index})

    async def _build_lines(self, items: List[InvoiceLineInput]) -> List[InvoiceLine]:
        """Price each line at its own percents, registering unknown items."""
        default_cgst, default_sgst = split_gst_rate(settings.DEFAULT_GST_RATE)

        lines = []
        for item in items:
            name = item.name.strip()
            catalog_item = await self.items.find_by_name(name)
            if catalog_item is None:
                catalog_item = await self.items.create_item(
                    ItemCreate(name=name, hsn_code=item.hsn_code or "", rate=item.rate)
                )
                logger.info(f"Item '{name}' added to catalog from invoice")

            hsn_code = item.hsn_code if item.hsn_code is not None else catalog_item.hsn_code
            lines.append(compute_line(
                InvoiceLine,
                name=name,
                qty=item.qty,
                rate=item.rate,
                cgst_percent=default_cgst if item.cgst_percent is None else item.cgst_percent,
                sgst_percent=default_sgst if item.sgst_percent is None else item.sgst_percent,
                hsn_code=hsn_code,
                item_id=item.item_id or catalog_item.id,
            ))
        return lines

    @staticmethod
    def _totals(lines: List[InvoiceLine]) -> dict:
        totals = aggregate(lines)
        return dict(
            items=lines_to_storage(lines),
            without_gst=totals.subtotal,
            cgst_total=totals.cgst_total,
            sgst_total=totals.sgst_total,
            gst_amount=totals.gst_amount,
            grand_total=totals.grand_total,
        )

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """
        Create a tax invoice.

        The customer is resolved by id, then by name, and created when
        unknown. The number defaults to the next INVOICE number for the
        invoice date.
        """
        self.store.require_owner()

        customer_name = (data.customer_name or "").strip()
        if not customer_name:
            raise ValidationError("Please enter customer name")
        self._validate_lines(data.items)

        customer = await self.customers.resolve(data.customer_id, customer_name)
        if customer is None:
            customer = await self.customers.get_or_create_by_name(
                customer_name, gstin=data.gstin or None, address=data.address
            )

        lines = await self._build_lines(data.items)
        invoice_number = data.invoice_number or await self.sequences.get_next_number(
            DocumentFamily.INVOICE, data.invoice_date
        )

        invoice = await self.store.insert(Invoice(
            invoice_number=invoice_number,
            invoice_date=data.invoice_date,
            po=data.po or "",
            customer_id=customer.id,
            customer_name=customer_name,
            gstin=data.gstin or customer.gstin or "",
            address=data.address or customer.address or "",
            bill_id=data.bill_id,
            status=parse_enum(data.status, InvoiceStatus).value,
            **self._totals(lines),
        ))

        logger.info(
            f"Invoice {invoice.invoice_number} created for {customer_name}: "
            f"grand_total={invoice.grand_total}"
        )
        return invoice

    async def update_invoice(self, invoice_id: uuid.UUID, data: InvoiceUpdate) -> Invoice:
        self.store.require_owner()
        await self.get_invoice(invoice_id)

        fields = data.model_dump(exclude_unset=True, exclude={"items"})
        if "customer_name" in fields:
            fields["customer_name"] = (fields["customer_name"] or "").strip()
            if not fields["customer_name"]:
                raise ValidationError("Please enter customer name")
        for key in ("po", "gstin", "address"):
            if key in fields and fields[key] is None:
                fields[key] = ""
        if fields.get("status") is not None:
            fields["status"] = parse_enum(fields["status"], InvoiceStatus).value
        else:
            fields.pop("status", None)

        if data.items is not None:
            self._validate_lines(data.items)
            fields.update(self._totals(await self._build_lines(data.items)))

        invoice = await self.store.update(Invoice, invoice_id, **fields)
        logger.info(f"Invoice {invoice.invoice_number} updated")
        return invoice

    async def set_invoice_status(self, invoice_id: uuid.UUID, status: InvoiceStatus) -> Invoice:
        self.store.require_owner()
        status = parse_enum(status, InvoiceStatus)
        invoice = await self.store.update(Invoice, invoice_id, status=status.value)
        logger.info(f"Invoice {invoice.invoice_number} marked {status.value}")
        return invoice

    async def delete_invoice(self, invoice_id: uuid.UUID) -> None:
        self.store.require_owner()
        invoice = await self.get_invoice(invoice_id)
        await self.store.delete(Invoice, invoice_id)
        logger.info(f"Invoice {invoice.invoice_number} deleted")

    async def sales_summary(self) -> SalesSummary:
        """Invoice count, revenue and outstanding figures for the dashboard."""
        invoices = await self.store.list(Invoice)

        summary = SalesSummary(invoice_count=len(invoices))
        for invoice in invoices:
            amount = Decimal(invoice.grand_total)
            summary.total_revenue += amount
            if invoice.status == InvoiceStatus.PAID.value:
                summary.paid_count += 1
            else:
                summary.pending_count += 1
                summary.pending_amount += amount
        return summary
