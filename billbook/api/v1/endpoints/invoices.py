from datetime import date
from typing import Optional
import uuid

from fastapi import APIRouter, status, Query

from billbook.api.deps import Store
from billbook.schemas.billing import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceStatusUpdate,
    InvoiceResponse,
    InvoiceListResponse,
    SalesSummary,
)
from billbook.schemas.sequence import NextNumberResponse
from billbook.services.document_sequence_service import (
    DocumentFamily, DocumentSequenceService, get_financial_year,
)
from billbook.services.invoice_service import InvoiceService


router = APIRouter(tags=["Invoices"])


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    store: Store,
    customer_id: Optional[uuid.UUID] = Query(None),
    customer_name: Optional[str] = Query(None),
    invoice_status: Optional[str] = Query(None, alias="status", description="PAID or PENDING"),
):
    invoices = await InvoiceService(store).list_invoices(
        customer_id, customer_name, invoice_status
    )
    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in invoices],
        total=len(invoices),
    )


@router.get("/summary", response_model=SalesSummary)
async def get_sales_summary(store: Store):
    """Dashboard totals: revenue, paid and pending counts, pending amount."""
    return await InvoiceService(store).sales_summary()


@router.get("/next-number", response_model=NextNumberResponse)
async def preview_next_invoice_number(
    store: Store,
    on_date: Optional[date] = Query(None, description="Invoice date (default today)"),
):
    on_date = on_date or date.today()
    next_number = await DocumentSequenceService(store).get_next_number(DocumentFamily.INVOICE, on_date)
    return NextNumberResponse(
        family=DocumentFamily.INVOICE.value,
        financial_year=get_financial_year(on_date),
        on_date=on_date,
        next_number=next_number,
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(data: InvoiceCreate, store: Store):
    """
    Create a tax invoice. Unknown customers and items are added to the
    catalog on the way.
    """
    invoice = await InvoiceService(store).create_invoice(data)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: uuid.UUID, store: Store):
    invoice = await InvoiceService(store).get_invoice(invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(invoice_id: uuid.UUID, data: InvoiceUpdate, store: Store):
    invoice = await InvoiceService(store).update_invoice(invoice_id, data)
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(invoice_id: uuid.UUID, data: InvoiceStatusUpdate, store: Store):
    invoice = await InvoiceService(store).set_invoice_status(invoice_id, data.status)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: uuid.UUID, store: Store):
    await InvoiceService(store).delete_invoice(invoice_id)
