from datetime import date
from typing import Optional
import uuid

from fastapi import APIRouter, status, Query

from billbook.api.deps import Store
from billbook.schemas.billing import (
    BillConvertRequest,
    BillStatusUpdate,
    BillResponse,
    BillListResponse,
    InvoiceCreate,
    LinkReport,
)
from billbook.schemas.sequence import NextNumberResponse
from billbook.services.bill_conversion_service import BillConversionService
from billbook.services.document_sequence_service import (
    DocumentFamily, DocumentSequenceService, get_financial_year,
)


router = APIRouter(tags=["Bills"])


@router.get("", response_model=BillListResponse)
async def list_bills(
    store: Store,
    customer_id: Optional[uuid.UUID] = Query(None),
    customer_name: Optional[str] = Query(None),
    bill_status: Optional[str] = Query(None, alias="status", description="PAID or UNPAID"),
):
    bills = await BillConversionService(store).list_bills(
        customer_id, customer_name, bill_status
    )
    return BillListResponse(
        items=[BillResponse.model_validate(b) for b in bills],
        total=len(bills),
    )


@router.get("/next-number", response_model=NextNumberResponse)
async def preview_next_bill_number(
    store: Store,
    on_date: Optional[date] = Query(None, description="Bill date (default today)"),
):
    on_date = on_date or date.today()
    next_number = await DocumentSequenceService(store).get_next_number(DocumentFamily.BILL, on_date)
    return NextNumberResponse(
        family=DocumentFamily.BILL.value,
        financial_year=get_financial_year(on_date),
        on_date=on_date,
        next_number=next_number,
    )


@router.get("/links", response_model=LinkReport)
async def verify_bill_links(store: Store):
    """Report bills and challans that no longer point at each other."""
    return await BillConversionService(store).verify_bill_links(repair=False)


@router.post("/links/repair", response_model=LinkReport)
async def repair_bill_links(store: Store):
    """Re-mark challans listed by a bill and release orphaned ones."""
    return await BillConversionService(store).verify_bill_links(repair=True)


@router.post("/convert", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def convert_challans(data: BillConvertRequest, store: Store):
    """
    Convert selected unbilled challans of one customer into a bill.

    Lines are merged by name and rate, priced at one flat GST rate and
    rounded to a whole rupee. The challans are marked billed.
    """
    bill = await BillConversionService(store).convert_challans_to_bill(
        customer_id=data.customer_id,
        challan_ids=data.challan_ids,
        gst_rate=data.gst_rate,
        bill_date=data.bill_date,
    )
    return BillResponse.model_validate(bill)


@router.get("/{bill_id}", response_model=BillResponse)
async def get_bill(bill_id: uuid.UUID, store: Store):
    bill = await BillConversionService(store).get_bill(bill_id)
    return BillResponse.model_validate(bill)


@router.patch("/{bill_id}/status", response_model=BillResponse)
async def update_bill_status(bill_id: uuid.UUID, data: BillStatusUpdate, store: Store):
    bill = await BillConversionService(store).set_bill_status(bill_id, data.status)
    return BillResponse.model_validate(bill)


@router.get("/{bill_id}/invoice-draft", response_model=InvoiceCreate)
async def draft_invoice(bill_id: uuid.UUID, store: Store):
    """Unsaved invoice pre-filled from the bill; POST it to /invoices to keep it."""
    return await BillConversionService(store).draft_invoice_from_bill(bill_id)


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bill(bill_id: uuid.UUID, store: Store):
    """Delete a bill and release its challans."""
    await BillConversionService(store).delete_bill(bill_id)
