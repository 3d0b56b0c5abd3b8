from datetime import date
from typing import Optional
import uuid

from fastapi import APIRouter, status, Query

from billbook.api.deps import Store
from billbook.schemas.challan import (
    ChallanCreate,
    ChallanUpdate,
    ChallanResponse,
    ChallanListResponse,
)
from billbook.schemas.sequence import NextNumberResponse
from billbook.services.challan_service import ChallanService
from billbook.services.document_sequence_service import (
    DocumentFamily, DocumentSequenceService, get_financial_year,
)


router = APIRouter(tags=["Delivery Challans"])


@router.get("", response_model=ChallanListResponse)
async def list_challans(
    store: Store,
    customer_id: Optional[uuid.UUID] = Query(None),
    customer_name: Optional[str] = Query(None),
    is_billed: Optional[bool] = Query(None),
):
    """List challans, latest challan date first."""
    challans = await ChallanService(store).list_challans(customer_id, customer_name, is_billed)
    return ChallanListResponse(
        items=[ChallanResponse.model_validate(c) for c in challans],
        total=len(challans),
    )


@router.get("/unbilled", response_model=ChallanListResponse)
async def list_unbilled_challans(
    store: Store,
    customer_id: Optional[uuid.UUID] = Query(None),
    customer_name: Optional[str] = Query(None),
):
    """A customer's challans that can still be converted into a bill."""
    challans = await ChallanService(store).get_unbilled_challans(customer_id, customer_name)
    return ChallanListResponse(
        items=[ChallanResponse.model_validate(c) for c in challans],
        total=len(challans),
    )


@router.get("/next-number", response_model=NextNumberResponse)
async def preview_next_challan_number(
    store: Store,
    on_date: Optional[date] = Query(None, description="Challan date (default today)"),
):
    on_date = on_date or date.today()
    next_number = await DocumentSequenceService(store).get_next_number(DocumentFamily.CHALLAN, on_date)
    return NextNumberResponse(
        family=DocumentFamily.CHALLAN.value,
        financial_year=get_financial_year(on_date),
        on_date=on_date,
        next_number=next_number,
    )


@router.post("", response_model=ChallanResponse, status_code=status.HTTP_201_CREATED)
async def create_challan(data: ChallanCreate, store: Store):
    challan = await ChallanService(store).create_challan(data)
    return ChallanResponse.model_validate(challan)


@router.get("/{challan_id}", response_model=ChallanResponse)
async def get_challan(challan_id: uuid.UUID, store: Store):
    challan = await ChallanService(store).get_challan(challan_id)
    return ChallanResponse.model_validate(challan)


@router.put("/{challan_id}", response_model=ChallanResponse)
async def update_challan(challan_id: uuid.UUID, data: ChallanUpdate, store: Store):
    """Edit an unbilled challan. Billed challans are locked (409)."""
    challan = await ChallanService(store).update_challan(challan_id, data)
    return ChallanResponse.model_validate(challan)


@router.delete("/{challan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_challan(challan_id: uuid.UUID, store: Store):
    await ChallanService(store).delete_challan(challan_id)
