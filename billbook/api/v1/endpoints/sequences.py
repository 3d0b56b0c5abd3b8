from typing import Dict, Optional

from fastapi import APIRouter, Query

from billbook.api.deps import Store
from billbook.schemas.sequence import CurrentSequenceResponse
from billbook.services.document_sequence_service import (
    DocumentFamily, DocumentSequenceService, get_financial_year,
)


router = APIRouter(tags=["Document Sequences"])


@router.get("/{family}/current", response_model=CurrentSequenceResponse)
async def get_current_sequence(
    family: DocumentFamily,
    store: Store,
    financial_year: Optional[str] = Query(None, description="e.g. 2025-26 (default current)"),
):
    """Highest sequence used so far in a financial year (0 if none)."""
    financial_year = financial_year or get_financial_year()
    current = await DocumentSequenceService(store).get_current_number(family, financial_year)
    return CurrentSequenceResponse(
        family=family.value,
        financial_year=financial_year,
        current_sequence=current,
    )


@router.get("/{family}/duplicates", response_model=Dict[str, int])
async def find_duplicate_numbers(
    family: DocumentFamily,
    store: Store,
    financial_year: Optional[str] = Query(None, description="e.g. 2025-26 (default current)"),
):
    """Document numbers used more than once within a financial year."""
    return await DocumentSequenceService(store).find_duplicate_numbers(family, financial_year)
