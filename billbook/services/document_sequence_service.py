"""
Document Sequence Service for Financial-Year Numbering

NUMBERING RULES:
- Indian financial year (April-March), labelled "2025-26"
- Continuous sequence within a financial year, restarting at 001 each year
- Format: {FY}-{SEQUENCE}, e.g. 2025-26-001
- Each document family (challan, bill, invoice) numbers independently

The next number is derived from the documents already stored: the highest
numeric suffix among the family's numbers for that year, plus one. There is
no counter row and no lock, so two writers that read before either one
saves can both get the same number. find_duplicate_numbers() reports that
case after the fact.

USAGE:
    service = DocumentSequenceService(store)
    bill_number = await service.get_next_number(DocumentFamily.BILL, date(2025, 4, 1))
    # Returns: 2025-26-001
"""

import logging
import re
from collections import Counter
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional

from billbook.config import settings
from billbook.models import Bill, DeliveryChallan, Invoice
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


class DocumentFamily(str, Enum):
    """Document families that use sequence numbering."""
    CHALLAN = "CHALLAN"
    BILL = "BILL"
    INVOICE = "INVOICE"


# Family metadata: model and the column holding the number
DOCUMENT_METADATA = {
    DocumentFamily.CHALLAN: {"name": "Delivery Challan", "model": DeliveryChallan, "column": "challan_number"},
    DocumentFamily.BILL: {"name": "Bill", "model": Bill, "column": "bill_number"},
    DocumentFamily.INVOICE: {"name": "Tax Invoice", "model": Invoice, "column": "invoice_number"},
}

_LEADING_DIGITS = re.compile(r"\s*(\d+)")


def get_financial_year(on_date: Optional[date] = None) -> str:
    """
    Financial year label for a date.

    Indian financial year: April to March
    - 31 Mar 2025 → "2024-25"
    - 01 Apr 2025 → "2025-26"
    """
    on_date = on_date or date.today()
    year = on_date.year

    if on_date.month >= 4:  # April onwards
        return f"{year}-{(year + 1) % 100:02d}"
    return f"{year - 1}-{year % 100:02d}"


def format_document_number(
    financial_year: str,
    sequence: int,
    padding: Optional[int] = None,
) -> str:
    padding = padding or settings.DOCUMENT_NUMBER_PADDING
    return f"{financial_year}-{str(sequence).zfill(padding)}"


def parse_sequence_suffix(document_number: Optional[str]) -> int:
    """
    Numeric suffix after the last '-' of a document number.

    Leading digits are read the way a lenient integer parse would
    ("014" → 14, "7a" → 7); a missing or non-numeric suffix counts as 0.
    """
    if not document_number:
        return 0
    suffix = document_number.split("-")[-1]
    match = _LEADING_DIGITS.match(suffix)
    return int(match.group(1)) if match else 0


def next_sequence(existing_numbers: Iterable[str], financial_year: str) -> int:
    """Next free sequence for ``financial_year`` given the numbers in use."""
    prefix = f"{financial_year}-"
    in_year = [n for n in existing_numbers if n and n.startswith(prefix)]
    if not in_year:
        return 1
    return max(parse_sequence_suffix(n) for n in in_year) + 1


class DocumentSequenceService:
    """
    Computes document numbers from the documents already stored for the
    current owner.

    The computed number is not reserved. Callers must save the document
    before the next number is computed from the same state.
    """

    def __init__(self, store: RecordStore, padding: Optional[int] = None):
        self.store = store
        self.padding = padding or settings.DOCUMENT_NUMBER_PADDING

    async def _numbers_in_year(self, family: DocumentFamily, financial_year: str) -> List[str]:
        metadata = DOCUMENT_METADATA[DocumentFamily(family)]
        model = metadata["model"]
        column = getattr(model, metadata["column"])

        records = await self.store.list(model, column.startswith(f"{financial_year}-"))
        return [getattr(r, metadata["column"]) for r in records]

    async def get_current_number(
        self,
        family: DocumentFamily,
        financial_year: Optional[str] = None,
    ) -> int:
        """Highest sequence used in the financial year (0 if none)."""
        financial_year = financial_year or get_financial_year()
        numbers = await self._numbers_in_year(family, financial_year)
        return next_sequence(numbers, financial_year) - 1

    async def get_next_number(
        self,
        family: DocumentFamily,
        on_date: Optional[date] = None,
    ) -> str:
        """
        Next document number for ``family`` in the financial year of ``on_date``.

        Returns:
            Formatted document number, e.g. 2025-26-001
        """
        financial_year = get_financial_year(on_date)
        numbers = await self._numbers_in_year(family, financial_year)
        return format_document_number(
            financial_year, next_sequence(numbers, financial_year), self.padding
        )

    async def find_duplicate_numbers(
        self,
        family: DocumentFamily,
        financial_year: Optional[str] = None,
    ) -> Dict[str, int]:
        """
        Numbers used by more than one document in the financial year.

        Returns:
            {document_number: count} for every duplicated number
        """
        financial_year = financial_year or get_financial_year()
        counts = Counter(await self._numbers_in_year(family, financial_year))
        duplicates = {number: count for number, count in counts.items() if count > 1}

        if duplicates:
            logger.warning(
                f"Duplicate {DocumentFamily(family).value} numbers in FY {financial_year}: "
                f"{sorted(duplicates)}"
            )
        return duplicates
