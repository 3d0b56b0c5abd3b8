from datetime import date
from uuid import uuid4

import pytest

from billbook.models import DeliveryChallan
from billbook.schemas.challan import ChallanCreate, ChallanLineInput
from billbook.services.challan_service import ChallanService
from billbook.services.document_sequence_service import (
    DocumentFamily,
    DocumentSequenceService,
    format_document_number,
    get_financial_year,
    next_sequence,
    parse_sequence_suffix,
)
from billbook.services.record_store import RecordStore


def test_financial_year_boundary():
    assert get_financial_year(date(2025, 3, 31)) == "2024-25"
    assert get_financial_year(date(2025, 4, 1)) == "2025-26"


def test_financial_year_century_rollover():
    assert get_financial_year(date(1999, 12, 1)) == "1999-00"
    assert get_financial_year(date(2000, 1, 15)) == "1999-00"


def test_format_document_number_pads_sequence():
    assert format_document_number("2025-26", 1) == "2025-26-001"
    assert format_document_number("2025-26", 14) == "2025-26-014"
    assert format_document_number("2025-26", 1234) == "2025-26-1234"


@pytest.mark.parametrize("number,expected", [
    ("2025-26-014", 14),
    ("2025-26-7a", 7),
    ("2025-26-abc", 0),
    ("2025-26-", 0),
    ("", 0),
    (None, 0),
])
def test_parse_sequence_suffix(number, expected):
    assert parse_sequence_suffix(number) == expected


def test_next_sequence_ignores_other_years():
    numbers = ["2024-25-010", "2025-26-002", "2025-26-009", "2025-26-x"]
    assert next_sequence(numbers, "2025-26") == 10
    assert next_sequence(numbers, "2026-27") == 1
    assert next_sequence([], "2025-26") == 1


async def test_first_number_of_year(store):
    service = DocumentSequenceService(store)
    assert await service.get_next_number(DocumentFamily.BILL, date(2025, 4, 1)) == "2025-26-001"


async def test_next_number_follows_highest_suffix(store, make_challan):
    await make_challan("2025-26-001")
    await make_challan("2025-26-005")
    await make_challan("2024-25-010", challan_date=date(2025, 3, 20))

    service = DocumentSequenceService(store)
    assert await service.get_next_number(DocumentFamily.CHALLAN, date(2025, 8, 1)) == "2025-26-006"
    assert await service.get_next_number(DocumentFamily.CHALLAN, date(2025, 1, 1)) == "2024-25-011"
    assert await service.get_current_number(DocumentFamily.CHALLAN, "2025-26") == 5


async def test_families_number_independently(store, make_challan):
    await make_challan("2025-26-003")

    service = DocumentSequenceService(store)
    assert await service.get_next_number(DocumentFamily.BILL, date(2025, 5, 1)) == "2025-26-001"
    assert await service.get_next_number(DocumentFamily.INVOICE, date(2025, 5, 1)) == "2025-26-001"


async def test_numbers_are_scoped_to_owner(db, store, make_challan):
    await make_challan("2025-26-004")

    other = DocumentSequenceService(RecordStore(db, owner_id=uuid4()))
    assert await other.get_next_number(DocumentFamily.CHALLAN, date(2025, 5, 1)) == "2025-26-001"


async def test_assigned_numbers_strictly_increase(store, make_customer):
    customer = await make_customer("Sharma Hardware")
    service = ChallanService(store)

    numbers = []
    for qty in ("1", "2", "3"):
        challan = await service.create_challan(ChallanCreate(
            challan_date=date(2025, 9, 10),
            customer_id=customer.id,
            items=[ChallanLineInput(name="Nut", qty=qty, rate="2")],
        ))
        numbers.append(challan.challan_number)

    assert numbers == ["2025-26-001", "2025-26-002", "2025-26-003"]


async def test_find_duplicate_numbers(store, make_challan):
    await make_challan("2025-26-001")
    await make_challan("2025-26-002")
    await make_challan("2025-26-002")

    duplicates = await DocumentSequenceService(store).find_duplicate_numbers(
        DocumentFamily.CHALLAN, "2025-26"
    )
    assert duplicates == {"2025-26-002": 2}
    assert len(await store.list(DeliveryChallan)) == 3
