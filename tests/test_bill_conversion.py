from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from billbook.core.exceptions import InconsistentStateError, PersistenceError, ValidationError
from billbook.models import Bill, BillStatus, DeliveryChallan, InvoiceStatus
from billbook.schemas.lines import ChallanLine, lines_to_storage
from billbook.services.balance_service import BalanceCarryForwardService
from billbook.services.bill_conversion_service import BillConversionService, merge_challan_lines
from billbook.services.invoice_service import InvoiceService


def unsaved_challan(*lines):
    return DeliveryChallan(items=lines_to_storage(
        ChallanLine(name=name, qty=Decimal(qty), rate=Decimal(rate)) for name, qty, rate in lines
    ))


def test_merge_sums_quantities_by_name_and_rate():
    merged = merge_challan_lines([
        unsaved_challan(("Bolt", "5", "10"), ("Nut", "2", "1.5")),
        unsaved_challan(("Bolt", "3", "10"), ("Bolt", "1", "12")),
    ])

    assert merged == [
        ("Bolt", Decimal("8"), Decimal("10")),
        ("Nut", Decimal("2"), Decimal("1.5")),
        ("Bolt", Decimal("1"), Decimal("12")),
    ]


def test_merge_is_case_sensitive_on_name():
    merged = merge_challan_lines([unsaved_challan(("Bolt", "1", "10"), ("bolt", "1", "10"))])
    assert len(merged) == 2


@pytest.fixture
async def two_challans(make_customer, make_challan):
    customer = await make_customer("Acme Traders", gstin="27ABCDE1234F1Z5")
    a = await make_challan("2025-26-001", customer, lines=[("Bolt", "5", "10")])
    b = await make_challan("2025-26-002", customer, lines=[("Bolt", "3", "10")])
    return customer, a, b


async def test_convert_marks_challans_and_builds_bill(store, make_item, two_challans):
    customer, a, b = two_challans
    await make_item("bolt", hsn_code="7318")

    bill = await BillConversionService(store).convert_challans_to_bill(
        customer.id, [a.id, b.id], gst_rate=Decimal("18"), bill_date=date(2025, 6, 15)
    )

    assert bill.bill_number == "2025-26-001"
    assert bill.status == BillStatus.UNPAID.value
    assert bill.customer_gstin == "27ABCDE1234F1Z5"
    assert bill.challan_uuids == [a.id, b.id]

    [line] = bill.lines
    assert (line.name, line.qty, line.rate, line.hsn_code) == ("Bolt", Decimal("8"), Decimal("10"), "7318")
    assert (line.cgst_percent, line.sgst_percent) == (Decimal("9"), Decimal("9"))

    assert bill.subtotal == Decimal("80")
    assert bill.gst_amount == Decimal("14.4")
    assert bill.net_amount == Decimal("94")
    assert bill.round_off == Decimal("-0.4")

    for challan in (a, b):
        assert challan.is_billed is True
        assert challan.bill_id == bill.id


async def test_delete_bill_releases_challans(store, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)
    bill = await service.convert_challans_to_bill(customer.id, [a.id, b.id])

    await service.delete_bill(bill.id)

    assert await store.get(Bill, bill.id) is None
    for challan in (a, b):
        assert challan.is_billed is False
        assert challan.bill_id is None


async def test_empty_selection_is_rejected(store, make_customer):
    customer = await make_customer()

    with pytest.raises(ValidationError, match="No challans selected"):
        await BillConversionService(store).convert_challans_to_bill(customer.id, [])
    assert await store.list(Bill) == []


async def test_unknown_customer_is_rejected(store, two_challans):
    _, a, _ = two_challans
    with pytest.raises(ValidationError, match="Customer not found"):
        await BillConversionService(store).convert_challans_to_bill(uuid4(), [a.id])


async def test_selection_must_be_unbilled_and_same_customer(store, make_customer, make_challan, two_challans):
    customer, a, _ = two_challans
    other = await make_customer("Other Co")
    foreign = await make_challan("2025-26-003", other)
    billed = await make_challan("2025-26-004", customer, is_billed=True, bill_id=uuid4())
    service = BillConversionService(store)

    with pytest.raises(ValidationError, match="does not belong"):
        await service.convert_challans_to_bill(customer.id, [a.id, foreign.id])
    with pytest.raises(ValidationError, match="already billed"):
        await service.convert_challans_to_bill(customer.id, [a.id, billed.id])
    with pytest.raises(ValidationError, match="Challan not found"):
        await service.convert_challans_to_bill(customer.id, [uuid4()])

    assert await store.list(Bill) == []
    assert a.is_billed is False


async def test_failed_marking_is_compensated(store, monkeypatch, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)
    mark = service._mark
    calls = []

    async def flaky_mark(challan_id, bill_id):
        calls.append(challan_id)
        if len(calls) == 2:
            raise PersistenceError("Failed to update delivery_challans")
        await mark(challan_id, bill_id)

    monkeypatch.setattr(service, "_mark", flaky_mark)

    with pytest.raises(PersistenceError, match="Failed to update"):
        await service.convert_challans_to_bill(customer.id, [a.id, b.id])

    assert await store.list(Bill) == []
    assert a.is_billed is False and a.bill_id is None
    assert b.is_billed is False and b.bill_id is None


async def test_database_failure_while_marking_is_compensated(db, store, monkeypatch, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)

    async def mark_with_bad_row(challan_id, bill_id):
        fields = dict(is_billed=True, bill_id=bill_id)
        if challan_id == b.id:
            fields["customer_name"] = None  # NOT NULL column, fails at flush
        await store.update(DeliveryChallan, challan_id, **fields)

    monkeypatch.setattr(service, "_mark", mark_with_bad_row)

    with pytest.raises(PersistenceError, match="Failed to update delivery_challans"):
        await service.convert_challans_to_bill(customer.id, [a.id, b.id])

    assert await store.list(Bill) == []
    for challan in (a, b):
        await db.refresh(challan)
        assert challan.is_billed is False and challan.bill_id is None
    assert b.customer_name == "Acme Traders"

    # The session is still usable: the same selection converts cleanly afterwards
    bill = await BillConversionService(store).convert_challans_to_bill(customer.id, [a.id, b.id])
    assert bill.challan_uuids == [a.id, b.id]


async def test_failed_compensation_reports_inconsistent_state(store, monkeypatch, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)
    mark = service._mark

    async def flaky_mark(challan_id, bill_id):
        if challan_id == b.id:
            raise PersistenceError("Failed to update delivery_challans")
        await mark(challan_id, bill_id)

    async def broken_release(challan_id):
        raise PersistenceError("Failed to update delivery_challans")

    monkeypatch.setattr(service, "_mark", flaky_mark)
    monkeypatch.setattr(service, "_release", broken_release)

    with pytest.raises(InconsistentStateError) as exc_info:
        await service.convert_challans_to_bill(customer.id, [a.id, b.id])

    assert exc_info.value.details["unrepaired"] == ["release challan 2025-26-001"]
    assert a.is_billed is True

    report = await BillConversionService(store).verify_bill_links()
    assert [issue.problem for issue in report.issues] == ["bill_missing"]


async def test_verify_and_repair_links(store, make_challan, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)
    bill = await service.convert_challans_to_bill(customer.id, [a.id, b.id])

    report = await service.verify_bill_links()
    assert report.is_consistent
    assert report.checked_bills == 1
    assert report.checked_challans == 2

    await store.update(DeliveryChallan, a.id, is_billed=False, bill_id=None)
    orphan = await make_challan("2025-26-003", customer, is_billed=True, bill_id=uuid4())
    flagged = await make_challan("2025-26-004", customer, is_billed=True)

    report = await service.verify_bill_links()
    problems = {issue.challan_id: issue.problem for issue in report.issues}
    assert problems == {a.id: "not_marked", orphan.id: "bill_missing", flagged.id: "inconsistent_flags"}
    assert report.repaired == 0

    report = await service.verify_bill_links(repair=True)
    assert report.repaired == 3
    assert a.is_billed is True and a.bill_id == bill.id
    assert orphan.is_billed is False and orphan.bill_id is None
    assert flagged.is_billed is False

    assert (await service.verify_bill_links()).is_consistent


async def test_bill_status_feeds_carry_forward(store, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)
    bill = await service.convert_challans_to_bill(customer.id, [a.id, b.id])
    balances = BalanceCarryForwardService(store)

    assert await balances.get_previous_balance(customer.id, customer.name) == Decimal("94")

    await service.set_bill_status(bill.id, BillStatus.PAID)
    assert bill.status == "PAID"
    assert await balances.get_previous_balance(customer.id, customer.name) == Decimal("0")


async def test_invoice_draft_from_bill(store, two_challans):
    customer, a, b = two_challans
    service = BillConversionService(store)
    bill = await service.convert_challans_to_bill(customer.id, [a.id, b.id], bill_date=date(2025, 6, 15))

    draft = await service.draft_invoice_from_bill(bill.id)

    assert draft.bill_id == bill.id
    assert draft.status == InvoiceStatus.PENDING
    assert draft.customer_name == "Acme Traders"
    assert draft.invoice_date == date(2025, 6, 15)
    assert draft.invoice_number is None
    [line] = draft.items
    assert (line.name, line.qty, line.rate) == ("Bolt", Decimal("8"), Decimal("10"))
    assert (line.cgst_percent, line.sgst_percent) == (Decimal("9"), Decimal("9"))

    invoice = await InvoiceService(store).create_invoice(draft)
    assert invoice.bill_id == bill.id
    assert invoice.invoice_number == "2025-26-001"
    assert invoice.grand_total == Decimal("94.4")
