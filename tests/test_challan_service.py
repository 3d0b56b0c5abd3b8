from datetime import date
from decimal import Decimal

import pytest

from billbook.core.exceptions import ChallanLockedError, NotAuthenticatedError, NotFoundError, ValidationError
from billbook.models import DeliveryChallan
from billbook.schemas.challan import ChallanCreate, ChallanLineInput, ChallanUpdate
from billbook.services.challan_service import ChallanService


def challan_input(customer=None, **fields):
    fields.setdefault("challan_date", date(2025, 5, 1))
    fields.setdefault("items", [
        ChallanLineInput(name="Bolt", qty="5", rate="10"),
        ChallanLineInput(name="Nut", qty="2", rate="2.5"),
    ])
    if customer is not None:
        fields.setdefault("customer_id", customer.id)
    return ChallanCreate(**fields)


async def test_create_challan_computes_number_and_totals(store, make_customer):
    customer = await make_customer("Acme Traders", address="12 Market Road", phone="9800000000")

    challan = await ChallanService(store).create_challan(challan_input(customer))

    assert challan.challan_number == "2025-26-001"
    assert challan.customer_name == "Acme Traders"
    assert challan.customer_address == "12 Market Road"
    assert challan.customer_phone == "9800000000"
    assert challan.current_amount == Decimal("55")
    assert challan.previous_balance == Decimal("0")
    assert challan.grand_total == Decimal("55")
    assert challan.is_billed is False
    assert challan.bill_id is None
    assert [line.total for line in challan.lines] == [Decimal("50"), Decimal("5")]


async def test_next_challan_carries_forward_balance(store, make_customer):
    customer = await make_customer()
    service = ChallanService(store)

    await service.create_challan(challan_input(customer))
    second = await service.create_challan(challan_input(
        customer,
        challan_date=date(2025, 5, 3),
        items=[ChallanLineInput(name="Washer", qty="10", rate="1")],
    ))

    assert second.challan_number == "2025-26-002"
    assert second.previous_balance == Decimal("55")
    assert second.grand_total == Decimal("65")


async def test_explicit_number_and_balance_are_kept(store, make_customer):
    customer = await make_customer()
    challan = await ChallanService(store).create_challan(
        challan_input(customer, challan_number="2025-26-100", previous_balance=Decimal("120"))
    )

    assert challan.challan_number == "2025-26-100"
    assert challan.grand_total == Decimal("175")


async def test_walk_in_customer_by_name(store):
    challan = await ChallanService(store).create_challan(challan_input(customer_name="  Walk-in Buyer "))

    assert challan.customer_id is None
    assert challan.customer_name == "Walk-in Buyer"


async def test_create_requires_customer_and_items(store, make_customer):
    service = ChallanService(store)

    with pytest.raises(ValidationError, match="customer"):
        await service.create_challan(challan_input(customer_name=""))

    customer = await make_customer()
    with pytest.raises(ValidationError, match="at least one item"):
        await service.create_challan(challan_input(customer, items=[]))

    assert await store.list(DeliveryChallan) == []


async def test_create_with_unknown_customer_id(store):
    from uuid import uuid4

    with pytest.raises(ValidationError, match="Customer not found"):
        await ChallanService(store).create_challan(challan_input(customer_id=uuid4()))


async def test_create_requires_owner(anonymous_store):
    with pytest.raises(NotAuthenticatedError):
        await ChallanService(anonymous_store).create_challan(challan_input(customer_name="Acme"))


async def test_update_recomputes_totals(store, make_customer):
    customer = await make_customer()
    service = ChallanService(store)
    challan = await service.create_challan(challan_input(customer, previous_balance=Decimal("20")))

    updated = await service.update_challan(challan.id, ChallanUpdate(
        items=[ChallanLineInput(name="Bolt", qty="7", rate="10")],
    ))

    assert updated.current_amount == Decimal("70")
    assert updated.previous_balance == Decimal("20")
    assert updated.grand_total == Decimal("90")

    updated = await service.update_challan(challan.id, ChallanUpdate(previous_balance=Decimal("0")))
    assert updated.grand_total == Decimal("70")


async def test_billed_challan_is_locked(store, make_customer, make_challan):
    from uuid import uuid4

    customer = await make_customer()
    challan = await make_challan("2025-26-001", customer, is_billed=True, bill_id=uuid4())
    service = ChallanService(store)

    with pytest.raises(ChallanLockedError):
        await service.update_challan(challan.id, ChallanUpdate(customer_name="Other"))
    with pytest.raises(ChallanLockedError):
        await service.delete_challan(challan.id)

    assert (await service.get_challan(challan.id)).customer_name == customer.name


async def test_delete_unbilled_challan(store, make_customer, make_challan):
    customer = await make_customer()
    challan = await make_challan("2025-26-001", customer)
    service = ChallanService(store)

    await service.delete_challan(challan.id)

    with pytest.raises(NotFoundError):
        await service.get_challan(challan.id)


async def test_unbilled_challans_for_customer(store, make_customer, make_challan):
    from uuid import uuid4

    acme = await make_customer("Acme Traders")
    other = await make_customer("Other Co")
    first = await make_challan("2025-26-001", acme, challan_date=date(2025, 5, 1))
    await make_challan("2025-26-002", acme, is_billed=True, bill_id=uuid4())
    unlinked = await make_challan("2025-26-003", customer_name="Acme Traders", challan_date=date(2025, 5, 2))
    await make_challan("2025-26-004", other)

    unbilled = await ChallanService(store).get_unbilled_challans(acme.id, acme.name)

    assert [c.id for c in unbilled] == [unlinked.id, first.id]
    assert await ChallanService(store).get_unbilled_challans() == []
