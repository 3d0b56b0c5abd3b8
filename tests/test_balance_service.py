from datetime import date
from decimal import Decimal

from billbook.models import BillStatus
from billbook.services.balance_service import BalanceCarryForwardService


async def test_latest_bill_paid_resets_balance(store, make_customer, make_bill):
    customer = await make_customer()
    await make_bill("2025-26-001", "2400", customer, status=BillStatus.PAID)

    balance = await BalanceCarryForwardService(store).get_previous_balance(customer.id, customer.name)
    assert balance == Decimal("0")


async def test_latest_bill_unpaid_carries_net_amount(store, make_customer, make_bill):
    customer = await make_customer()
    await make_bill("2025-26-001", "1500", customer, status=BillStatus.UNPAID)

    balance = await BalanceCarryForwardService(store).get_previous_balance(customer.id, customer.name)
    assert balance == Decimal("1500")


async def test_only_latest_bill_counts(store, make_customer, make_bill):
    customer = await make_customer()
    await make_bill("2025-26-001", "900", customer, bill_date=date(2025, 5, 1))
    await make_bill("2025-26-002", "300", customer, status=BillStatus.PAID, bill_date=date(2025, 7, 1))

    service = BalanceCarryForwardService(store)
    assert await service.get_previous_balance(customer.id, customer.name) == Decimal("0")

    await make_bill("2025-26-003", "650", customer, bill_date=date(2025, 8, 1))
    assert await service.get_previous_balance(customer.id, customer.name) == Decimal("650")


async def test_no_bills_uses_latest_unbilled_challan(store, make_customer, make_challan):
    customer = await make_customer()
    await make_challan("2025-26-001", customer, lines=[("Bolt", "10", "50")], challan_date=date(2025, 5, 1))
    await make_challan("2025-26-002", customer, lines=[("Bolt", "16", "50")], challan_date=date(2025, 5, 9))

    balance = await BalanceCarryForwardService(store).get_previous_balance(customer.id, customer.name)
    assert balance == Decimal("800")


async def test_billed_challans_are_ignored(store, make_customer, make_challan):
    customer = await make_customer()
    await make_challan("2025-26-001", customer, lines=[("Bolt", "10", "50")], is_billed=True)

    balance = await BalanceCarryForwardService(store).get_previous_balance(customer.id, customer.name)
    assert balance == Decimal("0")


async def test_no_history_is_zero(store, make_customer):
    customer = await make_customer()
    balance = await BalanceCarryForwardService(store).get_previous_balance(customer.id, customer.name)
    assert balance == Decimal("0")


async def test_unlinked_documents_match_by_name(store, make_customer, make_bill):
    customer = await make_customer("Gupta Stores")
    await make_bill("2025-26-001", "1200", customer_name="Gupta Stores")
    await make_bill("2025-26-002", "5000", customer_name="Someone Else", bill_date=date(2025, 9, 1))

    service = BalanceCarryForwardService(store)
    assert await service.get_previous_balance(customer.id, customer.name) == Decimal("1200")
    assert await service.get_previous_balance(None, "Gupta Stores") == Decimal("1200")


async def test_namesake_customer_bills_are_not_matched_by_name(store, make_customer, make_bill):
    customer = await make_customer("Gupta Stores")
    namesake = await make_customer("Gupta Stores")
    await make_bill("2025-26-001", "1200", customer, bill_date=date(2025, 5, 1))
    await make_bill("2025-26-002", "5000", namesake, bill_date=date(2025, 9, 1))

    service = BalanceCarryForwardService(store)
    assert await service.get_previous_balance(customer.id, customer.name) == Decimal("1200")
    assert await service.get_previous_balance(namesake.id, namesake.name) == Decimal("5000")


async def test_no_customer_or_owner_is_zero(store, anonymous_store, make_customer, make_bill):
    customer = await make_customer()
    await make_bill("2025-26-001", "1500", customer)

    assert await BalanceCarryForwardService(store).get_previous_balance() == Decimal("0")
    assert await BalanceCarryForwardService(anonymous_store).get_previous_balance(
        customer.id, customer.name
    ) == Decimal("0")
