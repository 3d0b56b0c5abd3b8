from typing import List, Optional
import uuid

from fastapi import APIRouter, status, Query

from billbook.api.deps import Store
from billbook.schemas.catalog import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)
from billbook.schemas.ledger import LedgerStatement, PreviousBalanceResponse
from billbook.services.balance_service import BalanceCarryForwardService
from billbook.services.customer_service import CustomerService
from billbook.services.ledger_service import LedgerService


router = APIRouter(tags=["Customers"])


@router.get("", response_model=CustomerListResponse)
async def list_customers(store: Store):
    """List customers, newest first."""
    customers = await CustomerService(store).list_customers()
    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in customers],
        total=len(customers),
    )


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(data: CustomerCreate, store: Store):
    customer = await CustomerService(store).create_customer(data)
    return CustomerResponse.model_validate(customer)


@router.get("/previous-balance", response_model=PreviousBalanceResponse)
async def get_previous_balance_by_name(
    store: Store,
    customer_name: Optional[str] = Query(None, description="Walk-in or unlinked customer name"),
):
    """Balance to carry onto a new challan for a customer known only by name."""
    balance = await BalanceCarryForwardService(store).get_previous_balance(None, customer_name)
    return PreviousBalanceResponse(customer_name=customer_name or "", previous_balance=balance)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: uuid.UUID, store: Store):
    customer = await CustomerService(store).get_customer(customer_id)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(customer_id: uuid.UUID, data: CustomerUpdate, store: Store):
    customer = await CustomerService(store).update_customer(customer_id, data)
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: uuid.UUID, store: Store):
    await CustomerService(store).delete_customer(customer_id)


@router.get("/{customer_id}/previous-balance", response_model=PreviousBalanceResponse)
async def get_previous_balance(customer_id: uuid.UUID, store: Store):
    """
    Balance to carry onto the customer's next challan.

    0 after a paid bill, the bill's net amount after an unpaid one, and the
    latest unbilled challan's grand total when the customer has no bills.
    """
    customer = await CustomerService(store).get_customer(customer_id)
    balance = await BalanceCarryForwardService(store).get_previous_balance(customer.id, customer.name)
    return PreviousBalanceResponse(
        customer_id=customer.id,
        customer_name=customer.name,
        previous_balance=balance,
    )


@router.get("/{customer_id}/ledger", response_model=LedgerStatement)
async def get_customer_ledger(
    customer_id: uuid.UUID,
    store: Store,
    years: List[int] = Query([], description="Calendar years to include"),
    months: List[int] = Query([], description="Months to include, 0 = January"),
):
    """Debit/credit statement rebuilt from the customer's invoices."""
    return await LedgerService(store).get_customer_ledger(customer_id, years, months)
