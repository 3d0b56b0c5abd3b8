"""Customer management and customer-to-document matching."""
import logging
import uuid
from typing import Any, List, Optional

from sqlalchemy import and_, false, func, or_

from billbook.core.exceptions import ValidationError
from billbook.models import Customer
from billbook.schemas.catalog import CustomerCreate, CustomerUpdate
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


def customer_match(model: Any, customer_id: Optional[uuid.UUID], customer_name: Optional[str]):
    """
    SQL criterion selecting a customer's documents of ``model``.

    Resolution rule, used everywhere a document is attributed to a customer:
    - id given: documents linked to that id, plus unlinked documents
      (customer_id is NULL) whose customer_name equals ``customer_name``
    - only a name: documents whose customer_name equals it exactly
    - neither: nothing

    Name matching is deliberately narrower than a plain name comparison: a
    document linked to another customer never matches by name, even when
    the names are equal.
    """
    if customer_id is not None:
        linked = model.customer_id == customer_id
        if customer_name:
            return or_(linked, and_(model.customer_id.is_(None), model.customer_name == customer_name))
        return linked
    if customer_name:
        return model.customer_name == customer_name
    return false()


class CustomerService:
    """Customer CRUD and lookup."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def list_customers(self) -> List[Customer]:
        return await self.store.list(Customer, order_by=[Customer.created_at.desc()])

    async def get_customer(self, customer_id: uuid.UUID) -> Customer:
        return await self.store.get_or_404(Customer, customer_id, "Customer")

    async def find_by_name(self, name: Optional[str]) -> Optional[Customer]:
        """Case-insensitive exact name match; the oldest customer wins on ties."""
        if not name or not name.strip():
            return None
        matches = await self.store.list(
            Customer,
            func.lower(Customer.name) == name.strip().lower(),
            order_by=[Customer.created_at.asc()],
        )
        return matches[0] if matches else None

    async def resolve(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_name: Optional[str] = None,
    ) -> Optional[Customer]:
        """
        Find the customer a document refers to: by id when present,
        otherwise by case-insensitive name. None if nothing matches.
        """
        if customer_id is not None:
            customer = await self.store.get(Customer, customer_id)
            if customer is not None:
                return customer
            logger.warning(f"Customer {customer_id} not found, falling back to name '{customer_name}'")
        customer = await self.find_by_name(customer_name)
        if customer is not None and customer_id is None:
            logger.warning(f"Customer '{customer_name}' resolved by name only")
        return customer

    async def create_customer(self, data: CustomerCreate) -> Customer:
        self.store.require_owner()
        name = data.name.strip()
        if not name:
            raise ValidationError("Please enter customer name")

        customer = await self.store.insert(Customer(
            name=name,
            gstin=(data.gstin or "").strip() or None,
            address=(data.address or "").strip(),
            phone=(data.phone or "").strip() or None,
        ))
        logger.info(f"Customer created: {customer.name}")
        return customer

    async def get_or_create_by_name(
        self,
        name: str,
        gstin: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Customer:
        customer = await self.find_by_name(name)
        if customer is not None:
            return customer
        return await self.create_customer(CustomerCreate(name=name, gstin=gstin, address=address))

    async def update_customer(self, customer_id: uuid.UUID, data: CustomerUpdate) -> Customer:
        self.store.require_owner()
        fields = data.model_dump(exclude_unset=True)
        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValidationError("Please enter customer name")
        if "address" in fields:
            fields["address"] = (fields["address"] or "").strip()
        return await self.store.update(Customer, customer_id, **fields)

    async def delete_customer(self, customer_id: uuid.UUID) -> None:
        self.store.require_owner()
        await self.store.delete(Customer, customer_id)
        logger.info(f"Customer deleted: {customer_id}")
