"""Delivery challan management."""
import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from billbook.core.exceptions import ChallanLockedError, ValidationError
from billbook.models import Customer, DeliveryChallan
from billbook.schemas.challan import ChallanCreate, ChallanLineInput, ChallanUpdate
from billbook.schemas.lines import ChallanLine, lines_to_storage
from billbook.services.balance_service import BalanceCarryForwardService
from billbook.services.customer_service import CustomerService, customer_match
from billbook.services.document_sequence_service import DocumentFamily, DocumentSequenceService
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


def build_challan_lines(items: List[ChallanLineInput]) -> List[ChallanLine]:
    return [ChallanLine(name=i.name.strip(), qty=i.qty, rate=i.rate) for i in items]


def challan_amount(lines: List[ChallanLine]) -> Decimal:
    return sum((line.total for line in lines), Decimal("0"))


class ChallanService:
    """Create, edit and delete challans while they are unbilled."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.sequences = DocumentSequenceService(store)
        self.balances = BalanceCarryForwardService(store)
        self.customers = CustomerService(store)

    async def list_challans(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_name: Optional[str] = None,
        is_billed: Optional[bool] = None,
    ) -> List[DeliveryChallan]:
        criteria = []
        if customer_id is not None or customer_name:
            criteria.append(customer_match(DeliveryChallan, customer_id, customer_name))
        if is_billed is not None:
            criteria.append(DeliveryChallan.is_billed.is_(is_billed))
        return await self.store.list(
            DeliveryChallan,
            *criteria,
            order_by=[DeliveryChallan.challan_date.desc(), DeliveryChallan.created_at.desc()],
        )

    async def get_challan(self, challan_id: uuid.UUID) -> DeliveryChallan:
        return await self.store.get_or_404(DeliveryChallan, challan_id, "Challan")

    async def get_unbilled_challans(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_name: Optional[str] = None,
    ) -> List[DeliveryChallan]:
        if customer_id is None and not customer_name:
            return []
        return await self.list_challans(customer_id, customer_name, is_billed=False)

    async def _linked_customer(self, customer_id: Optional[uuid.UUID]) -> Optional[Customer]:
        if customer_id is None:
            return None
        customer = await self.store.get(Customer, customer_id)
        if customer is None:
            raise ValidationError("Customer not found", details={"customer_id": str(customer_id)})
        return customer

    async def create_challan(self, data: ChallanCreate) -> DeliveryChallan:
        """
        Create an unbilled challan.

        The number defaults to the next challan number for the challan date
        and the previous balance to the customer's carried-forward balance.
        """
        self.store.require_owner()

        customer = await self._linked_customer(data.customer_id)
        customer_name = customer.name if customer else data.customer_name.strip()
        if not customer_name:
            raise ValidationError("Please select or enter a customer")
        if not data.items:
            raise ValidationError("Please add at least one item")

        lines = build_challan_lines(data.items)
        current_amount = challan_amount(lines)

        previous_balance = data.previous_balance
        if previous_balance is None:
            previous_balance = await self.balances.get_previous_balance(
                customer.id if customer else None, customer_name
            )

        challan_number = data.challan_number or await self.sequences.get_next_number(
            DocumentFamily.CHALLAN, data.challan_date
        )

        challan = await self.store.insert(DeliveryChallan(
            challan_number=challan_number,
            challan_date=data.challan_date,
            customer_id=customer.id if customer else None,
            customer_name=customer_name,
            customer_address=data.customer_address if data.customer_address is not None
            else (customer.address if customer else None),
            customer_phone=data.customer_phone if data.customer_phone is not None
            else (customer.phone if customer else None),
            items=lines_to_storage(lines),
            current_amount=current_amount,
            previous_balance=previous_balance,
            grand_total=previous_balance + current_amount,
            is_billed=False,
            bill_id=None,
        ))

        logger.info(
            f"Challan {challan.challan_number} created for {customer_name}: "
            f"current={current_amount} previous={previous_balance}"
        )
        return challan

    async def update_challan(self, challan_id: uuid.UUID, data: ChallanUpdate) -> DeliveryChallan:
        """Edit an unbilled challan; totals are recomputed from the result."""
        self.store.require_owner()
        challan = await self.get_challan(challan_id)
        if challan.is_billed:
            raise ChallanLockedError(
                f"Challan {challan.challan_number} is billed and cannot be edited",
                details={"bill_id": str(challan.bill_id)},
            )

        fields = data.model_dump(exclude_unset=True, exclude={"items"})

        if "customer_id" in fields and fields["customer_id"] is not None:
            customer = await self._linked_customer(fields["customer_id"])
            fields.setdefault("customer_name", customer.name)
        if "customer_name" in fields:
            fields["customer_name"] = (fields["customer_name"] or "").strip()
            if not fields["customer_name"]:
                raise ValidationError("Please select or enter a customer")

        if data.items is not None:
            if not data.items:
                raise ValidationError("Please add at least one item")
            lines = build_challan_lines(data.items)
            fields["items"] = lines_to_storage(lines)
            fields["current_amount"] = challan_amount(lines)

        if fields.get("previous_balance") is None:
            fields.pop("previous_balance", None)
        current_amount = fields.get("current_amount", challan.current_amount)
        previous_balance = fields.get("previous_balance", challan.previous_balance)
        fields["grand_total"] = Decimal(previous_balance) + Decimal(current_amount)

        challan = await self.store.update(DeliveryChallan, challan_id, **fields)
        logger.info(f"Challan {challan.challan_number} updated")
        return challan

    async def delete_challan(self, challan_id: uuid.UUID) -> None:
        self.store.require_owner()
        challan = await self.get_challan(challan_id)
        if challan.is_billed:
            raise ChallanLockedError(
                f"Challan {challan.challan_number} is billed and cannot be deleted",
                details={"bill_id": str(challan.bill_id)},
            )
        await self.store.delete(DeliveryChallan, challan_id)
        logger.info(f"Challan {challan.challan_number} deleted")
