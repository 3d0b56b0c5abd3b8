"""Opening balance carried forward onto a new delivery challan."""
import logging
import uuid
from decimal import Decimal
from typing import Optional

from billbook.models import Bill, BillStatus, DeliveryChallan
from billbook.services.customer_service import customer_match
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


class BalanceCarryForwardService:
    """
    Resolves a customer's previous balance from their latest activity.

    Only the single most recent document counts; the balance resets to the
    last known state rather than accumulating:

    1. latest bill PAID    → 0
    2. latest bill UNPAID  → that bill's net_amount
    3. no bills            → grand_total of the latest unbilled challan
    4. nothing             → 0
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_previous_balance(
        self,
        customer_id: Optional[uuid.UUID] = None,
        customer_name: Optional[str] = None,
    ) -> Decimal:
        if customer_id is None and not customer_name:
            return Decimal("0")

        bills = await self.store.list(
            Bill,
            customer_match(Bill, customer_id, customer_name),
            order_by=[Bill.bill_date.desc(), Bill.created_at.desc()],
        )
        if bills:
            latest = bills[0]
            if latest.status == BillStatus.PAID.value:
                return Decimal("0")
            return Decimal(latest.net_amount)

        challans = await self.store.list(
            DeliveryChallan,
            customer_match(DeliveryChallan, customer_id, customer_name),
            DeliveryChallan.is_billed.is_(False),
            order_by=[DeliveryChallan.challan_date.desc(), DeliveryChallan.created_at.desc()],
        )
        if challans:
            return Decimal(challans[0].grand_total)

        return Decimal("0")
