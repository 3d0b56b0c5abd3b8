"""Compensating unit of work for multi-record operations.

Usage:
    async with UnitOfWork("convert challans") as uow:
        bill = await store.insert(bill)
        uow.on_rollback(f"delete bill {bill.bill_number}", store.delete, Bill, bill.id)

        for challan in challans:
            await store.update(DeliveryChallan, challan.id, is_billed=True, bill_id=bill.id)
            uow.on_rollback(f"release challan {challan.challan_number}", release, challan.id)

If any step inside the block raises, the registered compensations run in
reverse order and the original error is re-raised. When a compensation
itself fails the block raises InconsistentStateError instead, listing the
steps that are still applied so the partial state can be repaired.

RecordStore writes each step in its own savepoint, so a step that fails
at flush leaves the session usable for the compensations. Inside an
HTTP request the surrounding session transaction also rolls back; the
compensations cover callers that commit per step.
"""
import logging
from typing import Any, Awaitable, Callable, List, Tuple

from billbook.core.exceptions import InconsistentStateError


logger = logging.getLogger(__name__)

Compensation = Tuple[str, Callable[..., Awaitable[Any]], tuple]


class UnitOfWork:
    """Records undo actions for completed steps and replays them on failure."""

    def __init__(self, name: str):
        self.name = name
        self._compensations: List[Compensation] = []
        self.completed: List[str] = []

    def on_rollback(self, description: str, action: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """Register the undo for a step that has just completed."""
        self._compensations.append((description, action, args))
        self.completed.append(description)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            self._compensations.clear()
            return False

        logger.warning(
            f"{self.name} failed after {len(self._compensations)} step(s): {exc}; compensating"
        )
        unrepaired = await self._compensate()
        if unrepaired:
            logger.error(f"{self.name} left inconsistent state: {unrepaired}")
            raise InconsistentStateError(
                f"{self.name} failed and could not be fully undone",
                details={"unrepaired": unrepaired, "cause": str(exc)},
            ) from exc
        return False

    async def _compensate(self) -> List[str]:
        unrepaired = []
        while self._compensations:
            description, action, args = self._compensations.pop()
            try:
                await action(*args)
            except Exception as e:
                logger.error(f"Compensation '{description}' failed: {e}")
                unrepaired.append(description)
        return unrepaired
