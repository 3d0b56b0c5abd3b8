"""Owner-scoped record storage.

RecordStore is the only component that talks to the database session.
It offers the same five calls for every record family (customers, items,
delivery challans, bills, invoices)::

    await store.list(Bill, Bill.customer_id == cid, order_by=[Bill.bill_date.desc()])
    await store.get(Bill, bill_id)
    await store.insert(Bill(...))            # owner_id assigned here
    await store.update(Bill, bill_id, status="PAID")
    await store.delete(Bill, bill_id)

Every statement is filtered by the owner the store was built for; a
store never sees another owner's rows. Mutations without an owner raise
NotAuthenticatedError before anything is written, and database failures
surface as PersistenceError.

Each mutation runs in its own SAVEPOINT. A failed flush rolls back that
one write and leaves the session usable, so earlier writes of the same
transaction can still be compensated.
"""
import logging
import uuid
from typing import Any, Optional, Sequence, Type, TypeVar, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.core.exceptions import (
    NotAuthenticatedError, NotFoundError, PersistenceError,
)


logger = logging.getLogger(__name__)

M = TypeVar("M")


class RecordStore:
    """Generic CRUD over ORM models, scoped to one owner."""

    def __init__(self, db: AsyncSession, owner_id: Optional[uuid.UUID]):
        self.db = db
        self.owner_id = owner_id

    def require_owner(self) -> uuid.UUID:
        """Return the owner id or raise NotAuthenticatedError."""
        if self.owner_id is None:
            raise NotAuthenticatedError("Not authenticated")
        return self.owner_id

    async def list(
        self,
        model: Type[M],
        *criteria: Any,
        order_by: Sequence[Any] = (),
    ) -> List[M]:
        """Records of ``model`` matching all ``criteria``, in ``order_by`` order."""
        if self.owner_id is None:
            return []

        query = select(model).where(model.owner_id == self.owner_id, *criteria)
        if order_by:
            query = query.order_by(*order_by)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list {model.__tablename__}: {e}")
            raise PersistenceError(
                f"Failed to load {model.__tablename__}",
                details={"table": model.__tablename__},
            ) from e
        return list(result.scalars().all())

    async def get(self, model: Type[M], record_id: uuid.UUID) -> Optional[M]:
        if self.owner_id is None:
            return None

        try:
            result = await self.db.execute(
                select(model).where(
                    model.id == record_id,
                    model.owner_id == self.owner_id,
                )
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load {model.__tablename__} {record_id}: {e}")
            raise PersistenceError(
                f"Failed to load {model.__tablename__}",
                details={"table": model.__tablename__, "id": str(record_id)},
            ) from e
        return result.scalar_one_or_none()

    async def get_or_404(self, model: Type[M], record_id: uuid.UUID, label: str) -> M:
        record = await self.get(model, record_id)
        if record is None:
            raise NotFoundError(f"{label} not found", details={"id": str(record_id)})
        return record

    async def insert(self, record: M) -> M:
        """Stamp the owner on ``record`` and persist it; id and timestamps are assigned."""
        record.owner_id = self.require_owner()
        try:
            async with self.db.begin_nested():
                self.db.add(record)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert into {record.__tablename__}: {e}")
            raise PersistenceError(
                f"Failed to save {record.__tablename__}",
                details={"table": record.__tablename__},
            ) from e
        return record

    async def update(self, model: Type[M], record_id: uuid.UUID, **fields: Any) -> M:
        """Apply a partial update. Raises NotFoundError if the record is gone."""
        self.require_owner()
        record = await self.get_or_404(model, record_id, model.__name__)

        try:
            async with self.db.begin_nested():
                for field, value in fields.items():
                    setattr(record, field, value)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to update {model.__tablename__} {record_id}: {e}")
            raise PersistenceError(
                f"Failed to update {model.__tablename__}",
                details={"table": model.__tablename__, "id": str(record_id)},
            ) from e
        return record

    async def delete(self, model: Type[M], record_id: uuid.UUID) -> None:
        self.require_owner()
        record = await self.get_or_404(model, record_id, model.__name__)

        try:
            async with self.db.begin_nested():
                await self.db.delete(record)
                await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete {model.__tablename__} {record_id}: {e}")
            raise PersistenceError(
                f"Failed to delete {model.__tablename__}",
                details={"table": model.__tablename__, "id": str(record_id)},
            ) from e
