import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from billbook import models  # noqa: F401
from billbook.database import Base, enable_sqlite_savepoints
from billbook.models import Bill, BillStatus, DeliveryChallan, Invoice, InvoiceStatus
from billbook.schemas.catalog import CustomerCreate, ItemCreate
from billbook.schemas.lines import ChallanLine, lines_to_storage
from billbook.services.customer_service import CustomerService
from billbook.services.item_service import ItemService
from billbook.services.record_store import RecordStore


@pytest.fixture
async def engine():
    engine = enable_sqlite_savepoints(create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def store(db, owner_id):
    return RecordStore(db, owner_id)


@pytest.fixture
def anonymous_store(db):
    return RecordStore(db, None)


@pytest.fixture
def make_customer(store):
    async def _make(name="Acme Traders", **fields):
        return await CustomerService(store).create_customer(CustomerCreate(name=name, **fields))
    return _make


@pytest.fixture
def make_item(store):
    async def _make(name="Bolt", hsn_code="7318", rate="10"):
        return await ItemService(store).create_item(
            ItemCreate(name=name, hsn_code=hsn_code, rate=Decimal(rate))
        )
    return _make


@pytest.fixture
def make_challan(store):
    """Insert a challan directly; lines are (name, qty, rate) tuples."""
    async def _make(
        number,
        customer=None,
        customer_name=None,
        lines=(("Bolt", "5", "10"),),
        challan_date=date(2025, 5, 1),
        previous_balance="0",
        is_billed=False,
        bill_id=None,
    ):
        challan_lines = [ChallanLine(name=n, qty=Decimal(q), rate=Decimal(r)) for n, q, r in lines]
        current_amount = sum((line.total for line in challan_lines), Decimal("0"))
        return await store.insert(DeliveryChallan(
            challan_number=number,
            challan_date=challan_date,
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else customer_name,
            items=lines_to_storage(challan_lines),
            current_amount=current_amount,
            previous_balance=Decimal(previous_balance),
            grand_total=Decimal(previous_balance) + current_amount,
            is_billed=is_billed,
            bill_id=bill_id,
        ))
    return _make


@pytest.fixture
def make_bill(store):
    """Insert a bill directly with just the fields balance lookups read."""
    async def _make(
        number,
        net_amount,
        customer=None,
        customer_name=None,
        status=BillStatus.UNPAID,
        bill_date=date(2025, 6, 1),
    ):
        return await store.insert(Bill(
            bill_number=number,
            bill_date=bill_date,
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else customer_name,
            challan_ids=[],
            items=[],
            net_amount=Decimal(net_amount),
            status=BillStatus(status).value,
        ))
    return _make


@pytest.fixture
def make_invoice(store):
    """Insert an invoice directly with a given grand total."""
    async def _make(
        number,
        grand_total,
        customer=None,
        customer_name=None,
        status=InvoiceStatus.PENDING,
        invoice_date=date(2025, 6, 1),
    ):
        return await store.insert(Invoice(
            invoice_number=number,
            invoice_date=invoice_date,
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else customer_name,
            items=[],
            grand_total=Decimal(grand_total),
            status=InvoiceStatus(status).value,
        ))
    return _make
