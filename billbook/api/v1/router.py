from fastapi import APIRouter

from billbook.api.v1.endpoints import (
    # Catalog
    customers,
    items,
    # Documents
    challans,
    bills,
    invoices,
    sequences,
)


api_router = APIRouter(prefix="/api/v1")

api_router.include_router(customers.router, prefix="/customers")
api_router.include_router(items.router, prefix="/items")
api_router.include_router(challans.router, prefix="/challans")
api_router.include_router(bills.router, prefix="/bills")
api_router.include_router(invoices.router, prefix="/invoices")
api_router.include_router(sequences.router, prefix="/sequences")
