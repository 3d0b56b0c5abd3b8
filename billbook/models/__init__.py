# Models module
from billbook.models.customer import Customer
from billbook.models.item import Item
from billbook.models.challan import DeliveryChallan
from billbook.models.billing import Bill, BillStatus, Invoice, InvoiceStatus

__all__ = [
    "Customer",
    "Item",
    "DeliveryChallan",
    "Bill",
    "BillStatus",
    "Invoice",
    "InvoiceStatus",
]
