# Services module
from billbook.services.record_store import RecordStore
from billbook.services.unit_of_work import UnitOfWork
from billbook.services.document_sequence_service import DocumentFamily, DocumentSequenceService
from billbook.services.customer_service import CustomerService, customer_match
from billbook.services.item_service import ItemService
from billbook.services.balance_service import BalanceCarryForwardService
from billbook.services.challan_service import ChallanService

# Billing
from billbook.services.bill_conversion_service import BillConversionService
from billbook.services.invoice_service import InvoiceService
from billbook.services.ledger_service import LedgerService

__all__ = [
    "RecordStore",
    "UnitOfWork",
    "DocumentFamily",
    "DocumentSequenceService",
    "CustomerService",
    "customer_match",
    "ItemService",
    "BalanceCarryForwardService",
    "ChallanService",
    # Billing
    "BillConversionService",
    "InvoiceService",
    "LedgerService",
]
