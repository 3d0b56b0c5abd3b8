"""Customer ledger rebuilt from invoices."""
import logging
import uuid
from decimal import Decimal
from typing import Iterable, List, Optional

from billbook.core.amount_words import amount_to_words
from billbook.models import Invoice, InvoiceStatus
from billbook.schemas.ledger import LedgerEntry, LedgerStatement
from billbook.services.customer_service import CustomerService, customer_match
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


def build_ledger(
    invoices: Iterable[Invoice],
    years: Optional[Iterable[int]] = None,
    months: Optional[Iterable[int]] = None,
) -> LedgerStatement:
    """
    Project invoices onto a debit/credit statement.

    Every invoice is debited on its date. A PAID invoice is also credited
    in full on the same date, since payments carry no date of their own.
    Entries are ordered by date (debit before credit for one invoice) and
    then filtered by calendar year and 0-based month (0 = January). Empty
    filters keep everything.
    """
    years = sorted(set(years or []))
    months = sorted(set(months or []))

    entries: List[LedgerEntry] = []
    for invoice in invoices:
        amount = Decimal(invoice.grand_total)
        entries.append(LedgerEntry(
            entry_date=invoice.invoice_date,
            particulars=f"Bill No: {invoice.invoice_number}",
            debit=amount,
            invoice_id=invoice.id,
        ))
        if invoice.status == InvoiceStatus.PAID.value:
            entries.append(LedgerEntry(
                entry_date=invoice.invoice_date,
                particulars=f"Payment Received - Bill {invoice.invoice_number}",
                credit=amount,
                invoice_id=invoice.id,
            ))

    entries.sort(key=lambda e: e.entry_date)

    if years:
        entries = [e for e in entries if e.entry_date.year in years]
    if months:
        entries = [e for e in entries if e.entry_date.month - 1 in months]

    total_debit = sum((e.debit for e in entries), Decimal("0"))
    total_credit = sum((e.credit for e in entries), Decimal("0"))
    final_balance = total_debit - total_credit

    return LedgerStatement(
        years=years,
        months=months,
        entries=entries,
        total_debit=total_debit,
        total_credit=total_credit,
        final_balance=final_balance,
        balance_in_words=amount_to_words(final_balance),
    )


class LedgerService:
    def __init__(self, store: RecordStore):
        self.store = store
        self.customers = CustomerService(store)

    async def get_customer_ledger(
        self,
        customer_id: uuid.UUID,
        years: Optional[List[int]] = None,
        months: Optional[List[int]] = None,
    ) -> LedgerStatement:
        customer = await self.customers.get_customer(customer_id)
        invoices = await self.store.list(
            Invoice,
            customer_match(Invoice, customer.id, customer.name),
            order_by=[Invoice.invoice_date.asc(), Invoice.created_at.asc()],
        )

        statement = build_ledger(invoices, years, months)
        statement.customer_id = customer.id
        statement.customer_name = customer.name
        logger.debug(
            f"Ledger for {customer.name}: {len(statement.entries)} entries, "
            f"balance {statement.final_balance}"
        )
        return statement
