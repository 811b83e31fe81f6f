"""
Trademan services — one class of classmethods per concern.

    from trademan.services import StockLedger, StockQueries, DeliveryNoteLifecycle, InvoiceGenerator

These raise TradeError subclasses. The public facade (trademan.trade) wraps
them into Result objects and publishes changed topics.
"""

from trademan.services.delivery_notes import DeliveryNoteLifecycle, ItemInput
from trademan.services.invoices import InvoiceGenerator, InvoiceOutcome
from trademan.services.ledger import MovementLine, StockEntry, StockLedger
from trademan.services.queries import StockQueries

__all__ = [
    'StockLedger',
    'StockQueries',
    'DeliveryNoteLifecycle',
    'InvoiceGenerator',
    'InvoiceOutcome',
    'ItemInput',
    'MovementLine',
    'StockEntry',
]
