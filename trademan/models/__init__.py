"""
Trademan Models.

Core models for documents and stock:
- Product, Partner: catalog records consumed through protocols
- StockSnapshot: current quantity and average cost per product
- StockMovement: ledger of quantity changes
- DeliveryNote / DeliveryNoteItem: outgoing goods documents
- DeliveryNoteCancellation / DeliveryNoteCancellationItem: cancellation records
- Invoice / InvoiceItem: invoices derived from delivery notes
"""

from trademan.models.cancellation import DeliveryNoteCancellation, DeliveryNoteCancellationItem
from trademan.models.catalog import Partner, Product
from trademan.models.delivery_note import DeliveryNote, DeliveryNoteItem
from trademan.models.enums import (
    DELIVERY_NOTE_REFERENCE,
    DocumentStatus,
    InvoiceType,
    MovementSource,
    MovementType,
    NoteType,
    PartnerKind,
    PaymentStatus,
)
from trademan.models.invoice import Invoice, InvoiceItem
from trademan.models.movement import StockMovement
from trademan.models.snapshot import StockSnapshot

__all__ = [
    'DELIVERY_NOTE_REFERENCE',
    'MovementType',
    'MovementSource',
    'NoteType',
    'DocumentStatus',
    'InvoiceType',
    'PaymentStatus',
    'PartnerKind',
    'Product',
    'Partner',
    'StockSnapshot',
    'StockMovement',
    'DeliveryNote',
    'DeliveryNoteItem',
    'DeliveryNoteCancellation',
    'DeliveryNoteCancellationItem',
    'Invoice',
    'InvoiceItem',
]
