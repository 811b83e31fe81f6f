"""
Trade Service — the single public interface for document and stock operations.

Usage:
    from trademan import trade

    result = trade.create_delivery_note(
        note_type='local', client=client, user=request.user,
        items=[{'product_id': p.pk, 'quantity': 30, 'unit_price': '1200.00'}],
    )
    if not result.ok:
        messages.error(request, result.error['message'])

Every mutation returns a Result. On success result.topics names the data
sets that changed; they are also published (after commit) through
TRADEMAN['TOPIC_PUBLISHER']. On failure nothing was written and nothing
is published.
"""

import logging

from django.db import DatabaseError

from trademan import topics as T
from trademan.conf import trademan_settings
from trademan.exceptions import PermissionDenied, TradeError
from trademan.results import Result
from trademan.services.delivery_notes import DeliveryNoteLifecycle
from trademan.services.invoices import InvoiceGenerator, InvoiceOutcome
from trademan.services.ledger import StockLedger
from trademan.services.queries import StockQueries

logger = logging.getLogger('trademan')

STOCK_TOPICS = frozenset({T.STOCK, T.STOCK_MOVEMENTS})
NOTE_TOPICS = frozenset({T.DELIVERY_NOTES, T.STOCK, T.STOCK_MOVEMENTS})
STATUS_TOPICS = NOTE_TOPICS | {T.DELIVERY_NOTE_CANCELLATIONS}
DELETE_TOPICS = STATUS_TOPICS | {T.INVOICES}
INVOICE_TOPICS = frozenset({T.INVOICES, T.DELIVERY_NOTES})


class Trade:
    """
    Single interface for document and stock operations.

    IMPORTANT: Permission checks happen before any storage access, and each
    operation runs in one transaction (see the services for locking).
    """

    # ══════════════════════════════════════════════════════════════
    # PLUMBING
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _authorize(cls, user, permission: str) -> None:
        if not trademan_settings.ENFORCE_PERMISSIONS:
            return
        codename = f"trademan.{permission}"
        if user is None or not user.has_perm(codename):
            raise PermissionDenied(permission=codename)

    @classmethod
    def _execute(cls, event: str, permission: str, actor, topics, func, *args, **kwargs) -> Result:
        """
        Run func under the permission check and map its outcome to a Result.

        actor is only used for the permission check; func receives its own
        user= keyword from the caller.
        """
        try:
            cls._authorize(actor, permission)
            value = func(*args, **kwargs)
        except TradeError as e:
            logger.info(event + ".rejected", extra={"code": e.code, "data": e.as_dict()['data']})
            return Result.failure(e)
        except DatabaseError:
            logger.exception(event + ".storage_error")
            return Result.failure(TradeError('STORAGE_ERROR'))

        if isinstance(value, InvoiceOutcome):
            if value.already_exists:
                return Result.success(value.invoice, already_exists=True)
            value = value.invoice

        T.publish(topics)
        return Result.success(value, topics=topics)

    # ══════════════════════════════════════════════════════════════
    # STOCK
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def add_stock_entry(cls, entries, user=None) -> Result:
        """
        Record incoming stock.

        entries: iterable of dicts/StockEntry with product_id, quantity,
        unit_cost and optionally movement_date, notes.
        """
        return cls._execute(
            "trade.add_stock_entry", 'add_stockmovement', user, STOCK_TOPICS,
            StockLedger.receive_entries, entries, user=user,
        )

    @classmethod
    def adjust_stock(cls, product, new_quantity, reason, user=None) -> Result:
        """Set a product's quantity to a counted value."""
        return cls._execute(
            "trade.adjust_stock", 'add_stockmovement', user, STOCK_TOPICS,
            StockLedger.adjust, product, new_quantity, reason, user=user,
        )

    @classmethod
    def edit_stock_movement(cls, movement_id, user=None, **changes) -> Result:
        """Edit an adjustment movement (quantity, unit_cost, movement_date, notes)."""
        return cls._execute(
            "trade.edit_stock_movement", 'change_stockmovement', user, STOCK_TOPICS,
            StockLedger.edit_adjustment, movement_id, user=user, **changes,
        )

    @classmethod
    def delete_stock_movement(cls, movement_id, user=None) -> Result:
        return cls._execute(
            "trade.delete_stock_movement", 'delete_stockmovement', user, STOCK_TOPICS,
            StockLedger.delete_adjustment, movement_id, user=user,
        )

    # Read side, no Result wrapping
    quantity = StockQueries.quantity
    snapshot = StockQueries.snapshot
    movements = StockQueries.movements
    stock_value = StockQueries.stock_value
    low_stock = StockQueries.low_stock

    # ══════════════════════════════════════════════════════════════
    # DELIVERY NOTES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_delivery_note(cls, note_type, client, items, user=None, **header) -> Result:
        """
        Create a delivery note and take its items out of stock.

        header: note_date, number, currency, destination_country,
        delivery_location, notes.
        """
        return cls._execute(
            "trade.create_delivery_note", 'add_deliverynote', user, NOTE_TOPICS,
            DeliveryNoteLifecycle.create, note_type, client, items, user=user, **header,
        )

    @classmethod
    def update_delivery_note(cls, note, items, user=None, **header) -> Result:
        return cls._execute(
            "trade.update_delivery_note", 'change_deliverynote', user, NOTE_TOPICS,
            DeliveryNoteLifecycle.edit, note, items, user=user, **header,
        )

    @classmethod
    def set_delivery_note_status(cls, note, status, user=None, reason='') -> Result:
        """
        Cancel or reactivate a note.

        Requesting the status the note already has succeeds with no topics.
        """
        result = cls._execute(
            "trade.set_delivery_note_status", 'change_deliverynote', user, frozenset(),
            DeliveryNoteLifecycle.set_status, note, status, user=user, reason=reason,
        )
        if not result.ok:
            return result

        note, changed = result.data
        if not changed:
            return Result.success(note)
        T.publish(STATUS_TOPICS)
        return Result.success(note, topics=STATUS_TOPICS)

    @classmethod
    def cancel_delivery_note(cls, note, user=None, reason='') -> Result:
        return cls.set_delivery_note_status(note, 'cancelled', user=user, reason=reason)

    @classmethod
    def reactivate_delivery_note(cls, note, user=None) -> Result:
        return cls.set_delivery_note_status(note, 'active', user=user)

    @classmethod
    def delete_delivery_note(cls, note, user=None) -> Result:
        """Delete a note with no items, along with its invoices and cancellations."""
        return cls._execute(
            "trade.delete_delivery_note", 'delete_deliverynote', user, DELETE_TOPICS,
            DeliveryNoteLifecycle.delete, note, user=user,
        )

    # ══════════════════════════════════════════════════════════════
    # INVOICES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_invoice_from_delivery_note(cls, note, invoice_type, number=None, user=None) -> Result:
        """
        Derive an invoice from a delivery note.

        A second call for the same (note, invoice_type) succeeds with
        already_exists=True, the existing invoice as data and no topics.
        """
        return cls._execute(
            "trade.create_invoice", 'add_invoice', user, INVOICE_TOPICS,
            InvoiceGenerator.create_from_delivery_note, note, invoice_type,
            number=number, user=user,
        )

    invoices_for = InvoiceGenerator.invoices_for
