"""
Delivery note lifecycle — create, edit, cancel, reactivate.

Each transition runs in one transaction and keeps the ledger in step with
the note: while ACTIVE the note's reference holds one "out" movement per
submitted item, while CANCELLED it holds none. Lines frozen by a
cancellation document are never deleted by an edit.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import IntegrityError, transaction

from trademan.adapters import get_partner_directory, get_product_catalog
from trademan.amounts import (
    HUNDRED,
    ZERO,
    discounted,
    money,
    quantity as to_quantity,
    to_decimal,
    to_id,
)
from trademan.conf import trademan_settings
from trademan.dates import local_date
from trademan.exceptions import Conflict, NotFound, ValidationError
from trademan.models.cancellation import DeliveryNoteCancellation, DeliveryNoteCancellationItem
from trademan.models.delivery_note import DeliveryNote, DeliveryNoteItem
from trademan.models.enums import DELIVERY_NOTE_REFERENCE, DocumentStatus, NoteType, sale_source_for
from trademan.models.invoice import Invoice
from trademan.protocols.numbering import DocumentKind
from trademan.services.ledger import StockLedger, lines_from
from trademan.services.numbering import allocate_number, ensure_number_free, number_taken

logger = logging.getLogger('trademan')

NOTE_KINDS = {
    NoteType.LOCAL: DocumentKind.DELIVERY_NOTE_LOCAL,
    NoteType.EXPORT: DocumentKind.DELIVERY_NOTE_EXPORT,
}


@dataclass(frozen=True)
class ItemInput:
    """
    A delivery-note line as submitted by the caller.

    id is the existing DeliveryNoteItem pk when editing; None for a new line.
    """

    product_id: int
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal = ZERO
    id: int | None = None

    @classmethod
    def coerce(cls, value) -> 'ItemInput':
        """
        Build from an ItemInput or a mapping.

        Raises:
            ValidationError('REQUIRED_FIELD'): product_id missing
            ValidationError('VALIDATION_ERROR'): unreadable number or id
        """
        if isinstance(value, cls):
            return value
        try:
            data = dict(value)
        except (TypeError, ValueError):
            raise ValidationError('VALIDATION_ERROR', field='items', value=repr(value)) from None
        if data.get('product_id') is None:
            data['product_id'] = data.get('product')
        line_id = data.get('id')
        return cls(
            product_id=to_id(data['product_id'], 'product_id'),
            quantity=to_quantity(data.get('quantity'), 'quantity'),
            unit_price=money(data.get('unit_price'), 'unit_price'),
            discount_percent=to_decimal(data.get('discount_percent'), 'discount_percent'),
            id=None if line_id in (None, '') else to_id(line_id, 'id'),
        )

    @property
    def line_total(self) -> Decimal:
        return money(discounted(self.quantity, self.unit_price, self.discount_percent))


def _movement_notes(note) -> str:
    return f"Sortie pour bon de livraison {note.number}"


class DeliveryNoteLifecycle:
    """State transitions of delivery notes."""

    # ══════════════════════════════════════════════════════════════
    # VALIDATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _validate_items(cls, items) -> list[ItemInput]:
        items = [ItemInput.coerce(i) for i in items or []]
        if not items:
            raise ValidationError('EMPTY_ITEMS')

        for item in items:
            if item.quantity <= 0:
                raise ValidationError('INVALID_QUANTITY', product=item.product_id, requested=item.quantity)
            if item.unit_price < 0:
                raise ValidationError('VALIDATION_ERROR', field='unit_price', product=item.product_id)
            if not ZERO <= item.discount_percent <= HUNDRED:
                raise ValidationError('VALIDATION_ERROR', field='discount_percent', product=item.product_id)

        known = get_product_catalog().get_products([i.product_id for i in items])
        for item in items:
            if item.product_id not in known:
                raise NotFound('PRODUCT_NOT_FOUND', product=item.product_id)
        return items

    @classmethod
    def _validate_client(cls, client):
        client_id = to_id(client, 'client')
        if not get_partner_directory().client_exists(client_id):
            raise NotFound('CLIENT_NOT_FOUND', client=client_id)
        return client_id

    @classmethod
    def _validate_type(cls, note_type):
        if note_type not in NoteType.values:
            raise ValidationError('INVALID_TYPE', note_type=note_type)
        return note_type

    @classmethod
    def _lock(cls, note) -> DeliveryNote:
        """Reload and lock a note. Must be called inside transaction.atomic()."""
        note_id = to_id(note, 'delivery_note')
        locked = DeliveryNote.objects.select_for_update().filter(pk=note_id).first()
        if locked is None:
            raise NotFound('DELIVERY_NOTE_NOT_FOUND', delivery_note=note_id)
        return locked

    @classmethod
    def _sync_ledger(cls, note, user=None, items=None):
        """Reverse and reapply the note's movements (from items, default: its current lines)."""
        return StockLedger.reconcile(
            DELIVERY_NOTE_REFERENCE,
            note.pk,
            lines_from(note.items.all() if items is None else items),
            movement_date=note.note_date,
            source=sale_source_for(note.note_type),
            user=user,
            notes=_movement_notes(note),
        )

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create(cls, note_type, client, items, note_date=None, number=None,
               currency=None, destination_country='', delivery_location='',
               notes='', user=None) -> DeliveryNote:
        """
        Create an ACTIVE note and take its items out of stock.

        All-or-nothing: if any item is short, nothing is persisted.

        Raises:
            ValidationError: type, client, items
            NotFound('CLIENT_NOT_FOUND' | 'PRODUCT_NOT_FOUND')
            Conflict('DUPLICATE_NUMBER'): If number is given and taken
            InsufficientStock: If an item exceeds available stock
        """
        cls._validate_type(note_type)
        client_id = cls._validate_client(client)
        items = cls._validate_items(items)
        note_date = local_date(note_date, 'note_date')

        if number:
            ensure_number_free(DeliveryNote, number)
        else:
            number = allocate_number(DeliveryNote, NOTE_KINDS[note_type])

        try:
            note = cls._insert(
                items,
                number=number,
                note_type=note_type,
                client_id=client_id,
                note_date=note_date,
                currency=currency,
                destination_country=destination_country,
                delivery_location=delivery_location,
                notes=notes,
                user=user,
            )
        except IntegrityError:
            # another request took the number between the check and the insert
            if number_taken(DeliveryNote, number):
                raise Conflict('DUPLICATE_NUMBER', number=number) from None
            raise

        logger.info(
            "delivery_note.create",
            extra={
                "delivery_note": note.pk,
                "number": note.number,
                "note_type": note.note_type,
                "items": len(items),
            },
        )
        return note

    @classmethod
    def _insert(cls, items, number, note_type, client_id, note_date, currency,
                destination_country, delivery_location, notes, user) -> DeliveryNote:
        with transaction.atomic():
            note = DeliveryNote.objects.create(
                number=number,
                note_type=note_type,
                client_id=client_id,
                note_date=note_date,
                status=DocumentStatus.ACTIVE,
                currency=currency or trademan_settings.DEFAULT_CURRENCY,
                destination_country=destination_country or '',
                delivery_location=delivery_location or '',
                notes=notes or '',
                user=user,
            )
            for item in items:
                DeliveryNoteItem.objects.create(
                    delivery_note=note,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount_percent=item.discount_percent,
                    line_total=item.line_total,
                )
            cls._sync_ledger(note, user=user)
        return note

    @classmethod
    def edit(cls, note, items, user=None, **header) -> DeliveryNote:
        """
        Replace the items (and optionally header fields) of an ACTIVE note.

        Items carrying the id of an existing line update it; items without
        one are inserted; existing lines left out are deleted unless a
        cancellation froze them, in which case they stay.

        Header keys: number, note_type, client, note_date, currency,
        destination_country, delivery_location, notes.

        Raises:
            ValidationError('EMPTY_ITEMS' | 'INVALID_STATUS' | ...)
            NotFound
            InsufficientStock: The whole edit is rolled back
        """
        items = cls._validate_items(items)
        if header.get('note_type') is not None:
            cls._validate_type(header['note_type'])
        if header.get('client') is not None:
            header['client_id'] = cls._validate_client(header.pop('client'))
        if header.get('note_date') is not None:
            header['note_date'] = local_date(header['note_date'], 'note_date')

        with transaction.atomic():
            note = cls._lock(note)
            if not note.is_active:
                raise ValidationError('INVALID_STATUS', delivery_note=note.pk, status=note.status)

            existing = {item.pk: item for item in note.items.all()}
            protected = set(
                DeliveryNoteCancellationItem.objects
                .filter(delivery_note_item__delivery_note=note)
                .values_list('delivery_note_item_id', flat=True)
            )

            kept = set()
            for item in items:
                line = existing.get(item.id)
                if line is None:
                    DeliveryNoteItem.objects.create(
                        delivery_note=note,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        discount_percent=item.discount_percent,
                        line_total=item.line_total,
                    )
                    continue
                kept.add(line.pk)
                line.product_id = item.product_id
                line.quantity = item.quantity
                line.unit_price = item.unit_price
                line.discount_percent = item.discount_percent
                line.line_total = item.line_total
                line.save()

            dropped = [pk for pk in existing if pk not in kept and pk not in protected]
            skipped = [pk for pk in existing if pk not in kept and pk in protected]
            if dropped:
                DeliveryNoteItem.objects.filter(pk__in=dropped).delete()

            number = header.get('number')
            if number and number != note.number:
                note.number = ensure_number_free(DeliveryNote, number, exclude_pk=note.pk)
            if header.get('note_type') is not None:
                note.note_type = header['note_type']
            if header.get('client_id') is not None:
                note.client_id = header['client_id']
            if header.get('note_date') is not None:
                note.note_date = header['note_date']
            for field in ('currency', 'destination_country', 'delivery_location', 'notes'):
                if header.get(field) is not None:
                    setattr(note, field, header[field])
            try:
                with transaction.atomic():
                    note.save()
            except IntegrityError:
                if number_taken(DeliveryNote, note.number, exclude_pk=note.pk):
                    raise Conflict('DUPLICATE_NUMBER', number=note.number) from None
                raise

            # lines kept only because a cancellation froze them are not taken out again
            cls._sync_ledger(note, user=user, items=items)

        logger.info(
            "delivery_note.edit",
            extra={
                "delivery_note": note.pk,
                "items": len(items),
                "deleted": dropped,
                "protected": skipped,
            },
        )
        return note

    @classmethod
    def record_cancellation(cls, note, user=None, reason='', items=None,
                            cancellation_date=None) -> DeliveryNoteCancellation:
        """
        Create or extend the note's cancellation document.

        Lines not yet frozen are copied (quantity, price, discount, total).
        Idempotent: a second call adds nothing and returns the same record.

        Args:
            items: DeliveryNoteItem pks to freeze (None = every line)
            cancellation_date: Defaults to the note date
        """
        with transaction.atomic():
            cancellation = note.cancellations.order_by('pk').first()
            if cancellation is None:
                number = allocate_number(
                    DeliveryNoteCancellation, DocumentKind.DELIVERY_NOTE_CANCELLATION,
                )
                try:
                    with transaction.atomic():
                        cancellation = DeliveryNoteCancellation.objects.create(
                            number=number,
                            delivery_note=note,
                            cancellation_date=local_date(
                                cancellation_date or note.note_date, 'cancellation_date',
                            ),
                            reason=reason or '',
                            user=user,
                        )
                except IntegrityError:
                    if number_taken(DeliveryNoteCancellation, number):
                        raise Conflict('DUPLICATE_NUMBER', number=number) from None
                    raise

            frozen = set(cancellation.items.values_list('delivery_note_item_id', flat=True))
            lines = note.items.all()
            if items is not None:
                lines = lines.filter(pk__in=items)

            added = 0
            for line in lines:
                if line.pk in frozen:
                    continue
                DeliveryNoteCancellationItem.objects.create(
                    cancellation=cancellation,
                    delivery_note_item=line,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount_percent=line.discount_percent,
                    line_total=line.line_total,
                )
                added += 1

        logger.info(
            "delivery_note.record_cancellation",
            extra={
                "delivery_note": note.pk,
                "cancellation": cancellation.number,
                "items_added": added,
            },
        )
        return cancellation

    @classmethod
    def cancel(cls, note, user=None, reason='') -> DeliveryNote:
        """
        ACTIVE → CANCELLED.

        Returns stock, records the cancellation document. A note that is
        already cancelled is returned unchanged.
        """
        with transaction.atomic():
            note = cls._lock(note)
            if not note.is_active:
                return note

            reversed_count = StockLedger.reverse_by_reference(
                DELIVERY_NOTE_REFERENCE, note.pk, movement_date=note.note_date,
            )
            cls.record_cancellation(note, user=user, reason=reason)
            note.status = DocumentStatus.CANCELLED
            note.save(update_fields=['status', 'updated_at'])

        logger.info(
            "delivery_note.cancel",
            extra={"delivery_note": note.pk, "movements_reversed": reversed_count},
        )
        return note

    @classmethod
    def reactivate(cls, note, user=None) -> DeliveryNote:
        """
        CANCELLED → ACTIVE.

        Takes the note's current items out of stock again and removes its
        cancellation document. A note that is already active is returned
        unchanged.

        Raises:
            InsufficientStock: If the stock was consumed meanwhile
        """
        with transaction.atomic():
            note = cls._lock(note)
            if note.is_active:
                return note

            cls._sync_ledger(note, user=user)
            note.cancellations.all().delete()
            note.status = DocumentStatus.ACTIVE
            note.save(update_fields=['status', 'updated_at'])

        logger.info("delivery_note.reactivate", extra={"delivery_note": note.pk})
        return note

    @classmethod
    def set_status(cls, note, status, user=None, reason='') -> tuple[DeliveryNote, bool]:
        """
        Move a note to status.

        Returns:
            (note, changed) — changed is False when the note already had it
        """
        if status not in DocumentStatus.values:
            raise ValidationError('INVALID_STATUS', status=status)

        with transaction.atomic():
            current = cls._lock(note)
            if current.status == status:
                return current, False
            if status == DocumentStatus.CANCELLED:
                return cls.cancel(current, user=user, reason=reason), True
            return cls.reactivate(current, user=user), True

    @classmethod
    def delete(cls, note, user=None) -> None:
        """
        Delete a note that has no items left.

        Linked invoices and cancellation documents go with it.

        Raises:
            ValidationError('NOT_EMPTY'): If the note still has items
        """
        with transaction.atomic():
            note = cls._lock(note)
            if note.items.exists():
                raise ValidationError('NOT_EMPTY', delivery_note=note.pk)

            StockLedger.reverse_by_reference(DELIVERY_NOTE_REFERENCE, note.pk)
            invoices = Invoice.objects.filter(delivery_note=note)
            invoice_count = invoices.count()
            invoices.delete()
            note.cancellations.all().delete()
            note_id, number = note.pk, note.number
            note.delete()

        logger.info(
            "delivery_note.delete",
            extra={
                "delivery_note": note_id,
                "number": number,
                "invoices_deleted": invoice_count,
                "user": getattr(user, 'pk', None),
            },
        )
