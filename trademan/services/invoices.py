"""
Invoice derivation from a delivery note.

    subtotal = qty × unit_price × (1 - discount/100)
    tax      = subtotal × tax_rate / 100
    total    = subtotal + tax

Each line is rounded half-up to cents; the header is the sum of the rounded
lines, so the printed columns always add up.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import IntegrityError, transaction

from trademan.adapters import get_product_catalog
from trademan.amounts import HUNDRED, ZERO, discounted, money, to_id
from trademan.conf import trademan_settings
from trademan.dates import add_days, local_date
from trademan.exceptions import Conflict, EmptyDocument, NotFound, ValidationError
from trademan.models.delivery_note import DeliveryNote
from trademan.models.enums import InvoiceType, PaymentStatus
from trademan.models.invoice import Invoice, InvoiceItem
from trademan.protocols.numbering import DocumentKind
from trademan.services.numbering import allocate_number, ensure_number_free

logger = logging.getLogger('trademan')


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    quantity: Decimal
    unit_price: Decimal
    discount_percent: Decimal
    tax_rate: Decimal
    line_subtotal: Decimal
    line_tax: Decimal
    line_total: Decimal


def price_line(product_id, quantity, unit_price, discount_percent, tax_rate) -> PricedLine:
    subtotal = money(discounted(quantity, unit_price, discount_percent))
    tax = money(subtotal * tax_rate / HUNDRED)
    return PricedLine(
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        discount_percent=discount_percent,
        tax_rate=tax_rate,
        line_subtotal=subtotal,
        line_tax=tax,
        line_total=subtotal + tax,
    )


@dataclass(frozen=True)
class InvoiceOutcome:
    invoice: Invoice
    already_exists: bool = False


def due_date_for(invoice_type, invoice_date):
    """invoice_date + PAYMENT_TERMS_DAYS for types with payment terms, else None."""
    if invoice_type in trademan_settings.PAYMENT_TERMS_INVOICE_TYPES:
        return add_days(invoice_date, trademan_settings.PAYMENT_TERMS_DAYS)
    return None


class InvoiceGenerator:
    """Builds invoices from delivery notes."""

    @classmethod
    def existing(cls, note, invoice_type) -> Invoice | None:
        """Active invoice of invoice_type for note, if any."""
        return Invoice.objects.active().filter(
            delivery_note_id=getattr(note, 'pk', note),
            invoice_type=invoice_type,
        ).first()

    @classmethod
    def invoices_for(cls, note):
        """Active invoices derived from a note."""
        return Invoice.objects.active().filter(
            delivery_note_id=getattr(note, 'pk', note),
        ).order_by('invoice_date', 'pk')

    @classmethod
    def create_from_delivery_note(cls, note, invoice_type, number=None, user=None) -> InvoiceOutcome:
        """
        Derive an invoice from a delivery note.

        Idempotent per (note, invoice_type): when an active invoice already
        exists it is returned with already_exists=True and nothing is written.

        Args:
            note: DeliveryNote or its pk
            invoice_type: InvoiceType value
            number: Explicit invoice number (None = generated)

        Raises:
            ValidationError('INVALID_TYPE')
            NotFound('DELIVERY_NOTE_NOT_FOUND')
            NotFound('PRODUCT_NOT_FOUND'): If the catalog has no tax rate for an item
            EmptyDocument: If the note has no items
            Conflict('DUPLICATE_NUMBER'): If number is taken
            NumberExhausted: If no free number could be generated
        """
        if invoice_type not in InvoiceType.values:
            raise ValidationError('INVALID_TYPE', invoice_type=invoice_type)

        note_id = to_id(note, 'delivery_note')
        note = DeliveryNote.objects.filter(pk=note_id).first()
        if note is None:
            raise NotFound('DELIVERY_NOTE_NOT_FOUND', delivery_note=note_id)

        items = list(note.items.all())
        if not items:
            raise EmptyDocument(delivery_note=note.pk)

        found = cls.existing(note, invoice_type)
        if found is not None:
            logger.info(
                "invoice.exists",
                extra={"invoice": found.pk, "delivery_note": note.pk, "invoice_type": invoice_type},
            )
            return InvoiceOutcome(found, already_exists=True)

        if number:
            ensure_number_free(Invoice, number)
        else:
            number = allocate_number(Invoice, DocumentKind.INVOICE, invoice_type)

        products = get_product_catalog().get_products([i.product_id for i in items])
        lines = []
        for item in items:
            info = products.get(item.product_id)
            if info is None:
                # unknown tax is not zero tax
                raise NotFound('PRODUCT_NOT_FOUND', product=item.product_id, delivery_note=note.pk)
            lines.append(price_line(
                item.product_id,
                item.quantity,
                item.unit_price,
                item.discount_percent,
                info.tax_rate,
            ))

        invoice_date = local_date(note.note_date)
        try:
            with transaction.atomic():
                invoice = Invoice.objects.create(
                    number=number,
                    invoice_type=invoice_type,
                    client_id=note.client_id,
                    delivery_note=note,
                    invoice_date=invoice_date,
                    due_date=due_date_for(invoice_type, invoice_date),
                    currency=note.currency or trademan_settings.DEFAULT_CURRENCY,
                    destination_country=note.destination_country,
                    delivery_location=note.delivery_location,
                    subtotal=sum((line.line_subtotal for line in lines), ZERO),
                    tax_amount=sum((line.line_tax for line in lines), ZERO),
                    total_amount=sum((line.line_total for line in lines), ZERO),
                    payment_status=PaymentStatus.UNPAID,
                    notes=note.notes,
                    user=user,
                )
                InvoiceItem.objects.bulk_create([
                    InvoiceItem(
                        invoice=invoice,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        discount_percent=line.discount_percent,
                        tax_rate=line.tax_rate,
                        line_subtotal=line.line_subtotal,
                        line_tax=line.line_tax,
                        line_total=line.line_total,
                    )
                    for line in lines
                ])
        except IntegrityError:
            # a concurrent request won the (note, type) or number race
            found = cls.existing(note, invoice_type)
            if found is not None:
                return InvoiceOutcome(found, already_exists=True)
            raise Conflict('DUPLICATE_NUMBER', number=number)

        logger.info(
            "invoice.create",
            extra={
                "invoice": invoice.pk,
                "number": invoice.number,
                "delivery_note": note.pk,
                "invoice_type": invoice_type,
                "total": str(invoice.total_amount),
            },
        )
        return InvoiceOutcome(invoice)
