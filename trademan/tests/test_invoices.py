"""
Tests for invoice derivation.
"""

from datetime import date
from decimal import Decimal

import pytest

from trademan.adapters import reset_adapters
from trademan.exceptions import Conflict, EmptyDocument, NotFound, ValidationError
from trademan.models import DeliveryNote, Invoice, InvoiceItem, InvoiceType
from trademan.services.delivery_notes import DeliveryNoteLifecycle
from trademan.services.invoices import InvoiceGenerator, due_date_for, price_line


pytestmark = pytest.mark.django_db


class EmptyCatalog:
    """A catalog that knows no product."""

    def get_products(self, product_ids):
        return {}

    def get_tax_rate(self, product_id):
        return Decimal('0')


@pytest.fixture
def note(stocked, client_partner, product_a, product_b, note_date):
    """A: 2 × 100.00 at 10% off (VAT 19%), B: 3 × 50.00 (no VAT)."""
    return DeliveryNoteLifecycle.create(
        'export', client_partner,
        [
            {'product_id': product_a.pk, 'quantity': 2, 'unit_price': 100, 'discount_percent': 10},
            {'product_id': product_b.pk, 'quantity': 3, 'unit_price': 50},
        ],
        note_date=note_date,
        currency='EUR',
        destination_country='France',
        delivery_location='Marseille',
    )


class TestPriceLine:
    """Tests for the line formula."""

    def test_discount_and_tax(self):
        """2 × 100 at 10% off = 180.00, 19% VAT = 34.20."""
        line = price_line(1, Decimal('2'), Decimal('100'), Decimal('10'), Decimal('19'))

        assert line.line_subtotal == Decimal('180.00')
        assert line.line_tax == Decimal('34.20')
        assert line.line_total == Decimal('214.20')

    def test_zero_tax(self):
        """No VAT, total equals subtotal."""
        line = price_line(1, Decimal('3'), Decimal('50'), Decimal('0'), Decimal('0'))
        assert line.line_tax == Decimal('0.00')
        assert line.line_total == Decimal('150.00')


class TestDueDate:
    """Tests for payment terms."""

    def test_export_sale_has_terms(self):
        """sale_export: +30 days."""
        assert due_date_for('sale_export', date(2025, 3, 10)) == date(2025, 4, 9)

    def test_delivery_note_invoice_has_none(self):
        """delivery_note_invoice: no due date."""
        assert due_date_for('delivery_note_invoice', date(2025, 3, 10)) is None

    def test_terms_follow_settings(self, settings):
        """PAYMENT_TERMS_DAYS is read from settings."""
        settings.TRADEMAN = {'PAYMENT_TERMS_DAYS': 60}
        assert due_date_for('sale_invoice', date(2025, 1, 1)) == date(2025, 3, 2)


class TestCreateFromDeliveryNote:
    """Tests for InvoiceGenerator.create_from_delivery_note()."""

    def test_creates_invoice_with_totals(self, note, product_a, note_date):
        """Header sums the lines and copies the note's header."""
        outcome = InvoiceGenerator.create_from_delivery_note(note, InvoiceType.SALE_EXPORT)
        invoice = outcome.invoice

        assert outcome.already_exists is False
        assert invoice.number.startswith('FAC-EXP-')
        assert invoice.subtotal == Decimal('330.00')
        assert invoice.tax_amount == Decimal('34.20')
        assert invoice.total_amount == Decimal('364.20')
        assert invoice.invoice_date == note_date
        assert invoice.due_date == date(2025, 4, 9)
        assert invoice.currency == 'EUR'
        assert invoice.destination_country == 'France'
        assert invoice.client_id == note.client_id

        line_a = invoice.items.get(product=product_a)
        assert line_a.tax_rate == Decimal('19.00')
        assert line_a.line_total == Decimal('214.20')

    def test_idempotent(self, note):
        """Second call returns the same invoice and writes nothing."""
        first = InvoiceGenerator.create_from_delivery_note(note, InvoiceType.DELIVERY_NOTE_INVOICE)
        second = InvoiceGenerator.create_from_delivery_note(note, InvoiceType.DELIVERY_NOTE_INVOICE)

        assert second.already_exists is True
        assert second.invoice.pk == first.invoice.pk
        assert Invoice.objects.count() == 1
        assert InvoiceItem.objects.count() == 2

    def test_one_invoice_per_type(self, note):
        """Different types produce different invoices."""
        a = InvoiceGenerator.create_from_delivery_note(note, InvoiceType.DELIVERY_NOTE_INVOICE)
        b = InvoiceGenerator.create_from_delivery_note(note, InvoiceType.SALE_INVOICE)

        assert a.invoice.pk != b.invoice.pk
        assert a.invoice.due_date is None
        assert b.invoice.due_date is not None
        assert list(InvoiceGenerator.invoices_for(note)) == [a.invoice, b.invoice]

    def test_explicit_number(self, note):
        """Caller-provided numbers are used as given."""
        outcome = InvoiceGenerator.create_from_delivery_note(note, 'sale_invoice', number='F-0001')
        assert outcome.invoice.number == 'F-0001'

    def test_duplicate_number(self, note):
        """A taken number raises DUPLICATE_NUMBER."""
        InvoiceGenerator.create_from_delivery_note(note, 'sale_invoice', number='F-0001')

        with pytest.raises(Conflict) as exc:
            InvoiceGenerator.create_from_delivery_note(note, 'proforma', number='F-0001')
        assert exc.value.code == 'DUPLICATE_NUMBER'

    def test_missing_note(self, db):
        """Unknown note raises DELIVERY_NOTE_NOT_FOUND."""
        with pytest.raises(NotFound) as exc:
            InvoiceGenerator.create_from_delivery_note(424242, 'sale_invoice')
        assert exc.value.code == 'DELIVERY_NOTE_NOT_FOUND'

    def test_empty_note(self, client_partner, note_date):
        """A note without items cannot be invoiced."""
        empty = DeliveryNote.objects.create(
            number='BL-2025-000777', note_type='local', client=client_partner, note_date=note_date,
        )

        with pytest.raises(EmptyDocument):
            InvoiceGenerator.create_from_delivery_note(empty, 'sale_invoice')

    def test_invalid_type(self, note):
        """Unknown invoice type raises INVALID_TYPE."""
        with pytest.raises(ValidationError) as exc:
            InvoiceGenerator.create_from_delivery_note(note, 'credit_note')
        assert exc.value.code == 'INVALID_TYPE'

    def test_product_missing_from_catalog(self, settings, note):
        """An item the catalog does not know is refused, not taxed at 0%."""
        settings.TRADEMAN = {'PRODUCT_CATALOG': 'trademan.tests.test_invoices.EmptyCatalog'}
        reset_adapters()

        with pytest.raises(NotFound) as exc:
            InvoiceGenerator.create_from_delivery_note(note, 'sale_invoice')

        assert exc.value.code == 'PRODUCT_NOT_FOUND'
        assert exc.value.data['delivery_note'] == note.pk
        assert not Invoice.objects.exists()
