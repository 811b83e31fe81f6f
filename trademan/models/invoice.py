"""
Invoice model — invoice header and lines derived from a delivery note.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from trademan.models.enums import DocumentStatus, InvoiceType, PaymentStatus


class InvoiceQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=DocumentStatus.ACTIVE)


class Invoice(models.Model):
    """
    Invoice.

    At most one ACTIVE invoice exists per (delivery_note, invoice_type),
    enforced by a conditional unique constraint.
    """

    number = models.CharField(max_length=50, unique=True, verbose_name=_('Numéro'))
    invoice_type = models.CharField(
        max_length=30,
        choices=InvoiceType.choices,
        verbose_name=_('Type'),
    )
    client = models.ForeignKey(
        'trademan.Partner',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoices',
        verbose_name=_('Client'),
    )
    delivery_note = models.ForeignKey(
        'trademan.DeliveryNote',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='invoices',
        verbose_name=_('Bon de livraison'),
    )
    invoice_date = models.DateField(db_index=True, verbose_name=_('Date'))
    due_date = models.DateField(null=True, blank=True, verbose_name=_("Date d'échéance"))
    currency = models.CharField(max_length=3, default='DZD', verbose_name=_('Devise'))
    destination_country = models.CharField(max_length=100, blank=True, default='')
    delivery_location = models.CharField(max_length=200, blank=True, default='')

    subtotal = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0'), verbose_name=_('Total HT'))
    tax_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0'), verbose_name=_('TVA'))
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0'), verbose_name=_('Total TTC'))

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
        verbose_name=_('Paiement'),
    )
    status = models.CharField(
        max_length=20,
        choices=DocumentStatus.choices,
        default=DocumentStatus.ACTIVE,
        verbose_name=_('Statut'),
    )
    notes = models.TextField(blank=True, default='')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Créé par'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InvoiceQuerySet.as_manager()

    class Meta:
        verbose_name = _('Facture')
        verbose_name_plural = _('Factures')
        ordering = ['-invoice_date', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['delivery_note', 'invoice_type'],
                condition=Q(status='active'),
                name='unique_active_invoice_per_note_type',
            )
        ]
        indexes = [
            models.Index(fields=['payment_status', 'status'], name='idx_invoice_status'),
        ]

    def __str__(self) -> str:
        return self.number


class InvoiceItem(models.Model):
    """
    Invoice line.

    tax_rate is stored as applied, so the line never has to be
    back-derived from line_total - line_subtotal.
    """

    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'trademan.Product',
        on_delete=models.PROTECT,
        related_name='+',
    )
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit_price = models.DecimalField(max_digits=15, decimal_places=2)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'))
    line_subtotal = models.DecimalField(max_digits=15, decimal_places=2)
    line_tax = models.DecimalField(max_digits=15, decimal_places=2)
    line_total = models.DecimalField(max_digits=15, decimal_places=2)

    class Meta:
        verbose_name = _('Ligne de facture')
        verbose_name_plural = _('Lignes de facture')
        ordering = ['pk']

    def __str__(self) -> str:
        return f"{self.product_id} × {self.quantity}"
