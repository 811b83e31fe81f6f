"""
DeliveryNote model — outgoing goods document and its lines.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from trademan.models.enums import DocumentStatus, NoteType


class DeliveryNote(models.Model):
    """
    Delivery note (bon de livraison).

    LIFECYCLE:

        create ──► ACTIVE ──cancel()──► CANCELLED
                     ▲                      │
                     └────reactivate()──────┘

    While ACTIVE, the ledger holds exactly one OUT movement per item,
    referenced as ('delivery_note', pk). While CANCELLED it holds none.
    Status only changes through services.delivery_notes.
    """

    number = models.CharField(max_length=50, unique=True, verbose_name=_('Numéro'))
    note_type = models.CharField(
        max_length=10,
        choices=NoteType.choices,
        verbose_name=_('Type'),
    )
    client = models.ForeignKey(
        'trademan.Partner',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='delivery_notes',
        verbose_name=_('Client'),
    )
    note_date = models.DateField(verbose_name=_('Date'))
    status = models.CharField(
        max_length=20,
        choices=DocumentStatus.choices,
        default=DocumentStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Statut'),
    )
    currency = models.CharField(max_length=3, default='DZD', verbose_name=_('Devise'))
    destination_country = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Pays de destination'),
    )
    delivery_location = models.CharField(
        max_length=200,
        blank=True,
        default='',
        verbose_name=_('Lieu de livraison'),
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

    class Meta:
        verbose_name = _('Bon de livraison')
        verbose_name_plural = _('Bons de livraison')
        ordering = ['-note_date', '-created_at']

    @property
    def is_active(self) -> bool:
        return self.status == DocumentStatus.ACTIVE

    @property
    def total(self) -> Decimal:
        return sum((item.line_total for item in self.items.all()), Decimal('0'))

    def __str__(self) -> str:
        return self.number


class DeliveryNoteItem(models.Model):
    """One product line of a delivery note."""

    delivery_note = models.ForeignKey(
        DeliveryNote,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('Bon de livraison'),
    )
    product = models.ForeignKey(
        'trademan.Product',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Produit'),
    )
    quantity = models.DecimalField(max_digits=15, decimal_places=3, verbose_name=_('Quantité'))
    unit_price = models.DecimalField(max_digits=15, decimal_places=2, verbose_name=_('Prix unitaire'))
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Remise (%)'),
    )
    line_total = models.DecimalField(max_digits=15, decimal_places=2, verbose_name=_('Total ligne'))

    class Meta:
        verbose_name = _('Ligne de bon de livraison')
        verbose_name_plural = _('Lignes de bon de livraison')
        ordering = ['pk']

    def __str__(self) -> str:
        return f"{self.product_id} × {self.quantity}"
