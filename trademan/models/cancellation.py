"""
DeliveryNoteCancellation model — record of a cancelled delivery note.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class DeliveryNoteCancellation(models.Model):
    """
    Cancellation document (bon d'annulation) for a delivery note.

    At most one per note. Its items freeze the note lines as they were at
    cancellation time; a frozen line cannot be deleted from the note
    (on_delete=PROTECT on the item link).

    Reactivating the note deletes the cancellation and its items.
    """

    number = models.CharField(max_length=50, unique=True, verbose_name=_('Numéro'))
    delivery_note = models.ForeignKey(
        'trademan.DeliveryNote',
        on_delete=models.PROTECT,
        related_name='cancellations',
        verbose_name=_("Bon de livraison d'origine"),
    )
    cancellation_date = models.DateField(verbose_name=_("Date d'annulation"))
    reason = models.TextField(blank=True, default='', verbose_name=_('Motif'))

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Créé par'),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Annulation de bon de livraison')
        verbose_name_plural = _('Annulations de bons de livraison')
        ordering = ['-cancellation_date', '-created_at']

    def __str__(self) -> str:
        return self.number


class DeliveryNoteCancellationItem(models.Model):
    """Delivery-note line frozen by a cancellation."""

    cancellation = models.ForeignKey(
        DeliveryNoteCancellation,
        on_delete=models.CASCADE,
        related_name='items',
    )
    delivery_note_item = models.ForeignKey(
        'trademan.DeliveryNoteItem',
        on_delete=models.PROTECT,
        related_name='cancellation_items',
    )
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit_price = models.DecimalField(max_digits=15, decimal_places=2)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    line_total = models.DecimalField(max_digits=15, decimal_places=2)

    class Meta:
        verbose_name = _("Ligne d'annulation")
        verbose_name_plural = _("Lignes d'annulation")
        constraints = [
            models.UniqueConstraint(
                fields=['cancellation', 'delivery_note_item'],
                name='unique_cancellation_item',
            )
        ]

    def __str__(self) -> str:
        return f"{self.cancellation_id}:{self.delivery_note_item_id}"
