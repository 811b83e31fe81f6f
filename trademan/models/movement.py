"""
StockMovement model — ledger of quantity changes.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from trademan.models.enums import MovementSource, MovementType


class StockMovementQuerySet(models.QuerySet):

    def for_reference(self, reference_type: str, reference_id):
        return self.filter(reference_type=reference_type, reference_id=str(reference_id))

    def adjustments(self):
        return self.filter(movement_source=MovementSource.ADJUSTMENT)


class StockMovement(models.Model):
    """
    Record of a quantity change.

    Rules:
    - Rows are written only by services.ledger, which updates the
      product's StockSnapshot in the same transaction
    - Delivery-note rows are removed only by a reversal (queryset delete
      inside ledger.reverse_by_reference)
    - Only adjustment-sourced rows may be edited or deleted individually,
      and only through the ledger so the snapshot follows

    quantity is positive for IN/OUT (direction given by movement_type) and
    a signed delta for ADJUSTMENT.
    """

    product = models.ForeignKey(
        'trademan.Product',
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('Produit'),
    )
    movement_type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        verbose_name=_('Type'),
    )
    movement_source = models.CharField(
        max_length=20,
        choices=MovementSource.choices,
        verbose_name=_('Origine'),
    )

    # External reference (delivery note, purchase order...)
    reference_type = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Type de référence'),
    )
    reference_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('ID de référence'),
    )

    quantity = models.DecimalField(
        max_digits=15,
        decimal_places=3,
        verbose_name=_('Quantité'),
    )
    unit_cost = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Coût unitaire'),
    )
    movement_date = models.DateField(db_index=True, verbose_name=_('Date du mouvement'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Créé par'),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Mouvement de stock')
        verbose_name_plural = _('Mouvements de stock')
        ordering = ['movement_date', 'created_at', 'pk']
        indexes = [
            models.Index(fields=['product', 'movement_date'], name='idx_movement_product_date'),
            models.Index(fields=['reference_type', 'reference_id'], name='idx_movement_reference'),
        ]

    @property
    def is_adjustment(self) -> bool:
        return self.movement_source == MovementSource.ADJUSTMENT

    @property
    def signed_quantity(self) -> Decimal:
        """Effect of this movement on the product's quantity."""
        if self.movement_type == MovementType.OUT:
            return -self.quantity
        return self.quantity

    def save(self, *args, **kwargs):
        """Refuse to rewrite non-adjustment movements."""
        if self.pk and not self._state.adding and not self.is_adjustment:
            raise ValueError(
                "Les mouvements sont immuables. "
                "Seuls les ajustements peuvent être modifiés."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Refuse to delete non-adjustment movements one by one."""
        if not self.is_adjustment:
            raise ValueError(
                "Les mouvements sont immuables. "
                "Pour annuler un bon de livraison, utilisez son cycle de vie."
            )
        return super().delete(*args, **kwargs)

    def __str__(self) -> str:
        signal = '-' if self.movement_type == MovementType.OUT else '+'
        return f"{signal}{abs(self.quantity)} {self.product_id} | {self.get_movement_source_display()}"
