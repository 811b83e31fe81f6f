"""
StockSnapshot model — current quantity and average cost per product.
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Case, DecimalField, F, Sum, When
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from trademan.models.enums import MovementType

logger = logging.getLogger('trademan')


def signed_quantity_expression():
    """
    SQL expression for a movement's effect on quantity.

    in → +quantity, out → -quantity, adjustment → quantity (already signed).
    """
    return Case(
        When(movement_type=MovementType.OUT, then=-F('quantity')),
        default=F('quantity'),
        output_field=DecimalField(max_digits=15, decimal_places=3),
    )


class StockSnapshotManager(models.Manager):
    """Manager with helper methods for snapshot queries."""

    def for_product(self, product):
        return self.filter(product=product)

    def low(self, threshold=Decimal('0')):
        """Snapshots at or below the threshold."""
        return self.filter(quantity_available__lte=threshold)


class StockSnapshot(models.Model):
    """
    Current stock of one product.

    Created lazily on the product's first "in" movement, then mutated in
    place forever. Only services.ledger writes to it, always under a row
    lock together with the movement that explains the change.

    Performance:
    - quantity_available is a cache of the signed movement sum
    - Read is O(1), not O(N)
    - Use recalculate() for audit/correction
    """

    product = models.OneToOneField(
        'trademan.Product',
        on_delete=models.CASCADE,
        related_name='stock',
        verbose_name=_('Produit'),
    )
    quantity_available = models.DecimalField(
        max_digits=15,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantité disponible'),
    )
    average_cost = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Coût moyen pondéré'),
    )
    last_movement_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Dernier mouvement'),
    )
    last_updated = models.DateTimeField(auto_now=True, verbose_name=_('Mis à jour'))

    objects = StockSnapshotManager()

    class Meta:
        verbose_name = _('Stock actuel')
        verbose_name_plural = _('Stock actuel')
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity_available__gte=0),
                name='stock_snapshot_quantity_non_negative',
            ),
        ]

    @property
    def stock_value(self) -> Decimal:
        return self.quantity_available * self.average_cost

    def live_quantity(self) -> Decimal:
        """Sum of signed quantities of the product's live movements."""
        from trademan.models.movement import StockMovement

        return StockMovement.objects.filter(product_id=self.product_id).aggregate(
            t=Coalesce(
                Sum(signed_quantity_expression()),
                Decimal('0'),
                output_field=DecimalField(max_digits=15, decimal_places=3),
            )
        )['t']

    def recalculate(self) -> Decimal:
        """
        Recalculate quantity from live movements.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated quantity
        """
        total = self.live_quantity()

        if total != self.quantity_available:
            old = self.quantity_available
            self.quantity_available = total
            self.save(update_fields=['quantity_available', 'last_updated'])

            logger.warning(
                "snapshot.recalculated",
                extra={
                    "snapshot": self.pk,
                    "product": self.product_id,
                    "old": str(old),
                    "new": str(total),
                    "diff": str(total - old),
                },
            )

        return total

    def __str__(self) -> str:
        return f"{self.product}: {self.quantity_available} @ {self.average_cost}"
