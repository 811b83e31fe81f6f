"""
Stock queries — read-only operations.

All methods are classmethods and use no locking.
"""

from decimal import Decimal

from django.db.models import DecimalField, F, Sum
from django.db.models.functions import Coalesce

from trademan.amounts import ZERO
from trademan.models.movement import StockMovement
from trademan.models.snapshot import StockSnapshot


def _pk(obj):
    return getattr(obj, 'pk', obj)


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def snapshot(cls, product) -> StockSnapshot | None:
        """Current snapshot, or None if the product never had stock."""
        return StockSnapshot.objects.filter(product_id=_pk(product)).first()

    @classmethod
    def quantity(cls, product) -> Decimal:
        """
        Quantity available for a product.

        Returns:
            Decimal, 0 when the product has no snapshot yet
        """
        snapshot = cls.snapshot(product)
        return snapshot.quantity_available if snapshot else ZERO

    @classmethod
    def average_cost(cls, product) -> Decimal:
        snapshot = cls.snapshot(product)
        return snapshot.average_cost if snapshot else ZERO

    @classmethod
    def movements(cls, product=None, reference_type=None, reference_id=None,
                  source=None, date_from=None, date_to=None):
        """
        Movement history, oldest first.

        Args:
            product: Filter by product (object or id)
            reference_type / reference_id: Filter by document reference
            source: Filter by MovementSource
            date_from / date_to: Inclusive movement_date bounds
        """
        qs = StockMovement.objects.select_related('product')

        if product is not None:
            qs = qs.filter(product_id=_pk(product))
        if reference_type is not None:
            qs = qs.filter(reference_type=reference_type)
        if reference_id is not None:
            qs = qs.filter(reference_id=str(reference_id))
        if source is not None:
            qs = qs.filter(movement_source=source)
        if date_from is not None:
            qs = qs.filter(movement_date__gte=date_from)
        if date_to is not None:
            qs = qs.filter(movement_date__lte=date_to)

        return qs

    @classmethod
    def stock_value(cls) -> Decimal:
        """Sum of quantity × average cost over every product."""
        return StockSnapshot.objects.aggregate(
            t=Coalesce(
                Sum(F('quantity_available') * F('average_cost')),
                Decimal('0'),
                output_field=DecimalField(max_digits=30, decimal_places=5),
            )
        )['t']

    @classmethod
    def low_stock(cls, threshold=Decimal('0')):
        """Snapshots at or below threshold, lowest first."""
        return (
            StockSnapshot.objects.low(threshold)
            .select_related('product')
            .order_by('quantity_available', 'product__code')
        )

    @classmethod
    def drifted(cls) -> list[tuple[StockSnapshot, Decimal]]:
        """
        Snapshots whose quantity differs from the sum of live movements.

        Returns:
            List of (snapshot, live_quantity)
        """
        result = []
        for snapshot in StockSnapshot.objects.select_related('product').order_by('product_id'):
            live = snapshot.live_quantity()
            if live != snapshot.quantity_available:
                result.append((snapshot, live))
        return result
