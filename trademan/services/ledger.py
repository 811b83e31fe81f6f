"""
Stock ledger — every write to StockMovement and StockSnapshot goes here.

A movement row and the snapshot change it explains are always written in the
same transaction, with the product's snapshot locked by select_for_update().
Two writers touching the same product therefore serialize, and the
non-negative check is made against the locked value.

Average cost:
    in          new = (Q·C + q·c) / (Q + q), or c when Q <= 0
    out         unchanged
    adjustment  unchanged

Reversals never touch average cost except when the reversed movement was
itself an "in" (see unwound_average).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from trademan.adapters import get_product_catalog
from trademan.amounts import ZERO, money, quantity as to_quantity, to_decimal, to_id
from trademan.dates import local_date
from trademan.exceptions import InsufficientStock, NotFound, ValidationError
from trademan.models.enums import MovementSource, MovementType
from trademan.models.movement import StockMovement
from trademan.models.snapshot import StockSnapshot

logger = logging.getLogger('trademan')


@dataclass(frozen=True)
class MovementLine:
    """One product and quantity to take out for a reference."""

    product_id: int
    quantity: Decimal


@dataclass(frozen=True)
class StockEntry:
    """One incoming stock entry."""

    product_id: int
    quantity: Decimal
    unit_cost: Decimal
    movement_date: object = None
    notes: str = ''

    @classmethod
    def coerce(cls, value) -> 'StockEntry':
        """Build from a StockEntry or a mapping, reading ids, numbers and dates."""
        if isinstance(value, cls):
            return value
        try:
            data = dict(value)
        except (TypeError, ValueError):
            raise ValidationError('VALIDATION_ERROR', field='entries', value=repr(value)) from None
        if data.get('product_id') is None:
            data['product_id'] = data.get('product')
        movement_date = data.get('movement_date')
        return cls(
            product_id=to_id(data['product_id'], 'product_id'),
            quantity=to_quantity(data.get('quantity'), 'quantity'),
            unit_cost=money(data.get('unit_cost'), 'unit_cost'),
            movement_date=None if movement_date in (None, '') else local_date(movement_date, 'movement_date'),
            notes=data.get('notes') or '',
        )


def weighted_average(current_qty, current_cost, in_qty, in_cost) -> Decimal:
    """Average cost after receiving in_qty at in_cost."""
    if current_qty <= 0:
        return money(in_cost)
    total = current_qty + in_qty
    return money((current_qty * current_cost + in_qty * in_cost) / total)


def unwound_average(current_qty, current_cost, in_qty, in_cost) -> Decimal:
    """
    Average cost before an "in" of in_qty at in_cost was received.

    Falls back to current_cost when nothing would remain or the result is
    negative (earlier "out" movements consumed part of the layer).
    """
    remaining = current_qty - in_qty
    if remaining <= 0:
        return money(current_cost)
    value = (current_qty * current_cost - in_qty * in_cost) / remaining
    if value < 0:
        return money(current_cost)
    return money(value)


class StockLedger:
    """State-changing stock methods."""

    # ══════════════════════════════════════════════════════════════
    # LOCKING AND EFFECTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lock(cls, product_id, create=False):
        """
        Lock and return the snapshot of a product.

        Must be called inside transaction.atomic(). With create=True a
        missing snapshot is created (zero quantity, zero cost) first.
        """
        snapshot = StockSnapshot.objects.select_for_update().filter(product_id=product_id).first()
        if snapshot is None and create:
            StockSnapshot.objects.get_or_create(product_id=product_id)
            snapshot = StockSnapshot.objects.select_for_update().get(product_id=product_id)
        return snapshot

    @classmethod
    def _apply(cls, snapshot, movement_type, qty, unit_cost=None):
        """Apply one movement's effect to a locked snapshot (in memory)."""
        if movement_type == MovementType.IN:
            snapshot.average_cost = weighted_average(
                snapshot.quantity_available, snapshot.average_cost, qty, unit_cost,
            )
            snapshot.quantity_available = snapshot.quantity_available + qty
            return

        delta = -qty if movement_type == MovementType.OUT else qty
        new_quantity = snapshot.quantity_available + delta
        if new_quantity < 0:
            raise InsufficientStock(
                product=snapshot.product_id,
                available=snapshot.quantity_available,
                requested=abs(delta),
            )
        snapshot.quantity_available = new_quantity

    @classmethod
    def _undo(cls, snapshot, movement, check=True):
        """Remove one movement's effect from a locked snapshot (in memory)."""
        new_quantity = snapshot.quantity_available - movement.signed_quantity
        if check and new_quantity < 0:
            raise InsufficientStock(
                product=snapshot.product_id,
                available=snapshot.quantity_available,
                requested=movement.signed_quantity,
            )
        if movement.movement_type == MovementType.IN and movement.unit_cost is not None:
            snapshot.average_cost = unwound_average(
                snapshot.quantity_available, snapshot.average_cost,
                movement.quantity, movement.unit_cost,
            )
        snapshot.quantity_available = new_quantity

    @staticmethod
    def _positive(value, code='INVALID_QUANTITY', **data) -> Decimal:
        qty = to_quantity(value)
        if qty <= 0:
            raise ValidationError(code, requested=qty, **data)
        return qty

    # ══════════════════════════════════════════════════════════════
    # PRIMITIVES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def apply_in(cls, product, quantity, unit_cost, movement_date=None,
                 source=MovementSource.ADJUSTMENT, reference_type='', reference_id='',
                 user=None, notes=''):
        """
        Stock entry.

        Creates the snapshot on the product's first entry, recomputes the
        weighted average cost and records an "in" movement.

        Raises:
            ValidationError('INVALID_QUANTITY'): If quantity <= 0
            ValidationError('INVALID_COST'): If unit_cost < 0
        """
        product_id = to_id(product, 'product')
        qty = cls._positive(quantity, product=product_id)
        cost = money(unit_cost, 'unit_cost')
        if cost < 0:
            raise ValidationError('INVALID_COST', product=product_id, unit_cost=cost)
        day = local_date(movement_date, 'movement_date')

        with transaction.atomic():
            snapshot = cls._lock(product_id, create=True)
            cls._apply(snapshot, MovementType.IN, qty, cost)
            snapshot.last_movement_date = day
            snapshot.save()

            movement = StockMovement.objects.create(
                product_id=product_id,
                movement_type=MovementType.IN,
                movement_source=source,
                reference_type=reference_type,
                reference_id=str(reference_id),
                quantity=qty,
                unit_cost=cost,
                movement_date=day,
                notes=notes,
                user=user,
            )

        logger.info(
            "ledger.apply_in",
            extra={
                "product": product_id,
                "qty": str(qty),
                "unit_cost": str(cost),
                "average_cost": str(snapshot.average_cost),
                "source": str(source),
            },
        )
        return movement

    @classmethod
    def apply_out(cls, product, quantity, movement_date=None,
                  source=MovementSource.SALE_LOCAL, reference_type='', reference_id='',
                  user=None, notes=''):
        """
        Stock exit.

        The movement records the current average cost as its unit cost.

        Raises:
            ValidationError('INVALID_QUANTITY'): If quantity <= 0
            InsufficientStock: If quantity > locked quantity_available

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on StockSnapshot
            - Verifies availability after lock
        """
        product_id = to_id(product, 'product')
        qty = cls._positive(quantity, product=product_id)
        day = local_date(movement_date, 'movement_date')

        with transaction.atomic():
            snapshot = cls._lock(product_id)
            if snapshot is None:
                raise InsufficientStock(product=product_id, available=ZERO, requested=qty)

            cls._apply(snapshot, MovementType.OUT, qty)
            snapshot.last_movement_date = day
            snapshot.save()

            movement = StockMovement.objects.create(
                product_id=product_id,
                movement_type=MovementType.OUT,
                movement_source=source,
                reference_type=reference_type,
                reference_id=str(reference_id),
                quantity=qty,
                unit_cost=snapshot.average_cost,
                movement_date=day,
                notes=notes,
                user=user,
            )

        logger.info(
            "ledger.apply_out",
            extra={
                "product": product_id,
                "qty": str(qty),
                "reference": f"{reference_type}:{reference_id}",
                "remaining": str(snapshot.quantity_available),
            },
        )
        return movement

    @classmethod
    def reverse_by_reference(cls, reference_type, reference_id, movement_date=None) -> int:
        """
        Undo and delete every live movement of a reference.

        For each affected product the snapshot is locked, the movements'
        signed quantities are subtracted and the rows are removed.
        movement_date, when given, becomes the snapshot's last_movement_date.

        Returns:
            Number of movements reversed (0 when nothing was live)
        """
        with transaction.atomic():
            movements = list(
                StockMovement.objects.for_reference(reference_type, reference_id)
                .order_by('product_id', 'pk')
            )
            if not movements:
                return 0

            by_product = {}
            for movement in movements:
                by_product.setdefault(movement.product_id, []).append(movement)

            day = local_date(movement_date, 'movement_date') if movement_date is not None else None
            for product_id in sorted(by_product):
                snapshot = cls._lock(product_id, create=True)
                # newest first, so "in" layers unwind in reverse order
                for movement in reversed(by_product[product_id]):
                    cls._undo(snapshot, movement)
                if day is not None:
                    snapshot.last_movement_date = day
                snapshot.save()

            StockMovement.objects.filter(pk__in=[m.pk for m in movements]).delete()

        logger.info(
            "ledger.reverse_by_reference",
            extra={
                "reference": f"{reference_type}:{reference_id}",
                "movements": len(movements),
                "products": sorted(by_product),
            },
        )
        return len(movements)

    @classmethod
    def reconcile(cls, reference_type, reference_id, lines, movement_date=None,
                  source=MovementSource.SALE_LOCAL, user=None, notes=''):
        """
        Make a reference's live "out" movements match lines exactly.

        Reverses whatever is live for the reference, then issues one "out"
        per line. Calling it twice with the same lines leaves the ledger as
        after the first call.

        Raises:
            InsufficientStock: If any line cannot be covered; nothing is
                written in that case
        """
        with transaction.atomic():
            cls.reverse_by_reference(reference_type, reference_id, movement_date)
            return [
                cls.apply_out(
                    line.product_id,
                    line.quantity,
                    movement_date=movement_date,
                    source=source,
                    reference_type=reference_type,
                    reference_id=reference_id,
                    user=user,
                    notes=notes,
                )
                for line in lines
            ]

    # ══════════════════════════════════════════════════════════════
    # MANUAL ENTRIES AND ADJUSTMENTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def receive_entries(cls, entries, user=None):
        """
        Record a batch of incoming stock (manual entry form).

        Each entry becomes an "in" adjustment-sourced movement. All or none.

        Raises:
            ValidationError('EMPTY_ITEMS'): If entries is empty
            NotFound('PRODUCT_NOT_FOUND'): If a product does not exist
        """
        entries = [StockEntry.coerce(e) for e in entries or []]
        if not entries:
            raise ValidationError('EMPTY_ITEMS')

        known = get_product_catalog().get_products([e.product_id for e in entries])
        for entry in entries:
            if entry.product_id not in known:
                raise NotFound('PRODUCT_NOT_FOUND', product=entry.product_id)

        with transaction.atomic():
            return [
                cls.apply_in(
                    entry.product_id,
                    entry.quantity,
                    entry.unit_cost,
                    movement_date=entry.movement_date,
                    source=MovementSource.ADJUSTMENT,
                    user=user,
                    notes=entry.notes or 'Entrée de stock manuelle',
                )
                for entry in entries
            ]

    @classmethod
    def adjust(cls, product, new_quantity, reason, user=None, movement_date=None):
        """
        Inventory count correction.

        Calculates delta automatically: new_quantity - quantity_available.
        Average cost is not touched.

        Returns:
            The adjustment movement, or None when the count already matches

        Raises:
            ValidationError('REQUIRED_FIELD'): If reason is empty
            ValidationError('INVALID_QUANTITY'): If new_quantity < 0
        """
        if not reason:
            raise ValidationError('REQUIRED_FIELD', field='reason')
        product_id = to_id(product, 'product')
        target = to_quantity(new_quantity)
        if target < 0:
            raise ValidationError('INVALID_QUANTITY', requested=target)
        day = local_date(movement_date, 'movement_date')

        with transaction.atomic():
            snapshot = cls._lock(product_id, create=True)
            delta = target - snapshot.quantity_available

            if delta == 0:
                return None

            snapshot.quantity_available = target
            snapshot.last_movement_date = day
            snapshot.save()

            movement = StockMovement.objects.create(
                product_id=product_id,
                movement_type=MovementType.ADJUSTMENT,
                movement_source=MovementSource.ADJUSTMENT,
                quantity=delta,
                movement_date=day,
                notes=f"Ajustement: {reason}",
                user=user,
            )

        logger.info(
            "ledger.adjust",
            extra={"product": product_id, "delta": str(delta), "reason": reason},
        )
        return movement

    @classmethod
    def _lock_adjustment(cls, movement_id):
        movement_id = to_id(movement_id, 'movement')
        movement = StockMovement.objects.select_for_update().filter(pk=movement_id).first()
        if movement is None:
            raise NotFound('MOVEMENT_NOT_FOUND', movement=movement_id)
        if not movement.is_adjustment:
            raise ValidationError(
                'NOT_ADJUSTMENT',
                movement=movement_id,
                source=movement.movement_source,
            )
        return movement

    @classmethod
    def edit_adjustment(cls, movement_id, quantity=None, unit_cost=None,
                        movement_date=None, notes=None, user=None):
        """
        Edit an adjustment-sourced movement.

        The old effect is removed and the new one applied under the same
        lock; the snapshot ends up as if the movement had always carried
        the new values.

        Raises:
            NotFound('MOVEMENT_NOT_FOUND')
            ValidationError('NOT_ADJUSTMENT'): Delivery-note and other
                document movements are immutable
            InsufficientStock: If the change would make quantity negative
        """
        with transaction.atomic():
            movement = cls._lock_adjustment(movement_id)
            snapshot = cls._lock(movement.product_id, create=True)

            # only the net result has to stay non-negative
            before = snapshot.quantity_available
            cls._undo(snapshot, movement, check=False)

            if quantity is not None:
                if movement.movement_type == MovementType.ADJUSTMENT:
                    new_qty = to_quantity(quantity)
                    if new_qty == 0:
                        raise ValidationError('INVALID_QUANTITY', requested=new_qty)
                else:
                    new_qty = cls._positive(quantity, movement=movement_id)
                movement.quantity = new_qty
            if unit_cost is not None and movement.movement_type == MovementType.IN:
                cost = money(unit_cost, 'unit_cost')
                if cost < 0:
                    raise ValidationError('INVALID_COST', unit_cost=cost)
                movement.unit_cost = cost
            if movement_date is not None:
                movement.movement_date = local_date(movement_date, 'movement_date')
            if notes is not None:
                movement.notes = notes

            cls._apply(snapshot, movement.movement_type, movement.quantity, movement.unit_cost)
            if snapshot.quantity_available < 0:
                raise InsufficientStock(
                    product=movement.product_id,
                    available=before,
                    requested=movement.quantity,
                )
            snapshot.last_movement_date = movement.movement_date
            snapshot.save()
            movement.save()

        logger.info(
            "ledger.adjustment_edit",
            extra={
                "movement": movement.pk,
                "product": movement.product_id,
                "qty": str(movement.quantity),
                "user": getattr(user, 'pk', None),
            },
        )
        return movement

    @classmethod
    def delete_adjustment(cls, movement_id, user=None) -> None:
        """
        Delete an adjustment-sourced movement, reverting its effect.

        Raises:
            NotFound('MOVEMENT_NOT_FOUND')
            ValidationError('NOT_ADJUSTMENT')
            InsufficientStock: If later exits already consumed the stock
        """
        with transaction.atomic():
            movement = cls._lock_adjustment(movement_id)
            snapshot = cls._lock(movement.product_id, create=True)
            cls._undo(snapshot, movement)
            snapshot.save()
            product_id = movement.product_id
            movement.delete()

        logger.info(
            "ledger.adjustment_delete",
            extra={
                "movement": movement_id,
                "product": product_id,
                "user": getattr(user, 'pk', None),
            },
        )


def lines_from(items) -> list[MovementLine]:
    """MovementLines from anything with product_id and quantity."""
    return [MovementLine(product_id=i.product_id, quantity=to_decimal(i.quantity)) for i in items]
