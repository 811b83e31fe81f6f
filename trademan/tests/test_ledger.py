"""
Tests for the stock ledger.
"""

from datetime import date
from decimal import Decimal

import pytest

from trademan.exceptions import InsufficientStock, NotFound, ValidationError
from trademan.models import MovementSource, MovementType, StockMovement, StockSnapshot
from trademan.services.ledger import (
    MovementLine,
    StockLedger,
    unwound_average,
    weighted_average,
)
from trademan.services.queries import StockQueries


pytestmark = pytest.mark.django_db


def snap(product):
    return StockSnapshot.objects.get(product=product)


class TestWeightedAverage:
    """Tests for the average cost formulas."""

    def test_empty_stock_takes_incoming_cost(self):
        """With no stock, the average is the incoming cost."""
        assert weighted_average(Decimal('0'), Decimal('0'), Decimal('5'), Decimal('7.50')) == Decimal('7.50')

    def test_weighted_mean(self):
        """(100×10 + 50×16) / 150 = 12.00."""
        assert weighted_average(Decimal('100'), Decimal('10'), Decimal('50'), Decimal('16')) == Decimal('12.00')

    def test_rounds_half_up_to_cents(self):
        """(1×10 + 2×10.01) / 3 = 10.00666… → 10.01."""
        assert weighted_average(Decimal('1'), Decimal('10'), Decimal('2'), Decimal('10.01')) == Decimal('10.01')

    def test_unwind_restores_previous_average(self):
        """Unwinding the 50 @ 16 layer from 150 @ 12 gives back 10.00."""
        assert unwound_average(Decimal('150'), Decimal('12'), Decimal('50'), Decimal('16')) == Decimal('10.00')

    def test_unwind_with_nothing_left_keeps_cost(self):
        """When nothing would remain, the current cost is kept."""
        assert unwound_average(Decimal('50'), Decimal('12'), Decimal('50'), Decimal('16')) == Decimal('12.00')


class TestApplyIn:
    """Tests for StockLedger.apply_in()."""

    def test_creates_snapshot_lazily(self, product):
        """First entry creates the snapshot."""
        assert not StockSnapshot.objects.filter(product=product).exists()

        StockLedger.apply_in(product, Decimal('100'), Decimal('10.00'))

        assert snap(product).quantity_available == Decimal('100')
        assert snap(product).average_cost == Decimal('10.00')

    def test_scenario_weighted_average(self, product):
        """100 @ 10.00 then 50 @ 16.00 ⇒ 150 @ 12.00."""
        StockLedger.apply_in(product, Decimal('100'), Decimal('10.00'))
        StockLedger.apply_in(product, Decimal('50'), Decimal('16.00'))

        s = snap(product)
        assert s.quantity_available == Decimal('150')
        assert s.average_cost == Decimal('12.00')

    def test_records_in_movement(self, product, user):
        """An "in" movement with the unit cost and actor is written."""
        movement = StockLedger.apply_in(
            product, Decimal('10'), Decimal('3.50'),
            movement_date=date(2025, 1, 5), source=MovementSource.PURCHASE, user=user,
        )

        assert movement.movement_type == MovementType.IN
        assert movement.movement_source == MovementSource.PURCHASE
        assert movement.unit_cost == Decimal('3.50')
        assert movement.user == user
        assert snap(product).last_movement_date == date(2025, 1, 5)

    def test_rejects_non_positive_quantity(self, product):
        """Zero quantity raises INVALID_QUANTITY."""
        with pytest.raises(ValidationError) as exc:
            StockLedger.apply_in(product, Decimal('0'), Decimal('1'))
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_rejects_negative_cost(self, product):
        """Negative cost raises INVALID_COST."""
        with pytest.raises(ValidationError) as exc:
            StockLedger.apply_in(product, Decimal('1'), Decimal('-1'))
        assert exc.value.code == 'INVALID_COST'


class TestApplyOut:
    """Tests for StockLedger.apply_out()."""

    def test_out_keeps_average_cost(self, product, receive):
        """Exits never change the average cost."""
        receive(product, 100, '10.00')
        receive(product, 50, '16.00')

        movement = StockLedger.apply_out(product, Decimal('45'))

        s = snap(product)
        assert s.quantity_available == Decimal('105')
        assert s.average_cost == Decimal('12.00')
        assert movement.unit_cost == Decimal('12.00')

    def test_insufficient_stock_leaves_snapshot_untouched(self, product, receive):
        """Taking 9999 out of 105 fails and changes nothing."""
        receive(product, 105, '12.00')

        with pytest.raises(InsufficientStock) as exc:
            StockLedger.apply_out(product, Decimal('9999'))

        assert exc.value.available == Decimal('105')
        assert exc.value.requested == Decimal('9999')
        assert snap(product).quantity_available == Decimal('105')
        assert StockMovement.objects.filter(movement_type=MovementType.OUT).count() == 0

    def test_without_snapshot_is_insufficient(self, product):
        """A product that never received stock has nothing to take."""
        with pytest.raises(InsufficientStock) as exc:
            StockLedger.apply_out(product, Decimal('1'))
        assert exc.value.available == Decimal('0')

    def test_exact_quantity_reaches_zero(self, product, receive):
        """Taking everything leaves exactly zero."""
        receive(product, 10)
        StockLedger.apply_out(product, Decimal('10'))
        assert snap(product).quantity_available == Decimal('0')


class TestReverseAndReconcile:
    """Tests for reverse_by_reference() and reconcile()."""

    def test_reverse_restores_quantity(self, product, receive):
        """Reversing a reference gives its quantity back and deletes its rows."""
        receive(product, 100)
        StockLedger.apply_out(product, Decimal('30'), reference_type='order', reference_id=7)

        count = StockLedger.reverse_by_reference('order', 7)

        assert count == 1
        assert snap(product).quantity_available == Decimal('100')
        assert not StockMovement.objects.for_reference('order', 7).exists()

    def test_reverse_without_movements_is_noop(self, product):
        """Nothing live for the reference → 0."""
        assert StockLedger.reverse_by_reference('order', 'missing') == 0

    def test_reconcile_is_idempotent(self, product, receive):
        """Reconciling twice to the same lines leaves the same ledger."""
        receive(product, 100)
        lines = [MovementLine(product.pk, Decimal('30'))]

        StockLedger.reconcile('order', 1, lines)
        StockLedger.reconcile('order', 1, lines)

        assert snap(product).quantity_available == Decimal('70')
        assert StockMovement.objects.for_reference('order', 1).count() == 1

    def test_reconcile_failure_rolls_back_reversal(self, product, receive):
        """If the new lines do not fit, the old movements stay."""
        receive(product, 100)
        StockLedger.reconcile('order', 1, [MovementLine(product.pk, Decimal('30'))])

        with pytest.raises(InsufficientStock):
            StockLedger.reconcile('order', 1, [MovementLine(product.pk, Decimal('500'))])

        assert snap(product).quantity_available == Decimal('70')
        assert StockMovement.objects.for_reference('order', 1).count() == 1

    def test_quantity_invariant(self, product_a, product_b, receive):
        """Snapshot quantity equals the signed sum of live movements."""
        receive(product_a, 100)
        receive(product_b, 40)
        StockLedger.reconcile('order', 1, [MovementLine(product_a.pk, Decimal('12.5'))])
        StockLedger.reconcile('order', 2, [
            MovementLine(product_a.pk, Decimal('20')),
            MovementLine(product_b.pk, Decimal('40')),
        ])
        StockLedger.reverse_by_reference('order', 1)
        StockLedger.adjust(product_b, Decimal('3'), reason='Inventaire')

        for product in (product_a, product_b):
            s = snap(product)
            assert s.live_quantity() == s.quantity_available


class TestAdjustments:
    """Tests for adjust(), receive_entries(), edit/delete_adjustment()."""

    def test_adjust_records_signed_delta(self, product, receive):
        """Counting 80 where 100 are booked records -20."""
        receive(product, 100)

        movement = StockLedger.adjust(product, Decimal('80'), reason='Casse')

        assert movement.movement_type == MovementType.ADJUSTMENT
        assert movement.quantity == Decimal('-20')
        assert snap(product).quantity_available == Decimal('80')
        assert snap(product).average_cost == Decimal('10.00')

    def test_adjust_same_quantity_returns_none(self, product, receive):
        """No delta, no movement."""
        receive(product, 100)
        assert StockLedger.adjust(product, Decimal('100'), reason='Inventaire') is None

    def test_adjust_requires_reason(self, product):
        """Empty reason raises REQUIRED_FIELD."""
        with pytest.raises(ValidationError) as exc:
            StockLedger.adjust(product, Decimal('5'), reason='')
        assert exc.value.code == 'REQUIRED_FIELD'

    def test_receive_entries_all_or_nothing(self, product):
        """An unknown product aborts the whole batch."""
        with pytest.raises(NotFound) as exc:
            StockLedger.receive_entries([
                {'product_id': product.pk, 'quantity': 10, 'unit_cost': '5'},
                {'product_id': 999999, 'quantity': 10, 'unit_cost': '5'},
            ])

        assert exc.value.code == 'PRODUCT_NOT_FOUND'
        assert StockQueries.quantity(product) == Decimal('0')

    def test_receive_entries_are_adjustment_sourced(self, product):
        """Manual entries are "in" movements with source adjustment."""
        movements = StockLedger.receive_entries([
            {'product_id': product.pk, 'quantity': 10, 'unit_cost': '5'},
        ])

        assert movements[0].movement_type == MovementType.IN
        assert movements[0].movement_source == MovementSource.ADJUSTMENT

    def test_edit_adjustment_replays_effect(self, product):
        """Editing an entry 100 @ 10 into 120 @ 10 moves the snapshot to 120."""
        entry = StockLedger.receive_entries([
            {'product_id': product.pk, 'quantity': 100, 'unit_cost': '10'},
        ])[0]

        StockLedger.edit_adjustment(entry.pk, quantity=Decimal('120'))

        assert snap(product).quantity_available == Decimal('120')
        entry.refresh_from_db()
        assert entry.quantity == Decimal('120')

    def test_edit_adjustment_unwinds_cost(self, product, receive):
        """Changing the cost of the second layer recomputes the average."""
        receive(product, 100, '10.00')
        entry = StockLedger.receive_entries([
            {'product_id': product.pk, 'quantity': 50, 'unit_cost': '16'},
        ])[0]
        assert snap(product).average_cost == Decimal('12.00')

        StockLedger.edit_adjustment(entry.pk, unit_cost=Decimal('10'))

        assert snap(product).average_cost == Decimal('10.00')

    def test_edit_adjustment_rejects_negative_net(self, product):
        """Shrinking an entry below what was already taken out fails."""
        entry = StockLedger.receive_entries([
            {'product_id': product.pk, 'quantity': 100, 'unit_cost': '10'},
        ])[0]
        StockLedger.apply_out(product, Decimal('80'))

        with pytest.raises(InsufficientStock):
            StockLedger.edit_adjustment(entry.pk, quantity=Decimal('50'))

        assert snap(product).quantity_available == Decimal('20')

    def test_delete_adjustment(self, product, receive):
        """Deleting an adjustment reverts its delta."""
        receive(product, 100)
        movement = StockLedger.adjust(product, Decimal('90'), reason='Casse')

        StockLedger.delete_adjustment(movement.pk)

        assert snap(product).quantity_available == Decimal('100')
        assert not StockMovement.objects.filter(pk=movement.pk).exists()

    def test_document_movements_are_not_editable(self, product, receive):
        """Non-adjustment movements raise NOT_ADJUSTMENT."""
        receive(product, 100)
        out = StockLedger.apply_out(product, Decimal('5'), reference_type='order', reference_id=1)

        with pytest.raises(ValidationError) as exc:
            StockLedger.delete_adjustment(out.pk)
        assert exc.value.code == 'NOT_ADJUSTMENT'

        with pytest.raises(ValidationError):
            StockLedger.edit_adjustment(out.pk, quantity=Decimal('1'))

    def test_missing_movement(self, db):
        """Unknown movement id raises MOVEMENT_NOT_FOUND."""
        with pytest.raises(NotFound) as exc:
            StockLedger.delete_adjustment(123456)
        assert exc.value.code == 'MOVEMENT_NOT_FOUND'

    def test_receive_entries_unreadable_quantity(self, product):
        """A quantity that is not a number names the field."""
        with pytest.raises(ValidationError) as exc:
            StockLedger.receive_entries([
                {'product_id': product.pk, 'quantity': 'x', 'unit_cost': 1},
            ])

        assert exc.value.code == 'VALIDATION_ERROR'
        assert exc.value.data['field'] == 'quantity'
        assert not StockMovement.objects.exists()

    def test_receive_entries_missing_product(self, db):
        with pytest.raises(ValidationError) as exc:
            StockLedger.receive_entries([{'quantity': 1, 'unit_cost': 1}])

        assert exc.value.code == 'REQUIRED_FIELD'
        assert exc.value.data == {'field': 'product_id'}

    def test_receive_entries_bad_date(self, product):
        with pytest.raises(ValidationError) as exc:
            StockLedger.receive_entries([
                {'product_id': product.pk, 'quantity': 1, 'unit_cost': 1, 'movement_date': 'hier'},
            ])
        assert exc.value.data['field'] == 'movement_date'

    def test_apply_in_unreadable_cost(self, product):
        with pytest.raises(ValidationError) as exc:
            StockLedger.apply_in(product, Decimal('5'), 'abc')

        assert exc.value.data['field'] == 'unit_cost'
        assert not StockSnapshot.objects.filter(product=product).exists()

    def test_movement_id_not_a_number(self, db):
        """A non-numeric movement id is VALIDATION_ERROR, not a lookup."""
        with pytest.raises(ValidationError) as exc:
            StockLedger.edit_adjustment('abc', quantity=Decimal('1'))

        assert exc.value.code == 'VALIDATION_ERROR'
        assert exc.value.data['field'] == 'movement'

    def test_model_refuses_direct_delete(self, product, receive):
        """StockMovement.delete() refuses non-adjustment rows."""
        receive(product, 10)
        out = StockLedger.apply_out(product, Decimal('1'), reference_type='order', reference_id=1)

        with pytest.raises(ValueError):
            out.delete()


class TestQueries:
    """Tests for StockQueries."""

    def test_quantity_without_snapshot(self, product):
        """Unknown product has zero stock."""
        assert StockQueries.quantity(product) == Decimal('0')

    def test_stock_value(self, stocked):
        """100 × 10.00 + 50 × 20.00 = 2000."""
        assert StockQueries.stock_value() == Decimal('2000')

    def test_low_stock(self, stocked, product_b):
        """Threshold filters snapshots at or below it."""
        StockLedger.apply_out(product_b, Decimal('45'))

        low = list(StockQueries.low_stock(Decimal('10')))

        assert [s.product_id for s in low] == [product_b.pk]

    def test_movements_filters(self, stocked, product_a):
        """Filter by product and reference."""
        StockLedger.apply_out(product_a, Decimal('1'), reference_type='order', reference_id=3)

        assert StockQueries.movements(product=product_a).count() == 2
        assert StockQueries.movements(reference_type='order', reference_id=3).count() == 1
