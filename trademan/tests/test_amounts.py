"""
Tests for amount rounding and input coercion.
"""

from decimal import Decimal

import pytest

from trademan.amounts import money, quantity, to_decimal, to_id
from trademan.exceptions import ValidationError


class TestToDecimal:

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal('0.1')

    def test_blank_is_zero(self):
        assert to_decimal(None) == Decimal('0')
        assert to_decimal('') == Decimal('0')

    def test_strips_whitespace(self):
        assert to_decimal(' 12.5 ') == Decimal('12.5')

    @pytest.mark.parametrize('value', ['abc', 'NaN', '-Infinity', True, [1]])
    def test_rejects_non_numbers(self, value):
        """Unreadable and non-finite values are VALIDATION_ERROR."""
        with pytest.raises(ValidationError) as exc:
            to_decimal(value, 'unit_cost')

        assert exc.value.code == 'VALIDATION_ERROR'
        assert exc.value.data['field'] == 'unit_cost'


class TestRounding:

    def test_quantity_three_places(self):
        assert quantity('1.0005') == Decimal('1.001')

    def test_money_half_up(self):
        assert money('2.345') == Decimal('2.35')

    def test_quantity_reports_field(self):
        with pytest.raises(ValidationError) as exc:
            quantity('beaucoup')
        assert exc.value.data['field'] == 'quantity'


class TestToId:

    def test_instance_pk(self):
        class Obj:
            pk = 7
        assert to_id(Obj(), 'product') == 7

    def test_numeric_string(self):
        assert to_id('12', 'product') == 12

    def test_missing(self):
        with pytest.raises(ValidationError) as exc:
            to_id(None, 'client')
        assert exc.value.code == 'REQUIRED_FIELD'
        assert exc.value.data == {'field': 'client'}

    @pytest.mark.parametrize('value', ['P-001', 1.5j, False])
    def test_not_an_id(self, value):
        with pytest.raises(ValidationError) as exc:
            to_id(value, 'product')
        assert exc.value.code == 'VALIDATION_ERROR'
