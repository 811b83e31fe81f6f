"""
Decimal rounding for stored amounts, and coercion of caller input.

Quantities are kept with 3 decimals, money (prices, costs, totals) with 2.
Rounding is half-up, as on a printed invoice.

Anything a caller typed (strings from a form, floats from JSON) goes through
here; what cannot be read as a finite number or a primary key is a
ValidationError, never a bare decimal/ValueError.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from trademan.exceptions import ValidationError

QUANTITY_PLACES = Decimal('0.001')
MONEY_PLACES = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')


def to_decimal(value, field=None) -> Decimal:
    """Coerce int/str/float/Decimal/None to Decimal (floats via str)."""
    if value is None or value == '':
        return ZERO
    if isinstance(value, bool):
        raise ValidationError('VALIDATION_ERROR', field=field, value=value)
    try:
        if isinstance(value, float):
            result = Decimal(str(value))
        elif isinstance(value, Decimal):
            result = value
        else:
            result = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError('VALIDATION_ERROR', field=field, value=str(value)) from None
    if not result.is_finite():
        raise ValidationError('VALIDATION_ERROR', field=field, value=str(value))
    return result


def quantity(value, field='quantity') -> Decimal:
    return to_decimal(value, field).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def money(value, field=None) -> Decimal:
    return to_decimal(value, field).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_id(value, field):
    """
    Primary key of a model instance or a raw id.

    Raises:
        ValidationError('REQUIRED_FIELD'): If value is None or ''
        ValidationError('VALIDATION_ERROR'): If value is not an integer id
    """
    value = getattr(value, 'pk', value)
    if value is None or value == '':
        raise ValidationError('REQUIRED_FIELD', field=field)
    if isinstance(value, bool):
        raise ValidationError('VALIDATION_ERROR', field=field, value=value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError('VALIDATION_ERROR', field=field, value=str(value)) from None


def discounted(qty, unit_price, discount_percent) -> Decimal:
    """qty * unit_price * (1 - discount/100), unrounded."""
    return (
        to_decimal(qty)
        * to_decimal(unit_price)
        * (1 - to_decimal(discount_percent) / HUNDRED)
    )
