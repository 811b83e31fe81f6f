"""
Calendar dates — isolated, testable, reusable.

Every date persisted by Trademan (movement date, note date, invoice date,
due date, cancellation date) is a calendar day with no time or zone. It is
always taken from the local calendar of the active time zone, never from the
UTC part of a timestamp.

Examples (TIME_ZONE = 'Africa/Algiers', UTC+1):
    - 2025-03-01 23:30 UTC   → 2025-03-02
    - None                   → today in Algiers
"""

from datetime import date, datetime, timedelta

from django.utils import timezone

from trademan.exceptions import ValidationError


def local_date(value=None, field='date') -> date:
    """
    Normalize a value to a local calendar date.

    Args:
        value: None (today), date, datetime (aware or naive)
               or an ISO 'YYYY-MM-DD' string.
        field: Name reported on a ValidationError

    Returns:
        date in the current time zone's calendar

    Raises:
        ValidationError('VALIDATION_ERROR'): If value is not a date
    """
    if value is None:
        return timezone.localdate()

    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValidationError('VALIDATION_ERROR', field=field, value=value) from None

    raise ValidationError('VALIDATION_ERROR', field=field, value=repr(value))


def add_days(value: date, days: int) -> date:
    """Calendar arithmetic on a local date."""
    return local_date(value) + timedelta(days=days)
