"""
Document number allocation.

The configured DocumentNumberGenerator only proposes numbers; this module
checks each proposal against the target table and asks again on collision,
up to TRADEMAN['NUMBER_MAX_ATTEMPTS'] times.
"""

import logging

from trademan.adapters import get_number_generator
from trademan.conf import trademan_settings
from trademan.exceptions import Conflict, NumberExhausted
from trademan.protocols.numbering import DocumentKind

logger = logging.getLogger('trademan')


def number_taken(model, number: str, exclude_pk=None) -> bool:
    qs = model.objects.filter(number=number)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def ensure_number_free(model, number: str, exclude_pk=None) -> str:
    """
    Validate a caller-provided number.

    Raises:
        Conflict('DUPLICATE_NUMBER'): If another document already uses it
    """
    if number_taken(model, number, exclude_pk=exclude_pk):
        raise Conflict('DUPLICATE_NUMBER', number=number)
    return number


def allocate_number(model, kind: DocumentKind, subtype: str | None = None) -> str:
    """
    Get a number not yet used in model.number.

    Raises:
        NumberExhausted: If every attempt collided
    """
    generator = get_number_generator()
    attempts = trademan_settings.NUMBER_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        candidate = generator.generate(kind, subtype)
        if not number_taken(model, candidate):
            return candidate
        logger.debug("numbering.collision", extra={"number": candidate, "attempt": attempt})

    logger.warning(
        "numbering.exhausted",
        extra={"kind": kind.value, "subtype": subtype, "attempts": attempts},
    )
    raise NumberExhausted(kind=kind.value, attempts=attempts)
