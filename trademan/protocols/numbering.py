"""
Document Number Generator Protocol.

Generators propose human-readable numbers; they do not guarantee
uniqueness. Callers check each proposal against the database and ask again
on collision, up to TRADEMAN['NUMBER_MAX_ATTEMPTS'] times
(see services.numbering.allocate_number).
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable


class DocumentKind(str, Enum):
    """Kind of document being numbered."""

    DELIVERY_NOTE_LOCAL = "delivery_note_local"
    DELIVERY_NOTE_EXPORT = "delivery_note_export"
    DELIVERY_NOTE_CANCELLATION = "delivery_note_cancellation"
    INVOICE = "invoice"


@runtime_checkable
class DocumentNumberGenerator(Protocol):
    """Protocol for document numbering."""

    def generate(self, kind: DocumentKind, subtype: str | None = None) -> str:
        """
        Propose a number.

        Args:
            kind: Document kind
            subtype: Refinement, e.g. the invoice type for INVOICE

        Returns:
            Candidate number (may collide)
        """
        ...
