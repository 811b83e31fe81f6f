"""
Partner Directory Protocol — client and supplier existence checks.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PartnerDirectory(Protocol):
    """Protocol for partner lookups."""

    def client_exists(self, client_id: int) -> bool:
        """True if the id names a known client."""
        ...

    def supplier_exists(self, supplier_id: int) -> bool:
        """True if the id names a known supplier."""
        ...
