"""
Prefixed Number Generator — default DocumentNumberGenerator.

Format: PREFIX-YYYY-XXXXXX (random 6-digit suffix, local calendar year)

Prefixes:
    - delivery note (local):        BL
    - delivery note (export):       BL-EXP
    - delivery note cancellation:   BL-ANL
    - invoice sale_invoice:         FAC-VT
    - invoice sale_local:           FAC-LOC
    - invoice sale_export:          FAC-EXP
    - invoice delivery_note_invoice: BL
    - invoice proforma:             FAC-PRO
    - invoice purchase:             FAC-ACH

Numbers are random, so collisions are possible and expected to be rare;
the caller retries.
"""

from __future__ import annotations

import secrets

from trademan.dates import local_date
from trademan.protocols.numbering import DocumentKind

DOCUMENT_PREFIXES = {
    DocumentKind.DELIVERY_NOTE_LOCAL: "BL",
    DocumentKind.DELIVERY_NOTE_EXPORT: "BL-EXP",
    DocumentKind.DELIVERY_NOTE_CANCELLATION: "BL-ANL",
}

INVOICE_PREFIXES = {
    "sale_invoice": "FAC-VT",
    "sale_local": "FAC-LOC",
    "sale_export": "FAC-EXP",
    "delivery_note_invoice": "BL",
    "proforma": "FAC-PRO",
    "purchase": "FAC-ACH",
}


class PrefixedNumberGenerator:
    """Generates PREFIX-YYYY-XXXXXX numbers."""

    def __init__(self, digits: int = 6):
        self.digits = digits

    def prefix_for(self, kind: DocumentKind, subtype: str | None = None) -> str:
        if kind == DocumentKind.INVOICE:
            return INVOICE_PREFIXES.get(subtype or "", "FAC")
        return DOCUMENT_PREFIXES.get(kind, "DOC")

    def generate(self, kind: DocumentKind, subtype: str | None = None) -> str:
        year = local_date().year
        suffix = str(secrets.randbelow(10 ** self.digits)).zfill(self.digits)
        return f"{self.prefix_for(kind, subtype)}-{year}-{suffix}"
