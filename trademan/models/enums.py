"""
Enums for Trademan models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MovementType(models.TextChoices):
    """
    Direction of a stock movement.

    IN:         Adds quantity, recomputes the weighted average cost.
    OUT:        Removes quantity, average cost untouched.
    ADJUSTMENT: Inventory count correction; quantity holds a signed delta,
                average cost untouched.
    """
    IN = 'in', _('Entrée')
    OUT = 'out', _('Sortie')
    ADJUSTMENT = 'adjustment', _('Ajustement')


class MovementSource(models.TextChoices):
    """What caused the movement."""
    PURCHASE = 'purchase', _('Achat')
    SALE_LOCAL = 'sale_local', _('Vente locale')
    SALE_EXPORT = 'sale_export', _('Vente export')
    DELIVERY_NOTE = 'delivery_note', _('Bon de livraison')
    ADJUSTMENT = 'adjustment', _('Ajustement')
    RETURN = 'return', _('Retour')


class NoteType(models.TextChoices):
    LOCAL = 'local', _('Local')
    EXPORT = 'export', _('Export')


class DocumentStatus(models.TextChoices):
    """Status shared by delivery notes and invoices."""
    ACTIVE = 'active', _('Actif')
    CANCELLED = 'cancelled', _('Annulé')


class InvoiceType(models.TextChoices):
    DELIVERY_NOTE_INVOICE = 'delivery_note_invoice', _('Facture de bon de livraison')
    SALE_INVOICE = 'sale_invoice', _('Facture de vente')
    SALE_LOCAL = 'sale_local', _('Vente locale')
    SALE_EXPORT = 'sale_export', _('Vente export')
    PROFORMA = 'proforma', _('Proforma')
    PURCHASE = 'purchase', _('Achat')


class PaymentStatus(models.TextChoices):
    UNPAID = 'unpaid', _('Non payée')
    PARTIALLY_PAID = 'partially_paid', _('Partiellement payée')
    PAID = 'paid', _('Payée')


class PartnerKind(models.TextChoices):
    CLIENT = 'client', _('Client')
    SUPPLIER = 'supplier', _('Fournisseur')


# Reference type written on movements produced by delivery notes
DELIVERY_NOTE_REFERENCE = 'delivery_note'


def sale_source_for(note_type: str) -> str:
    """Movement source for a delivery note of the given type."""
    if note_type == NoteType.EXPORT:
        return MovementSource.SALE_EXPORT
    return MovementSource.SALE_LOCAL
