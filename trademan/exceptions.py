"""
Exceptions for Trademan.

All errors are TradeError with a structured code for programmatic handling.
Subclasses mark the family of failure so callers can catch broadly
(``except NotFound``) or switch on ``code``.
"""

from decimal import Decimal
from typing import Any


class TradeError(Exception):
    """
    Structured exception for ledger and document operations.

    Usage:
        try:
            StockLedger.apply_out(product, Decimal('10'), ...)
        except InsufficientStock as e:
            print(f"Seulement {e.available} en stock")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    default_code = 'TRADE_ERROR'

    _default_messages = {
        'TRADE_ERROR': 'Erreur de traitement',
        'VALIDATION_ERROR': 'Données invalides',
        'REQUIRED_FIELD': 'Champ obligatoire manquant',
        'EMPTY_ITEMS': 'Veuillez ajouter au moins un produit',
        'EMPTY_DOCUMENT': 'Le bon de livraison ne contient aucun produit',
        'NOT_EMPTY': 'Impossible de supprimer ce bon de livraison car il contient des produits',
        'INVALID_QUANTITY': 'Quantité invalide (doit être positive)',
        'INVALID_COST': 'Coût unitaire invalide',
        'INVALID_STATUS': 'Statut invalide pour cette opération',
        'INVALID_TYPE': 'Type invalide',
        'NOT_ADJUSTMENT': 'Seuls les mouvements d\'ajustement sont modifiables',
        'INSUFFICIENT_STOCK': 'Quantité insuffisante en stock',
        'NOT_FOUND': 'Élément non trouvé',
        'PRODUCT_NOT_FOUND': 'Produit non trouvé',
        'PRODUCT_INACTIVE': 'Produit inactif',
        'CLIENT_NOT_FOUND': 'Client non trouvé',
        'DELIVERY_NOTE_NOT_FOUND': 'Bon de livraison non trouvé',
        'MOVEMENT_NOT_FOUND': 'Mouvement de stock non trouvé',
        'INVOICE_NOT_FOUND': 'Facture non trouvée',
        'CONFLICT': 'Conflit',
        'DUPLICATE_NUMBER': 'Ce numéro existe déjà',
        'NUMBER_EXHAUSTED': 'Impossible de générer un numéro unique. Veuillez réessayer.',
        'PERMISSION_DENIED': 'Permission refusée',
        'STORAGE_ERROR': 'Erreur de stockage',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class ValidationError(TradeError):
    """Missing field, empty item list, bad quantity. Never retried."""

    default_code = 'VALIDATION_ERROR'


class EmptyDocument(ValidationError):
    """Document has no items to derive from."""

    default_code = 'EMPTY_DOCUMENT'


class InsufficientStock(TradeError):
    """A movement would drive a product's quantity below zero."""

    default_code = 'INSUFFICIENT_STOCK'

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))


class NotFound(TradeError):
    default_code = 'NOT_FOUND'


class Conflict(TradeError):
    default_code = 'CONFLICT'


class NumberExhausted(Conflict):
    """The number generator kept colliding until the attempt limit."""

    default_code = 'NUMBER_EXHAUSTED'


class PermissionDenied(TradeError):
    default_code = 'PERMISSION_DENIED'
