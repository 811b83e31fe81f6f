"""
Trademan configuration.

Usage in settings.py:
    TRADEMAN = {
        "PRODUCT_CATALOG": "trademan.adapters.database.DatabaseProductCatalog",
        "NUMBER_GENERATOR": "trademan.adapters.numbering.PrefixedNumberGenerator",
        "NUMBER_MAX_ATTEMPTS": 10,
        "PAYMENT_TERMS_DAYS": 30,
        "ENFORCE_PERMISSIONS": True,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class TrademanSettings:
    """Trademan configuration settings."""

    # Collaborator backends (dotted paths)
    PRODUCT_CATALOG: str = "trademan.adapters.database.DatabaseProductCatalog"
    PARTNER_DIRECTORY: str = "trademan.adapters.database.DatabasePartnerDirectory"
    NUMBER_GENERATOR: str = "trademan.adapters.numbering.PrefixedNumberGenerator"
    TOPIC_PUBLISHER: str = "trademan.topics.SignalPublisher"

    # Attempts before giving up on a colliding document number
    NUMBER_MAX_ATTEMPTS: int = 10

    # Due date offset for invoice types with payment terms
    PAYMENT_TERMS_DAYS: int = 30
    PAYMENT_TERMS_INVOICE_TYPES: tuple = ("sale_invoice", "sale_export")

    DEFAULT_CURRENCY: str = "DZD"

    # Check Django model permissions in the public facade
    ENFORCE_PERMISSIONS: bool = False


def get_trademan_settings() -> TrademanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "TRADEMAN", {})
    return TrademanSettings(**{
        k: v for k, v in user_settings.items()
        if k in TrademanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_trademan_settings(), name)


trademan_settings = _LazySettings()
