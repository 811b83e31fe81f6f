"""
Trademan Adapters.

Implementations of protocols for external collaborators, plus the loader
that picks the configured implementation from settings.

Usage:
    from trademan.adapters import get_product_catalog

    catalog = get_product_catalog()
    rate = catalog.get_tax_rate(product.pk)

Settings:
    TRADEMAN = {
        "PRODUCT_CATALOG": "myshop.catalog.RemoteProductCatalog",
    }

If a configured path cannot be imported, the getter raises ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from trademan.conf import trademan_settings
from trademan.protocols.catalog import ProductCatalog
from trademan.protocols.numbering import DocumentNumberGenerator
from trademan.protocols.partners import PartnerDirectory
from trademan.protocols.topics import TopicPublisher

logger = logging.getLogger(__name__)


# Cached adapter instances, keyed by setting name
_lock = threading.Lock()
_instances: dict[str, Any] = {}


def _load(setting_name: str):
    instance = _instances.get(setting_name)
    if instance is None:
        with _lock:
            instance = _instances.get(setting_name)
            if instance is None:  # double-checked
                path = getattr(trademan_settings, setting_name)

                if not path:
                    raise ImproperlyConfigured(
                        f"TRADEMAN['{setting_name}'] must be configured."
                    )

                try:
                    adapter_class = import_string(path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import {setting_name} '{path}': {e}"
                    ) from e

                instance = adapter_class()
                _instances[setting_name] = instance
                logger.debug("Loaded %s: %s", setting_name, path)

    return instance


def get_product_catalog() -> ProductCatalog:
    """Return the configured product catalog."""
    return _load("PRODUCT_CATALOG")


def get_partner_directory() -> PartnerDirectory:
    """Return the configured partner directory."""
    return _load("PARTNER_DIRECTORY")


def get_number_generator() -> DocumentNumberGenerator:
    """Return the configured document number generator."""
    return _load("NUMBER_GENERATOR")


def get_topic_publisher() -> TopicPublisher:
    """Return the configured changed-topics publisher."""
    return _load("TOPIC_PUBLISHER")


def reset_adapters() -> None:
    """Reset the cached adapters. Useful for testing."""
    with _lock:
        _instances.clear()


__all__ = [
    "get_product_catalog",
    "get_partner_directory",
    "get_number_generator",
    "get_topic_publisher",
    "reset_adapters",
]
