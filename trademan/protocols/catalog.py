"""
Product Catalog Protocol — interface for pricing and tax lookups.

Trademan defines this protocol; the product catalog (the bundled Product
model or an external system) implements it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ProductInfo:
    """Pricing snapshot of one product."""

    id: int
    code: str
    name: str
    purchase_price: Decimal
    sale_price_local: Decimal
    sale_price_export: Decimal | None
    tax_rate: Decimal
    is_active: bool = True


@runtime_checkable
class ProductCatalog(Protocol):
    """
    Protocol for product lookups.

    Implementations should provide methods to:
    - Fetch pricing/tax data for a set of products
    - Check that products exist
    """

    def get_products(self, product_ids: list[int]) -> dict[int, ProductInfo]:
        """
        Fetch product info for several ids at once.

        Args:
            product_ids: Product primary keys

        Returns:
            Dict[id, ProductInfo]; unknown ids are absent
        """
        ...

    def get_tax_rate(self, product_id: int) -> Decimal:
        """
        Tax rate (percent) currently applicable to a product.

        Returns:
            Decimal('0') for unknown products
        """
        ...
