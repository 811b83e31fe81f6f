"""
Database adapters — ProductCatalog and PartnerDirectory over Trademan's own
Product and Partner tables.

Usage in settings.py (these are the defaults):
    TRADEMAN = {
        "PRODUCT_CATALOG": "trademan.adapters.database.DatabaseProductCatalog",
        "PARTNER_DIRECTORY": "trademan.adapters.database.DatabasePartnerDirectory",
    }
"""

from __future__ import annotations

from decimal import Decimal

from trademan.models.catalog import Partner, Product
from trademan.models.enums import PartnerKind
from trademan.protocols.catalog import ProductInfo


def _to_info(product: Product) -> ProductInfo:
    return ProductInfo(
        id=product.pk,
        code=product.code,
        name=product.name,
        purchase_price=product.purchase_price,
        sale_price_local=product.sale_price_local,
        sale_price_export=product.sale_price_export,
        tax_rate=product.tax_rate or Decimal('0'),
        is_active=product.is_active,
    )


class DatabaseProductCatalog:
    """Reads the trademan.Product table."""

    def get_products(self, product_ids: list[int]) -> dict[int, ProductInfo]:
        products = Product.objects.filter(pk__in=set(product_ids))
        return {p.pk: _to_info(p) for p in products}

    def get_tax_rate(self, product_id: int) -> Decimal:
        rate = Product.objects.filter(pk=product_id).values_list('tax_rate', flat=True).first()
        return rate if rate is not None else Decimal('0')


class DatabasePartnerDirectory:
    """Reads the trademan.Partner table."""

    def client_exists(self, client_id: int) -> bool:
        return Partner.objects.filter(pk=client_id, kind=PartnerKind.CLIENT).exists()

    def supplier_exists(self, supplier_id: int) -> bool:
        return Partner.objects.filter(pk=supplier_id, kind=PartnerKind.SUPPLIER).exists()
