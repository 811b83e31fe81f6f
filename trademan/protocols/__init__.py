"""
Trademan Protocols.

Defines interfaces for external collaborators.
"""

from trademan.protocols.catalog import ProductCatalog, ProductInfo
from trademan.protocols.numbering import DocumentKind, DocumentNumberGenerator
from trademan.protocols.partners import PartnerDirectory
from trademan.protocols.topics import TopicPublisher

__all__ = [
    "DocumentKind",
    "DocumentNumberGenerator",
    "PartnerDirectory",
    "ProductCatalog",
    "ProductInfo",
    "TopicPublisher",
]
