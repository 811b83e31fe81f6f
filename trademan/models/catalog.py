"""
Catalog models — products and partners (clients, suppliers).

Plain CRUD records. The ledger and document services never query them
directly; they go through the ProductCatalog and PartnerDirectory
protocols (see trademan.protocols), whose default adapters read these tables.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from trademan.models.enums import PartnerKind


class Product(models.Model):
    """Sellable product with its pricing and tax rate."""

    code = models.CharField(max_length=50, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=200, verbose_name=_('Désignation'))
    description = models.TextField(blank=True, default='')
    unit_of_measure = models.CharField(
        max_length=20,
        default='u',
        verbose_name=_('Unité'),
    )
    purchase_price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_("Prix d'achat"),
    )
    sale_price_local = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Prix de vente local'),
    )
    sale_price_export = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Prix de vente export'),
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Taux TVA (%)'),
    )
    is_active = models.BooleanField(default=True, db_index=True, verbose_name=_('Actif'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Produit')
        verbose_name_plural = _('Produits')
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.code} — {self.name}"


class Partner(models.Model):
    """Client or supplier."""

    name = models.CharField(max_length=200, verbose_name=_('Nom / Raison sociale'))
    kind = models.CharField(
        max_length=20,
        choices=PartnerKind.choices,
        default=PartnerKind.CLIENT,
        verbose_name=_('Type'),
    )
    phone = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Téléphone'))
    email = models.EmailField(blank=True, default='')
    address = models.TextField(blank=True, default='', verbose_name=_('Adresse'))
    nif = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_("Numéro d'identification fiscale"),
    )
    rc = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Registre de commerce'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Partenaire')
        verbose_name_plural = _('Partenaires')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name
