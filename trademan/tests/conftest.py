"""
Pytest fixtures for Trademan tests.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from trademan.adapters import reset_adapters
from trademan.models import Partner, PartnerKind, Product
from trademan.services.ledger import StockLedger


User = get_user_model()


@pytest.fixture(autouse=True)
def fresh_adapters():
    """Adapters are cached per process; tests may swap them via settings."""
    reset_adapters()
    yield
    reset_adapters()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        password='testpass123'
    )


@pytest.fixture
def client_partner(db):
    """Create a test client."""
    return Partner.objects.create(name='SARL El Baraka', kind=PartnerKind.CLIENT)


@pytest.fixture
def supplier(db):
    """Create a test supplier."""
    return Partner.objects.create(name='Fournisseur Atlas', kind=PartnerKind.SUPPLIER)


@pytest.fixture
def product(db):
    """Create a test product (VAT 19%)."""
    return Product.objects.create(
        code='P-001',
        name='Huile d\'olive 1L',
        purchase_price=Decimal('10.00'),
        sale_price_local=Decimal('15.00'),
        sale_price_export=Decimal('18.00'),
        tax_rate=Decimal('19.00'),
    )


@pytest.fixture
def product_a(db):
    """Create product A (VAT 19%)."""
    return Product.objects.create(
        code='A-001',
        name='Dattes Deglet Nour 5kg',
        sale_price_local=Decimal('100.00'),
        tax_rate=Decimal('19.00'),
    )


@pytest.fixture
def product_b(db):
    """Create product B (no VAT)."""
    return Product.objects.create(
        code='B-001',
        name='Semoule 25kg',
        sale_price_local=Decimal('50.00'),
        tax_rate=Decimal('0'),
    )


@pytest.fixture
def receive():
    """Helper: put stock in through the ledger."""
    def _receive(product, qty, cost='10.00', when=None):
        return StockLedger.apply_in(product, Decimal(str(qty)), Decimal(cost), movement_date=when)
    return _receive


@pytest.fixture
def stocked(product_a, product_b, receive):
    """A at 100 @ 10.00, B at 50 @ 20.00."""
    receive(product_a, 100, '10.00')
    receive(product_b, 50, '20.00')
    return product_a, product_b


@pytest.fixture
def note_date():
    """A fixed note date."""
    return date(2025, 3, 10)
