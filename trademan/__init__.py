"""
Django Trademan — delivery notes, invoices and the stock ledger behind them.

Usage:
    from trademan import trade, TradeError

    trade.add_stock_entry([{'product_id': p.pk, 'quantity': 100, 'unit_cost': '10.00'}])
    result = trade.create_delivery_note('local', client, [{'product_id': p.pk, 'quantity': 30, 'unit_price': 15}])
    trade.quantity(p)  # 70
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'trade':
        from trademan.service import Trade
        return Trade
    elif name == 'Result':
        from trademan.results import Result
        return Result
    elif name == 'TradeError':
        from trademan.exceptions import TradeError
        return TradeError
    elif name == 'InsufficientStock':
        from trademan.exceptions import InsufficientStock
        return InsufficientStock
    elif name == 'StockSnapshot':
        from trademan.models.snapshot import StockSnapshot
        return StockSnapshot
    elif name == 'StockMovement':
        from trademan.models.movement import StockMovement
        return StockMovement
    elif name == 'DeliveryNote':
        from trademan.models.delivery_note import DeliveryNote
        return DeliveryNote
    elif name == 'Invoice':
        from trademan.models.invoice import Invoice
        return Invoice
    elif name == 'topics_changed':
        from trademan.topics import topics_changed
        return topics_changed
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'trade',
    'Result',
    'TradeError',
    'InsufficientStock',
    'StockSnapshot',
    'StockMovement',
    'DeliveryNote',
    'Invoice',
    'topics_changed',
]

__version__ = '0.1.0'
