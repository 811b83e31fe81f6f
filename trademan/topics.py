"""
Changed topics — which data sets a successful mutation touched.

Every facade mutation returns its topics on the Result and hands them to the
publisher configured in TRADEMAN['TOPIC_PUBLISHER']. The default, SignalPublisher,
sends the ``topics_changed``
signal once the surrounding transaction commits; nothing is sent for a
rolled-back or failed operation.

Usage:
    from django.dispatch import receiver
    from trademan.topics import topics_changed

    @receiver(topics_changed)
    def refresh_caches(sender, topics, **kwargs):
        if 'stock' in topics:
            cache.delete('stock-dashboard')
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger('trademan')

STOCK = 'stock'
STOCK_MOVEMENTS = 'stockMovements'
DELIVERY_NOTES = 'deliveryNotes'
DELIVERY_NOTE_CANCELLATIONS = 'deliveryNoteCancellations'
INVOICES = 'invoices'

ALL_TOPICS = frozenset({
    STOCK,
    STOCK_MOVEMENTS,
    DELIVERY_NOTES,
    DELIVERY_NOTE_CANCELLATIONS,
    INVOICES,
})

# Sent with topics=frozenset[str]
topics_changed = Signal()


class SignalPublisher:
    """Sends topics_changed after commit."""

    def publish(self, topics) -> None:
        topics = frozenset(topics)
        if not topics:
            return
        transaction.on_commit(lambda: self._send(topics))

    def _send(self, topics):
        # fire-and-forget: a failing receiver must not surface to the caller
        responses = topics_changed.send_robust(sender=self.__class__, topics=topics)
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "topics.receiver_failed",
                    extra={"receiver": repr(receiver), "topics": sorted(topics)},
                    exc_info=response,
                )


def publish(topics) -> None:
    """Publish topics through TRADEMAN['TOPIC_PUBLISHER']."""
    from trademan.adapters import get_topic_publisher

    get_topic_publisher().publish(topics)
