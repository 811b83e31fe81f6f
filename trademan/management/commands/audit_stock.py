"""
Management command to check stock snapshots against the movement ledger.

Usage:
    python manage.py audit_stock
    python manage.py audit_stock --dry-run
"""

from django.core.management.base import BaseCommand

from trademan.services.queries import StockQueries


class Command(BaseCommand):
    """Audit stock snapshots command."""

    help = 'Vérifie le stock de chaque produit contre ses mouvements'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Affiche les écarts sans les corriger'
        )

    def handle(self, *args, **options):
        drifted = StockQueries.drifted()

        for snapshot, live in drifted:
            self.stdout.write(
                f'{snapshot.product}: {snapshot.quantity_available} → {live}'
            )
            if not options['dry_run']:
                snapshot.recalculate()

        if options['dry_run']:
            self.stdout.write(f'{len(drifted)} écart(s) détecté(s)')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{len(drifted)} stock(s) corrigé(s)')
            )
