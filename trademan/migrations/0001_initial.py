"""
Initial migration for Trademan models.
"""

from decimal import Decimal
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Trademan models: catalog, ledger, delivery notes, cancellations, invoices."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=200, verbose_name='Désignation')),
                ('description', models.TextField(blank=True, default='')),
                ('unit_of_measure', models.CharField(default='u', max_length=20, verbose_name='Unité')),
                ('purchase_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=15, verbose_name="Prix d'achat")),
                ('sale_price_local', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=15, verbose_name='Prix de vente local')),
                ('sale_price_export', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True, verbose_name='Prix de vente export')),
                ('tax_rate', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5, verbose_name='Taux TVA (%)')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Actif')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Produit',
                'verbose_name_plural': 'Produits',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Partner',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='Nom / Raison sociale')),
                ('kind', models.CharField(choices=[('client', 'Client'), ('supplier', 'Fournisseur')], default='client', max_length=20, verbose_name='Type')),
                ('phone', models.CharField(blank=True, default='', max_length=50, verbose_name='Téléphone')),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('address', models.TextField(blank=True, default='', verbose_name='Adresse')),
                ('nif', models.CharField(blank=True, default='', max_length=50, verbose_name="Numéro d'identification fiscale")),
                ('rc', models.CharField(blank=True, default='', max_length=50, verbose_name='Registre de commerce')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Partenaire',
                'verbose_name_plural': 'Partenaires',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='DeliveryNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(max_length=50, unique=True, verbose_name='Numéro')),
                ('note_type', models.CharField(choices=[('local', 'Local'), ('export', 'Export')], max_length=10, verbose_name='Type')),
                ('note_date', models.DateField(verbose_name='Date')),
                ('status', models.CharField(choices=[('active', 'Actif'), ('cancelled', 'Annulé')], db_index=True, default='active', max_length=20, verbose_name='Statut')),
                ('currency', models.CharField(default='DZD', max_length=3, verbose_name='Devise')),
                ('destination_country', models.CharField(blank=True, default='', max_length=100, verbose_name='Pays de destination')),
                ('delivery_location', models.CharField(blank=True, default='', max_length=200, verbose_name='Lieu de livraison')),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='delivery_notes', to='trademan.partner', verbose_name='Client')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Créé par')),
            ],
            options={
                'verbose_name': 'Bon de livraison',
                'verbose_name_plural': 'Bons de livraison',
                'ordering': ['-note_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='DeliveryNoteItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=15, verbose_name='Quantité')),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='Prix unitaire')),
                ('discount_percent', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5, verbose_name='Remise (%)')),
                ('line_total', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='Total ligne')),
                ('delivery_note', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='trademan.deliverynote', verbose_name='Bon de livraison')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='trademan.product', verbose_name='Produit')),
            ],
            options={
                'verbose_name': 'Ligne de bon de livraison',
                'verbose_name_plural': 'Lignes de bon de livraison',
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='DeliveryNoteCancellation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(max_length=50, unique=True, verbose_name='Numéro')),
                ('cancellation_date', models.DateField(verbose_name="Date d'annulation")),
                ('reason', models.TextField(blank=True, default='', verbose_name='Motif')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('delivery_note', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='cancellations', to='trademan.deliverynote', verbose_name="Bon de livraison d'origine")),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Créé par')),
            ],
            options={
                'verbose_name': 'Annulation de bon de livraison',
                'verbose_name_plural': 'Annulations de bons de livraison',
                'ordering': ['-cancellation_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='DeliveryNoteCancellationItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=15)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=15)),
                ('discount_percent', models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ('line_total', models.DecimalField(decimal_places=2, max_digits=15)),
                ('cancellation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='trademan.deliverynotecancellation')),
                ('delivery_note_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='cancellation_items', to='trademan.deliverynoteitem')),
            ],
            options={
                'verbose_name': "Ligne d'annulation",
                'verbose_name_plural': "Lignes d'annulation",
                'constraints': [models.UniqueConstraint(fields=('cancellation', 'delivery_note_item'), name='unique_cancellation_item')],
            },
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(max_length=50, unique=True, verbose_name='Numéro')),
                ('invoice_type', models.CharField(choices=[('delivery_note_invoice', 'Facture de bon de livraison'), ('sale_invoice', 'Facture de vente'), ('sale_local', 'Vente locale'), ('sale_export', 'Vente export'), ('proforma', 'Proforma'), ('purchase', 'Achat')], max_length=30, verbose_name='Type')),
                ('invoice_date', models.DateField(db_index=True, verbose_name='Date')),
                ('due_date', models.DateField(blank=True, null=True, verbose_name="Date d'échéance")),
                ('currency', models.CharField(default='DZD', max_length=3, verbose_name='Devise')),
                ('destination_country', models.CharField(blank=True, default='', max_length=100)),
                ('delivery_location', models.CharField(blank=True, default='', max_length=200)),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=15, verbose_name='Total HT')),
                ('tax_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=15, verbose_name='TVA')),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=15, verbose_name='Total TTC')),
                ('payment_status', models.CharField(choices=[('unpaid', 'Non payée'), ('partially_paid', 'Partiellement payée'), ('paid', 'Payée')], default='unpaid', max_length=20, verbose_name='Paiement')),
                ('status', models.CharField(choices=[('active', 'Actif'), ('cancelled', 'Annulé')], default='active', max_length=20, verbose_name='Statut')),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='trademan.partner', verbose_name='Client')),
                ('delivery_note', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='invoices', to='trademan.deliverynote', verbose_name='Bon de livraison')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Créé par')),
            ],
            options={
                'verbose_name': 'Facture',
                'verbose_name_plural': 'Factures',
                'ordering': ['-invoice_date', '-created_at'],
                'indexes': [models.Index(fields=['payment_status', 'status'], name='idx_invoice_status')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status', 'active')), fields=('delivery_note', 'invoice_type'), name='unique_active_invoice_per_note_type')],
            },
        ),
        migrations.CreateModel(
            name='InvoiceItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=15)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=15)),
                ('discount_percent', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('tax_rate', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('line_subtotal', models.DecimalField(decimal_places=2, max_digits=15)),
                ('line_tax', models.DecimalField(decimal_places=2, max_digits=15)),
                ('line_total', models.DecimalField(decimal_places=2, max_digits=15)),
                ('invoice', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='trademan.invoice')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='trademan.product')),
            ],
            options={
                'verbose_name': 'Ligne de facture',
                'verbose_name_plural': 'Lignes de facture',
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='StockSnapshot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_available', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=15, verbose_name='Quantité disponible')),
                ('average_cost', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=15, verbose_name='Coût moyen pondéré')),
                ('last_movement_date', models.DateField(blank=True, null=True, verbose_name='Dernier mouvement')),
                ('last_updated', models.DateTimeField(auto_now=True, verbose_name='Mis à jour')),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='stock', to='trademan.product', verbose_name='Produit')),
            ],
            options={
                'verbose_name': 'Stock actuel',
                'verbose_name_plural': 'Stock actuel',
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity_available__gte', 0)), name='stock_snapshot_quantity_non_negative')],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('movement_type', models.CharField(choices=[('in', 'Entrée'), ('out', 'Sortie'), ('adjustment', 'Ajustement')], max_length=20, verbose_name='Type')),
                ('movement_source', models.CharField(choices=[('purchase', 'Achat'), ('sale_local', 'Vente locale'), ('sale_export', 'Vente export'), ('delivery_note', 'Bon de livraison'), ('adjustment', 'Ajustement'), ('return', 'Retour')], max_length=20, verbose_name='Origine')),
                ('reference_type', models.CharField(blank=True, default='', max_length=50, verbose_name='Type de référence')),
                ('reference_id', models.CharField(blank=True, default='', max_length=64, verbose_name='ID de référence')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=15, verbose_name='Quantité')),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True, verbose_name='Coût unitaire')),
                ('movement_date', models.DateField(db_index=True, verbose_name='Date du mouvement')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stock_movements', to='trademan.product', verbose_name='Produit')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Créé par')),
            ],
            options={
                'verbose_name': 'Mouvement de stock',
                'verbose_name_plural': 'Mouvements de stock',
                'ordering': ['movement_date', 'created_at', 'pk'],
                'indexes': [
                    models.Index(fields=['product', 'movement_date'], name='idx_movement_product_date'),
                    models.Index(fields=['reference_type', 'reference_id'], name='idx_movement_reference'),
                ],
            },
        ),
    ]
