"""
Trademan Admin.

Provides views for back-office debugging:
- Product, Partner: list + edit
- StockSnapshot: read-only with "recalculate" action
- StockMovement: read-only audit trail
- DeliveryNote: read-only with cancel/reactivate actions (through trade)
- DeliveryNoteCancellation, Invoice: read-only
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from trademan.models import (
    DeliveryNote,
    DeliveryNoteCancellation,
    DeliveryNoteCancellationItem,
    DeliveryNoteItem,
    DocumentStatus,
    Invoice,
    InvoiceItem,
    Partner,
    Product,
    StockMovement,
    StockSnapshot,
)

logger = logging.getLogger(__name__)


class ReadOnlyMixin:
    """Documents and ledger rows only change through trademan.trade."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# CATALOG
# =========================================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'sale_price_local', 'sale_price_export', 'tax_rate', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Partner)
class PartnerAdmin(admin.ModelAdmin):
    list_display = ['name', 'kind', 'phone', 'email']
    list_filter = ['kind']
    search_fields = ['name', 'nif', 'rc']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# LEDGER (read-only)
# =========================================================================

@admin.register(StockSnapshot)
class StockSnapshotAdmin(ReadOnlyMixin, admin.ModelAdmin):
    """Snapshot admin — read-only. Stock only changes via the ledger."""

    list_display = ['product', 'quantity_available', 'average_cost', 'value_display',
                    'last_movement_date', 'last_updated']
    search_fields = ['product__code', 'product__name']
    ordering = ['product__code']
    actions = ['recalculate_snapshots']

    @admin.display(description=_('Valeur'))
    def value_display(self, obj):
        return obj.stock_value

    @admin.action(description=_('Recalculer depuis les mouvements'))
    def recalculate_snapshots(self, request, queryset):
        changed = 0
        for snapshot in queryset:
            before = snapshot.quantity_available
            if snapshot.recalculate() != before:
                changed += 1
        self.message_user(request, _('{count} stock(s) corrigé(s).').format(count=changed))


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyMixin, admin.ModelAdmin):
    """Movement admin — read-only audit trail."""

    list_display = ['movement_date', 'product', 'movement_type', 'movement_source',
                    'quantity', 'unit_cost', 'reference_type', 'reference_id', 'user']
    list_filter = ['movement_type', 'movement_source', 'movement_date']
    search_fields = ['product__code', 'reference_id', 'notes']
    date_hierarchy = 'movement_date'


# =========================================================================
# DOCUMENTS
# =========================================================================

class DeliveryNoteItemInline(ReadOnlyMixin, admin.TabularInline):
    model = DeliveryNoteItem
    fields = ['product', 'quantity', 'unit_price', 'discount_percent', 'line_total']
    readonly_fields = fields
    extra = 0


@admin.register(DeliveryNote)
class DeliveryNoteAdmin(ReadOnlyMixin, admin.ModelAdmin):
    list_display = ['number', 'note_type', 'client', 'note_date', 'status', 'currency']
    list_filter = ['status', 'note_type', 'note_date']
    search_fields = ['number', 'client__name']
    date_hierarchy = 'note_date'
    inlines = [DeliveryNoteItemInline]
    actions = ['cancel_notes', 'reactivate_notes']

    def _set_status(self, request, queryset, status):
        from trademan import trade

        done = 0
        for note in queryset:
            result = trade.set_delivery_note_status(note, status, user=request.user)
            if result.ok:
                done += 1
            else:
                logger.warning("admin.set_status failed for %s: %s", note.number, result.error)
                self.message_user(request, f"{note.number}: {result.error['message']}", level='error')
        return done

    @admin.action(description=_('Annuler les bons sélectionnés'))
    def cancel_notes(self, request, queryset):
        done = self._set_status(request, queryset, DocumentStatus.CANCELLED)
        self.message_user(request, _('{count} bon(s) annulé(s).').format(count=done))

    @admin.action(description=_('Réactiver les bons sélectionnés'))
    def reactivate_notes(self, request, queryset):
        done = self._set_status(request, queryset, DocumentStatus.ACTIVE)
        self.message_user(request, _('{count} bon(s) réactivé(s).').format(count=done))


class CancellationItemInline(ReadOnlyMixin, admin.TabularInline):
    model = DeliveryNoteCancellationItem
    fields = ['delivery_note_item', 'quantity', 'unit_price', 'discount_percent', 'line_total']
    readonly_fields = fields
    extra = 0


@admin.register(DeliveryNoteCancellation)
class DeliveryNoteCancellationAdmin(ReadOnlyMixin, admin.ModelAdmin):
    list_display = ['number', 'delivery_note', 'cancellation_date', 'user']
    search_fields = ['number', 'delivery_note__number']
    inlines = [CancellationItemInline]


class InvoiceItemInline(ReadOnlyMixin, admin.TabularInline):
    model = InvoiceItem
    fields = ['product', 'quantity', 'unit_price', 'discount_percent', 'tax_rate',
              'line_subtotal', 'line_tax', 'line_total']
    readonly_fields = fields
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyMixin, admin.ModelAdmin):
    list_display = ['number', 'invoice_type', 'client', 'invoice_date', 'due_date',
                    'total_amount', 'payment_status', 'status']
    list_filter = ['invoice_type', 'status', 'payment_status']
    search_fields = ['number', 'client__name', 'delivery_note__number']
    date_hierarchy = 'invoice_date'
    inlines = [InvoiceItemInline]
