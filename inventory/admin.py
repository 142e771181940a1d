"""Admin registration for the stock movement audit trail (read-only)."""

from django.contrib import admin

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "movement_type", "quantity", "reason", "reference", "created_at")
    list_filter = ("movement_type", "created_at")
    search_fields = ("reference", "product__sku", "product__name")
    raw_id_fields = ("product",)
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
