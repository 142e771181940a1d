"""Admin registration for catalog models."""

from django.contrib import admin

from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "price", "discount_price", "stock", "is_active")
    search_fields = ("name", "slug", "sku")
    list_filter = ("is_active",)
    prepopulated_fields = {"slug": ("name",)}

    def get_readonly_fields(self, request, obj=None):
        # Opening stock is set on creation; afterwards only the inventory ledger moves it.
        if obj is not None:
            return ("stock", "created_at", "updated_at")
        return ("created_at", "updated_at")
