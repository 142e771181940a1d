"""Admin registration for cart models.

Totals are derived; saving a cart from the admin (for instance after changing
its discount) recomputes them from the lines.
"""

from django.contrib import admin, messages
from django.db import transaction

from .models import Cart, CartItem
from .services import clear_cart, refresh_totals


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    fields = ("product", "product_name", "unit_price", "quantity", "subtotal", "updated_at")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "total_items", "total_price", "discount", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("user__username", "user__email")
    ordering = ("-updated_at",)
    readonly_fields = ("total_items", "subtotal", "discount_amount", "total_price", "created_at", "updated_at")
    inlines = [CartItemInline]
    list_select_related = ("user",)
    raw_id_fields = ("user",)
    actions = ["action_clear_cart"]

    def save_model(self, request, obj, form, change):
        with transaction.atomic():
            super().save_model(request, obj, form, change)
            refresh_totals(obj)

    @admin.action(description="Clear cart (remove lines, deactivate)")
    def action_clear_cart(self, request, queryset):
        cleared = 0
        for cart in queryset.filter(is_active=True).select_related("user"):
            clear_cart(user=cart.user)
            cleared += 1
        messages.success(request, f"Cleared {cleared} cart(s).")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    """Read-only; lines change only through the cart API so totals stay in step."""

    list_display = ("id", "cart", "product", "quantity", "unit_price", "subtotal", "updated_at")
    search_fields = ("product__sku", "product_name", "cart__user__email")
    ordering = ("id",)
    readonly_fields = (
        "cart",
        "product",
        "product_name",
        "product_image",
        "unit_price",
        "quantity",
        "subtotal",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
