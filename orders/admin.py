from common.exceptions import DomainError
from django.contrib import admin, messages
from inventory.selectors import movements_for_reference

from .models import Order, OrderItem
from .services import cancel_order
from .state import is_terminal


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ("product", "product_name", "unit_price", "quantity", "subtotal")
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "user",
        "order_status",
        "payment_method",
        "payment_status",
        "total_amount",
        "is_active",
        "created_at",
    )
    list_filter = ("order_status", "payment_status", "payment_method", "is_active", "created_at")
    search_fields = ("order_number", "user__email")
    date_hierarchy = "created_at"
    list_select_related = ("user",)
    inlines = [OrderItemInline]
    # Statuses change through the API or the cancel action so side effects run.
    readonly_fields = (
        "order_number",
        "user",
        "subtotal",
        "discount",
        "discount_amount",
        "total_amount",
        "total_items",
        "currency",
        "payment_method",
        "payment_status",
        "order_status",
        "is_active",
        "cancelled_at",
        "cancelled_by",
        "stock_movements",
        "created_at",
        "updated_at",
    )
    actions = ["action_cancel_orders"]

    @admin.display(description="Stock movements")
    def stock_movements(self, obj):
        if obj is None or not obj.order_number:
            return "-"
        lines = [
            f"{m['movement_type']} {m['quantity']:+d} product={m['product_id']} ({m['reason']})"
            for m in movements_for_reference(obj.order_number)
        ]
        return "; ".join(lines) or "-"

    @admin.action(description="Cancel selected orders (restore stock)")
    def action_cancel_orders(self, request, queryset):
        cancelled = 0
        skipped = 0
        for order in queryset:
            if is_terminal(order.order_status):
                skipped += 1
                continue
            try:
                cancel_order(order=order, actor=request.user)
                cancelled += 1
            except DomainError:
                skipped += 1
        if cancelled:
            messages.success(request, f"Cancelled {cancelled} order(s).")
        if skipped:
            messages.warning(request, f"Skipped {skipped} order(s) that can no longer be cancelled.")


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    """Read-only view of order lines; they are a snapshot taken at placement."""

    list_display = ("id", "order", "product", "quantity", "unit_price", "subtotal")
    search_fields = ("order__order_number", "product_name")
    raw_id_fields = ("order", "product")
    readonly_fields = (
        "order",
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
