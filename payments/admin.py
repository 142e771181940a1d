from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "user", "amount", "currency", "status", "gateway_order_id", "created_at")
    list_filter = ("status", "currency", "created_at")
    search_fields = ("gateway_order_id", "gateway_payment_id", "order__order_number", "user__email")
    date_hierarchy = "created_at"
    list_select_related = ("order", "user")
    # Payment state is owned by the verification flow.
    readonly_fields = [field.name for field in Payment._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
