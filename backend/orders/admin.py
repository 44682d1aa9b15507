from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    fk_name = "order"
    extra = 0
    fields = ("name", "quantity", "unit_price", "total_price", "status", "is_topping", "is_gift", "parent_item")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are changed through the order services only; the admin is a
    read-only window on them.
    """

    list_display = (
        "code",
        "table",
        "customer",
        "status",
        "payment_status",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    search_fields = ("code", "customer__name", "customer__phone")
    readonly_fields = (
        "code",
        "subtotal",
        "discount_amount",
        "total_amount",
        "paid_amount",
        "change_amount",
        "promotion",
        "created_at",
        "updated_at",
        "completed_at",
    )
    inlines = [OrderItemInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = ("name", "order", "quantity", "unit_price", "total_price", "status")
    list_filter = ("status", "is_gift", "is_topping")
    search_fields = ("name", "order__code")
    readonly_fields = ("unit_price", "total_price", "canceled_at")
