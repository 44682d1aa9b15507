from django.contrib import admin

from .models import Promotion, PromotionUsage


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "promotion_type",
        "discount_value",
        "is_active",
        "start_date",
        "end_date",
        "current_total_usage",
    )
    list_filter = ("promotion_type", "is_active")
    search_fields = ("code", "name")
    readonly_fields = ("current_total_usage", "created_at", "updated_at")
    filter_horizontal = (
        "gift_items",
        "applicable_items",
        "applicable_categories",
        "applicable_combos",
        "applicable_customers",
        "applicable_customer_groups",
    )
    fieldsets = (
        (None, {"fields": ("code", "name", "description", "promotion_type", "is_active")}),
        ("Value", {"fields": ("discount_value", "max_discount", "min_order_value")}),
        ("Gifts", {"fields": ("buy_quantity", "get_quantity", "require_same_item", "gift_items")}),
        ("Schedule and limits", {
            "fields": ("start_date", "end_date", "max_total_usage", "max_usage_per_customer", "current_total_usage"),
        }),
        ("Products", {
            "fields": (
                "apply_to_all_items",
                "apply_to_all_categories",
                "applicable_items",
                "applicable_categories",
                "apply_to_all_combos",
                "applicable_combos",
            ),
        }),
        ("Customers", {
            "fields": (
                "apply_to_all_customers",
                "apply_to_all_customer_groups",
                "apply_to_walk_in",
                "applicable_customers",
                "applicable_customer_groups",
            ),
        }),
    )


@admin.register(PromotionUsage)
class PromotionUsageAdmin(admin.ModelAdmin):
    list_display = ("promotion", "customer", "order", "created_at")
    list_filter = ("promotion",)
    readonly_fields = ("promotion", "customer", "order", "created_at")
