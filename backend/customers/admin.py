from django.contrib import admin
from .models import Customer, CustomerGroup


@admin.register(CustomerGroup)
class CustomerGroupAdmin(admin.ModelAdmin):
    list_display = ("name", "priority", "min_orders", "min_spend", "window_months", "is_active")
    ordering = ("-priority",)
    readonly_fields = ("archived_at", "archived_by")

    def get_queryset(self, request):
        return self.model.all_objects.all()


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "phone", "group", "total_orders", "total_spent", "last_order_at")
    list_filter = ("group", "is_active")
    search_fields = ("code", "name", "phone")
    readonly_fields = ("total_orders", "total_spent", "last_order_at")
