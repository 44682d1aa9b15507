from django.contrib import admin
from .models import FinanceCategory, FinanceTransaction


@admin.register(FinanceCategory)
class FinanceCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "is_system")
    list_filter = ("type", "is_system")


@admin.register(FinanceTransaction)
class FinanceTransactionAdmin(admin.ModelAdmin):
    list_display = ("code", "direction", "category", "amount", "status", "reference_type", "reference_id", "transaction_date")
    list_filter = ("direction", "status", "reference_type")
    search_fields = ("code", "reference_id", "notes")
    readonly_fields = ("code", "created_at")
