from django.contrib import admin
from .models import Area, Table


@admin.register(Area)
class AreaAdmin(admin.ModelAdmin):
    list_display = ("name",)


@admin.register(Table)
class TableAdmin(admin.ModelAdmin):
    list_display = ("name", "area", "capacity", "status", "is_active")
    list_filter = ("status", "area", "is_active")
    search_fields = ("name",)
    readonly_fields = ("archived_at", "archived_by")

    def get_queryset(self, request):
        return self.model.all_objects.select_related("area")
