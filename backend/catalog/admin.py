from django.contrib import admin
from .models import Category, InventoryItem, RecipeIngredient, Combo, ComboGroup, ComboItem


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    fk_name = "item"
    extra = 0
    autocomplete_fields = ("ingredient_item",)


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "category", "item_type", "selling_price", "avg_unit_cost", "is_active")
    list_filter = ("item_type", "category", "is_active")
    search_fields = ("code", "name")
    readonly_fields = ("archived_at", "archived_by")
    inlines = [RecipeIngredientInline]

    def get_queryset(self, request):
        # Include archived records in admin
        return self.model.all_objects.select_related("category")


class ComboItemInline(admin.TabularInline):
    model = ComboItem
    extra = 0
    autocomplete_fields = ("item",)


@admin.register(ComboGroup)
class ComboGroupAdmin(admin.ModelAdmin):
    list_display = ("name", "combo", "min_choices", "max_choices", "is_required")
    inlines = [ComboItemInline]


class ComboGroupInline(admin.TabularInline):
    model = ComboGroup
    extra = 0
    show_change_link = True


@admin.register(Combo)
class ComboAdmin(admin.ModelAdmin):
    list_display = ("name", "combo_price", "original_price", "is_active", "start_date", "end_date")
    list_filter = ("is_active",)
    search_fields = ("name",)
    readonly_fields = ("archived_at", "archived_by")
    inlines = [ComboGroupInline]

    def get_queryset(self, request):
        return self.model.all_objects.all()
