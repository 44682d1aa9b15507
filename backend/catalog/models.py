from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import ArchivableModel


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        ordering = ["name"]

    def __str__(self):
        return self.name


class InventoryItem(ArchivableModel):
    """
    A sellable menu item or a stock ingredient.

    ``avg_unit_cost`` is maintained by the stock-costing side of the system;
    the order engine only reads it.
    """

    class ItemType(models.TextChoices):
        READY_MADE = "ready_made", _("Ready made")
        COMPOSITE = "composite", _("Composite (has recipe)")
        INGREDIENT = "ingredient", _("Ingredient")

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="items",
    )
    item_type = models.CharField(
        max_length=20, choices=ItemType.choices, default=ItemType.READY_MADE
    )
    unit = models.CharField(max_length=50, blank=True)
    selling_price = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    avg_unit_cost = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=0,
        help_text=_("Weighted average cost per unit, maintained by stock costing."),
    )
    is_sellable = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    all_objects = models.Manager()

    class Meta:
        verbose_name = _("Inventory item")
        verbose_name_plural = _("Inventory items")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["category", "is_active"]),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"


class RecipeIngredient(models.Model):
    """One ingredient line of a composite item's recipe."""

    item = models.ForeignKey(
        InventoryItem, on_delete=models.CASCADE, related_name="ingredients"
    )
    ingredient_item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="used_in_recipes"
    )
    quantity = models.DecimalField(max_digits=10, decimal_places=4)
    unit = models.CharField(max_length=50, blank=True)

    class Meta:
        verbose_name = _("Recipe ingredient")
        verbose_name_plural = _("Recipe ingredients")
        unique_together = ("item", "ingredient_item")

    def __str__(self):
        return f"{self.quantity} {self.unit} {self.ingredient_item.name} for {self.item.name}"


class Combo(ArchivableModel):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    combo_price = models.DecimalField(max_digits=14, decimal_places=2)
    original_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Informational sum of member prices shown on menus."),
    )
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    all_objects = models.Manager()

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def is_currently_active(self, now=None):
        now = now or timezone.now()
        if not self.is_active:
            return False
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True


class ComboGroup(models.Model):
    """A choice slot inside a combo, e.g. 'Main' or 'Drink'."""

    combo = models.ForeignKey(Combo, on_delete=models.CASCADE, related_name="groups")
    name = models.CharField(max_length=100)
    min_choices = models.PositiveIntegerField(default=1)
    max_choices = models.PositiveIntegerField(default=1)
    is_required = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["combo", "sort_order", "id"]

    def __str__(self):
        return f"{self.combo.name} / {self.name}"


class ComboItem(models.Model):
    group = models.ForeignKey(ComboGroup, on_delete=models.CASCADE, related_name="items")
    item = models.ForeignKey(
        InventoryItem, on_delete=models.PROTECT, related_name="combo_memberships"
    )
    extra_price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=0,
        help_text=_("Upgrade surcharge added on top of the pro-rated price."),
    )

    class Meta:
        unique_together = ("group", "item")

    def __str__(self):
        return f"{self.item.name} in {self.group}"
