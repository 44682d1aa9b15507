from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from catalog.models import Category, Combo, InventoryItem
from customers.models import Customer, CustomerGroup


class Promotion(models.Model):
    class PromotionType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED_AMOUNT = "fixed_amount", _("Fixed amount")
        FIXED_PRICE = "fixed_price", _("Fixed price")
        GIFT = "gift", _("Gift")

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    promotion_type = models.CharField(max_length=20, choices=PromotionType.choices)

    discount_value = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Percent for PERCENTAGE, amount for FIXED_AMOUNT, unit price for FIXED_PRICE."),
    )
    min_order_value = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    max_discount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Cap on a percentage discount."),
    )

    # Gift promotions
    buy_quantity = models.PositiveIntegerField(null=True, blank=True)
    get_quantity = models.PositiveIntegerField(null=True, blank=True)
    require_same_item = models.BooleanField(
        default=False, help_text=_("Count the buy quantity per item instead of across the order.")
    )
    gift_items = models.ManyToManyField(
        InventoryItem, blank=True, related_name="gift_promotions"
    )

    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)

    max_total_usage = models.PositiveIntegerField(null=True, blank=True)
    max_usage_per_customer = models.PositiveIntegerField(null=True, blank=True)
    current_total_usage = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True, db_index=True)

    # Product scope: items/categories XOR combos
    apply_to_all_items = models.BooleanField(default=False)
    apply_to_all_categories = models.BooleanField(default=False)
    apply_to_all_combos = models.BooleanField(default=False)
    applicable_items = models.ManyToManyField(
        InventoryItem, blank=True, related_name="promotions"
    )
    applicable_categories = models.ManyToManyField(
        Category, blank=True, related_name="promotions"
    )
    applicable_combos = models.ManyToManyField(Combo, blank=True, related_name="promotions")

    # Customer scope
    apply_to_all_customers = models.BooleanField(default=False)
    apply_to_all_customer_groups = models.BooleanField(default=False)
    apply_to_walk_in = models.BooleanField(default=False)
    applicable_customers = models.ManyToManyField(
        Customer, blank=True, related_name="promotions"
    )
    applicable_customer_groups = models.ManyToManyField(
        CustomerGroup, blank=True, related_name="promotions"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "start_date", "end_date"]),
            models.Index(fields=["promotion_type"]),
        ]

    def __str__(self):
        return f"{self.code} - {self.name} ({self.get_promotion_type_display()})"

    def is_currently_active(self, now=None):
        now = now or timezone.now()
        if not self.is_active:
            return False
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True

    def clean(self):
        super().clean()
        errors = {}

        if self.start_date and self.end_date and self.start_date > self.end_date:
            errors["end_date"] = "End date must be after the start date."

        if self.promotion_type in (
            self.PromotionType.PERCENTAGE,
            self.PromotionType.FIXED_AMOUNT,
            self.PromotionType.FIXED_PRICE,
        ):
            if self.discount_value is None or self.discount_value <= 0:
                errors["discount_value"] = "Discount value must be greater than zero."
            elif self.promotion_type == self.PromotionType.PERCENTAGE and self.discount_value > 100:
                errors["discount_value"] = "Percentage discount cannot exceed 100%."

        if self.promotion_type == self.PromotionType.GIFT:
            if not self.min_order_value and not self.buy_quantity:
                errors["buy_quantity"] = "A gift promotion needs a minimum order value, a buy quantity, or both."

        item_scope = self.apply_to_all_items or self.apply_to_all_categories
        if self.pk:
            item_scope = item_scope or self.applicable_items.exists() or self.applicable_categories.exists()
            combo_scope = self.apply_to_all_combos or self.applicable_combos.exists()
        else:
            combo_scope = self.apply_to_all_combos
        if item_scope and combo_scope:
            errors["apply_to_all_combos"] = "A promotion applies either to items/categories or to combos, not both."

        if errors:
            raise ValidationError(errors)


class PromotionUsage(models.Model):
    """One use of a promotion by a known customer. Walk-in uses are not recorded."""

    promotion = models.ForeignKey(Promotion, on_delete=models.CASCADE, related_name="usages")
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="promotion_usages")
    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="promotion_usages"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["promotion", "customer"]),
        ]
        constraints = [
            models.UniqueConstraint(fields=["promotion", "order"], name="unique_promotion_usage_per_order"),
        ]

    def __str__(self):
        return f"{self.promotion.code} used by {self.customer_id} on order {self.order_id}"
