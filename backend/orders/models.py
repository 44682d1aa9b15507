from decimal import Decimal
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from catalog.models import Combo, InventoryItem
from customers.models import Customer
from tables.models import Table


class Order(models.Model):
    """
    A dine-in or takeaway order.

    Totals are maintained by the order services:
    ``subtotal`` is the sum of non-canceled item totals and
    ``total_amount == max(0, subtotal - discount_amount)``.
    """

    class OrderStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        IN_PROGRESS = "in_progress", _("In progress")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", _("Unpaid")
        PAID = "paid", _("Paid")

    class PaymentMethod(models.TextChoices):
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        TRANSFER = "transfer", _("Bank transfer")

    code = models.CharField(max_length=20, unique=True, blank=True)
    table = models.ForeignKey(
        Table,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
        help_text=_("Null for takeaway orders."),
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
        help_text=_("Null for walk-in customers."),
    )
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True
    )
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, null=True, blank=True
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    change_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))

    promotion = models.ForeignKey(
        "promotions.Promotion",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["table", "status"]),
            models.Index(fields=["customer", "status", "created_at"]),
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self):
        return self.code or f"Order {self.pk}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if not self.code:
            # Import here so model loading never touches settings
            from core_backend.config import app_settings

            self.code = f"{app_settings.order_code_prefix}{self.pk:0{app_settings.order_code_width}d}"
            super().save(update_fields=["code"])

    @property
    def is_closed(self):
        return self.status in (self.OrderStatus.COMPLETED, self.OrderStatus.CANCELLED)

    @property
    def is_paid(self):
        return self.payment_status == self.PaymentStatus.PAID


class OrderItem(models.Model):
    """
    A line of an order. Toppings are lines whose ``parent_item`` points at the
    line they were attached to; gift lines are zero-priced promotion rewards.
    Canceled lines are kept with their quantity and totals frozen.
    """

    class ItemStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PREPARING = "preparing", _("Preparing")
        WAITING_INGREDIENT = "waiting_ingredient", _("Waiting for ingredient")
        OUT_OF_STOCK = "out_of_stock", _("Out of stock")
        COMPLETED = "completed", _("Completed")
        SERVED = "served", _("Served")
        CANCELED = "canceled", _("Canceled")
        REPLACED = "replaced", _("Replaced")

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    item = models.ForeignKey(
        InventoryItem,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )
    combo = models.ForeignKey(
        Combo,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="order_items",
    )
    parent_item = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="toppings",
    )

    name = models.CharField(max_length=255, help_text=_("Item name at the time of sale."))
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    status = models.CharField(
        max_length=30, choices=ItemStatus.choices, default=ItemStatus.PENDING, db_index=True
    )

    is_topping = models.BooleanField(default=False)
    is_gift = models.BooleanField(default=False)
    customization = models.JSONField(null=True, blank=True)
    notes = models.TextField(blank=True)

    cancel_reason = models.CharField(max_length=255, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["order", "status"]),
            models.Index(fields=["order", "combo"]),
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.name} ({self.get_status_display()})"

    @property
    def is_canceled(self):
        return self.status == self.ItemStatus.CANCELED
