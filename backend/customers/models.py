from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import ArchivableModel


class CustomerGroup(ArchivableModel):
    """
    A membership tier. Customers are moved between tiers by comparing their
    trailing completed-order stats against ``min_orders`` / ``min_spend``.
    The highest-priority tier whose thresholds are met wins.
    """

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    priority = models.IntegerField(
        default=0, help_text=_("Higher priority tiers are evaluated first.")
    )
    min_orders = models.PositiveIntegerField(default=0)
    min_spend = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    window_months = models.PositiveIntegerField(
        default=12, help_text=_("Trailing window used when computing tier stats.")
    )

    all_objects = models.Manager()

    class Meta:
        ordering = ["-priority", "name"]

    def __str__(self):
        return self.name


class Customer(models.Model):
    code = models.CharField(max_length=20, unique=True, blank=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    email = models.EmailField(blank=True)
    group = models.ForeignKey(
        CustomerGroup,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customers",
    )

    # Lifetime stats, incremented at checkout
    total_orders = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=16, decimal_places=2, default=0)
    last_order_at = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.code} - {self.name}" if self.code else self.name

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if not self.code:
            self.code = f"KH{self.pk:06d}"
            super().save(update_fields=["code"])
