from django.conf import settings
from django.db import models, transaction, IntegrityError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class FinanceCategory(models.Model):
    class CategoryType(models.TextChoices):
        INCOME = "income", _("Income")
        EXPENSE = "expense", _("Expense")

    name = models.CharField(max_length=100)
    type = models.CharField(max_length=10, choices=CategoryType.choices)
    description = models.TextField(blank=True)
    is_system = models.BooleanField(
        default=False, help_text=_("Created by the engine; cannot be deleted from the UI.")
    )

    class Meta:
        verbose_name_plural = _("Finance categories")
        constraints = [
            models.UniqueConstraint(fields=["name", "type"], name="unique_finance_category_name_type"),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"


class FinanceTransaction(models.Model):
    """
    A ledger entry. Entries are never deleted; cancelling flips ``status``.
    """

    class Direction(models.TextChoices):
        INCOME = "income", _("Income")
        EXPENSE = "expense", _("Expense")

    class Status(models.TextChoices):
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class PaymentMethod(models.TextChoices):
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        BANK = "bank", _("Bank transfer")

    class ReferenceType(models.TextChoices):
        ORDER = "order", _("Order")
        PURCHASE_ORDER = "purchase_order", _("Purchase order")
        PAYROLL = "payroll", _("Payroll")

    code = models.CharField(max_length=20, unique=True)
    category = models.ForeignKey(
        FinanceCategory, on_delete=models.PROTECT, related_name="transactions"
    )
    direction = models.CharField(max_length=10, choices=Direction.choices)
    amount = models.DecimalField(max_digits=16, decimal_places=2)
    payment_method = models.CharField(
        max_length=10, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    reference_type = models.CharField(
        max_length=20, choices=ReferenceType.choices, blank=True, default=""
    )
    reference_id = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.COMPLETED, db_index=True
    )
    notes = models.TextField(blank=True)
    transaction_date = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="finance_transactions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-transaction_date", "-id"]
        indexes = [
            models.Index(fields=["reference_type", "reference_id"]),
            models.Index(fields=["direction", "status", "transaction_date"]),
        ]

    def __str__(self):
        return f"{self.code} {self.direction} {self.amount}"

    def save(self, *args, **kwargs):
        if self.code or not self._state.adding:
            return super().save(*args, **kwargs)

        max_retries = 5
        for _attempt in range(max_retries):
            self.code = self._generate_sequential_code()
            try:
                # Savepoint so a lost race does not poison the outer transaction
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                self.code = ""
                continue
        raise IntegrityError("Failed to generate a unique transaction code after multiple retries.")

    def code_prefix(self) -> str:
        """
        TTHD: order payment, PCHD: expense against an order,
        PCPN: purchase order, PCPL: payroll, PT/PC + TM/NH: manual entries.
        """
        is_income = self.direction == self.Direction.INCOME
        if self.reference_type == self.ReferenceType.ORDER:
            return "TTHD" if is_income else "PCHD"
        if self.reference_type == self.ReferenceType.PURCHASE_ORDER:
            return "PCPN"
        if self.reference_type == self.ReferenceType.PAYROLL:
            return "PCPL"
        method = "NH" if self.payment_method == self.PaymentMethod.BANK else "TM"
        return f"{'PT' if is_income else 'PC'}{method}"

    def _generate_sequential_code(self) -> str:
        prefix = self.code_prefix()
        last = (
            FinanceTransaction.objects.filter(code__startswith=prefix)
            .order_by("-code")
            .values_list("code", flat=True)
            .first()
        )
        next_number = 1
        if last:
            suffix = last[len(prefix):]
            if suffix.isdigit():
                next_number = int(suffix) + 1
        return f"{prefix}{next_number:06d}"
