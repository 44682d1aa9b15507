from decimal import Decimal
from typing import Optional
import logging

from django.db import transaction

from core_backend.exceptions import ResourceNotFoundError, ValidationError
from .models import FinanceCategory, FinanceTransaction

logger = logging.getLogger(__name__)


class LedgerService:
    """Posting and reversal of finance ledger entries."""

    @staticmethod
    def get_default_category(name: str, category_type: str) -> FinanceCategory:
        """Return the system category with this name, creating it on first use."""
        category, created = FinanceCategory.objects.get_or_create(
            name=name,
            type=category_type,
            defaults={"is_system": True},
        )
        if created:
            logger.info(f"Created default finance category '{name}' ({category_type})")
        return category

    @staticmethod
    @transaction.atomic
    def post_transaction(
        *,
        category: FinanceCategory,
        amount: Decimal,
        direction: str,
        payment_method: str = FinanceTransaction.PaymentMethod.CASH,
        reference_type: str = "",
        reference_id="",
        notes: str = "",
        created_by=None,
    ) -> FinanceTransaction:
        if amount <= 0:
            raise ValidationError(
                "Ledger amount must be positive", details={"amount": str(amount)}
            )
        if category.type != direction:
            raise ValidationError(
                f"Category '{category.name}' cannot hold {direction} entries",
                details={"category_id": category.id, "direction": direction},
            )

        entry = FinanceTransaction.objects.create(
            category=category,
            amount=amount,
            direction=direction,
            payment_method=payment_method,
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id else "",
            notes=notes,
            created_by=created_by,
        )
        logger.info(
            f"Posted {direction} {entry.code} for {amount} "
            f"(ref {reference_type or '-'}:{reference_id or '-'})"
        )
        return entry

    @staticmethod
    @transaction.atomic
    def cancel_transaction(transaction_id) -> FinanceTransaction:
        try:
            entry = FinanceTransaction.objects.select_for_update().get(pk=transaction_id)
        except FinanceTransaction.DoesNotExist:
            raise ResourceNotFoundError("FinanceTransaction", transaction_id)

        if entry.status == FinanceTransaction.Status.CANCELLED:
            raise ValidationError(f"Transaction {entry.code} is already cancelled")

        entry.status = FinanceTransaction.Status.CANCELLED
        entry.save(update_fields=["status"])
        logger.info(f"Cancelled ledger entry {entry.code}")
        return entry

    @staticmethod
    def entries_for(reference_type: str, reference_id, direction: Optional[str] = None):
        queryset = FinanceTransaction.objects.filter(
            reference_type=reference_type, reference_id=str(reference_id)
        )
        if direction:
            queryset = queryset.filter(direction=direction)
        return queryset
