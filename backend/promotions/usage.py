from django.db.models import F
import logging

from .models import Promotion, PromotionUsage

logger = logging.getLogger(__name__)


class PromotionUsageService:
    """
    Usage ledger for promotions: per-customer usage records plus the running
    ``current_total_usage`` counter. Callers must hold the promotion row lock
    inside the same transaction when changing either.
    """

    @staticmethod
    def count_usage(promotion_id, customer_id=None) -> int:
        queryset = PromotionUsage.objects.filter(promotion_id=promotion_id)
        if customer_id is not None:
            queryset = queryset.filter(customer_id=customer_id)
        return queryset.count()

    @staticmethod
    def record_usage(promotion_id, customer_id, order_id) -> PromotionUsage:
        return PromotionUsage.objects.create(
            promotion_id=promotion_id, customer_id=customer_id, order_id=order_id
        )

    @staticmethod
    def delete_usage(promotion_id, order_id) -> int:
        deleted, _ = PromotionUsage.objects.filter(
            promotion_id=promotion_id, order_id=order_id
        ).delete()
        return deleted

    @staticmethod
    def increment_counter(promotion_id) -> None:
        Promotion.objects.filter(pk=promotion_id).update(
            current_total_usage=F("current_total_usage") + 1
        )

    @staticmethod
    def decrement_counter(promotion_id) -> None:
        updated = Promotion.objects.filter(
            pk=promotion_id, current_total_usage__gt=0
        ).update(current_total_usage=F("current_total_usage") - 1)
        if not updated:
            logger.warning(f"Usage counter of promotion {promotion_id} already at zero")
