from decimal import Decimal
from typing import Optional
import logging

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from core_backend.config import app_settings
from core_backend.exceptions import ResourceNotFoundError
from .models import Customer, CustomerGroup

logger = logging.getLogger(__name__)


class CustomerService:
    """Customer stats and membership tier maintenance."""

    @staticmethod
    def get_customer(customer_id, lock: bool = False) -> Customer:
        queryset = Customer.objects.select_related("group")
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=customer_id)
        except Customer.DoesNotExist:
            raise ResourceNotFoundError("Customer", customer_id)

    @staticmethod
    @transaction.atomic
    def increment_stats(customer_id, order_amount: Decimal) -> Customer:
        """Add one completed order of ``order_amount`` to the lifetime stats."""
        updated = Customer.objects.filter(pk=customer_id).update(
            total_orders=F("total_orders") + 1,
            total_spent=F("total_spent") + order_amount,
            last_order_at=timezone.now(),
        )
        if not updated:
            raise ResourceNotFoundError("Customer", customer_id)
        logger.debug(f"Customer {customer_id} stats incremented by {order_amount}")
        return CustomerService.get_customer(customer_id)

    @staticmethod
    def find_eligible_group(total_orders: int, total_spent: Decimal) -> Optional[CustomerGroup]:
        """
        Highest-priority tier whose thresholds are met; falls back to the
        lowest-priority tier. Returns None when no tiers are configured.
        """
        groups = list(CustomerGroup.objects.order_by("-priority", "id"))
        for group in groups:
            if total_orders >= group.min_orders and total_spent >= group.min_spend:
                return group
        return groups[-1] if groups else None

    @staticmethod
    @transaction.atomic
    def reassign_tier(customer_id) -> Customer:
        """
        Recompute the customer's tier from completed orders inside the tier
        window of their current group (or the configured default window).
        """
        # Import here to avoid circular imports
        from orders.models import Order

        customer = CustomerService.get_customer(customer_id, lock=True)
        window_months = (
            customer.group.window_months if customer.group else app_settings.tier_window_months
        )
        window_start = timezone.now() - relativedelta(months=window_months)

        stats = Order.objects.filter(
            customer_id=customer.id,
            status=Order.OrderStatus.COMPLETED,
            created_at__gte=window_start,
        ).aggregate(order_count=Count("id"), spent=Sum("total_amount"))

        total_orders = stats["order_count"] or 0
        total_spent = stats["spent"] or Decimal("0")

        group = CustomerService.find_eligible_group(total_orders, total_spent)
        if group is not None and group.id != customer.group_id:
            previous = customer.group.name if customer.group else None
            customer.group = group
            customer.save(update_fields=["group", "updated_at"])
            logger.info(
                f"Customer {customer.code} moved from tier {previous} to {group.name} "
                f"({total_orders} orders, {total_spent} spent in {window_months} months)"
            )
        return customer
