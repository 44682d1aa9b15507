from collections import OrderedDict
import logging

from catalog.services import CatalogService
from core_backend.exceptions import ResourceNotFoundError
from orders.models import Order, OrderItem
from .lifecycle_service import OrderLifecycleManager

logger = logging.getLogger(__name__)

ItemStatus = OrderItem.ItemStatus


class KitchenService:
    """Service for kitchen-related operations - the work queue, recipes, stock-outs."""

    QUEUE_STATUSES = (
        ItemStatus.PREPARING,
        ItemStatus.WAITING_INGREDIENT,
        ItemStatus.OUT_OF_STOCK,
        ItemStatus.COMPLETED,
    )

    @staticmethod
    def kitchen_queue(statuses=None):
        """
        Lines the kitchen still has to deal with, oldest first. Paid orders
        stay in the queue until their items are served.
        """
        statuses = statuses or KitchenService.QUEUE_STATUSES
        return (
            OrderItem.objects.select_related("order", "order__table", "parent_item")
            .filter(status__in=statuses)
            .exclude(order__status=Order.OrderStatus.CANCELLED)
            .order_by("created_at", "id")
        )

    @staticmethod
    def group_by_order(order_items):
        """
        Group queue lines by order code for the kitchen display.
        Expects ``order`` to be select_related by the caller.
        """
        grouped = OrderedDict()
        for item in order_items:
            grouped.setdefault(item.order.code, []).append(item)
        return grouped

    @staticmethod
    def item_recipe(order_item_id):
        """Ingredients needed for one order line, scaled by its quantity."""
        try:
            order_item = OrderItem.objects.get(pk=order_item_id)
        except OrderItem.DoesNotExist:
            raise ResourceNotFoundError("OrderItem", order_item_id)
        if not order_item.item_id:
            return []

        return [
            {
                "ingredient_id": line.ingredient_item_id,
                "ingredient": line.ingredient_item.name,
                "quantity": line.quantity * order_item.quantity,
                "unit": line.unit or line.ingredient_item.unit,
            }
            for line in CatalogService.get_recipe(order_item.item_id)
        ]

    @staticmethod
    def report_out_of_stock(order_id, order_item_id, quantity=None, staff=None):
        logger.warning(f"Kitchen reported order item {order_item_id} out of stock")
        return OrderLifecycleManager.update_item_status(
            order_id,
            order_item_id,
            {"status": ItemStatus.OUT_OF_STOCK, "quantity": quantity},
            staff=staff,
        )
