"""
Allowed status transitions for orders and order items.

Both tables are explicit: a transition is valid only if it is listed here.
"""

from .models import Order, OrderItem

OrderStatus = Order.OrderStatus
ItemStatus = OrderItem.ItemStatus


ORDER_STATUS_TRANSITIONS = {
    # Checkout straight from PENDING dispatches remaining items itself
    OrderStatus.PENDING: [
        OrderStatus.IN_PROGRESS,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.IN_PROGRESS: [
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.COMPLETED: [],
    OrderStatus.CANCELLED: [],
}


ITEM_STATUS_TRANSITIONS = {
    ItemStatus.PENDING: [
        ItemStatus.PREPARING,
        ItemStatus.OUT_OF_STOCK,
        ItemStatus.CANCELED,
    ],
    ItemStatus.PREPARING: [
        ItemStatus.COMPLETED,
        ItemStatus.WAITING_INGREDIENT,
        ItemStatus.OUT_OF_STOCK,
        ItemStatus.CANCELED,
    ],
    ItemStatus.WAITING_INGREDIENT: [
        ItemStatus.PREPARING,
        ItemStatus.CANCELED,
    ],
    ItemStatus.OUT_OF_STOCK: [
        ItemStatus.PREPARING,
        ItemStatus.REPLACED,
        ItemStatus.CANCELED,
    ],
    ItemStatus.COMPLETED: [
        ItemStatus.SERVED,
        ItemStatus.CANCELED,
    ],
    ItemStatus.SERVED: [
        ItemStatus.CANCELED,
    ],
    ItemStatus.CANCELED: [],
    ItemStatus.REPLACED: [],
}

# Statuses in which kitchen resources have already been spent on an item
PRODUCTION_STATUSES = (
    ItemStatus.PREPARING,
    ItemStatus.COMPLETED,
    ItemStatus.SERVED,
)

TERMINAL_ITEM_STATUSES = (ItemStatus.CANCELED, ItemStatus.REPLACED)


def can_transition_order(current, new) -> bool:
    return new in ORDER_STATUS_TRANSITIONS.get(current, [])


def can_transition_item(current, new) -> bool:
    return new in ITEM_STATUS_TRANSITIONS.get(current, [])
