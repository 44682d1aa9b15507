"""
Custom exceptions for the order lifecycle.
"""

from core_backend.exceptions import POSError, ValidationError


class OrderError(POSError):
    """Base exception for order lifecycle errors."""
    pass


class OrderClosedError(OrderError):
    """Raised when a COMPLETED or CANCELLED order is mutated."""

    def __init__(self, order, message=None):
        self.order = order
        if message is None:
            message = f"Order {order.code} is {order.status} and can no longer be changed"
        super().__init__(message, details={"order_id": order.id, "status": order.status})


class InvalidStatusTransitionError(OrderError):
    def __init__(self, subject, current, new, message=None):
        self.subject = subject
        self.current = current
        self.new = new
        if message is None:
            message = f"Cannot transition {subject} from '{current}' to '{new}'"
        super().__init__(message, details={"from": current, "to": new})


class ComboMembershipError(ValidationError):
    """Raised when an item is not part of a combo, or the combo cannot be sold."""

    def __init__(self, combo_id, item_id=None, message=None):
        self.combo_id = combo_id
        self.item_id = item_id
        if message is None:
            message = f"Item {item_id} is not part of combo {combo_id}"
        super().__init__(message, details={"combo_id": combo_id, "item_id": item_id})


class InsufficientPaymentError(OrderError):
    def __init__(self, order, paid_amount, message=None):
        self.order = order
        self.paid_amount = paid_amount
        if message is None:
            message = (
                f"Paid amount {paid_amount} is less than the order total {order.total_amount}"
            )
        super().__init__(
            message,
            details={"total_amount": str(order.total_amount), "paid_amount": str(paid_amount)},
        )


class OrderAlreadyPaidError(OrderError):
    def __init__(self, order, message=None):
        self.order = order
        if message is None:
            message = f"Order {order.code} has already been paid"
        super().__init__(message, details={"order_id": order.id})
