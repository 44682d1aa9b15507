"""
Custom exceptions for the promotion engine.
"""

from core_backend.exceptions import POSError, ValidationError


class PromotionError(POSError):
    """Base exception for promotion-related errors."""
    pass


class PromotionIneligibleError(PromotionError):
    """Raised when a promotion cannot be used; ``reason`` is the first failing check."""

    def __init__(self, promotion, reason):
        self.promotion = promotion
        self.reason = reason
        super().__init__(reason, details={"promotion_id": promotion.id, "reason": reason})


class PromotionAlreadyAppliedError(PromotionError):
    def __init__(self, order, message=None):
        self.order = order
        if message is None:
            message = (
                f"Order {order.code} already has a promotion applied. "
                "Remove it before applying another one."
            )
        super().__init__(message, details={"order_id": order.id, "promotion_id": order.promotion_id})


class PromotionNotAppliedError(PromotionError):
    def __init__(self, order, promotion_id, message=None):
        self.order = order
        self.promotion_id = promotion_id
        if message is None:
            message = f"Promotion {promotion_id} is not applied to order {order.code}"
        super().__init__(message, details={"order_id": order.id, "promotion_id": promotion_id})


class InsufficientGiftConditionError(PromotionError):
    """Raised when none of the gift policies is satisfied by the order."""

    def __init__(self, promotion, message=None):
        self.promotion = promotion
        if message is None:
            message = f"Order does not meet the conditions to receive gifts from '{promotion.name}'"
        super().__init__(message, details={"promotion_id": promotion.id})


class PromotionConfigurationError(ValidationError):
    """Raised when a stored promotion cannot be turned into a usable rule."""

    def __init__(self, promotion, problem):
        self.promotion = promotion
        super().__init__(
            f"Promotion '{promotion.code}' is misconfigured: {problem}",
            details={"promotion_id": promotion.id},
        )


class InvalidGiftSelectionError(ValidationError):
    """Raised when caller-selected gifts do not match the promotion's gift rules."""
    pass
