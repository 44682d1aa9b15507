from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
import logging

from core_backend.utils.money import ZERO
from orders import calculators
from .exceptions import InsufficientGiftConditionError
from .rules import PromotionRule
from .scope import ApplicableSubset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromotionOutcome:
    discount_amount: Decimal = ZERO
    applicable_subtotal: Decimal = ZERO
    final_price: Decimal = ZERO
    gift_count: int = 0


class PromotionStrategy(ABC):
    """The interface for a promotion calculation."""

    def requires_subset(self, rule: PromotionRule) -> bool:
        return True

    @abstractmethod
    def calculate(
        self, promotion, rule: PromotionRule, subset: ApplicableSubset, order_total: Decimal
    ) -> PromotionOutcome:
        pass


class PercentageStrategy(PromotionStrategy):
    """Percentage of the applicable subtotal, capped by ``max_discount``."""

    def calculate(self, promotion, rule, subset, order_total):
        subtotal = subset.subtotal
        discount = calculators.percentage_discount(
            subtotal, rule.config.percent, rule.config.max_discount
        )
        return PromotionOutcome(
            discount_amount=discount,
            applicable_subtotal=subtotal,
            final_price=subtotal - discount,
        )


class FixedAmountStrategy(PromotionStrategy):
    """A flat amount off, never more than the applicable subtotal."""

    def calculate(self, promotion, rule, subset, order_total):
        subtotal = subset.subtotal
        discount = calculators.fixed_amount_discount(subtotal, rule.config.amount)
        return PromotionOutcome(
            discount_amount=discount,
            applicable_subtotal=subtotal,
            final_price=subtotal - discount,
        )


class FixedPriceStrategy(PromotionStrategy):
    """Every applicable unit (or combo) sells at one fixed price."""

    def calculate(self, promotion, rule, subset, order_total):
        subtotal = subset.subtotal
        quantity = subset.quantity
        final_price = calculators.fixed_price_final(rule.config.unit_price, quantity)
        discount = calculators.fixed_price_discount(subtotal, rule.config.unit_price, quantity)
        logger.debug(
            f"Fixed price {rule.config.unit_price} x {quantity} against subtotal {subtotal}"
        )
        return PromotionOutcome(
            discount_amount=discount,
            applicable_subtotal=subtotal,
            final_price=final_price,
        )


class GiftStrategy(PromotionStrategy):
    """Free items instead of a monetary discount."""

    def requires_subset(self, rule):
        # Order-value-only gifts do not depend on which items were bought
        return bool(rule.config.buy_quantity)

    def calculate(self, promotion, rule, subset, order_total):
        config = rule.config
        if config.require_same_item:
            quantities = subset.quantities_per_item()
        else:
            quantities = [subset.quantity]

        count = calculators.gift_count(
            order_total=order_total,
            quantities=quantities,
            min_order_value=config.min_order_value,
            buy_quantity=config.buy_quantity,
            get_quantity=config.get_quantity,
            require_same_item=config.require_same_item,
        )
        if count <= 0:
            raise InsufficientGiftConditionError(promotion)

        return PromotionOutcome(
            discount_amount=ZERO,
            applicable_subtotal=subset.subtotal,
            final_price=subset.subtotal,
            gift_count=count,
        )
