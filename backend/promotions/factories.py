from .models import Promotion
from .rules import PromotionRule
from .strategies import (
    PromotionStrategy,
    PercentageStrategy,
    FixedAmountStrategy,
    FixedPriceStrategy,
    GiftStrategy,
)


class PromotionStrategyFactory:
    """
    Factory for the calculation strategy of a promotion type.
    """

    _strategies = {
        Promotion.PromotionType.PERCENTAGE: PercentageStrategy,
        Promotion.PromotionType.FIXED_AMOUNT: FixedAmountStrategy,
        Promotion.PromotionType.FIXED_PRICE: FixedPriceStrategy,
        Promotion.PromotionType.GIFT: GiftStrategy,
    }

    @staticmethod
    def get_strategy(rule: PromotionRule) -> PromotionStrategy:
        strategy_class = PromotionStrategyFactory._strategies.get(rule.promotion_type)

        if strategy_class:
            return strategy_class()

        raise NotImplementedError(
            f"No strategy implemented for promotion type '{rule.promotion_type}'"
        )
