"""
Typed, validated view of a Promotion row.

A Promotion stores every type's fields side by side. ``build_rule`` turns it
into a ``PromotionRule`` whose ``config`` is exactly one of the per-type
dataclasses below, so the engine switches on ``rule.promotion_type`` and never
on which nullable columns happen to be filled in.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

from .exceptions import PromotionConfigurationError
from .models import Promotion


class ScopeKind(str, Enum):
    ITEM = "item"
    COMBO = "combo"


@dataclass(frozen=True)
class ProductScope:
    kind: ScopeKind
    all_items: bool = False
    all_categories: bool = False
    all_combos: bool = False
    item_ids: FrozenSet[int] = frozenset()
    category_ids: FrozenSet[int] = frozenset()
    combo_ids: FrozenSet[int] = frozenset()

    def covers_item(self, item_id, category_id) -> bool:
        if self.kind != ScopeKind.ITEM:
            return False
        if self.all_items or self.all_categories:
            return True
        if item_id is not None and item_id in self.item_ids:
            return True
        return category_id is not None and category_id in self.category_ids

    def covers_combo(self, combo_id) -> bool:
        if self.kind != ScopeKind.COMBO:
            return False
        return self.all_combos or combo_id in self.combo_ids


@dataclass(frozen=True)
class CustomerScope:
    all_customers: bool = False
    all_groups: bool = False
    walk_in: bool = False
    customer_ids: FrozenSet[int] = frozenset()
    group_ids: FrozenSet[int] = frozenset()

    @property
    def restricts_members(self) -> bool:
        return bool(
            self.all_customers or self.all_groups or self.customer_ids or self.group_ids
        )

    def admits_member(self, customer_id, group_id) -> bool:
        if self.all_customers or self.all_groups:
            return True
        # No member scope configured at all: every member qualifies
        if not self.restricts_members:
            return True
        if customer_id in self.customer_ids:
            return True
        return group_id is not None and group_id in self.group_ids


@dataclass(frozen=True)
class PercentageConfig:
    percent: Decimal
    max_discount: Optional[Decimal] = None


@dataclass(frozen=True)
class FixedAmountConfig:
    amount: Decimal


@dataclass(frozen=True)
class FixedPriceConfig:
    unit_price: Decimal


@dataclass(frozen=True)
class GiftConfig:
    min_order_value: Optional[Decimal]
    buy_quantity: Optional[int]
    get_quantity: int
    require_same_item: bool
    gift_item_ids: Tuple[int, ...] = ()


RuleConfig = Union[PercentageConfig, FixedAmountConfig, FixedPriceConfig, GiftConfig]


@dataclass(frozen=True)
class PromotionRule:
    promotion_id: int
    promotion_type: str
    config: RuleConfig
    product_scope: ProductScope
    customer_scope: CustomerScope
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_order_value: Optional[Decimal] = None
    max_total_usage: Optional[int] = None
    max_usage_per_customer: Optional[int] = None
    current_total_usage: int = 0

    @property
    def is_gift(self) -> bool:
        return self.promotion_type == Promotion.PromotionType.GIFT


def _ids(related_manager) -> FrozenSet[int]:
    return frozenset(related_manager.values_list("id", flat=True))


def build_product_scope(promotion: Promotion) -> ProductScope:
    item_ids = _ids(promotion.applicable_items)
    category_ids = _ids(promotion.applicable_categories)
    combo_ids = _ids(promotion.applicable_combos)

    has_item_scope = promotion.apply_to_all_items or promotion.apply_to_all_categories or item_ids or category_ids
    has_combo_scope = promotion.apply_to_all_combos or combo_ids
    if has_item_scope and has_combo_scope:
        raise PromotionConfigurationError(
            promotion, "item/category scope and combo scope cannot both be set"
        )

    if has_combo_scope:
        return ProductScope(
            kind=ScopeKind.COMBO,
            all_combos=promotion.apply_to_all_combos,
            combo_ids=combo_ids,
        )
    # Default class; with nothing configured it covers no items
    return ProductScope(
        kind=ScopeKind.ITEM,
        all_items=promotion.apply_to_all_items,
        all_categories=promotion.apply_to_all_categories,
        item_ids=item_ids,
        category_ids=category_ids,
    )


def build_customer_scope(promotion: Promotion) -> CustomerScope:
    return CustomerScope(
        all_customers=promotion.apply_to_all_customers,
        all_groups=promotion.apply_to_all_customer_groups,
        walk_in=promotion.apply_to_walk_in,
        customer_ids=_ids(promotion.applicable_customers),
        group_ids=_ids(promotion.applicable_customer_groups),
    )


def build_config(promotion: Promotion) -> RuleConfig:
    kind = promotion.promotion_type
    value = promotion.discount_value

    if kind == Promotion.PromotionType.PERCENTAGE:
        if value is None or value <= 0 or value > 100:
            raise PromotionConfigurationError(promotion, "percentage must be between 0 and 100")
        return PercentageConfig(percent=value, max_discount=promotion.max_discount)

    if kind == Promotion.PromotionType.FIXED_AMOUNT:
        if value is None or value <= 0:
            raise PromotionConfigurationError(promotion, "discount amount must be positive")
        return FixedAmountConfig(amount=value)

    if kind == Promotion.PromotionType.FIXED_PRICE:
        if value is None or value < 0:
            raise PromotionConfigurationError(promotion, "fixed price must not be negative")
        return FixedPriceConfig(unit_price=value)

    if kind == Promotion.PromotionType.GIFT:
        if not promotion.min_order_value and not promotion.buy_quantity:
            raise PromotionConfigurationError(
                promotion, "gift promotions need a minimum order value or a buy quantity"
            )
        gift_ids = tuple(promotion.gift_items.order_by("id").values_list("id", flat=True))
        return GiftConfig(
            min_order_value=promotion.min_order_value or None,
            buy_quantity=promotion.buy_quantity or None,
            get_quantity=promotion.get_quantity or 1,
            require_same_item=promotion.require_same_item,
            gift_item_ids=gift_ids,
        )

    raise PromotionConfigurationError(promotion, f"unknown promotion type '{kind}'")


def build_rule(promotion: Promotion) -> PromotionRule:
    config = build_config(promotion)
    return PromotionRule(
        promotion_id=promotion.id,
        promotion_type=promotion.promotion_type,
        config=config,
        product_scope=build_product_scope(promotion),
        customer_scope=build_customer_scope(promotion),
        is_active=promotion.is_active,
        start_date=promotion.start_date,
        end_date=promotion.end_date,
        min_order_value=promotion.min_order_value,
        max_total_usage=promotion.max_total_usage,
        max_usage_per_customer=promotion.max_usage_per_customer,
        current_total_usage=promotion.current_total_usage,
    )
