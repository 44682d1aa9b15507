from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from django.db import transaction
from django.utils import timezone

from catalog.services import CatalogService
from core_backend.exceptions import ResourceNotFoundError
from core_backend.utils.money import ZERO
from .eligibility import EligibilityContext, PromotionEligibilityEvaluator
from .exceptions import (
    InsufficientGiftConditionError,
    InvalidGiftSelectionError,
    PromotionConfigurationError,
    PromotionAlreadyAppliedError,
    PromotionIneligibleError,
    PromotionNotAppliedError,
)
from .factories import PromotionStrategyFactory
from .models import Promotion
from .rules import build_rule
from .scope import resolve_applicable_subset
from .usage import PromotionUsageService

logger = logging.getLogger(__name__)

NO_APPLICABLE_ITEMS = "Order has no items this promotion applies to"


@dataclass
class PromotionApplication:
    promotion: Promotion
    discount_amount: Decimal
    applicable_subtotal: Decimal
    final_price: Decimal
    total_amount: Decimal
    gift_count: int = 0
    gift_items: List = field(default_factory=list)


@dataclass(frozen=True)
class PromotionAvailability:
    promotion: Promotion
    can_apply: bool
    reason: Optional[str] = None


class PromotionEngine:
    """
    Applies and reverses promotions on orders.

    The ``*_aggregate`` variants work on an ``OrderAggregate`` the caller has
    already loaded and locked, so the order lifecycle can combine them with
    other changes in one transaction. The plain variants open their own.
    """

    def __init__(self, evaluator=None, usage_store=PromotionUsageService):
        self.usage_store = usage_store
        self.evaluator = evaluator or PromotionEligibilityEvaluator(usage_store)

    @staticmethod
    def get_promotion(promotion_id, lock: bool = False) -> Promotion:
        queryset = Promotion.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=promotion_id)
        except Promotion.DoesNotExist:
            raise ResourceNotFoundError("Promotion", promotion_id)

    @staticmethod
    def build_context(order, now=None) -> EligibilityContext:
        return EligibilityContext.for_customer(order.customer, order.total_amount, now=now)

    # -- apply -------------------------------------------------------------

    def apply(self, promotion_id, order_id, selected_gifts=None) -> PromotionApplication:
        # Import here to avoid circular imports
        from orders.aggregate import OrderAggregate

        with transaction.atomic():
            aggregate = OrderAggregate.load(order_id, lock=True)
            return self.apply_to_aggregate(aggregate, promotion_id, selected_gifts)

    def apply_to_aggregate(self, aggregate, promotion_id, selected_gifts=None) -> PromotionApplication:
        aggregate.ensure_open()
        order = aggregate.order
        if order.promotion_id:
            raise PromotionAlreadyAppliedError(order)

        promotion = self.get_promotion(promotion_id, lock=True)
        rule = build_rule(promotion)

        result = self.evaluator.evaluate(rule, self.build_context(order))
        if not result.eligible:
            raise PromotionIneligibleError(promotion, result.reason)

        subset = resolve_applicable_subset(rule, aggregate.lines())
        strategy = PromotionStrategyFactory.get_strategy(rule)
        if subset.is_empty and strategy.requires_subset(rule):
            raise PromotionIneligibleError(promotion, NO_APPLICABLE_ITEMS)

        outcome = strategy.calculate(promotion, rule, subset, order.subtotal)

        gift_rows = []
        if rule.is_gift:
            gifts = self._choose_gifts(promotion, rule.config.gift_item_ids, outcome.gift_count, selected_gifts)
            gift_rows = self._attach_gifts(aggregate, gifts)

        order.promotion = promotion
        order.discount_amount = outcome.discount_amount
        aggregate.recompute_totals()

        if order.customer_id:
            self.usage_store.record_usage(promotion.id, order.customer_id, order.id)
        self.usage_store.increment_counter(promotion.id)

        logger.info(
            f"Applied promotion {promotion.code} to order {order.code}: "
            f"discount {outcome.discount_amount}, gifts {outcome.gift_count}"
        )
        return PromotionApplication(
            promotion=promotion,
            discount_amount=outcome.discount_amount,
            applicable_subtotal=outcome.applicable_subtotal,
            final_price=outcome.final_price,
            total_amount=order.total_amount,
            gift_count=outcome.gift_count,
            gift_items=gift_rows,
        )

    @staticmethod
    def _choose_gifts(promotion, gift_item_ids, gift_count, selected_gifts) -> Dict[int, int]:
        """Validated item id -> quantity for the gifts to attach."""
        if selected_gifts:
            chosen: Dict[int, int] = {}
            for gift in selected_gifts:
                item_id = int(gift["item_id"])
                quantity = int(gift["quantity"])
                if item_id not in gift_item_ids:
                    raise InvalidGiftSelectionError(
                        f"Item {item_id} is not a gift of promotion '{promotion.name}'",
                        details={"item_id": item_id},
                    )
                if quantity <= 0:
                    raise InvalidGiftSelectionError(
                        "Gift quantity must be at least 1", details={"item_id": item_id}
                    )
                chosen[item_id] = chosen.get(item_id, 0) + quantity

            selected = sum(chosen.values())
            if selected != gift_count:
                raise InvalidGiftSelectionError(
                    f"Exactly {gift_count} gifts must be selected, got {selected}",
                    details={"gift_count": gift_count, "selected": selected},
                )
            return chosen

        if not gift_item_ids:
            raise InvalidGiftSelectionError(
                f"Promotion '{promotion.name}' has no gift items configured",
                details={"promotion_id": promotion.id},
            )
        # Auto-selection walks the gift list in order, one unit at a time
        chosen = {}
        for index in range(gift_count):
            item_id = gift_item_ids[index % len(gift_item_ids)]
            chosen[item_id] = chosen.get(item_id, 0) + 1
        return chosen

    @staticmethod
    def _attach_gifts(aggregate, gifts: Dict[int, int]):
        catalog = CatalogService.get_items(gifts.keys())
        rows = []
        for item_id, quantity in gifts.items():
            catalog_item = catalog.get(item_id)
            if catalog_item is None:
                raise ResourceNotFoundError("Item", item_id)
            rows.append(
                aggregate.add_line(
                    item=catalog_item,
                    name=f"{catalog_item.name} (Gift)",
                    quantity=quantity,
                    unit_price=ZERO,
                    is_gift=True,
                )
            )
        return rows

    # -- unapply -----------------------------------------------------------

    def unapply(self, promotion_id, order_id):
        from orders.aggregate import OrderAggregate

        with transaction.atomic():
            aggregate = OrderAggregate.load(order_id, lock=True)
            return self.unapply_from_aggregate(aggregate, promotion_id)

    def unapply_from_aggregate(self, aggregate, promotion_id=None):
        """
        Reverse the promotion on the order. ``promotion_id`` must match the
        applied one when given.
        """
        from orders.models import OrderItem

        aggregate.ensure_open()
        order = aggregate.order
        if not order.promotion_id or (
            promotion_id is not None and int(promotion_id) != order.promotion_id
        ):
            raise PromotionNotAppliedError(order, promotion_id)

        promotion = self.get_promotion(order.promotion_id, lock=True)
        self.usage_store.delete_usage(promotion.id, order.id)
        self.usage_store.decrement_counter(promotion.id)

        now = timezone.now()
        for line in aggregate.gift_lines():
            # Gifts already sent to the kitchen stay on the order
            if line.status == OrderItem.ItemStatus.PENDING:
                line.status = OrderItem.ItemStatus.CANCELED
                line.cancel_reason = f"Promotion {promotion.code} removed"
                line.canceled_at = now
                line.save(update_fields=["status", "cancel_reason", "canceled_at", "updated_at"])

        order.promotion = None
        order.discount_amount = ZERO
        aggregate.recompute_totals()
        logger.info(f"Removed promotion {promotion.code} from order {order.code}")
        return order

    # -- maintenance -------------------------------------------------------

    def refresh_discount(self, aggregate) -> Decimal:
        """
        Recompute the monetary discount of the applied promotion from the
        current lines. Gift promotions keep a zero discount; their gift rows
        are trimmed when the order no longer earns them.
        """
        order = aggregate.order
        if not order.promotion_id:
            return ZERO

        promotion = self.get_promotion(order.promotion_id)
        rule = build_rule(promotion)
        if rule.is_gift:
            self._trim_gifts(aggregate, promotion, rule)
            return order.discount_amount

        subset = resolve_applicable_subset(rule, aggregate.lines())
        if subset.is_empty:
            discount = ZERO
        else:
            strategy = PromotionStrategyFactory.get_strategy(rule)
            discount = strategy.calculate(promotion, rule, subset, order.subtotal).discount_amount

        if discount != order.discount_amount:
            logger.debug(
                f"Discount of order {order.code} refreshed {order.discount_amount} -> {discount}"
            )
            order.discount_amount = discount
        return discount

    def _trim_gifts(self, aggregate, promotion, rule):
        """Cancel pending gift units beyond what the current lines still earn."""
        from orders.models import OrderItem

        order = aggregate.order
        if order.is_closed:
            return

        subset = resolve_applicable_subset(rule, aggregate.lines())
        strategy = PromotionStrategyFactory.get_strategy(rule)
        try:
            earned = strategy.calculate(promotion, rule, subset, order.subtotal).gift_count
        except InsufficientGiftConditionError:
            earned = 0

        live = [line for line in aggregate.gift_lines() if not line.is_canceled]
        excess = sum(line.quantity for line in live) - earned
        if excess <= 0:
            return

        reason = f"Promotion {promotion.code} conditions no longer met"
        for line in reversed(live):
            if excess <= 0:
                break
            if line.status != OrderItem.ItemStatus.PENDING:
                continue
            quantity = min(excess, line.quantity)
            aggregate.reduce_item(line.id, quantity, reason)
            excess -= quantity
            logger.info(f"Canceled {quantity} x {line.name} on order {order.code}: {reason}")

        if excess > 0:
            # Gifts the kitchen already started stay on the order
            logger.warning(
                f"Order {order.code} keeps {excess} gift(s) of promotion {promotion.code} "
                f"beyond what it earns; they are already in production"
            )

    def available_promotions(self, aggregate, now=None) -> List[PromotionAvailability]:
        """Every active promotion, with whether it can be applied to this order and why not."""
        now = now or timezone.now()
        context = self.build_context(aggregate.order, now=now)
        lines = aggregate.lines()

        results = []
        for promotion in Promotion.objects.filter(is_active=True).order_by("id"):
            try:
                rule = build_rule(promotion)
            except PromotionConfigurationError as e:
                results.append(PromotionAvailability(promotion, False, e.message))
                continue
            result = self.evaluator.evaluate(rule, context)
            if not result.eligible:
                results.append(PromotionAvailability(promotion, False, result.reason))
                continue
            strategy = PromotionStrategyFactory.get_strategy(rule)
            if strategy.requires_subset(rule) and resolve_applicable_subset(rule, lines).is_empty:
                results.append(PromotionAvailability(promotion, False, NO_APPLICABLE_ITEMS))
                continue
            results.append(PromotionAvailability(promotion, True))
        return results
