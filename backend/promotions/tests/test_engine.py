"""
Tests for applying and reversing promotions on orders.
"""
from decimal import Decimal

import pytest

from orders.models import OrderItem
from orders.services import OrderLifecycleManager
from promotions.exceptions import (
    InsufficientGiftConditionError,
    InvalidGiftSelectionError,
    PromotionAlreadyAppliedError,
    PromotionIneligibleError,
    PromotionNotAppliedError,
)
from promotions.models import Promotion, PromotionUsage
from promotions.services import NO_APPLICABLE_ITEMS, PromotionEngine

PromotionType = Promotion.PromotionType


@pytest.fixture
def engine():
    return PromotionEngine()


@pytest.fixture
def coffee_and_fries(make_order, coffee, fries):
    """Walk-in order: 2 x coffee (60,000) + 1 x fries (30,000)"""
    return make_order([(coffee, 2), (fries, 1)])


@pytest.fixture
def drinks_ten_percent(make_promotion, drinks):
    return make_promotion(
        promotion_type=PromotionType.PERCENTAGE,
        discount_value=Decimal("10"),
        applicable_categories=[drinks],
    )


def line_for(order, item):
    return OrderItem.objects.get(order=order, item=item, is_gift=False, status=OrderItem.ItemStatus.PENDING)


@pytest.mark.django_db
class TestApplyDiscount:
    """Monetary promotions"""

    def test_percentage_on_category(self, engine, coffee_and_fries, drinks_ten_percent):
        result = engine.apply(drinks_ten_percent.id, coffee_and_fries.id)

        assert result.applicable_subtotal == Decimal("60000")
        assert result.discount_amount == Decimal("6000")
        coffee_and_fries.refresh_from_db()
        assert coffee_and_fries.promotion_id == drinks_ten_percent.id
        assert coffee_and_fries.subtotal == Decimal("90000")
        assert coffee_and_fries.total_amount == Decimal("84000")

    def test_fixed_amount_limited_to_subset(self, engine, coffee_and_fries, make_promotion, fries):
        promotion = make_promotion(
            promotion_type=PromotionType.FIXED_AMOUNT,
            discount_value=Decimal("50000"),
            applicable_items=[fries],
        )

        result = engine.apply(promotion.id, coffee_and_fries.id)

        assert result.discount_amount == Decimal("30000")
        assert result.total_amount == Decimal("60000")

    def test_apply_to_all_items(self, engine, coffee_and_fries, make_promotion):
        promotion = make_promotion(
            promotion_type=PromotionType.PERCENTAGE,
            discount_value=Decimal("50"),
            max_discount=Decimal("20000"),
            apply_to_all_items=True,
        )

        result = engine.apply(promotion.id, coffee_and_fries.id)

        assert result.discount_amount == Decimal("20000")

    def test_combo_fixed_price(self, engine, make_order, make_promotion, burger, fries, coffee, burger_combo):
        order = make_order([(burger, 1, burger_combo), (fries, 1, burger_combo), (coffee, 1, burger_combo)])
        assert order.subtotal == Decimal("80000")
        promotion = make_promotion(
            promotion_type=PromotionType.FIXED_PRICE,
            discount_value=Decimal("70000"),
            applicable_combos=[burger_combo],
        )

        result = engine.apply(promotion.id, order.id)

        assert result.applicable_subtotal == Decimal("80000")
        assert result.final_price == Decimal("70000")
        assert result.discount_amount == Decimal("10000")
        assert result.total_amount == Decimal("70000")

    def test_counter_and_usage_for_member(self, engine, make_order, make_promotion, customer, coffee):
        order = make_order([(coffee, 1)], customer=customer)
        promotion = make_promotion(discount_value=Decimal("10"), apply_to_all_items=True)

        engine.apply(promotion.id, order.id)

        promotion.refresh_from_db()
        assert promotion.current_total_usage == 1
        assert PromotionUsage.objects.filter(promotion=promotion, customer=customer, order=order).exists()

    def test_walk_in_usage_is_not_recorded(self, engine, coffee_and_fries, drinks_ten_percent):
        engine.apply(drinks_ten_percent.id, coffee_and_fries.id)

        drinks_ten_percent.refresh_from_db()
        assert drinks_ten_percent.current_total_usage == 1
        assert not PromotionUsage.objects.exists()


@pytest.mark.django_db
class TestApplyRejections:

    def test_no_applicable_items(self, engine, coffee_and_fries, make_promotion, burger):
        promotion = make_promotion(discount_value=Decimal("10"), applicable_items=[burger])

        with pytest.raises(PromotionIneligibleError) as exc_info:
            engine.apply(promotion.id, coffee_and_fries.id)

        assert exc_info.value.reason == NO_APPLICABLE_ITEMS
        promotion.refresh_from_db()
        assert promotion.current_total_usage == 0

    def test_empty_product_scope_covers_nothing(self, engine, coffee_and_fries, make_promotion):
        promotion = make_promotion(discount_value=Decimal("10"))

        with pytest.raises(PromotionIneligibleError):
            engine.apply(promotion.id, coffee_and_fries.id)

    def test_only_one_promotion_per_order(self, engine, coffee_and_fries, drinks_ten_percent, make_promotion):
        engine.apply(drinks_ten_percent.id, coffee_and_fries.id)
        other = make_promotion(discount_value=Decimal("5"), apply_to_all_items=True)

        with pytest.raises(PromotionAlreadyAppliedError):
            engine.apply(other.id, coffee_and_fries.id)

    def test_min_order_value(self, engine, coffee_and_fries, make_promotion):
        promotion = make_promotion(
            discount_value=Decimal("10"), apply_to_all_items=True, min_order_value=Decimal("100000")
        )

        with pytest.raises(PromotionIneligibleError) as exc_info:
            engine.apply(promotion.id, coffee_and_fries.id)

        assert exc_info.value.reason == "Order total must be at least 100000.00"

    def test_total_usage_limit(self, engine, make_order, make_promotion, coffee):
        promotion = make_promotion(discount_value=Decimal("10"), apply_to_all_items=True, max_total_usage=1)
        first = make_order([(coffee, 1)])
        second = make_order([(coffee, 1)])

        engine.apply(promotion.id, first.id)
        with pytest.raises(PromotionIneligibleError) as exc_info:
            engine.apply(promotion.id, second.id)
        assert exc_info.value.reason == "Promotion usage limit has been reached"

        # Releasing the first use frees the slot
        engine.unapply(promotion.id, first.id)
        engine.apply(promotion.id, second.id)

    def test_per_customer_limit(self, engine, make_order, make_promotion, customer, coffee):
        promotion = make_promotion(
            discount_value=Decimal("10"), apply_to_all_items=True, max_usage_per_customer=1
        )
        first = make_order([(coffee, 1)], customer=customer)
        second = make_order([(coffee, 1)], customer=customer)
        walk_in = make_order([(coffee, 1)])

        engine.apply(promotion.id, first.id)

        with pytest.raises(PromotionIneligibleError) as exc_info:
            engine.apply(promotion.id, second.id)
        assert exc_info.value.reason == "Customer has already used this promotion the maximum number of times"

        with pytest.raises(PromotionIneligibleError) as exc_info:
            engine.apply(promotion.id, walk_in.id)
        assert exc_info.value.reason == "Promotion requires a member account to track usage"

    def test_member_group_scope(self, engine, make_order, make_promotion, customer, gold_group, coffee):
        promotion = make_promotion(
            discount_value=Decimal("10"),
            apply_to_all_items=True,
            apply_to_all_customers=False,
            applicable_customer_groups=[gold_group],
        )
        order = make_order([(coffee, 1)], customer=customer)

        with pytest.raises(PromotionIneligibleError) as exc_info:
            engine.apply(promotion.id, order.id)
        assert exc_info.value.reason == "Customer is not eligible for this promotion"


@pytest.mark.django_db
class TestGiftPromotions:

    @pytest.fixture
    def buy_two_coffees(self, make_promotion, coffee, tea, fries):
        return make_promotion(
            promotion_type=PromotionType.GIFT,
            buy_quantity=2,
            get_quantity=1,
            applicable_items=[coffee],
            gift_items=[tea, fries],
        )

    def test_auto_selected_gift(self, engine, make_order, buy_two_coffees, coffee, tea):
        order = make_order([(coffee, 2)])

        result = engine.apply(buy_two_coffees.id, order.id)

        assert result.gift_count == 1
        assert result.discount_amount == Decimal("0")
        gift = OrderItem.objects.get(order=order, is_gift=True)
        assert gift.item_id == tea.id
        assert gift.name == "Peach tea (Gift)"
        assert gift.unit_price == Decimal("0")
        order.refresh_from_db()
        assert order.total_amount == Decimal("60000")

    def test_auto_selection_walks_gift_list(self, engine, make_order, buy_two_coffees, coffee, tea, fries):
        order = make_order([(coffee, 4)])

        engine.apply(buy_two_coffees.id, order.id)

        gifts = {line.item_id: line.quantity for line in OrderItem.objects.filter(order=order, is_gift=True)}
        assert gifts == {tea.id: 1, fries.id: 1}

    def test_selected_gifts(self, engine, make_order, buy_two_coffees, coffee, fries):
        order = make_order([(coffee, 4)])

        engine.apply(buy_two_coffees.id, order.id, selected_gifts=[{"item_id": fries.id, "quantity": 2}])

        gift = OrderItem.objects.get(order=order, is_gift=True)
        assert (gift.item_id, gift.quantity) == (fries.id, 2)

    def test_selection_must_match_gift_count(self, engine, make_order, buy_two_coffees, coffee, tea):
        order = make_order([(coffee, 4)])

        with pytest.raises(InvalidGiftSelectionError):
            engine.apply(buy_two_coffees.id, order.id, selected_gifts=[{"item_id": tea.id, "quantity": 1}])

    def test_selection_outside_gift_list(self, engine, make_order, buy_two_coffees, coffee, burger):
        order = make_order([(coffee, 2)])

        with pytest.raises(InvalidGiftSelectionError):
            engine.apply(buy_two_coffees.id, order.id, selected_gifts=[{"item_id": burger.id, "quantity": 1}])

        assert not OrderItem.objects.filter(order=order, is_gift=True).exists()

    def test_not_enough_items_bought(self, engine, make_order, buy_two_coffees, coffee):
        order = make_order([(coffee, 1)])

        with pytest.raises(InsufficientGiftConditionError):
            engine.apply(buy_two_coffees.id, order.id)

    def test_order_value_gift_needs_no_product_scope(self, engine, make_order, make_promotion, coffee, tea):
        promotion = make_promotion(
            promotion_type=PromotionType.GIFT,
            min_order_value=Decimal("50000"),
            gift_items=[tea],
        )
        order = make_order([(coffee, 2)])

        result = engine.apply(promotion.id, order.id)

        assert result.gift_count == 1

    def test_unapply_cancels_pending_gifts(self, engine, make_order, buy_two_coffees, coffee):
        order = make_order([(coffee, 2)])
        engine.apply(buy_two_coffees.id, order.id)

        engine.unapply(buy_two_coffees.id, order.id)

        gift = OrderItem.objects.get(order=order, is_gift=True)
        assert gift.status == OrderItem.ItemStatus.CANCELED
        assert gift.cancel_reason == f"Promotion {buy_two_coffees.code} removed"

    def test_reducing_bought_items_trims_pending_gifts(self, engine, make_order, buy_two_coffees, coffee, tea, fries):
        order = make_order([(coffee, 4)])
        engine.apply(buy_two_coffees.id, order.id)

        OrderLifecycleManager.reduce_item(order.id, line_for(order, coffee).id, {"quantity": 2})

        live = OrderItem.objects.filter(order=order, is_gift=True).exclude(status=OrderItem.ItemStatus.CANCELED)
        assert {line.item_id: line.quantity for line in live} == {tea.id: 1}
        trimmed = OrderItem.objects.get(order=order, is_gift=True, item=fries)
        assert trimmed.status == OrderItem.ItemStatus.CANCELED
        assert trimmed.cancel_reason == f"Promotion {buy_two_coffees.code} conditions no longer met"
        order.refresh_from_db()
        assert order.promotion_id == buy_two_coffees.id
        assert order.total_amount == Decimal("60000")

    def test_gift_in_production_is_kept(self, engine, make_order, buy_two_coffees, coffee):
        order = make_order([(coffee, 2)])
        engine.apply(buy_two_coffees.id, order.id)
        gift = OrderItem.objects.get(order=order, is_gift=True)
        OrderItem.objects.filter(pk=gift.pk).update(status=OrderItem.ItemStatus.PREPARING)

        OrderLifecycleManager.reduce_item(order.id, line_for(order, coffee).id, {"quantity": 1})

        gift.refresh_from_db()
        assert gift.status == OrderItem.ItemStatus.PREPARING

    def test_adding_bought_items_keeps_existing_gifts(self, engine, make_order, buy_two_coffees, coffee):
        order = make_order([(coffee, 2)])
        engine.apply(buy_two_coffees.id, order.id)

        OrderLifecycleManager.add_item(order.id, {"item_id": coffee.id, "quantity": 1})

        gift = OrderItem.objects.get(order=order, is_gift=True)
        assert (gift.status, gift.quantity) == (OrderItem.ItemStatus.PENDING, 1)


@pytest.mark.django_db
class TestUnapply:

    def test_unapply_restores_totals_and_counter(self, engine, make_order, make_promotion, customer, coffee, fries):
        order = make_order([(coffee, 2), (fries, 1)], customer=customer)
        promotion = make_promotion(discount_value=Decimal("10"), apply_to_all_items=True)
        engine.apply(promotion.id, order.id)

        order = engine.unapply(promotion.id, order.id)

        assert order.promotion_id is None
        assert order.discount_amount == Decimal("0")
        assert order.total_amount == Decimal("90000")
        promotion.refresh_from_db()
        assert promotion.current_total_usage == 0
        assert not PromotionUsage.objects.filter(order=order).exists()

    def test_unapply_without_promotion(self, engine, coffee_and_fries, drinks_ten_percent):
        with pytest.raises(PromotionNotAppliedError):
            engine.unapply(drinks_ten_percent.id, coffee_and_fries.id)

    def test_unapply_wrong_promotion(self, engine, coffee_and_fries, drinks_ten_percent, make_promotion):
        engine.apply(drinks_ten_percent.id, coffee_and_fries.id)
        other = make_promotion(discount_value=Decimal("5"), apply_to_all_items=True)

        with pytest.raises(PromotionNotAppliedError):
            engine.unapply(other.id, coffee_and_fries.id)


@pytest.mark.django_db
class TestDiscountRefresh:
    """The applied discount follows later changes to the order"""

    def test_reduce_item_refreshes_discount(self, coffee_and_fries, drinks_ten_percent, coffee):
        order = coffee_and_fries
        OrderLifecycleManager.apply_promotion(order.id, {"promotion_id": drinks_ten_percent.id})

        OrderLifecycleManager.reduce_item(order.id, line_for(order, coffee).id, {"quantity": 1})

        order.refresh_from_db()
        assert order.subtotal == Decimal("60000")
        assert order.discount_amount == Decimal("3000")
        assert order.total_amount == Decimal("57000")

    def test_discount_drops_to_zero_when_subset_empties(self, coffee_and_fries, drinks_ten_percent, coffee):
        order = coffee_and_fries
        OrderLifecycleManager.apply_promotion(order.id, {"promotion_id": drinks_ten_percent.id})

        OrderLifecycleManager.remove_item(order.id, line_for(order, coffee).id)

        order.refresh_from_db()
        assert order.promotion_id == drinks_ten_percent.id
        assert order.discount_amount == Decimal("0")
        assert order.total_amount == Decimal("30000")

    def test_add_item_refreshes_discount(self, coffee_and_fries, drinks_ten_percent, tea):
        order = coffee_and_fries
        OrderLifecycleManager.apply_promotion(order.id, {"promotion_id": drinks_ten_percent.id})

        OrderLifecycleManager.add_item(order.id, {"item_id": tea.id, "quantity": 1})

        order.refresh_from_db()
        assert order.discount_amount == Decimal("8000")


@pytest.mark.django_db
class TestAvailablePromotions:

    def test_reports_reason_per_promotion(self, coffee_and_fries, make_promotion, drinks_ten_percent, burger):
        burger_only = make_promotion(discount_value=Decimal("10"), applicable_items=[burger])
        big_spender = make_promotion(
            discount_value=Decimal("10"), apply_to_all_items=True, min_order_value=Decimal("500000")
        )
        broken = make_promotion(discount_value=None, apply_to_all_items=True)
        make_promotion(discount_value=Decimal("10"), apply_to_all_items=True, is_active=False)

        results = {
            row.promotion.id: row
            for row in OrderLifecycleManager.available_promotions(coffee_and_fries.id)
        }

        assert len(results) == 4
        assert results[drinks_ten_percent.id].can_apply
        assert results[burger_only.id].reason == NO_APPLICABLE_ITEMS
        assert results[big_spender.id].reason == "Order total must be at least 500000.00"
        assert not results[broken.id].can_apply
        assert "misconfigured" in results[broken.id].reason
