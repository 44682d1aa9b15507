"""
Tests for loss accounting when items are canceled after preparation.
"""
from decimal import Decimal

import pytest
from django.test import override_settings

from core_backend.config import app_settings
from finance.models import FinanceTransaction
from orders.models import OrderItem
from orders.services import LossAccountant, OrderLifecycleManager

ItemStatus = OrderItem.ItemStatus


def line_of(order, item):
    return OrderItem.objects.get(order=order, item=item, is_topping=False)


def losses(order):
    return FinanceTransaction.objects.filter(
        reference_type=FinanceTransaction.ReferenceType.ORDER,
        reference_id=str(order.id),
        direction=FinanceTransaction.Direction.EXPENSE,
    )


@pytest.mark.django_db
class TestLossRecording:

    def test_pending_items_cost_nothing(self, make_order, burger, fries):
        order = make_order([(burger, 1), (fries, 1)])

        OrderLifecycleManager.reduce_item(order.id, line_of(order, burger).id, {"quantity": 1})

        assert not losses(order).exists()

    def test_recipe_cost_for_prepared_item(self, make_order, burger, fries, staff_user):
        order = make_order([(burger, 2), (fries, 1)])
        OrderLifecycleManager.send_to_kitchen(order.id)

        OrderLifecycleManager.reduce_item(
            order.id, line_of(order, burger).id, {"quantity": 2, "reason": "Burnt"}, staff=staff_user
        )

        entry = losses(order).get()
        assert entry.amount == Decimal("50000")
        assert entry.code == "PCHD000001"
        assert entry.created_by == staff_user
        assert entry.category.name == app_settings.loss_category_name
        assert "Burnt" in entry.notes

    def test_partial_reduce_books_only_canceled_units(self, make_order, coffee):
        order = make_order([(coffee, 3)])
        OrderLifecycleManager.send_to_kitchen(order.id)

        OrderLifecycleManager.reduce_item(order.id, line_of(order, coffee).id, {"quantity": 1})

        assert losses(order).get().amount == Decimal("12000")

    def test_sale_price_when_no_cost_is_known(self, make_order, tea, fries):
        order = make_order([(tea, 1), (fries, 1)])
        OrderLifecycleManager.send_to_kitchen(order.id)

        OrderLifecycleManager.remove_item(order.id, line_of(order, tea).id)

        assert losses(order).get().amount == Decimal("20000")

    def test_toppings_included_on_full_cancel(self, make_order, burger, cheese_topping, fries):
        order = make_order([(burger, 1), (fries, 1)], toppings={burger.id: [(cheese_topping, 1)]})
        OrderLifecycleManager.send_to_kitchen(order.id)

        OrderLifecycleManager.remove_item(order.id, line_of(order, burger).id)

        assert losses(order).get().amount == Decimal("28000")

    def test_each_reduction_posts_its_own_entry(self, make_order, coffee, fries):
        order = make_order([(coffee, 2), (fries, 1)])
        OrderLifecycleManager.send_to_kitchen(order.id)

        OrderLifecycleManager.reduce_item(order.id, line_of(order, coffee).id, {"quantity": 1})
        OrderLifecycleManager.reduce_item(order.id, line_of(order, fries).id, {"quantity": 1})

        assert sorted(losses(order).values_list("code", flat=True)) == ["PCHD000001", "PCHD000002"]

    @override_settings(POS_ENGINE={"LOSS_ACCOUNTED_STATUSES": ["completed", "served"]})
    def test_accounted_statuses_are_configurable(self, make_order, coffee, fries):
        app_settings.reload()
        order = make_order([(coffee, 1), (fries, 1)])
        OrderLifecycleManager.send_to_kitchen(order.id)

        OrderLifecycleManager.reduce_item(order.id, line_of(order, coffee).id, {"quantity": 1})

        assert not losses(order).exists()


@pytest.mark.django_db
class TestUnitCost:

    def test_average_cost_first(self, make_order, coffee):
        line = line_of(make_order([(coffee, 1)]), coffee)
        assert LossAccountant.unit_cost(line) == (Decimal("12000"), "average")

    def test_recipe_cost_second(self, make_order, burger):
        line = line_of(make_order([(burger, 1)]), burger)
        assert LossAccountant.unit_cost(line) == (Decimal("25000"), "recipe")

    def test_sale_price_last(self, make_order, tea):
        line = line_of(make_order([(tea, 1)]), tea)
        assert LossAccountant.unit_cost(line) == (Decimal("20000"), "sale_price")

    def test_only_production_statuses_are_accountable(self):
        assert LossAccountant.is_accountable(ItemStatus.PREPARING)
        assert LossAccountant.is_accountable(ItemStatus.SERVED)
        assert not LossAccountant.is_accountable(ItemStatus.PENDING)
        assert not LossAccountant.is_accountable(ItemStatus.OUT_OF_STOCK)
