"""
Tests for the kitchen work queue.
"""
from decimal import Decimal

import pytest

from orders.models import OrderItem
from orders.services import KitchenService, OrderLifecycleManager

ItemStatus = OrderItem.ItemStatus


@pytest.mark.django_db
class TestKitchenService:

    def test_queue_holds_dispatched_lines(self, make_order, coffee, fries):
        waiting = make_order([(coffee, 1)])
        dispatched = make_order([(fries, 2)])
        OrderLifecycleManager.send_to_kitchen(dispatched.id)

        grouped = KitchenService.group_by_order(KitchenService.kitchen_queue())

        assert list(grouped) == [dispatched.code]
        assert waiting.code not in grouped

    def test_recipe_is_scaled_by_quantity(self, make_order, burger):
        order = make_order([(burger, 3)])
        line = OrderItem.objects.get(order=order)

        recipe = KitchenService.item_recipe(line.id)

        assert {row["ingredient"]: row["quantity"] for row in recipe} == {
            "Burger bun": Decimal("3"),
            "Beef patty": Decimal("3"),
        }

    def test_ready_made_item_has_no_recipe(self, make_order, coffee):
        line = OrderItem.objects.get(order=make_order([(coffee, 1)]))
        assert KitchenService.item_recipe(line.id) == []

    def test_report_out_of_stock_splits_line(self, make_order, coffee):
        order = make_order([(coffee, 3)])
        OrderLifecycleManager.send_to_kitchen(order.id)
        line = OrderItem.objects.get(order=order)

        change = KitchenService.report_out_of_stock(order.id, line.id, quantity=1)

        assert change.line.status == ItemStatus.OUT_OF_STOCK
        assert change.remainder.quantity == 2
        queue = KitchenService.kitchen_queue([ItemStatus.OUT_OF_STOCK])
        assert [item.id for item in queue] == [change.line.id]
