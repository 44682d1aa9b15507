"""
Tests for OrderAggregate: line reductions, status splits and guards.
"""
from decimal import Decimal

import pytest

from core_backend.exceptions import ResourceNotFoundError, ValidationError
from orders.aggregate import OrderAggregate
from orders.exceptions import InvalidStatusTransitionError, OrderClosedError
from orders.models import OrderItem
from orders.services import OrderLifecycleManager

ItemStatus = OrderItem.ItemStatus


def top_line(aggregate, item):
    return next(
        line for line in aggregate.lines()
        if line.item_id == item.id and not line.is_topping and not line.is_canceled
    )


@pytest.mark.django_db
class TestOrderLines:

    def test_toppings_are_priced_with_their_item(self, make_order, burger, cheese_topping):
        order = make_order([(burger, 1)], toppings={burger.id: [(cheese_topping, 1)]})

        aggregate = OrderAggregate.load(order.id)
        burger_line = top_line(aggregate, burger)
        toppings = aggregate.toppings_of(burger_line)

        assert len(toppings) == 1
        assert toppings[0].is_topping
        assert toppings[0].combo_id is None
        assert order.subtotal == Decimal("70000")

    def test_unknown_line(self, make_order, coffee):
        aggregate = OrderAggregate.load(make_order([(coffee, 1)]).id)
        with pytest.raises(ResourceNotFoundError):
            aggregate.get_item(999999)

    def test_zero_quantity_is_rejected(self, make_order, coffee):
        aggregate = OrderAggregate.load(make_order([(coffee, 1)]).id)
        with pytest.raises(ValidationError):
            aggregate.add_line(item=coffee, name=coffee.name, quantity=0, unit_price=coffee.selling_price)

    def test_missing_order(self, db):
        with pytest.raises(ResourceNotFoundError):
            OrderAggregate.load(424242)


@pytest.mark.django_db
class TestReduceItem:

    def test_partial_reduce_splits_off_canceled_row(self, make_order, coffee):
        order = make_order([(coffee, 3)])
        aggregate = OrderAggregate.load(order.id)
        line = top_line(aggregate, coffee)

        reduction = aggregate.reduce_item(line.id, 1, "Spilled")
        aggregate.recompute_totals()

        assert not reduction.full
        assert reduction.previous_status == ItemStatus.PENDING
        line.refresh_from_db()
        assert line.quantity == 2
        assert line.total_price == Decimal("60000")
        assert line.notes == "Canceled 1: Spilled"
        canceled = reduction.canceled_row
        assert canceled.id != line.id
        assert canceled.status == ItemStatus.CANCELED
        assert canceled.quantity == 1
        assert canceled.cancel_reason == "Spilled"
        assert aggregate.order.subtotal == Decimal("60000")

    def test_full_reduce_cancels_toppings(self, make_order, burger, cheese_topping, fries):
        order = make_order([(burger, 1), (fries, 1)], toppings={burger.id: [(cheese_topping, 2)]})
        aggregate = OrderAggregate.load(order.id)
        line = top_line(aggregate, burger)

        reduction = aggregate.reduce_item(line.id, 1, "Wrong order")
        aggregate.recompute_totals()

        assert reduction.full
        assert reduction.canceled_row is line
        assert [t.status for t in reduction.canceled_toppings] == [ItemStatus.CANCELED]
        assert aggregate.order.subtotal == Decimal("30000")

    def test_partial_reduce_leaves_toppings_on_line(self, make_order, burger, cheese_topping):
        order = make_order([(burger, 2)], toppings={burger.id: [(cheese_topping, 2)]})
        aggregate = OrderAggregate.load(order.id)
        line = top_line(aggregate, burger)

        aggregate.reduce_item(line.id, 1)

        toppings = aggregate.toppings_of(line)
        assert [(t.quantity, t.status) for t in toppings] == [(2, ItemStatus.PENDING)]

    def test_quantity_must_be_positive(self, make_order, coffee):
        aggregate = OrderAggregate.load(make_order([(coffee, 2)]).id)
        with pytest.raises(ValidationError):
            aggregate.reduce_item(top_line(aggregate, coffee).id, 0)

    def test_canceled_line_cannot_be_reduced_again(self, make_order, coffee, fries):
        aggregate = OrderAggregate.load(make_order([(coffee, 1), (fries, 1)]).id)
        line = top_line(aggregate, coffee)
        aggregate.reduce_item(line.id, 1)

        with pytest.raises(InvalidStatusTransitionError):
            aggregate.reduce_item(line.id, 1)

    def test_canceled_line_cannot_be_updated(self, make_order, coffee, fries):
        aggregate = OrderAggregate.load(make_order([(coffee, 1), (fries, 1)]).id)
        line = top_line(aggregate, coffee)
        aggregate.reduce_item(line.id, 1)

        with pytest.raises(ValidationError):
            aggregate.update_line(line, quantity=3)


@pytest.mark.django_db
class TestItemStatus:

    def test_whole_line_moves_with_toppings(self, make_order, burger, cheese_topping):
        order = make_order([(burger, 1)], toppings={burger.id: [(cheese_topping, 1)]})
        aggregate = OrderAggregate.load(order.id)
        line = top_line(aggregate, burger)

        change = aggregate.set_item_status(line.id, ItemStatus.PREPARING)

        assert not change.split
        assert line.status == ItemStatus.PREPARING
        assert aggregate.toppings_of(line)[0].status == ItemStatus.PREPARING

    def test_partial_quantity_splits_row_and_toppings(self, make_order, burger, cheese_topping):
        order = make_order([(burger, 2)], toppings={burger.id: [(cheese_topping, 2)]})
        aggregate = OrderAggregate.load(order.id)
        line = top_line(aggregate, burger)

        change = aggregate.set_item_status(line.id, ItemStatus.PREPARING, quantity=1)
        aggregate.recompute_totals()

        assert change.split
        assert change.remainder is line
        moved = change.line
        assert (moved.quantity, moved.status) == (1, ItemStatus.PREPARING)
        assert (line.quantity, line.status) == (1, ItemStatus.PENDING)
        moved_toppings = aggregate.toppings_of(moved)
        assert [(t.quantity, t.status) for t in moved_toppings] == [(1, ItemStatus.PREPARING)]
        assert [t.quantity for t in aggregate.toppings_of(line)] == [1]
        # Splitting never changes what the order costs
        assert aggregate.order.subtotal == Decimal("140000")

    def test_invalid_transition(self, make_order, coffee):
        aggregate = OrderAggregate.load(make_order([(coffee, 1)]).id)
        with pytest.raises(InvalidStatusTransitionError):
            aggregate.set_item_status(top_line(aggregate, coffee).id, ItemStatus.SERVED)

    def test_cancel_goes_through_reduce(self, make_order, coffee):
        aggregate = OrderAggregate.load(make_order([(coffee, 1)]).id)
        with pytest.raises(ValidationError):
            aggregate.set_item_status(top_line(aggregate, coffee).id, ItemStatus.CANCELED)


@pytest.mark.django_db
class TestOrderGuards:

    def test_closed_order_rejects_changes(self, make_order, coffee):
        order = make_order([(coffee, 1)])
        OrderLifecycleManager.cancel(order.id, {"reason": "Guest left"})

        aggregate = OrderAggregate.load(order.id)
        with pytest.raises(OrderClosedError):
            aggregate.ensure_open()
        with pytest.raises(OrderClosedError):
            OrderLifecycleManager.add_item(order.id, {"item_id": coffee.id})

    def test_order_transition_matrix_is_enforced(self, make_order, coffee):
        order = make_order([(coffee, 1)])
        OrderLifecycleManager.cancel(order.id)

        aggregate = OrderAggregate.load(order.id)
        with pytest.raises(InvalidStatusTransitionError):
            aggregate.transition(order.OrderStatus.COMPLETED)

    def test_all_items_canceled_ignores_gifts(self, make_order, coffee):
        aggregate = OrderAggregate.load(make_order([(coffee, 1)]).id)
        aggregate.add_line(item=coffee, name="Iced coffee (Gift)", quantity=1, unit_price=Decimal("0"), is_gift=True)
        assert not aggregate.all_items_canceled()

        aggregate.reduce_item(top_line(aggregate, coffee).id, 1)

        assert aggregate.all_items_canceled()
