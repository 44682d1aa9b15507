"""
In-transaction view of one order and its lines.

``OrderAggregate`` owns every structural change to an order: adding and
updating lines, partial and full reductions, status changes with row splits,
and moving lines between orders. Lines live in an arena keyed by id;
toppings point back at their parent through ``parent_item_id``.

Callers load the aggregate inside ``transaction.atomic()`` with ``lock=True``
so the order row stays locked until the transaction ends. Every mutation
writes its rows immediately; ``recompute_totals()`` persists the order.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
import logging

from django.utils import timezone

from core_backend.exceptions import ResourceNotFoundError, ValidationError
from core_backend.utils.money import ZERO
from .calculators import line_total, order_totals
from .exceptions import InvalidStatusTransitionError, OrderClosedError
from .models import Order, OrderItem
from .transitions import can_transition_item, can_transition_order

logger = logging.getLogger(__name__)

ItemStatus = OrderItem.ItemStatus


@dataclass
class Reduction:
    """Result of canceling some or all of a line."""

    line: OrderItem
    canceled_row: OrderItem
    quantity: int
    previous_status: str
    full: bool
    canceled_toppings: List[OrderItem] = field(default_factory=list)


@dataclass
class StatusChange:
    line: OrderItem
    previous_status: str
    quantity: int
    remainder: Optional[OrderItem] = None

    @property
    def split(self) -> bool:
        return self.remainder is not None


def _append_note(existing: str, note: str) -> str:
    return f"{existing}\n{note}" if existing else note


class OrderAggregate:

    def __init__(self, order: Order, items):
        self.order = order
        self.items: Dict[int, OrderItem] = {item.id: item for item in items}

    @classmethod
    def load(cls, order_id, lock: bool = True) -> "OrderAggregate":
        queryset = Order.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            order = queryset.get(pk=order_id)
        except Order.DoesNotExist:
            raise ResourceNotFoundError("Order", order_id)

        items = OrderItem.objects.filter(order_id=order.id).order_by("id")
        if lock:
            items = items.select_for_update()
        return cls(order, list(items))

    # -- queries -----------------------------------------------------------

    def get_item(self, order_item_id) -> OrderItem:
        try:
            return self.items[int(order_item_id)]
        except (KeyError, TypeError, ValueError):
            raise ResourceNotFoundError("OrderItem", order_item_id)

    def lines(self) -> List[OrderItem]:
        return [self.items[key] for key in sorted(self.items)]

    def active_lines(self) -> List[OrderItem]:
        return [line for line in self.lines() if not line.is_canceled]

    def toppings_of(self, line: OrderItem, include_canceled: bool = False) -> List[OrderItem]:
        return [
            child
            for child in self.lines()
            if child.parent_item_id == line.id and (include_canceled or not child.is_canceled)
        ]

    def combo_lines(self, combo_id) -> List[OrderItem]:
        return [
            line
            for line in self.active_lines()
            if line.combo_id == combo_id and not line.is_topping and not line.is_gift
        ]

    def combo_ids(self) -> List[int]:
        return sorted({line.combo_id for line in self.active_lines() if line.combo_id})

    def gift_lines(self) -> List[OrderItem]:
        return [line for line in self.lines() if line.is_gift]

    def all_items_canceled(self) -> bool:
        """True when the order had sellable lines and every one is canceled."""
        sold = [line for line in self.lines() if not line.is_gift]
        return bool(sold) and all(line.is_canceled for line in sold)

    # -- guards ------------------------------------------------------------

    def ensure_open(self):
        if self.order.is_closed:
            raise OrderClosedError(self.order)

    def _ensure_live_line(self, line: OrderItem):
        if line.status in (ItemStatus.CANCELED, ItemStatus.REPLACED):
            raise ValidationError(
                f"Item '{line.name}' is {line.status} and can no longer be changed",
                details={"order_item_id": line.id, "status": line.status},
            )

    # -- line mutations ----------------------------------------------------

    def add_line(
        self,
        *,
        name: str,
        quantity: int,
        unit_price: Decimal,
        item=None,
        combo=None,
        parent: Optional[OrderItem] = None,
        status: str = ItemStatus.PENDING,
        is_gift: bool = False,
        customization=None,
        notes: str = "",
    ) -> OrderItem:
        if quantity <= 0:
            raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})
        if parent is not None and parent.order_id != self.order.id:
            raise ValidationError(
                "A topping must belong to the same order as its item",
                details={"parent_item_id": parent.id},
            )

        line = OrderItem.objects.create(
            order=self.order,
            item=item,
            combo=None if parent is not None else combo,
            parent_item=parent,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=line_total(quantity, unit_price),
            status=status,
            is_topping=parent is not None,
            is_gift=is_gift,
            customization=customization,
            notes=notes,
        )
        self.items[line.id] = line
        return line

    def update_line(self, line: OrderItem, *, quantity=None, customization=None, notes=None) -> OrderItem:
        self._ensure_live_line(line)
        fields = ["updated_at"]
        if quantity is not None:
            if quantity <= 0:
                raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})
            line.quantity = quantity
            line.total_price = line_total(quantity, line.unit_price)
            fields += ["quantity", "total_price"]
        if customization is not None:
            line.customization = customization
            fields.append("customization")
        if notes is not None:
            line.notes = notes
            fields.append("notes")
        line.save(update_fields=fields)
        return line

    def reprice_line(self, line: OrderItem, unit_price: Decimal) -> OrderItem:
        if line.unit_price != unit_price:
            line.unit_price = unit_price
            line.total_price = line_total(line.quantity, unit_price)
            line.save(update_fields=["unit_price", "total_price", "updated_at"])
        return line

    def _cancel_row(self, line: OrderItem, reason: str, now) -> str:
        previous = line.status
        line.status = ItemStatus.CANCELED
        line.cancel_reason = reason or ""
        line.canceled_at = now
        line.save(update_fields=["status", "cancel_reason", "canceled_at", "updated_at"])
        return previous

    def reduce_item(self, order_item_id, quantity: int, reason: str = "") -> Reduction:
        """
        Cancel ``quantity`` units of a line.

        Reducing by the whole remaining quantity cancels the line and its
        toppings. A smaller quantity leaves the line with the rest and records
        the canceled units on a new CANCELED row; toppings stay on the line.
        """
        line = self.get_item(order_item_id)
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity to cancel must be at least 1", details={"quantity": quantity})
        if not can_transition_item(line.status, ItemStatus.CANCELED):
            raise InvalidStatusTransitionError("order item", line.status, ItemStatus.CANCELED)

        now = timezone.now()
        previous = line.status

        if quantity >= line.quantity:
            self._cancel_row(line, reason, now)
            toppings = []
            for topping in self.toppings_of(line):
                if can_transition_item(topping.status, ItemStatus.CANCELED):
                    self._cancel_row(topping, reason, now)
                    toppings.append(topping)
            logger.debug(f"Canceled line {line.id} ({line.name}) x{line.quantity}")
            return Reduction(
                line=line,
                canceled_row=line,
                quantity=line.quantity,
                previous_status=previous,
                full=True,
                canceled_toppings=toppings,
            )

        canceled = OrderItem.objects.create(
            order=self.order,
            item_id=line.item_id,
            combo_id=line.combo_id,
            parent_item_id=line.parent_item_id,
            name=line.name,
            quantity=quantity,
            unit_price=line.unit_price,
            total_price=line_total(quantity, line.unit_price),
            status=ItemStatus.CANCELED,
            is_topping=line.is_topping,
            is_gift=line.is_gift,
            customization=line.customization,
            cancel_reason=reason or "",
            canceled_at=now,
        )
        self.items[canceled.id] = canceled

        line.quantity -= quantity
        line.total_price = line_total(line.quantity, line.unit_price)
        note = f"Canceled {quantity}"
        line.notes = _append_note(line.notes, f"{note}: {reason}" if reason else note)
        line.save(update_fields=["quantity", "total_price", "notes", "updated_at"])
        logger.debug(f"Reduced line {line.id} ({line.name}) by {quantity}, {line.quantity} left")

        return Reduction(
            line=line,
            canceled_row=canceled,
            quantity=quantity,
            previous_status=previous,
            full=False,
        )

    def _clone(self, line: OrderItem, *, order: Order, quantity: int, status: str, parent=None) -> OrderItem:
        clone = OrderItem.objects.create(
            order=order,
            item_id=line.item_id,
            combo_id=line.combo_id,
            parent_item=parent,
            name=line.name,
            quantity=quantity,
            unit_price=line.unit_price,
            total_price=line_total(quantity, line.unit_price),
            status=status,
            is_topping=line.is_topping,
            is_gift=line.is_gift,
            customization=line.customization,
            notes=line.notes,
        )
        return clone

    def _shrink(self, line: OrderItem, quantity: int):
        line.quantity -= quantity
        line.total_price = line_total(line.quantity, line.unit_price)
        line.save(update_fields=["quantity", "total_price", "updated_at"])

    def _split_toppings(self, line, new_parent, moved, original_quantity, status_map, target_order, target_items):
        """Move toppings of ``line`` to ``new_parent`` in proportion to ``moved/original_quantity``."""
        for topping in self.toppings_of(line):
            share = topping.quantity * moved // original_quantity
            if share <= 0:
                continue
            clone = self._clone(
                topping,
                order=target_order,
                quantity=share,
                status=status_map(topping.status),
                parent=new_parent,
            )
            target_items[clone.id] = clone
            self._shrink(topping, share)

    def set_item_status(self, order_item_id, new_status: str, quantity: Optional[int] = None) -> StatusChange:
        """
        Move ``quantity`` units of a line (all of it by default) to
        ``new_status``. A partial quantity splits the row: the original keeps
        its status and the rest, the new row holds the moved units. Toppings
        sharing the line's status follow it.
        """
        line = self.get_item(order_item_id)
        previous = line.status

        if new_status == ItemStatus.CANCELED:
            raise ValidationError("Use reduce_item to cancel order items")
        if not can_transition_item(previous, new_status):
            raise InvalidStatusTransitionError("order item", previous, new_status)
        if quantity is not None and quantity <= 0:
            raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})

        def follow(status):
            return new_status if status == previous else status

        if quantity is None or quantity >= line.quantity:
            line.status = new_status
            line.save(update_fields=["status", "updated_at"])
            for topping in self.toppings_of(line):
                if topping.status == previous and can_transition_item(previous, new_status):
                    topping.status = new_status
                    topping.save(update_fields=["status", "updated_at"])
            return StatusChange(line=line, previous_status=previous, quantity=line.quantity)

        original_quantity = line.quantity
        moved = self._clone(line, order=self.order, quantity=quantity, status=new_status,
                            parent=self.items.get(line.parent_item_id))
        self.items[moved.id] = moved
        self._split_toppings(line, moved, quantity, original_quantity, follow, self.order, self.items)
        self._shrink(line, quantity)
        logger.debug(f"Split {quantity} of line {line.id} into {moved.id} as {new_status}")
        return StatusChange(line=moved, previous_status=previous, quantity=quantity, remainder=line)

    def move_line(self, order_item_id, quantity: Optional[int], target: "OrderAggregate") -> OrderItem:
        """
        Move a top-level line (with its toppings) into ``target``. A partial
        quantity leaves the rest behind and moves toppings proportionally.
        """
        line = self.get_item(order_item_id)
        if line.is_topping:
            raise ValidationError(
                "Toppings move together with their item",
                details={"order_item_id": line.id},
            )
        self._ensure_live_line(line)

        if quantity is None or quantity >= line.quantity:
            rows = [line] + self.toppings_of(line, include_canceled=True)
            for row in rows:
                row.order = target.order
                row.save(update_fields=["order", "updated_at"])
                del self.items[row.id]
                target.items[row.id] = row
            return line

        if quantity <= 0:
            raise ValidationError("Quantity must be at least 1", details={"quantity": quantity})

        original_quantity = line.quantity
        moved = self._clone(line, order=target.order, quantity=quantity, status=line.status)
        target.items[moved.id] = moved
        self._split_toppings(
            line, moved, quantity, original_quantity, lambda status: status, target.order, target.items
        )
        self._shrink(line, quantity)
        return moved

    # -- order-level -------------------------------------------------------

    def recompute_totals(self, save: bool = True) -> Tuple[Decimal, Decimal]:
        subtotal, total = order_totals(
            (line.total_price for line in self.active_lines()),
            self.order.discount_amount or ZERO,
        )
        self.order.subtotal = subtotal
        self.order.total_amount = total
        if save:
            self.order.save(
                update_fields=["subtotal", "discount_amount", "total_amount", "promotion", "updated_at"]
            )
        return subtotal, total

    def transition(self, new_status: str) -> Order:
        current = self.order.status
        if current == new_status:
            return self.order
        if not can_transition_order(current, new_status):
            raise InvalidStatusTransitionError("order", current, new_status)
        self.order.status = new_status
        fields = ["status", "updated_at"]
        if new_status == Order.OrderStatus.COMPLETED:
            self.order.completed_at = timezone.now()
            fields.append("completed_at")
        self.order.save(update_fields=fields)
        logger.info(f"Order {self.order.code}: {current} -> {new_status}")
        return self.order

    def save(self, *fields):
        if fields:
            self.order.save(update_fields=list(fields) + ["updated_at"])
        else:
            self.order.save()
        return self.order
