from decimal import Decimal
from typing import Optional
import logging

from django.db import transaction

from catalog.services import CatalogService
from core_backend.config import app_settings
from core_backend.exceptions import ResourceNotFoundError, ValidationError
from core_backend.validation import validate_payload
from customers.services import CustomerService
from finance.models import FinanceCategory, FinanceTransaction
from finance.services import LedgerService
from orders.aggregate import OrderAggregate
from orders.exceptions import (
    InsufficientPaymentError,
    OrderAlreadyPaidError,
    OrderClosedError,
)
from orders.models import Order, OrderItem
from orders.serializers import (
    CancelOrderSerializer,
    CheckoutSerializer,
    CreateOrderSerializer,
    MergeOrdersSerializer,
    OrderItemInputSerializer,
    OrderSerializer,
    ReduceItemSerializer,
    SplitOrderSerializer,
    TransferTableSerializer,
    UpdateItemStatusSerializer,
    UpdateOrderItemSerializer,
    UpdateOrderSerializer,
)
from orders.transitions import PRODUCTION_STATUSES, TERMINAL_ITEM_STATUSES
from promotions.serializers import ApplyPromotionSerializer
from promotions.services import PromotionEngine
from tables.services import TableService
from .combo_service import ComboResolver
from .loss_service import LossAccountant

logger = logging.getLogger(__name__)

OrderStatus = Order.OrderStatus
ItemStatus = OrderItem.ItemStatus

LEDGER_PAYMENT_METHODS = {
    Order.PaymentMethod.CASH: FinanceTransaction.PaymentMethod.CASH,
    Order.PaymentMethod.CARD: FinanceTransaction.PaymentMethod.CARD,
    Order.PaymentMethod.TRANSFER: FinanceTransaction.PaymentMethod.BANK,
}

OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.IN_PROGRESS)


def _append_note(existing: str, note: str) -> str:
    return f"{existing}\n{note}" if existing else note


class OrderLifecycleManager:
    """
    Entry point for everything that changes an order.

    Each mutating method is one atomic unit: the order row is locked, the
    aggregate is changed, combos are repriced, the applied promotion's
    discount is refreshed and totals are recomputed before any side effect on
    tables, customers or the ledger. Any exception rolls all of it back.
    """

    promotion_engine = PromotionEngine()
    loss_accountant = LossAccountant()

    # -- queries -----------------------------------------------------------

    @staticmethod
    def get_by_id(order_id) -> Order:
        try:
            return Order.objects.select_related("table", "customer", "promotion").get(pk=order_id)
        except Order.DoesNotExist:
            raise ResourceNotFoundError("Order", order_id)

    @staticmethod
    def get_by_table(table_id) -> Optional[Order]:
        """The open order seated at a table, if any."""
        TableService.get_table(table_id)
        return (
            Order.objects.filter(table_id=table_id, status__in=OPEN_STATUSES)
            .order_by("-created_at")
            .first()
        )

    @staticmethod
    def get_snapshot(order_id) -> dict:
        return OrderSerializer(OrderLifecycleManager.get_by_id(order_id)).data

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _add_line(aggregate: OrderAggregate, data) -> OrderItem:
        catalog_item = CatalogService.get_item(data["item_id"])
        if not catalog_item.is_sellable:
            raise ValidationError(
                f"'{catalog_item.name}' cannot be sold", details={"item_id": catalog_item.id}
            )

        combo = None
        if data.get("combo_id"):
            combo = ComboResolver.resolve_membership(data["combo_id"], catalog_item.id).combo

        line = aggregate.add_line(
            item=catalog_item,
            combo=combo,
            name=catalog_item.name,
            quantity=data.get("quantity", 1),
            unit_price=catalog_item.selling_price,
            customization=data.get("customization"),
            notes=data.get("notes", ""),
        )
        for topping in data.get("attached_toppings") or []:
            topping_item = CatalogService.get_item(topping["item_id"])
            aggregate.add_line(
                item=topping_item,
                parent=line,
                name=topping_item.name,
                quantity=topping.get("quantity", 1),
                unit_price=topping_item.selling_price,
            )
        return line

    @staticmethod
    def _finalize(aggregate: OrderAggregate) -> Order:
        """Reprice combos, refresh the promotion discount, recompute totals, auto-cancel."""
        ComboResolver.reprice_all(aggregate)
        aggregate.recompute_totals(save=False)
        OrderLifecycleManager.promotion_engine.refresh_discount(aggregate)
        aggregate.recompute_totals()

        if aggregate.all_items_canceled() and not aggregate.order.is_closed:
            logger.info(f"Every item of order {aggregate.order.code} is canceled, cancelling the order")
            OrderLifecycleManager._cancel(aggregate, "All items canceled")
        return aggregate.order

    @staticmethod
    def _cancel(aggregate: OrderAggregate, reason: str = "") -> Order:
        order = aggregate.order
        if order.promotion_id:
            OrderLifecycleManager.promotion_engine.unapply_from_aggregate(aggregate)
        aggregate.transition(OrderStatus.CANCELLED)
        if reason:
            order.notes = _append_note(order.notes, f"Cancelled: {reason}")
            aggregate.save("notes")
        if order.table_id:
            TableService.release(order.table_id)
        return order

    @staticmethod
    def _load_pair(first_id, second_id):
        """Lock two orders in ascending id order."""
        loaded = {}
        for order_id in sorted({int(first_id), int(second_id)}):
            loaded[order_id] = OrderAggregate.load(order_id, lock=True)
        return loaded[int(first_id)], loaded[int(second_id)]

    @staticmethod
    def _dispatch_pending(aggregate: OrderAggregate):
        for line in aggregate.lines():
            # Toppings may already have followed their parent
            if line.status == ItemStatus.PENDING:
                aggregate.set_item_status(line.id, ItemStatus.PREPARING)

    # -- order creation and editing ---------------------------------------

    @staticmethod
    @transaction.atomic
    def create(data, staff=None) -> Order:
        payload = validate_payload(CreateOrderSerializer, data)

        table_id = payload.get("table_id")
        if table_id:
            TableService.ensure_available(table_id)
        customer = None
        if payload.get("customer_id"):
            customer = CustomerService.get_customer(payload["customer_id"])

        order = Order.objects.create(
            table_id=table_id,
            customer=customer,
            staff=staff,
            notes=payload.get("notes", ""),
        )
        aggregate = OrderAggregate(order, [])
        for line in payload["items"]:
            OrderLifecycleManager._add_line(aggregate, line)
        OrderLifecycleManager._finalize(aggregate)

        if table_id:
            TableService.occupy(table_id)
        logger.info(
            f"Created order {order.code} with {len(payload['items'])} items, total {order.total_amount}"
        )
        return order

    @staticmethod
    @transaction.atomic
    def add_item(order_id, data) -> OrderItem:
        payload = validate_payload(OrderItemInputSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        aggregate.ensure_open()
        line = OrderLifecycleManager._add_line(aggregate, payload)
        OrderLifecycleManager._finalize(aggregate)
        logger.info(f"Added {line.quantity} x {line.name} to order {aggregate.order.code}")
        return line

    @staticmethod
    @transaction.atomic
    def update_item(order_id, order_item_id, data) -> OrderItem:
        payload = validate_payload(UpdateOrderItemSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        aggregate.ensure_open()
        line = aggregate.get_item(order_item_id)

        if line.is_gift:
            raise ValidationError("Gift items cannot be edited", details={"order_item_id": line.id})
        quantity = payload.get("quantity")
        if quantity is not None and quantity < line.quantity and line.status in PRODUCTION_STATUSES:
            raise ValidationError(
                f"'{line.name}' is already {line.status}; use reduce_item to cancel part of it",
                details={"order_item_id": line.id, "status": line.status},
            )

        aggregate.update_line(
            line,
            quantity=quantity,
            customization=payload.get("customization"),
            notes=payload.get("notes"),
        )
        OrderLifecycleManager._finalize(aggregate)
        return line

    @staticmethod
    @transaction.atomic
    def update_order(order_id, data) -> Order:
        payload = validate_payload(UpdateOrderSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        aggregate.ensure_open()
        order = aggregate.order

        fields = []
        if "customer_id" in payload and payload["customer_id"] != order.customer_id:
            if order.promotion_id:
                raise ValidationError(
                    "Remove the applied promotion before changing the customer",
                    details={"promotion_id": order.promotion_id},
                )
            customer_id = payload["customer_id"]
            order.customer = CustomerService.get_customer(customer_id) if customer_id else None
            fields.append("customer")
        if "notes" in payload:
            order.notes = payload["notes"]
            fields.append("notes")
        if fields:
            aggregate.save(*fields)
        return order

    @staticmethod
    @transaction.atomic
    def reduce_item(order_id, order_item_id, data, staff=None):
        """
        Cancel part or all of a line. Items the kitchen already worked on
        are booked as a loss.
        """
        payload = validate_payload(ReduceItemSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        aggregate.ensure_open()

        reduction = aggregate.reduce_item(order_item_id, payload["quantity"], payload["reason"])
        OrderLifecycleManager.loss_accountant.record(
            aggregate.order, reduction, reason=payload["reason"], staff=staff
        )
        OrderLifecycleManager._finalize(aggregate)
        logger.info(
            f"Reduced {reduction.quantity} x {reduction.line.name} on order {aggregate.order.code}"
            f"{' (whole item)' if reduction.full else ''}"
        )
        return reduction

    @staticmethod
    def remove_item(order_id, order_item_id, reason: str = "", staff=None):
        """Cancel a whole line with its toppings."""
        line = OrderItem.objects.filter(order_id=order_id, pk=order_item_id).first()
        if line is None:
            raise ResourceNotFoundError("OrderItem", order_item_id)
        return OrderLifecycleManager.reduce_item(
            order_id, order_item_id, {"quantity": line.quantity, "reason": reason}, staff=staff
        )

    @staticmethod
    @transaction.atomic
    def update_item_status(order_id, order_item_id, data, staff=None):
        """
        Kitchen status change for some or all units of a line. Works on paid
        orders too since the kitchen keeps going after checkout.
        """
        payload = validate_payload(UpdateItemStatusSerializer, data)
        new_status = payload["status"]

        if new_status == ItemStatus.CANCELED:
            line = OrderItem.objects.filter(order_id=order_id, pk=order_item_id).first()
            if line is None:
                raise ResourceNotFoundError("OrderItem", order_item_id)
            return OrderLifecycleManager.reduce_item(
                order_id,
                order_item_id,
                {"quantity": payload.get("quantity") or line.quantity, "reason": payload["reason"]},
                staff=staff,
            )

        aggregate = OrderAggregate.load(order_id, lock=True)
        order = aggregate.order
        if order.status == OrderStatus.CANCELLED:
            raise OrderClosedError(order)

        change = aggregate.set_item_status(order_item_id, new_status, payload.get("quantity"))
        if order.status == OrderStatus.PENDING:
            aggregate.transition(OrderStatus.IN_PROGRESS)
        if not order.is_closed:
            OrderLifecycleManager._finalize(aggregate)
        logger.info(
            f"Order {order.code}: {change.quantity} x {change.line.name} "
            f"{change.previous_status} -> {new_status}"
        )
        return change

    @staticmethod
    @transaction.atomic
    def send_to_kitchen(order_id) -> Order:
        aggregate = OrderAggregate.load(order_id, lock=True)
        aggregate.ensure_open()
        if not any(line.status == ItemStatus.PENDING for line in aggregate.lines()):
            raise ValidationError(
                "There are no pending items to send to the kitchen",
                details={"order_id": aggregate.order.id},
            )
        OrderLifecycleManager._dispatch_pending(aggregate)
        if aggregate.order.status == OrderStatus.PENDING:
            aggregate.transition(OrderStatus.IN_PROGRESS)
        logger.info(f"Order {aggregate.order.code} sent to the kitchen")
        return aggregate.order

    # -- payment and cancellation -----------------------------------------

    @staticmethod
    @transaction.atomic
    def checkout(order_id, data, staff=None) -> Order:
        payload = validate_payload(CheckoutSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        order = aggregate.order

        if order.is_paid:
            raise OrderAlreadyPaidError(order)
        aggregate.ensure_open()

        promotion_id = payload.get("promotion_id")
        if promotion_id and promotion_id != order.promotion_id:
            OrderLifecycleManager.promotion_engine.apply_to_aggregate(
                aggregate, promotion_id, payload.get("selected_gifts") or None
            )

        paid_amount: Decimal = payload["paid_amount"]
        if paid_amount < order.total_amount:
            raise InsufficientPaymentError(order, paid_amount)

        OrderLifecycleManager._dispatch_pending(aggregate)
        aggregate.transition(OrderStatus.COMPLETED)

        order.payment_status = Order.PaymentStatus.PAID
        order.payment_method = payload["payment_method"]
        order.paid_amount = paid_amount
        order.change_amount = paid_amount - order.total_amount
        aggregate.save("payment_status", "payment_method", "paid_amount", "change_amount")

        if order.table_id:
            TableService.release(order.table_id)

        if order.customer_id:
            CustomerService.increment_stats(order.customer_id, order.total_amount)
            CustomerService.reassign_tier(order.customer_id)

        if order.total_amount > 0:
            category = LedgerService.get_default_category(
                app_settings.income_category_name, FinanceCategory.CategoryType.INCOME
            )
            LedgerService.post_transaction(
                category=category,
                amount=order.total_amount,
                direction=FinanceTransaction.Direction.INCOME,
                payment_method=LEDGER_PAYMENT_METHODS[order.payment_method],
                reference_type=FinanceTransaction.ReferenceType.ORDER,
                reference_id=order.id,
                notes=f"Payment for order {order.code}",
                created_by=staff,
            )

        logger.info(
            f"Checked out order {order.code}: total {order.total_amount}, "
            f"paid {paid_amount} by {order.payment_method}"
        )
        return order

    @staticmethod
    @transaction.atomic
    def cancel(order_id, data=None) -> Order:
        payload = validate_payload(CancelOrderSerializer, data or {})
        aggregate = OrderAggregate.load(order_id, lock=True)
        order = aggregate.order
        if order.status == OrderStatus.COMPLETED:
            raise OrderClosedError(order, message=f"Order {order.code} is completed and cannot be cancelled")
        aggregate.ensure_open()

        OrderLifecycleManager._cancel(aggregate, payload["reason"])
        logger.info(f"Cancelled order {order.code}")
        return order

    # -- promotions --------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def apply_promotion(order_id, data):
        payload = validate_payload(ApplyPromotionSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        return OrderLifecycleManager.promotion_engine.apply_to_aggregate(
            aggregate, payload["promotion_id"], payload.get("selected_gifts") or None
        )

    @staticmethod
    @transaction.atomic
    def unapply_promotion(order_id, promotion_id) -> Order:
        aggregate = OrderAggregate.load(order_id, lock=True)
        return OrderLifecycleManager.promotion_engine.unapply_from_aggregate(aggregate, promotion_id)

    @staticmethod
    def available_promotions(order_id):
        aggregate = OrderAggregate.load(order_id, lock=False)
        return OrderLifecycleManager.promotion_engine.available_promotions(aggregate)

    # -- tables ------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def transfer_table(order_id, data) -> Order:
        payload = validate_payload(TransferTableSerializer, data)
        aggregate = OrderAggregate.load(order_id, lock=True)
        aggregate.ensure_open()
        order = aggregate.order

        new_table_id = payload["table_id"]
        if order.table_id == new_table_id:
            raise ValidationError("The order is already at this table", details={"table_id": new_table_id})
        TableService.ensure_available(new_table_id)

        previous_table_id = order.table_id
        order.table_id = new_table_id
        aggregate.save("table")
        if previous_table_id:
            TableService.release(previous_table_id)
        TableService.occupy(new_table_id)
        logger.info(f"Moved order {order.code} from table {previous_table_id} to {new_table_id}")
        return order

    @staticmethod
    @transaction.atomic
    def merge_orders(data) -> Order:
        """
        Move every live line of the source order into the target order and
        cancel the source. The source's promotion is removed first.
        """
        payload = validate_payload(MergeOrdersSerializer, data)
        source, target = OrderLifecycleManager._load_pair(
            payload["source_order_id"], payload["target_order_id"]
        )
        source.ensure_open()
        target.ensure_open()

        if source.order.promotion_id:
            OrderLifecycleManager.promotion_engine.unapply_from_aggregate(source)

        for line in source.lines():
            if line.is_topping or line.status in TERMINAL_ITEM_STATUSES:
                continue
            source.move_line(line.id, None, target)

        source.recompute_totals()
        source.transition(OrderStatus.CANCELLED)
        source.order.notes = _append_note(source.order.notes, f"Merged into {target.order.code}")
        source.save("notes")
        if source.order.table_id:
            TableService.release(source.order.table_id)

        OrderLifecycleManager._finalize(target)
        logger.info(f"Merged order {source.order.code} into {target.order.code}")
        return target.order

    @staticmethod
    @transaction.atomic
    def split_order(order_id, data, staff=None) -> Order:
        """Move selected lines, whole or partial, into a new order."""
        payload = validate_payload(SplitOrderSerializer, data)
        source = OrderAggregate.load(order_id, lock=True)
        source.ensure_open()

        selections = []
        for selection in payload["items"]:
            line = source.get_item(selection["order_item_id"])
            if line.is_topping:
                raise ValidationError(
                    "Toppings move together with their item",
                    details={"order_item_id": line.id},
                )
            if line.status in TERMINAL_ITEM_STATUSES:
                raise ValidationError(
                    f"'{line.name}' is {line.status} and cannot be moved",
                    details={"order_item_id": line.id},
                )
            quantity = selection.get("quantity") or line.quantity
            if quantity > line.quantity:
                raise ValidationError(
                    f"Only {line.quantity} x '{line.name}' can be moved",
                    details={"order_item_id": line.id, "quantity": quantity},
                )
            selections.append((line, quantity))

        staying = sum(
            line.quantity
            for line in source.active_lines()
            if not line.is_topping and not line.is_gift
        ) - sum(quantity for line, quantity in selections if not line.is_gift)
        if staying <= 0:
            raise ValidationError("At least one item must stay on the original order")

        table_id = payload.get("table_id")
        if table_id:
            TableService.ensure_available(table_id)

        new_order = Order.objects.create(
            table_id=table_id,
            customer=source.order.customer,
            staff=staff or source.order.staff,
            notes=f"Split from {source.order.code}",
        )
        target = OrderAggregate.load(new_order.id, lock=True)
        for line, quantity in selections:
            source.move_line(line.id, quantity, target)

        OrderLifecycleManager._finalize(source)
        OrderLifecycleManager._finalize(target)
        if table_id:
            TableService.occupy(table_id)
        logger.info(f"Split {len(selections)} lines from order {source.order.code} into {new_order.code}")
        return target.order
