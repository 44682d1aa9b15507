from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from catalog.services import CatalogService
from core_backend.config import app_settings
from core_backend.exceptions import ResourceNotFoundError
from core_backend.utils.money import ZERO, round_currency
from finance.models import FinanceCategory, FinanceTransaction
from finance.services import LedgerService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LossLine:
    order_item_id: int
    name: str
    quantity: int
    unit_cost: Decimal
    cost_source: str

    @property
    def amount(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass
class LossAssessment:
    lines: List[LossLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return round_currency(sum((line.amount for line in self.lines), ZERO))

    @property
    def is_empty(self) -> bool:
        return self.total <= 0


class LossAccountant:
    """
    Cost-basis loss for items canceled after the kitchen started on them.
    """

    def __init__(self, ledger=LedgerService):
        self.ledger = ledger

    @staticmethod
    def is_accountable(previous_status) -> bool:
        return previous_status in app_settings.loss_accounted_statuses

    @staticmethod
    def unit_cost(order_item) -> Tuple[Decimal, str]:
        """
        Cost of one unit: average cost, then recipe cost, then the sale price.
        Returns (cost, source).
        """
        if order_item.item_id:
            try:
                catalog_item = CatalogService.get_item(order_item.item_id, include_archived=True)
            except ResourceNotFoundError:
                catalog_item = None
            if catalog_item is not None:
                if catalog_item.avg_unit_cost > 0:
                    return catalog_item.avg_unit_cost, "average"
                recipe_cost = CatalogService.recipe_cost(catalog_item.id)
                if recipe_cost > 0:
                    return recipe_cost, "recipe"

        logger.warning(
            f"No cost data for '{order_item.name}' (order item {order_item.id}), "
            f"using sale price {order_item.unit_price}"
        )
        return order_item.unit_price, "sale_price"

    def assess(self, reduction) -> LossAssessment:
        if not self.is_accountable(reduction.previous_status):
            return LossAssessment()

        cost, source = self.unit_cost(reduction.line)
        lines = [
            LossLine(
                order_item_id=reduction.canceled_row.id,
                name=reduction.line.name,
                quantity=reduction.quantity,
                unit_cost=cost,
                cost_source=source,
            )
        ]
        if reduction.full:
            for topping in reduction.canceled_toppings:
                topping_cost, topping_source = self.unit_cost(topping)
                lines.append(
                    LossLine(
                        order_item_id=topping.id,
                        name=topping.name,
                        quantity=topping.quantity,
                        unit_cost=topping_cost,
                        cost_source=topping_source,
                    )
                )
        return LossAssessment(lines=lines)

    def record(self, order, reduction, reason: str = "", staff=None) -> Optional[FinanceTransaction]:
        """Post the loss of one reduction as an expense; returns None when there is no loss."""
        assessment = self.assess(reduction)
        if assessment.is_empty:
            return None

        category = self.ledger.get_default_category(
            app_settings.loss_category_name, FinanceCategory.CategoryType.EXPENSE
        )
        summary = ", ".join(f"{line.quantity} x {line.name}" for line in assessment.lines)
        notes = f"Canceled after preparation on order {order.code}: {summary}"
        if reason:
            notes = f"{notes} ({reason})"

        entry = self.ledger.post_transaction(
            category=category,
            amount=assessment.total,
            direction=FinanceTransaction.Direction.EXPENSE,
            reference_type=FinanceTransaction.ReferenceType.ORDER,
            reference_id=order.id,
            notes=notes,
            created_by=staff,
        )
        logger.info(f"Recorded loss {assessment.total} for order {order.code}")
        return entry
