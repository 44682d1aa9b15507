from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from catalog.models import Combo
from catalog.services import CatalogService
from core_backend.utils.money import ZERO
from .rules import PromotionRule, ScopeKind


@dataclass(frozen=True)
class ApplicableLine:
    order_item_id: int
    item_id: Optional[int]
    quantity: int
    total_price: Decimal


@dataclass(frozen=True)
class ApplicableCombo:
    combo_id: int
    combo_price: Decimal


@dataclass
class ApplicableSubset:
    """The part of an order a promotion's product scope covers."""

    kind: ScopeKind
    lines: List[ApplicableLine] = field(default_factory=list)
    combos: List[ApplicableCombo] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        if self.kind == ScopeKind.COMBO:
            return not self.combos
        return not self.lines

    @property
    def subtotal(self) -> Decimal:
        # Combos count at their nominal price, not the pro-rated line prices
        if self.kind == ScopeKind.COMBO:
            return sum((combo.combo_price for combo in self.combos), ZERO)
        return sum((line.total_price for line in self.lines), ZERO)

    @property
    def quantity(self) -> int:
        if self.kind == ScopeKind.COMBO:
            return len(self.combos)
        return sum(line.quantity for line in self.lines)

    def quantities_per_item(self) -> List[int]:
        if self.kind == ScopeKind.COMBO:
            return [1 for _ in self.combos]
        grouped: Dict[Optional[int], int] = {}
        for line in self.lines:
            grouped[line.item_id] = grouped.get(line.item_id, 0) + line.quantity
        return list(grouped.values())


def resolve_applicable_subset(rule: PromotionRule, order_lines: Iterable) -> ApplicableSubset:
    """
    Combo promotions: the distinct in-scope combos present in the order.
    Item promotions: lines whose item is listed, or whose category is listed,
    or every line when an ``apply_to_all_*`` flag is set.
    Canceled lines and gift lines never count.
    """
    scope = rule.product_scope
    candidates = [line for line in order_lines if not line.is_canceled and not line.is_gift]

    if scope.kind == ScopeKind.COMBO:
        combo_ids = sorted(
            {line.combo_id for line in candidates if line.combo_id and scope.covers_combo(line.combo_id)}
        )
        combos = Combo.all_objects.filter(pk__in=combo_ids).order_by("id")
        return ApplicableSubset(
            kind=ScopeKind.COMBO,
            combos=[ApplicableCombo(combo_id=c.id, combo_price=c.combo_price) for c in combos],
        )

    catalog = CatalogService.get_items(line.item_id for line in candidates)
    lines = []
    for line in candidates:
        catalog_item = catalog.get(line.item_id)
        category_id = catalog_item.category_id if catalog_item else None
        if scope.covers_item(line.item_id, category_id):
            lines.append(
                ApplicableLine(
                    order_item_id=line.id,
                    item_id=line.item_id,
                    quantity=line.quantity,
                    total_price=line.total_price,
                )
            )
    return ApplicableSubset(kind=ScopeKind.ITEM, lines=lines)
