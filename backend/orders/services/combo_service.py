from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from catalog.models import Combo
from catalog.services import CatalogService
from core_backend.exceptions import ResourceNotFoundError
from core_backend.utils.money import ZERO
from orders.calculators import ComboLine, pro_rate_combo
from orders.exceptions import ComboMembershipError
from orders.models import OrderItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComboMembership:
    combo: Combo
    item_id: int
    extra_price: Decimal


class ComboResolver:
    """Combo membership checks and pro-rated pricing of combo lines."""

    @staticmethod
    def resolve_membership(combo_id, item_id, now=None) -> ComboMembership:
        try:
            combo = CatalogService.get_combo(combo_id)
        except ResourceNotFoundError:
            raise ComboMembershipError(combo_id, item_id, message=f"Combo {combo_id} does not exist")

        if not combo.is_currently_active(now):
            raise ComboMembershipError(
                combo_id, item_id, message=f"Combo '{combo.name}' is not available right now"
            )

        members = CatalogService.combo_members(combo)
        if item_id not in members:
            raise ComboMembershipError(combo_id, item_id)
        return ComboMembership(combo=combo, item_id=item_id, extra_price=members[item_id])

    @staticmethod
    def pro_rate(combo_id, lines: List[OrderItem], combo: Optional[Combo] = None) -> Dict[int, Decimal]:
        """
        Unit price per order line id for all lines of one combo. The lines
        passed in must be the complete non-canceled member set of the order.
        """
        combo = combo or CatalogService.get_combo(combo_id)
        members = CatalogService.combo_members(combo)
        catalog = CatalogService.get_items(line.item_id for line in lines)

        combo_lines = []
        for line in lines:
            catalog_item = catalog.get(line.item_id)
            base_price = catalog_item.selling_price if catalog_item else line.unit_price
            combo_lines.append(
                ComboLine(
                    key=line.id,
                    item_id=line.item_id,
                    base_price=base_price,
                    quantity=line.quantity,
                    extra_price=members.get(line.item_id, ZERO),
                )
            )
        prices = pro_rate_combo(combo_lines, combo.combo_price)
        logger.debug(f"Combo {combo.name} pro-rated over {len(lines)} lines: {prices}")
        return prices

    @staticmethod
    def reprice(aggregate, combo_id) -> Dict[int, Decimal]:
        lines = aggregate.combo_lines(combo_id)
        if not lines:
            return {}
        prices = ComboResolver.pro_rate(combo_id, lines)
        for line in lines:
            aggregate.reprice_line(line, prices[line.id])
        return prices

    @staticmethod
    def reprice_all(aggregate):
        for combo_id in aggregate.combo_ids():
            ComboResolver.reprice(aggregate, combo_id)
