"""
Read contract the order engine uses against the catalog.
"""

from decimal import Decimal
from typing import Dict, Iterable, List
import logging

from core_backend.exceptions import ResourceNotFoundError
from .models import InventoryItem, RecipeIngredient, Combo

logger = logging.getLogger(__name__)


class CatalogService:

    @staticmethod
    def get_item(item_id, include_archived: bool = False) -> InventoryItem:
        """
        Fetch an item with its category. Archived items are hidden unless
        ``include_archived`` is set (pricing existing order rows needs them).
        """
        manager = InventoryItem.all_objects if include_archived else InventoryItem.objects
        try:
            return manager.select_related("category").get(pk=item_id)
        except InventoryItem.DoesNotExist:
            raise ResourceNotFoundError("Item", item_id)

    @staticmethod
    def get_items(item_ids: Iterable) -> Dict[int, InventoryItem]:
        """Bulk lookup keyed by id, archived items included."""
        ids = {i for i in item_ids if i is not None}
        if not ids:
            return {}
        return {
            item.id: item
            for item in InventoryItem.all_objects.select_related("category").filter(pk__in=ids)
        }

    @staticmethod
    def get_recipe(item_id) -> List[RecipeIngredient]:
        return list(
            RecipeIngredient.objects.select_related("ingredient_item")
            .filter(item_id=item_id)
            .order_by("id")
        )

    @staticmethod
    def recipe_cost(item_id) -> Decimal:
        """Sum of ingredient quantity x ingredient average cost for one unit."""
        total = Decimal("0")
        for line in CatalogService.get_recipe(item_id):
            total += line.quantity * line.ingredient_item.avg_unit_cost
        return total

    @staticmethod
    def get_combo(combo_id) -> Combo:
        """
        Fetch a combo regardless of its active flag; callers decide whether
        an inactive or expired combo is acceptable.
        """
        try:
            return Combo.all_objects.prefetch_related("groups__items").get(pk=combo_id)
        except Combo.DoesNotExist:
            raise ResourceNotFoundError("Combo", combo_id)

    @staticmethod
    def combo_members(combo: Combo) -> Dict[int, Decimal]:
        """Map member item id -> extra price across every group of the combo."""
        members = {}
        for group in combo.groups.all():
            for member in group.items.all():
                # An item listed in two groups keeps its first surcharge
                members.setdefault(member.item_id, member.extra_price)
        return members
