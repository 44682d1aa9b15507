"""
Shared test fixtures for all backend tests.

A small cafe menu: drinks and food, a composite burger with a recipe, a
burger combo, two tables, two membership tiers and a member customer.
"""
import pytest
from decimal import Decimal
from itertools import count

from django.contrib.auth import get_user_model

from catalog.models import Category, Combo, ComboGroup, ComboItem, InventoryItem, RecipeIngredient
from customers.models import Customer, CustomerGroup
from promotions.models import Promotion
from tables.models import Area, Table


# ============================================================================
# USERS
# ============================================================================

@pytest.fixture
def staff_user(db):
    """Cashier placing orders"""
    return get_user_model().objects.create_user(username="cashier", password="cashier-pass")


# ============================================================================
# CATALOG
# ============================================================================

@pytest.fixture
def drinks(db):
    return Category.objects.create(name="Drinks")


@pytest.fixture
def food(db):
    return Category.objects.create(name="Food")


@pytest.fixture
def coffee(drinks):
    """Ready-made drink with a known average cost"""
    return InventoryItem.objects.create(
        code="CF01",
        name="Iced coffee",
        category=drinks,
        selling_price=Decimal("30000"),
        avg_unit_cost=Decimal("12000"),
    )


@pytest.fixture
def tea(drinks):
    """Drink with no cost data at all"""
    return InventoryItem.objects.create(
        code="TEA01",
        name="Peach tea",
        category=drinks,
        selling_price=Decimal("20000"),
    )


@pytest.fixture
def fries(food):
    return InventoryItem.objects.create(
        code="FR01",
        name="French fries",
        category=food,
        selling_price=Decimal("30000"),
        avg_unit_cost=Decimal("10000"),
    )


@pytest.fixture
def cheese_topping(food):
    return InventoryItem.objects.create(
        code="TP01",
        name="Extra cheese",
        category=food,
        selling_price=Decimal("10000"),
        avg_unit_cost=Decimal("3000"),
    )


@pytest.fixture
def burger(food):
    """Composite item with no average cost; its recipe costs 25,000 per unit"""
    burger = InventoryItem.objects.create(
        code="BG01",
        name="Beef burger",
        category=food,
        item_type=InventoryItem.ItemType.COMPOSITE,
        selling_price=Decimal("60000"),
    )
    bun = InventoryItem.objects.create(
        code="ING-BUN",
        name="Burger bun",
        item_type=InventoryItem.ItemType.INGREDIENT,
        is_sellable=False,
        avg_unit_cost=Decimal("5000"),
    )
    patty = InventoryItem.objects.create(
        code="ING-PATTY",
        name="Beef patty",
        item_type=InventoryItem.ItemType.INGREDIENT,
        is_sellable=False,
        avg_unit_cost=Decimal("20000"),
    )
    RecipeIngredient.objects.create(item=burger, ingredient_item=bun, quantity=Decimal("1"), unit="pc")
    RecipeIngredient.objects.create(item=burger, ingredient_item=patty, quantity=Decimal("1"), unit="pc")
    return burger


@pytest.fixture
def burger_combo(burger, fries, coffee, tea):
    """Burger + fries + drink for 80,000; peach tea is a 5,000 upgrade"""
    combo = Combo.objects.create(name="Burger combo", combo_price=Decimal("80000"))
    main = ComboGroup.objects.create(combo=combo, name="Main", sort_order=1)
    side = ComboGroup.objects.create(combo=combo, name="Side", sort_order=2)
    drink = ComboGroup.objects.create(combo=combo, name="Drink", sort_order=3)
    ComboItem.objects.create(group=main, item=burger)
    ComboItem.objects.create(group=side, item=fries)
    ComboItem.objects.create(group=drink, item=coffee)
    ComboItem.objects.create(group=drink, item=tea, extra_price=Decimal("5000"))
    return combo


# ============================================================================
# TABLES
# ============================================================================

@pytest.fixture
def area(db):
    return Area.objects.create(name="Ground floor")


@pytest.fixture
def table(area):
    return Table.objects.create(name="T1", area=area)


@pytest.fixture
def second_table(area):
    return Table.objects.create(name="T2", area=area)


# ============================================================================
# CUSTOMERS
# ============================================================================

@pytest.fixture
def silver_group(db):
    return CustomerGroup.objects.create(name="Silver", priority=1)


@pytest.fixture
def gold_group(db):
    return CustomerGroup.objects.create(
        name="Gold", priority=10, min_orders=1, min_spend=Decimal("100000")
    )


@pytest.fixture
def customer(silver_group):
    return Customer.objects.create(name="Nguyen Van A", phone="0900000001", group=silver_group)


# ============================================================================
# FACTORIES
# ============================================================================

@pytest.fixture
def make_promotion(db):
    """
    Build a promotion. Many-to-many scopes are passed as lists:

        make_promotion(promotion_type=Promotion.PromotionType.PERCENTAGE,
                       discount_value=Decimal("10"), applicable_items=[coffee])
    """
    sequence = count(1)
    relations = (
        "gift_items",
        "applicable_items",
        "applicable_categories",
        "applicable_combos",
        "applicable_customers",
        "applicable_customer_groups",
    )

    def factory(**kwargs):
        related = {name: kwargs.pop(name) for name in relations if name in kwargs}
        number = next(sequence)
        kwargs.setdefault("code", f"PROMO{number}")
        kwargs.setdefault("name", f"Promotion {number}")
        kwargs.setdefault("promotion_type", Promotion.PromotionType.PERCENTAGE)
        kwargs.setdefault("apply_to_all_customers", True)
        kwargs.setdefault("apply_to_walk_in", True)
        promotion = Promotion.objects.create(**kwargs)
        for name, values in related.items():
            getattr(promotion, name).set(values)
        return promotion

    return factory


@pytest.fixture
def make_order(db):
    """
    Create an order through the lifecycle manager.

        make_order([(coffee, 2), (burger, 1, combo)], table=table)
    """
    from orders.services import OrderLifecycleManager

    def factory(lines=(), table=None, customer=None, staff=None, toppings=None):
        toppings = toppings or {}
        items = []
        for line in lines:
            item, quantity = line[0], line[1]
            combo = line[2] if len(line) > 2 else None
            payload = {"item_id": item.id, "quantity": quantity}
            if combo is not None:
                payload["combo_id"] = combo.id
            if item.id in toppings:
                payload["attached_toppings"] = [
                    {"item_id": topping.id, "quantity": qty} for topping, qty in toppings[item.id]
                ]
            items.append(payload)
        data = {
            "table_id": table.id if table else None,
            "customer_id": customer.id if customer else None,
            "items": items,
        }
        return OrderLifecycleManager.create(data, staff=staff)

    return factory
