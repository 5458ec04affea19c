"""
Storage and container resolution.

Answers "what ends up in the fridge/freezer/dry storage" after batch prep,
which containers belong to which meal, and what to pull out of storage
before serving a just-in-time meal. Also surfaces ready-to-eat inventory
and inventory products that planned recipes need but are out of stock.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from app.models.outputs import (
    ContainerEntry,
    MealContainer,
    PullListItem,
    PullListMeal,
    PullSource,
    ReadyToEatOptions,
    ReadyToEatProduct,
    StockWarning,
    StoredItem,
)
from app.models.recipes import (
    Day,
    InventoryItem,
    MealSlot,
    PlannedMeal,
    Product,
    ProductType,
    ReadyToEatSlot,
    RecipeGraphData,
    StorageLocation,
)
from app.services.graph import iter_meal_graphs

logger = logging.getLogger(__name__)

STORAGE_LOCATIONS = [StorageLocation.FRIDGE, StorageLocation.FREEZER, StorageLocation.DRY]
DAY_ORDER = list(Day)
SLOT_ORDER = list(MealSlot)


def _scaled(quantity: Optional[float], servings: float) -> Optional[float]:
    if quantity is None:
        return None
    return quantity * servings


# ============================================================================
# Stored items and meal containers
# ============================================================================

def build_stored_items(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
) -> list[StoredItem]:
    """List every stored product a step produces, one entry per planned meal.

    Location and container come from the product record, not the node.
    """
    items: list[StoredItem] = []

    for meal, graph in iter_meal_graphs(planned_meals, recipe_data):
        for node in graph.nodes.values():
            if not graph.is_output(node.id):
                continue
            product = node.product
            if product is None or product.type != ProductType.STORED:
                continue

            items.append(
                StoredItem(
                    product_id=product.id,
                    product_name=product.name,
                    storage_location=product.storage_location,
                    container_type_name=product.container_type.name if product.container_type else None,
                    meal_destination=node.meal_destination,
                    quantity=_scaled(node.quantity, meal.servings),
                    unit=node.unit,
                    recipe_name=graph.recipe.name,
                    planned_meal_id=meal.id,
                )
            )

    logger.info(f"Stored items: {len(items)}")
    return items


def group_stored_items(items: Iterable[StoredItem]) -> dict[StorageLocation, list[StoredItem]]:
    """Group stored items by location (fridge, freezer, dry); empty locations are left out."""
    items = list(items)
    groups: dict[StorageLocation, list[StoredItem]] = {}
    for location in STORAGE_LOCATIONS:
        matching = [item for item in items if item.storage_location == location]
        if matching:
            groups[location] = matching
    return groups


def build_meal_containers(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
) -> list[MealContainer]:
    """Container manifest per recipe, in first-seen order.

    Identical container lines from several planned meals of one recipe are
    merged and their quantities summed.
    """
    manifests: dict[str, MealContainer] = {}

    for item in build_stored_items(planned_meals, recipe_data):
        manifest = manifests.setdefault(item.recipe_name, MealContainer(recipe_name=item.recipe_name))

        for entry in manifest.containers:
            if (
                entry.product_id == item.product_id
                and entry.container_type_name == item.container_type_name
                and entry.storage_location == item.storage_location
                and entry.meal_destination == item.meal_destination
                and entry.unit == item.unit
            ):
                if item.quantity is not None:
                    entry.quantity = (entry.quantity or 0) + item.quantity
                break
        else:
            manifest.containers.append(
                ContainerEntry(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    container_type_name=item.container_type_name,
                    storage_location=item.storage_location,
                    meal_destination=item.meal_destination,
                    quantity=item.quantity,
                    unit=item.unit,
                )
            )

    return list(manifests.values())


# ============================================================================
# Pull lists (just-in-time assembly)
# ============================================================================

def pull_source(product: Product) -> Optional[PullSource]:
    """Where to fetch a step input from; None for products that are never pulled."""
    if product.type == ProductType.STORED:
        return PullSource(product.storage_location.value)
    if product.type == ProductType.INVENTORY:
        if product.storage_location:
            return PullSource(product.storage_location.value)
        return PullSource.PANTRY
    return None


def build_pull_lists(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
) -> list[PullListMeal]:
    """Build "pull before serving" lists for meals scheduled on a specific day.

    Only stored and inventory inputs of just-in-time assembly steps are
    listed. Week-spanning meals and meals with nothing to pull are skipped.
    """
    lists: list[PullListMeal] = []

    dated_meals = [m for m in planned_meals if m.day is not None]
    for meal, graph in iter_meal_graphs(dated_meals, recipe_data):
        items: list[PullListItem] = []

        for step in graph.steps.values():
            if not step.is_just_in_time:
                continue

            for node in graph.inputs_of(step.id):
                product = node.product
                if product is None:
                    continue
                source = pull_source(product)
                if source is None:
                    continue

                items.append(
                    PullListItem(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=_scaled(node.quantity, meal.servings),
                        unit=node.unit,
                        container_type_name=product.container_type.name if product.container_type else None,
                        from_storage=source,
                    )
                )

        if items:
            lists.append(
                PullListMeal(
                    day=meal.day,
                    slot=meal.meal_slot,
                    recipe_name=graph.recipe.name,
                    planned_meal_id=meal.id,
                    items=items,
                )
            )

    lists.sort(key=lambda p: (DAY_ORDER.index(p.day), SLOT_ORDER.index(p.slot)))
    logger.info(f"Pull lists: {len(lists)} meals")
    return lists


# ============================================================================
# Inventory
# ============================================================================

def get_ready_to_eat(inventory_items: Iterable[InventoryItem]) -> ReadyToEatOptions:
    """In-stock ready-to-eat inventory, split into meals and snacks.

    Products without a meal slot count as meals.
    """
    options = ReadyToEatOptions()

    for item in inventory_items:
        product = item.product
        if not item.in_stock or product.type != ProductType.INVENTORY or not product.ready_to_eat:
            continue

        entry = ReadyToEatProduct(
            product_id=product.id,
            product_name=product.name,
            storage_location=product.storage_location,
        )
        if product.meal_slot == ReadyToEatSlot.SNACK:
            options.snacks.append(entry)
        else:
            options.meals.append(entry)

    options.meals.sort(key=lambda p: p.product_name.casefold())
    options.snacks.sort(key=lambda p: p.product_name.casefold())
    return options


def check_inventory_stock(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
    inventory_items: Iterable[InventoryItem],
) -> list[StockWarning]:
    """One entry per (recipe, inventory product) consumed by a step."""
    in_stock = {item.product.id for item in inventory_items if item.in_stock}

    warnings: list[StockWarning] = []
    seen: set[tuple[str, str]] = set()

    for _meal, graph in iter_meal_graphs(planned_meals, recipe_data):
        for node in graph.nodes.values():
            product = node.product
            if product is None or product.type != ProductType.INVENTORY:
                continue
            if not graph.is_input(node.id):
                continue

            key = (graph.recipe.name, product.id)
            if key in seen:
                continue
            seen.add(key)

            warnings.append(
                StockWarning(
                    recipe_name=graph.recipe.name,
                    product_id=product.id,
                    product_name=product.name,
                    in_stock=product.id in in_stock,
                )
            )

    missing = sum(1 for w in warnings if not w.in_stock)
    if missing:
        logger.warning(f"{missing} inventory products used this week are out of stock")
    return warnings
