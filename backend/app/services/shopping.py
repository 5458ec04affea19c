"""
Shopping list generation.

Walks every planned meal's recipe graph and sums the raw ingredients that
feed a step. Quantities are keyed by (product, unit); units are never
converted, so "2 cup" and "480 ml" of the same product stay separate lines.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from app.models.outputs import (
    AggregatedProduct,
    PantryCheckItem,
    ProductSource,
    ShoppingListGroups,
    format_quantity,
)
from app.models.recipes import PlannedMeal, ProductType, RecipeGraphData
from app.services.graph import iter_meal_graphs

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"


def build_shopping_list(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
) -> list[AggregatedProduct]:
    """Build the flat shopping list for a set of planned meals.

    A node is bought when its product is raw and it is consumed by at least
    one step. Each node contributes quantity x meal servings; a missing
    quantity counts as zero but the product still appears.
    """
    aggregated: dict[tuple[str, str], AggregatedProduct] = {}
    meal_count = 0

    for meal, graph in iter_meal_graphs(planned_meals, recipe_data):
        meal_count += 1
        recipe_name = graph.recipe.name
        servings = meal.servings

        for node in graph.nodes.values():
            if not graph.is_input(node.id):
                continue

            product = node.product
            if product is None:
                logger.debug(f"Node {node.id} in '{recipe_name}' has no product, skipping")
                continue
            if product.type != ProductType.RAW:
                continue

            unit = node.unit or ""
            quantity = (node.quantity or 0) * servings
            key = (product.id, unit)

            existing = aggregated.get(key)
            if existing is None:
                existing = AggregatedProduct(
                    product_id=product.id,
                    product_name=product.name,
                    product_type=ProductType.RAW,
                    unit=unit,
                    is_pantry=product.pantry,
                    track_quantity=product.track_quantity,
                    store_name=product.store.name if product.store else None,
                    section_name=product.section.name if product.section else None,
                )
                aggregated[key] = existing

            existing.total_quantity += quantity
            existing.sources.append(
                ProductSource(recipe_name=recipe_name, quantity=quantity, unit=unit)
            )

    result = list(aggregated.values())
    logger.info(f"Shopping list: {len(result)} items from {meal_count} planned meals")
    return result


def group_shopping_list(items: Iterable[AggregatedProduct]) -> ShoppingListGroups:
    """Group non-pantry items by store then section; pantry items go to a check list.

    Stores and sections are sorted by name with "Unassigned" last; items are
    sorted by product name.
    """
    by_store: dict[str, dict[str, list[AggregatedProduct]]] = {}
    pantry_check: list[PantryCheckItem] = []

    for item in items:
        if item.is_pantry:
            pantry_check.append(_pantry_check_item(item))
            continue

        store = item.store_name or UNASSIGNED
        section = item.section_name or UNASSIGNED
        by_store.setdefault(store, {}).setdefault(section, []).append(item)

    sorted_groups: dict[str, dict[str, list[AggregatedProduct]]] = {}
    for store in sorted(by_store, key=_group_sort_key):
        sections = by_store[store]
        sorted_groups[store] = {
            section: sorted(sections[section], key=lambda i: i.product_name.casefold())
            for section in sorted(sections, key=_group_sort_key)
        }

    pantry_check.sort(key=lambda i: i.product_name.casefold())
    return ShoppingListGroups(by_store=sorted_groups, pantry_check=pantry_check)


def _group_sort_key(name: str) -> tuple[bool, str]:
    return (name == UNASSIGNED, name.casefold())


def _pantry_check_item(item: AggregatedProduct) -> PantryCheckItem:
    if not item.track_quantity:
        return PantryCheckItem(product_id=item.product_id, product_name=item.product_name)

    return PantryCheckItem(
        product_id=item.product_id,
        product_name=item.product_name,
        track_quantity=True,
        total_quantity=item.total_quantity,
        unit=item.unit,
        display_amount=format_quantity(item.total_quantity, item.unit),
    )
