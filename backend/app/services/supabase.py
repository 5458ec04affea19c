"""Supabase record store access.

Reads the planner's record tables (recipes, graph components, weekly plans,
variant overrides, inventory) and converts rows into the recipe models.
Records come back with their product relations expanded, so the engine
never has to look products up separately.
"""

import logging
from functools import lru_cache
from typing import Any, Optional

from supabase import create_client, Client

from app.config import get_settings
from app.models.recipes import (
    InventoryItem,
    MealVariantOverride,
    PlannedMeal,
    ProductToStepEdge,
    Recipe,
    RecipeGraphData,
    RecipeProductNode,
    RecipeStep,
    StepToProductEdge,
)

logger = logging.getLogger(__name__)


class RecordStoreError(RuntimeError):
    """A read against the record store failed."""


@lru_cache
def get_supabase_client() -> Client:
    """Client for the record store selected by `settings.database`."""
    settings = get_settings()
    logger.info(f"Connecting to {settings.database} record store")
    return create_client(settings.record_store_url, settings.record_store_key)


# Table names (match the planner's collections)
TABLES = {
    "stores": "stores",
    "sections": "sections",
    "container_types": "container_types",
    "products": "products",
    "recipes": "recipes",
    "nodes": "recipe_product_nodes",
    "steps": "recipe_steps",
    "product_to_step": "product_to_step_edges",
    "step_to_product": "step_to_product_edges",
    "weekly_plans": "weekly_plans",
    "planned_meals": "planned_meals",
    "overrides": "meal_variant_overrides",
    "inventory": "inventory_items",
}

# Product with its registry relations expanded
PRODUCT_SELECT = "*, store:stores(*), section:sections(*), container_type:container_types(*)"

_PRODUCT_FLAGS = ("pantry", "track_quantity", "ready_to_eat")
_PRODUCT_OPTIONALS = ("storage_location", "meal_slot", "store", "section", "container_type")


# ============================================================================
# Row conversion
# ============================================================================

def _product_row(row: dict[str, Any]) -> dict[str, Any]:
    """Normalize a product row: null flags are false, empty relations are absent."""
    product = dict(row)
    for flag in _PRODUCT_FLAGS:
        if product.get(flag) is None:
            product[flag] = False
    for field in _PRODUCT_OPTIONALS:
        if product.get(field) in (None, ""):
            product.pop(field, None)
    return product


def node_from_row(row: dict[str, Any]) -> RecipeProductNode:
    product = row.get("product")
    data = dict(row)

    if isinstance(product, dict):
        data["product_id"] = product["id"]
        data["product"] = _product_row(product)
    else:
        # Expansion missing: keep the reference, the engine skips the node
        data["product_id"] = product or data.get("product_id", "")
        data["product"] = None

    return RecipeProductNode.model_validate(data)


def step_from_row(row: dict[str, Any]) -> RecipeStep:
    data = dict(row)
    if not data.get("timing"):
        data["timing"] = None
    return RecipeStep.model_validate(data)


def planned_meal_from_row(row: dict[str, Any]) -> PlannedMeal:
    data = dict(row)
    if not data.get("day"):
        data["day"] = None
    return PlannedMeal.model_validate(data)


def override_from_row(row: dict[str, Any]) -> Optional[MealVariantOverride]:
    replacement = row.get("replacement")
    if not isinstance(replacement, dict):
        logger.warning(f"Override {row.get('id')} has no replacement product, ignoring")
        return None

    data = dict(row)
    data["replacement"] = _product_row(replacement)
    return MealVariantOverride.model_validate(data)


def inventory_item_from_row(row: dict[str, Any]) -> Optional[InventoryItem]:
    product = row.get("product")
    if not isinstance(product, dict):
        logger.warning(f"Inventory item {row.get('id')} has no product, ignoring")
        return None

    data = dict(row)
    data["product"] = _product_row(product)
    data["in_stock"] = bool(row.get("in_stock"))
    return InventoryItem.model_validate(data)


# ============================================================================
# Queries
# ============================================================================

def _select_by_recipe(client: Client, table: str, recipe_id: str, select: str = "*") -> list[dict]:
    result = client.table(TABLES[table]).select(select).eq("recipe", recipe_id).execute()
    return result.data or []


async def get_recipe_graph_data(recipe_id: str) -> Optional[RecipeGraphData]:
    """Load a recipe and all of its graph components. None if the recipe is gone."""
    client = get_supabase_client()
    try:
        recipe_rows = (
            client.table(TABLES["recipes"]).select("*").eq("id", recipe_id).limit(1).execute()
        ).data or []
        if not recipe_rows:
            logger.warning(f"Recipe {recipe_id} not found")
            return None

        nodes = _select_by_recipe(client, "nodes", recipe_id, f"*, product:products({PRODUCT_SELECT})")
        steps = _select_by_recipe(client, "steps", recipe_id)
        pts_edges = _select_by_recipe(client, "product_to_step", recipe_id)
        stp_edges = _select_by_recipe(client, "step_to_product", recipe_id)
    except Exception as e:
        logger.error(f"Failed to load recipe {recipe_id}: {e}")
        raise RecordStoreError(f"Failed to load recipe {recipe_id}") from e

    recipe_row = dict(recipe_rows[0])
    if not recipe_row.get("recipe_type"):
        recipe_row.pop("recipe_type", None)

    return RecipeGraphData(
        recipe=Recipe.model_validate(recipe_row),
        product_nodes=[node_from_row(r) for r in nodes],
        steps=[step_from_row(r) for r in steps],
        product_to_step_edges=[ProductToStepEdge.model_validate(r) for r in pts_edges],
        step_to_product_edges=[StepToProductEdge.model_validate(r) for r in stp_edges],
    )


async def get_planned_meals(plan_id: str) -> list[PlannedMeal]:
    """Planned meals of one weekly plan."""
    client = get_supabase_client()
    try:
        result = (
            client.table(TABLES["planned_meals"])
            .select("*")
            .eq("weekly_plan", plan_id)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to load planned meals for plan {plan_id}: {e}")
        raise RecordStoreError(f"Failed to load planned meals for plan {plan_id}") from e

    return [planned_meal_from_row(r) for r in result.data or []]


async def get_variant_overrides(planned_meal_ids: list[str]) -> list[MealVariantOverride]:
    """Variant overrides for a set of planned meals, replacement product expanded."""
    if not planned_meal_ids:
        return []

    client = get_supabase_client()
    try:
        result = (
            client.table(TABLES["overrides"])
            .select(f"*, replacement:products!replacement_product({PRODUCT_SELECT})")
            .in_("planned_meal", planned_meal_ids)
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to load variant overrides: {e}")
        raise RecordStoreError("Failed to load variant overrides") from e

    overrides = [override_from_row(r) for r in result.data or []]
    return [o for o in overrides if o is not None]


async def get_inventory_items() -> list[InventoryItem]:
    client = get_supabase_client()
    try:
        result = (
            client.table(TABLES["inventory"])
            .select(f"*, product:products({PRODUCT_SELECT})")
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to load inventory: {e}")
        raise RecordStoreError("Failed to load inventory") from e

    items = [inventory_item_from_row(r) for r in result.data or []]
    return [i for i in items if i is not None]


async def ping() -> None:
    """Cheapest possible query; raises RecordStoreError when the store is unreachable."""
    client = get_supabase_client()
    try:
        client.table(TABLES["recipes"]).select("id").limit(1).execute()
    except Exception as e:
        raise RecordStoreError(f"Record store unreachable: {e}") from e
