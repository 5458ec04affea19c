"""
Weekly outputs orchestration.

Turns one weekly plan snapshot into every derived view:
1. Resolve each planned meal's recipe graph, applying that meal's variants
2. Set aside recipes whose graph is missing or malformed (reported, not raised)
3. Run the shopping, batch prep, storage and flow aggregators over the rest
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from app.models.outputs import SkippedRecipe, WeeklyOutputs
from app.models.recipes import PlannedMeal, PlanSnapshot, RecipeGraphData
from app.models.variants import OverrideValidation, VariantOverride
from app.services import supabase as records
from app.services.batch_prep import build_batch_prep_list
from app.services.flow import build_product_flow_graph
from app.services.graph import MalformedGraphError, RecipeGraph
from app.services.shopping import build_shopping_list, group_shopping_list
from app.services.storage import (
    build_meal_containers,
    build_pull_lists,
    build_stored_items,
    check_inventory_stock,
    get_ready_to_eat,
    group_stored_items,
)
from app.services.variants import resolve_variants

logger = logging.getLogger(__name__)


@dataclass
class MealGraphs:
    """Planned meals that can be aggregated, and the graphs to aggregate them with.

    `graphs` is keyed by planned meal ID for meals with variants and by
    recipe ID otherwise.
    """

    planned_meals: list[PlannedMeal] = field(default_factory=list)
    graphs: dict[str, RecipeGraphData] = field(default_factory=dict)
    invalid_overrides: list[OverrideValidation] = field(default_factory=list)
    skipped_recipes: list[SkippedRecipe] = field(default_factory=list)


def prepare_meal_graphs(snapshot: PlanSnapshot) -> MealGraphs:
    """Validate recipe graphs and apply per-meal variant overrides."""
    prepared = MealGraphs()

    meals_by_recipe: dict[str, list[PlannedMeal]] = defaultdict(list)
    for meal in snapshot.planned_meals:
        meals_by_recipe[meal.recipe].append(meal)

    overrides_by_meal: dict[str, list[VariantOverride]] = defaultdict(list)
    for override in snapshot.overrides:
        overrides_by_meal[override.planned_meal].append(
            VariantOverride(
                original_node_id=override.original_node,
                replacement_product=override.replacement,
            )
        )

    for recipe_id, meals in meals_by_recipe.items():
        meal_ids = [m.id for m in meals]
        data = snapshot.recipes.get(recipe_id)

        if data is None:
            logger.warning(f"Recipe {recipe_id} has no graph data, skipping {len(meals)} meals")
            prepared.skipped_recipes.append(
                SkippedRecipe(recipe_id=recipe_id, planned_meal_ids=meal_ids, reason="Recipe not found")
            )
            continue

        try:
            RecipeGraph(data)
            resolved = {}
            for meal in meals:
                meal_overrides = overrides_by_meal.get(meal.id)
                if not meal_overrides:
                    continue
                resolution = resolve_variants(data, meal_overrides)
                if resolution.graph is not data:
                    resolved[meal.id] = resolution.graph
                for invalid in resolution.validation.invalid:
                    invalid.planned_meal_id = meal.id
                    prepared.invalid_overrides.append(invalid)
        except MalformedGraphError as e:
            logger.error(f"Skipping recipe '{data.recipe.name}': {e}")
            prepared.skipped_recipes.append(
                SkippedRecipe(recipe_id=recipe_id, planned_meal_ids=meal_ids, reason=str(e))
            )
            continue

        prepared.graphs[recipe_id] = data
        prepared.graphs.update(resolved)
        prepared.planned_meals.extend(meals)

    if prepared.invalid_overrides:
        logger.warning(f"{len(prepared.invalid_overrides)} variant overrides could not be applied")

    return prepared


def compute_weekly_outputs(snapshot: PlanSnapshot) -> WeeklyOutputs:
    """Compute every weekly view for a plan snapshot."""
    prepared = prepare_meal_graphs(snapshot)
    meals = prepared.planned_meals
    graphs = prepared.graphs

    shopping_list = build_shopping_list(meals, graphs)
    stored_items = build_stored_items(meals, graphs)

    outputs = WeeklyOutputs(
        shopping_list=shopping_list,
        shopping_groups=group_shopping_list(shopping_list),
        batch_prep=build_batch_prep_list(meals, graphs),
        stored_items=stored_items,
        stored_by_location=group_stored_items(stored_items),
        meal_containers=build_meal_containers(meals, graphs),
        pull_lists=build_pull_lists(meals, graphs),
        ready_to_eat=get_ready_to_eat(snapshot.inventory_items),
        stock_warnings=check_inventory_stock(meals, graphs, snapshot.inventory_items),
        flow_graph=build_product_flow_graph(meals, graphs),
        invalid_overrides=prepared.invalid_overrides,
        skipped_recipes=prepared.skipped_recipes,
        planned_meal_count=len(snapshot.planned_meals),
    )

    logger.info(
        f"Weekly outputs computed for {len(meals)}/{len(snapshot.planned_meals)} planned meals "
        f"({len(prepared.skipped_recipes)} recipes skipped)"
    )
    return outputs


async def load_plan_snapshot(plan_id: str) -> PlanSnapshot:
    """Read a weekly plan and everything its outputs depend on."""
    planned_meals = await records.get_planned_meals(plan_id)

    recipes: dict[str, RecipeGraphData] = {}
    for recipe_id in dict.fromkeys(m.recipe for m in planned_meals):
        data = await records.get_recipe_graph_data(recipe_id)
        if data is not None:
            recipes[recipe_id] = data

    overrides = await records.get_variant_overrides([m.id for m in planned_meals])
    inventory_items = await records.get_inventory_items()

    logger.info(
        f"Loaded plan {plan_id}: {len(planned_meals)} meals, {len(recipes)} recipes, "
        f"{len(overrides)} overrides, {len(inventory_items)} inventory items"
    )
    return PlanSnapshot(
        planned_meals=planned_meals,
        recipes=recipes,
        overrides=overrides,
        inventory_items=inventory_items,
    )
