"""
Batch prep list computation.

Collects the work that can be done ahead of time across every planned meal:
- Prep steps, plus assembly steps timed as batch
- Steps with identical inputs/outputs (by product) merged into one entry
- Quantities summed per planned meal servings
- A pull list of raw ingredients needed for the whole session
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from app.models.outputs import (
    AggregatedStep,
    BatchPrepList,
    PullListEntry,
    StepProduct,
    StepSource,
)
from app.models.recipes import (
    PlannedMeal,
    ProductType,
    RecipeGraphData,
    RecipeProductNode,
    StepType,
)
from app.services.graph import RecipeGraph, iter_meal_graphs

logger = logging.getLogger(__name__)


def build_batch_prep_list(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
) -> BatchPrepList:
    """Compute the deduplicated batch prep list for a set of planned meals.

    Process:
    1. Walk each planned meal's batch steps
    2. Key each step by its structural signature
    3. Merge steps sharing a signature, summing input/output quantities
    4. Partition into prep and assembly, order by primary input then name
    5. Total up raw inputs into a pull list
    """
    steps: dict[str, AggregatedStep] = {}

    for meal, graph in iter_meal_graphs(planned_meals, recipe_data):
        for step in graph.steps.values():
            if not step.is_batch:
                continue

            signature = graph.signature(step.id)
            inputs = _step_products(graph.inputs_of(step.id), meal.servings)
            outputs = _step_products(graph.outputs_of(step.id), meal.servings, with_destination=True)

            existing = steps.get(signature)
            if existing is None:
                steps[signature] = AggregatedStep(
                    step_id=signature,
                    name=step.name,
                    step_names=[step.name],
                    step_type=step.step_type,
                    timing=step.timing if step.step_type == StepType.ASSEMBLY else None,
                    recipe_name=graph.recipe.name,
                    recipe_sources=[
                        StepSource(
                            recipe_name=graph.recipe.name,
                            step_name=step.name,
                            count=meal.servings,
                        )
                    ],
                    inputs=inputs,
                    outputs=outputs,
                )
                continue

            _merge_step(existing, graph, step.name, meal.servings, inputs, outputs)

    prep = [s for s in steps.values() if s.step_type == StepType.PREP]
    assembly = [s for s in steps.values() if s.step_type == StepType.ASSEMBLY]
    prep.sort(key=_step_sort_key)
    assembly.sort(key=_step_sort_key)

    result = BatchPrepList(
        prep_steps=prep,
        assembly_steps=assembly,
        pull_list=build_prep_pull_list(prep + assembly),
    )

    logger.info(
        f"Batch prep computed: {len(prep)} prep steps, {len(assembly)} assembly steps, "
        f"{len(result.pull_list)} pull list items"
    )
    return result


def build_prep_pull_list(steps: Iterable[AggregatedStep]) -> list[PullListEntry]:
    """Sum the raw inputs of all steps by (product, unit), sorted by name."""
    totals: dict[tuple[str, str], PullListEntry] = {}

    for step in steps:
        for item in step.inputs:
            if item.product_type != ProductType.RAW:
                continue
            key = (item.product_id, item.unit)
            entry = totals.get(key)
            if entry is None:
                entry = PullListEntry(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    unit=item.unit,
                )
                totals[key] = entry
            entry.total_quantity += item.quantity

    return sorted(totals.values(), key=lambda e: (e.product_name.casefold(), e.unit))


# ============================================================================
# Helpers
# ============================================================================

def _step_products(
    nodes: list[RecipeProductNode],
    servings: float,
    with_destination: bool = False,
) -> list[StepProduct]:
    products: list[StepProduct] = []
    for node in nodes:
        if node.product is None:
            continue
        # Same product and unit twice in one step is one line
        _merge_products(
            products,
            [
                StepProduct(
                    product_id=node.product.id,
                    product_name=node.product.name,
                    product_type=node.product.type,
                    quantity=(node.quantity or 0) * servings,
                    unit=node.unit or "",
                    meal_destination=node.meal_destination if with_destination else None,
                )
            ],
        )
    return products


def _merge_products(existing: list[StepProduct], incoming: list[StepProduct]) -> None:
    for item in incoming:
        match = _find_product(existing, item.product_id, item.unit)
        if match is None:
            existing.append(item)
            continue
        match.quantity += item.quantity
        if item.meal_destination and not match.meal_destination:
            match.meal_destination = item.meal_destination


def _find_product(items: list[StepProduct], product_id: str, unit: str) -> Optional[StepProduct]:
    for item in items:
        if item.product_id == product_id and item.unit == unit:
            return item
    return None


def _merge_step(
    existing: AggregatedStep,
    graph: RecipeGraph,
    step_name: str,
    servings: float,
    inputs: list[StepProduct],
    outputs: list[StepProduct],
) -> None:
    recipe_name = graph.recipe.name

    if step_name not in existing.step_names:
        existing.step_names.append(step_name)

    for source in existing.recipe_sources:
        if source.recipe_name == recipe_name and source.step_name == step_name:
            source.count += servings
            break
    else:
        existing.recipe_sources.append(
            StepSource(recipe_name=recipe_name, step_name=step_name, count=servings)
        )

    names = []
    for source in existing.recipe_sources:
        if source.recipe_name not in names:
            names.append(source.recipe_name)
    existing.recipe_name = ", ".join(names)

    _merge_products(existing.inputs, inputs)
    _merge_products(existing.outputs, outputs)


def _step_sort_key(step: AggregatedStep) -> tuple[str, str]:
    return (step.primary_input_name, step.name.casefold())
