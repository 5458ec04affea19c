"""
Product flow graph builder.

Projects the recipe graphs of all planned meals into one condensed DAG for
diagram display: nodes of the same product become one visual node, steps
with the same structural signature become one visual step, and parallel
edges are collapsed.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from app.models.flow import (
    FlowAmount,
    FlowEdge,
    FlowProduct,
    FlowStep,
    FlowStepSource,
    MealSource,
    ProductFlowGraph,
)
from app.models.recipes import (
    PlannedMeal,
    ProductType,
    RecipeGraphData,
    RecipeProductNode,
    StepType,
)
from app.services.graph import iter_meal_graphs

logger = logging.getLogger(__name__)


def build_product_flow_graph(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
) -> ProductFlowGraph:
    """Merge the planned meals' recipe graphs into one flow graph."""
    products: dict[str, FlowProduct] = {}
    steps: dict[str, FlowStep] = {}
    product_to_step: dict[tuple[str, str], FlowEdge] = {}
    step_to_product: dict[tuple[str, str], FlowEdge] = {}

    for meal, graph in iter_meal_graphs(planned_meals, recipe_data):
        recipe_name = graph.recipe.name

        for node in graph.nodes.values():
            if node.product is not None:
                _add_product(products, node, recipe_name, meal.servings)

        for step in graph.steps.values():
            signature = graph.signature(step.id)
            _add_step(steps, signature, step.name, step.step_type, step.timing, recipe_name, meal.servings)

            flow_step = steps[signature]
            for node in graph.inputs_of(step.id):
                if node.product is None:
                    continue
                pid = node.product.id
                if pid not in flow_step.input_product_ids:
                    flow_step.input_product_ids.append(pid)
                product_to_step.setdefault((pid, signature), FlowEdge(source=pid, target=signature))

            for node in graph.outputs_of(step.id):
                if node.product is None:
                    continue
                pid = node.product.id
                if pid not in flow_step.output_product_ids:
                    flow_step.output_product_ids.append(pid)
                step_to_product.setdefault((signature, pid), FlowEdge(source=signature, target=pid))

    flow = ProductFlowGraph(
        products=list(products.values()),
        steps=list(steps.values()),
        product_to_step=list(product_to_step.values()),
        step_to_product=list(step_to_product.values()),
    )
    logger.info(
        f"Flow graph: {len(flow.products)} products, {len(flow.steps)} steps, "
        f"{len(flow.product_to_step) + len(flow.step_to_product)} edges"
    )
    return flow


def _add_product(
    products: dict[str, FlowProduct],
    node: RecipeProductNode,
    recipe_name: str,
    servings: float,
) -> None:
    product = node.product
    quantity = (node.quantity or 0) * servings
    unit = node.unit or ""

    flow_product = products.get(product.id)
    if flow_product is None:
        flow_product = FlowProduct(
            product_id=product.id,
            product_name=product.name,
            product_type=product.type,
            is_pantry=product.type == ProductType.RAW and product.pantry,
            storage_location=getattr(product, "storage_location", None),
        )
        products[product.id] = flow_product

    for amount in flow_product.amounts:
        if amount.unit == unit:
            amount.quantity += quantity
            break
    else:
        flow_product.amounts.append(FlowAmount(quantity=quantity, unit=unit))

    for source in flow_product.meal_sources:
        if source.recipe_name == recipe_name:
            source.quantity += quantity
            source.count += servings
            break
    else:
        flow_product.meal_sources.append(
            MealSource(recipe_name=recipe_name, quantity=quantity, count=servings)
        )

    if node.meal_destination and node.meal_destination not in flow_product.meal_destinations:
        flow_product.meal_destinations.append(node.meal_destination)


def _add_step(
    steps: dict[str, FlowStep],
    signature: str,
    step_name: str,
    step_type: StepType,
    timing,
    recipe_name: str,
    servings: float,
) -> None:
    flow_step = steps.get(signature)
    if flow_step is None:
        steps[signature] = FlowStep(
            step_id=signature,
            step_names=[step_name],
            step_type=step_type,
            timing=timing if step_type == StepType.ASSEMBLY else None,
            recipe_sources=[FlowStepSource(recipe_name=recipe_name, step_name=step_name, count=servings)],
        )
        return

    if step_name not in flow_step.step_names:
        flow_step.step_names.append(step_name)

    for source in flow_step.recipe_sources:
        if source.recipe_name == recipe_name and source.step_name == step_name:
            source.count += servings
            break
    else:
        flow_step.recipe_sources.append(
            FlowStepSource(recipe_name=recipe_name, step_name=step_name, count=servings)
        )
