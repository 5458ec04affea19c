"""
Meal variant resolution.

A variant override says "for this planned meal, use a pre-made or stocked
product instead of preparing this intermediate". Applying overrides:
1. Validate: overrides whose node is gone are reported, not applied
2. Orphan detection: walk backward from the graph's terminal products; any
   node or step that no longer reaches one is dropped
3. Rewrite: swap the product on replaced nodes, cut their upstream edges,
   drop orphans and their edges

The input graph is never mutated; a new RecipeGraphData is returned.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Optional

from app.models.recipes import RecipeGraphData, RecipeProductNode
from app.models.variants import (
    NamedRef,
    OrphanPreview,
    OverrideValidation,
    OverrideValidationResult,
    VariantOverride,
    VariantResolution,
)
from app.services.graph import RecipeGraph

logger = logging.getLogger(__name__)

MISSING_NODE_ERROR = "Original node no longer exists in recipe"


class NodeNotFoundError(KeyError):
    """The node to replace is not part of the recipe graph."""

    def __init__(self, recipe_id: str, node_id: str):
        self.recipe_id = recipe_id
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found in recipe {recipe_id}")


def validate_overrides(
    recipe_data: RecipeGraphData,
    overrides: Iterable[VariantOverride],
) -> OverrideValidationResult:
    """Split overrides into those whose node still exists and those that don't."""
    node_ids = {node.id for node in recipe_data.product_nodes}
    result = OverrideValidationResult()

    for override in overrides:
        if override.original_node_id in node_ids:
            result.valid.append(override)
            continue

        result.invalid.append(
            OverrideValidation(
                original_node_id=override.original_node_id,
                is_valid=False,
                replacement_product_name=override.replacement_product.name,
                error=MISSING_NODE_ERROR,
            )
        )

    return result


def find_orphaned_nodes(
    recipe_data: RecipeGraphData,
    replaced_node_ids: set[str],
    graph: Optional[RecipeGraph] = None,
) -> set[str]:
    """IDs of product nodes and steps that no longer reach a terminal product.

    Terminal products are nodes no step consumes, excluding replaced nodes.
    The backward walk goes product -> producing steps -> their inputs, and
    stops at replaced nodes: whatever fed them no longer matters.
    Replaced nodes themselves are never reported.
    """
    graph = graph or RecipeGraph(recipe_data)

    queue: deque[tuple[str, str]] = deque(
        ("product", node_id)
        for node_id in graph.nodes
        if node_id not in replaced_node_ids and not graph.is_input(node_id)
    )
    reached: set[tuple[str, str]] = set()

    while queue:
        current = queue.popleft()
        if current in reached:
            continue
        reached.add(current)

        kind, key = current
        if kind == "product":
            for step_id in graph.node_producers.get(key, []):
                queue.append(("step", step_id))
        else:
            for node_id in graph.step_inputs.get(key, []):
                if node_id not in replaced_node_ids:
                    queue.append(("product", node_id))

    orphaned = {
        node_id
        for node_id in graph.nodes
        if node_id not in replaced_node_ids and ("product", node_id) not in reached
    }
    orphaned.update(step_id for step_id in graph.steps if ("step", step_id) not in reached)
    return orphaned


def resolve_variants(
    recipe_data: RecipeGraphData,
    overrides: Iterable[VariantOverride],
) -> VariantResolution:
    """Apply overrides and report which ones were rejected."""
    graph = RecipeGraph(recipe_data)
    validation = validate_overrides(recipe_data, overrides)

    if not validation.valid:
        return VariantResolution(graph=recipe_data, validation=validation)

    # Last override for a node wins
    replacements = {o.original_node_id: o for o in validation.valid}
    replaced_ids = set(replacements)
    orphaned = find_orphaned_nodes(recipe_data, replaced_ids, graph)

    product_nodes: list[RecipeProductNode] = []
    for node in recipe_data.product_nodes:
        override = replacements.get(node.id)
        if override is not None:
            product = override.replacement_product.model_copy(deep=True)
            # Same node ID so downstream edges stay valid
            product_nodes.append(
                node.model_copy(update={"product_id": product.id, "product": product})
            )
        elif node.id not in orphaned:
            product_nodes.append(node.model_copy(deep=True))

    steps = [s.model_copy(deep=True) for s in recipe_data.steps if s.id not in orphaned]

    product_to_step_edges = [
        e.model_copy()
        for e in recipe_data.product_to_step_edges
        if e.source not in orphaned
        and e.target not in orphaned
    ]
    step_to_product_edges = [
        e.model_copy()
        for e in recipe_data.step_to_product_edges
        if e.source not in orphaned
        and e.target not in orphaned
        and e.target not in replaced_ids
    ]

    rewritten = RecipeGraphData(
        recipe=recipe_data.recipe.model_copy(),
        product_nodes=product_nodes,
        steps=steps,
        product_to_step_edges=product_to_step_edges,
        step_to_product_edges=step_to_product_edges,
    )

    logger.info(
        f"Applied {len(replacements)} overrides to '{recipe_data.recipe.name}': "
        f"dropped {len(orphaned)} orphaned nodes/steps"
    )
    return VariantResolution(graph=rewritten, validation=validation, orphaned_ids=sorted(orphaned))


def apply_variant_overrides(
    recipe_data: RecipeGraphData,
    overrides: Iterable[VariantOverride],
) -> RecipeGraphData:
    """Return the recipe graph with the valid overrides applied.

    With no valid override the original graph is returned unchanged.
    """
    return resolve_variants(recipe_data, overrides).graph


def preview_orphaned_nodes(recipe_data: RecipeGraphData, node_id: str) -> OrphanPreview:
    """What replacing `node_id` would drop, without rewriting anything."""
    graph = RecipeGraph(recipe_data)
    if node_id not in graph.nodes:
        raise NodeNotFoundError(recipe_data.recipe.id, node_id)

    orphaned = find_orphaned_nodes(recipe_data, {node_id}, graph)

    return OrphanPreview(
        orphaned_products=[
            NamedRef(id=n.id, name=n.product.name if n.product else "Unknown")
            for n in recipe_data.product_nodes
            if n.id in orphaned
        ],
        orphaned_steps=[
            NamedRef(id=s.id, name=s.name)
            for s in recipe_data.steps
            if s.id in orphaned
        ],
    )
