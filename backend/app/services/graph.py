"""
Recipe graph index.

Recipe graphs arrive as flat record tables (nodes, steps and two edge
tables). RecipeGraph builds the lookups every aggregator needs once per call:
- Nodes and steps keyed by ID
- Step inputs/outputs and node consumers/producers, in edge order
- Structural step signatures

Graphs are validated on construction: duplicate IDs, edges pointing at
missing nodes/steps and cycles raise MalformedGraphError.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping, Optional

from app.models.recipes import (
    PlannedMeal,
    RecipeGraphData,
    RecipeProductNode,
    RecipeStep,
)

logger = logging.getLogger(__name__)


class MalformedGraphError(ValueError):
    """The recipe graph breaks the DAG invariants."""

    def __init__(self, recipe_id: str, message: str):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe {recipe_id}: {message}")


def step_signature(input_product_ids: Iterable[str], output_product_ids: Iterable[str]) -> str:
    """Signature used to detect that two steps do the same thing.

    Built from product IDs (not node IDs) so the same work in different
    recipes collapses into one entry.
    """
    inputs = ",".join(sorted(input_product_ids))
    outputs = ",".join(sorted(output_product_ids))
    return f"{inputs}=>{outputs}"


class RecipeGraph:
    """Indexed, validated view over one RecipeGraphData."""

    def __init__(self, data: RecipeGraphData):
        self.data = data
        self.recipe = data.recipe

        self.nodes: dict[str, RecipeProductNode] = {}
        self.steps: dict[str, RecipeStep] = {}

        # step_id -> node ids feeding it / produced by it
        self.step_inputs: dict[str, list[str]] = defaultdict(list)
        self.step_outputs: dict[str, list[str]] = defaultdict(list)

        # node_id -> step ids consuming it / producing it
        self.node_consumers: dict[str, list[str]] = defaultdict(list)
        self.node_producers: dict[str, list[str]] = defaultdict(list)

        self._index()
        self._check_acyclic()

    # ------------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------------

    def _fail(self, message: str) -> None:
        raise MalformedGraphError(self.recipe.id, message)

    def _index(self) -> None:
        for node in self.data.product_nodes:
            if node.id in self.nodes:
                self._fail(f"duplicate product node {node.id}")
            self.nodes[node.id] = node

        for step in self.data.steps:
            # Nodes and steps share one ID space in the cycle check
            if step.id in self.steps or step.id in self.nodes:
                self._fail(f"duplicate step {step.id}")
            self.steps[step.id] = step

        for edge in self.data.product_to_step_edges:
            if edge.source not in self.nodes:
                self._fail(f"edge {edge.id} starts at unknown product node {edge.source}")
            if edge.target not in self.steps:
                self._fail(f"edge {edge.id} ends at unknown step {edge.target}")
            if edge.source not in self.step_inputs[edge.target]:
                self.step_inputs[edge.target].append(edge.source)
                self.node_consumers[edge.source].append(edge.target)

        for edge in self.data.step_to_product_edges:
            if edge.source not in self.steps:
                self._fail(f"edge {edge.id} starts at unknown step {edge.source}")
            if edge.target not in self.nodes:
                self._fail(f"edge {edge.id} ends at unknown product node {edge.target}")
            if edge.target not in self.step_outputs[edge.source]:
                self.step_outputs[edge.source].append(edge.target)
                self.node_producers[edge.target].append(edge.source)

    def _check_acyclic(self) -> None:
        """Kahn's algorithm over the bipartite node/step graph."""
        successors: dict[str, list[str]] = {}
        in_degree: dict[str, int] = {}

        for node_id in self.nodes:
            successors[node_id] = self.node_consumers.get(node_id, [])
            in_degree[node_id] = len(self.node_producers.get(node_id, []))
        for step_id in self.steps:
            successors[step_id] = self.step_outputs.get(step_id, [])
            in_degree[step_id] = len(self.step_inputs.get(step_id, []))

        ready = [key for key, degree in in_degree.items() if degree == 0]
        visited = 0
        while ready:
            current = ready.pop()
            visited += 1
            for nxt in successors[current]:
                in_degree[nxt] -= 1
                if in_degree[nxt] == 0:
                    ready.append(nxt)

        if visited != len(in_degree):
            stuck = sorted(key for key, degree in in_degree.items() if degree > 0)
            self._fail(f"cycle through {', '.join(stuck[:5])}")

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    def inputs_of(self, step_id: str) -> list[RecipeProductNode]:
        return [self.nodes[nid] for nid in self.step_inputs.get(step_id, [])]

    def outputs_of(self, step_id: str) -> list[RecipeProductNode]:
        return [self.nodes[nid] for nid in self.step_outputs.get(step_id, [])]

    def is_input(self, node_id: str) -> bool:
        """True when the node feeds at least one step."""
        return bool(self.node_consumers.get(node_id))

    def is_output(self, node_id: str) -> bool:
        """True when at least one step produces the node."""
        return bool(self.node_producers.get(node_id))

    def signature(self, step_id: str) -> str:
        """Structural signature of a step; nodes without a product are ignored."""
        return step_signature(
            [n.product.id for n in self.inputs_of(step_id) if n.product],
            [n.product.id for n in self.outputs_of(step_id) if n.product],
        )


def resolve_graph_data(
    meal: PlannedMeal,
    recipe_data: Mapping[str, RecipeGraphData],
) -> Optional[RecipeGraphData]:
    """Graph for a planned meal.

    Recipe data may be keyed by planned meal ID (graphs with that meal's
    variants applied) or by recipe ID; the meal ID wins.
    """
    data = recipe_data.get(meal.id)
    if data is None:
        data = recipe_data.get(meal.recipe)
    return data


def iter_meal_graphs(
    planned_meals: Iterable[PlannedMeal],
    recipe_data: Mapping[str, RecipeGraphData],
):
    """Yield (meal, RecipeGraph) for every planned meal with graph data.

    Each distinct RecipeGraphData object is indexed once.
    """
    cache: dict[int, RecipeGraph] = {}
    for meal in planned_meals:
        data = resolve_graph_data(meal, recipe_data)
        if data is None:
            logger.debug(f"Skipping meal {meal.id}: no recipe data for {meal.recipe}")
            continue
        graph = cache.get(id(data))
        if graph is None:
            graph = RecipeGraph(data)
            cache[id(data)] = graph
        yield meal, graph
