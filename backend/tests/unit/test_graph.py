"""
Unit tests for the recipe graph index.

Tests:
- Adjacency lookups (inputs, outputs, consumers, producers)
- Structural step signatures
- Rejection of malformed graphs
- Graph lookup by planned meal ID / recipe ID
"""

import pytest

from app.models.recipes import ProductToStepEdge, StepToProductEdge
from app.services.graph import (
    MalformedGraphError,
    RecipeGraph,
    iter_meal_graphs,
    resolve_graph_data,
    step_signature,
)


class TestRecipeGraph:
    """Tests for RecipeGraph lookups."""

    @pytest.mark.unit
    def test_inputs_and_outputs(self, potato_recipe):
        graph = RecipeGraph(potato_recipe)

        assert [n.id for n in graph.inputs_of("s_dice")] == ["n_potato"]
        assert [n.id for n in graph.outputs_of("s_dice")] == ["n_diced"]
        assert graph.is_input("n_potato")
        assert not graph.is_output("n_potato")
        assert graph.is_output("n_boiled")
        assert not graph.is_input("n_boiled")

    @pytest.mark.unit
    def test_duplicate_edges_collapse(self, potato_recipe):
        potato_recipe.product_to_step_edges.append(
            ProductToStepEdge(id="dup", source="n_potato", target="s_dice")
        )
        graph = RecipeGraph(potato_recipe)

        assert graph.step_inputs["s_dice"] == ["n_potato"]
        assert graph.node_consumers["n_potato"] == ["s_dice"]

    @pytest.mark.unit
    def test_signature_uses_product_ids(self, potato_recipe):
        graph = RecipeGraph(potato_recipe)
        assert graph.signature("s_dice") == "potato=>potato_diced"

    @pytest.mark.unit
    def test_step_signature_is_order_independent(self):
        assert step_signature(["b", "a"], ["d", "c"]) == step_signature(["a", "b"], ["c", "d"])
        assert step_signature([], ["x"]) == "=>x"

    @pytest.mark.unit
    def test_empty_recipe(self, recipe_builder):
        graph = RecipeGraph(recipe_builder("r_empty").build())
        assert graph.nodes == {}
        assert graph.steps == {}


class TestMalformedGraphs:
    """Graphs that break the DAG invariants are rejected."""

    @pytest.mark.unit
    def test_dangling_product_to_step_edge(self, potato_recipe):
        potato_recipe.product_to_step_edges.append(
            ProductToStepEdge(id="bad", source="n_missing", target="s_dice")
        )
        with pytest.raises(MalformedGraphError, match="n_missing"):
            RecipeGraph(potato_recipe)

    @pytest.mark.unit
    def test_dangling_step_to_product_edge(self, potato_recipe):
        potato_recipe.step_to_product_edges.append(
            StepToProductEdge(id="bad", source="s_missing", target="n_boiled")
        )
        with pytest.raises(MalformedGraphError, match="s_missing"):
            RecipeGraph(potato_recipe)

    @pytest.mark.unit
    def test_cycle(self, potato_recipe):
        potato_recipe.product_to_step_edges.append(
            ProductToStepEdge(id="loop", source="n_boiled", target="s_dice")
        )
        with pytest.raises(MalformedGraphError, match="cycle"):
            RecipeGraph(potato_recipe)

    @pytest.mark.unit
    def test_duplicate_node_id(self, potato_recipe):
        potato_recipe.product_nodes.append(potato_recipe.product_nodes[0])
        with pytest.raises(MalformedGraphError, match="duplicate"):
            RecipeGraph(potato_recipe)

    @pytest.mark.unit
    def test_error_is_a_value_error(self, potato_recipe):
        potato_recipe.product_nodes.append(potato_recipe.product_nodes[0])
        with pytest.raises(ValueError):
            RecipeGraph(potato_recipe)


class TestMealGraphLookup:
    """Tests for resolving the graph of a planned meal."""

    @pytest.mark.unit
    def test_meal_id_wins_over_recipe_id(self, potato_recipe, shawarma_recipe, planned_meal):
        meal = planned_meal("m1", "r_potatoes")
        data = {"r_potatoes": potato_recipe, "m1": shawarma_recipe}

        assert resolve_graph_data(meal, data) is shawarma_recipe

    @pytest.mark.unit
    def test_falls_back_to_recipe_id(self, potato_recipe, planned_meal):
        meal = planned_meal("m1", "r_potatoes")
        assert resolve_graph_data(meal, {"r_potatoes": potato_recipe}) is potato_recipe

    @pytest.mark.unit
    def test_meals_without_data_are_skipped(self, potato_recipe, planned_meal):
        meals = [planned_meal("m1", "r_potatoes"), planned_meal("m2", "r_unknown")]

        result = list(iter_meal_graphs(meals, {"r_potatoes": potato_recipe}))

        assert [m.id for m, _ in result] == ["m1"]

    @pytest.mark.unit
    def test_shared_recipe_is_indexed_once(self, potato_recipe, planned_meal):
        meals = [planned_meal("m1", "r_potatoes"), planned_meal("m2", "r_potatoes")]

        graphs = [g for _, g in iter_meal_graphs(meals, {"r_potatoes": potato_recipe})]

        assert graphs[0] is graphs[1]
