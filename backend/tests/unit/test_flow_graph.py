"""
Unit tests for the product flow graph.
"""

from collections import deque

import pytest

from app.models.flow import ProductFlowGraph
from app.services.flow import build_product_flow_graph


def _topological_order(flow: ProductFlowGraph) -> list[str]:
    """Kahn's algorithm over products and steps; cycles leave nodes unvisited."""
    edges = flow.product_to_step + flow.step_to_product
    in_degree = {p.product_id: 0 for p in flow.products}
    in_degree.update((s.step_id, 0) for s in flow.steps)
    for edge in edges:
        in_degree[edge.target] += 1

    queue = deque(node for node, degree in in_degree.items() if degree == 0)
    order = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for edge in edges:
            if edge.source == node:
                in_degree[edge.target] -= 1
                if in_degree[edge.target] == 0:
                    queue.append(edge.target)
    return order


class TestProductFlowGraph:

    @pytest.mark.unit
    def test_single_recipe(self, potato_recipe, planned_meal):
        flow = build_product_flow_graph([planned_meal("m1", "r_potatoes")], {"r_potatoes": potato_recipe})

        assert {p.product_id for p in flow.products} == {"potato", "potato_diced", "potato_boiled"}
        assert {s.step_id for s in flow.steps} == {"potato=>potato_diced", "potato_diced=>potato_boiled"}
        assert len(flow.product_to_step) == 2
        assert len(flow.step_to_product) == 2

    @pytest.mark.unit
    def test_products_merge_by_id(self, broccoli_patties_recipe, planned_meal):
        meals = [planned_meal("m1", "r_patties"), planned_meal("m2", "r_patties")]

        flow = build_product_flow_graph(meals, {"r_patties": broccoli_patties_recipe})

        egg = next(p for p in flow.products if p.product_id == "egg")
        assert egg.quantity_in("") == 12
        assert egg.meal_sources[0].count == 2
        assert len(flow.products) == 5

    @pytest.mark.unit
    def test_parallel_edges_collapse(self, broccoli_patties_recipe, planned_meal):
        meals = [planned_meal("m1", "r_patties"), planned_meal("m2", "r_patties")]

        flow = build_product_flow_graph(meals, {"r_patties": broccoli_patties_recipe})

        edges = [(e.source, e.target) for e in flow.product_to_step]
        assert len(edges) == len(set(edges)) == 4

    @pytest.mark.unit
    def test_shared_product_across_recipes(self, shawarma_recipe, recipe_builder, product, planned_meal):
        salad = (
            recipe_builder("r_salad", "Salad")
            .node("n_onion", product("raw", "onion"), quantity=0.5)
            .node("n_salad", product("transient", "salad"))
            .step("s_toss", "Toss", inputs=["n_onion"], outputs=["n_salad"])
            .build()
        )
        meals = [planned_meal("m1", "r_shawarma"), planned_meal("m2", "r_salad")]

        flow = build_product_flow_graph(meals, {"r_shawarma": shawarma_recipe, "r_salad": salad})

        onion = next(p for p in flow.products if p.product_id == "onion")
        assert onion.quantity_in("") == 1.5
        assert [s.recipe_name for s in onion.meal_sources] == ["Mushroom Shawarma Pitas", "Salad"]
        assert [e.target for e in flow.product_to_step if e.source == "onion"] == [
            "onion=>onion_diced",
            "onion=>salad",
        ]

    @pytest.mark.unit
    def test_pantry_and_storage_flags(self, broccoli_patties_recipe, planned_meal):
        flow = build_product_flow_graph([planned_meal("m1", "r_patties")], {"r_patties": broccoli_patties_recipe})
        products = {p.product_id: p for p in flow.products}

        assert products["salt"].is_pantry
        assert products["broccoli_patties"].storage_location == "freezer"
        assert products["broccoli_patties"].meal_destinations == ["Lunches"]

    @pytest.mark.unit
    def test_label_keeps_units_apart(self, recipe_builder, product, planned_meal):
        milk = product("raw", "milk")
        recipe = (
            recipe_builder("r_milk")
            .node("n_cup", milk, quantity=2, unit="cup")
            .node("n_ml", milk, quantity=100, unit="ml")
            .node("n_out", product("transient", "batter"))
            .step("s", "Whisk", inputs=["n_cup", "n_ml"], outputs=["n_out"])
            .build()
        )

        flow = build_product_flow_graph([planned_meal("m1", "r_milk")], {"r_milk": recipe})

        milk_flow = next(p for p in flow.products if p.product_id == "milk")
        assert milk_flow.label == "2 cup + 100 ml"
        assert milk_flow.quantity_in("cup") == 2
        assert milk_flow.quantity_in("ml") == 100
        assert milk_flow.quantity_in("g") == 0
        assert milk_flow.model_dump()["label"] == "2 cup + 100 ml"

    @pytest.mark.unit
    def test_merged_plan_is_acyclic(
        self, potato_recipe, broccoli_patties_recipe, shawarma_recipe, recipe_builder, product, planned_meal
    ):
        salad = (
            recipe_builder("r_salad", "Salad")
            .node("n_onion", product("raw", "onion"), quantity=0.5)
            .node("n_salad", product("transient", "salad"))
            .step("s_toss", "Toss", inputs=["n_onion"], outputs=["n_salad"])
            .build()
        )
        data = {
            "r_potatoes": potato_recipe,
            "r_patties": broccoli_patties_recipe,
            "r_shawarma": shawarma_recipe,
            "r_salad": salad,
        }
        meals = [planned_meal(f"m_{recipe_id}", recipe_id) for recipe_id in data]

        flow = build_product_flow_graph(meals, data)

        order = _topological_order(flow)
        assert len(order) == len(flow.products) + len(flow.steps)
        position = {node: i for i, node in enumerate(order)}
        for edge in flow.product_to_step + flow.step_to_product:
            assert position[edge.source] < position[edge.target]

    @pytest.mark.unit
    def test_empty_plan(self):
        flow = build_product_flow_graph([], {})
        assert flow.products == []
        assert flow.steps == []
