"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all tests.
"""

import os
import sys
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from pydantic import TypeAdapter

# Add backend to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment (settings are read at import time)
os.environ["TESTING"] = "true"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-service-key")
os.environ.pop("API_KEY", None)

from app.models.recipes import (  # noqa: E402
    Product,
    ProductToStepEdge,
    Recipe,
    RecipeGraphData,
    RecipeProductNode,
    RecipeStep,
    PlannedMeal,
    StepToProductEdge,
)

_product_adapter = TypeAdapter(Product)


def make_product(product_type: str, product_id: str, name: str | None = None, **fields):
    """Build a product of any type, e.g. make_product("raw", "egg", store={...})."""
    return _product_adapter.validate_python(
        {"id": product_id, "name": name or product_id.replace("_", " ").title(), "type": product_type, **fields}
    )


class RecipeBuilder:
    """Small DSL for recipe graphs in tests.

    builder.node("n_egg", egg, quantity=6)
    builder.step("s_mix", "Mix", inputs=["n_egg"], outputs=["n_batter"])
    """

    def __init__(self, recipe_id: str, name: str | None = None, recipe_type: str = "meal"):
        self.recipe = Recipe(id=recipe_id, name=name or recipe_id, recipe_type=recipe_type)
        self.nodes: list[RecipeProductNode] = []
        self.steps: list[RecipeStep] = []
        self.pts: list[ProductToStepEdge] = []
        self.stp: list[StepToProductEdge] = []

    def node(self, node_id, product, quantity=None, unit=None, meal_destination=None):
        self.nodes.append(
            RecipeProductNode(
                id=node_id,
                recipe=self.recipe.id,
                product_id=product.id,
                product=product,
                quantity=quantity,
                unit=unit,
                meal_destination=meal_destination,
            )
        )
        return self

    def step(self, step_id, name, inputs=(), outputs=(), step_type="prep", timing=None):
        self.steps.append(
            RecipeStep(id=step_id, recipe=self.recipe.id, name=name, step_type=step_type, timing=timing)
        )
        for node_id in inputs:
            self.pts.append(ProductToStepEdge(id=f"e_{node_id}_{step_id}", source=node_id, target=step_id))
        for node_id in outputs:
            self.stp.append(StepToProductEdge(id=f"e_{step_id}_{node_id}", source=step_id, target=node_id))
        return self

    def build(self) -> RecipeGraphData:
        return RecipeGraphData(
            recipe=self.recipe,
            product_nodes=list(self.nodes),
            steps=list(self.steps),
            product_to_step_edges=list(self.pts),
            step_to_product_edges=list(self.stp),
        )


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app():
    """FastAPI test application."""
    from app.main import app
    return app


@pytest.fixture
def client(app):
    """Sync test client for API tests."""
    from fastapi.testclient import TestClient
    return TestClient(app)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock = MagicMock()
    mock.table.return_value.select.return_value.execute.return_value.data = []
    mock.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
    return mock


# =============================================================================
# Graph Factories
# =============================================================================


@pytest.fixture
def product():
    """Product factory."""
    return make_product


@pytest.fixture
def recipe_builder():
    """RecipeBuilder class, for tests that assemble their own graphs."""
    return RecipeBuilder


@pytest.fixture
def planned_meal():
    """Planned meal factory."""
    def _planned_meal(meal_id, recipe_id, meal_slot="dinner", day=None, quantity=None, weekly_plan="plan-1"):
        return PlannedMeal(
            id=meal_id,
            weekly_plan=weekly_plan,
            recipe=recipe_id,
            meal_slot=meal_slot,
            day=day,
            quantity=quantity,
        )
    return _planned_meal


# =============================================================================
# Sample Recipes
# =============================================================================


@pytest.fixture
def potato_recipe():
    """potato (raw, 2 lb) -> dice -> diced -> boil -> boiled."""
    return (
        RecipeBuilder("r_potatoes", "Boiled Potatoes")
        .node("n_potato", make_product("raw", "potato", store={"id": "st1", "name": "Aldi"},
                                       section={"id": "sec1", "name": "Produce"}), quantity=2, unit="lb")
        .node("n_diced", make_product("transient", "potato_diced"))
        .node("n_boiled", make_product("transient", "potato_boiled"))
        .step("s_dice", "Dice potatoes", inputs=["n_potato"], outputs=["n_diced"])
        .step("s_boil", "Boil potatoes", inputs=["n_diced"], outputs=["n_boiled"])
        .build()
    )


@pytest.fixture
def broccoli_patties_recipe():
    """Batch prep recipe: eggs + broccoli -> mixture -> frozen patties."""
    return (
        RecipeBuilder("r_patties", "Broccoli Patties", recipe_type="batch_prep")
        .node("n_egg", make_product("raw", "egg", section={"id": "sec2", "name": "Dairy"}), quantity=6)
        .node("n_broccoli", make_product("raw", "broccoli", "Broccoli (frozen)"), quantity=1, unit="bag")
        .node("n_salt", make_product("raw", "salt", pantry=True), quantity=1, unit="tsp")
        .node("n_mixture", make_product("transient", "patty_mixture"))
        .node(
            "n_patties",
            make_product("stored", "broccoli_patties", storage_location="freezer",
                         container_type={"id": "ct1", "name": "Gallon bag"}),
            quantity=8,
            meal_destination="Lunches",
        )
        .step("s_mix", "Mix patty batter", inputs=["n_egg", "n_broccoli", "n_salt"], outputs=["n_mixture"])
        .step("s_bake", "Bake patties", inputs=["n_mixture"], outputs=["n_patties"])
        .build()
    )


@pytest.fixture
def shawarma_recipe():
    """Mushroom shawarma pitas with a roasted mushroom mixture made ahead."""
    return (
        RecipeBuilder("r_shawarma", "Mushroom Shawarma Pitas")
        .node("n_mushroom", make_product("raw", "mushroom"), quantity=16, unit="oz")
        .node("n_onion", make_product("raw", "onion"), quantity=1)
        .node("n_mushroom_sliced", make_product("transient", "mushroom_sliced"))
        .node("n_onion_diced", make_product("transient", "onion_diced"))
        .node(
            "n_mixture",
            make_product("stored", "mushroom_mixture_roasted", storage_location="fridge",
                         container_type={"id": "ct2", "name": "Quart deli"}),
            quantity=1,
            unit="quart",
        )
        .node("n_pita", make_product("raw", "pita"), quantity=4)
        .node("n_tahini", make_product("inventory", "tahini_sauce", storage_location="fridge"), quantity=2, unit="tbsp")
        .node("n_pitas", make_product("transient", "shawarma_pitas"))
        .step("s_slice", "Slice mushrooms", inputs=["n_mushroom"], outputs=["n_mushroom_sliced"])
        .step("s_dice", "Dice onion", inputs=["n_onion"], outputs=["n_onion_diced"])
        .step("s_roast", "Roast mushrooms", inputs=["n_mushroom_sliced", "n_onion_diced"], outputs=["n_mixture"])
        .step(
            "s_assemble",
            "Assemble pitas",
            inputs=["n_mixture", "n_pita", "n_tahini"],
            outputs=["n_pitas"],
            step_type="assembly",
            timing="just_in_time",
        )
        .build()
    )


@pytest.fixture
def premade_shawarma_mix():
    return make_product("inventory", "premade_shawarma_mix", "Premade Shawarma Mix", storage_location="fridge")
