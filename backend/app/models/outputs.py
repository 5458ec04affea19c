"""Derived view models for the weekly outputs (shopping, prep, storage)."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .flow import ProductFlowGraph
from .recipes import (
    Day,
    MealSlot,
    ProductType,
    StepType,
    StorageLocation,
    Timing,
)
from .variants import OverrideValidation


class PullSource(str, Enum):
    """Where a pull list item is fetched from."""

    FRIDGE = "fridge"
    FREEZER = "freezer"
    DRY = "dry"
    PANTRY = "pantry"


def format_quantity(quantity: Optional[float], unit: Optional[str]) -> str:
    """Format a quantity for display: "2 bag", "1.5 cup", "3"."""
    if not quantity:
        return ""
    text = f"{quantity:g}"
    return f"{text} {unit}" if unit else text


# ============================================================================
# Shopping list
# ============================================================================

class ProductSource(BaseModel):
    """One contribution to an aggregated product."""

    recipe_name: str
    quantity: float = 0
    unit: str = ""


class AggregatedProduct(BaseModel):
    """A raw ingredient to buy, summed across the week."""

    product_id: str
    product_name: str
    product_type: ProductType = ProductType.RAW
    total_quantity: float = 0
    unit: str = ""

    is_pantry: bool = False
    track_quantity: bool = False

    store_name: Optional[str] = None
    section_name: Optional[str] = None

    sources: list[ProductSource] = Field(default_factory=list)

    @computed_field
    @property
    def display_amount(self) -> str:
        return format_quantity(self.total_quantity, self.unit)


class PantryCheckItem(BaseModel):
    """A pantry staple to check before shopping."""

    product_id: str
    product_name: str
    track_quantity: bool = False

    # Only filled in when the product tracks quantity
    total_quantity: Optional[float] = None
    unit: Optional[str] = None
    display_amount: str = ""


class ShoppingListGroups(BaseModel):
    """Shopping list grouped store -> section -> items."""

    by_store: dict[str, dict[str, list[AggregatedProduct]]] = Field(default_factory=dict)
    pantry_check: list[PantryCheckItem] = Field(default_factory=list)


# ============================================================================
# Batch prep
# ============================================================================

class StepProduct(BaseModel):
    """An input or output of an aggregated step."""

    product_id: str
    product_name: str
    product_type: ProductType
    quantity: float = 0
    unit: str = ""
    meal_destination: Optional[str] = None


class StepSource(BaseModel):
    recipe_name: str
    step_name: str
    count: float = 0


class AggregatedStep(BaseModel):
    """A preparation step merged across every recipe that performs it."""

    # Structural signature shared by all merged steps
    step_id: str
    name: str
    step_names: list[str] = Field(default_factory=list)
    step_type: StepType
    timing: Optional[Timing] = None

    # Distinct contributing recipes, joined for display
    recipe_name: str
    recipe_sources: list[StepSource] = Field(default_factory=list)

    inputs: list[StepProduct] = Field(default_factory=list)
    outputs: list[StepProduct] = Field(default_factory=list)

    @computed_field
    @property
    def primary_input_name(self) -> str:
        if not self.inputs:
            return ""
        return min(i.product_name.casefold() for i in self.inputs)


class PullListEntry(BaseModel):
    """Total of one raw input across all batch prep steps."""

    product_id: str
    product_name: str
    total_quantity: float = 0
    unit: str = ""


class BatchPrepList(BaseModel):
    prep_steps: list[AggregatedStep] = Field(default_factory=list)
    assembly_steps: list[AggregatedStep] = Field(default_factory=list)
    pull_list: list[PullListEntry] = Field(default_factory=list)

    @computed_field
    @property
    def step_count(self) -> int:
        return len(self.prep_steps) + len(self.assembly_steps)


# ============================================================================
# Storage, containers and pull lists
# ============================================================================

class StoredItem(BaseModel):
    """A product that goes into the fridge/freezer/dry storage after prep."""

    product_id: str
    product_name: str
    storage_location: StorageLocation
    container_type_name: Optional[str] = None
    meal_destination: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    recipe_name: str
    planned_meal_id: str


class ContainerEntry(BaseModel):
    product_id: str
    product_name: str
    container_type_name: Optional[str] = None
    storage_location: StorageLocation
    meal_destination: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None


class MealContainer(BaseModel):
    """Container manifest for one recipe."""

    recipe_name: str
    containers: list[ContainerEntry] = Field(default_factory=list)


class PullListItem(BaseModel):
    product_id: str
    product_name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None
    container_type_name: Optional[str] = None
    from_storage: PullSource


class PullListMeal(BaseModel):
    """What to pull out of storage before serving one meal."""

    day: Day
    slot: MealSlot
    recipe_name: str
    planned_meal_id: str
    items: list[PullListItem] = Field(default_factory=list)


class ReadyToEatProduct(BaseModel):
    product_id: str
    product_name: str
    storage_location: Optional[StorageLocation] = None


class ReadyToEatOptions(BaseModel):
    """Always-available inventory options, split by meal slot."""

    meals: list[ReadyToEatProduct] = Field(default_factory=list)
    snacks: list[ReadyToEatProduct] = Field(default_factory=list)


class StockWarning(BaseModel):
    """An inventory product a planned recipe consumes."""

    recipe_name: str
    product_id: str
    product_name: str
    in_stock: bool


# ============================================================================
# Weekly outputs
# ============================================================================

class SkippedRecipe(BaseModel):
    recipe_id: str
    planned_meal_ids: list[str] = Field(default_factory=list)
    reason: str


class WeeklyOutputs(BaseModel):
    """Every derived view for one weekly plan."""

    shopping_list: list[AggregatedProduct] = Field(default_factory=list)
    shopping_groups: ShoppingListGroups = Field(default_factory=ShoppingListGroups)

    batch_prep: BatchPrepList = Field(default_factory=BatchPrepList)

    stored_items: list[StoredItem] = Field(default_factory=list)
    stored_by_location: dict[StorageLocation, list[StoredItem]] = Field(default_factory=dict)
    meal_containers: list[MealContainer] = Field(default_factory=list)
    pull_lists: list[PullListMeal] = Field(default_factory=list)

    ready_to_eat: ReadyToEatOptions = Field(default_factory=ReadyToEatOptions)
    stock_warnings: list[StockWarning] = Field(default_factory=list)

    flow_graph: ProductFlowGraph = Field(default_factory=ProductFlowGraph)

    # Problems found while preparing the graphs
    invalid_overrides: list[OverrideValidation] = Field(default_factory=list)
    skipped_recipes: list[SkippedRecipe] = Field(default_factory=list)

    planned_meal_count: int = 0
