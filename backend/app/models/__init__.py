"""Pydantic models for the recipe-planner API."""

from .recipes import (
    Product,
    ProductType,
    Recipe,
    RecipeGraphData,
    RecipeProductNode,
    RecipeStep,
    PlannedMeal,
    MealVariantOverride,
    InventoryItem,
    PlanSnapshot,
)
from .variants import (
    VariantOverride,
    OverrideValidation,
    OverrideValidationResult,
    VariantResolution,
    OrphanPreview,
)
from .flow import (
    FlowProduct,
    FlowStep,
    FlowEdge,
    ProductFlowGraph,
)
from .outputs import (
    AggregatedProduct,
    ShoppingListGroups,
    AggregatedStep,
    BatchPrepList,
    StoredItem,
    MealContainer,
    PullListMeal,
    ReadyToEatOptions,
    StockWarning,
    WeeklyOutputs,
)

__all__ = [
    # Recipes
    "Product",
    "ProductType",
    "Recipe",
    "RecipeGraphData",
    "RecipeProductNode",
    "RecipeStep",
    "PlannedMeal",
    "MealVariantOverride",
    "InventoryItem",
    "PlanSnapshot",
    # Variants
    "VariantOverride",
    "OverrideValidation",
    "OverrideValidationResult",
    "VariantResolution",
    "OrphanPreview",
    # Flow
    "FlowProduct",
    "FlowStep",
    "FlowEdge",
    "ProductFlowGraph",
    # Outputs
    "AggregatedProduct",
    "ShoppingListGroups",
    "AggregatedStep",
    "BatchPrepList",
    "StoredItem",
    "MealContainer",
    "PullListMeal",
    "ReadyToEatOptions",
    "StockWarning",
    "WeeklyOutputs",
]
