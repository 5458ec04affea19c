"""Recipe graph Pydantic models.

These mirror the record tables the planner reads: registries, products,
recipes, graph nodes/steps/edges, planned meals, variant overrides and
inventory items. Everything handed to the aggregation engine is built from
these models and never mutated.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================

class ProductType(str, Enum):
    """What kind of thing a product is."""

    RAW = "raw"
    TRANSIENT = "transient"
    STORED = "stored"
    INVENTORY = "inventory"


class StorageLocation(str, Enum):
    """Where a stored product lives."""

    FRIDGE = "fridge"
    FREEZER = "freezer"
    DRY = "dry"


class RecipeType(str, Enum):
    MEAL = "meal"
    BATCH_PREP = "batch_prep"


class StepType(str, Enum):
    PREP = "prep"
    ASSEMBLY = "assembly"


class Timing(str, Enum):
    """When an assembly step runs."""

    BATCH = "batch"
    JUST_IN_TIME = "just_in_time"


class MealSlot(str, Enum):
    """Meal slots in a day."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    MICAH = "micah"


class Day(str, Enum):
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"


class ReadyToEatSlot(str, Enum):
    """Whether a ready-to-eat inventory product counts as a meal or a snack."""

    MEAL = "meal"
    SNACK = "snack"


# ============================================================================
# Registries
# ============================================================================

class RegistryRecord(BaseModel):
    """A named registry entry (store, section, container type)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str


# ============================================================================
# Products (one variant per product type)
# ============================================================================

class _ProductBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str


class RawProduct(_ProductBase):
    """A purchasable ingredient."""

    type: Literal["raw"] = "raw"
    pantry: bool = False
    track_quantity: bool = False  # Pantry items: show quantities on the list
    store: Optional[RegistryRecord] = None
    section: Optional[RegistryRecord] = None


class TransientProduct(_ProductBase):
    """An intermediate that only exists within one preparation pass."""

    type: Literal["transient"] = "transient"


class StoredProduct(_ProductBase):
    """An intermediate placed into a container for later use."""

    type: Literal["stored"] = "stored"
    storage_location: StorageLocation = StorageLocation.FRIDGE
    container_type: Optional[RegistryRecord] = None


class InventoryProduct(_ProductBase):
    """A long-lived stock item."""

    type: Literal["inventory"] = "inventory"
    ready_to_eat: bool = False
    meal_slot: Optional[ReadyToEatSlot] = None
    storage_location: Optional[StorageLocation] = None
    container_type: Optional[RegistryRecord] = None


Product = Annotated[
    Union[RawProduct, TransientProduct, StoredProduct, InventoryProduct],
    Field(discriminator="type"),
]


# ============================================================================
# Recipe graph
# ============================================================================

class Recipe(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    notes: Optional[str] = None
    recipe_type: RecipeType = RecipeType.MEAL


class RecipeProductNode(BaseModel):
    """An instance of a product inside one recipe's graph."""

    model_config = ConfigDict(extra="ignore")

    id: str
    recipe: str
    product_id: str

    # Expanded product record (None when the expansion is missing)
    product: Optional[Product] = None

    quantity: Optional[float] = None
    unit: Optional[str] = None
    meal_destination: Optional[str] = None


class RecipeStep(BaseModel):
    """A named operation in a recipe's graph."""

    model_config = ConfigDict(extra="ignore")

    id: str
    recipe: str
    name: str
    step_type: StepType
    timing: Optional[Timing] = None  # Only meaningful for assembly steps

    @property
    def is_batch(self) -> bool:
        """Prep steps and batch assembly steps go on the batch prep list."""
        if self.step_type == StepType.PREP:
            return True
        return self.timing == Timing.BATCH

    @property
    def is_just_in_time(self) -> bool:
        return self.step_type == StepType.ASSEMBLY and self.timing == Timing.JUST_IN_TIME


class ProductToStepEdge(BaseModel):
    """Product node (source) feeds step (target)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    source: str
    target: str


class StepToProductEdge(BaseModel):
    """Step (source) produces product node (target)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    source: str
    target: str


class RecipeGraphData(BaseModel):
    """A recipe with all of its graph components."""

    recipe: Recipe
    product_nodes: list[RecipeProductNode] = Field(default_factory=list)
    steps: list[RecipeStep] = Field(default_factory=list)
    product_to_step_edges: list[ProductToStepEdge] = Field(default_factory=list)
    step_to_product_edges: list[StepToProductEdge] = Field(default_factory=list)


# ============================================================================
# Planning
# ============================================================================

class PlannedMeal(BaseModel):
    """One recipe instance scheduled into a weekly plan."""

    model_config = ConfigDict(extra="ignore")

    id: str
    weekly_plan: Optional[str] = None
    recipe: str
    meal_slot: MealSlot
    day: Optional[Day] = None  # None = week-spanning
    quantity: Optional[float] = None

    @property
    def servings(self) -> float:
        """Servings multiplier; a missing or zero quantity counts as one."""
        return self.quantity or 1


class MealVariantOverride(BaseModel):
    """Use `replacement` instead of preparing `original_node` for one meal."""

    model_config = ConfigDict(extra="ignore")

    id: str
    planned_meal: str
    original_node: str
    replacement_product: str
    replacement: Product


class InventoryItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    product: Product
    in_stock: bool = False
    notes: Optional[str] = None


class PlanSnapshot(BaseModel):
    """Everything needed to compute one week's outputs."""

    planned_meals: list[PlannedMeal] = Field(default_factory=list)

    # recipe_id -> graph
    recipes: dict[str, RecipeGraphData] = Field(default_factory=dict)

    overrides: list[MealVariantOverride] = Field(default_factory=list)
    inventory_items: list[InventoryItem] = Field(default_factory=list)
