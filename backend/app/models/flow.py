"""Product flow graph models (condensed DAG for diagram display)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .recipes import ProductType, StepType, StorageLocation, Timing


class FlowAmount(BaseModel):
    """Summed quantity in one unit."""

    quantity: float = 0
    unit: str = ""


class MealSource(BaseModel):
    recipe_name: str
    quantity: float = 0
    count: float = 0


class FlowProduct(BaseModel):
    """All nodes of one product across the planned meals."""

    product_id: str
    product_name: str
    product_type: ProductType

    # One entry per distinct unit, units are never converted
    amounts: list[FlowAmount] = Field(default_factory=list)

    meal_sources: list[MealSource] = Field(default_factory=list)
    meal_destinations: list[str] = Field(default_factory=list)

    is_pantry: bool = False
    storage_location: Optional[StorageLocation] = None

    def quantity_in(self, unit: str) -> float:
        """Summed quantity for one unit, 0 when the product never uses it."""
        return sum(a.quantity for a in self.amounts if a.unit == unit)

    @computed_field
    @property
    def label(self) -> str:
        """Quantity label, e.g. "2 bag + 300 g"."""
        parts = []
        for amount in self.amounts:
            if not amount.quantity:
                continue
            text = f"{amount.quantity:g}"
            parts.append(f"{text} {amount.unit}" if amount.unit else text)
        return " + ".join(parts)


class FlowStepSource(BaseModel):
    recipe_name: str
    step_name: str
    count: float = 0


class FlowStep(BaseModel):
    """All steps sharing one structural signature."""

    step_id: str
    step_names: list[str] = Field(default_factory=list)
    step_type: StepType
    timing: Optional[Timing] = None
    recipe_sources: list[FlowStepSource] = Field(default_factory=list)

    input_product_ids: list[str] = Field(default_factory=list)
    output_product_ids: list[str] = Field(default_factory=list)


class FlowEdge(BaseModel):
    source: str
    target: str


class ProductFlowGraph(BaseModel):
    products: list[FlowProduct] = Field(default_factory=list)
    steps: list[FlowStep] = Field(default_factory=list)

    # product_id -> step_id
    product_to_step: list[FlowEdge] = Field(default_factory=list)
    # step_id -> product_id
    step_to_product: list[FlowEdge] = Field(default_factory=list)
