"""Meal variant (node replacement) models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .recipes import Product, RecipeGraphData


class VariantOverride(BaseModel):
    """Replace one product node with a pre-made/stocked product."""

    original_node_id: str
    replacement_product: Product


class OverrideValidation(BaseModel):
    """Why an override could not be applied."""

    original_node_id: str
    is_valid: bool = False
    original_node_name: Optional[str] = None
    replacement_product_name: str
    planned_meal_id: Optional[str] = None
    error: Optional[str] = None


class OverrideValidationResult(BaseModel):
    valid: list[VariantOverride] = Field(default_factory=list)
    invalid: list[OverrideValidation] = Field(default_factory=list)


class VariantResolution(BaseModel):
    """Rewritten graph plus the overrides that were rejected."""

    graph: RecipeGraphData
    validation: OverrideValidationResult
    orphaned_ids: list[str] = Field(default_factory=list)


class NamedRef(BaseModel):
    id: str
    name: str


class OrphanPreview(BaseModel):
    """What replacing a node would drop from the recipe."""

    orphaned_products: list[NamedRef] = Field(default_factory=list)
    orphaned_steps: list[NamedRef] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.orphaned_products] + [s.name for s in self.orphaned_steps]


class ApplyVariantsRequest(BaseModel):
    graph: RecipeGraphData
    overrides: list[VariantOverride] = Field(default_factory=list)


class PreviewOrphansRequest(BaseModel):
    graph: RecipeGraphData
    node_id: str
