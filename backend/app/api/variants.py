"""Variant override API endpoints."""

from fastapi import APIRouter, HTTPException

from app.models.variants import (
    ApplyVariantsRequest,
    OrphanPreview,
    PreviewOrphansRequest,
    VariantResolution,
)
from app.services.graph import MalformedGraphError
from app.services.variants import (
    NodeNotFoundError,
    preview_orphaned_nodes,
    resolve_variants,
)

router = APIRouter(prefix="/api/variants", tags=["variants"])


@router.post("/apply")
async def apply_variants_endpoint(request: ApplyVariantsRequest) -> VariantResolution:
    """
    Apply variant overrides to a recipe graph.

    Returns the rewritten graph (replaced nodes keep their IDs, orphaned
    upstream nodes and steps are removed) plus the overrides that could
    not be applied because their node no longer exists.
    """
    try:
        return resolve_variants(request.graph, request.overrides)
    except MalformedGraphError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/preview")
async def preview_orphans_endpoint(request: PreviewOrphansRequest) -> OrphanPreview:
    """List the products and steps that replacing one node would remove."""
    try:
        return preview_orphaned_nodes(request.graph, request.node_id)
    except MalformedGraphError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NodeNotFoundError as e:
        raise HTTPException(
            status_code=404,
            detail=f"Node {e.node_id} not found in recipe {e.recipe_id}",
        )
