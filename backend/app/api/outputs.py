"""
Weekly outputs API endpoints.

Computes every derived view of a weekly plan:
- Shopping list (flat and grouped by store/section)
- Batch prep list with its pull list
- Stored items, meal containers and per-meal pull lists
- Ready-to-eat inventory and stock warnings
- Product flow graph
"""

import logging

from fastapi import APIRouter, HTTPException

from app.config import get_settings
from app.models.outputs import WeeklyOutputs
from app.models.recipes import PlanSnapshot
from app.services.outputs import compute_weekly_outputs, load_plan_snapshot
from app.services.supabase import RecordStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/outputs", tags=["outputs"])


def _check_size(snapshot: PlanSnapshot) -> None:
    limit = get_settings().max_planned_meals
    if len(snapshot.planned_meals) > limit:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot process more than {limit} planned meals at once",
        )


@router.post("/compute")
async def compute_outputs_endpoint(snapshot: PlanSnapshot) -> WeeklyOutputs:
    """
    Compute weekly outputs for a plan snapshot sent by the client.

    The snapshot carries the planned meals, the graph of every recipe they
    use (keyed by recipe ID), variant overrides and inventory items.
    Recipes with a missing or malformed graph are listed in
    `skipped_recipes`; overrides pointing at removed nodes are listed in
    `invalid_overrides`. Neither fails the request.
    """
    _check_size(snapshot)
    return compute_weekly_outputs(snapshot)


@router.get("/plans/{plan_id}")
async def plan_outputs_endpoint(plan_id: str) -> WeeklyOutputs:
    """Load a weekly plan from the record store and compute its outputs."""
    try:
        snapshot = await load_plan_snapshot(plan_id)
    except RecordStoreError as e:
        raise HTTPException(status_code=502, detail=str(e))

    if not snapshot.planned_meals:
        raise HTTPException(status_code=404, detail=f"Plan {plan_id} has no planned meals")

    _check_size(snapshot)
    return compute_weekly_outputs(snapshot)
