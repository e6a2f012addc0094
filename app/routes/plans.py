from typing import List

from fastapi import APIRouter, Depends, status

from app.core.auth import Identity, get_current_identity
from app.repositories.store import Store
from app.routes.deps import get_store
from app.schemas.ledger import BalanceBreakdown
from app.schemas.plan import PlanCreate, PlanOverview, PlanResponse, PlanSummary, PlanUpdate
from app.services.access_service import get_plan
from app.services.plan_service import PlanService

router = APIRouter(prefix="/plans", tags=["plans"])


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlanCreate,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Create a plan owned by the caller."""
    plan = await PlanService(store).create_plan(
        identity,
        name=plan_data.name,
        cost=plan_data.cost,
        description=plan_data.description,
        individual_cost=plan_data.individual_cost
    )
    return PlanResponse.from_plan(plan)


@router.get("", response_model=List[PlanSummary])
async def list_plans(
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Plans the caller owns or belongs to."""
    return await PlanService(store).list_plans(identity)


@router.get("/{join_code}", response_model=PlanOverview)
async def plan_overview(
    join_code: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    plan = await get_plan(store, join_code)
    return await PlanService(store).plan_overview(identity, plan)


@router.patch("/{join_code}", response_model=PlanResponse)
async def update_plan(
    join_code: str,
    plan_data: PlanUpdate,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Update plan details (owner only)."""
    plan = await get_plan(store, join_code)
    plan = await PlanService(store).update_plan(
        identity,
        plan,
        name=plan_data.name,
        description=plan_data.description,
        cost=plan_data.cost,
        individual_cost=plan_data.individual_cost
    )
    return PlanResponse.from_plan(plan)


@router.delete("/{join_code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    join_code: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Delete a plan and everything recorded for it (owner only)."""
    plan = await get_plan(store, join_code)
    await PlanService(store).delete_plan(identity, plan)


@router.get("/{join_code}/members/{user_id}/statement", response_model=BalanceBreakdown)
async def member_statement(
    join_code: str,
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Month-by-month dues and payments for one member."""
    plan = await get_plan(store, join_code)
    return await PlanService(store).member_statement(identity, plan, user_id)
