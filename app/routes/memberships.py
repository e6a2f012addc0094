from fastapi import APIRouter, Depends, status

from app.core.auth import Identity, get_current_identity
from app.repositories.store import Store
from app.routes.deps import get_store
from app.schemas.membership import (
    ArtificialMemberCreate,
    JoinPlan,
    JoinRequestResponse,
    MembershipResponse,
    TransferMember,
)
from app.services.access_service import get_plan
from app.services.membership_service import MembershipService

router = APIRouter(prefix="/plans", tags=["memberships"])


@router.post("/join", response_model=JoinRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_join(
    join_data: JoinPlan,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Ask the owner to let the caller into a plan."""
    request = await MembershipService(store).request_join(identity, join_data.join_code.strip())
    return JoinRequestResponse.from_request(request)


@router.post("/{join_code}/requests/{user_id}/approve", response_model=MembershipResponse)
async def approve_request(
    join_code: str,
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    plan = await get_plan(store, join_code)
    membership = await MembershipService(store).approve_request(identity, plan, user_id)
    return MembershipResponse.from_membership(membership)


@router.post("/{join_code}/requests/{user_id}/deny", status_code=status.HTTP_204_NO_CONTENT)
async def deny_request(
    join_code: str,
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    plan = await get_plan(store, join_code)
    await MembershipService(store).deny_request(identity, plan, user_id)


@router.post("/{join_code}/requests/{user_id}/transfer", response_model=MembershipResponse)
async def transfer_artificial_member(
    join_code: str,
    user_id: str,
    transfer_data: TransferMember,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Approve a join request by handing it an artificial member's history."""
    plan = await get_plan(store, join_code)
    membership = await MembershipService(store).transfer_artificial_member(
        identity, plan, transfer_data.artificial_id, user_id
    )
    return MembershipResponse.from_membership(membership)


@router.post(
    "/{join_code}/members/artificial",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_artificial_member(
    join_code: str,
    member_data: ArtificialMemberCreate,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    plan = await get_plan(store, join_code)
    membership = await MembershipService(store).add_artificial_member(identity, plan, member_data.name)
    return MembershipResponse.from_membership(membership)


@router.delete("/{join_code}/members/{user_id}", response_model=MembershipResponse)
async def remove_member(
    join_code: str,
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """End a member's participation (owner only)."""
    plan = await get_plan(store, join_code)
    membership = await MembershipService(store).remove_member(identity, plan, user_id)
    return MembershipResponse.from_membership(membership)


@router.post("/{join_code}/leave", response_model=MembershipResponse)
async def leave_plan(
    join_code: str,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store)
):
    """Leave now, or once the caller's debt is paid off."""
    plan = await get_plan(store, join_code)
    membership = await MembershipService(store).leave_plan(identity, plan)
    return MembershipResponse.from_membership(membership)
