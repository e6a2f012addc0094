"""Membership and join request schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.join_request import JoinRequest
from app.models.membership import Membership


class JoinPlan(BaseModel):
    join_code: str


class ArtificialMemberCreate(BaseModel):
    """Someone without an account, tracked by name."""
    name: str


class TransferMember(BaseModel):
    artificial_id: str


class JoinRequestResponse(BaseModel):
    id: str
    plan_id: str
    user_id: str
    requested_at: datetime

    @classmethod
    def from_request(cls, request: JoinRequest) -> "JoinRequestResponse":
        return cls(
            id=str(request.id),
            plan_id=str(request.plan_id),
            user_id=request.user_id,
            requested_at=request.requested_at
        )


class MembershipResponse(BaseModel):
    id: str
    plan_id: str
    user_id: str
    name: Optional[str] = None
    is_artificial: bool
    leave_requested: bool
    joined_at: datetime
    date_ended: Optional[datetime] = None

    @classmethod
    def from_membership(cls, membership: Membership) -> "MembershipResponse":
        return cls(
            id=str(membership.id),
            plan_id=str(membership.plan_id),
            user_id=membership.user_id,
            name=membership.name,
            is_artificial=membership.is_artificial,
            leave_requested=membership.leave_requested,
            joined_at=membership.joined_at,
            date_ended=membership.date_ended
        )
