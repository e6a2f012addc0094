from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel

from app.models.plan import Plan
from app.schemas.membership import JoinRequestResponse
from app.schemas.payment import PaymentResponse


class PlanCreate(BaseModel):
    name: str
    description: str = ""
    cost: Union[float, str]
    individual_cost: Union[float, str] = 0.0


class PlanUpdate(BaseModel):
    """Only the fields that are set get changed."""
    name: Optional[str] = None
    description: Optional[str] = None
    cost: Optional[Union[float, str]] = None
    individual_cost: Optional[Union[float, str]] = None


class CostChangeResponse(BaseModel):
    effective_month: datetime
    cost: float


class PlanResponse(BaseModel):
    id: str
    name: str
    description: str
    cost: float
    individual_cost: float
    owner_id: str
    join_code: str
    cost_history: List[CostChangeResponse] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanResponse":
        return cls(
            id=str(plan.id),
            name=plan.name,
            description=plan.description,
            cost=plan.cost,
            individual_cost=plan.individual_cost,
            owner_id=plan.owner_id,
            join_code=plan.join_code,
            cost_history=[
                CostChangeResponse(effective_month=c.effective_month, cost=c.cost)
                for c in plan.cost_history
            ],
            created_at=plan.created_at,
            updated_at=plan.updated_at
        )


class PlanSummary(BaseModel):
    """A plan in the caller's plan list."""
    plan: PlanResponse
    is_owner: bool
    member_count: int  # active members not waiting to leave
    balance: Optional[float] = None  # caller's balance, members only


class MemberLine(BaseModel):
    user_id: str
    name: Optional[str] = None
    is_owner: bool = False
    is_artificial: bool = False
    leave_requested: bool = False
    joined_at: Optional[datetime] = None
    balance: Optional[float] = None


class PlanOverview(BaseModel):
    plan: PlanResponse
    is_owner: bool = False
    is_member: bool = False
    has_pending_request: bool = False

    # Owner and members
    members: List[MemberLine] = []
    balance: Optional[float] = None
    payments: List[PaymentResponse] = []
    total_paid: float = 0.0
    total_savings: float = 0.0
    age_days: int = 0

    # Owner only
    join_requests: List[JoinRequestResponse] = []
    pending_payments: List[PaymentResponse] = []
    all_payments: List[PaymentResponse] = []
