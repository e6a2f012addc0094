"""Fetches ledger inputs from the store and hands them to LedgerService."""

from datetime import datetime
from typing import Dict, Optional

from app.core.errors import NotFoundError
from app.models.payment import PaymentStatus
from app.models.plan import Plan
from app.repositories.store import Store
from app.schemas.ledger import BalanceBreakdown
from app.services.ledger_service import LedgerService


class BalanceService:
    def __init__(self, store: Store):
        self.store = store

    async def member_breakdown(
        self,
        plan: Plan,
        user_id: str,
        as_of: Optional[datetime] = None
    ) -> BalanceBreakdown:
        """Monthly statement for the user's current membership in the plan."""
        membership = await self.store.memberships.find_current(plan.id, user_id)
        if membership is None:
            raise NotFoundError("Membership not found")

        plan_memberships = await self.store.memberships.list_for_plan(plan.id)
        payments = await self.store.payments.list_approved_for_member(plan.id, user_id)
        return LedgerService.breakdown(plan, membership, payments, plan_memberships, as_of)

    async def member_balance(
        self,
        plan: Plan,
        user_id: str,
        as_of: Optional[datetime] = None
    ) -> float:
        breakdown = await self.member_breakdown(plan, user_id, as_of)
        return breakdown.balance

    async def plan_balances(self, plan: Plan, as_of: Optional[datetime] = None) -> Dict[str, float]:
        """Balance of every active membership, keyed by user id."""
        plan_memberships = await self.store.memberships.list_for_plan(plan.id)
        approved = await self.store.payments.list_for_plan(plan.id, status=PaymentStatus.APPROVED)

        balances: Dict[str, float] = {}
        for membership in plan_memberships:
            if not membership.is_active:
                continue
            balances[membership.user_id] = LedgerService.compute_balance(
                plan,
                membership,
                [p for p in approved if p.user_id == membership.user_id],
                plan_memberships,
                as_of
            )
        return balances
