"""
Plan lifecycle and read views.

The owner creates a plan and shares its join code. Views are computed on
every call from freshly fetched memberships and payments.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from app.core.auth import Identity
from app.core.config import settings
from app.core.errors import InvalidInputError, NotAuthorizedError, TransactionError
from app.models.payment import PaymentStatus
from app.models.plan import Plan
from app.repositories.store import Store
from app.schemas.ledger import BalanceBreakdown
from app.schemas.membership import JoinRequestResponse
from app.schemas.payment import PaymentResponse
from app.schemas.plan import MemberLine, PlanOverview, PlanResponse, PlanSummary
from app.services.access_service import active_membership, require_owner
from app.services.activity_service import ActivityService, utcnow
from app.services.balance_service import BalanceService
from app.utils.plan_validation import generate_join_code, validate_cost

logger = logging.getLogger(__name__)

JOIN_CODE_ATTEMPTS = 10


class PlanService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def _unique_join_code(self) -> str:
        for _ in range(JOIN_CODE_ATTEMPTS):
            code = generate_join_code(settings.JOIN_CODE_LENGTH)
            if not await self.store.plans.join_code_exists(code):
                return code
        raise TransactionError("Could not generate a unique join code")

    async def create_plan(
        self,
        identity: Identity,
        name: str,
        cost,
        description: str = "",
        individual_cost=0.0
    ) -> Plan:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Plan name is required")

        now = self.clock()
        plan = Plan(
            name=name,
            description=(description or "").strip(),
            cost=validate_cost(cost),
            individual_cost=validate_cost(individual_cost, "individual_cost"),
            owner_id=identity.user_id,
            join_code=await self._unique_join_code(),
            created_at=now,
            updated_at=now
        )
        await self.store.plans.save(plan)
        logger.info("User %s created plan %s (%s)", identity.user_id, plan.id, plan.join_code)
        return plan

    async def update_plan(
        self,
        identity: Identity,
        plan: Plan,
        name: Optional[str] = None,
        description: Optional[str] = None,
        cost=None,
        individual_cost=None
    ) -> Plan:
        """Change plan details; a new cost applies from the current month."""
        require_owner(plan, identity)
        now = self.clock()

        if name is not None:
            name = name.strip()
            if not name:
                raise InvalidInputError("Plan name is required")
            plan.name = name
        if description is not None:
            plan.description = description.strip()
        if individual_cost is not None:
            plan.individual_cost = validate_cost(individual_cost, "individual_cost")
        if cost is not None:
            cost = validate_cost(cost)
            if cost != plan.cost:
                plan.record_cost_change(cost, now)
                logger.info("Plan %s cost changed to %.2f", plan.id, cost)

        plan.updated_at = now
        await self.store.plans.save(plan)
        return plan

    async def delete_plan(self, identity: Identity, plan: Plan) -> None:
        """Delete the plan with its memberships, join requests and payments."""
        require_owner(plan, identity)

        async def delete(tx: Store) -> None:
            for membership in await tx.memberships.list_for_plan(plan.id):
                await tx.memberships.delete(membership)
            for request in await tx.join_requests.list_for_plan(plan.id):
                await tx.join_requests.delete(request)
            for payment in await tx.payments.list_for_plan(plan.id):
                await tx.payments.delete(payment)
            await tx.plans.delete(plan)

        await self.store.run_in_transaction(delete)
        logger.info("Deleted plan %s", plan.id)

    async def list_plans(self, identity: Identity) -> List[PlanSummary]:
        """Plans the caller owns or is an active member of."""
        owned = await self.store.plans.list_owned_by(identity.user_id)
        joined_ids = [
            m.plan_id for m in await self.store.memberships.list_for_user(identity.user_id)
            if m.is_active
        ]
        owned_ids = {p.id for p in owned}
        joined = [
            p for p in await self.store.plans.list_by_ids(joined_ids)
            if p.id not in owned_ids
        ]

        now = self.clock()
        balances = BalanceService(self.store)
        summaries = []
        for plan in owned + joined:
            memberships = await self.store.memberships.list_for_plan(plan.id)
            member_count = sum(1 for m in memberships if m.is_active and not m.leave_requested)

            balance = None
            if not plan.is_owner(identity.user_id):
                balance = await balances.member_balance(plan, identity.user_id, as_of=now)

            summaries.append(PlanSummary(
                plan=PlanResponse.from_plan(plan),
                is_owner=plan.is_owner(identity.user_id),
                member_count=member_count,
                balance=balance
            ))
        return summaries

    async def plan_overview(self, identity: Identity, plan: Plan) -> PlanOverview:
        """
        Everything the plan page shows, filtered by the caller's role.

        Outsiders only see the plan basics and whether they asked to join.
        """
        is_owner = plan.is_owner(identity.user_id)
        membership = None if is_owner else await active_membership(self.store, plan, identity)
        overview = PlanOverview(
            plan=PlanResponse.from_plan(plan),
            is_owner=is_owner,
            is_member=is_owner or membership is not None
        )

        if not overview.is_member:
            request = await self.store.join_requests.find_for_user(plan.id, identity.user_id)
            overview.has_pending_request = request is not None
            return overview

        now = self.clock()
        memberships = await self.store.memberships.list_for_plan(plan.id)
        balances = await BalanceService(self.store).plan_balances(plan, as_of=now)

        members = [MemberLine(user_id=plan.owner_id, is_owner=True, joined_at=plan.created_at)]
        for m in memberships:
            if not m.is_active:
                continue
            members.append(MemberLine(
                user_id=m.user_id,
                name=m.name,
                is_artificial=m.is_artificial,
                leave_requested=m.leave_requested,
                joined_at=m.joined_at,
                balance=balances.get(m.user_id)
            ))
        overview.members = members

        approved = await self.store.payments.list_for_plan(plan.id, status=PaymentStatus.APPROVED)
        overview.total_paid = sum(p.amount for p in approved)
        overview.total_savings = ActivityService.total_savings(plan, memberships, as_of=now)
        overview.age_days = max(0, (now - plan.created_at).days)

        if membership is not None:
            overview.balance = balances.get(identity.user_id)
            recent = await self.store.payments.list_for_member(
                plan.id, identity.user_id, limit=settings.RECENT_PAYMENTS_LIMIT
            )
            overview.payments = [PaymentResponse.from_payment(p) for p in recent]

        if is_owner:
            requests = await self.store.join_requests.list_for_plan(plan.id)
            overview.join_requests = [JoinRequestResponse.from_request(r) for r in requests]
            all_payments = await self.store.payments.list_for_plan(plan.id)
            overview.all_payments = [PaymentResponse.from_payment(p) for p in all_payments]
            overview.pending_payments = [
                PaymentResponse.from_payment(p) for p in all_payments if p.is_pending
            ]
            overview.payments = overview.all_payments[:settings.RECENT_PAYMENTS_LIMIT]

        return overview

    async def member_statement(
        self,
        identity: Identity,
        plan: Plan,
        user_id: str,
        as_of: Optional[datetime] = None
    ) -> BalanceBreakdown:
        """Monthly breakdown for one member, visible to the owner and that member."""
        if not plan.is_owner(identity.user_id) and identity.user_id != user_id:
            raise NotAuthorizedError("Only the owner or the member can see this statement")
        return await BalanceService(self.store).member_breakdown(
            plan, user_id, as_of=as_of or self.clock()
        )
