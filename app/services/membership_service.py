"""
Membership lifecycle per (plan, user).

    none -> requested -> active -> pending-leave -> ended
                                +-> removed (ended by the owner)

Transitions from a state that does not allow them raise InvalidStateError
or NotFoundError and change nothing. The owner has no membership row and
cannot leave.
"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional

from app.core.auth import Identity
from app.core.errors import InvalidInputError, InvalidStateError, NotFoundError
from app.models.join_request import JoinRequest
from app.models.membership import (
    ArtificialMember,
    Membership,
    RealMember,
    artificial_member_id,
)
from app.models.plan import Plan
from app.repositories.store import Store
from app.services.access_service import get_plan, require_owner
from app.services.activity_service import utcnow
from app.services.balance_service import BalanceService

logger = logging.getLogger(__name__)


class MembershipService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def request_join(self, identity: Identity, join_code: str) -> JoinRequest:
        """Ask to join the plan behind ``join_code``; repeated requests return the first."""
        plan = await get_plan(self.store, join_code)
        if plan.is_owner(identity.user_id):
            raise InvalidStateError("The owner is already part of the plan")

        if await self.store.memberships.find_active(plan.id, identity.user_id):
            raise InvalidStateError("Already a member of this plan")

        existing = await self.store.join_requests.find_for_user(plan.id, identity.user_id)
        if existing:
            return existing

        now = self.clock()
        request = JoinRequest(
            plan_id=plan.id,
            user_id=identity.user_id,
            created_at=now,
            updated_at=now
        )
        await self.store.join_requests.save(request)
        logger.info("User %s requested to join plan %s", identity.user_id, plan.id)
        return request

    async def _pending_request(self, plan: Plan, user_id: str) -> JoinRequest:
        request = await self.store.join_requests.find_for_user(plan.id, user_id)
        if request is None:
            raise NotFoundError("Join request not found")
        return request

    async def approve_request(self, identity: Identity, plan: Plan, user_id: str) -> Membership:
        """Turn a pending join request into an active membership."""
        require_owner(plan, identity)
        request = await self._pending_request(plan, user_id)

        membership = await self.store.memberships.find_active(plan.id, user_id)
        if membership is None:
            membership = Membership.for_member(plan.id, RealMember(user_id), joined_at=self.clock())
            await self.store.memberships.save(membership)

        await self.store.join_requests.delete(request)
        logger.info("Approved %s joining plan %s", user_id, plan.id)
        return membership

    async def deny_request(self, identity: Identity, plan: Plan, user_id: str) -> None:
        require_owner(plan, identity)
        request = await self._pending_request(plan, user_id)
        await self.store.join_requests.delete(request)
        logger.info("Denied %s joining plan %s", user_id, plan.id)

    async def remove_member(self, identity: Identity, plan: Plan, user_id: str) -> Membership:
        """End a membership directly. The row stays for past months' headcount."""
        require_owner(plan, identity)
        if plan.is_owner(user_id):
            raise InvalidStateError("The owner cannot be removed")

        membership = await self.store.memberships.find_active(plan.id, user_id)
        if membership is None:
            raise NotFoundError("Membership not found")

        membership.end(self.clock())
        await self.store.memberships.save(membership)
        logger.info("Removed %s from plan %s", user_id, plan.id)
        return membership

    async def leave_plan(self, identity: Identity, plan: Plan) -> Membership:
        """
        Leave now if nothing is owed, otherwise record the intent.

        A member with a negative balance stays active with
        ``leave_requested`` set until a payment clears the debt.
        """
        if plan.is_owner(identity.user_id):
            raise InvalidStateError("The owner cannot leave their own plan")

        membership = await self.store.memberships.find_active(plan.id, identity.user_id)
        if membership is None:
            raise NotFoundError("Membership not found")

        now = self.clock()
        balance = await BalanceService(self.store).member_balance(plan, identity.user_id, as_of=now)
        if balance >= 0:
            membership.end(now)
            logger.info("User %s left plan %s", identity.user_id, plan.id)
        else:
            membership.leave_requested = True
            membership.updated_at = now
            logger.info(
                "User %s requested to leave plan %s owing %.2f",
                identity.user_id, plan.id, -balance
            )
        await self.store.memberships.save(membership)
        return membership

    async def settle_pending_leave(self, plan: Plan, user_id: str) -> Optional[Membership]:
        """End a pending-leave membership once its balance is no longer negative."""
        membership = await self.store.memberships.find_active(plan.id, user_id)
        if membership is None or not membership.leave_requested:
            return None

        now = self.clock()
        balance = await BalanceService(self.store).member_balance(plan, user_id, as_of=now)
        if balance < 0:
            return None

        membership.end(now)
        await self.store.memberships.save(membership)
        logger.info("Pending leave of %s from plan %s completed", user_id, plan.id)
        return membership

    async def add_artificial_member(self, identity: Identity, plan: Plan, name: str) -> Membership:
        """Track dues for someone without an account under a synthetic id."""
        require_owner(plan, identity)
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Name is required")

        member = ArtificialMember(
            user_id=artificial_member_id(plan.id, time.time_ns()),
            name=name
        )
        membership = Membership.for_member(plan.id, member, joined_at=self.clock())
        await self.store.memberships.save(membership)
        logger.info("Added artificial member %s to plan %s", member.user_id, plan.id)
        return membership

    async def transfer_artificial_member(
        self,
        identity: Identity,
        plan: Plan,
        artificial_id: str,
        user_id: str
    ) -> Membership:
        """
        Hand an artificial member's history to a real user who asked to join.

        Payments move to the real user, the placeholder row is deleted, a real
        membership is created and the join request consumed, all in one
        transaction.
        """
        require_owner(plan, identity)
        if not artificial_id or not user_id:
            raise InvalidInputError("Both the artificial member and the user are required")

        async def transfer(tx: Store) -> Membership:
            artificial = await tx.memberships.find_artificial(plan.id, artificial_id)
            if artificial is None:
                raise NotFoundError("Artificial member not found")

            request = await tx.join_requests.find_for_user(plan.id, user_id)
            if request is None:
                raise NotFoundError("Join request not found")

            payments = await tx.payments.list_for_member(plan.id, artificial_id)
            for payment in payments:
                payment.user_id = user_id
                await tx.payments.save(payment)

            await tx.memberships.delete(artificial)

            # Keeps the placeholder's join date so past headcounts do not change
            membership = Membership.for_member(
                plan.id, RealMember(user_id), joined_at=artificial.joined_at
            )
            await tx.memberships.save(membership)
            await tx.join_requests.delete(request)

            logger.info(
                "Transferred %s (%d payments) to %s in plan %s",
                artificial_id, len(payments), user_id, plan.id
            )
            return membership

        return await self.store.run_in_transaction(transfer)

    async def list_active(self, plan: Plan) -> List[Membership]:
        memberships = await self.store.memberships.list_for_plan(plan.id)
        return [m for m in memberships if m.is_active]
