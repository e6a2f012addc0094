from typing import Optional

from app.core.auth import Identity
from app.core.errors import NotAuthorizedError, NotFoundError
from app.models.membership import Membership
from app.models.plan import Plan
from app.repositories.store import Store


async def get_plan(store: Store, join_code: str) -> Plan:
    """Look up a plan by join code or raise NotFoundError."""
    plan = await store.plans.get_by_join_code(join_code)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan


def require_owner(plan: Plan, identity: Identity) -> None:
    if not plan.is_owner(identity.user_id):
        raise NotAuthorizedError("Only the plan owner can do this")


async def active_membership(store: Store, plan: Plan, identity: Identity) -> Optional[Membership]:
    return await store.memberships.find_active(plan.id, identity.user_id)


async def require_member(store: Store, plan: Plan, identity: Identity) -> Optional[Membership]:
    """
    Allow the owner or an active member.

    Returns the caller's membership; None for the owner, who has no row.
    """
    if plan.is_owner(identity.user_id):
        return None
    membership = await active_membership(store, plan, identity)
    if membership is None:
        raise NotAuthorizedError("Only plan members can do this")
    return membership
