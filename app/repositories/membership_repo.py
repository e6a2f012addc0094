from typing import List, Optional

from app.db.query import Filter, NEWEST_FIRST, OLDEST_FIRST
from app.models.membership import Membership
from app.repositories.base import MongoRepository


class MembershipRepository(MongoRepository[Membership]):
    """Membership database operations."""

    model = Membership

    async def list_for_plan(self, plan_id) -> List[Membership]:
        """All memberships of a plan, ended ones included, oldest first."""
        return await self.find_all(Filter().eq("plan_id", plan_id), sort=OLDEST_FIRST)

    async def list_for_user(self, user_id: str) -> List[Membership]:
        return await self.find_all(Filter().eq("user_id", user_id), sort=OLDEST_FIRST)

    async def find_active(self, plan_id, user_id: str) -> Optional[Membership]:
        """The user's membership in the plan that has not ended."""
        return await self.find_first(
            Filter()
            .eq("plan_id", plan_id)
            .eq("user_id", user_id)
            .eq("date_ended", None)
        )

    async def find_current(self, plan_id, user_id: str) -> Optional[Membership]:
        """
        The membership a balance is computed for.

        Prefers the active membership; otherwise the most recently created
        one, so a member who left still has a statement.
        """
        active = await self.find_active(plan_id, user_id)
        if active:
            return active
        return await self.find_first(
            Filter().eq("plan_id", plan_id).eq("user_id", user_id),
            sort=NEWEST_FIRST
        )

    async def find_artificial(self, plan_id, user_id: str) -> Optional[Membership]:
        """The placeholder row, unless it has been removed."""
        return await self.find_first(
            Filter()
            .eq("plan_id", plan_id)
            .eq("user_id", user_id)
            .eq("is_artificial", True)
            .eq("date_ended", None)
        )
