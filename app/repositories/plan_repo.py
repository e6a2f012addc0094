from typing import List, Optional

from app.db.query import Filter, OLDEST_FIRST
from app.models.plan import Plan
from app.repositories.base import MongoRepository


class PlanRepository(MongoRepository[Plan]):
    """Family plan database operations."""

    model = Plan

    async def get_by_join_code(self, join_code: str) -> Optional[Plan]:
        """Get a plan by its invite code."""
        if not join_code:
            return None
        return await self.find_first(Filter().eq("join_code", join_code))

    async def join_code_exists(self, join_code: str) -> bool:
        return await self.get_by_join_code(join_code) is not None

    async def list_owned_by(self, user_id: str) -> List[Plan]:
        """List plans owned by a user, oldest first."""
        return await self.find_all(Filter().eq("owner_id", user_id), sort=OLDEST_FIRST)

    async def list_by_ids(self, plan_ids) -> List[Plan]:
        plan_ids = list(plan_ids)
        if not plan_ids:
            return []
        return await self.find_all(Filter().is_in("_id", plan_ids), sort=OLDEST_FIRST)
