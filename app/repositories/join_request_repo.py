from typing import List, Optional

from app.db.query import Filter, OLDEST_FIRST
from app.models.join_request import JoinRequest
from app.repositories.base import MongoRepository


class JoinRequestRepository(MongoRepository[JoinRequest]):
    """Join request database operations."""

    model = JoinRequest

    async def find_for_user(self, plan_id, user_id: str) -> Optional[JoinRequest]:
        return await self.find_first(
            Filter().eq("plan_id", plan_id).eq("user_id", user_id)
        )

    async def list_for_plan(self, plan_id) -> List[JoinRequest]:
        return await self.find_all(Filter().eq("plan_id", plan_id), sort=OLDEST_FIRST)
