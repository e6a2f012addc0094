from typing import List, Optional

from app.db.query import Filter, NEWEST_FIRST
from app.models.payment import Payment, PaymentStatus
from app.repositories.base import MongoRepository


class PaymentRepository(MongoRepository[Payment]):
    """Payment database operations."""

    model = Payment

    async def list_for_plan(
        self,
        plan_id,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None
    ) -> List[Payment]:
        """Payments of a plan, newest first, optionally by status."""
        query = Filter().eq("plan_id", plan_id)
        if status is not None:
            query = query.eq("status", status)
        return await self.find_all(query, sort=NEWEST_FIRST, limit=limit)

    async def list_for_member(
        self,
        plan_id,
        user_id: str,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None
    ) -> List[Payment]:
        query = Filter().eq("plan_id", plan_id).eq("user_id", user_id)
        if status is not None:
            query = query.eq("status", status)
        return await self.find_all(query, sort=NEWEST_FIRST, limit=limit)

    async def list_approved_for_member(self, plan_id, user_id: str) -> List[Payment]:
        return await self.list_for_member(plan_id, user_id, status=PaymentStatus.APPROVED)
