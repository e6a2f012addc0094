"""
Store - the data-access seam used by every plan operation.

Groups the per-collection repositories and binds them to an optional client
session. Work passed to ``run_in_transaction`` receives a store bound to a
fresh transaction, so multi-document changes apply all-or-nothing.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.errors import TransactionError
from app.repositories.join_request_repo import JoinRequestRepository
from app.repositories.membership_repo import MembershipRepository
from app.repositories.payment_repo import PaymentRepository
from app.repositories.plan_repo import PlanRepository

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


class Store:
    """Access to every plan collection, optionally bound to a transaction."""

    def __init__(self, db: AsyncIOMotorDatabase, session=None):
        self.db = db
        self.session = session
        self.plans = PlanRepository(db, session)
        self.memberships = MembershipRepository(db, session)
        self.payments = PaymentRepository(db, session)
        self.join_requests = JoinRequestRepository(db, session)

    @property
    def in_transaction(self) -> bool:
        return self.session is not None

    async def run_in_transaction(self, fn: Callable[["Store"], Awaitable[ResultT]]) -> ResultT:
        """
        Run ``fn`` with a store bound to a new transaction.

        Any exception raised inside ``fn`` aborts the transaction, so none of
        its writes persist. Driver failures surface as TransactionError.
        Nested calls join the enclosing transaction.
        """
        if self.in_transaction:
            return await fn(self)

        try:
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    return await fn(Store(self.db, session=session))
        except PyMongoError as exc:
            logger.error("Transaction aborted: %s", exc)
            raise TransactionError("Transaction failed; no changes were applied") from exc
