"""Tests for collection repositories against a live MongoDB (needs MONGODB_URI)."""
import pytest
from bson import ObjectId

from app.models.membership import Membership, RealMember
from app.models.payment import Payment, PaymentStatus
from app.models.plan import Plan
from app.repositories.store import Store
from conftest import utc


def make_plan(join_code="LIVE01"):
    return Plan(name="Live", cost=30.0, owner_id="owner", join_code=join_code)


@pytest.mark.asyncio
class TestRepositories:
    """Save, lookup, filtering and deletion through the Store."""

    async def test_save_and_find(self, test_db):
        store = Store(test_db)
        plan = make_plan()

        await store.plans.save(plan)
        found = await store.plans.find_by_id(str(plan.id))

        assert found.id == plan.id
        assert found.join_code == "LIVE01"
        assert await store.plans.find_by_id("bad-id") is None
        assert await store.plans.find_by_id(ObjectId()) is None

    async def test_save_replaces_existing(self, test_db):
        store = Store(test_db)
        plan = make_plan()
        await store.plans.save(plan)

        plan.name = "Renamed"
        await store.plans.save(plan)

        plans = await store.plans.list_owned_by("owner")
        assert [p.name for p in plans] == ["Renamed"]

    async def test_active_and_current_membership(self, test_db):
        store = Store(test_db)
        plan = make_plan()
        old = Membership.for_member(plan.id, RealMember("a"), joined_at=utc(2024, 1, 1))
        old.end(utc(2024, 2, 1))
        await store.memberships.save(old)

        assert await store.memberships.find_active(plan.id, "a") is None
        assert (await store.memberships.find_current(plan.id, "a")).id == old.id

        new = Membership.for_member(plan.id, RealMember("a"), joined_at=utc(2024, 5, 1))
        await store.memberships.save(new)
        assert (await store.memberships.find_current(plan.id, "a")).id == new.id

    async def test_payment_status_filter_and_order(self, test_db):
        store = Store(test_db)
        plan = make_plan()
        first = Payment(plan_id=plan.id, user_id="a", amount=5, status=PaymentStatus.APPROVED,
                        created_at=utc(2024, 3, 1))
        second = Payment(plan_id=plan.id, user_id="a", amount=7, status=PaymentStatus.APPROVED,
                         created_at=utc(2024, 3, 2))
        pending = Payment(plan_id=plan.id, user_id="a", amount=9, created_at=utc(2024, 3, 3))
        for payment in (first, second, pending):
            await store.payments.save(payment)

        approved = await store.payments.list_approved_for_member(plan.id, "a")

        assert [p.amount for p in approved] == [7, 5]
        assert len(await store.payments.list_for_plan(plan.id, limit=2)) == 2

    async def test_delete(self, test_db):
        store = Store(test_db)
        plan = make_plan()
        await store.plans.save(plan)

        assert await store.plans.delete(plan) is True
        assert await store.plans.delete(plan) is False
