import re
from datetime import date

import pytest

from app.core.errors import (
    InvalidInputError,
    NotAuthorizedError,
    NotFoundError,
    TransactionError,
)
from app.db.mongo import PLANS
from app.services import plan_service
from app.services.membership_service import MembershipService
from app.services.payment_service import PaymentService
from app.services.plan_service import PlanService
from conftest import ALICE, BOB, OWNER


async def add_member(store, clock, plan, identity):
    service = MembershipService(store, clock)
    await service.request_join(identity, plan.join_code)
    return await service.approve_request(OWNER, plan, identity.user_id)


@pytest.mark.asyncio
async def test_create_plan(store, clock):
    plan = await PlanService(store, clock).create_plan(
        OWNER, name=" Streaming ", cost="45", description="4K tier"
    )

    assert plan.name == "Streaming"
    assert plan.cost == 45.0
    assert plan.owner_id == OWNER.user_id
    assert re.fullmatch(r"[A-Z0-9]{6}", plan.join_code)
    assert (await store.plans.get_by_join_code(plan.join_code)).id == plan.id
    # The owner has no membership row
    assert await store.memberships.list_for_plan(plan.id) == []


@pytest.mark.asyncio
async def test_create_plan_validation(store, clock):
    service = PlanService(store, clock)
    with pytest.raises(InvalidInputError):
        await service.create_plan(OWNER, name="", cost=10)
    with pytest.raises(InvalidInputError):
        await service.create_plan(OWNER, name="Music", cost=-1)


@pytest.mark.asyncio
async def test_join_code_collision_retries(store, clock, plan, monkeypatch):
    codes = iter([plan.join_code, "NEW123"])
    monkeypatch.setattr(plan_service, "generate_join_code", lambda length: next(codes))

    second = await PlanService(store, clock).create_plan(OWNER, name="Second", cost=10)

    assert second.join_code == "NEW123"


@pytest.mark.asyncio
async def test_join_code_gives_up_after_repeated_collisions(store, clock, plan, monkeypatch):
    monkeypatch.setattr(plan_service, "generate_join_code", lambda length: plan.join_code)

    with pytest.raises(TransactionError):
        await PlanService(store, clock).create_plan(OWNER, name="Second", cost=10)


@pytest.mark.asyncio
async def test_update_cost_records_history(store, clock, plan):
    clock.set(2024, 5, 20)
    updated = await PlanService(store, clock).update_plan(OWNER, plan, cost=60, name="Family Music HD")

    stored = await store.plans.find_by_id(plan.id)
    assert updated.name == "Family Music HD"
    assert stored.cost == 60.0
    assert [(c.effective_month.date(), c.cost) for c in stored.cost_history] == [
        (date(2024, 3, 1), 30.0),
        (date(2024, 5, 1), 60.0),
    ]
    assert stored.cost_for_month(date(2024, 4, 1)) == 30.0
    assert stored.cost_for_month(date(2024, 6, 1)) == 60.0


@pytest.mark.asyncio
async def test_update_requires_owner(store, clock, plan):
    with pytest.raises(NotAuthorizedError):
        await PlanService(store, clock).update_plan(ALICE, plan, cost=1)


@pytest.mark.asyncio
async def test_delete_plan_cascades(store, clock, plan):
    await add_member(store, clock, plan, ALICE)
    await MembershipService(store, clock).request_join(BOB, plan.join_code)
    await PaymentService(store, clock).claim_payment(ALICE, plan, 10)

    with pytest.raises(NotAuthorizedError):
        await PlanService(store, clock).delete_plan(ALICE, plan)

    await PlanService(store, clock).delete_plan(OWNER, plan)

    assert await store.plans.get_by_join_code(plan.join_code) is None
    assert await store.memberships.list_for_plan(plan.id) == []
    assert await store.join_requests.list_for_plan(plan.id) == []
    assert await store.payments.list_for_plan(plan.id) == []


@pytest.mark.asyncio
async def test_failed_delete_keeps_everything(store, fake_db, clock, plan):
    await add_member(store, clock, plan, ALICE)
    await PaymentService(store, clock).claim_payment(ALICE, plan, 10)

    fake_db[PLANS].fail_on.add("delete_one")
    with pytest.raises(TransactionError):
        await PlanService(store, clock).delete_plan(OWNER, plan)
    fake_db[PLANS].fail_on.clear()

    assert await store.plans.get_by_join_code(plan.join_code) is not None
    assert len(await store.memberships.list_for_plan(plan.id)) == 1
    assert len(await store.payments.list_for_plan(plan.id)) == 1


@pytest.mark.asyncio
async def test_list_plans_owned_and_joined(store, clock, plan):
    other = await PlanService(store, clock).create_plan(BOB, name="Bob's Cloud", cost=20)
    await add_member(store, clock, plan, ALICE)
    await add_member(store, clock, other, ALICE)
    await MembershipService(store, clock).leave_plan(ALICE, other)

    owner_view = await PlanService(store, clock).list_plans(OWNER)
    alice_view = await PlanService(store, clock).list_plans(ALICE)

    assert [(s.plan.join_code, s.is_owner, s.member_count, s.balance) for s in owner_view] == [
        (plan.join_code, True, 1, None)
    ]
    # Alice's leave from Bob's plan is pending: still listed, but not counted
    assert {s.plan.join_code: s.member_count for s in alice_view} == {
        plan.join_code: 1,
        other.join_code: 0,
    }
    assert all(s.balance is not None for s in alice_view)


@pytest.mark.asyncio
async def test_overview_for_owner(store, clock, plan):
    await add_member(store, clock, plan, ALICE)
    await MembershipService(store, clock).request_join(BOB, plan.join_code)
    payments = PaymentService(store, clock)
    await payments.add_manual_payment(OWNER, plan, ALICE.user_id, 5)
    await payments.claim_payment(ALICE, plan, 10)

    overview = await PlanService(store, clock).plan_overview(OWNER, plan)

    assert overview.is_owner and overview.is_member
    assert [m.user_id for m in overview.members] == [OWNER.user_id, ALICE.user_id]
    assert overview.members[0].is_owner
    assert overview.members[1].balance == pytest.approx(-10.0)
    assert [r.user_id for r in overview.join_requests] == [BOB.user_id]
    assert len(overview.pending_payments) == 1
    assert len(overview.all_payments) == 2
    assert overview.total_paid == pytest.approx(5.0)
    assert overview.age_days == 14


@pytest.mark.asyncio
async def test_overview_for_member_and_outsider(store, clock, plan):
    await add_member(store, clock, plan, ALICE)
    await MembershipService(store, clock).request_join(BOB, plan.join_code)
    await PaymentService(store, clock).claim_payment(ALICE, plan, 10)

    member_view = await PlanService(store, clock).plan_overview(ALICE, plan)
    outsider_view = await PlanService(store, clock).plan_overview(BOB, plan)

    assert member_view.is_member and not member_view.is_owner
    assert member_view.balance == pytest.approx(-15.0)
    assert len(member_view.payments) == 1
    assert member_view.join_requests == []
    assert member_view.all_payments == []

    assert not outsider_view.is_member
    assert outsider_view.has_pending_request
    assert outsider_view.members == []
    assert outsider_view.balance is None


@pytest.mark.asyncio
async def test_member_statement_visibility(store, clock, plan):
    await add_member(store, clock, plan, ALICE)
    await add_member(store, clock, plan, BOB)
    service = PlanService(store, clock)

    own = await service.member_statement(ALICE, plan, ALICE.user_id)
    by_owner = await service.member_statement(OWNER, plan, ALICE.user_id)

    assert own == by_owner
    assert [line.month for line in own.months] == [date(2024, 3, 1)]
    assert own.balance == pytest.approx(-10.0)

    with pytest.raises(NotAuthorizedError):
        await service.member_statement(BOB, plan, ALICE.user_id)
    with pytest.raises(NotFoundError):
        await service.member_statement(OWNER, plan, "nobody")
