"""
Membership activity by calendar month.

A membership is active in a month when it was created in or before that
month and has not ended before it. Joining or leaving part-way through a
month counts as active for the whole month.
"""

from datetime import date, datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Union

from app.models.membership import Membership
from app.models.plan import Plan


def month_start(value: Union[datetime, date]) -> date:
    """First day of the month containing ``value``."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        value = value.date()
    return value.replace(day=1)


def next_month(month: date) -> date:
    if month.month == 12:
        return date(month.year + 1, 1, 1)
    return date(month.year, month.month + 1, 1)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield first-of-month dates from ``start`` through ``end`` inclusive."""
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield current
        current = next_month(current)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_later(candidate: Membership, current: Membership) -> bool:
    if current.date_ended is None:
        return False
    if candidate.date_ended is None:
        return True
    return candidate.date_ended > current.date_ended


class ActivityService:
    @staticmethod
    def is_active_in_month(membership: Membership, target_month: date) -> bool:
        target_month = month_start(target_month)
        if month_start(membership.joined_at) > target_month:
            return False
        if membership.date_ended is not None and month_start(membership.date_ended) < target_month:
            return False
        return True

    @staticmethod
    def active_memberships(
        plan: Plan,
        memberships: Iterable[Membership],
        target_month: date
    ) -> List[Membership]:
        """
        Memberships of ``plan`` that were active during ``target_month``.

        One row per user: someone removed and re-added within the month is
        represented by their latest row only.
        """
        by_user: Dict[str, Membership] = {}
        for m in memberships:
            if m.plan_id != plan.id or not ActivityService.is_active_in_month(m, target_month):
                continue
            current = by_user.get(m.user_id)
            if current is None or _is_later(m, current):
                by_user[m.user_id] = m
        return list(by_user.values())

    @staticmethod
    def headcount(plan: Plan, memberships: Iterable[Membership], target_month: date) -> int:
        """
        Number of people sharing the plan in ``target_month``.

        The owner always counts once: added on top of the active memberships
        unless a membership row for the owner is already among them.
        """
        active = ActivityService.active_memberships(plan, memberships, target_month)
        owner_included = any(m.user_id == plan.owner_id for m in active)
        return len(active) if owner_included else len(active) + 1

    @staticmethod
    def total_savings(
        plan: Plan,
        memberships: Iterable[Membership],
        as_of: Optional[datetime] = None
    ) -> float:
        """
        Money saved by sharing since the plan was created.

        Per month: what everyone would pay individually minus the plan cost,
        never below zero.
        """
        as_of = as_of or utcnow()
        memberships = list(memberships)
        total = 0.0
        for month in iter_months(month_start(plan.created_at), month_start(as_of)):
            count = ActivityService.headcount(plan, memberships, month)
            saved = plan.individual_cost * count - plan.cost_for_month(month)
            if saved > 0:
                total += saved
        return total
