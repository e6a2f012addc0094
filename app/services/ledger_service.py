"""
Member ledger: monthly shares netted against approved payments.

Algorithm:
1. Walk every month from the join month through the end month (or the
   current month while the membership is active)
2. Each month the member owes plan cost / headcount
3. Payments earmarked for a walked month pay that month off and leave the
   general pool
4. Balance = remaining pool - remaining dues

Sign: positive balance is credit, negative is money owed. Everything here
is a pure function of its arguments.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from app.models.membership import Membership
from app.models.payment import Payment
from app.models.plan import Plan
from app.schemas.ledger import BalanceBreakdown, MonthLine
from app.services.activity_service import ActivityService, iter_months, month_start, utcnow


class LedgerService:
    @staticmethod
    def monthly_share(plan: Plan, memberships: Iterable[Membership], month: date) -> float:
        """One person's share of ``month``; 0 when nobody shares the plan."""
        headcount = ActivityService.headcount(plan, memberships, month)
        if headcount <= 0:
            return 0.0
        return plan.cost_for_month(month) / headcount

    @staticmethod
    def billing_months(membership: Membership, as_of: Optional[datetime] = None) -> List[date]:
        """Months the member owes for, both ends truncated to the month."""
        current = month_start(as_of or utcnow())
        end = current
        if membership.date_ended is not None:
            end = min(month_start(membership.date_ended), current)
        return list(iter_months(month_start(membership.joined_at), end))

    @staticmethod
    def breakdown(
        plan: Plan,
        membership: Membership,
        payments: Iterable[Payment],
        plan_memberships: Iterable[Membership],
        as_of: Optional[datetime] = None
    ) -> BalanceBreakdown:
        """Month-by-month dues and the resulting balance for one membership."""
        plan_memberships = list(plan_memberships)
        approved = [
            p for p in payments
            if p.is_approved and p.user_id == membership.user_id
        ]

        total_paid = sum(p.amount for p in approved)
        tagged: Dict[date, float] = defaultdict(float)
        for payment in approved:
            if payment.for_month is not None:
                tagged[month_start(payment.for_month)] += payment.amount

        untagged_paid = total_paid
        amount_due = 0.0
        lines: List[MonthLine] = []

        for month in LedgerService.billing_months(membership, as_of):
            headcount = ActivityService.headcount(plan, plan_memberships, month)
            cost = plan.cost_for_month(month)
            share = cost / headcount if headcount > 0 else 0.0
            month_paid = tagged.get(month, 0.0)

            amount_due += share - month_paid
            untagged_paid -= month_paid

            lines.append(MonthLine(
                month=month,
                headcount=headcount,
                plan_cost=cost,
                share=share,
                tagged_paid=month_paid,
                due=share - month_paid
            ))

        return BalanceBreakdown(
            user_id=membership.user_id,
            months=lines,
            amount_due=amount_due,
            total_paid=total_paid,
            untagged_paid=untagged_paid,
            balance=untagged_paid - amount_due
        )

    @staticmethod
    def compute_balance(
        plan: Plan,
        membership: Membership,
        payments: Iterable[Payment],
        plan_memberships: Iterable[Membership],
        as_of: Optional[datetime] = None
    ) -> float:
        """Signed balance: positive = credit, negative = amount owed."""
        return LedgerService.breakdown(
            plan, membership, payments, plan_memberships, as_of
        ).balance
