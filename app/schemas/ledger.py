from datetime import date
from typing import List
from pydantic import BaseModel


class MonthLine(BaseModel):
    """One month of a member's dues."""
    month: date
    headcount: int
    plan_cost: float
    share: float
    tagged_paid: float = 0.0
    due: float  # share minus payments earmarked for this month


class BalanceBreakdown(BaseModel):
    """Month-by-month dues netted against approved payments."""
    user_id: str
    months: List[MonthLine] = []
    amount_due: float = 0.0
    total_paid: float = 0.0     # all approved payments
    untagged_paid: float = 0.0  # approved payments not consumed by a month
    balance: float = 0.0        # positive = credit, negative = owed
