"""
Plan model - a shared subscription whose monthly cost is split among members.

Design principles:
- The owner is a permanent member and never has a membership row
- ``cost`` is the current monthly total; ``cost_history`` records every
  change with the first month it applies to
- ``individual_cost`` is what one person would pay alone (savings display)
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.db.mongo import PLANS
from app.models.base import MongoModel


def _first_of_month(value: datetime) -> datetime:
    """First instant (UTC) of the calendar month written in ``value``."""
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0, tzinfo=timezone.utc)


class CostChange(BaseModel):
    """Monthly cost in force from ``effective_month`` onwards."""
    effective_month: datetime
    cost: float

    @field_validator("effective_month")
    @classmethod
    def truncate_to_month(cls, value: datetime) -> datetime:
        return _first_of_month(value)


class Plan(MongoModel):
    collection_name = PLANS

    name: str
    description: str = ""
    cost: float
    individual_cost: float = 0.0
    owner_id: str
    join_code: str
    cost_history: List[CostChange] = []

    def is_owner(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def cost_for_month(self, month: date) -> float:
        """
        Monthly total in force during ``month``.

        Uses the latest change effective on or before the month. Months
        before the first recorded change use that first change; a plan
        with no history always costs ``cost``.
        """
        if not self.cost_history:
            return self.cost

        changes = sorted(self.cost_history, key=lambda c: c.effective_month)
        applicable: Optional[CostChange] = None
        for change in changes:
            if change.effective_month.date() <= month:
                applicable = change
            else:
                break

        if applicable is None:
            return changes[0].cost
        return applicable.cost

    def record_cost_change(self, cost: float, effective: datetime) -> None:
        """Set a new current cost, effective from the month of ``effective``."""
        month = _first_of_month(effective)
        if not self.cost_history:
            # Seed with the original cost so earlier months keep their price
            self.cost_history.append(
                CostChange(effective_month=self.created_at, cost=self.cost)
            )
        self.cost_history = [
            c for c in self.cost_history if c.effective_month != month
        ]
        self.cost_history.append(CostChange(effective_month=month, cost=cost))
        self.cost_history.sort(key=lambda c: c.effective_month)
        self.cost = cost
