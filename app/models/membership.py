"""
Membership model - one member's participation window in a plan.

Lifecycle:
- created when a join request is approved (or an artificial member is added)
- ended by setting ``date_ended``; rows are never hard-deleted, past months
  keep counting them in the headcount
- ``leave_requested`` marks a member who asked to leave while still owing
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from app.db.mongo import MEMBERSHIPS
from app.models.base import MongoModel, PyObjectId

ARTIFICIAL_PREFIX = "artificial_"


@dataclass(frozen=True)
class RealMember:
    user_id: str


@dataclass(frozen=True)
class ArtificialMember:
    """Placeholder for an offline participant without an account."""
    user_id: str
    name: str


Member = Union[RealMember, ArtificialMember]


def artificial_member_id(plan_id, timestamp_ns: int) -> str:
    return f"{ARTIFICIAL_PREFIX}{plan_id}_{timestamp_ns}"


class Membership(MongoModel):
    collection_name = MEMBERSHIPS

    plan_id: PyObjectId
    user_id: str
    date_ended: Optional[datetime] = None
    leave_requested: bool = False
    is_artificial: bool = False
    name: Optional[str] = None

    @classmethod
    def for_member(cls, plan_id, member: Member, joined_at: Optional[datetime] = None) -> "Membership":
        fields = {"plan_id": plan_id, "user_id": member.user_id}
        if isinstance(member, ArtificialMember):
            fields.update(is_artificial=True, name=member.name)
        if joined_at is not None:
            fields.update(created_at=joined_at, updated_at=joined_at)
        return cls(**fields)

    @property
    def member(self) -> Member:
        if self.is_artificial:
            return ArtificialMember(user_id=self.user_id, name=self.name or "")
        return RealMember(user_id=self.user_id)

    @property
    def is_active(self) -> bool:
        return self.date_ended is None

    @property
    def joined_at(self) -> datetime:
        return self.created_at

    def end(self, when: datetime) -> None:
        self.date_ended = when
        self.leave_requested = False
        self.updated_at = when
