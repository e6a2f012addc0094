"""Structured query filters.

Repositories never receive raw query strings. A ``Filter`` is an immutable
conjunction of ``Condition(field, operator, value)`` triples which renders to
a MongoDB query document::

    Filter().eq("plan_id", plan.id).eq("status", PaymentStatus.APPROVED)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple

from pymongo import ASCENDING, DESCENDING


class Operator(str, Enum):
    EQ = "$eq"
    NE = "$ne"
    IN = "$in"
    NIN = "$nin"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    EXISTS = "$exists"


@dataclass(frozen=True)
class Condition:
    field: str
    operator: Operator
    value: Any = None

    def to_mongo(self) -> dict:
        value = self.value
        if isinstance(value, Enum):
            value = value.value
        elif self.operator in (Operator.IN, Operator.NIN):
            value = [v.value if isinstance(v, Enum) else v for v in value]
        return {self.field: {self.operator.value: value}}


@dataclass(frozen=True)
class Filter:
    conditions: Tuple[Condition, ...] = ()

    def where(self, field: str, operator: Operator, value: Any = None) -> "Filter":
        return Filter(self.conditions + (Condition(field, Operator(operator), value),))

    def eq(self, field: str, value: Any) -> "Filter":
        return self.where(field, Operator.EQ, value)

    def ne(self, field: str, value: Any) -> "Filter":
        return self.where(field, Operator.NE, value)

    def is_in(self, field: str, values) -> "Filter":
        return self.where(field, Operator.IN, list(values))

    def __and__(self, other: "Filter") -> "Filter":
        return Filter(self.conditions + other.conditions)

    def to_mongo(self) -> dict:
        if not self.conditions:
            return {}
        if len(self.conditions) == 1:
            return self.conditions[0].to_mongo()
        return {"$and": [c.to_mongo() for c in self.conditions]}


Sort = List[Tuple[str, int]]

NEWEST_FIRST: Sort = [("created_at", DESCENDING)]
OLDEST_FIRST: Sort = [("created_at", ASCENDING)]
