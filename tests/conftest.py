import copy
import os
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import OperationFailure

from app.core.auth import Identity, create_access_token
from app.repositories.store import Store
from app.services.plan_service import PlanService

TEST_MONGODB_URI = os.getenv("MONGODB_URI")
TEST_MONGODB_DB = "family_plans_test"

OWNER = Identity(user_id="owner-1")
ALICE = Identity(user_id="alice-1")
BOB = Identity(user_id="bob-1")


# In-memory stand-in for the parts of Motor the repositories use

def _get(doc, field):
    value = doc
    for part in field.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _matches_condition(doc, field, condition):
    present = field in doc
    value = _get(doc, field)
    if not isinstance(condition, dict):
        condition = {"$eq": condition}

    for op, expected in condition.items():
        if op == "$eq" and value != expected:
            return False
        if op == "$ne" and value == expected:
            return False
        if op == "$in" and value not in expected:
            return False
        if op == "$nin" and value in expected:
            return False
        if op == "$exists" and present != bool(expected):
            return False
        if op in ("$gt", "$gte", "$lt", "$lte"):
            if value is None:
                return False
            if op == "$gt" and not value > expected:
                return False
            if op == "$gte" and not value >= expected:
                return False
            if op == "$lt" and not value < expected:
                return False
            if op == "$lte" and not value <= expected:
                return False
    return True


def matches(doc, query):
    for key, condition in query.items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        elif not _matches_condition(doc, key, condition):
            return False
    return True


class FakeResult:
    def __init__(self, deleted_count=0, matched_count=0, upserted_id=None):
        self.deleted_count = deleted_count
        self.matched_count = matched_count
        self.upserted_id = upserted_id


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self._skip = 0
        self._limit = 0

    def sort(self, keys):
        for field, direction in reversed(keys):
            self.docs.sort(key=lambda d: _get(d, field), reverse=direction < 0)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        docs = self.docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = {}
        self.fail_on = set()  # method names that raise OperationFailure

    def _check(self, method):
        if method in self.fail_on:
            raise OperationFailure(f"{self.name}.{method} failed")

    async def find_one(self, query, session=None):
        for doc in self.docs.values():
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None, session=None):
        return FakeCursor([d for d in self.docs.values() if matches(d, query or {})])

    async def insert_one(self, doc, session=None):
        self._check("insert_one")
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return FakeResult(upserted_id=doc["_id"])

    async def replace_one(self, query, doc, upsert=False, session=None):
        self._check("replace_one")
        for key, existing in self.docs.items():
            if matches(existing, query):
                self.docs[key] = copy.deepcopy(doc)
                return FakeResult(matched_count=1)
        if upsert:
            self.docs[doc["_id"]] = copy.deepcopy(doc)
            return FakeResult(upserted_id=doc["_id"])
        return FakeResult()

    async def delete_one(self, query, session=None):
        self._check("delete_one")
        for key, existing in list(self.docs.items()):
            if matches(existing, query):
                del self.docs[key]
                return FakeResult(deleted_count=1)
        return FakeResult()


class FakeTransaction:
    def __init__(self, db):
        self.db = db
        self.snapshot = None

    async def __aenter__(self):
        self.snapshot = {
            name: copy.deepcopy(coll.docs) for name, coll in self.db.collections.items()
        }
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            for name, docs in self.snapshot.items():
                self.db.collections[name].docs = docs
        return False


class FakeSession:
    def __init__(self, db):
        self.db = db

    def start_transaction(self):
        return FakeTransaction(self.db)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeClient:
    def __init__(self, db):
        self.db = db

    async def start_session(self):
        return FakeSession(self.db)


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.client = FakeClient(self)

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class Clock:
    """Settable clock passed to services instead of the wall clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def set(self, *args):
        self.now = datetime(*args, tzinfo=timezone.utc)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def store(fake_db):
    return Store(fake_db)


@pytest.fixture
def clock():
    return Clock(utc(2024, 3, 15, 12, 0))


@pytest_asyncio.fixture
async def plan(store, clock):
    """A $30/month plan created on 2024-03-01 by OWNER."""
    created = clock.now
    clock.set(2024, 3, 1, 9, 0)
    plan = await PlanService(store, clock).create_plan(
        OWNER, name="Family Music", cost=30, individual_cost=12
    )
    clock.now = created
    return plan


@pytest.fixture
def owner_token():
    return create_access_token(OWNER.user_id)


@pytest.fixture
def alice_token():
    return create_access_token(ALICE.user_id)


@pytest_asyncio.fixture
async def test_db() -> AsyncIOMotorDatabase:
    """Live MongoDB database for repository tests (needs MONGODB_URI)."""
    if not TEST_MONGODB_URI:
        pytest.skip("MONGODB_URI not set")
    client = AsyncIOMotorClient(TEST_MONGODB_URI, tz_aware=True)
    await client.drop_database(TEST_MONGODB_DB)

    yield client[TEST_MONGODB_DB]

    await client.drop_database(TEST_MONGODB_DB)
    client.close()
