"""
Generic collection repository.

Every collection is accessed through ``MongoRepository``: point lookup by
id, first match by filter, filtered listing, save (insert or replace) and
delete. A repository bound to a client session takes part in that
session's transaction.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.errors import TransactionError
from app.db.query import Filter, Sort
from app.models.base import MongoModel

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=MongoModel)


class MongoRepository(Generic[ModelT]):
    """Repository for one collection of ``model`` documents."""

    model: Type[ModelT]

    def __init__(self, db: AsyncIOMotorDatabase, session=None):
        self.db = db
        self.session = session
        self.collection = db[self.model.collection_name]

    async def find_by_id(self, record_id) -> Optional[ModelT]:
        if isinstance(record_id, str):
            if not ObjectId.is_valid(record_id):
                return None
            record_id = ObjectId(record_id)
        doc = await self.collection.find_one({"_id": record_id}, session=self.session)
        if doc:
            return self.model(**doc)
        return None

    async def find_first(self, query: Filter, sort: Optional[Sort] = None) -> Optional[ModelT]:
        found = await self.find_all(query, sort=sort, limit=1)
        return found[0] if found else None

    async def find_all(
        self,
        query: Filter,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[ModelT]:
        cursor = self.collection.find(query.to_mongo(), session=self.session)
        if sort:
            cursor = cursor.sort(sort)
        if offset:
            cursor = cursor.skip(offset)
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(None)
        return [self.model(**doc) for doc in docs]

    async def save(self, record: ModelT) -> ModelT:
        """Insert the record, or replace the stored document with the same id."""
        try:
            await self.collection.replace_one(
                {"_id": record.id},
                record.to_document(),
                upsert=True,
                session=self.session
            )
        except PyMongoError as exc:
            logger.error("Failed to save %s %s: %s", self.model.__name__, record.id, exc)
            raise TransactionError(f"Could not save {self.model.__name__}") from exc
        return record

    async def delete(self, record: ModelT) -> bool:
        try:
            result = await self.collection.delete_one({"_id": record.id}, session=self.session)
        except PyMongoError as exc:
            logger.error("Failed to delete %s %s: %s", self.model.__name__, record.id, exc)
            raise TransactionError(f"Could not delete {self.model.__name__}") from exc
        return result.deleted_count > 0
