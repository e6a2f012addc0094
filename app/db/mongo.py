import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import settings

logger = logging.getLogger(__name__)

PLANS = "family_plans"
MEMBERSHIPS = "memberships"
PAYMENTS = "payments"
JOIN_REQUESTS = "join_requests"


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URI, tz_aware=True)
    mongodb.db = mongodb.client[settings.MONGODB_DB]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.MONGODB_DB)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    await mongodb.db[PLANS].create_index("join_code", unique=True)
    await mongodb.db[PLANS].create_index("owner_id")

    await mongodb.db[MEMBERSHIPS].create_index([("plan_id", 1), ("user_id", 1)])
    await mongodb.db[MEMBERSHIPS].create_index("user_id")

    await mongodb.db[PAYMENTS].create_index([("plan_id", 1), ("user_id", 1), ("status", 1)])
    await mongodb.db[PAYMENTS].create_index([("plan_id", 1), ("created_at", -1)])

    await mongodb.db[JOIN_REQUESTS].create_index([("plan_id", 1), ("user_id", 1)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
