"""MongoDB handle: connection lifecycle, indexes and integer id issuing."""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the motor client for the lifetime of the process.

    Built by the application lifespan (or by tests with a mock client) and
    passed to every repository, instead of a module-level connection.
    """

    COUNTERS = "counters"

    def __init__(self, client: AsyncIOMotorClient, name: str):
        self.client = client
        self.db: AsyncIOMotorDatabase = client[name]

    @classmethod
    async def connect(cls, url: str, name: str) -> "Database":
        client = AsyncIOMotorClient(
            url,
            maxPoolSize=50,
            serverSelectionTimeoutMS=5000
        )
        # Test connection
        await client.server_info()
        logger.info(f"✅ Connected to MongoDB: {name}")
        return cls(client, name)

    def close(self):
        self.client.close()
        logger.info("✅ Database connection closed")

    def __getitem__(self, collection: str):
        return self.db[collection]

    async def next_id(self, collection: str) -> int:
        """Issue the next integer id for a collection."""
        counter = await self.db[self.COUNTERS].find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return counter["seq"]

    async def next_ids(self, collection: str, count: int) -> Optional[range]:
        """Reserve a contiguous block of ids for a bulk insert."""
        if count <= 0:
            return None
        counter = await self.db[self.COUNTERS].find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": count}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        last = counter["seq"]
        return range(last - count + 1, last + 1)

    async def create_indexes(self):
        """Create database indexes."""
        db = self.db

        # Users and sessions
        await db.users.create_index("id", unique=True)
        await db.users.create_index("open_id", unique=True)
        await db.user_sessions.create_index("session_token", unique=True)
        await db.user_sessions.create_index("user_id")

        # Exams
        await db.exams.create_index("id", unique=True)
        await db.exams.create_index([("user_id", 1), ("created_at", -1)])

        # Results: one result per exam
        await db.exam_results.create_index("id", unique=True)
        await db.exam_results.create_index("exam_id", unique=True)
        await db.exam_results.create_index([("user_id", 1), ("created_at", -1)])

        # Question results
        await db.question_results.create_index("id", unique=True)
        await db.question_results.create_index("exam_result_id")
        await db.question_results.create_index([("user_id", 1), ("exam_id", 1)])
        await db.question_results.create_index([("user_id", 1), ("topic", 1)])

        logger.info("✅ Database indexes created")
