# database.py
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
import logging
import config

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(config.MONGODB_URI)
db = client[config.DB_NAME]

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return db

async def init_db(database: AsyncIOMotorDatabase = None):
    """Create indexes. The unique ones carry the idempotency guarantees of
    progress and certificate writes, so they must exist before serving."""
    database = database if database is not None else db

    await database.users.create_index("id", unique=True)
    await database.users.create_index("email", unique=True)

    await database.courses.create_index("id", unique=True)
    await database.courses.create_index("slug")
    await database.courses.create_index("title")

    await database.progress.create_index([("userId", 1), ("courseId", 1)], unique=True)

    await database.certificates.create_index([("userId", 1), ("courseId", 1)], unique=True)
    await database.certificates.create_index("certificateNumber", unique=True)

    await database.reviews.create_index("id", unique=True)
    await database.reviews.create_index([("courseId", 1), ("userId", 1)], unique=True)
    await database.reviews.create_index([("courseId", 1), ("rating", -1)])

    await database.subscriptions.create_index([("userId", 1), ("courseId", 1)])

    logger.info("Database indexes ensured")
