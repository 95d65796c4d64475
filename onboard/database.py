import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from onboard.config import settings

logger = logging.getLogger(__name__)


async def connect_to_mongo(uri: str = None, database_name: str = None):
    """Open the Motor client and return (client, database)."""
    uri = uri or settings.MONGO_URI
    database_name = database_name or settings.DATABASE_NAME

    client = AsyncIOMotorClient(uri)
    await client.admin.command("ping")

    if "mongodb+srv" in uri:
        logger.info("Connected to MongoDB Atlas (database=%s)", database_name)
    else:
        logger.info("Connected to MongoDB at %s (database=%s)", uri, database_name)

    return client, client[database_name]


def close_mongo_connection(client):
    if client:
        client.close()


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes the services rely on.

    The unique compound indexes on applications and wishlists are what
    guarantee one application / bookmark per (job seeker, session) pair.
    """
    await db.users.create_index("email", unique=True)
    await db.users.create_index([("role", ASCENDING), ("is_active", ASCENDING)])

    await db.sessions.create_index([("organization", ASCENDING), ("created_at", DESCENDING)])
    await db.sessions.create_index(
        [("is_private", ASCENDING), ("status", ASCENDING), ("registration_deadline", ASCENDING)]
    )
    await db.sessions.create_index([("start_date", ASCENDING), ("status", ASCENDING)])
    await db.sessions.create_index("tags")

    await db.applications.create_index(
        [("job_seeker", ASCENDING), ("session", ASCENDING)], unique=True
    )
    await db.applications.create_index([("session", ASCENDING), ("status", ASCENDING)])
    await db.applications.create_index([("job_seeker", ASCENDING), ("date_applied", DESCENDING)])

    await db.wishlists.create_index(
        [("job_seeker", ASCENDING), ("session", ASCENDING)], unique=True
    )

    await db.notifications.create_index([("user", ASCENDING), ("created_at", DESCENDING)])
    await db.notifications.create_index([("user", ASCENDING), ("read", ASCENDING)])
    # One reminder per (user, session, text), also across concurrent upserts
    await db.notifications.create_index(
        [
            ("user", ASCENDING),
            ("type", ASCENDING),
            ("session", ASCENDING),
            ("title", ASCENDING),
            ("message", ASCENDING),
        ],
        unique=True,
        partialFilterExpression={"type": "reminder"},
    )

    await db.activity_logs.create_index([("user", ASCENDING), ("created_at", DESCENDING)])


def get_db(request: Request) -> AsyncIOMotorDatabase:
    return request.app.state.db
