# guestpost/db/database.py
import logging
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from guestpost.core.errors import BadRequestError

logger = logging.getLogger(__name__)

USERS = "users"
ORDERS = "orders"
MESSAGES = "messages"
SITE_SUBMISSIONS = "site_submissions"
SERVICES = "services"
SERVICE_PACKAGES = "service_packages"


def get_client(mongo_url: str) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(mongo_url)


def get_database(client: AsyncIOMotorClient, name: str) -> AsyncIOMotorDatabase:
    return client[name]


async def ensure_indexes(db: AsyncIOMotorDatabase):
    await db[USERS].create_index("user_email", unique=True)
    await db[ORDERS].create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])
    await db[ORDERS].create_index([("userEmail", ASCENDING), ("status", ASCENDING)])
    await db[MESSAGES].create_index("commentId", unique=True)
    await db[MESSAGES].create_index([("userEmail", ASCENDING), ("date", DESCENDING)])
    await db[SITE_SUBMISSIONS].create_index([("userEmail", ASCENDING), ("submittedAt", DESCENDING)])
    await db[SERVICES].create_index("title", unique=True)
    await db[SERVICES].create_index([("status", ASCENDING), ("order", ASCENDING)])
    await db[SERVICE_PACKAGES].create_index([("serviceId", ASCENDING), ("status", ASCENDING), ("order", ASCENDING)])
    logger.info("MongoDB indexes ensured")


def is_object_id(value) -> bool:
    return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value) and len(value) == 24)


def to_object_id(value, label: str = "ID") -> ObjectId:
    """Parse a path parameter into an ObjectId, answering 400 when it is malformed."""
    if isinstance(value, ObjectId):
        return value
    if not is_object_id(value):
        raise BadRequestError(f"Invalid {label}")
    return ObjectId(value)


def maybe_object_id(value) -> Optional[object]:
    if value is None:
        return None
    return ObjectId(value) if is_object_id(value) else value
