from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from freetime.core.config import settings
from freetime.core.errors import PersistenceUnavailable
import logging

logger = logging.getLogger(__name__)

GROUPS = "groups"
MEMBERS = "members"
BUSY_BLOCKS = "busy_blocks"

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Connect to MongoDB."""
    try:
        logger.info("Connecting to MongoDB...")
        db.client = AsyncIOMotorClient(
            settings.MONGO_URI,
            serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS
        )
        db.db = db.client[settings.DB_NAME]
        logger.info("Connected to MongoDB.")
        
        # Create indexes for collections
        await create_indexes()
        
    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise e

async def close_mongo_connection():
    """Close MongoDB connection."""
    if db.client:
        logger.info("Closing MongoDB connection...")
        db.client.close()
        db.client = None
        db.db = None
        logger.info("MongoDB connection closed.")

def get_collection(name: str):
    """
    Get a collection from the active database.

    Raises PersistenceUnavailable when no connection has been made, so callers
    can treat "never connected" the same way as "server unreachable".
    """
    if db.db is None:
        raise PersistenceUnavailable("MongoDB is not connected")
    return db.db[name]

async def create_indexes():
    """Create indexes for collections."""
    try:
        # One row per group code
        await db.db[GROUPS].create_index("code", unique=True)
        
        # One membership per (group, user)
        await db.db[MEMBERS].create_index(
            [("groupCode", ASCENDING), ("userId", ASCENDING)],
            unique=True
        )
        await db.db[MEMBERS].create_index([("groupCode", ASCENDING), ("joinedAt", ASCENDING)])
        
        # Busy blocks are always read per group in grid order
        await db.db[BUSY_BLOCKS].create_index([
            ("groupCode", ASCENDING),
            ("day", ASCENDING),
            ("startHour", ASCENDING),
            ("startMinute", ASCENDING)
        ])
        await db.db[BUSY_BLOCKS].create_index([("groupCode", ASCENDING), ("userId", ASCENDING)])
        
        logger.info("MongoDB indexes created successfully.")
    except Exception as e:
        logger.error(f"Failed to create MongoDB indexes: {e}")
