from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from app.core.config import settings
from app.core.exceptions import DatabaseException
from app.core.logging import get_logger

logger = get_logger("database")

# Initialize MongoDB client
mongo_client = None
database = None

async def connect_to_mongodb():
    """
    Connect to MongoDB and make sure the indexes the queries rely on exist.
    """
    global mongo_client, database
    try:
        # Check if connection already exists
        if mongo_client is not None:
            return

        mongo_client = AsyncIOMotorClient(settings.MONGODB_URI)
        database = mongo_client[settings.MONGODB_NAME]
        await ensure_indexes(database)
        logger.info(f"Connected to MongoDB database '{settings.MONGODB_NAME}'")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        raise

async def ensure_indexes(db: AsyncIOMotorDatabase):
    await db["users"].create_index("email", unique=True)
    await db["chats"].create_index([("userId", 1), ("updatedAt", -1)])
    await db["transactions"].create_index([("userId", 1), ("createdAt", -1)])

async def close_mongodb_connection():
    """
    Close MongoDB connection.
    """
    global mongo_client, database
    if mongo_client is not None:
        mongo_client.close()
        mongo_client = None
        database = None
        logger.info("Closed MongoDB connection")

def get_collection(collection_name: str) -> AsyncIOMotorCollection:
    """
    Get a MongoDB collection as AsyncIOMotorCollection.
    """
    if database is None:
        raise DatabaseException("Database connection not established")
    return database[collection_name]

def get_database() -> AsyncIOMotorDatabase:
    """
    Get the MongoDB database.
    """
    if database is None:
        raise DatabaseException("Database connection not established")
    return database
