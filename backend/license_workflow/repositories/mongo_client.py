"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
        )
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str, db: Optional[Database] = None) -> Collection:
    """Get a collection from the given database, or the default one"""
    if db is None:
        db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def create_indexes(db: Optional[Database] = None) -> None:
    """Create all required indexes"""
    if db is None:
        db = get_database()
    logger.info("Creating MongoDB indexes...")

    applications = db["applications"]
    applications.create_index("application_id", unique=True)
    applications.create_index([("current_holder_id", ASCENDING), ("status", ASCENDING)])
    applications.create_index("status")

    # One entry per (application, history_id)
    history = db["workflow_history"]
    history.create_index(
        [("application_id", ASCENDING), ("history_id", ASCENDING)],
        unique=True
    )
    history.create_index("correlation_id")

    db["actions"].create_index("action_id", unique=True)
    db["actions"].create_index("code", unique=True)

    db["roles"].create_index("role_id", unique=True)
    db["roles"].create_index("code", unique=True)

    db["users"].create_index("user_id", unique=True)
    db["users"].create_index("role_id")

    db["role_hierarchy"].create_index(
        [("from_role_id", ASCENDING), ("to_role_id", ASCENDING)],
        unique=True
    )

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
