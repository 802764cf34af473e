"""
MongoDB Connection

Async MongoDB client for the product store.
"""


import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from shared.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)


# Global MongoDB client
_mongodb_client: AsyncIOMotorClient | None = None


async def init_mongodb(settings: Settings | None = None) -> AsyncIOMotorClient:
    """
    Initialize MongoDB connection.

    A failed ping is logged but does not abort startup; the liveness check
    reports the store as DOWN until it becomes reachable.

    Args:
        settings: Settings to connect with (defaults to the process settings)

    Returns:
        AsyncIOMotorClient: MongoDB client instance
    """
    global _mongodb_client

    if _mongodb_client is not None:
        return _mongodb_client

    settings = settings or default_settings
    _mongodb_client = AsyncIOMotorClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=int(settings.health_check_timeout * 1000),
    )

    # Verify connection
    try:
        await _mongodb_client.admin.command("ping")
        logger.info("MongoDB connection established", host=settings.mongodb_host)
    except Exception as e:
        logger.error("Failed to reach MongoDB", host=settings.mongodb_host, error=str(e))

    return _mongodb_client


async def get_mongodb(settings: Settings | None = None) -> AsyncIOMotorDatabase:
    """
    Get MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: Database instance
    """
    settings = settings or default_settings
    if _mongodb_client is None:
        await init_mongodb(settings)

    return _mongodb_client[settings.mongodb_db]  # type: ignore


async def close_mongodb() -> None:
    """Close MongoDB connections."""
    global _mongodb_client

    if _mongodb_client is not None:
        _mongodb_client.close()
        _mongodb_client = None
        logger.info("MongoDB connections closed")
