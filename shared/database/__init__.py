"""
Database Connection and Utilities

Manages the MongoDB connection backing the product catalog.
"""

from shared.database.mongodb import close_mongodb, get_mongodb, init_mongodb

__all__ = [
    "get_mongodb",
    "init_mongodb",
    "close_mongodb",
]
