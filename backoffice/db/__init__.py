"""
Database module - MongoDB connection.
"""
from backoffice.db.mongodb import get_collection, get_mongo_db, test_mongo_connection, COLLECTIONS

__all__ = [
    "get_collection",
    "get_mongo_db",
    "test_mongo_connection",
    "COLLECTIONS"
]
