"""
MongoDB Connection Utility

MongoDB stores:
- Attribute definitions (the field catalogue)
- User type configurations (schemas composed from attributes)
- Profiles (collaborators and agencies, core fields + dynamic bag)
- Job postings and announcements

WHY MongoDB for these?
- Schema-flexible: every user type stores a different set of dynamic values
- Document-oriented: a profile and its dynamic bag live in one document,
  so every profile write is a single atomic operation
"""
from loguru import logger
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from backoffice.core.config import get_settings

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the back office database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def set_mongo_client(client: MongoClient) -> None:
    """Swap the client (tests use mongomock). Resets the cached database."""
    global _client, _db
    _client = client
    _db = None


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Collections we'll use:
    - attributes: Attribute definitions keyed by slug
    - user_types: User type configurations keyed by slug
    - profiles: Collaborator and agency records
    - jobs: Job postings
    - news: Announcements
    """
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "attributes": "attributes",
    "user_types": "user_types",
    "profiles": "profiles",
    "jobs": "jobs",
    "news": "news"
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # Slugs are the join keys for everything, so they must be unique
    db[COLLECTIONS["attributes"]].create_index("slug", unique=True)
    db[COLLECTIONS["user_types"]].create_index("slug", unique=True)
    # Reference lookups done by the integrity guard
    db[COLLECTIONS["user_types"]].create_index("fields.attributeSlug")

    db[COLLECTIONS["profiles"]].create_index("email", unique=True)
    db[COLLECTIONS["profiles"]].create_index("userType")
    db[COLLECTIONS["profiles"]].create_index("collaboratorType")
    db[COLLECTIONS["profiles"]].create_index("agencyType")
    db[COLLECTIONS["profiles"]].create_index([("createdAt", DESCENDING)])

    db[COLLECTIONS["jobs"]].create_index([("status", ASCENDING), ("targetRole", ASCENDING)])
    db[COLLECTIONS["news"]].create_index([("status", ASCENDING), ("createdAt", DESCENDING)])

    logger.info("MongoDB indexes created successfully")
