"""
MongoDB Service helpers - shared by every collection service.

Collections in this database:
1. attributes  - field catalogue, keyed by slug
2. user_types  - schemas composed from attributes, keyed by slug
3. profiles    - collaborators and agencies
4. jobs        - job postings
5. news        - announcements

Slug-keyed documents drop their ObjectId on the way out; id-keyed documents
expose it as a string `id`.
"""

from datetime import datetime
from typing import Optional, List
from bson import ObjectId

from backoffice.core.errors import ValidationError


# ============================================================
# HELPER: Convert documents for JSON serialization
# ============================================================

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict with a string `id`."""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


def serialize_docs(docs: list) -> List[dict]:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def strip_id(doc: Optional[dict]) -> Optional[dict]:
    """Drop the ObjectId from a slug-keyed document."""
    if doc is None:
        return None
    return {key: value for key, value in doc.items() if key != "_id"}


def parse_object_id(value: str, what: str = "id") -> ObjectId:
    """ObjectId from a path parameter, 400 when malformed."""
    if not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {what} format")
    return ObjectId(value)


def utcnow() -> datetime:
    # Mongo keeps millisecond precision; trim so stored and returned values match
    now = datetime.utcnow()
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
