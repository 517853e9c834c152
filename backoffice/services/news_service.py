"""
News Service - announcements shown to collaborators and agencies.

Admins see every item; the public feed only shows Published ones.
"""

from typing import List, Optional

from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from backoffice.core.errors import NotFoundError
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.schemas.schemas import NewsCreate, NewsStatus, NewsUpdate
from backoffice.services.mongo_service import parse_object_id, serialize_doc, serialize_docs, utcnow


class NewsService:
    """Handles announcement documents."""

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["news"])

    def list_all(self) -> List[dict]:
        cursor = self.collection.find().sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        return serialize_docs(cursor)

    def feed(self, limit: Optional[int] = None) -> List[dict]:
        """Published items, newest first."""
        cursor = self.collection.find({"status": NewsStatus.published.value}).sort(
            [("createdAt", DESCENDING), ("_id", DESCENDING)]
        )
        if limit:
            cursor = cursor.limit(limit)
        return serialize_docs(cursor)

    def get(self, news_id: str) -> dict:
        doc = self.collection.find_one({"_id": parse_object_id(news_id, "news id")})
        if doc is None:
            raise NotFoundError("News not found")
        return serialize_doc(doc)

    def create(self, news: NewsCreate, created_by: Optional[str] = None) -> dict:
        now = utcnow()
        doc = news.model_dump(by_alias=True)
        doc.update({"status": news.status.value, "createdBy": created_by, "createdAt": now, "updatedAt": now})
        self.collection.insert_one(doc)
        logger.info(f"News created: {doc['_id']} ({doc['status']})")
        return serialize_doc(doc)

    def update(self, news_id: str, news: NewsUpdate) -> dict:
        oid = parse_object_id(news_id, "news id")
        changes = news.model_dump(by_alias=True, exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = news.status.value
        changes["updatedAt"] = utcnow()

        doc = self.collection.find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError("News not found")
        logger.info(f"News updated: {news_id}")
        return serialize_doc(doc)

    def delete(self, news_id: str) -> None:
        result = self.collection.delete_one({"_id": parse_object_id(news_id, "news id")})
        if result.deleted_count == 0:
            raise NotFoundError("News not found")
        logger.info(f"News deleted: {news_id}")
