"""
Job Service - job postings.

A posting targets one user type (`targetRole`), which must exist. Only CRUD
here; applications are handled by another service.
"""

import re
from typing import Any, Dict, Optional

from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from backoffice.core.errors import NotFoundError, ValidationError
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.schemas.schemas import JobCreate, JobUpdate
from backoffice.services.integrity import IntegrityGuard
from backoffice.services.mongo_service import parse_object_id, serialize_doc, serialize_docs, utcnow


class JobService:
    """Handles job posting documents."""

    def __init__(self, guard: Optional[IntegrityGuard] = None):
        self.collection: Collection = get_collection(COLLECTIONS["jobs"])
        self.guard = guard or IntegrityGuard()

    def create(self, job: JobCreate, created_by: Optional[str] = None) -> dict:
        self._check_target_role(job.target_role)
        now = utcnow()
        doc = job.model_dump(by_alias=True)
        doc.update({"status": job.status.value, "createdBy": created_by, "createdAt": now, "updatedAt": now})
        self.collection.insert_one(doc)
        logger.info(f"Job created: {doc['_id']} ({job.project_name} -> {job.target_role})")
        return serialize_doc(doc)

    def get(self, job_id: str) -> dict:
        doc = self.collection.find_one({"_id": parse_object_id(job_id, "job id")})
        if doc is None:
            raise NotFoundError("Job not found")
        return serialize_doc(doc)

    def list(self, page: int = 1, limit: int = 20, status: Optional[str] = None,
             target_role: Optional[str] = None, search: Optional[str] = None) -> Dict[str, Any]:
        """List postings with filters and pagination, newest first."""
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if target_role:
            query["targetRole"] = target_role
        if search and search.strip():
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"projectName": pattern}, {"projectDescription": pattern}]

        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return {"jobs": serialize_docs(cursor), "total": total, "page": page, "page_size": limit}

    def update(self, job_id: str, job: JobUpdate) -> dict:
        oid = parse_object_id(job_id, "job id")
        changes = job.model_dump(by_alias=True, exclude_unset=True)
        if changes.get("targetRole") is not None:
            self._check_target_role(changes["targetRole"])
        if changes.get("status") is not None:
            changes["status"] = job.status.value
        changes["updatedAt"] = utcnow()

        doc = self.collection.find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError("Job not found")
        logger.info(f"Job updated: {job_id}")
        return serialize_doc(doc)

    def delete(self, job_id: str) -> None:
        result = self.collection.delete_one({"_id": parse_object_id(job_id, "job id")})
        if result.deleted_count == 0:
            raise NotFoundError("Job not found")
        logger.info(f"Job deleted: {job_id}")

    def _check_target_role(self, target_role: str) -> None:
        if not self.guard.user_type_exists(target_role):
            raise ValidationError(f"Unknown user type '{target_role}'", field="targetRole")
