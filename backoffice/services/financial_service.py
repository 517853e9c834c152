"""
Financial profile - billing data kept on a profile document.

Stored as a `financialProfile` subdocument next to the core fields. It is not
part of the merged profile record and is replaced as a whole on every write.
"""

from typing import Any, Dict, Optional

from loguru import logger
from pymongo.collection import Collection

from backoffice.core.errors import NotFoundError
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.models.profile import FINANCIAL_FIELD, ProfileKind
from backoffice.schemas.schemas import FinancialProfile
from backoffice.services.mongo_service import parse_object_id, utcnow


class FinancialService:
    """Billing data for profiles of one kind."""

    def __init__(self, kind: ProfileKind):
        self.kind = kind
        self.collection: Collection = get_collection(COLLECTIONS["profiles"])

    def get(self, profile_id: str) -> Optional[Dict[str, Any]]:
        """Stored billing data, or None when the profile has none yet."""
        doc = self.collection.find_one(self._filter(profile_id), {FINANCIAL_FIELD: 1})
        if doc is None:
            raise NotFoundError(f"{self.kind.parent_type} not found")
        return doc.get(FINANCIAL_FIELD)

    def replace(self, profile_id: str, data: FinancialProfile) -> Dict[str, Any]:
        financial = data.model_dump(by_alias=True, mode="json")
        result = self.collection.update_one(
            self._filter(profile_id),
            {"$set": {FINANCIAL_FIELD: financial, "updatedAt": utcnow()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"{self.kind.parent_type} not found")
        logger.info(f"{self.kind.parent_type} {profile_id}: financial profile saved ({data.profile_type.value})")
        return financial

    def delete(self, profile_id: str) -> None:
        result = self.collection.update_one(
            self._filter(profile_id),
            {"$unset": {FINANCIAL_FIELD: ""}, "$set": {"updatedAt": utcnow()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"{self.kind.parent_type} not found")
        logger.info(f"{self.kind.parent_type} {profile_id}: financial profile removed")

    def _filter(self, profile_id: str) -> Dict[str, Any]:
        return {"_id": parse_object_id(profile_id, "profile id"), "userType": self.kind.parent_type}
