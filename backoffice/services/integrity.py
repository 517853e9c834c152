"""
Referential Integrity Guard

Two references are kept valid:

    user_types.fields[].attributeSlug  ->  attributes.slug
    profiles.collaboratorType / agencyType  ->  user_types.slug

A referenced definition cannot be deleted. There are no multi-document
transactions, so a delete is checked twice: before removing the document and
again right after. If a reference appeared in between, the document is put
back and the delete fails with a conflict. Writers that create references do
the mirror image (see UserTypeService and EntityService): they re-check the
target after their own write and roll it back if the target vanished.
"""

from typing import Dict, Iterable, List

from loguru import logger
from pymongo.collection import Collection

from backoffice.core.errors import ConflictError, NotFoundError
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.models.profile import PROFILE_KINDS


class IntegrityGuard:
    """Reference queries and guarded deletes for attributes and user types."""

    def __init__(self):
        self.attributes: Collection = get_collection(COLLECTIONS["attributes"])
        self.user_types: Collection = get_collection(COLLECTIONS["user_types"])
        self.profiles: Collection = get_collection(COLLECTIONS["profiles"])

    # ============================================================
    # REFERENCE QUERIES
    # ============================================================

    def schemas_referencing(self, attribute_slug: str) -> List[Dict[str, str]]:
        """User types whose field bindings point at `attribute_slug`."""
        cursor = self.user_types.find(
            {"fields.attributeSlug": attribute_slug},
            {"_id": 0, "slug": 1, "name": 1}
        )
        return [{"slug": doc["slug"], "name": doc.get("name", doc["slug"])} for doc in cursor]

    def profiles_using(self, user_type_slug: str) -> int:
        """Number of profiles whose discriminator is `user_type_slug`."""
        return self.profiles.count_documents({
            "$or": [{kind.discriminator: user_type_slug} for kind in PROFILE_KINDS.values()]
        })

    def missing_attributes(self, attribute_slugs: Iterable[str]) -> List[str]:
        """Slugs from `attribute_slugs` with no attribute document, in input order."""
        wanted = list(dict.fromkeys(attribute_slugs))
        if not wanted:
            return []
        found = {
            doc["slug"] for doc in self.attributes.find({"slug": {"$in": wanted}}, {"slug": 1})
        }
        return [slug for slug in wanted if slug not in found]

    def user_type_exists(self, user_type_slug: str) -> bool:
        return self.user_types.find_one({"slug": user_type_slug}, {"_id": 1}) is not None

    # ============================================================
    # GUARDED DELETES
    # ============================================================

    def delete_attribute(self, slug: str) -> dict:
        """Delete an attribute no user type references. Returns the removed document."""
        doc = self.attributes.find_one({"slug": slug})
        if doc is None:
            raise NotFoundError(f"Attribute '{slug}' not found")

        self._raise_if_attribute_used(slug)
        self.attributes.delete_one({"_id": doc["_id"]})

        try:
            self._raise_if_attribute_used(slug)
        except ConflictError:
            self.attributes.insert_one(doc)
            logger.warning(f"Attribute '{slug}' restored: a user type started using it during delete")
            raise
        return doc

    def delete_user_type(self, slug: str) -> dict:
        """Delete a user type no profile uses. Returns the removed document."""
        doc = self.user_types.find_one({"slug": slug})
        if doc is None:
            raise NotFoundError(f"User type '{slug}' not found")

        self._raise_if_user_type_used(slug)
        self.user_types.delete_one({"_id": doc["_id"]})

        try:
            self._raise_if_user_type_used(slug)
        except ConflictError:
            self.user_types.insert_one(doc)
            logger.warning(f"User type '{slug}' restored: a profile was created during delete")
            raise
        return doc

    def _raise_if_attribute_used(self, slug: str) -> None:
        blocking = self.schemas_referencing(slug)
        if blocking:
            names = ", ".join(f"{item['name']} ({item['slug']})" for item in blocking)
            raise ConflictError(f"Cannot delete attribute '{slug}'. It is used by user type(s): {names}")

    def _raise_if_user_type_used(self, slug: str) -> None:
        count = self.profiles_using(slug)
        if count:
            raise ConflictError(
                f"Cannot delete user type '{slug}'. {count} profile(s) are assigned to it"
            )
