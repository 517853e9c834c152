"""
Attribute Registry - CRUD for the field catalogue.

An attribute is a reusable field definition:
    {"slug": "instagram_handle", "name": "Instagram Handle",
     "fieldType": "text", "defaultOptions": [], "description": None, "version": 1}

The slug is the identity and never changes. fieldType is one of the closed
FieldType set; defaultOptions is checked against it before every write.
"""

from typing import Dict, Iterable, List, Optional

from loguru import logger
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from backoffice.core.errors import ConflictError, NotFoundError, ValidationError
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.schemas.schemas import AttributeCreate, AttributeUpdate
from backoffice.services.field_types import FieldType
from backoffice.services.integrity import IntegrityGuard
from backoffice.services.mongo_service import strip_id, utcnow
from backoffice.services.option_dictionary import OptionDictionary, get_option_dictionary
from backoffice.utils.options import validate_options
from backoffice.utils.slugs import normalize_slug


class AttributeService:
    """
    Handles attribute definitions.

    Args:
        option_dictionary: global lists used to check sentinel options
        guard: integrity guard used for deletes
    """

    def __init__(self, option_dictionary: Optional[OptionDictionary] = None,
                 guard: Optional[IntegrityGuard] = None):
        self.collection: Collection = get_collection(COLLECTIONS["attributes"])
        self.option_dictionary = option_dictionary or get_option_dictionary()
        self.guard = guard or IntegrityGuard()

    def list(self) -> List[dict]:
        """All attributes in creation order."""
        return [strip_id(doc) for doc in self.collection.find().sort("_id", 1)]

    def get(self, slug: str) -> dict:
        doc = self.collection.find_one({"slug": slug})
        if doc is None:
            raise NotFoundError(f"Attribute '{slug}' not found")
        return strip_id(doc)

    def get_many(self, slugs: Iterable[str]) -> Dict[str, dict]:
        """Live attribute documents by slug. Unknown slugs are simply absent."""
        wanted = list(dict.fromkeys(slugs))
        if not wanted:
            return {}
        return {doc["slug"]: strip_id(doc) for doc in self.collection.find({"slug": {"$in": wanted}})}

    def create(self, data: AttributeCreate) -> dict:
        """
        Register a new attribute.

        Raises:
            ValidationError: bad slug or options not valid for the field type
            ConflictError: slug already taken
        """
        slug = normalize_slug(data.slug)
        options = validate_options(data.default_options, data.field_type, self.option_dictionary.keys())

        if self.collection.find_one({"slug": slug}, {"_id": 1}) is not None:
            raise ConflictError(f"Attribute with slug '{slug}' already exists")

        now = utcnow()
        doc = {
            "slug": slug,
            "name": data.name.strip(),
            "fieldType": data.field_type.value,
            "defaultOptions": options,
            "description": data.description,
            "version": 1,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(f"Attribute with slug '{slug}' already exists")

        logger.info(f"Attribute created: {slug} ({doc['fieldType']})")
        return strip_id(doc)

    def update(self, slug: str, data: AttributeUpdate, expected_version: Optional[int] = None) -> dict:
        """
        Patch name, fieldType, defaultOptions or description.

        Options are re-checked against the resulting fieldType even when only
        one of the two changes. With `expected_version` the write only lands
        if nobody updated the attribute in between.
        """
        current = self.get(slug)
        changes = data.model_dump(exclude_unset=True)

        new_slug = changes.get("slug")
        if new_slug is not None and normalize_slug(new_slug) != slug:
            raise ValidationError("Slug cannot be changed after creation", field="slug")

        field_type = changes.get("field_type") or FieldType(current["fieldType"])
        if "default_options" in changes:
            options = changes["default_options"]
        else:
            options = current.get("defaultOptions", [])
        options = validate_options(options, field_type, self.option_dictionary.keys())

        updates = {"fieldType": field_type.value, "defaultOptions": options, "updatedAt": utcnow()}
        if changes.get("name") is not None:
            updates["name"] = changes["name"].strip()
        if "description" in changes:
            updates["description"] = changes["description"]

        if field_type.value != current["fieldType"]:
            users = self.guard.schemas_referencing(slug)
            if users:
                logger.warning(
                    f"Attribute '{slug}' changed type {current['fieldType']} -> {field_type.value} "
                    f"while used by {len(users)} user type(s); stored values are not migrated"
                )

        query = {"slug": slug}
        if expected_version is not None:
            query["version"] = expected_version
        doc = self.collection.find_one_and_update(
            query,
            {"$set": updates, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER
        )
        if doc is None:
            if expected_version is not None and self.collection.find_one({"slug": slug}, {"_id": 1}):
                raise ConflictError(f"Attribute '{slug}' was modified by someone else; reload and retry")
            raise NotFoundError(f"Attribute '{slug}' not found")

        logger.info(f"Attribute updated: {slug} (version {doc['version']})")
        return strip_id(doc)

    def delete(self, slug: str) -> None:
        """Delete an attribute. 409 while any user type binds it."""
        self.guard.delete_attribute(slug)
        logger.info(f"Attribute deleted: {slug}")
