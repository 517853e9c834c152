"""
Schema Composer - user types built from attribute bindings.

A user type is stored with normalised bindings:

    {"slug": "ugc-creator", "name": "UGC Creator", "parentType": "Collaborator",
     "fields": [{"attributeSlug": "instagram_handle", "label": "Instagram",
                 "required": True, "section": "Social"}],
     "version": 1}

Attribute details are joined in on read, so an attribute edit shows up in
every schema that binds it without rewriting those schemas.
"""

from typing import Dict, List, Optional, Tuple

from loguru import logger
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from backoffice.core.errors import ConflictError, NotFoundError, ValidationError
from backoffice.core.logging_config import log_structural
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.schemas.schemas import FieldBindingIn, UserTypeCreate, UserTypeUpdate
from backoffice.services.integrity import IntegrityGuard
from backoffice.services.mongo_service import strip_id, utcnow
from backoffice.utils.slugs import normalize_slug


class UserTypeService:
    """Handles user type configurations."""

    def __init__(self, guard: Optional[IntegrityGuard] = None):
        self.collection: Collection = get_collection(COLLECTIONS["user_types"])
        self.attributes: Collection = get_collection(COLLECTIONS["attributes"])
        self.guard = guard or IntegrityGuard()

    # ============================================================
    # READ
    # ============================================================

    def list(self, parent_type: Optional[str] = None) -> List[dict]:
        """All user types with attribute details joined into their bindings."""
        query = {"parentType": parent_type} if parent_type else {}
        docs = [strip_id(doc) for doc in self.collection.find(query).sort("_id", 1)]
        attributes = self._attribute_map(
            binding["attributeSlug"] for doc in docs for binding in doc.get("fields", [])
        )
        return [self._enrich(doc, attributes) for doc in docs]

    def get(self, slug: str) -> dict:
        doc = self.get_raw(slug)
        attributes = self._attribute_map(binding["attributeSlug"] for binding in doc.get("fields", []))
        return self._enrich(doc, attributes)

    def get_raw(self, slug: str) -> dict:
        """Stored document, bindings not enriched."""
        doc = self.collection.find_one({"slug": slug})
        if doc is None:
            raise NotFoundError(f"User type '{slug}' not found")
        return strip_id(doc)

    def load_schema(self, slug: str) -> Tuple[dict, Dict[str, dict]]:
        """
        A user type and the live attributes its bindings point at.

        Missing attributes are absent from the map; the form generator treats
        that as a structural error.
        """
        doc = self.get_raw(slug)
        attributes = self._attribute_map(binding["attributeSlug"] for binding in doc.get("fields", []))
        return doc, attributes

    # ============================================================
    # WRITE
    # ============================================================

    def create(self, data: UserTypeCreate) -> dict:
        """
        Compose a new user type.

        Raises:
            ValidationError: bad slug, duplicate or unknown attribute slugs
            ConflictError: slug already taken
        """
        slug = normalize_slug(data.slug)
        fields = self._bindings(data.fields)

        if self.collection.find_one({"slug": slug}, {"_id": 1}) is not None:
            raise ConflictError(f"User type with slug '{slug}' already exists")

        now = utcnow()
        doc = {
            "slug": slug,
            "name": data.name.strip(),
            "parentType": data.parent_type.value,
            "fields": fields,
            "version": 1,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(f"User type with slug '{slug}' already exists")

        # an attribute may have been deleted between the check and the insert
        missing = self.guard.missing_attributes(binding["attributeSlug"] for binding in fields)
        if missing:
            self.collection.delete_one({"_id": doc["_id"]})
            raise ValidationError(f"Attributes not found: {', '.join(missing)}", field="fields")

        logger.info(f"User type created: {slug} ({doc['parentType']}, {len(fields)} fields)")
        return self.get(slug)

    def update(self, slug: str, data: UserTypeUpdate, expected_version: Optional[int] = None) -> dict:
        """
        Patch name, parentType or the bindings.

        A new `fields` list replaces the old one as a whole. parentType can
        only change while no profile uses the type.
        """
        current = self.get_raw(slug)
        changes = data.model_dump(exclude_unset=True)

        new_slug = changes.get("slug")
        if new_slug is not None and normalize_slug(new_slug) != slug:
            raise ValidationError("Slug cannot be changed after creation", field="slug")

        updates = {"updatedAt": utcnow()}
        if changes.get("name") is not None:
            updates["name"] = changes["name"].strip()
        if changes.get("parent_type") is not None and changes["parent_type"].value != current["parentType"]:
            in_use = self.guard.profiles_using(slug)
            if in_use:
                raise ConflictError(
                    f"Cannot change parent type of '{slug}'. {in_use} profile(s) are assigned to it"
                )
            updates["parentType"] = changes["parent_type"].value
        if data.fields is not None:
            updates["fields"] = self._bindings(data.fields)

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
                raise ConflictError(f"User type '{slug}' was modified by someone else; reload and retry")
            raise NotFoundError(f"User type '{slug}' not found")

        if "fields" in updates:
            missing = self.guard.missing_attributes(binding["attributeSlug"] for binding in updates["fields"])
            if missing:
                self.collection.update_one(
                    {"_id": doc["_id"]},
                    {"$set": {"fields": current.get("fields", []), "updatedAt": utcnow()}}
                )
                raise ValidationError(f"Attributes not found: {', '.join(missing)}", field="fields")

        logger.info(f"User type updated: {slug} (version {doc['version']})")
        return self.get(slug)

    def delete(self, slug: str) -> None:
        """Delete a user type. 409 while any profile is assigned to it."""
        self.guard.delete_user_type(slug)
        logger.info(f"User type deleted: {slug}")

    # ============================================================
    # HELPERS
    # ============================================================

    def _bindings(self, fields: List[FieldBindingIn]) -> List[dict]:
        if not fields:
            raise ValidationError("At least one field is required", field="fields")
        bindings = []
        seen = set()
        for field in fields:
            attribute_slug = field.attribute_slug.strip()
            if attribute_slug in seen:
                raise ValidationError(f"Attribute '{attribute_slug}' is bound more than once", field="fields")
            seen.add(attribute_slug)
            section = field.section.strip() if field.section and field.section.strip() else None
            bindings.append({
                "attributeSlug": attribute_slug,
                "label": field.label.strip(),
                "required": field.required,
                "section": section,
            })

        missing = self.guard.missing_attributes(binding["attributeSlug"] for binding in bindings)
        if missing:
            raise ValidationError(f"Attributes not found: {', '.join(missing)}", field="fields")
        return bindings

    def _attribute_map(self, slugs) -> Dict[str, dict]:
        wanted = list(dict.fromkeys(slugs))
        if not wanted:
            return {}
        return {doc["slug"]: strip_id(doc) for doc in self.attributes.find({"slug": {"$in": wanted}})}

    def _enrich(self, doc: dict, attributes: Dict[str, dict]) -> dict:
        fields = []
        for binding in doc.get("fields", []):
            attribute = attributes.get(binding["attributeSlug"])
            if attribute is None:
                log_structural(
                    f"User type '{doc['slug']}' binds missing attribute '{binding['attributeSlug']}'"
                )
            fields.append({**binding, "attribute": attribute})
        return {**doc, "fields": fields}
