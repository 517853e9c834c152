"""
Entity Value Store - collaborator and agency profiles.

Writes go through the validation ruleset generated from the profile's user
type; reads go through ProfileView, which merges the core fields and the
dynamic bag into one flat record. Core fields always win over a bag key with
the same name.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from backoffice.core.auth import hash_password
from backoffice.core.config import get_settings
from backoffice.core.errors import ConflictError, NotFoundError, StructuralError, ValidationError
from backoffice.core.logging_config import log_structural
from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.models.profile import (
    BAG_FIELD, CORE_FIELDS, PASSWORD_FIELD, SEARCHABLE_FIELDS, STATIC_FILTERABLE_FIELDS,
    SYSTEM_FIELDS, ProfileKind
)
from backoffice.schemas.schemas import FormMode
from backoffice.services.field_types import FieldRuleError, FieldType, behavior_for, parse_field_type
from backoffice.services.form_generator import FormGenerator, GeneratedForm
from backoffice.services.integrity import IntegrityGuard
from backoffice.services.mongo_service import parse_object_id, utcnow
from backoffice.services.user_type_service import UserTypeService
from backoffice.utils.slugs import is_safe_key

_MISSING = object()

# filter values that mean "no filter"
_IGNORED_FILTER_VALUES = {"", "all"}


# ============================================================
# MERGED VIEW
# ============================================================

class ProfileView:
    """Read access to a stored profile as one flat record."""

    def __init__(self, doc: dict):
        self.doc = doc

    @property
    def bag(self) -> dict:
        return self.doc.get(BAG_FIELD) or {}

    def get_core_field(self, name: str, default: Any = None) -> Any:
        return self.doc.get(name, default)

    def get_dynamic_field(self, name: str, default: Any = None) -> Any:
        return self.bag.get(name, default)

    def has(self, name: str) -> bool:
        if name in CORE_FIELDS:
            return name in self.doc
        return name in self.bag

    def get(self, name: str, default: Any = None) -> Any:
        """Core field when `name` is core, bag value otherwise."""
        if name in CORE_FIELDS:
            return self.get_core_field(name, default)
        return self.get_dynamic_field(name, default)

    def to_dict(self, kind: ProfileKind) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": str(self.doc["_id"])}
        for name in CORE_FIELDS:
            record[name] = self.doc.get(name)
        record["userType"] = self.doc.get("userType")
        record[kind.discriminator] = self.doc.get(kind.discriminator)
        for key, value in self.bag.items():
            if key not in record and key not in SYSTEM_FIELDS:
                record[key] = value
        record["createdAt"] = self.doc.get("createdAt")
        record["updatedAt"] = self.doc.get("updatedAt")
        return record


def compose_name(first_name: Optional[str], last_name: Optional[str], email: Optional[str]) -> str:
    """Display name from first and last name, falling back to the email."""
    name = " ".join(part for part in (first_name or "", last_name or "") if part).strip()
    return name or (email or "")


# ============================================================
# PROFILE SERVICE
# ============================================================

class EntityService:
    """
    Handles profiles of one kind (collaborators or agencies).

    Both kinds share the `profiles` collection; `userType` holds the parent
    type and the kind's discriminator field holds the user type slug.
    """

    def __init__(self, kind: ProfileKind, generator: Optional[FormGenerator] = None,
                 user_types: Optional[UserTypeService] = None, guard: Optional[IntegrityGuard] = None):
        self.kind = kind
        self.collection: Collection = get_collection(COLLECTIONS["profiles"])
        self.guard = guard or IntegrityGuard()
        self.user_types = user_types or UserTypeService(guard=self.guard)
        self.generator = generator or FormGenerator()

    # ============================================================
    # READ
    # ============================================================

    def get(self, profile_id: str) -> Dict[str, Any]:
        return ProfileView(self._get_doc(profile_id)).to_dict(self.kind)

    def form(self, profile_id: str) -> GeneratedForm:
        """Edit form for an existing profile, prefilled with its values."""
        doc = self._get_doc(profile_id)
        view = ProfileView(doc)
        user_type, attributes = self._schema_for_profile(doc)
        return self.generator.generate(user_type, attributes, FormMode.edit, current=view.to_dict(self.kind))

    def list(self, filters: Optional[Dict[str, str]] = None, page: int = 1, limit: Optional[int] = None,
             search: Optional[str] = None) -> Dict[str, Any]:
        """
        Paginated listing, newest first.

        Filters on core fields match exactly. Any other key filters the
        dynamic bag: "true" matches true, "false" matches false or unset,
        "all" and "" are ignored.
        """
        limit = limit or get_settings().default_page_size
        query = self._build_query(filters or {}, search)

        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return {
            "data": [ProfileView(doc).to_dict(self.kind) for doc in cursor],
            "metadata": {"total": total, "page": page, "limit": limit},
        }

    # ============================================================
    # WRITE
    # ============================================================

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate against the user type's create rules and store.

        Raises:
            ValidationError: missing/unknown user type or a failing field
            ConflictError: email already registered
        """
        payload = dict(payload)
        type_slug = payload.pop(self.kind.discriminator, None)
        parent_type = payload.pop("userType", None)
        if parent_type not in (None, "", self.kind.parent_type):
            raise ValidationError(f"Must be '{self.kind.parent_type}' for this collection", field="userType")
        if not type_slug:
            raise ValidationError("User type is required", field=self.kind.discriminator)

        user_type, attributes = self._schema_for_write(type_slug)
        form = self.generator.generate(user_type, attributes, FormMode.create)
        values = form.ruleset.validate(payload)

        email = values["email"]
        if self.collection.find_one({"email": email}, {"_id": 1}) is not None:
            raise ConflictError(f"A profile with email '{email}' already exists")

        now = utcnow()
        doc = {name: values.get(name) for name in CORE_FIELDS}
        if not doc.get("name"):
            doc["name"] = compose_name(doc.get("first_name"), doc.get("last_name"), email)
        doc.update({
            PASSWORD_FIELD: hash_password(values[PASSWORD_FIELD]),
            "userType": self.kind.parent_type,
            self.kind.discriminator: type_slug,
            BAG_FIELD: {
                key: value for key, value in values.items()
                if key not in CORE_FIELDS and key != PASSWORD_FIELD and value is not None
            },
            "createdAt": now,
            "updatedAt": now,
        })
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError(f"A profile with email '{email}' already exists")

        # the user type may have been deleted between the check and the insert
        if not self.guard.user_type_exists(type_slug):
            self.collection.delete_one({"_id": doc["_id"]})
            raise ValidationError(f"User type '{type_slug}' no longer exists", field=self.kind.discriminator)

        logger.info(f"{self.kind.parent_type} created: {doc['_id']} ({type_slug})")
        return ProfileView(doc).to_dict(self.kind)

    def update(self, profile_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update.

        The stored values overlaid with the patch are validated as a whole
        against the edit rules; only the patched keys are written, so values
        managed elsewhere (files) are kept.
        """
        doc = self._get_doc(profile_id)
        view = ProfileView(doc)
        payload = dict(payload)

        for key in ("userType", self.kind.discriminator):
            if key in payload:
                value = payload.pop(key)
                if value not in (None, "", doc.get(key)):
                    raise ValidationError("Cannot be changed after creation", field=key)

        user_type, attributes = self._schema_for_profile(doc)
        form = self.generator.generate(user_type, attributes, FormMode.edit, current=view.to_dict(self.kind))
        for key in payload:
            if key in form.file_fields:
                raise ValidationError("Files are managed through the file endpoint", field=key)

        stored = {
            key: view.get(key) for key in form.ruleset.keys()
            if key != PASSWORD_FIELD and view.has(key)
        }
        values = form.ruleset.validate({**stored, **payload})

        set_ops: Dict[str, Any] = {}
        unset_ops: Dict[str, Any] = {}
        for key in payload:
            if key == PASSWORD_FIELD:
                if values.get(PASSWORD_FIELD):
                    set_ops[PASSWORD_FIELD] = hash_password(values[PASSWORD_FIELD])
            elif key in CORE_FIELDS:
                set_ops[key] = values.get(key)
            elif values.get(key) is None:
                unset_ops[f"{BAG_FIELD}.{key}"] = ""
            else:
                set_ops[f"{BAG_FIELD}.{key}"] = values[key]

        if "email" in set_ops and set_ops["email"] != doc.get("email"):
            clash = self.collection.find_one({"email": set_ops["email"], "_id": {"$ne": doc["_id"]}}, {"_id": 1})
            if clash is not None:
                raise ConflictError(f"A profile with email '{set_ops['email']}' already exists")

        if ("first_name" in set_ops or "last_name" in set_ops) and not payload.get("name"):
            set_ops["name"] = compose_name(
                values.get("first_name"), values.get("last_name"), values.get("email")
            )

        set_ops["updatedAt"] = utcnow()
        update = {"$set": set_ops}
        if unset_ops:
            update["$unset"] = unset_ops
        try:
            updated = self.collection.find_one_and_update(
                {"_id": doc["_id"]}, update, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError(f"A profile with email '{set_ops.get('email')}' already exists")
        if updated is None:
            raise NotFoundError(f"{self.kind.parent_type} not found")

        logger.info(f"{self.kind.parent_type} updated: {profile_id} ({', '.join(sorted(payload)) or 'no fields'})")
        return ProfileView(updated).to_dict(self.kind)

    def set_file_array(self, profile_id: str, slug: str, files: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Replace the files stored under an image_array attribute.

        `profile_picture` is the core photo: it takes the first file's path.
        """
        doc = self._get_doc(profile_id)

        if slug == "profile_picture":
            path = files[0]["path"] if files else ""
            updated = self._set(doc["_id"], {"profile_picture": path})
            logger.info(f"{self.kind.parent_type} {profile_id}: profile picture set")
            return ProfileView(updated).to_dict(self.kind)

        user_type, attributes = self._schema_for_profile(doc)
        binding = next((b for b in user_type.get("fields", []) if b["attributeSlug"] == slug), None)
        if binding is None:
            raise ValidationError(f"Not a field of user type '{user_type['slug']}'", field=slug)
        attribute = attributes.get(slug)
        if attribute is None or parse_field_type(attribute.get("fieldType")) != FieldType.image_array:
            raise ValidationError("Not a file field", field=slug)

        behavior = behavior_for(FieldType.image_array)
        try:
            files = behavior.check(files, False, binding.get("label") or slug) or []
        except FieldRuleError as e:
            raise ValidationError(str(e), field=slug)

        updated = self._set(doc["_id"], {f"{BAG_FIELD}.{slug}": files})
        logger.info(f"{self.kind.parent_type} {profile_id}: {len(files)} file(s) stored under {slug}")
        return ProfileView(updated).to_dict(self.kind)

    def delete(self, profile_id: str) -> None:
        oid = parse_object_id(profile_id, "profile id")
        result = self.collection.delete_one({"_id": oid, "userType": self.kind.parent_type})
        if result.deleted_count == 0:
            raise NotFoundError(f"{self.kind.parent_type} not found")
        logger.info(f"{self.kind.parent_type} deleted: {profile_id}")

    # ============================================================
    # HELPERS
    # ============================================================

    def _get_doc(self, profile_id: str) -> dict:
        oid = parse_object_id(profile_id, "profile id")
        doc = self.collection.find_one({"_id": oid, "userType": self.kind.parent_type})
        if doc is None:
            raise NotFoundError(f"{self.kind.parent_type} not found")
        return doc

    def _set(self, oid: ObjectId, values: Dict[str, Any]) -> dict:
        values = {**values, "updatedAt": utcnow()}
        return self.collection.find_one_and_update(
            {"_id": oid}, {"$set": values}, return_document=ReturnDocument.AFTER
        )

    def _schema_for_write(self, type_slug: str) -> Tuple[dict, Dict[str, dict]]:
        """User type named in a create payload; unknown or wrong parent is caller error."""
        try:
            user_type, attributes = self.user_types.load_schema(type_slug)
        except NotFoundError:
            raise ValidationError(f"Unknown user type '{type_slug}'", field=self.kind.discriminator)
        if user_type.get("parentType") != self.kind.parent_type:
            raise ValidationError(
                f"User type '{type_slug}' is not a {self.kind.parent_type} type",
                field=self.kind.discriminator
            )
        return user_type, attributes

    def _schema_for_profile(self, doc: dict) -> Tuple[dict, Dict[str, dict]]:
        """User type of a stored profile; a missing one means the data is broken."""
        type_slug = doc.get(self.kind.discriminator)
        try:
            return self.user_types.load_schema(type_slug)
        except NotFoundError:
            message = f"{self.kind.parent_type} {doc['_id']} references missing user type '{type_slug}'"
            log_structural(message)
            raise StructuralError(message)

    def _build_query(self, filters: Dict[str, str], search: Optional[str]) -> Dict[str, Any]:
        query: Dict[str, Any] = {"userType": self.kind.parent_type}

        if search and search.strip():
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{name: pattern} for name in SEARCHABLE_FIELDS]

        active = {
            key: value for key, value in filters.items()
            if value is not None and str(value).strip().lower() not in _IGNORED_FILTER_VALUES
        }
        numeric = self._numeric_attributes(key for key in active if key not in STATIC_FILTERABLE_FIELDS)

        for key, value in active.items():
            if key in STATIC_FILTERABLE_FIELDS:
                if key == "userType" and value != self.kind.parent_type:
                    # another kind's parent type: nothing can match
                    query["userType"] = value
                elif key != "userType":
                    query[key] = value
                continue
            if not is_safe_key(key):
                raise ValidationError("Invalid filter name", field=key)
            path = f"{BAG_FIELD}.{key}"
            if value == "true":
                query[path] = True
            elif value == "false":
                query[path] = {"$in": [False, "false", None, ""]}
            elif key in numeric:
                query[path] = {"$in": [self._filter_number(key, value), value]}
            else:
                query[path] = value
        return query

    def _numeric_attributes(self, keys) -> set:
        """Filter keys that name number attributes; their values are stored as numbers."""
        wanted = [key for key in keys if is_safe_key(key)]
        if not wanted:
            return set()
        cursor = self.guard.attributes.find(
            {"slug": {"$in": wanted}, "fieldType": FieldType.number.value}, {"slug": 1}
        )
        return {doc["slug"] for doc in cursor}

    @staticmethod
    def _filter_number(key: str, value: str) -> Any:
        try:
            return behavior_for(FieldType.number).coerce(value)
        except FieldRuleError as e:
            raise ValidationError(str(e), field=key)
