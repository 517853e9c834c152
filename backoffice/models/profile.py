"""
Profile model constants.

A profile document keeps the core identity fields at the top level and every
other schema-defined value in the `attributes` bag:

    {
        "_id": ObjectId, "email": ..., "first_name": ..., ...core fields,
        "password": <bcrypt hash>,
        "userType": "Collaborator",
        "collaboratorType": "ugc-creator",      # discriminator slug
        "attributes": {"years_experience": 5, "instagram_handle": "..."},
        "financialProfile": {"profileType": "Individual", ...},   # optional
        "createdAt": ..., "updatedAt": ...
    }
"""

from dataclasses import dataclass
from typing import Dict

CORE_FIELDS = (
    "email",
    "name",
    "first_name",
    "last_name",
    "phone",
    "city",
    "country",
    "address",
    "zipCode",
    "profile_picture",
)

PASSWORD_FIELD = "password"
BAG_FIELD = "attributes"
FINANCIAL_FIELD = "financialProfile"

# Searchable with the free-text `search` parameter
SEARCHABLE_FIELDS = ("first_name", "last_name", "email", "name")

# Filters applied to top-level fields; any other filter key targets the bag
STATIC_FILTERABLE_FIELDS = {"city", "country", "phone", "address", "zipCode", "email",
                            "collaboratorType", "agencyType", "userType"}

# Keys a caller never writes through the dynamic bag
SYSTEM_FIELDS = {"_id", "id", "userType", "collaboratorType", "agencyType",
                 "createdAt", "updatedAt", PASSWORD_FIELD, BAG_FIELD, FINANCIAL_FIELD}


@dataclass(frozen=True)
class ProfileKind:
    """Ties a URL collection to its parent type and discriminator field."""

    collection: str
    parent_type: str
    discriminator: str


COLLABORATORS = ProfileKind("collaborators", "Collaborator", "collaboratorType")
AGENCIES = ProfileKind("agencies", "Agency", "agencyType")

PROFILE_KINDS: Dict[str, ProfileKind] = {
    COLLABORATORS.collection: COLLABORATORS,
    AGENCIES.collection: AGENCIES,
}
