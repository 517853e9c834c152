"""
Seed Service - starter attribute catalogue and user types.

Idempotent: existing slugs are left alone (operators may have edited them),
missing ones are inserted. Attributes go in before the user types that bind
them.
"""

from typing import Dict

from loguru import logger
from pymongo.collection import Collection

from backoffice.db.mongodb import get_collection, COLLECTIONS
from backoffice.services.field_types import FieldType
from backoffice.services.mongo_service import utcnow
from backoffice.services.option_dictionary import OptionDictionary, get_option_dictionary
from backoffice.utils.options import validate_options

SEED_ATTRIBUTES = [
    {"slug": "bio", "name": "Bio", "fieldType": "text", "defaultOptions": []},
    {"slug": "birth_date", "name": "Birth Date", "fieldType": "date", "defaultOptions": []},
    {"slug": "nationality", "name": "Nationality", "fieldType": "select", "defaultOptions": ["GLOBAL_COUNTRIES"]},
    {"slug": "spoken_languages", "name": "Spoken Languages", "fieldType": "array",
     "defaultOptions": ["GLOBAL_LANGUAGES"]},
    {"slug": "years_experience", "name": "Years of Experience", "fieldType": "number", "defaultOptions": []},
    {"slug": "instagram_handle", "name": "Instagram Handle", "fieldType": "text", "defaultOptions": []},
    {"slug": "portfolio_url", "name": "Portfolio URL", "fieldType": "url", "defaultOptions": []},
    {"slug": "content_niches", "name": "Content Niches", "fieldType": "array",
     "defaultOptions": ["Beauty", "Fashion", "Food", "Tech", "Travel", "Fitness", "Gaming"]},
    {"slug": "gender", "name": "Gender", "fieldType": "select",
     "defaultOptions": [{"value": "female", "label": "Female"}, {"value": "male", "label": "Male"},
                        {"value": "other", "label": "Other"}]},
    {"slug": "has_driving_license", "name": "Driving License", "fieldType": "boolean", "defaultOptions": []},
    {"slug": "photos", "name": "Photos", "fieldType": "image_array", "defaultOptions": []},
    {"slug": "company_website", "name": "Company Website", "fieldType": "url", "defaultOptions": []},
    {"slug": "vat_number", "name": "VAT Number", "fieldType": "text", "defaultOptions": []},
    {"slug": "roster_size", "name": "Roster Size", "fieldType": "number", "defaultOptions": []},
]

SEED_USER_TYPES = [
    {
        "slug": "ugc-creator",
        "name": "UGC Creator",
        "parentType": "Collaborator",
        "fields": [
            {"attributeSlug": "bio", "label": "About you", "required": False, "section": "Profile"},
            {"attributeSlug": "birth_date", "label": "Birth date", "required": True, "section": "Profile"},
            {"attributeSlug": "gender", "label": "Gender", "required": False, "section": "Profile"},
            {"attributeSlug": "nationality", "label": "Nationality", "required": False, "section": "Profile"},
            {"attributeSlug": "spoken_languages", "label": "Languages", "required": True, "section": "Skills"},
            {"attributeSlug": "content_niches", "label": "Niches", "required": False, "section": "Skills"},
            {"attributeSlug": "years_experience", "label": "Experience (years)", "required": False,
             "section": "Skills"},
            {"attributeSlug": "instagram_handle", "label": "Instagram", "required": False, "section": "Social"},
            {"attributeSlug": "portfolio_url", "label": "Portfolio", "required": False, "section": "Social"},
            {"attributeSlug": "photos", "label": "Photos", "required": False, "section": "Media"},
        ],
    },
    {
        "slug": "model",
        "name": "Model",
        "parentType": "Collaborator",
        "fields": [
            {"attributeSlug": "birth_date", "label": "Birth date", "required": True, "section": "Profile"},
            {"attributeSlug": "gender", "label": "Gender", "required": True, "section": "Profile"},
            {"attributeSlug": "has_driving_license", "label": "Driving license", "required": False,
             "section": None},
            {"attributeSlug": "photos", "label": "Book", "required": False, "section": "Media"},
        ],
    },
    {
        "slug": "talent-agency",
        "name": "Talent Agency",
        "parentType": "Agency",
        "fields": [
            {"attributeSlug": "company_website", "label": "Website", "required": False, "section": "Company"},
            {"attributeSlug": "vat_number", "label": "VAT number", "required": True, "section": "Company"},
            {"attributeSlug": "roster_size", "label": "Talents represented", "required": False,
             "section": "Company"},
        ],
    },
]


def _without_slug(doc: dict) -> dict:
    # the slug comes from the upsert filter
    return {key: value for key, value in doc.items() if key != "slug"}


def seed_catalogue(option_dictionary: OptionDictionary = None) -> Dict[str, int]:
    """
    Insert missing seed attributes and user types.

    Returns:
        {"attributes": <inserted>, "user_types": <inserted>}
    """
    option_dictionary = option_dictionary or get_option_dictionary()
    attributes: Collection = get_collection(COLLECTIONS["attributes"])
    user_types: Collection = get_collection(COLLECTIONS["user_types"])
    known_lists = option_dictionary.keys()
    inserted = {"attributes": 0, "user_types": 0}

    for attribute in SEED_ATTRIBUTES:
        options = validate_options(attribute["defaultOptions"], FieldType(attribute["fieldType"]), known_lists)
        now = utcnow()
        result = attributes.update_one(
            {"slug": attribute["slug"]},
            {"$setOnInsert": {**_without_slug(attribute), "defaultOptions": options, "description": None,
                              "version": 1, "createdAt": now, "updatedAt": now}},
            upsert=True
        )
        if result.upserted_id is not None:
            inserted["attributes"] += 1

    for user_type in SEED_USER_TYPES:
        now = utcnow()
        result = user_types.update_one(
            {"slug": user_type["slug"]},
            {"$setOnInsert": {**_without_slug(user_type), "version": 1, "createdAt": now, "updatedAt": now}},
            upsert=True
        )
        if result.upserted_id is not None:
            inserted["user_types"] += 1

    logger.info(f"Seed complete: {inserted['attributes']} attribute(s), {inserted['user_types']} user type(s) added")
    return inserted
