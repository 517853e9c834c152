"""
Pytest configuration and fixtures for back office tests.

Every test gets a fresh in-memory MongoDB (mongomock) with the production
indexes, so unique slugs and emails behave as in a real deployment.
"""

import mongomock
import pytest
from fastapi.testclient import TestClient

from backoffice.core.auth import create_access_token
from backoffice.db.mongodb import init_mongo_indexes, set_mongo_client
from backoffice.schemas.schemas import AttributeCreate, FieldBindingIn, UserTypeCreate
from backoffice.services.attribute_service import AttributeService
from backoffice.services.form_generator import FormGenerator
from backoffice.services.option_dictionary import OptionDictionary
from backoffice.services.user_type_service import UserTypeService

TEST_LISTS = {
    "countries": ["Spain", "France", "Germany"],
    "languages": ["English", "French", "Spanish"],
}


@pytest.fixture(autouse=True)
def mongo():
    """Fresh in-memory database per test."""
    client = mongomock.MongoClient()
    set_mongo_client(client)
    init_mongo_indexes()
    yield client
    set_mongo_client(None)


@pytest.fixture
def option_dictionary() -> OptionDictionary:
    """Small fixed global lists, in a deliberately unsorted order."""
    return OptionDictionary(loader=lambda: TEST_LISTS)


@pytest.fixture
def attribute_service(option_dictionary) -> AttributeService:
    return AttributeService(option_dictionary=option_dictionary)


@pytest.fixture
def user_type_service() -> UserTypeService:
    return UserTypeService()


@pytest.fixture
def generator(option_dictionary) -> FormGenerator:
    return FormGenerator(option_dictionary=option_dictionary, password_min_length=6)


@pytest.fixture
def catalogue(attribute_service, user_type_service) -> dict:
    """
    A small attribute catalogue and two user types:
    - ugc-creator (Collaborator) binding most attribute kinds
    - talent-agency (Agency) with one required text field
    """
    attributes = [
        AttributeCreate(slug="years_experience", name="Years of Experience", field_type="number"),
        AttributeCreate(slug="instagram_handle", name="Instagram Handle", field_type="text"),
        AttributeCreate(slug="portfolio_url", name="Portfolio", field_type="url"),
        AttributeCreate(slug="birth_date", name="Birth Date", field_type="date"),
        AttributeCreate(slug="spoken_languages", name="Languages", field_type="array",
                        default_options=["GLOBAL_LANGUAGES"]),
        AttributeCreate(slug="gender", name="Gender", field_type="select",
                        default_options=[{"value": "f", "label": "Female"}, {"value": "m", "label": "Male"}]),
        AttributeCreate(slug="is_vegan", name="Vegan", field_type="boolean"),
        AttributeCreate(slug="photos", name="Photos", field_type="image_array"),
        AttributeCreate(slug="vat_number", name="VAT Number", field_type="text"),
    ]
    for attribute in attributes:
        attribute_service.create(attribute)

    creator = user_type_service.create(UserTypeCreate(
        slug="ugc-creator",
        name="UGC Creator",
        parent_type="Collaborator",
        fields=[
            FieldBindingIn(attribute_slug="instagram_handle", label="Instagram", required=True, section="Social"),
            FieldBindingIn(attribute_slug="years_experience", label="Experience", required=False,
                           section="Skills"),
            FieldBindingIn(attribute_slug="portfolio_url", label="Portfolio", section="Social"),
            FieldBindingIn(attribute_slug="birth_date", label="Birth date"),
            FieldBindingIn(attribute_slug="spoken_languages", label="Languages", section="Skills"),
            FieldBindingIn(attribute_slug="gender", label="Gender"),
            FieldBindingIn(attribute_slug="is_vegan", label="Vegan"),
            FieldBindingIn(attribute_slug="photos", label="Photos", section="Media"),
        ],
    ))
    agency = user_type_service.create(UserTypeCreate(
        slug="talent-agency",
        name="Talent Agency",
        parent_type="Agency",
        fields=[FieldBindingIn(attribute_slug="vat_number", label="VAT number", required=True)],
    ))
    return {"creator": creator, "agency": agency}


@pytest.fixture
def collaborator_payload():
    """Builds a valid ugc-creator create payload; keyword overrides win."""
    def build(**overrides) -> dict:
        payload = {
            "collaboratorType": "ugc-creator",
            "email": "ana@linkvids.io",
            "password": "secret123",
            "first_name": "Ana",
            "last_name": "Lopez",
            "country": "Spain",
            "instagram_handle": "@ana",
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def client() -> TestClient:
    from backoffice.main import app
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    token = create_access_token({"sub": "admin-1", "userType": "Admin"})
    return {"Authorization": f"Bearer {token}"}
