"""
Tests for the attribute registry.
"""

import pytest

from backoffice.core.errors import ConflictError, NotFoundError, ValidationError
from backoffice.schemas.schemas import AttributeCreate, AttributeUpdate, FieldBindingIn, UserTypeCreate
from backoffice.services.attribute_service import AttributeService
from backoffice.services.integrity import IntegrityGuard


class TestCreate:
    def test_slug_is_normalised(self, attribute_service):
        attribute = attribute_service.create(
            AttributeCreate(slug="  Instagram Handle ", name="Instagram", field_type="text")
        )
        assert attribute["slug"] == "instagram-handle"
        assert attribute["version"] == 1
        assert attribute_service.get("instagram-handle")["name"] == "Instagram"

    def test_invalid_slug(self, attribute_service):
        with pytest.raises(ValidationError, match="slug"):
            attribute_service.create(AttributeCreate(slug="rate.eur", name="Rate", field_type="number"))

    def test_duplicate_slug_conflicts(self, attribute_service):
        attribute_service.create(AttributeCreate(slug="bio", name="Bio", field_type="text"))
        with pytest.raises(ConflictError):
            attribute_service.create(AttributeCreate(slug="BIO", name="Bio again", field_type="text"))

    def test_options_from_text(self, attribute_service):
        attribute = attribute_service.create(
            AttributeCreate(slug="size", name="Size", field_type="select", default_options="S, M, L")
        )
        assert attribute["defaultOptions"] == ["S", "M", "L"]

    def test_image_array_with_options_is_rejected(self, attribute_service):
        with pytest.raises(ValidationError, match="cannot have options"):
            attribute_service.create(
                AttributeCreate(slug="photos", name="Photos", field_type="image_array", default_options=["a"])
            )
        with pytest.raises(NotFoundError):
            attribute_service.get("photos")


class TestUpdate:
    def test_patch_keeps_untouched_fields(self, attribute_service):
        attribute_service.create(
            AttributeCreate(slug="size", name="Size", field_type="select", default_options=["S", "M"])
        )
        updated = attribute_service.update("size", AttributeUpdate(name="T-shirt size"))
        assert updated["name"] == "T-shirt size"
        assert updated["defaultOptions"] == ["S", "M"]
        assert updated["version"] == 2

    def test_changing_type_rechecks_existing_options(self, attribute_service):
        attribute_service.create(
            AttributeCreate(slug="size", name="Size", field_type="select", default_options=["S", "M"])
        )
        with pytest.raises(ValidationError, match="cannot have options"):
            attribute_service.update("size", AttributeUpdate(field_type="image_array"))
        assert attribute_service.get("size")["fieldType"] == "select"

        updated = attribute_service.update("size", AttributeUpdate(field_type="image_array", default_options=[]))
        assert updated["fieldType"] == "image_array"

    def test_slug_is_immutable(self, attribute_service):
        attribute_service.create(AttributeCreate(slug="bio", name="Bio", field_type="text"))
        with pytest.raises(ValidationError, match="cannot be changed"):
            attribute_service.update("bio", AttributeUpdate(slug="about"))
        # same slug is accepted
        attribute_service.update("bio", AttributeUpdate(slug="bio", name="About"))

    def test_stale_version_conflicts(self, attribute_service):
        attribute_service.create(AttributeCreate(slug="bio", name="Bio", field_type="text"))
        attribute_service.update("bio", AttributeUpdate(name="About"), expected_version=1)
        with pytest.raises(ConflictError, match="modified by someone else"):
            attribute_service.update("bio", AttributeUpdate(name="Stale"), expected_version=1)
        assert attribute_service.get("bio")["name"] == "About"

    def test_unknown_slug(self, attribute_service):
        with pytest.raises(NotFoundError):
            attribute_service.update("ghost", AttributeUpdate(name="Ghost"))


class TestDelete:
    def test_referenced_attribute_cannot_be_deleted(self, attribute_service, user_type_service):
        attribute_service.create(AttributeCreate(slug="instagram_handle", name="Instagram", field_type="text"))
        user_type_service.create(UserTypeCreate(
            slug="ugc-creator", name="UGC Creator", parent_type="Collaborator",
            fields=[FieldBindingIn(attribute_slug="instagram_handle", label="Instagram", required=True)],
        ))

        with pytest.raises(ConflictError, match="ugc-creator"):
            attribute_service.delete("instagram_handle")
        # failing twice changes nothing either
        with pytest.raises(ConflictError):
            attribute_service.delete("instagram_handle")
        assert attribute_service.get("instagram_handle")["slug"] == "instagram_handle"

    def test_unreferenced_attribute_is_deleted(self, attribute_service):
        attribute_service.create(AttributeCreate(slug="bio", name="Bio", field_type="text"))
        attribute_service.delete("bio")
        assert attribute_service.list() == []
        with pytest.raises(NotFoundError):
            attribute_service.delete("bio")

    def test_reference_added_during_delete_restores_attribute(self, option_dictionary):
        class LateReferenceGuard(IntegrityGuard):
            """First check sees no users, the re-check sees one."""

            def __init__(self):
                super().__init__()
                self.calls = 0

            def schemas_referencing(self, attribute_slug):
                self.calls += 1
                if self.calls == 1:
                    return []
                return [{"slug": "late-type", "name": "Late Type"}]

        service = AttributeService(option_dictionary=option_dictionary, guard=LateReferenceGuard())
        service.create(AttributeCreate(slug="bio", name="Bio", field_type="text"))

        with pytest.raises(ConflictError, match="late-type"):
            service.delete("bio")
        assert service.get("bio")["name"] == "Bio"


class TestRead:
    def test_list_in_creation_order(self, attribute_service):
        for slug in ("b", "a", "c"):
            attribute_service.create(AttributeCreate(slug=slug, name=slug.upper(), field_type="text"))
        assert [item["slug"] for item in attribute_service.list()] == ["b", "a", "c"]

    def test_get_many_skips_unknown(self, attribute_service):
        attribute_service.create(AttributeCreate(slug="bio", name="Bio", field_type="text"))
        assert list(attribute_service.get_many(["bio", "ghost"])) == ["bio"]
