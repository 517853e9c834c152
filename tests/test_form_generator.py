"""
Tests for the form & validation generator.

These work on plain dicts (a stored user type and its attributes), no
database needed.
"""

import pytest

from backoffice.core.errors import StructuralError, ValidationError
from backoffice.schemas.schemas import FormDescriptor, FormMode


def attribute(slug, field_type, options=None, **extra):
    return {"slug": slug, "name": slug.title(), "fieldType": field_type,
            "defaultOptions": options or [], **extra}


def binding(slug, label=None, required=False, section=None):
    return {"attributeSlug": slug, "label": label or slug, "required": required, "section": section}


@pytest.fixture
def schema():
    user_type = {
        "slug": "ugc-creator",
        "name": "UGC Creator",
        "parentType": "Collaborator",
        "fields": [
            binding("instagram_handle", "Instagram", required=True, section="Social"),
            binding("years_experience", "Experience", required=True),
            binding("portfolio_url", "Portfolio", section="Social"),
            binding("nationality", "Nationality", section="Profile"),
            binding("spoken_languages", "Languages", required=True, section="Profile"),
            binding("photos", "Photos", section="Media"),
            binding("city", "City override", required=True),
        ],
    }
    attributes = {
        "instagram_handle": attribute("instagram_handle", "text"),
        "years_experience": attribute("years_experience", "number"),
        "portfolio_url": attribute("portfolio_url", "url"),
        "nationality": attribute("nationality", "select", ["GLOBAL_COUNTRIES"]),
        "spoken_languages": attribute("spoken_languages", "array",
                                      [{"value": "en", "label": "English"}, "es"]),
        "photos": attribute("photos", "image_array"),
        "city": attribute("city", "text"),
    }
    return user_type, attributes


def valid_payload(**overrides):
    payload = {
        "email": "Ana@LinkVids.io",
        "password": "secret123",
        "first_name": "Ana",
        "last_name": "Lopez",
        "country": "Spain",
        "instagram_handle": "@ana",
        "years_experience": "5",
        "spoken_languages": ["en"],
    }
    payload.update(overrides)
    return payload


class TestDescriptors:
    def test_sections_follow_first_appearance(self, generator, schema):
        form = generator.generate(*schema, FormMode.create)
        names = [section["name"] for section in form.sections]
        assert names == ["Social", "Other Details", "Profile", "Media"]

        social = form.sections[0]["fields"]
        assert [field["slug"] for field in social] == ["instagram_handle", "portfolio_url"]

    def test_core_named_bindings_are_left_to_core_rules(self, generator, schema):
        form = generator.generate(*schema, FormMode.create)
        slugs = [field["slug"] for section in form.sections for field in section["fields"]]
        assert "city" not in slugs
        # the core rule (optional) wins over the binding's required flag
        assert form.ruleset.describe()["city"]["required"] is False

    def test_options_are_resolved(self, generator, schema):
        form = generator.generate(*schema, FormMode.create)
        fields = {f["slug"]: f for section in form.sections for f in section["fields"]}
        assert [o["value"] for o in fields["nationality"]["options"]] == ["Spain", "France", "Germany"]
        assert fields["spoken_languages"]["options"] == [
            {"value": "en", "label": "English"}, {"value": "es", "label": "es"}
        ]
        assert fields["instagram_handle"]["options"] is None
        assert fields["spoken_languages"]["widget"] == "multiselect"

    def test_descriptor_matches_response_schema(self, generator, schema):
        descriptor = FormDescriptor.model_validate(generator.generate(*schema, FormMode.create).descriptor())
        body = descriptor.model_dump(by_alias=True)
        assert body["userType"] == "ugc-creator"
        assert body["sections"][0]["fields"][0]["fieldType"] == "text"
        assert body["rules"]["years_experience"]["emptyAsAbsent"] is True
        assert body["rules"]["password"]["minLength"] == 6

    def test_missing_attribute_is_structural(self, generator, schema):
        user_type, attributes = schema
        del attributes["portfolio_url"]
        with pytest.raises(StructuralError, match="portfolio_url"):
            generator.generate(user_type, attributes, FormMode.create)

    def test_unknown_field_type_is_structural(self, generator, schema):
        user_type, attributes = schema
        attributes["portfolio_url"]["fieldType"] = "rich_text"
        with pytest.raises(StructuralError, match="rich_text"):
            generator.generate(user_type, attributes, FormMode.create)


class TestInitialValues:
    def test_create_defaults(self, generator, schema):
        values = generator.generate(*schema, FormMode.create).initial_values
        assert values["email"] == ""
        assert values["password"] == ""
        assert values["instagram_handle"] == ""
        assert values["spoken_languages"] == []
        assert values["photos"] == []

    def test_edit_prefills_current_values(self, generator, schema):
        current = {"email": "ana@linkvids.io", "first_name": "Ana", "years_experience": 5,
                   "photos": [{"path": "/p/1.jpg", "name": "1.jpg"}]}
        values = generator.generate(*schema, FormMode.edit, current=current).initial_values
        assert values["email"] == "ana@linkvids.io"
        assert values["years_experience"] == 5
        assert values["instagram_handle"] == ""
        assert values["password"] == ""
        assert "photos" not in values


class TestRuleset:
    def test_valid_payload_is_normalised(self, generator, schema):
        values = generator.generate(*schema, FormMode.create).ruleset.validate(valid_payload())
        assert values["email"] == "ana@linkvids.io"
        assert values["years_experience"] == 5
        assert "portfolio_url" not in values

    def test_required_number_rejects_empty_string(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(valid_payload(years_experience=""))
        assert exc.value.field == "years_experience"
        assert exc.value.message == "years_experience: Experience is required"

    def test_required_array_needs_an_item(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError, match="spoken_languages"):
            ruleset.validate(valid_payload(spoken_languages=[]))

    def test_only_the_first_error_is_reported(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(valid_payload(email="nope", years_experience="many"))
        assert exc.value.field == "email"

    def test_unknown_keys_are_rejected(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(valid_payload(tiktok="@ana"))
        assert exc.value.field == "tiktok"

    def test_password_rules_depend_on_mode(self, generator, schema):
        create = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError, match="at least 6"):
            create.validate(valid_payload(password="123"))
        with pytest.raises(ValidationError, match="Password is required"):
            create.validate(valid_payload(password=""))

        edit = generator.generate(*schema, FormMode.edit).ruleset
        assert edit.validate(valid_payload(password=""))["password"] is None

    def test_files_are_validated_on_create_only(self, generator, schema):
        create = generator.generate(*schema, FormMode.create)
        with pytest.raises(ValidationError, match="photos"):
            create.ruleset.validate(valid_payload(photos=[{"name": "no-path.jpg"}]))
        assert create.file_fields == ["photos"]

        edit = generator.generate(*schema, FormMode.edit)
        assert "photos" not in edit.ruleset.keys()
        assert edit.file_fields == ["photos"]
        assert all(f["slug"] != "photos" for s in edit.sections for f in s["fields"])

    def test_hyphenated_slugs_validate(self, generator):
        user_type = {"slug": "model", "parentType": "Collaborator",
                     "fields": [binding("shoe-size", "Shoe size", required=True)]}
        attributes = {"shoe-size": attribute("shoe-size", "number")}
        ruleset = generator.generate(user_type, attributes, FormMode.create).ruleset
        payload = valid_payload(**{"shoe-size": "42"})
        for key in ("instagram_handle", "years_experience", "spoken_languages"):
            payload.pop(key)
        assert ruleset.validate(payload)["shoe-size"] == 42

    def test_omitted_required_keys_are_named_by_slug(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset

        payload = valid_payload()
        del payload["first_name"]
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(payload)
        assert exc.value.message == "first_name: First name is required"

        payload = valid_payload()
        del payload["instagram_handle"]
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(payload)
        assert exc.value.field == "instagram_handle"
        assert exc.value.message == "instagram_handle: Instagram is required"

    def test_internal_names_are_not_accepted_as_keys(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(valid_payload(Rule3="x"))
        assert exc.value.message == "Rule3: Unknown field for this user type"

    def test_blank_required_text_is_missing(self, generator, schema):
        ruleset = generator.generate(*schema, FormMode.create).ruleset
        with pytest.raises(ValidationError) as exc:
            ruleset.validate(valid_payload(instagram_handle="   "))
        assert exc.value.message == "instagram_handle: Instagram is required"
        assert ruleset.validate(valid_payload(instagram_handle=" @ana "))["instagram_handle"] == "@ana"
