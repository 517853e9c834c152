"""
Tests for profile billing data.
"""

import pytest
from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from backoffice.core.errors import NotFoundError
from backoffice.db.mongodb import get_collection
from backoffice.models.profile import AGENCIES, COLLABORATORS
from backoffice.schemas.schemas import FinancialProfile, FinancialProfileType
from backoffice.services.entity_service import EntityService
from backoffice.services.financial_service import FinancialService


def billing(**overrides) -> dict:
    data = {
        "profileType": "Individual",
        "billingContactName": "Ana Lopez",
        "billingEmail": "billing@linkvids.io",
        "fiscalAddress": "Calle Mayor 1, Madrid",
        "nationalId": "12345678Z",
        "socialSecurityNumber": "281234567840",
    }
    data.update(overrides)
    return data


@pytest.fixture
def profile_id(catalogue, generator, collaborator_payload) -> str:
    return EntityService(COLLABORATORS, generator=generator).create(collaborator_payload())["id"]


class TestRules:
    def test_individual(self):
        profile = FinancialProfile.model_validate(billing())
        assert profile.profile_type == FinancialProfileType.individual
        assert profile.tax_id is None

    @pytest.mark.parametrize("profile_type, missing", [
        ("Company", "companyName"),
        ("SelfEmployed", "taxId"),
        ("Individual", "socialSecurityNumber"),
    ])
    def test_required_fields_depend_on_type(self, profile_type, missing):
        data = billing(profileType=profile_type, companyName="Studio SL", taxId="B12345678")
        data[missing] = "   "
        with pytest.raises(PydanticValidationError, match=f"{missing}: Required for {profile_type} profiles"):
            FinancialProfile.model_validate(data)

    def test_company_does_not_need_personal_ids(self):
        profile = FinancialProfile.model_validate(billing(
            profileType="Company", companyName="Studio SL", taxId="B12345678",
            nationalId=None, socialSecurityNumber=None
        ))
        assert profile.company_name == "Studio SL"

    def test_common_fields(self):
        with pytest.raises(PydanticValidationError):
            FinancialProfile.model_validate(billing(billingEmail="nope"))
        data = billing()
        del data["fiscalAddress"]
        with pytest.raises(PydanticValidationError):
            FinancialProfile.model_validate(data)


class TestService:
    def test_save_read_delete(self, profile_id):
        service = FinancialService(COLLABORATORS)
        assert service.get(profile_id) is None

        saved = service.replace(profile_id, FinancialProfile.model_validate(billing(iban="ES9121000418450200051332")))
        assert saved["profileType"] == "Individual"
        assert service.get(profile_id)["iban"] == "ES9121000418450200051332"

        service.delete(profile_id)
        assert service.get(profile_id) is None

    def test_replaced_as_a_whole(self, profile_id):
        service = FinancialService(COLLABORATORS)
        service.replace(profile_id, FinancialProfile.model_validate(billing(iban="ES91")))
        service.replace(profile_id, FinancialProfile.model_validate(billing()))
        assert service.get(profile_id)["iban"] is None

    def test_kept_out_of_the_profile_record(self, profile_id, generator):
        FinancialService(COLLABORATORS).replace(profile_id, FinancialProfile.model_validate(billing()))
        record = EntityService(COLLABORATORS, generator=generator).get(profile_id)
        assert "financialProfile" not in record
        doc = get_collection("profiles").find_one({"_id": ObjectId(profile_id)})
        assert doc["financialProfile"]["nationalId"] == "12345678Z"

    def test_other_kind_cannot_see_it(self, profile_id):
        with pytest.raises(NotFoundError):
            FinancialService(AGENCIES).get(profile_id)
        with pytest.raises(NotFoundError):
            FinancialService(AGENCIES).replace(profile_id, FinancialProfile.model_validate(billing()))


class TestApi:
    def test_roundtrip(self, client, auth_headers, profile_id):
        url = f"/api/collaborators/{profile_id}/financial"
        assert client.get(url, headers=auth_headers).json()["data"] is None

        response = client.put(url, json=billing(), headers=auth_headers)
        assert response.status_code == 200, response.text
        assert response.json()["data"]["billingContactName"] == "Ana Lopez"
        assert client.get(url, headers=auth_headers).json()["data"]["nationalId"] == "12345678Z"

        assert client.delete(url, headers=auth_headers).status_code == 200
        assert client.get(url, headers=auth_headers).json()["data"] is None

    def test_conditional_field_message(self, client, auth_headers, profile_id):
        response = client.put(
            f"/api/collaborators/{profile_id}/financial",
            json=billing(profileType="Company", companyName="Studio SL"),
            headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json() == {"message": "taxId: Required for Company profiles"}

    def test_needs_token_and_existing_profile(self, client, auth_headers, profile_id):
        assert client.get(f"/api/collaborators/{profile_id}/financial").status_code == 401
        assert client.get(f"/api/agencies/{profile_id}/financial", headers=auth_headers).status_code == 404
