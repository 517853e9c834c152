"""
Profile Routes - one router per profile collection.

POST   /collaborators                         - Create collaborator
GET    /collaborators                         - List (page, limit, search, filters)
GET    /collaborators/{id}                    - Merged profile record
GET    /collaborators/{id}/form               - Edit form descriptor, prefilled
PUT    /collaborators/{id}                    - Partial update
DELETE /collaborators/{id}                    - Delete
PUT    /collaborators/{id}/files/{slug}       - Replace an image_array value
GET    /collaborators/{id}/financial          - Billing data (null when not set)
PUT    /collaborators/{id}/financial          - Replace billing data
DELETE /collaborators/{id}/financial          - Remove billing data

The same routes exist under /agencies.

Any query parameter other than page/limit/search is a filter: core fields
match exactly, other keys filter the dynamic values ("true"/"false"/"all").
"""

from fastapi import APIRouter, Body, Depends, Query, Request
from typing import Any, Dict, Optional

from backoffice.core.auth import get_current_user
from backoffice.models.profile import ProfileKind, COLLABORATORS, AGENCIES
from backoffice.services.entity_service import EntityService
from backoffice.services.financial_service import FinancialService
from backoffice.schemas.schemas import (
    FileArrayUpdate, FinancialProfile, FinancialProfileResponse, FormDescriptor, MessageResponse,
    ProfileListResponse, ProfileWriteResponse
)

RESERVED_QUERY_PARAMS = {"page", "limit", "search"}


def build_profile_router(kind: ProfileKind) -> APIRouter:
    router = APIRouter(prefix=f"/{kind.collection}", tags=[kind.collection.title()])

    @router.post("", response_model=ProfileWriteResponse, status_code=201)
    async def create_profile(
        payload: Dict[str, Any] = Body(...),
        user: dict = Depends(get_current_user)
    ):
        """Create a profile; the body carries the discriminator and all field values."""
        record = EntityService(kind).create(payload)
        return ProfileWriteResponse(message=f"{kind.parent_type} created successfully", user=record)

    @router.get("", response_model=ProfileListResponse)
    async def list_profiles(
        request: Request,
        page: int = Query(1, ge=1),
        limit: Optional[int] = Query(None, ge=1, le=100),
        search: Optional[str] = Query(None, description="Search in names and email"),
        user: dict = Depends(get_current_user)
    ):
        filters = {
            key: value for key, value in request.query_params.items()
            if key not in RESERVED_QUERY_PARAMS
        }
        return EntityService(kind).list(filters, page=page, limit=limit, search=search)

    @router.get("/{profile_id}")
    async def get_profile(profile_id: str, user: dict = Depends(get_current_user)):
        """Core fields and dynamic values merged into one record."""
        return EntityService(kind).get(profile_id)

    @router.get("/{profile_id}/form", response_model=FormDescriptor)
    async def get_profile_form(profile_id: str, user: dict = Depends(get_current_user)):
        return EntityService(kind).form(profile_id).descriptor()

    @router.put("/{profile_id}", response_model=ProfileWriteResponse)
    async def update_profile(
        profile_id: str,
        payload: Dict[str, Any] = Body(...),
        user: dict = Depends(get_current_user)
    ):
        """Partial update. Unknown keys and discriminator changes are rejected."""
        record = EntityService(kind).update(profile_id, payload)
        return ProfileWriteResponse(message=f"{kind.parent_type} updated successfully", user=record)

    @router.put("/{profile_id}/files/{slug}", response_model=ProfileWriteResponse)
    async def set_profile_files(
        profile_id: str,
        slug: str,
        data: FileArrayUpdate,
        user: dict = Depends(get_current_user)
    ):
        """Store the {path, name} records returned by the file manager."""
        files = [item.model_dump(by_alias=True, exclude_none=True) for item in data.files]
        record = EntityService(kind).set_file_array(profile_id, slug, files)
        return ProfileWriteResponse(message="Files updated successfully", user=record)

    @router.get("/{profile_id}/financial", response_model=FinancialProfileResponse)
    async def get_financial_profile(profile_id: str, user: dict = Depends(get_current_user)):
        data = FinancialService(kind).get(profile_id)
        message = "Financial profile found" if data else "No financial profile yet"
        return FinancialProfileResponse(message=message, data=data)

    @router.put("/{profile_id}/financial", response_model=FinancialProfileResponse)
    async def update_financial_profile(
        profile_id: str,
        data: FinancialProfile,
        user: dict = Depends(get_current_user)
    ):
        """Replace the billing data; required fields depend on profileType."""
        saved = FinancialService(kind).replace(profile_id, data)
        return FinancialProfileResponse(message="Financial profile updated successfully", data=saved)

    @router.delete("/{profile_id}/financial", response_model=MessageResponse)
    async def delete_financial_profile(profile_id: str, user: dict = Depends(get_current_user)):
        FinancialService(kind).delete(profile_id)
        return MessageResponse(message="Financial data deleted")

    @router.delete("/{profile_id}", response_model=MessageResponse)
    async def delete_profile(profile_id: str, user: dict = Depends(get_current_user)):
        EntityService(kind).delete(profile_id)
        return MessageResponse(message=f"{kind.parent_type} deleted")

    return router


collaborator_router = build_profile_router(COLLABORATORS)
agency_router = build_profile_router(AGENCIES)
