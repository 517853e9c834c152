"""
User Type Routes

GET    /user-types              - List user types (public, bindings enriched)
POST   /user-types              - Create user type
GET    /user-types/{slug}       - Get user type (bindings enriched)
GET    /user-types/{slug}/form  - Form descriptor for a blank profile
PUT    /user-types/{slug}       - Update user type (optional If-Match: <version>)
DELETE /user-types/{slug}       - Delete user type (409 while profiles use it)
"""

from fastapi import APIRouter, Depends, Header, Query
from typing import List, Optional

from backoffice.api.deps import parse_if_match
from backoffice.core.auth import get_current_user
from backoffice.services.form_generator import FormGenerator
from backoffice.services.user_type_service import UserTypeService
from backoffice.schemas.schemas import (
    UserTypeCreate, UserTypeUpdate, UserTypeResponse, FormDescriptor, FormMode,
    ParentType, MessageResponse
)

router = APIRouter(prefix="/user-types", tags=["User Types"])


@router.get("", response_model=List[UserTypeResponse])
async def list_user_types(parent_type: Optional[ParentType] = Query(None, alias="parentType")):
    """List user types. Public: registration pages need the type list."""
    return UserTypeService().list(parent_type.value if parent_type else None)


@router.post("", response_model=UserTypeResponse, status_code=201)
async def create_user_type(data: UserTypeCreate, user: dict = Depends(get_current_user)):
    """Compose a user type from existing attributes."""
    return UserTypeService().create(data)


@router.get("/{slug}", response_model=UserTypeResponse)
async def get_user_type(slug: str, user: dict = Depends(get_current_user)):
    return UserTypeService().get(slug)


@router.get("/{slug}/form", response_model=FormDescriptor)
async def get_user_type_form(
    slug: str,
    mode: FormMode = Query(FormMode.create),
    user: dict = Depends(get_current_user)
):
    """
    Render descriptors, client-side rules and initial values.

    Edit forms of a specific profile come from GET /{collection}/{id}/form.
    """
    user_type, attributes = UserTypeService().load_schema(slug)
    return FormGenerator().generate(user_type, attributes, mode).descriptor()


@router.put("/{slug}", response_model=UserTypeResponse)
async def update_user_type(
    slug: str,
    data: UserTypeUpdate,
    if_match: Optional[str] = Header(None),
    user: dict = Depends(get_current_user)
):
    return UserTypeService().update(slug, data, expected_version=parse_if_match(if_match))


@router.delete("/{slug}", response_model=MessageResponse)
async def delete_user_type(slug: str, user: dict = Depends(get_current_user)):
    UserTypeService().delete(slug)
    return MessageResponse(message=f"User type '{slug}' deleted")
