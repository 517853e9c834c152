"""
Attribute Routes

GET    /attributes         - List all attributes
POST   /attributes         - Create attribute
GET    /attributes/{slug}  - Get attribute
PUT    /attributes/{slug}  - Update attribute (optional If-Match: <version>)
DELETE /attributes/{slug}  - Delete attribute (409 while a user type binds it)
"""

from fastapi import APIRouter, Depends, Header
from typing import List, Optional

from backoffice.api.deps import parse_if_match
from backoffice.core.auth import get_current_user
from backoffice.services.attribute_service import AttributeService
from backoffice.schemas.schemas import (
    AttributeCreate, AttributeUpdate, AttributeResponse, MessageResponse
)

router = APIRouter(prefix="/attributes", tags=["Attributes"])


@router.get("", response_model=List[AttributeResponse])
async def list_attributes(user: dict = Depends(get_current_user)):
    """List the attribute catalogue."""
    return AttributeService().list()


@router.post("", response_model=AttributeResponse, status_code=201)
async def create_attribute(data: AttributeCreate, user: dict = Depends(get_current_user)):
    """Register a new attribute. Slug is normalised (lowercase, spaces to '-')."""
    return AttributeService().create(data)


@router.get("/{slug}", response_model=AttributeResponse)
async def get_attribute(slug: str, user: dict = Depends(get_current_user)):
    return AttributeService().get(slug)


@router.put("/{slug}", response_model=AttributeResponse)
async def update_attribute(
    slug: str,
    data: AttributeUpdate,
    if_match: Optional[str] = Header(None),
    user: dict = Depends(get_current_user)
):
    """Update name, fieldType, options or description. The slug is immutable."""
    return AttributeService().update(slug, data, expected_version=parse_if_match(if_match))


@router.delete("/{slug}", response_model=MessageResponse)
async def delete_attribute(slug: str, user: dict = Depends(get_current_user)):
    AttributeService().delete(slug)
    return MessageResponse(message=f"Attribute '{slug}' deleted")
