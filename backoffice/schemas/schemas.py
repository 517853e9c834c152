"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
JSON keys are camelCase (fieldType, attributeSlug, ...) to match the admin
frontend; Python attributes stay snake_case through the alias generator.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from typing import Optional, List, Any, Dict, Union
from datetime import datetime
from enum import Enum

from backoffice.services.field_types import FieldType
from backoffice.utils.options import parse_options_text


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# ENUMS
# ============================================================

class ParentType(str, Enum):
    collaborator = "Collaborator"
    agency = "Agency"


class FormMode(str, Enum):
    create = "create"
    edit = "edit"


class JobStatus(str, Enum):
    draft = "Draft"
    open = "Open"
    assigned = "Assigned"
    completed = "Completed"
    cancelled = "Cancelled"


class NewsStatus(str, Enum):
    draft = "Draft"
    published = "Published"


OptionsInput = Union[List[Any], str, None]


def _options_from_text(value: Any) -> Any:
    if isinstance(value, str):
        return parse_options_text(value)
    return value


# ============================================================
# ATTRIBUTE SCHEMAS
# ============================================================

class AttributeCreate(CamelModel):
    slug: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    field_type: FieldType
    default_options: OptionsInput = None
    description: Optional[str] = None

    @field_validator("default_options", mode="before")
    @classmethod
    def options_from_text(cls, value: Any) -> Any:
        return _options_from_text(value)


class AttributeUpdate(CamelModel):
    slug: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    field_type: Optional[FieldType] = None
    default_options: OptionsInput = None
    description: Optional[str] = None

    @field_validator("default_options", mode="before")
    @classmethod
    def options_from_text(cls, value: Any) -> Any:
        return _options_from_text(value)


class AttributeResponse(CamelModel):
    slug: str
    name: str
    field_type: FieldType
    default_options: List[Any] = []
    description: Optional[str] = None
    version: int = 1


# ============================================================
# USER TYPE SCHEMAS
# ============================================================

class FieldBindingIn(CamelModel):
    attribute_slug: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    required: bool = False
    section: Optional[str] = None


class UserTypeCreate(CamelModel):
    slug: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    parent_type: ParentType
    fields: List[FieldBindingIn]


class UserTypeUpdate(CamelModel):
    slug: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    parent_type: Optional[ParentType] = None
    fields: Optional[List[FieldBindingIn]] = None


class FieldBindingResponse(CamelModel):
    attribute_slug: str
    label: str
    required: bool = False
    section: Optional[str] = None
    attribute: Optional[AttributeResponse] = None


class UserTypeResponse(CamelModel):
    slug: str
    name: str
    parent_type: ParentType
    fields: List[FieldBindingResponse]
    version: int = 1


# ============================================================
# FORM DESCRIPTOR SCHEMAS
# ============================================================

class OptionItem(BaseModel):
    value: Any
    label: str


class FieldDescriptor(CamelModel):
    slug: str
    label: str
    field_type: FieldType
    widget: str
    required: bool
    editable: bool = True
    options: Optional[List[OptionItem]] = None
    description: Optional[str] = None


class FormSection(CamelModel):
    name: str
    fields: List[FieldDescriptor]


class FormDescriptor(CamelModel):
    user_type: str
    parent_type: ParentType
    mode: FormMode
    sections: List[FormSection]
    rules: Dict[str, Dict[str, Any]]
    initial_values: Dict[str, Any]


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class FileRef(CamelModel):
    path: str = Field(..., min_length=1)
    name: str
    uploaded_at: Optional[datetime] = None


class FileArrayUpdate(CamelModel):
    files: List[FileRef]


class PageMetadata(BaseModel):
    total: int
    page: int
    limit: int


class ProfileListResponse(BaseModel):
    data: List[Dict[str, Any]]
    metadata: PageMetadata


class ProfileWriteResponse(BaseModel):
    message: str
    user: Dict[str, Any]


# ============================================================
# FINANCIAL PROFILE SCHEMAS
# ============================================================

class FinancialProfileType(str, Enum):
    company = "Company"
    self_employed = "SelfEmployed"
    individual = "Individual"


# Extra required fields per profile type, on top of the common billing data
FINANCIAL_REQUIRED_FIELDS = {
    FinancialProfileType.company: ("company_name", "tax_id"),
    FinancialProfileType.self_employed: ("tax_id",),
    FinancialProfileType.individual: ("national_id", "social_security_number"),
}


class FinancialProfile(CamelModel):
    """
    Billing data attached to a profile.

    Which identity fields are required depends on profileType: a company
    needs its name and tax id, a self-employed person a tax id, an
    individual a national id and social security number.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    profile_type: FinancialProfileType = FinancialProfileType.individual

    billing_contact_name: str = Field(..., min_length=1)
    billing_email: EmailStr
    billing_phone: Optional[str] = None
    fiscal_address: str = Field(..., min_length=1)

    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    vat_number: Optional[str] = None

    national_id: Optional[str] = None
    social_security_number: Optional[str] = None

    bank_account_holder: Optional[str] = None
    iban: Optional[str] = None
    swift_bic: Optional[str] = None

    @model_validator(mode="after")
    def check_required_for_type(self):
        for name in FINANCIAL_REQUIRED_FIELDS[self.profile_type]:
            if not getattr(self, name):
                raise PydanticCustomError(
                    "financial_field",
                    "{field}: Required for {profile_type} profiles",
                    {"field": to_camel(name), "profile_type": self.profile_type.value},
                )
        return self


class FinancialProfileResponse(BaseModel):
    message: str
    data: Optional[FinancialProfile] = None



# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(CamelModel):
    project_name: str = Field(..., min_length=1, max_length=200)
    project_description: Optional[str] = None
    deliverables: Optional[str] = None
    project_start_date: Optional[datetime] = None
    project_end_date: Optional[datetime] = None
    shooting_dates: List[datetime] = []
    project_language: Optional[str] = None
    target_role: str = Field(..., min_length=1)
    rate: float = Field(..., ge=0)
    image_rights_duration: Optional[str] = None
    status: JobStatus = JobStatus.open


class JobUpdate(CamelModel):
    project_name: Optional[str] = Field(None, min_length=1, max_length=200)
    project_description: Optional[str] = None
    deliverables: Optional[str] = None
    project_start_date: Optional[datetime] = None
    project_end_date: Optional[datetime] = None
    shooting_dates: Optional[List[datetime]] = None
    project_language: Optional[str] = None
    target_role: Optional[str] = None
    rate: Optional[float] = Field(None, ge=0)
    image_rights_duration: Optional[str] = None
    status: Optional[JobStatus] = None


class JobResponse(CamelModel):
    id: str
    project_name: str
    project_description: Optional[str] = None
    deliverables: Optional[str] = None
    project_start_date: Optional[datetime] = None
    project_end_date: Optional[datetime] = None
    shooting_dates: List[datetime] = []
    project_language: Optional[str] = None
    target_role: str
    rate: float
    image_rights_duration: Optional[str] = None
    status: JobStatus
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# NEWS SCHEMAS
# ============================================================

class NewsCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    excerpt: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    image: Optional[str] = None
    status: NewsStatus = NewsStatus.draft
    link_url: str = ""


class NewsUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    excerpt: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    status: Optional[NewsStatus] = None
    link_url: Optional[str] = None


class NewsResponse(CamelModel):
    id: str
    title: str
    excerpt: str
    content: str
    image: Optional[str] = None
    status: NewsStatus
    link_url: str = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    message: str
