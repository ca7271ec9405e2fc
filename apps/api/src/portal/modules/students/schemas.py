"""
Students Schemas
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from portal.modules.shared import ActionResult
from portal.modules.students.models import DocumentStatus, YesNo

WHATSAPP_PATTERN = r"^[0-9\-+() ]{8,15}$"


class ProfileWizardRequest(BaseModel):
    """Fields collected by the multi-step profile wizard."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # Personal
    birth_date: date
    call_phone: str = Field(..., min_length=8, max_length=20)
    whatsapp_phone: str | None = Field(None, pattern=WHATSAPP_PATTERN)

    # Academic
    university_scholar_id: str = Field(..., min_length=1, max_length=100)
    institutional_email: EmailStr

    # Residence
    department: str = Field(..., min_length=1, max_length=100)
    municipality: str = Field(..., min_length=1, max_length=100)
    district: str = Field(..., min_length=1, max_length=100)

    # Additional
    has_disability: bool
    disability_detail: str | None = Field(None, max_length=1000)
    council_member: YesNo
    elite_scholar: YesNo

    # Emergency contact
    emergency_contact_name: str = Field(..., min_length=3, max_length=200)
    emergency_phone: str = Field(..., min_length=8, max_length=20)
    emergency_relationship: str = Field(..., min_length=1, max_length=100)

    @field_validator("whatsapp_phone", "disability_detail", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def drop_detail_without_disability(self) -> "ProfileWizardRequest":
        if not self.has_disability:
            self.disability_detail = None
        return self


class ProfileResponse(BaseModel):
    """Current wizard values (all optional until the wizard is completed)."""

    model_config = ConfigDict(from_attributes=True)

    birth_date: date | None = None
    call_phone: str | None = None
    whatsapp_phone: str | None = None
    university_scholar_id: str | None = None
    institutional_email: str | None = None
    department: str | None = None
    municipality: str | None = None
    district: str | None = None
    has_disability: bool | None = None
    disability_detail: str | None = None
    council_member: str | None = None
    elite_scholar: str | None = None
    emergency_contact_name: str | None = None
    emergency_phone: str | None = None
    emergency_relationship: str | None = None
    profile_completed: bool = False


class DocumentLinks(BaseModel):
    """Usable document links; a link is None until its document is ready."""

    record_url: str | None = None
    record_status: DocumentStatus = DocumentStatus.NOT_GENERATED
    card_url: str | None = None
    card_status: DocumentStatus = DocumentStatus.NOT_GENERATED


class ProfileCompletionResult(ActionResult):
    """Result of saving the profile wizard."""

    documents: DocumentLinks | None = None


class StudentDashboardResponse(BaseModel):
    """Student home."""

    id: int
    full_name: str | None
    scholar_internal_id: str | None
    personal_email: str | None
    university: str | None
    career: str | None
    profile_completed: bool
    documents: DocumentLinks
    total_hours: float


class StudentListItem(BaseModel):
    """Student row in the admin list."""

    id: int
    scholar_internal_id: str | None
    full_name: str | None
    university: str | None
    personal_email: str | None
    onboarding_completed: bool
    has_account: bool
    profile_completed: bool
    documents: DocumentLinks


class StudentListResponse(BaseModel):
    """Paginated admin student list."""

    items: list[StudentListItem]
    total: int
    page: int
    page_size: int
    total_pages: int
