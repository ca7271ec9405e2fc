"""
Volunteer Hours Schemas
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.modules.shared import ActionResult
from portal.modules.volunteer_hours.models import HourRequestStatus


class HourRequestSubmission(BaseModel):
    """Fields of a new hour-credit request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    activity_date: date
    activity_name: str = Field(..., min_length=1, max_length=300)
    requested_hours: int = Field(..., ge=1, le=1000)
    supervisor: str | None = Field(None, max_length=200)

    @field_validator("supervisor", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class HourRequestResponse(BaseModel):
    """A request as shown to its student."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    activity_date: date
    activity_name: str
    requested_hours: int
    supervisor: str
    attachment_url: str | None
    status: HourRequestStatus
    approved_hours: float | None = None
    reviewer_notes: str | None = None
    rejection_reason: str | None = None
    created_at: datetime


class SubmitRequestResult(ActionResult):
    request: HourRequestResponse | None = None


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    activity_date: date
    activity_name: str
    hours: float
    supervisor: str
    status: str


class StudentHoursResponse(BaseModel):
    """A student's credited hours and own requests."""

    total_hours: float
    ledger: list[LedgerEntryResponse]
    requests: list[HourRequestResponse]


class PendingRequestItem(BaseModel):
    """Pending request in the admin dashboard."""

    id: UUID
    student_id: int
    student_name: str | None
    scholar_internal_id: str | None
    activity_date: date
    activity_name: str
    requested_hours: int
    supervisor: str
    attachment_url: str | None
    created_at: datetime


class AdminDashboardResponse(BaseModel):
    pending_requests: list[PendingRequestItem]
    total_pending: int


class ApproveRequest(BaseModel):
    """Approval input. ``hours`` overrides the requested hour count."""

    hours: float | None = None
    notes: str | None = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)
