"""
Shared building blocks for portal modules.
"""

from portal.modules.shared.errors import (
    AlreadyProcessedError,
    AlreadyUsedError,
    AuthorizationDeniedError,
    ErrorCode,
    IncompleteRecordError,
    MissingStudentDataError,
    NotFoundError,
    PartialFailureError,
    PortalServiceError,
    UpstreamUnavailableError,
    ValidationFailedError,
)
from portal.modules.shared.models import BaseModel
from portal.modules.shared.results import ActionResult, action_response

__all__ = [
    "ActionResult",
    "AlreadyProcessedError",
    "AlreadyUsedError",
    "AuthorizationDeniedError",
    "BaseModel",
    "ErrorCode",
    "IncompleteRecordError",
    "MissingStudentDataError",
    "NotFoundError",
    "PartialFailureError",
    "PortalServiceError",
    "UpstreamUnavailableError",
    "ValidationFailedError",
    "action_response",
]
