"""
Uniform result of every mutating operation: ``{success, message}``.
"""

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from portal.modules.shared.errors import ErrorCode, PortalServiceError

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_PROCESSED: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_USED: status.HTTP_409_CONFLICT,
    ErrorCode.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.AUTHORIZATION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.PARTIAL_FAILURE: status.HTTP_207_MULTI_STATUS,
    ErrorCode.UPSTREAM_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ActionResult(BaseModel):
    """Outcome of a mutating operation."""

    success: bool
    message: str
    error: ErrorCode | None = None

    @classmethod
    def ok(cls, message: str) -> "ActionResult":
        return cls(success=True, message=message)

    @classmethod
    def failure(cls, error: PortalServiceError) -> "ActionResult":
        return cls(success=False, message=error.message, error=error.error_code)

    @property
    def is_partial(self) -> bool:
        return self.error == ErrorCode.PARTIAL_FAILURE

    @property
    def status_code(self) -> int:
        if self.error is None:
            return status.HTTP_200_OK
        return _STATUS_BY_CODE[self.error]


def action_response(result: ActionResult, **extra) -> JSONResponse:
    """Serialize an ActionResult with the HTTP status matching its error."""
    body = result.model_dump(mode="json")
    body.update(extra)
    return JSONResponse(status_code=result.status_code, content=body)
