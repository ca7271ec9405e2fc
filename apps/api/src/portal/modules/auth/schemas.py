"""
Auth Schemas
"""

from pydantic import BaseModel, Field

from portal.modules.shared import ActionResult


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class LoginResult(ActionResult):
    """Login outcome; ``redirect_to`` is the caller's home on success."""

    redirect_to: str | None = None
    access_token: str | None = None
    token_type: str = "bearer"
