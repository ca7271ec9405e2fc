"""
Account Activation Schemas
"""

from pydantic import BaseModel, Field

from portal.modules.shared import ActionResult


class TokenSummary(BaseModel):
    """What an anonymous visitor may see about the token's student."""

    full_name: str
    personal_email: str


class TokenValidation(BaseModel):
    """Result of validating an activation token."""

    valid: bool
    message: str | None = None
    error: str | None = None
    student: TokenSummary | None = None


class ActivationRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class ActivationResult(ActionResult):
    """
    Outcome of an activation.

    ``requires_sign_in`` is set when the account was created and linked
    but the session could not be opened; the token is already consumed
    and the student must log in.
    """

    redirect_to: str | None = None
    requires_sign_in: bool = False
