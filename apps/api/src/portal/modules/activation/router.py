"""
Account Activation Router

Public endpoints (the caller has no account yet):
- GET /activar?token=... - Validate an activation token
- POST /activar - Activate the account

Both are rate limited per client address to slow down token guessing.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.database import get_db
from portal.core.rate_limit import client_ip, enforce_rate_limit
from portal.modules.activation import service
from portal.modules.activation.schemas import (
    ActivationRequest,
    ActivationResult,
    TokenValidation,
)
from portal.modules.credentials import CredentialStore, get_credential_store
from portal.modules.shared import action_response

logger = logging.getLogger(__name__)

router = APIRouter()


def set_session_cookie(response: JSONResponse, access_token: str) -> None:
    """Attach the session token as an HTTP-only cookie."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.get("", response_model=TokenValidation, summary="Validate Activation Token")
async def validate_activation_token(
    request: Request,
    token: str = Query(..., min_length=1, max_length=64),
    db: AsyncSession = Depends(get_db),
) -> TokenValidation:
    """
    Check an activation token and return the student's name and email
    for the activation form.
    """
    await enforce_rate_limit(
        f"activation:{client_ip(request)}",
        settings.rate_limit_activation,
        settings.rate_limit_window_seconds,
    )
    return await service.validate_token(db, token)


@router.post(
    "",
    response_model=ActivationResult,
    summary="Activate Account",
    description="""
Create the student's login with the activation token and open a session.

The token is consumed exactly once. On success the session cookie is set
and `redirect_to` names the caller's home. If the account was created but
the session could not be opened, `requires_sign_in` is true and
`redirect_to` is the login page.
""",
)
async def activate_account(
    request: Request,
    payload: ActivationRequest,
    db: AsyncSession = Depends(get_db),
    credential_store: CredentialStore = Depends(get_credential_store),
) -> JSONResponse:
    await enforce_rate_limit(
        f"activation:{client_ip(request)}",
        settings.rate_limit_activation,
        settings.rate_limit_window_seconds,
    )

    outcome = await service.activate_account(
        db,
        payload.token,
        payload.email,
        payload.password,
        credential_store,
    )

    response = action_response(outcome.result)
    if outcome.session is not None:
        set_session_cookie(response, outcome.session.access_token)
    return response
