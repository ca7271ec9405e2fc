"""
Auth Router
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.database import get_db
from portal.core.rate_limit import client_ip, enforce_rate_limit
from portal.modules.access.policy import LOGIN_PATH
from portal.modules.activation.router import set_session_cookie
from portal.modules.auth import service
from portal.modules.auth.schemas import LoginRequest, LoginResult
from portal.modules.credentials import CredentialStore, get_credential_store
from portal.modules.shared import ActionResult, action_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=LoginResult, summary="Login")
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    credential_store: CredentialStore = Depends(get_credential_store),
) -> JSONResponse:
    """
    Sign in with email and password.

    Sets the session cookie and returns the token for API clients.
    Rate limited per client address.
    """
    await enforce_rate_limit(
        f"login:{client_ip(request)}",
        settings.rate_limit_login,
        settings.rate_limit_window_seconds,
    )

    outcome = await service.login(db, credential_store, payload.email, payload.password)

    response = action_response(outcome.result)
    if outcome.session is not None:
        set_session_cookie(response, outcome.session.access_token)
    return response


@router.delete("", response_model=ActionResult, summary="Logout")
async def logout() -> JSONResponse:
    """Clear the session cookie. Access tokens are stateless and simply expire."""
    response = action_response(ActionResult.ok("Sesión cerrada."), redirect_to=LOGIN_PATH)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response
