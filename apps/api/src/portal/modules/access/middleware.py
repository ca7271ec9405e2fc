"""
Access gate middleware.

Runs for every request under the API prefix: resolves the caller, stores
it on ``request.state.caller`` and applies the route policy. Routes
outside the prefix (health checks, docs) are not gated.
"""

import logging

from fastapi import status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request

from portal.core.auth import CallerContext, extract_session_token
from portal.core.config import settings
from portal.core.database import async_session_maker
from portal.modules.access.policy import AccessDecision, evaluate_access
from portal.modules.access.resolver import resolve_caller
from portal.modules.credentials import CredentialStore, get_credential_store

logger = logging.getLogger(__name__)


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def build_denied_response(
    request: Request,
    decision: AccessDecision,
    caller: CallerContext | None,
) -> Response:
    """
    Browser navigations get a 303 redirect to the frontend page; API
    clients get a JSON error naming where to go.
    """
    if _wants_html(request):
        return RedirectResponse(
            url=f"{settings.frontend_url}{decision.redirect_to}",
            status_code=status.HTTP_303_SEE_OTHER,
        )

    status_code = status.HTTP_401_UNAUTHORIZED if caller is None else status.HTTP_403_FORBIDDEN
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": {
                "error": "ACCESS_REDIRECT",
                "message": "No tienes acceso a esta sección.",
                "redirect_to": decision.redirect_to,
            }
        },
    )


class AccessGateMiddleware(BaseHTTPMiddleware):
    """Enforce the route-partition policy on every API request."""

    def __init__(
        self,
        app,
        prefix: str | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        credential_store: CredentialStore | None = None,
    ):
        super().__init__(app)
        self.prefix = (prefix if prefix is not None else settings.api_prefix).rstrip("/")
        self.session_factory = session_factory or async_session_maker
        self.credential_store = credential_store

    def _route_path(self, path: str) -> str | None:
        if not self.prefix:
            return path
        if path == self.prefix or path.startswith(self.prefix + "/"):
            return path[len(self.prefix) :] or "/"
        return None

    async def _resolve(self, request: Request) -> CallerContext | None:
        token = extract_session_token(request)
        if not token:
            return None
        store = self.credential_store or get_credential_store()
        async with self.session_factory() as db:
            return await resolve_caller(db, store, token)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        route_path = self._route_path(request.url.path)
        if route_path is None or request.method == "OPTIONS":
            return await call_next(request)

        caller = await self._resolve(request)
        request.state.caller = caller

        decision = evaluate_access(caller.role if caller else None, route_path)
        if decision.allowed:
            return await call_next(request)

        logger.info(
            f"Access gate redirect: {request.method} {route_path} "
            f"role={caller.role.value if caller else 'anonymous'} -> {decision.redirect_to}"
        )
        return build_denied_response(request, decision, caller)
