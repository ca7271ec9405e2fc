"""
Authentication and Authorization Dependencies

The access gate middleware resolves the caller once per request and
stores a CallerContext on ``request.state.caller``. Endpoints receive it
explicitly through the dependencies below instead of reading any
session state themselves.

Sessions are JWT access tokens issued by the credential store, carried
in the session cookie or an ``Authorization: Bearer`` header.
"""

import enum
import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.core.config import settings
from portal.modules.shared.errors import AuthorizationDeniedError

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation; the cookie works as well
security = HTTPBearer(
    auto_error=False,
    description="Session token issued at login or activation",
)


class CallerRole(str, enum.Enum):
    """Role of an authenticated caller, derived from Admin row existence."""

    STUDENT = "student"
    ADMIN = "admin"


@dataclass
class CallerContext:
    """
    The authenticated caller of the current request.

    Attributes:
        identity_id: Credential store identity
        email: Identity email
        role: Resolved role
        student_id: Student row id (students only)
        admin_id: Admin row id (admins only)
    """

    identity_id: UUID
    email: str
    role: CallerRole
    student_id: int | None = None
    admin_id: UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is CallerRole.ADMIN

    def __str__(self) -> str:
        return f"CallerContext(identity={self.identity_id}, role={self.role.value})"


def extract_session_token(request: Request) -> str | None:
    """Read the session token from the Authorization header or the cookie."""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name)


async def get_optional_caller(
    request: Request,
    _credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CallerContext | None:
    """The caller resolved by the access gate, or None for anonymous requests."""
    return getattr(request.state, "caller", None)


async def get_caller(
    caller: CallerContext | None = Depends(get_optional_caller),
) -> CallerContext:
    """
    Require an authenticated caller.

    Raises:
        HTTPException 401: No valid session
    """
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "AUTHENTICATION_REQUIRED",
                "message": "Debes iniciar sesión para continuar.",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller


def _denied(error: AuthorizationDeniedError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.error_code.value, "message": error.message},
    )


async def require_student(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    """
    Require a student caller.

    Raises:
        HTTPException 403 from AuthorizationDeniedError: Caller is not a student
    """
    if caller.role is not CallerRole.STUDENT or caller.student_id is None:
        logger.warning(f"Access denied: {caller} attempted a student-only endpoint")
        raise _denied(AuthorizationDeniedError("Esta sección es exclusiva para estudiantes."))
    return caller


async def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    """
    Require an admin caller.

    Usage:
        @router.post("/admin/endpoint")
        async def admin_endpoint(admin: CallerContext = Depends(require_admin)):
            ...

    Raises:
        HTTPException 403 from AuthorizationDeniedError: Caller is not an admin
    """
    if caller.role is not CallerRole.ADMIN:
        logger.warning(f"Access denied: {caller} attempted an admin-only endpoint")
        raise _denied(AuthorizationDeniedError("No tienes permisos de administrador."))
    return caller


__all__ = [
    "CallerContext",
    "CallerRole",
    "extract_session_token",
    "get_caller",
    "get_optional_caller",
    "require_admin",
    "require_student",
]
