"""
Route-partition policy.

Pure functions: given the caller's role (None for anonymous) and a route
path relative to the API prefix, decide whether to allow the request or
where to send the caller instead. Rules are evaluated top to bottom and
the first match wins:

    any       public route              -> allow
    anonymous anything else             -> login
    admin     admin area                -> allow
    admin     anything else             -> admin home
    student   admin area                -> student home
    student   student area              -> allow
    student   public landing (/auth...) -> student home
    student   anything else             -> allow
"""

import enum
from dataclasses import dataclass

from portal.core.auth import CallerRole

LOGIN_PATH = "/login"
ADMIN_HOME = "/admin/dashboard"
STUDENT_HOME = "/dashboard"
UNAUTHORIZED_PATH = "/unauthorized"

PUBLIC_PREFIXES: tuple[str, ...] = ("/activar", "/auth/callback", LOGIN_PATH, UNAUTHORIZED_PATH)
ADMIN_PREFIX = "/admin"
STUDENT_PREFIX = "/dashboard"
LANDING_PREFIXES: tuple[str, ...] = (LOGIN_PATH, "/auth")


class RouteClass(str, enum.Enum):
    """Partition a route belongs to."""

    PUBLIC = "public"
    ADMIN_AREA = "admin_area"
    STUDENT_AREA = "student_area"
    PUBLIC_LANDING = "public_landing"
    OTHER = "other"


@dataclass(frozen=True)
class AccessDecision:
    """Allow the request, or redirect the caller to ``redirect_to``."""

    allowed: bool
    redirect_to: str | None = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def redirect(cls, path: str) -> "AccessDecision":
        return cls(allowed=False, redirect_to=path)


def _normalize(path: str) -> str:
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _has_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def classify_route(path: str) -> RouteClass:
    """Classify a route path (relative to the API prefix)."""
    path = _normalize(path)

    if path == "/" or any(_has_prefix(path, prefix) for prefix in PUBLIC_PREFIXES):
        return RouteClass.PUBLIC
    if _has_prefix(path, ADMIN_PREFIX):
        return RouteClass.ADMIN_AREA
    if _has_prefix(path, STUDENT_PREFIX):
        return RouteClass.STUDENT_AREA
    if any(_has_prefix(path, prefix) for prefix in LANDING_PREFIXES):
        return RouteClass.PUBLIC_LANDING
    return RouteClass.OTHER


def home_for(role: CallerRole) -> str:
    """Landing route for a role."""
    return ADMIN_HOME if role is CallerRole.ADMIN else STUDENT_HOME


def evaluate_access(role: CallerRole | None, path: str) -> AccessDecision:
    """
    Apply the route-partition policy.

    Args:
        role: Caller role, or None when the caller is anonymous
        path: Route path relative to the API prefix

    Returns:
        The access decision
    """
    route_class = classify_route(path)

    if route_class is RouteClass.PUBLIC:
        return AccessDecision.allow()

    if role is None:
        return AccessDecision.redirect(LOGIN_PATH)

    if role is CallerRole.ADMIN:
        if route_class is RouteClass.ADMIN_AREA:
            return AccessDecision.allow()
        # Deny by default: student area, landing and unknown routes
        return AccessDecision.redirect(ADMIN_HOME)

    if route_class is RouteClass.ADMIN_AREA:
        return AccessDecision.redirect(STUDENT_HOME)
    if route_class is RouteClass.PUBLIC_LANDING:
        return AccessDecision.redirect(STUDENT_HOME)

    # Student area and unrecognized routes stay open to students
    return AccessDecision.allow()
