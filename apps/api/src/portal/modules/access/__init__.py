"""
Access Control Gate

Classifies every request under the API prefix as anonymous, student or
admin and enforces the static route-partition policy. The role is
resolved fresh on every request; nothing is cached.
"""

from portal.modules.access.middleware import AccessGateMiddleware
from portal.modules.access.policy import (
    ADMIN_HOME,
    LOGIN_PATH,
    STUDENT_HOME,
    UNAUTHORIZED_PATH,
    AccessDecision,
    RouteClass,
    classify_route,
    evaluate_access,
    home_for,
)
from portal.modules.access.resolver import resolve_caller

__all__ = [
    "ADMIN_HOME",
    "LOGIN_PATH",
    "STUDENT_HOME",
    "UNAUTHORIZED_PATH",
    "AccessDecision",
    "AccessGateMiddleware",
    "RouteClass",
    "classify_route",
    "evaluate_access",
    "home_for",
    "resolve_caller",
]
