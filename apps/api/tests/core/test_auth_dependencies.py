"""
Tests for the role dependencies in portal.core.auth.
"""

import pytest
from fastapi import HTTPException

from portal.core.auth import get_caller, require_admin, require_student
from portal.modules.shared import AuthorizationDeniedError, ErrorCode


@pytest.mark.asyncio
async def test_require_admin_rejects_student(student_caller):
    with pytest.raises(HTTPException) as exc_info:
        await require_admin(student_caller)

    assert exc_info.value.status_code == AuthorizationDeniedError().status_code == 403
    assert exc_info.value.detail["error"] == ErrorCode.AUTHORIZATION_DENIED.value
    assert exc_info.value.detail["message"] == "No tienes permisos de administrador."


@pytest.mark.asyncio
async def test_require_student_rejects_admin(admin_caller):
    with pytest.raises(HTTPException) as exc_info:
        await require_student(admin_caller)

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == {
        "error": "AUTHORIZATION_DENIED",
        "message": "Esta sección es exclusiva para estudiantes.",
    }


@pytest.mark.asyncio
async def test_require_student_rejects_unlinked_student(student_caller):
    student_caller.student_id = None

    with pytest.raises(HTTPException) as exc_info:
        await require_student(student_caller)

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_roles_pass_through(admin_caller, student_caller):
    assert await require_admin(admin_caller) is admin_caller
    assert await require_student(student_caller) is student_caller


@pytest.mark.asyncio
async def test_get_caller_requires_session():
    with pytest.raises(HTTPException) as exc_info:
        await get_caller(None)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail["error"] == "AUTHENTICATION_REQUIRED"
