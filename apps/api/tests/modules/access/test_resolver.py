"""
Tests for caller resolution.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from portal.core.auth import CallerRole
from portal.modules.access.resolver import resolve_caller
from portal.modules.credentials import CredentialStoreError


@pytest.fixture
def identity():
    identity = MagicMock()
    identity.id = uuid4()
    identity.email = "persona@correo.test"
    return identity


@pytest.fixture
def credential_store(identity):
    store = MagicMock()
    store.get_identity = AsyncMock(return_value=identity)
    return store


def _db_error():
    return OperationalError("SELECT", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_no_token_is_anonymous(mock_db, credential_store):
    assert await resolve_caller(mock_db, credential_store, None) is None
    credential_store.get_identity.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_session_is_anonymous(mock_db, credential_store):
    credential_store.get_identity = AsyncMock(return_value=None)

    assert await resolve_caller(mock_db, credential_store, "token") is None


@pytest.mark.asyncio
async def test_credential_store_failure_is_anonymous(mock_db, credential_store):
    credential_store.get_identity = AsyncMock(side_effect=CredentialStoreError("down"))

    assert await resolve_caller(mock_db, credential_store, "token") is None


@pytest.mark.asyncio
async def test_admin_row_makes_admin(mock_db, credential_store, identity):
    admin = MagicMock()
    admin.id = uuid4()

    with (
        patch("portal.modules.access.resolver.AdminRepository") as mock_admins,
        patch("portal.modules.access.resolver.student_repository") as mock_students,
    ):
        mock_admins.get_by_credential_id = AsyncMock(return_value=admin)
        mock_students.get_by_credential_id = AsyncMock()

        caller = await resolve_caller(mock_db, credential_store, "token")

        assert caller.role is CallerRole.ADMIN
        assert caller.identity_id == identity.id
        assert caller.admin_id == admin.id
        mock_students.get_by_credential_id.assert_not_called()


@pytest.mark.asyncio
async def test_student_row_makes_student(mock_db, credential_store, identity):
    student = MagicMock()
    student.id = 7

    with (
        patch("portal.modules.access.resolver.AdminRepository") as mock_admins,
        patch("portal.modules.access.resolver.student_repository") as mock_students,
    ):
        mock_admins.get_by_credential_id = AsyncMock(return_value=None)
        mock_students.get_by_credential_id = AsyncMock(return_value=student)

        caller = await resolve_caller(mock_db, credential_store, "token")

        assert caller.role is CallerRole.STUDENT
        assert caller.student_id == 7


@pytest.mark.asyncio
async def test_admin_lookup_error_treated_as_non_admin(mock_db, credential_store):
    student = MagicMock()
    student.id = 7

    with (
        patch("portal.modules.access.resolver.AdminRepository") as mock_admins,
        patch("portal.modules.access.resolver.student_repository") as mock_students,
    ):
        mock_admins.get_by_credential_id = AsyncMock(side_effect=_db_error())
        mock_students.get_by_credential_id = AsyncMock(return_value=student)

        caller = await resolve_caller(mock_db, credential_store, "token")

        assert caller.role is CallerRole.STUDENT
        mock_db.rollback.assert_awaited()


@pytest.mark.asyncio
async def test_student_lookup_error_treated_as_anonymous(mock_db, credential_store):
    with (
        patch("portal.modules.access.resolver.AdminRepository") as mock_admins,
        patch("portal.modules.access.resolver.student_repository") as mock_students,
    ):
        mock_admins.get_by_credential_id = AsyncMock(return_value=None)
        mock_students.get_by_credential_id = AsyncMock(side_effect=_db_error())

        assert await resolve_caller(mock_db, credential_store, "token") is None


@pytest.mark.asyncio
async def test_identity_without_rows_is_anonymous(mock_db, credential_store):
    with (
        patch("portal.modules.access.resolver.AdminRepository") as mock_admins,
        patch("portal.modules.access.resolver.student_repository") as mock_students,
    ):
        mock_admins.get_by_credential_id = AsyncMock(return_value=None)
        mock_students.get_by_credential_id = AsyncMock(return_value=None)

        assert await resolve_caller(mock_db, credential_store, "token") is None
