"""
Tests for the credential store with a stubbed session factory.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from jose import jwt
from sqlalchemy.exc import IntegrityError, OperationalError

from portal.core.config import settings
from portal.core.security import create_access_token, hash_password
from portal.modules.credentials import (
    CredentialStore,
    CredentialStoreError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)

REPOSITORY = "portal.modules.credentials.service.IdentityRepository"


@pytest.fixture
def store(mock_db):
    @asynccontextmanager
    async def session_factory():
        yield mock_db

    return CredentialStore(session_factory=session_factory)


def _identity(email="jane@example.com", password="LongEnough1"):
    identity = MagicMock()
    identity.id = uuid4()
    identity.email = email
    identity.password_hash = hash_password(password)
    return identity


@pytest.mark.asyncio
async def test_create_identity_normalizes_email(store, mock_db):
    identity = _identity()
    with patch(REPOSITORY) as repo:
        repo.get_by_email = AsyncMock(return_value=None)
        repo.create = AsyncMock(return_value=identity)

        created = await store.create_identity("  Jane@Example.COM ", "LongEnough1")

    assert created is identity
    assert repo.create.await_args.kwargs["email"] == "jane@example.com"
    assert repo.create.await_args.kwargs["password_hash"] != "LongEnough1"
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_identity_rejects_taken_email(store):
    with patch(REPOSITORY) as repo:
        repo.get_by_email = AsyncMock(return_value=_identity())
        repo.create = AsyncMock()

        with pytest.raises(EmailAlreadyRegisteredError):
            await store.create_identity("jane@example.com", "LongEnough1")

    repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_create_identity_unique_violation_is_taken_email(store):
    with patch(REPOSITORY) as repo:
        repo.get_by_email = AsyncMock(return_value=None)
        repo.create = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("dup")))

        with pytest.raises(EmailAlreadyRegisteredError):
            await store.create_identity("jane@example.com", "LongEnough1")


@pytest.mark.asyncio
async def test_delete_identity_failure_raises_store_error(store):
    with patch(REPOSITORY) as repo:
        repo.delete = AsyncMock(side_effect=OperationalError("DELETE", {}, Exception("down")))

        with pytest.raises(CredentialStoreError):
            await store.delete_identity(uuid4())


@pytest.mark.asyncio
async def test_sign_in_and_resolve_identity(store):
    identity = _identity()
    with patch(REPOSITORY) as repo:
        repo.get_by_email = AsyncMock(return_value=identity)
        repo.touch_sign_in = AsyncMock()
        repo.get_by_id = AsyncMock(return_value=identity)

        session = await store.sign_in("jane@example.com", "LongEnough1")
        resolved = await store.get_identity(session.access_token)

    assert session.identity_id == identity.id
    assert resolved is identity
    repo.get_by_id.assert_awaited_once()


@pytest.mark.asyncio
async def test_sign_in_wrong_password(store):
    with patch(REPOSITORY) as repo:
        repo.get_by_email = AsyncMock(return_value=_identity())
        repo.touch_sign_in = AsyncMock()

        with pytest.raises(InvalidCredentialsError):
            await store.sign_in("jane@example.com", "WrongPassword1")

    repo.touch_sign_in.assert_not_called()


@pytest.mark.asyncio
async def test_non_access_token_does_not_resolve(store):
    other_type = jwt.encode(
        {"sub": str(uuid4()), "type": "activation"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    with patch(REPOSITORY) as repo:
        repo.get_by_id = AsyncMock()

        assert await store.get_identity(other_type) is None

    repo.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_expired_access_token_does_not_resolve(store):
    expired = create_access_token(str(uuid4()), expires_delta=timedelta(seconds=-1))
    with patch(REPOSITORY) as repo:
        repo.get_by_id = AsyncMock()

        assert await store.get_identity(expired) is None

    repo.get_by_id.assert_not_called()
