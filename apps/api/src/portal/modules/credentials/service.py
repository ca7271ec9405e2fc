"""
Credential Store Service

Creates, deletes and authenticates login identities and issues JWT
sessions for them.

The store opens its own session for every call (``session_factory``)
and commits independently. Callers that combine it with writes to the
portal's tables must treat it as a separate system and compensate on
failure rather than rely on a shared transaction.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal.core.database import async_session_maker
from portal.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from portal.modules.credentials.models import AuthIdentity
from portal.modules.credentials.repository import IdentityRepository

logger = logging.getLogger(__name__)


class CredentialStoreError(Exception):
    """The credential store could not complete the call."""


class EmailAlreadyRegisteredError(CredentialStoreError):
    """An identity with this email already exists."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already registered: {email}")


class InvalidCredentialsError(CredentialStoreError):
    """Email/password pair did not match an identity."""


@dataclass
class Session:
    """A signed-in session for an identity."""

    identity_id: UUID
    email: str
    access_token: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:
    """Login identities and sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session_maker):
        self._session_factory = session_factory

    async def create_identity(self, email: str, password: str) -> AuthIdentity:
        """
        Create a confirmed identity for the given email and password.

        Raises:
            EmailAlreadyRegisteredError: The email is taken
            CredentialStoreError: The store is unavailable
        """
        email = normalize_email(email)
        try:
            async with self._session_factory() as db:
                if await IdentityRepository.get_by_email(db, email):
                    raise EmailAlreadyRegisteredError(email)
                identity = await IdentityRepository.create(
                    db, email=email, password_hash=hash_password(password)
                )
                await db.commit()
                return identity
        except IntegrityError as e:
            raise EmailAlreadyRegisteredError(email) from e
        except SQLAlchemyError as e:
            logger.error(f"Credential store failed creating identity for {email}: {e}")
            raise CredentialStoreError(str(e)) from e

    async def delete_identity(self, identity_id: UUID) -> bool:
        """
        Delete an identity.

        Returns:
            True if it existed, False if it was already gone

        Raises:
            CredentialStoreError: The store is unavailable
        """
        try:
            async with self._session_factory() as db:
                deleted = await IdentityRepository.delete(db, identity_id)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Credential store failed deleting identity {identity_id}: {e}")
            raise CredentialStoreError(str(e)) from e

        if deleted:
            logger.info(f"Deleted identity {identity_id}")
        else:
            logger.warning(f"Identity {identity_id} was already deleted")
        return deleted

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Authenticate with email and password and open a session.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            CredentialStoreError: The store is unavailable
        """
        email = normalize_email(email)
        try:
            async with self._session_factory() as db:
                identity = await IdentityRepository.get_by_email(db, email)
                if identity is None or not verify_password(password, identity.password_hash):
                    logger.warning(f"Failed sign-in for {email}")
                    raise InvalidCredentialsError("Invalid email or password")
                await IdentityRepository.touch_sign_in(db, identity.id)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Credential store failed signing in {email}: {e}")
            raise CredentialStoreError(str(e)) from e

        subject = str(identity.id)
        return Session(
            identity_id=identity.id,
            email=identity.email,
            access_token=create_access_token(subject, additional_claims={"email": identity.email}),
        )

    async def get_identity(self, access_token: str) -> AuthIdentity | None:
        """
        Resolve the identity behind a session token.

        Returns None for invalid, expired or non-access tokens and for
        identities that no longer exist.
        """
        payload = decode_token(access_token)
        if payload is None or payload.get("type") != "access":
            return None

        try:
            identity_id = UUID(payload.get("sub", ""))
        except ValueError:
            logger.warning("Session token carries a malformed subject")
            return None

        try:
            async with self._session_factory() as db:
                return await IdentityRepository.get_by_id(db, identity_id)
        except SQLAlchemyError as e:
            logger.error(f"Credential store failed resolving identity {identity_id}: {e}")
            raise CredentialStoreError(str(e)) from e


_store: CredentialStore | None = None


def get_credential_store() -> CredentialStore:
    """Return the process-wide credential store (FastAPI dependency)."""
    global _store
    if _store is None:
        _store = CredentialStore()
    return _store
