"""
Credential Repository

Database operations for login identities.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.modules.credentials.models import AuthIdentity

logger = logging.getLogger(__name__)


class IdentityRepository:
    """Repository for credential store identities."""

    @staticmethod
    async def create(db: AsyncSession, *, email: str, password_hash: str) -> AuthIdentity:
        """Insert a new identity and flush to obtain its id."""
        identity = AuthIdentity(email=email, password_hash=password_hash)

        db.add(identity)
        await db.flush()
        await db.refresh(identity)

        logger.info(f"Created identity: {identity.id} - {identity.email}")
        return identity

    @staticmethod
    async def get_by_id(db: AsyncSession, identity_id: UUID) -> AuthIdentity | None:
        result = await db.execute(select(AuthIdentity).where(AuthIdentity.id == identity_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> AuthIdentity | None:
        result = await db.execute(select(AuthIdentity).where(AuthIdentity.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(db: AsyncSession, identity_id: UUID) -> bool:
        """
        Delete an identity.

        Returns:
            True if a row was deleted, False if it did not exist
        """
        result = await db.execute(delete(AuthIdentity).where(AuthIdentity.id == identity_id))
        return result.rowcount > 0

    @staticmethod
    async def touch_sign_in(db: AsyncSession, identity_id: UUID) -> None:
        await db.execute(
            update(AuthIdentity)
            .where(AuthIdentity.id == identity_id)
            .values(last_sign_in_at=datetime.now(UTC))
        )
