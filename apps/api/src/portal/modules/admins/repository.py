"""
Admin Repository
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.modules.admins.models import Admin

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for admin rows."""

    @staticmethod
    async def create(db: AsyncSession, *, credential_id: UUID, full_name: str | None) -> Admin:
        admin = Admin(credential_id=credential_id, full_name=full_name)

        db.add(admin)
        await db.flush()
        await db.refresh(admin)

        logger.info(f"Created admin: {admin.id} for identity {credential_id}")
        return admin

    @staticmethod
    async def get_by_credential_id(db: AsyncSession, credential_id: UUID) -> Admin | None:
        result = await db.execute(select(Admin).where(Admin.credential_id == credential_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def is_admin(db: AsyncSession, credential_id: UUID) -> bool:
        """Check whether the identity owns an Admin row."""
        admin = await AdminRepository.get_by_credential_id(db, credential_id)
        return admin is not None
