"""
Caller resolution.

Turns a session token into a CallerContext by asking the credential
store for the identity and then looking up Admin and Student rows.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.auth import CallerContext, CallerRole
from portal.modules.admins.repository import AdminRepository
from portal.modules.credentials import CredentialStore, CredentialStoreError
from portal.modules.students import repository as student_repository

logger = logging.getLogger(__name__)


async def resolve_caller(
    db: AsyncSession,
    credential_store: CredentialStore,
    session_token: str | None,
) -> CallerContext | None:
    """
    Resolve the caller behind a session token.

    An Admin row makes the caller an admin, otherwise a Student row makes
    them a student. An identity with neither is treated as anonymous.

    If the admin lookup fails the caller is treated as non-admin, and if the
    student lookup fails the caller is treated as anonymous. Both cases are
    logged and neither raises.

    Returns:
        The caller context, or None for anonymous callers
    """
    if not session_token:
        return None

    try:
        identity = await credential_store.get_identity(session_token)
    except CredentialStoreError as e:
        logger.error(f"Session lookup failed, treating caller as anonymous: {e}")
        return None

    if identity is None:
        return None

    try:
        admin = await AdminRepository.get_by_credential_id(db, identity.id)
    except SQLAlchemyError as e:
        logger.error(
            f"Admin lookup failed for identity {identity.id}, treating caller as non-admin: {e}"
        )
        await db.rollback()
        admin = None

    if admin is not None:
        return CallerContext(
            identity_id=identity.id,
            email=identity.email,
            role=CallerRole.ADMIN,
            admin_id=admin.id,
        )

    try:
        student = await student_repository.get_by_credential_id(db, identity.id)
    except SQLAlchemyError as e:
        logger.error(
            f"Student lookup failed for identity {identity.id}, treating caller as anonymous: {e}"
        )
        await db.rollback()
        return None

    if student is None:
        logger.warning(f"Identity {identity.id} has neither an admin nor a student row")
        return None

    return CallerContext(
        identity_id=identity.id,
        email=identity.email,
        role=CallerRole.STUDENT,
        student_id=student.id,
    )
