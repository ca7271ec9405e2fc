"""
Auth Service

Email and password login against the credential store. The redirect
target depends on the role the identity resolves to.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.modules.access.policy import ADMIN_HOME, STUDENT_HOME, UNAUTHORIZED_PATH
from portal.modules.admins.repository import AdminRepository
from portal.modules.auth.schemas import LoginResult
from portal.modules.credentials import (
    CredentialStore,
    CredentialStoreError,
    InvalidCredentialsError,
    Session,
)
from portal.modules.shared import UpstreamUnavailableError, ValidationFailedError
from portal.modules.students import repository as student_repository

logger = logging.getLogger(__name__)


@dataclass
class LoginOutcome:
    result: LoginResult
    session: Session | None = None


def _fail(error) -> LoginOutcome:
    return LoginOutcome(result=LoginResult.failure(error))


async def _home_for_identity(db: AsyncSession, session: Session) -> str:
    try:
        if await AdminRepository.is_admin(db, session.identity_id):
            return ADMIN_HOME
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"login: admin lookup failed for {session.identity_id}: {e}")

    student = await student_repository.get_by_credential_id(db, session.identity_id)
    if student is None:
        logger.warning(f"login: identity {session.identity_id} has no admin or student row")
        return UNAUTHORIZED_PATH
    return STUDENT_HOME


async def login(
    db: AsyncSession,
    credential_store: CredentialStore,
    email: str,
    password: str,
) -> LoginOutcome:
    """Sign in and work out where the caller lands."""
    if not email or "@" not in email:
        return _fail(ValidationFailedError("Por favor, ingresa un correo electrónico válido"))
    if not password:
        return _fail(ValidationFailedError("Por favor, ingresa tu contraseña"))

    try:
        session = await credential_store.sign_in(email, password)
    except InvalidCredentialsError:
        return _fail(ValidationFailedError("Credenciales incorrectas"))
    except CredentialStoreError as e:
        logger.error(f"login: credential store unavailable: {e}")
        return _fail(UpstreamUnavailableError("Error inesperado. Por favor, intenta nuevamente."))

    try:
        redirect_to = await _home_for_identity(db, session)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"login: student lookup failed for {session.identity_id}: {e}")
        return _fail(UpstreamUnavailableError("Error inesperado. Por favor, intenta nuevamente."))

    logger.info(f"Identity {session.identity_id} logged in, landing on {redirect_to}")
    return LoginOutcome(
        result=LoginResult(
            success=True,
            message="Sesión iniciada.",
            redirect_to=redirect_to,
            access_token=session.access_token,
        ),
        session=session,
    )
