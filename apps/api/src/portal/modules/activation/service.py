"""
Account Activation Service

Token lifecycle of a student row:

    issued --activate--> consumed --unlink--> issued (new token)

Activation spans the credential store and the relational database with no
shared transaction, so it runs as a saga:

    1. create_identity   (credential store)  compensation: delete_identity
    2. link_student      (conditional UPDATE on token and completion flag)

A link that matches no row lost a race against another activation of the
same token; the identity from step 1 is deleted and the caller sees
AlreadyUsed. Compensation failures are logged and not retried.

Unlink runs the other way round: the database is updated first, and the
old identity is deleted only afterwards, so a failed delete leaves a
stray identity rather than a student locked out of activation.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.email import send_welcome_email
from portal.core.security import generate_activation_token
from portal.modules.access.policy import ADMIN_HOME, LOGIN_PATH, STUDENT_HOME
from portal.modules.activation.schemas import ActivationResult, TokenSummary, TokenValidation
from portal.modules.admins.repository import AdminRepository
from portal.modules.credentials import (
    CredentialStore,
    CredentialStoreError,
    EmailAlreadyRegisteredError,
    Session,
)
from portal.modules.credentials.service import normalize_email
from portal.modules.shared import (
    ActionResult,
    AlreadyUsedError,
    IncompleteRecordError,
    NotFoundError,
    PartialFailureError,
    PortalServiceError,
    UpstreamUnavailableError,
    ValidationFailedError,
)
from portal.modules.students import repository as student_repository
from portal.modules.students.models import Student

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8

# Token re-reads after a duplicate-email rejection, waiting for a concurrent
# activation of the same token to link its student
EMAIL_TAKEN_RECHECKS = 3
EMAIL_TAKEN_RECHECK_DELAY = 0.2

# (pattern, message) pairs checked in order; the first failure is reported
_PASSWORD_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"[A-Z]"), "La contraseña debe contener al menos una letra mayúscula"),
    (re.compile(r"[a-z]"), "La contraseña debe contener al menos una letra minúscula"),
    (re.compile(r"[0-9]"), "La contraseña debe contener al menos un número"),
)


@dataclass
class ActivationOutcome:
    """Activation result plus the session to hand to the client, if any."""

    result: ActivationResult
    session: Session | None = None


# ============================================
# Validation
# ============================================


def validate_password_strength(password: str) -> None:
    """
    Enforce the activation password policy.

    Raises:
        ValidationFailedError: First violated rule
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationFailedError(
            f"La contraseña debe tener al menos {PASSWORD_MIN_LENGTH} caracteres"
        )
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            raise ValidationFailedError(message)


async def _load_token_student(db: AsyncSession, token: str) -> Student:
    """
    Find the student an activation token belongs to.

    Raises:
        NotFoundError: No student holds the token
        AlreadyUsedError: The student already activated
        IncompleteRecordError: Name or personal email is blank
    """
    token = (token or "").strip()
    if not token:
        raise NotFoundError("Token inválido o no encontrado")

    student = await student_repository.get_by_activation_token(db, token)
    if student is None:
        raise NotFoundError("Token inválido o no encontrado")
    if student.onboarding_completed:
        raise AlreadyUsedError("Este token ya ha sido utilizado")
    if not (student.full_name or "").strip() or not (student.personal_email or "").strip():
        raise IncompleteRecordError()
    return student


async def validate_token(db: AsyncSession, token: str) -> TokenValidation:
    """
    Check an activation token.

    Only the student's name and personal email are exposed, since the
    caller is anonymous.
    """
    try:
        student = await _load_token_student(db, token)
    except PortalServiceError as e:
        return TokenValidation(valid=False, message=e.message, error=e.error_code.value)
    except SQLAlchemyError as e:
        logger.error(f"validate_token: lookup failed: {e}")
        error = UpstreamUnavailableError()
        return TokenValidation(valid=False, message=error.message, error=error.error_code.value)

    return TokenValidation(
        valid=True,
        student=TokenSummary(full_name=student.full_name, personal_email=student.personal_email),
    )


# ============================================
# Activation
# ============================================


async def _compensate_identity(credential_store: CredentialStore, identity_id: UUID) -> None:
    try:
        await credential_store.delete_identity(identity_id)
        logger.info(f"activate_account: compensated by deleting identity {identity_id}")
    except CredentialStoreError as e:
        logger.error(
            f"activate_account: compensation failed, identity {identity_id} is orphaned: {e}"
        )


async def _email_taken_result(db: AsyncSession, token: str, student_id: int) -> ActivationResult:
    """
    Explain a duplicate-email rejection from the credential store.

    Two activations of one token usually carry the same email, so the
    loser is rejected here before reaching the link step. If the token
    is consumed meanwhile, report it as used; only a token still pending
    means the email belongs to someone else.
    """
    for attempt in range(EMAIL_TAKEN_RECHECKS):
        if attempt:
            await asyncio.sleep(EMAIL_TAKEN_RECHECK_DELAY)
        try:
            await _load_token_student(db, token)
        except (NotFoundError, AlreadyUsedError):
            logger.info(f"activate_account: token for student {student_id} consumed concurrently")
            return ActivationResult.failure(AlreadyUsedError("Este token ya ha sido utilizado"))
        except PortalServiceError:
            break
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"activate_account: token re-check failed for student {student_id}: {e}")
            break

    return ActivationResult.failure(
        ValidationFailedError("Error al crear la cuenta. El correo podría estar en uso.")
    )


async def activate_account(
    db: AsyncSession,
    token: str,
    email: str,
    password: str,
    credential_store: CredentialStore,
) -> ActivationOutcome:
    """
    Consume an activation token and create the student's login.

    Args:
        db: Database session
        token: Activation token from the invitation link
        email: Login email (becomes the student's personal email)
        password: New password, checked against the password policy
        credential_store: Identity store for the new login

    Returns:
        ActivationOutcome; on success the result redirects to the role's
        home and carries a session, unless opening the session failed, in
        which case ``requires_sign_in`` is set and the redirect is the login
    """
    token = (token or "").strip()
    email = normalize_email(email or "")

    try:
        student = await _load_token_student(db, token)
        validate_password_strength(password)
        if "@" not in email:
            raise ValidationFailedError("Correo electrónico inválido")
    except PortalServiceError as e:
        return ActivationOutcome(result=ActivationResult.failure(e))
    except SQLAlchemyError as e:
        logger.error(f"activate_account: token lookup failed: {e}")
        return ActivationOutcome(result=ActivationResult.failure(UpstreamUnavailableError()))

    student_id = student.id
    student_name = student.full_name

    # Step 1: create the login identity
    try:
        identity = await credential_store.create_identity(email, password)
    except EmailAlreadyRegisteredError:
        return ActivationOutcome(result=await _email_taken_result(db, token, student_id))
    except CredentialStoreError as e:
        logger.error(f"activate_account: create_identity failed for student {student_id}: {e}")
        return ActivationOutcome(
            result=ActivationResult.failure(
                UpstreamUnavailableError("Error al crear la cuenta. Por favor, intenta nuevamente.")
            )
        )

    # Step 2: link the student and burn the token
    try:
        linked = await student_repository.consume_activation_token(db, token, identity.id, email)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"activate_account: link_student failed for student {student_id}: {e}")
        await _compensate_identity(credential_store, identity.id)
        return ActivationOutcome(
            result=ActivationResult.failure(
                UpstreamUnavailableError(
                    "Error al vincular la cuenta. Por favor, intenta nuevamente."
                )
            )
        )

    if not linked:
        logger.warning(f"activate_account: token for student {student_id} consumed concurrently")
        await _compensate_identity(credential_store, identity.id)
        return ActivationOutcome(
            result=ActivationResult.failure(AlreadyUsedError("Este token ya ha sido utilizado"))
        )

    logger.info(f"Student {student_id} activated with identity {identity.id}")

    # Best effort; send_email logs and swallows delivery failures
    await send_welcome_email(email, student_name)

    try:
        session = await credential_store.sign_in(email, password)
    except CredentialStoreError as e:
        logger.error(f"activate_account: sign-in after activation failed for {identity.id}: {e}")
        return ActivationOutcome(
            result=ActivationResult(
                success=True,
                message="Cuenta creada. Por favor, inicia sesión.",
                redirect_to=LOGIN_PATH,
                requires_sign_in=True,
            )
        )

    try:
        is_admin = await AdminRepository.is_admin(db, identity.id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"activate_account: admin lookup failed for {identity.id}: {e}")
        is_admin = False

    return ActivationOutcome(
        result=ActivationResult(
            success=True,
            message="Cuenta activada exitosamente.",
            redirect_to=ADMIN_HOME if is_admin else STUDENT_HOME,
        ),
        session=session,
    )


# ============================================
# Admin: reset and unlink
# ============================================


def _display_name(student: Student) -> str:
    return student.full_name or student.scholar_internal_id or "estudiante"


async def _find_student(db: AsyncSession, key: str) -> Student:
    if not key or not key.strip():
        raise NotFoundError("ID de estudiante inválido.")
    student = await student_repository.get_by_key(db, key)
    if student is None:
        raise NotFoundError("No se pudo encontrar el estudiante especificado.")
    return student


async def reset_student(db: AsyncSession, key: str) -> ActionResult:
    """
    Clear a student's wizard data and document links.

    The login link and the onboarding flag are kept, so the student logs
    in as before and fills in the wizard again.
    """
    try:
        student = await _find_student(db, key)
        student_id = student.id
        name = _display_name(student)
        updated = await student_repository.reset_profile(db, student_id)
    except PortalServiceError as e:
        return ActionResult.failure(e)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"reset_student failed for key {key}: {e}")
        return ActionResult.failure(
            UpstreamUnavailableError(f"Error al resetear el perfil: {e.__class__.__name__}")
        )

    if not updated:
        return ActionResult.failure(
            NotFoundError("No se encontró el registro del estudiante. Por favor, verifica el ID.")
        )

    logger.info(f"Profile of student {student_id} reset")
    return ActionResult.ok(
        f"Perfil de {name} reseteado exitosamente. "
        "El estudiante podrá completar el formulario nuevamente."
    )


async def unlink_student(
    db: AsyncSession,
    key: str,
    credential_store: CredentialStore,
) -> ActionResult:
    """
    Detach a student's login identity and issue a fresh activation token.

    Returns:
        ActionResult; PARTIAL_FAILURE when the student was unlinked but the
        old identity could not be deleted (the new token is valid either way)
    """
    try:
        student = await _find_student(db, key)
    except PortalServiceError as e:
        return ActionResult.failure(e)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"unlink_student: lookup failed for key {key}: {e}")
        return ActionResult.failure(UpstreamUnavailableError())

    student_id = student.id
    name = _display_name(student)
    old_identity = student.linked_credential_id
    new_token = generate_activation_token()

    # Step 1: detach and reissue in the database
    try:
        updated = await student_repository.unlink_credential(db, student_id, new_token)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"unlink_student: database update failed for student {student_id}: {e}")
        return ActionResult.failure(
            UpstreamUnavailableError(
                "Error al desvincular el estudiante en la base de datos. "
                "Por favor, intenta nuevamente."
            )
        )

    if not updated:
        return ActionResult.failure(
            NotFoundError("No se encontró el registro del estudiante. Por favor, verifica el ID.")
        )

    if old_identity is None:
        logger.info(f"Student {student_id} had no login; issued a new activation token")
        return ActionResult.ok(
            f"Se ha generado un nuevo token de activación para {name}."
        )

    # Step 2: delete the old identity
    try:
        await credential_store.delete_identity(old_identity)
    except CredentialStoreError as e:
        logger.error(
            f"unlink_student: student {student_id} unlinked but identity {old_identity} "
            f"could not be deleted: {e}"
        )
        return ActionResult.failure(
            PartialFailureError(
                "El estudiante fue desvinculado en la base de datos, pero hubo un error al "
                f"borrar el usuario de acceso: {e}. Por favor, contacta al administrador "
                "del sistema."
            )
        )

    logger.info(f"Student {student_id} unlinked from identity {old_identity}")
    return ActionResult.ok(
        f"Cuenta de {name} desvinculada exitosamente. El usuario de acceso ha sido eliminado "
        "y se ha generado un nuevo token de activación."
    )
