"""
Volunteer Hours Service

Business logic for hour-credit requests:

- Students submit requests with an optional attachment (activity log).
- Admins approve (crediting the hour ledger) or reject pending requests.

Approval is a two-step saga across two tables without a spanning
transaction:

    1. insert ledger entry      (compensation: delete the entry)
    2. mark request approved    (conditional on status = pending)

If step 2 errors after step 1 committed, the operation reports a partial
failure instead of retrying, so a naive retry cannot credit the same
activity twice. If step 2 matches no row another admin decided the
request first; the ledger entry is removed and the caller sees
AlreadyProcessed.
"""

import logging
import math
import time
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.storage import ObjectStorage, StorageError
from portal.modules.notifications.service import notify
from portal.modules.shared import (
    ActionResult,
    AlreadyProcessedError,
    MissingStudentDataError,
    NotFoundError,
    PartialFailureError,
    PortalServiceError,
    UpstreamUnavailableError,
    ValidationFailedError,
)
from portal.modules.students import repository as student_repository
from portal.modules.volunteer_hours import repository
from portal.modules.volunteer_hours.models import (
    DEFAULT_SUPERVISOR,
    LEDGER_STATUS_VALIDATED,
    HourRequestStatus,
)
from portal.modules.volunteer_hours.schemas import (
    AdminDashboardResponse,
    HourRequestResponse,
    HourRequestSubmission,
    LedgerEntryResponse,
    PendingRequestItem,
    StudentHoursResponse,
    SubmitRequestResult,
)

logger = logging.getLogger(__name__)

ALLOWED_ATTACHMENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "application/pdf"})
DEFAULT_ATTACHMENT_EXTENSION = "pdf"


# ============================================
# Attachments
# ============================================


def _attachment_extension(filename: str | None) -> str:
    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[1].strip().lower()
        if extension.isalnum():
            return extension
    return DEFAULT_ATTACHMENT_EXTENSION


def validate_attachment(content: bytes, content_type: str | None) -> None:
    """
    Check an activity-log attachment against the size and type limits.

    Raises:
        ValidationFailedError: Too large or not JPEG/PNG/PDF
    """
    if len(content) > settings.attachment_max_bytes:
        max_mb = settings.attachment_max_bytes // (1024 * 1024)
        raise ValidationFailedError(
            f"El archivo es demasiado grande. El tamaño máximo es {max_mb}MB."
        )
    if content_type not in ALLOWED_ATTACHMENT_TYPES:
        raise ValidationFailedError(
            "Formato de archivo no permitido. Solo se aceptan JPEG, PNG y PDF."
        )


def attachment_key(credential_id: UUID, filename: str | None, now: float | None = None) -> str:
    """Object key of an attachment: ``{credential_id}_{epoch_ms}.{ext}``."""
    epoch_ms = int((now if now is not None else time.time()) * 1000)
    return f"{credential_id}_{epoch_ms}.{_attachment_extension(filename)}"


# ============================================
# Student Operations
# ============================================


async def submit_request(
    db: AsyncSession,
    storage: ObjectStorage,
    student_id: int,
    credential_id: UUID,
    submission: HourRequestSubmission,
    attachment: bytes | None = None,
    attachment_filename: str | None = None,
    attachment_content_type: str | None = None,
) -> SubmitRequestResult:
    """
    Create a pending hour request for the calling student.

    The attachment, when present, is uploaded first; a failed upload
    fails the submission and no request row is written.
    """
    attachment_url = None

    try:
        if attachment:
            validate_attachment(attachment, attachment_content_type)
            key = attachment_key(credential_id, attachment_filename)
            try:
                attachment_url = await storage.upload(
                    settings.attachments_bucket,
                    key,
                    attachment,
                    attachment_content_type,
                    overwrite=False,
                )
            except StorageError as e:
                logger.error(f"Attachment upload failed for student {student_id}: {e}")
                raise UpstreamUnavailableError(
                    "Error al subir el archivo. Por favor, intenta nuevamente."
                ) from e

        try:
            request = await repository.create_request(
                db,
                student_id=student_id,
                credential_id=credential_id,
                activity_date=submission.activity_date,
                activity_name=submission.activity_name,
                requested_hours=submission.requested_hours,
                supervisor=submission.supervisor or DEFAULT_SUPERVISOR,
                attachment_url=attachment_url,
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to create hour request for student {student_id}: {e}")
            raise UpstreamUnavailableError(
                "Error al enviar la solicitud. Por favor, intenta nuevamente."
            ) from e
    except PortalServiceError as e:
        return SubmitRequestResult(success=False, message=e.message, error=e.error_code)

    logger.info(
        f"Hour request {request.id} submitted by student {student_id} "
        f"({submission.requested_hours}h, attachment={'yes' if attachment_url else 'no'})"
    )
    return SubmitRequestResult(
        success=True,
        message="Solicitud enviada correctamente. Será revisada por un administrador.",
        request=HourRequestResponse.model_validate(request),
    )


async def get_student_hours(db: AsyncSession, student_id: int) -> StudentHoursResponse:
    """
    Credited hours and own requests of a student.

    Raises:
        NotFoundError: Student row does not exist
    """
    student = await student_repository.get_by_id(db, student_id)
    if student is None:
        raise NotFoundError("No se encontró el estudiante.")

    ledger = []
    total = 0.0
    if student.scholar_internal_id:
        ledger = await repository.get_ledger_for_scholar(db, student.scholar_internal_id)
        total = await repository.get_total_hours(db, student.scholar_internal_id)

    requests = await repository.get_requests_for_student(db, student_id)

    return StudentHoursResponse(
        total_hours=total,
        ledger=[LedgerEntryResponse.model_validate(entry) for entry in ledger],
        requests=[HourRequestResponse.model_validate(item) for item in requests],
    )


# ============================================
# Admin Operations
# ============================================


async def admin_list_pending(db: AsyncSession) -> AdminDashboardResponse:
    """Pending requests with their students, oldest first."""
    rows = await repository.get_pending_with_students(db)

    items = [
        PendingRequestItem(
            id=request.id,
            student_id=request.student_id,
            student_name=student.full_name,
            scholar_internal_id=student.scholar_internal_id,
            activity_date=request.activity_date,
            activity_name=request.activity_name,
            requested_hours=request.requested_hours,
            supervisor=request.supervisor,
            attachment_url=request.attachment_url,
            created_at=request.created_at,
        )
        for request, student in rows
    ]
    return AdminDashboardResponse(pending_requests=items, total_pending=len(items))


def _resolve_hours(override: float | None, requested: int) -> float:
    hours = float(requested) if override is None else float(override)
    if math.isnan(hours) or math.isinf(hours) or hours <= 0:
        raise ValidationFailedError("La cantidad de horas debe ser un número mayor a 0.")
    return hours


async def _approve(
    db: AsyncSession,
    request_id: UUID,
    reviewer_id: UUID,
    hours: float | None,
    notes: str | None,
) -> ActionResult:
    request = await repository.get_by_id(db, request_id)
    if request is None:
        raise NotFoundError("No se pudo encontrar la solicitud.")
    if request.status != HourRequestStatus.PENDING:
        raise AlreadyProcessedError()

    student = await student_repository.get_by_id(db, request.student_id)
    if student is None:
        raise NotFoundError("No se pudo encontrar el estudiante asociado a esta solicitud.")
    full_name = (student.full_name or "").strip()
    scholar_id = (student.scholar_internal_id or "").strip()
    if not full_name or not scholar_id:
        raise MissingStudentDataError()

    credited = _resolve_hours(hours, request.requested_hours)

    # A rollback below expires loaded rows; keep what the notification needs
    credential_id = request.credential_id
    activity_name = request.activity_name

    # Step 1: credit the ledger
    try:
        entry = await repository.create_ledger_entry(
            db,
            request_id=request.id,
            scholar_internal_id=scholar_id,
            scholar_full_name=full_name,
            activity_date=request.activity_date,
            activity_name=activity_name,
            hours=credited,
            supervisor=request.supervisor or DEFAULT_SUPERVISOR,
            status=LEDGER_STATUS_VALIDATED,
        )
    except IntegrityError as e:
        # One ledger entry per request: a concurrent approval got there first
        await db.rollback()
        logger.info(f"Ledger entry for request {request_id} already exists: {e.orig}")
        raise AlreadyProcessedError() from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"approve_request: ledger insert failed for request {request_id}: {e}")
        raise UpstreamUnavailableError(
            "Error al registrar las horas de voluntariado. Por favor, intenta nuevamente."
        ) from e

    entry_id = entry.id

    # Step 2: close the request
    try:
        decided = await repository.mark_decided(
            db,
            request_id,
            HourRequestStatus.APPROVED,
            approved_hours=credited,
            reviewer_notes=notes,
            reviewed_by=reviewer_id,
            reviewed_at=datetime.now(UTC),
        )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(
            f"approve_request: ledger entry {entry_id} written but status update "
            f"failed for request {request_id}: {e}"
        )
        raise PartialFailureError(
            "Las horas se registraron, pero hubo un error al actualizar el estado "
            "de la solicitud."
        ) from e

    if not decided:
        # Lost the race against another decision: undo step 1
        try:
            await repository.delete_ledger_entry(db, entry_id)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                f"approve_request: compensation failed, ledger entry {entry_id} remains "
                f"for already decided request {request_id}: {e}"
            )
            raise PartialFailureError(
                "La solicitud ya había sido procesada y no se pudo revertir el registro de horas."
            ) from e
        logger.info(f"approve_request: request {request_id} decided concurrently, entry removed")
        raise AlreadyProcessedError()

    logger.info(
        f"Admin {reviewer_id} approved request {request_id}: {credited}h credited to {scholar_id}"
    )

    await notify(
        db,
        credential_id,
        "Solicitud de horas aprobada",
        f"Tu solicitud \"{activity_name}\" fue aprobada con {credited:g} horas.",
    )
    return ActionResult.ok("Solicitud aprobada y horas registradas correctamente.")


async def approve_request(
    db: AsyncSession,
    request_id: UUID,
    reviewer_id: UUID,
    hours: float | None = None,
    notes: str | None = None,
) -> ActionResult:
    """
    Approve a pending request and credit the ledger.

    Args:
        db: Database session
        request_id: Hour request to approve
        reviewer_id: Identity of the approving admin
        hours: Optional override of the requested hour count
        notes: Optional reviewer notes

    Returns:
        ActionResult; error is ALREADY_PROCESSED on a second approval and
        PARTIAL_FAILURE when the ledger was credited but the request stayed pending
    """
    try:
        return await _approve(db, request_id, reviewer_id, hours, notes)
    except PortalServiceError as e:
        return ActionResult.failure(e)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"approve_request failed for request {request_id}: {e}")
        return ActionResult.failure(UpstreamUnavailableError())


async def reject_request(
    db: AsyncSession,
    request_id: UUID,
    reviewer_id: UUID,
    reason: str | None = None,
) -> ActionResult:
    """Reject a pending request. Nothing is written to the ledger."""
    try:
        request = await repository.get_by_id(db, request_id)
        if request is None:
            return ActionResult.failure(NotFoundError("No se pudo encontrar la solicitud."))
        if request.status != HourRequestStatus.PENDING:
            return ActionResult.failure(AlreadyProcessedError())

        credential_id = request.credential_id
        activity_name = request.activity_name

        decided = await repository.mark_decided(
            db,
            request_id,
            HourRequestStatus.REJECTED,
            rejection_reason=reason,
            reviewed_by=reviewer_id,
            reviewed_at=datetime.now(UTC),
        )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"reject_request failed for request {request_id}: {e}")
        return ActionResult.failure(
            UpstreamUnavailableError(
                "Error al rechazar la solicitud. Por favor, intenta nuevamente."
            )
        )

    if not decided:
        return ActionResult.failure(AlreadyProcessedError())

    logger.info(f"Admin {reviewer_id} rejected request {request_id}")

    body = f"Tu solicitud \"{activity_name}\" fue rechazada."
    if reason:
        body = f"{body} Motivo: {reason}"
    await notify(db, credential_id, "Solicitud de horas rechazada", body)

    return ActionResult.ok("Solicitud rechazada correctamente.")
