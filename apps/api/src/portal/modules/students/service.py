"""
Students Service

Student home, the profile wizard and the admin student list. Admin reset
and unlink live with account activation, since they rewind it.
"""

import logging
import math

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.storage import ObjectStorage
from portal.modules.documents.service import generate_student_documents
from portal.modules.shared import (
    MissingStudentDataError,
    NotFoundError,
    UpstreamUnavailableError,
)
from portal.modules.students import repository
from portal.modules.students.models import DocumentKind, Student, usable_document_link
from portal.modules.students.schemas import (
    DocumentLinks,
    ProfileCompletionResult,
    ProfileResponse,
    ProfileWizardRequest,
    StudentDashboardResponse,
    StudentListItem,
    StudentListResponse,
)
from portal.modules.volunteer_hours import repository as hours_repository

logger = logging.getLogger(__name__)


def document_links(student: Student) -> DocumentLinks:
    """Document links safe to display: None until a document is ready."""
    return DocumentLinks(
        record_url=usable_document_link(student.record_url, student.record_status),
        record_status=student.record_status,
        card_url=usable_document_link(student.card_url, student.card_status),
        card_status=student.card_status,
    )


async def _get_student(db: AsyncSession, student_id: int) -> Student:
    student = await repository.get_by_id(db, student_id)
    if student is None:
        raise NotFoundError("No se encontró el registro del estudiante.")
    return student


async def get_dashboard(db: AsyncSession, student_id: int) -> StudentDashboardResponse:
    """
    Student home: identity, profile state, documents and credited hours.

    Raises:
        NotFoundError: Student row does not exist
    """
    student = await _get_student(db, student_id)

    total_hours = 0.0
    if student.scholar_internal_id:
        total_hours = await hours_repository.get_total_hours(db, student.scholar_internal_id)

    return StudentDashboardResponse(
        id=student.id,
        full_name=student.full_name,
        scholar_internal_id=student.scholar_internal_id,
        personal_email=student.personal_email,
        university=student.university,
        career=student.career,
        profile_completed=student.profile_completed,
        documents=document_links(student),
        total_hours=total_hours,
    )


async def get_profile(db: AsyncSession, student_id: int) -> ProfileResponse:
    student = await _get_student(db, student_id)
    return ProfileResponse.model_validate(student)


async def complete_profile(
    db: AsyncSession,
    storage: ObjectStorage,
    student_id: int,
    data: ProfileWizardRequest,
) -> ProfileCompletionResult:
    """
    Save the profile wizard, then generate the student's documents.

    The profile is saved even when document generation fails; the
    result then carries a warning naming the failed documents.
    """
    try:
        student = await _get_student(db, student_id)
    except NotFoundError as e:
        return ProfileCompletionResult(success=False, message=e.message, error=e.error_code)

    if not student.full_name or not student.scholar_internal_id:
        error = MissingStudentDataError(
            "Faltan datos críticos del estudiante. Por favor, contacta al administrador."
        )
        return ProfileCompletionResult(
            success=False, message=error.message, error=error.error_code
        )

    fields = data.model_dump()
    fields["council_member"] = data.council_member.value
    fields["elite_scholar"] = data.elite_scholar.value

    try:
        student = await repository.update_profile(db, student, **fields)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"complete_profile: saving wizard failed for student {student_id}: {e}")
        error = UpstreamUnavailableError(
            "Error al guardar el perfil. Por favor, intenta nuevamente."
        )
        return ProfileCompletionResult(
            success=False, message=error.message, error=error.error_code
        )

    logger.info(f"Profile completed for student {student_id}")

    warnings = []
    try:
        outcomes = await generate_student_documents(db, student, storage)
        labels = {DocumentKind.RECORD: "Expediente", DocumentKind.CARD: "Carnet"}
        warnings = [f"{labels[o.kind]}: {o.error}" for o in outcomes if not o.success]
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"complete_profile: document status update failed for {student_id}: {e}")
        warnings = ["No se pudo registrar el estado de los documentos"]

    # The wizard data is committed by now; an unreadable row only costs the links
    try:
        await db.refresh(student)
        links = document_links(student)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"complete_profile: reloading student {student_id} failed: {e}")
        links = DocumentLinks()
        if not warnings:
            warnings = ["No se pudo consultar el estado de los documentos"]

    if warnings:
        return ProfileCompletionResult(
            success=True,
            message=f"Perfil guardado exitosamente. Advertencia: {'; '.join(warnings)}",
            documents=links,
        )
    return ProfileCompletionResult(
        success=True,
        message="Perfil guardado exitosamente. Tu carnet y expediente digital han sido generados.",
        documents=links,
    )


async def admin_list_students(
    db: AsyncSession,
    *,
    search: str | None = None,
    onboarding_completed: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> StudentListResponse:
    """Paginated student list for the admin screen."""
    students, total = await repository.get_students_for_admin(
        db,
        search=search,
        onboarding_completed=onboarding_completed,
        page=page,
        page_size=page_size,
    )

    items = [
        StudentListItem(
            id=student.id,
            scholar_internal_id=student.scholar_internal_id,
            full_name=student.full_name,
            university=student.university,
            personal_email=student.personal_email,
            onboarding_completed=student.onboarding_completed,
            has_account=student.linked_credential_id is not None,
            profile_completed=student.profile_completed,
            documents=document_links(student),
        )
        for student in students
    ]

    return StudentListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total > 0 else 0,
    )
