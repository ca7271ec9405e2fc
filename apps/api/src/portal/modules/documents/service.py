"""
Document Generation Service

Renders a student's documents and publishes them to object storage,
tracking each kind's status on the student row:

    not_generated / failed --> generating --> ready | failed

Both documents render and upload concurrently. Status writes go through
the request's database session one at a time.
"""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.config import settings
from portal.core.storage import ObjectStorage, StorageError
from portal.modules.documents.naming import document_path
from portal.modules.documents.renderer import StudentDocumentData, StudentDocumentRenderer
from portal.modules.shared import MissingStudentDataError
from portal.modules.students import repository as student_repository
from portal.modules.students.models import DocumentKind, DocumentStatus, Student

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


@dataclass
class DocumentOutcome:
    """Result of generating one document."""

    kind: DocumentKind
    url: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.url is not None


async def _render_and_upload(
    kind: DocumentKind,
    data: StudentDocumentData,
    storage: ObjectStorage,
    renderer: StudentDocumentRenderer,
) -> DocumentOutcome:
    try:
        content = await asyncio.to_thread(renderer.render, kind, data)
    except Exception as e:
        # reportlab raises a wide range of exception types
        logger.error(
            f"Rendering {kind.value} failed for student {data.scholar_internal_id}: {e}",
            exc_info=True,
        )
        return DocumentOutcome(kind=kind, error=f"Error al generar el {kind.value}: {e}")

    path = document_path(kind, data.full_name)
    try:
        url = await storage.upload(
            settings.documents_bucket, path, content, PDF_CONTENT_TYPE, overwrite=True
        )
    except StorageError as e:
        logger.error(f"Uploading {kind.value} failed for student {data.scholar_internal_id}: {e}")
        return DocumentOutcome(kind=kind, error=f"Error al subir el {kind.value}: {e}")

    logger.info(f"Generated {kind.value} for student {data.scholar_internal_id}: {path}")
    return DocumentOutcome(kind=kind, url=url)


async def generate_student_documents(
    db: AsyncSession,
    student: Student,
    storage: ObjectStorage,
    renderer: StudentDocumentRenderer | None = None,
) -> list[DocumentOutcome]:
    """
    Generate the digital record and the digital card for a student.

    Args:
        db: Database session
        student: Student whose profile data is printed
        storage: Object storage for the PDFs
        renderer: PDF renderer (a fresh one by default)

    Returns:
        One outcome per document kind

    Raises:
        MissingStudentDataError: The student has no name or internal id
    """
    if not student.full_name or not student.scholar_internal_id:
        raise MissingStudentDataError(
            "No se pueden generar los documentos sin el nombre y el ID de becado."
        )

    renderer = renderer or StudentDocumentRenderer()
    data = StudentDocumentData.from_student(student)
    kinds = list(DocumentKind)

    for kind in kinds:
        await student_repository.set_document_state(
            db, student.id, kind, DocumentStatus.GENERATING
        )

    outcomes = await asyncio.gather(
        *(_render_and_upload(kind, data, storage, renderer) for kind in kinds)
    )

    for outcome in outcomes:
        if outcome.success:
            await student_repository.set_document_state(
                db, student.id, outcome.kind, DocumentStatus.READY, url=outcome.url
            )
        else:
            await student_repository.set_document_state(
                db, student.id, outcome.kind, DocumentStatus.FAILED
            )

    return list(outcomes)
