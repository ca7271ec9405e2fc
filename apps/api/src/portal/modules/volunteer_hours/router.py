"""
Volunteer Hours Router (students)

Endpoints:
- GET /horas-voluntariado - Credited hours and own requests
- POST /horas-voluntariado/solicitudes - Submit a request (multipart form)
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.auth import CallerContext, require_student
from portal.core.database import get_db
from portal.core.storage import ObjectStorage, get_storage
from portal.modules.shared import (
    ActionResult,
    NotFoundError,
    ValidationFailedError,
    action_response,
)
from portal.modules.volunteer_hours import service
from portal.modules.volunteer_hours.schemas import (
    HourRequestSubmission,
    StudentHoursResponse,
    SubmitRequestResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=StudentHoursResponse, summary="My Volunteer Hours")
async def get_my_hours(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(require_student),
) -> StudentHoursResponse:
    """Total credited hours, the ledger and the caller's own requests."""
    try:
        return await service.get_student_hours(db, caller.student_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": e.error_code.value, "message": e.message},
        )


@router.post(
    "/solicitudes",
    response_model=SubmitRequestResult,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Hour Request",
    description="""
Submit a volunteer activity for hour credit.

The optional `bitacora` file (activity log) must be JPEG, PNG or PDF and at
most 10MB. The request stays `pendiente` until an admin decides it.
""",
)
async def submit_hour_request(
    fecha_actividad: date = Form(...),
    nombre_actividad: str = Form(...),
    cantidad_horas: int = Form(...),
    responsable_encargado: str | None = Form(None),
    bitacora: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    caller: CallerContext = Depends(require_student),
) -> JSONResponse:
    try:
        submission = HourRequestSubmission(
            activity_date=fecha_actividad,
            activity_name=nombre_actividad,
            requested_hours=cantidad_horas,
            supervisor=responsable_encargado,
        )
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        result = ActionResult.failure(
            ValidationFailedError(f"Dato inválido en '{field}': {first['msg']}")
        )
        return action_response(result)

    content = None
    filename = None
    content_type = None
    if bitacora is not None and bitacora.filename:
        content = await bitacora.read()
        filename = bitacora.filename
        content_type = bitacora.content_type

    result = await service.submit_request(
        db,
        storage,
        student_id=caller.student_id,
        credential_id=caller.identity_id,
        submission=submission,
        attachment=content,
        attachment_filename=filename,
        attachment_content_type=content_type,
    )
    if result.success:
        return JSONResponse(
            status_code=status.HTTP_201_CREATED, content=result.model_dump(mode="json")
        )
    return action_response(result)
