"""
Students Router

Endpoints for the calling student:
- GET /dashboard - Student home
- GET /completar-perfil - Current wizard values
- POST /completar-perfil - Save the wizard and generate documents
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.auth import CallerContext, require_student
from portal.core.database import get_db
from portal.core.storage import ObjectStorage, get_storage
from portal.modules.shared import NotFoundError, action_response
from portal.modules.students import service
from portal.modules.students.schemas import (
    ProfileCompletionResult,
    ProfileResponse,
    ProfileWizardRequest,
    StudentDashboardResponse,
)

logger = logging.getLogger(__name__)

dashboard_router = APIRouter()
profile_router = APIRouter()


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": e.error_code.value, "message": e.message},
    )


@dashboard_router.get("", response_model=StudentDashboardResponse, summary="Student Dashboard")
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(require_student),
) -> StudentDashboardResponse:
    """Identity, profile state, document links and total credited hours."""
    try:
        return await service.get_dashboard(db, caller.student_id)
    except NotFoundError as e:
        raise _not_found(e)


@profile_router.get("", response_model=ProfileResponse, summary="Get Profile")
async def get_profile(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(require_student),
) -> ProfileResponse:
    try:
        return await service.get_profile(db, caller.student_id)
    except NotFoundError as e:
        raise _not_found(e)


@profile_router.post(
    "",
    response_model=ProfileCompletionResult,
    summary="Complete Profile",
    description="""
Save the profile wizard and generate the digital record and card.

The profile is saved even if document generation fails; the message then
carries a warning and the failed document shows status `failed`.
""",
)
async def complete_profile(
    payload: ProfileWizardRequest,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    caller: CallerContext = Depends(require_student),
) -> JSONResponse:
    result = await service.complete_profile(db, storage, caller.student_id, payload)
    return action_response(result)
