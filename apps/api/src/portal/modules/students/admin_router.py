"""
Students Admin Router

Endpoints:
- GET /admin/estudiantes - Student list with search and pagination
- POST /admin/estudiantes/{key}/resetear - Clear profile wizard data
- POST /admin/estudiantes/{key}/desvincular - Detach login, issue new token

``key`` is the numeric student id or the internal scholarship id.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.auth import CallerContext, require_admin
from portal.core.database import get_db
from portal.core.rate_limit import RateLimitExceeded, check_rate_limit
from portal.modules.activation import service as activation_service
from portal.modules.credentials import CredentialStore, get_credential_store
from portal.modules.shared import ActionResult, action_response
from portal.modules.students import service
from portal.modules.students.schemas import StudentListResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_RESET = (20, 60)  # 20 resets per minute
RATE_LIMIT_UNLINK = (10, 60)  # 10 unlinks per minute


async def _check_admin_rate_limit(
    admin: CallerContext,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    key = f"admin:{action}:{admin.identity_id}"
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(
            f"Rate limit exceeded for admin {admin.identity_id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


@router.get("", response_model=StudentListResponse, summary="List Students")
async def list_students(
    search: str | None = Query(None, max_length=100, description="Name, id or email"),
    onboarding_completed: bool | None = Query(None, description="Filter by activation"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: CallerContext = Depends(require_admin),
) -> StudentListResponse:
    try:
        return await service.admin_list_students(
            db,
            search=search,
            onboarding_completed=onboarding_completed,
            page=page,
            page_size=page_size,
        )
    except Exception as e:
        logger.exception(f"Error listing students: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "Ocurrió un error inesperado.",
            },
        ) from e


@router.post("/{key}/resetear", response_model=ActionResult, summary="Reset Student Profile")
async def reset_student(
    key: str,
    db: AsyncSession = Depends(get_db),
    admin: CallerContext = Depends(require_admin),
) -> JSONResponse:
    """
    Null every wizard field and both document links.

    The student's login and onboarding flag are kept.
    """
    await _check_admin_rate_limit(admin, "reset_student", *RATE_LIMIT_RESET)

    result = await activation_service.reset_student(db, key)
    logger.info(f"Admin {admin.identity_id} reset student {key}: success={result.success}")
    return action_response(result)


@router.post("/{key}/desvincular", response_model=ActionResult, summary="Unlink Student Account")
async def unlink_student(
    key: str,
    db: AsyncSession = Depends(get_db),
    credential_store: CredentialStore = Depends(get_credential_store),
    admin: CallerContext = Depends(require_admin),
) -> JSONResponse:
    """
    Detach the student's login and issue a new activation token.

    Answers 207 with error `PARTIAL_FAILURE` when the student was detached
    but the old login could not be deleted.
    """
    await _check_admin_rate_limit(admin, "unlink_student", *RATE_LIMIT_UNLINK)

    result = await activation_service.unlink_student(db, key, credential_store)
    logger.info(f"Admin {admin.identity_id} unlinked student {key}: success={result.success}")
    return action_response(result)
