"""
Volunteer Hours Admin Router

Endpoints:
- GET /admin/dashboard - Pending hour requests
- POST /admin/solicitudes/{id}/aprobar - Approve and credit hours
- POST /admin/solicitudes/{id}/rechazar - Reject

All endpoints require an admin caller. Decisions are rate limited per
admin and return the uniform ``{success, message}`` result; a partially
applied approval answers 207 with error ``PARTIAL_FAILURE``.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.auth import CallerContext, require_admin
from portal.core.database import get_db
from portal.core.rate_limit import RateLimitExceeded, check_rate_limit
from portal.modules.shared import ActionResult, action_response
from portal.modules.volunteer_hours import service
from portal.modules.volunteer_hours.schemas import (
    AdminDashboardResponse,
    ApproveRequest,
    RejectRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_APPROVE = (30, 60)  # 30 approvals per minute
RATE_LIMIT_REJECT = (30, 60)  # 30 rejections per minute


async def _check_admin_rate_limit(
    admin: CallerContext,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Check rate limit for an admin action.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    key = f"admin:{action}:{admin.identity_id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin.identity_id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


# ============================================
# Endpoints
# ============================================


@router.get(
    "/dashboard",
    response_model=AdminDashboardResponse,
    summary="Pending Hour Requests",
)
async def get_admin_dashboard(
    db: AsyncSession = Depends(get_db),
    admin: CallerContext = Depends(require_admin),
) -> AdminDashboardResponse:
    """Pending requests with student name and internal id, oldest first."""
    try:
        return await service.admin_list_pending(db)
    except Exception as e:
        logger.exception(f"Error getting admin dashboard: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "Ocurrió un error inesperado.",
            },
        ) from e


@router.post(
    "/solicitudes/{request_id}/aprobar",
    response_model=ActionResult,
    summary="Approve Hour Request",
    description="""
Approve a pending request and credit the hour ledger.

`hours` overrides the requested hour count and must be greater than 0.

**Responses:** 200 approved, 404 unknown request, 409 already processed,
422 invalid hours or incomplete student record, 207 ledger credited but
request status not updated (do not retry; fix the request status).
""",
)
async def approve_hour_request(
    request_id: UUID,
    payload: ApproveRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    admin: CallerContext = Depends(require_admin),
) -> JSONResponse:
    await _check_admin_rate_limit(admin, "approve_hours", *RATE_LIMIT_APPROVE)

    payload = payload or ApproveRequest()
    result = await service.approve_request(
        db,
        request_id,
        reviewer_id=admin.identity_id,
        hours=payload.hours,
        notes=payload.notes,
    )
    if result.is_partial:
        logger.error(f"Approval of {request_id} by {admin.identity_id} partially applied")
    return action_response(result)


@router.post(
    "/solicitudes/{request_id}/rechazar",
    response_model=ActionResult,
    summary="Reject Hour Request",
)
async def reject_hour_request(
    request_id: UUID,
    payload: RejectRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    admin: CallerContext = Depends(require_admin),
) -> JSONResponse:
    """Reject a pending request. Nothing is credited."""
    await _check_admin_rate_limit(admin, "reject_hours", *RATE_LIMIT_REJECT)

    payload = payload or RejectRequest()
    result = await service.reject_request(
        db, request_id, reviewer_id=admin.identity_id, reason=payload.reason
    )
    return action_response(result)
