"""
Notifications Router
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.auth import CallerContext, get_caller
from portal.core.database import get_db
from portal.modules.notifications import service
from portal.modules.notifications.schemas import NotificationListResponse
from portal.modules.shared import ActionResult, action_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=NotificationListResponse, summary="List Notifications")
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> NotificationListResponse:
    """Latest 10 notifications of the caller and the unread count."""
    return await service.list_notifications(db, caller.identity_id)


@router.post("/marcar-leidas", response_model=ActionResult, summary="Mark All Read")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> JSONResponse:
    result = await service.mark_all_read(db, caller.identity_id)
    return action_response(result)


@router.delete("/{notification_id}", response_model=ActionResult, summary="Delete Notification")
async def delete_notification(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> JSONResponse:
    """Delete one of the caller's notifications."""
    result = await service.delete_notification(db, caller.identity_id, notification_id)
    return action_response(result)


@router.delete("", response_model=ActionResult, summary="Delete All Notifications")
async def delete_all_notifications(
    db: AsyncSession = Depends(get_db),
    caller: CallerContext = Depends(get_caller),
) -> JSONResponse:
    result = await service.delete_all_notifications(db, caller.identity_id)
    return action_response(result)
