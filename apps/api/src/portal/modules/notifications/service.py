"""
Notifications Service
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.modules.notifications import repository
from portal.modules.notifications.schemas import NotificationListResponse, NotificationResponse
from portal.modules.shared import ActionResult, NotFoundError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10


async def list_notifications(db: AsyncSession, recipient_id: UUID) -> NotificationListResponse:
    """Latest notifications for the recipient plus the unread count."""
    items = await repository.get_recent(db, recipient_id, RECENT_LIMIT)
    unread = await repository.count_unread(db, recipient_id)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item) for item in items],
        unread_count=unread,
    )


async def mark_all_read(db: AsyncSession, recipient_id: UUID) -> ActionResult:
    try:
        updated = await repository.mark_all_read(db, recipient_id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"mark_all_read failed for {recipient_id}: {e}")
        return ActionResult.failure(UpstreamUnavailableError())
    logger.info(f"Marked {updated} notifications read for {recipient_id}")
    return ActionResult.ok("Notificaciones marcadas como leídas.")


async def delete_notification(
    db: AsyncSession, recipient_id: UUID, notification_id: UUID
) -> ActionResult:
    try:
        deleted = await repository.delete_one(db, notification_id, recipient_id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"delete_notification failed for {notification_id}: {e}")
        return ActionResult.failure(UpstreamUnavailableError())

    if not deleted:
        return ActionResult.failure(NotFoundError("Notificación no encontrada."))
    return ActionResult.ok("Notificación eliminada.")


async def delete_all_notifications(db: AsyncSession, recipient_id: UUID) -> ActionResult:
    try:
        deleted = await repository.delete_all(db, recipient_id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"delete_all_notifications failed for {recipient_id}: {e}")
        return ActionResult.failure(UpstreamUnavailableError())
    logger.info(f"Deleted {deleted} notifications for {recipient_id}")
    return ActionResult.ok("Notificaciones eliminadas.")


async def notify(db: AsyncSession, recipient_id: UUID | None, title: str, body: str) -> bool:
    """
    Create a notification as a side effect of another operation.

    Never raises: a failed notification must not fail the caller.
    """
    if recipient_id is None:
        return False
    try:
        await repository.create(db, recipient_id, title, body)
        return True
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to create notification for {recipient_id}: {e}")
        await db.rollback()
        return False
