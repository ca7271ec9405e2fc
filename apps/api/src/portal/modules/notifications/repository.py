"""
Notifications Repository

Every query is scoped to the recipient so one identity can never see or
delete another's notifications.
"""

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Notification


async def create(db: AsyncSession, recipient_id: UUID, title: str, body: str) -> Notification:
    notification = Notification(recipient_id=recipient_id, title=title, body=body, read=False)

    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    return notification


async def get_recent(db: AsyncSession, recipient_id: UUID, limit: int) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(Notification.recipient_id == recipient_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, recipient_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
    )
    return result.scalar() or 0


async def mark_all_read(db: AsyncSession, recipient_id: UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    return result.rowcount


async def delete_one(db: AsyncSession, notification_id: UUID, recipient_id: UUID) -> bool:
    """Delete a notification if it belongs to the recipient."""
    result = await db.execute(
        delete(Notification).where(
            Notification.id == notification_id,
            Notification.recipient_id == recipient_id,
        )
    )
    await db.commit()
    return result.rowcount == 1


async def delete_all(db: AsyncSession, recipient_id: UUID) -> int:
    result = await db.execute(
        delete(Notification).where(Notification.recipient_id == recipient_id)
    )
    await db.commit()
    return result.rowcount
