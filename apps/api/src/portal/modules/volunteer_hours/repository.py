"""
Volunteer Hours Repository

Database operations for hour requests and the hour ledger. Decisions on
a request are conditional updates keyed on the pending status, so two
admins acting at once cannot both decide the same request.
"""

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.modules.students.models import Student

from .models import HourLedgerEntry, HourRequest, HourRequestStatus

# ============================================
# Status Transitions
# ============================================

VALID_STATUS_TRANSITIONS: dict[HourRequestStatus, set[HourRequestStatus]] = {
    HourRequestStatus.PENDING: {HourRequestStatus.APPROVED, HourRequestStatus.REJECTED},
    # Terminal states
    HourRequestStatus.APPROVED: set(),
    HourRequestStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, current_status: HourRequestStatus, new_status: HourRequestStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {[s.value for s in valid_transitions]}"
        )


# ============================================
# Hour Requests
# ============================================


async def create_request(db: AsyncSession, **fields) -> HourRequest:
    """Create a new pending hour request."""
    request = HourRequest(status=HourRequestStatus.PENDING, **fields)

    db.add(request)
    await db.commit()
    await db.refresh(request)

    return request


async def get_by_id(db: AsyncSession, request_id: UUID) -> HourRequest | None:
    return await db.get(HourRequest, request_id)


async def get_pending_with_students(db: AsyncSession) -> list[tuple[HourRequest, Student]]:
    """Pending requests with their students, oldest first."""
    result = await db.execute(
        select(HourRequest, Student)
        .join(Student, Student.id == HourRequest.student_id)
        .where(HourRequest.status == HourRequestStatus.PENDING)
        .order_by(HourRequest.created_at.asc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_requests_for_student(db: AsyncSession, student_id: int) -> list[HourRequest]:
    """A student's own requests, newest first."""
    result = await db.execute(
        select(HourRequest)
        .where(HourRequest.student_id == student_id)
        .order_by(HourRequest.created_at.desc())
    )
    return list(result.scalars().all())


async def mark_decided(
    db: AsyncSession,
    request_id: UUID,
    new_status: HourRequestStatus,
    **fields,
) -> bool:
    """
    Move a pending request to a terminal status.

    The UPDATE only matches while the request is still pending.

    Returns:
        True if this call decided the request, False if it was no longer pending

    Raises:
        InvalidStatusTransitionError: new_status is not reachable from pending
    """
    if new_status not in VALID_STATUS_TRANSITIONS[HourRequestStatus.PENDING]:
        raise InvalidStatusTransitionError(HourRequestStatus.PENDING, new_status)

    result = await db.execute(
        update(HourRequest)
        .where(
            HourRequest.id == request_id,
            HourRequest.status == HourRequestStatus.PENDING,
        )
        .values(status=new_status, **fields)
    )
    await db.commit()
    return result.rowcount == 1


# ============================================
# Hour Ledger
# ============================================


async def create_ledger_entry(db: AsyncSession, **fields) -> HourLedgerEntry:
    """Insert a ledger entry."""
    entry = HourLedgerEntry(**fields)

    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    return entry


async def delete_ledger_entry(db: AsyncSession, entry_id: UUID) -> None:
    """Remove a ledger entry written by an approval that lost a race."""
    await db.execute(delete(HourLedgerEntry).where(HourLedgerEntry.id == entry_id))
    await db.commit()


async def get_ledger_for_scholar(
    db: AsyncSession, scholar_internal_id: str
) -> list[HourLedgerEntry]:
    result = await db.execute(
        select(HourLedgerEntry)
        .where(HourLedgerEntry.scholar_internal_id == scholar_internal_id)
        .order_by(HourLedgerEntry.activity_date.desc())
    )
    return list(result.scalars().all())


async def get_total_hours(db: AsyncSession, scholar_internal_id: str) -> float:
    """Sum of credited hours for a scholar."""
    result = await db.execute(
        select(func.coalesce(func.sum(HourLedgerEntry.hours), 0)).where(
            HourLedgerEntry.scholar_internal_id == scholar_internal_id
        )
    )
    return float(result.scalar() or 0)
