"""
Students Repository

Database operations for student rows. Mutations that guard against
concurrent callers (token consumption) are single conditional UPDATE
statements whose affected-row count tells the caller whether it won.
"""

from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import RESET_FIELDS, DocumentKind, DocumentStatus, Student

# Sentinel for "leave this column unchanged"
_UNSET = object()


async def get_by_id(db: AsyncSession, student_id: int) -> Student | None:
    return await db.get(Student, student_id)


async def get_by_internal_id(db: AsyncSession, scholar_internal_id: str) -> Student | None:
    result = await db.execute(
        select(Student).where(Student.scholar_internal_id == scholar_internal_id)
    )
    return result.scalar_one_or_none()


async def get_by_key(db: AsyncSession, key: str) -> Student | None:
    """
    Find a student by numeric id or by internal scholarship id.

    Admin screens address students by either value.
    """
    key = key.strip()
    if key.isdigit():
        student = await get_by_id(db, int(key))
        if student:
            return student
    return await get_by_internal_id(db, key)


async def get_by_activation_token(db: AsyncSession, token: str) -> Student | None:
    result = await db.execute(select(Student).where(Student.activation_token == token))
    return result.scalar_one_or_none()


async def get_by_credential_id(db: AsyncSession, credential_id: UUID) -> Student | None:
    result = await db.execute(select(Student).where(Student.linked_credential_id == credential_id))
    return result.scalar_one_or_none()


async def consume_activation_token(
    db: AsyncSession,
    token: str,
    credential_id: UUID,
    personal_email: str,
) -> bool:
    """
    Link a credential and burn the activation token in one statement.

    The completion flag and the token clear are written together so a
    consumed token can never be replayed.

    Returns:
        True if this call consumed the token, False if another caller
        already did (or the token no longer exists)
    """
    result = await db.execute(
        update(Student)
        .where(
            Student.activation_token == token,
            Student.onboarding_completed.is_(False),
        )
        .values(
            linked_credential_id=credential_id,
            personal_email=personal_email,
            onboarding_completed=True,
            activation_token=None,
        )
    )
    await db.commit()
    return result.rowcount == 1


async def unlink_credential(db: AsyncSession, student_id: int, new_token: str) -> bool:
    """
    Detach the login identity and issue a fresh activation token.

    Returns:
        True if the student row was updated
    """
    result = await db.execute(
        update(Student)
        .where(Student.id == student_id)
        .values(
            linked_credential_id=None,
            onboarding_completed=False,
            activation_token=new_token,
        )
    )
    await db.commit()
    return result.rowcount == 1


async def reset_profile(db: AsyncSession, student_id: int) -> bool:
    """
    Null every wizard field and both document URLs.

    Account linkage (credential and onboarding flag) is left untouched.
    """
    values: dict = {field: None for field in RESET_FIELDS}
    values["card_status"] = DocumentStatus.NOT_GENERATED
    values["record_status"] = DocumentStatus.NOT_GENERATED

    result = await db.execute(update(Student).where(Student.id == student_id).values(**values))
    await db.commit()
    return result.rowcount == 1


async def update_profile(db: AsyncSession, student: Student, **fields) -> Student:
    """Apply wizard fields to a student row."""
    for key, value in fields.items():
        if hasattr(student, key):
            setattr(student, key, value)

    await db.commit()
    await db.refresh(student)
    return student


async def set_document_state(
    db: AsyncSession,
    student_id: int,
    kind: DocumentKind,
    status: DocumentStatus,
    url: str | None | object = _UNSET,
) -> None:
    """Record the status (and optionally URL) of one generated document."""
    values: dict = {kind.status_field: status}
    if url is not _UNSET:
        values[kind.url_field] = url

    await db.execute(update(Student).where(Student.id == student_id).values(**values))
    await db.commit()


async def get_students_for_admin(
    db: AsyncSession,
    *,
    search: str | None = None,
    onboarding_completed: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Student], int]:
    """
    List students for the admin screen with search and pagination.

    Args:
        db: Database session
        search: Case-insensitive match on name, internal id or emails
        onboarding_completed: Optional activation filter
        page: Page number (1-based)
        page_size: Items per page

    Returns:
        Tuple of (students, total_count)
    """
    conditions = []

    if search:
        term = f"%{search.strip()}%"
        conditions.append(
            or_(
                Student.full_name.ilike(term),
                Student.scholar_internal_id.ilike(term),
                Student.personal_email.ilike(term),
                Student.institutional_email.ilike(term),
            )
        )

    if onboarding_completed is not None:
        conditions.append(Student.onboarding_completed.is_(onboarding_completed))

    count_query = select(func.count()).select_from(Student)
    query = select(Student)
    if conditions:
        count_query = count_query.where(*conditions)
        query = query.where(*conditions)

    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * page_size
    query = query.order_by(Student.full_name.asc(), Student.id.asc()).offset(offset).limit(page_size)
    result = await db.execute(query)

    return list(result.scalars().all()), total
