"""
Tests for the hour approval workflow.

These tests verify:
- Crediting the ledger with the requested or overridden hours
- Idempotence of repeated approvals
- Partial failure reporting when the status update fails
- Compensation when another admin decides the request first
- Rejection
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from portal.modules.shared import ErrorCode
from portal.modules.students.models import Student
from portal.modules.volunteer_hours.models import (
    HourLedgerEntry,
    HourRequest,
    HourRequestStatus,
)
from portal.modules.volunteer_hours.service import approve_request, reject_request

SERVICE = "portal.modules.volunteer_hours.service"


# ============================================
# Fixtures
# ============================================


@pytest.fixture
def request_id():
    return uuid4()


@pytest.fixture
def pending_request(request_id, student_identity_id):
    """Jane Doe asks for 4 hours."""
    request = MagicMock(spec=HourRequest)
    request.id = request_id
    request.student_id = 42
    request.credential_id = student_identity_id
    request.activity_date = date(2026, 9, 12)
    request.activity_name = "Jornada de limpieza"
    request.requested_hours = 4
    request.supervisor = "Lic. Martínez"
    request.status = HourRequestStatus.PENDING
    request.created_at = datetime(2026, 9, 13, tzinfo=UTC)
    return request


@pytest.fixture
def student():
    student = MagicMock(spec=Student)
    student.id = 42
    student.full_name = "Jane Doe"
    student.scholar_internal_id = "BDI-042"
    return student


@pytest.fixture
def ledger_entry():
    entry = MagicMock(spec=HourLedgerEntry)
    entry.id = uuid4()
    return entry


@pytest.fixture
def repo(pending_request, ledger_entry):
    """Patched volunteer hours repository with a successful happy path."""
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=pending_request)
        mock_repo.create_ledger_entry = AsyncMock(return_value=ledger_entry)
        mock_repo.mark_decided = AsyncMock(return_value=True)
        mock_repo.delete_ledger_entry = AsyncMock()
        yield mock_repo


@pytest.fixture
def students(student):
    with patch(f"{SERVICE}.student_repository") as mock_students:
        mock_students.get_by_id = AsyncMock(return_value=student)
        yield mock_students


@pytest.fixture
def notify():
    with patch(f"{SERVICE}.notify", new_callable=AsyncMock, return_value=True) as mock_notify:
        yield mock_notify


def _db_error():
    return OperationalError("UPDATE", {}, Exception("server closed the connection"))


# ============================================
# approve_request
# ============================================


@pytest.mark.asyncio
async def test_approve_with_override_credits_ledger(
    mock_db, request_id, admin_identity_id, repo, students, notify
):
    """Override 4 requested hours to 5 with a note."""
    result = await approve_request(
        mock_db, request_id, admin_identity_id, hours=5, notes="partial credit"
    )

    assert result.success is True
    assert result.error is None

    ledger_fields = repo.create_ledger_entry.await_args.kwargs
    assert ledger_fields["hours"] == 5
    assert ledger_fields["scholar_internal_id"] == "BDI-042"
    assert ledger_fields["scholar_full_name"] == "Jane Doe"
    assert ledger_fields["request_id"] == request_id
    assert ledger_fields["status"] == "validado"

    args = repo.mark_decided.await_args
    assert args.args[2] is HourRequestStatus.APPROVED
    assert args.kwargs["approved_hours"] == 5
    assert args.kwargs["reviewer_notes"] == "partial credit"
    assert args.kwargs["reviewed_by"] == admin_identity_id
    notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_approve_without_override_uses_requested_hours(
    mock_db, request_id, admin_identity_id, repo, students, notify
):
    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.success is True
    assert repo.create_ledger_entry.await_args.kwargs["hours"] == 4


@pytest.mark.asyncio
async def test_approve_twice_is_already_processed(
    mock_db, request_id, admin_identity_id, pending_request, repo, students, notify
):
    first = await approve_request(mock_db, request_id, admin_identity_id)
    assert first.success is True

    pending_request.status = HourRequestStatus.APPROVED
    second = await approve_request(mock_db, request_id, admin_identity_id)

    assert second.success is False
    assert second.error == ErrorCode.ALREADY_PROCESSED
    assert second.message == "Esta solicitud ya ha sido procesada."
    assert repo.create_ledger_entry.await_count == 1


@pytest.mark.asyncio
async def test_approve_unknown_request(mock_db, admin_identity_id, repo, students):
    repo.get_by_id = AsyncMock(return_value=None)

    result = await approve_request(mock_db, uuid4(), admin_identity_id)

    assert result.error == ErrorCode.NOT_FOUND
    repo.create_ledger_entry.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("hours", [0, -2, float("nan"), float("inf")])
async def test_approve_rejects_invalid_override(
    mock_db, request_id, admin_identity_id, repo, students, hours
):
    result = await approve_request(mock_db, request_id, admin_identity_id, hours=hours)

    assert result.error == ErrorCode.VALIDATION_FAILED
    repo.create_ledger_entry.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["full_name", "scholar_internal_id"])
async def test_approve_requires_student_name_and_internal_id(
    mock_db, request_id, admin_identity_id, student, repo, students, field
):
    setattr(student, field, "   ")

    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.VALIDATION_FAILED
    repo.create_ledger_entry.assert_not_called()


@pytest.mark.asyncio
async def test_approve_ledger_insert_failure_is_upstream(
    mock_db, request_id, admin_identity_id, repo, students
):
    repo.create_ledger_entry = AsyncMock(side_effect=_db_error())

    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.UPSTREAM_UNAVAILABLE
    repo.mark_decided.assert_not_called()


@pytest.mark.asyncio
async def test_approve_duplicate_ledger_entry_is_already_processed(
    mock_db, request_id, admin_identity_id, repo, students
):
    repo.create_ledger_entry = AsyncMock(
        side_effect=IntegrityError("INSERT", {}, Exception("duplicate key"))
    )

    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.ALREADY_PROCESSED
    repo.mark_decided.assert_not_called()


@pytest.mark.asyncio
async def test_approve_status_update_failure_is_partial(
    mock_db, request_id, admin_identity_id, repo, students, notify
):
    """Ledger written, request still pending: reported, not retried or undone."""
    repo.mark_decided = AsyncMock(side_effect=_db_error())

    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.success is False
    assert result.error == ErrorCode.PARTIAL_FAILURE
    assert result.is_partial is True
    repo.create_ledger_entry.assert_awaited_once()
    repo.delete_ledger_entry.assert_not_called()
    notify.assert_not_called()


@pytest.mark.asyncio
async def test_approve_lost_race_removes_ledger_entry(
    mock_db, request_id, admin_identity_id, ledger_entry, repo, students, notify
):
    repo.mark_decided = AsyncMock(return_value=False)

    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.ALREADY_PROCESSED
    repo.delete_ledger_entry.assert_awaited_once_with(mock_db, ledger_entry.id)
    notify.assert_not_called()


@pytest.mark.asyncio
async def test_approve_lost_race_with_failed_compensation_is_partial(
    mock_db, request_id, admin_identity_id, repo, students
):
    repo.mark_decided = AsyncMock(return_value=False)
    repo.delete_ledger_entry = AsyncMock(side_effect=_db_error())

    result = await approve_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.PARTIAL_FAILURE


# ============================================
# reject_request
# ============================================


@pytest.mark.asyncio
async def test_reject_pending_request(
    mock_db, request_id, admin_identity_id, repo, notify
):
    result = await reject_request(mock_db, request_id, admin_identity_id, reason="Sin bitácora")

    assert result.success is True
    args = repo.mark_decided.await_args
    assert args.args[2] is HourRequestStatus.REJECTED
    assert args.kwargs["rejection_reason"] == "Sin bitácora"
    repo.create_ledger_entry.assert_not_called()
    assert "Sin bitácora" in notify.await_args.args[3]


@pytest.mark.asyncio
async def test_reject_already_decided(
    mock_db, request_id, admin_identity_id, pending_request, repo, notify
):
    pending_request.status = HourRequestStatus.REJECTED

    result = await reject_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.ALREADY_PROCESSED
    repo.mark_decided.assert_not_called()


@pytest.mark.asyncio
async def test_reject_lost_race(mock_db, request_id, admin_identity_id, repo, notify):
    repo.mark_decided = AsyncMock(return_value=False)

    result = await reject_request(mock_db, request_id, admin_identity_id)

    assert result.error == ErrorCode.ALREADY_PROCESSED
    notify.assert_not_called()
