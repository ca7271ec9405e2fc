"""
Tests for hour request submission and attachment handling.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from portal.core.config import settings
from portal.core.storage import ObjectAlreadyExistsError
from portal.modules.shared import ErrorCode, ValidationFailedError
from portal.modules.volunteer_hours.models import HourRequestStatus
from portal.modules.volunteer_hours.schemas import HourRequestSubmission
from portal.modules.volunteer_hours.service import (
    attachment_key,
    submit_request,
    validate_attachment,
)

SERVICE = "portal.modules.volunteer_hours.service"
CREDENTIAL_ID = UUID("6f1c2d3e-4a5b-4c6d-8e7f-901234567890")


def _submission(**overrides) -> HourRequestSubmission:
    data = {
        "activity_date": date(2026, 9, 12),
        "activity_name": "Jornada de limpieza",
        "requested_hours": 4,
        "supervisor": "Lic. Martínez",
    }
    data.update(overrides)
    return HourRequestSubmission(**data)


def _stored_request(**fields):
    request = MagicMock()
    request.id = uuid4()
    request.student_id = 42
    request.activity_date = date(2026, 9, 12)
    request.activity_name = "Jornada de limpieza"
    request.requested_hours = 4
    request.supervisor = fields.get("supervisor", "Lic. Martínez")
    request.attachment_url = fields.get("attachment_url")
    request.status = HourRequestStatus.PENDING
    request.approved_hours = None
    request.reviewer_notes = None
    request.rejection_reason = None
    request.created_at = datetime(2026, 9, 13, tzinfo=UTC)
    return request


@pytest.fixture
def storage():
    storage = MagicMock()
    storage.upload = AsyncMock(return_value="http://localhost:9000/bitacoras/file.pdf")
    return storage


# ============================================
# Submission schema
# ============================================


class TestHourRequestSubmission:
    def test_blank_supervisor_becomes_none(self):
        assert _submission(supervisor="   ").supervisor is None

    def test_strips_activity_name(self):
        assert _submission(activity_name="  Tutoría  ").activity_name == "Tutoría"

    @pytest.mark.parametrize("hours", [0, -1, 1001])
    def test_rejects_out_of_range_hours(self, hours):
        with pytest.raises(ValidationError):
            _submission(requested_hours=hours)

    def test_rejects_empty_activity_name(self):
        with pytest.raises(ValidationError):
            _submission(activity_name="   ")


# ============================================
# Attachments
# ============================================


class TestAttachments:
    @pytest.mark.parametrize("content_type", ["image/jpeg", "image/png", "application/pdf"])
    def test_accepts_allowed_types(self, content_type):
        validate_attachment(b"data", content_type)

    def test_rejects_other_types(self):
        with pytest.raises(ValidationFailedError, match="Formato de archivo no permitido"):
            validate_attachment(b"data", "application/zip")

    def test_rejects_oversized_file(self):
        content = b"x" * (settings.attachment_max_bytes + 1)
        with pytest.raises(ValidationFailedError, match="demasiado grande"):
            validate_attachment(content, "application/pdf")

    def test_key_uses_credential_and_milliseconds(self):
        key = attachment_key(CREDENTIAL_ID, "bitacora.PNG", now=1_700_000_000.123)
        assert key == f"{CREDENTIAL_ID}_1700000000123.png"

    @pytest.mark.parametrize("filename", [None, "", "sin_extension"])
    def test_key_defaults_to_pdf(self, filename):
        assert attachment_key(CREDENTIAL_ID, filename, now=1.0).endswith(".pdf")


# ============================================
# submit_request
# ============================================


@pytest.mark.asyncio
async def test_submit_without_attachment(mock_db, storage):
    with patch(f"{SERVICE}.repository") as repo:
        repo.create_request = AsyncMock(return_value=_stored_request())

        result = await submit_request(mock_db, storage, 42, CREDENTIAL_ID, _submission())

    assert result.success is True
    assert result.request is not None
    storage.upload.assert_not_called()
    fields = repo.create_request.await_args.kwargs
    assert fields["attachment_url"] is None
    assert fields["credential_id"] == CREDENTIAL_ID


@pytest.mark.asyncio
async def test_submit_defaults_supervisor(mock_db, storage):
    with patch(f"{SERVICE}.repository") as repo:
        repo.create_request = AsyncMock(return_value=_stored_request(supervisor="N/A"))

        await submit_request(mock_db, storage, 42, CREDENTIAL_ID, _submission(supervisor=None))

    assert repo.create_request.await_args.kwargs["supervisor"] == "N/A"


@pytest.mark.asyncio
async def test_submit_uploads_attachment_without_overwrite(mock_db, storage):
    with patch(f"{SERVICE}.repository") as repo:
        repo.create_request = AsyncMock(
            return_value=_stored_request(attachment_url="http://localhost:9000/bitacoras/file.pdf")
        )

        result = await submit_request(
            mock_db,
            storage,
            42,
            CREDENTIAL_ID,
            _submission(),
            attachment=b"%PDF-1.4",
            attachment_filename="bitacora.pdf",
            attachment_content_type="application/pdf",
        )

    assert result.success is True
    args = storage.upload.await_args
    assert args.args[0] == settings.attachments_bucket
    assert args.args[1].startswith(f"{CREDENTIAL_ID}_")
    assert args.kwargs["overwrite"] is False
    assert repo.create_request.await_args.kwargs["attachment_url"].endswith("file.pdf")


@pytest.mark.asyncio
async def test_submit_rejects_bad_attachment_before_upload(mock_db, storage):
    with patch(f"{SERVICE}.repository") as repo:
        result = await submit_request(
            mock_db,
            storage,
            42,
            CREDENTIAL_ID,
            _submission(),
            attachment=b"PK",
            attachment_filename="notas.zip",
            attachment_content_type="application/zip",
        )

    assert result.error == ErrorCode.VALIDATION_FAILED
    storage.upload.assert_not_called()
    repo.create_request.assert_not_called()


@pytest.mark.asyncio
async def test_submit_failed_upload_writes_no_request(mock_db, storage):
    storage.upload = AsyncMock(side_effect=ObjectAlreadyExistsError("bitacoras", "key.pdf"))

    with patch(f"{SERVICE}.repository") as repo:
        result = await submit_request(
            mock_db,
            storage,
            42,
            CREDENTIAL_ID,
            _submission(),
            attachment=b"%PDF-1.4",
            attachment_filename="bitacora.pdf",
            attachment_content_type="application/pdf",
        )

    assert result.success is False
    assert result.error == ErrorCode.UPSTREAM_UNAVAILABLE
    repo.create_request.assert_not_called()
