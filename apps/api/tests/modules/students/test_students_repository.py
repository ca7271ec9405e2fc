"""
Tests for the student repository's conditional updates.

Statements are captured from the mock session and compiled, so the
tests check the SQL parameters that would reach the database.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from portal.modules.students import repository
from portal.modules.students.models import RESET_FIELDS, DocumentStatus, Student


def _column(attribute: str) -> str:
    return Student.__mapper__.attrs[attribute].columns[0].name


def _executed_params(mock_db) -> dict:
    statement = mock_db.execute.await_args.args[0]
    return statement.compile().params


def _rowcount(mock_db, count: int) -> None:
    result = MagicMock()
    result.rowcount = count
    mock_db.execute.return_value = result


@pytest.mark.asyncio
async def test_reset_profile_nulls_every_reset_field(mock_db):
    _rowcount(mock_db, 1)

    assert await repository.reset_profile(mock_db, 42) is True

    params = _executed_params(mock_db)
    for field in RESET_FIELDS:
        assert params[_column(field)] is None, field
    assert params[_column("card_status")] == DocumentStatus.NOT_GENERATED
    assert params[_column("record_status")] == DocumentStatus.NOT_GENERATED
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_reset_profile_keeps_account_linkage(mock_db):
    _rowcount(mock_db, 1)

    await repository.reset_profile(mock_db, 42)

    params = _executed_params(mock_db)
    assert _column("linked_credential_id") not in params
    assert _column("onboarding_completed") not in params
    assert _column("activation_token") not in params


@pytest.mark.asyncio
async def test_consume_activation_token_burns_token(mock_db):
    _rowcount(mock_db, 1)
    credential_id = uuid4()

    consumed = await repository.consume_activation_token(
        mock_db, "token-123", credential_id, "jane@correo.test"
    )

    assert consumed is True
    params = _executed_params(mock_db)
    assert params[_column("activation_token")] is None
    assert params[_column("onboarding_completed")] is True
    assert params[_column("linked_credential_id")] == credential_id
    assert params[_column("personal_email")] == "jane@correo.test"

    # The WHERE clause guards on the token and the completion flag
    statement = mock_db.execute.await_args.args[0]
    where = str(statement.whereclause)
    assert "onboarding_token" in where
    assert "ha_completado_onboarding" in where


@pytest.mark.asyncio
async def test_consume_activation_token_lost_race(mock_db):
    _rowcount(mock_db, 0)

    assert await repository.consume_activation_token(mock_db, "t", uuid4(), "a@b.c") is False


@pytest.mark.asyncio
async def test_unlink_credential_issues_new_token(mock_db):
    _rowcount(mock_db, 1)

    assert await repository.unlink_credential(mock_db, 42, "new-token") is True

    params = _executed_params(mock_db)
    assert params[_column("linked_credential_id")] is None
    assert params[_column("onboarding_completed")] is False
    assert params[_column("activation_token")] == "new-token"


@pytest.mark.asyncio
async def test_get_by_key_prefers_numeric_id(mock_db):
    student = MagicMock(spec=Student)
    mock_db.get.return_value = student

    assert await repository.get_by_key(mock_db, " 42 ") is student
    mock_db.get.assert_awaited_once_with(Student, 42)
    mock_db.execute.assert_not_called()


@pytest.mark.asyncio
async def test_get_by_key_falls_back_to_internal_id(mock_db):
    student = MagicMock(spec=Student)
    result = MagicMock()
    result.scalar_one_or_none.return_value = student
    mock_db.execute.return_value = result

    assert await repository.get_by_key(mock_db, "BDI-042") is student
    mock_db.get.assert_not_called()
