"""
Shared fixtures.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from portal.core.auth import CallerContext, CallerRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def admin_identity_id():
    """Return a consistent admin identity UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def student_identity_id():
    """Return a consistent student identity UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000042")


@pytest.fixture
def admin_caller(admin_identity_id):
    return CallerContext(
        identity_id=admin_identity_id,
        email="admin@becas.test",
        role=CallerRole.ADMIN,
        admin_id=UUID("00000000-0000-0000-0000-0000000000a1"),
    )


@pytest.fixture
def student_caller(student_identity_id):
    return CallerContext(
        identity_id=student_identity_id,
        email="jane@correo.test",
        role=CallerRole.STUDENT,
        student_id=42,
    )
