"""
Tests for the admin hour decision endpoints: status codes per outcome.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from portal.core import rate_limit
from portal.core.auth import require_admin
from portal.core.database import get_db
from portal.modules.shared import (
    ActionResult,
    AlreadyProcessedError,
    PartialFailureError,
)
from portal.modules.volunteer_hours.admin_router import router

ROUTER = "portal.modules.volunteer_hours.admin_router"


@pytest.fixture
def client(admin_caller):
    app = FastAPI()
    app.include_router(router, prefix="/admin")

    async def _db():
        yield MagicMock()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[require_admin] = lambda: admin_caller

    rate_limit._memory_store.clear()
    rate_limit._memory_expires.clear()
    with patch("portal.core.rate_limit.get_redis", return_value=None):
        yield TestClient(app)
    rate_limit._memory_store.clear()
    rate_limit._memory_expires.clear()


def test_approve_with_override(client, admin_caller):
    request_id = uuid4()
    with patch(f"{ROUTER}.service.approve_request", new_callable=AsyncMock) as approve:
        approve.return_value = ActionResult.ok("Solicitud aprobada.")

        response = client.post(
            f"/admin/solicitudes/{request_id}/aprobar",
            json={"hours": 5, "notes": "partial credit"},
        )

    assert response.status_code == 200
    assert response.json()["success"] is True
    args = approve.await_args
    assert args.args[1] == request_id
    assert args.kwargs["hours"] == 5
    assert args.kwargs["notes"] == "partial credit"
    assert args.kwargs["reviewer_id"] == admin_caller.identity_id


def test_approve_without_body(client):
    with patch(f"{ROUTER}.service.approve_request", new_callable=AsyncMock) as approve:
        approve.return_value = ActionResult.ok("ok")

        response = client.post(f"/admin/solicitudes/{uuid4()}/aprobar")

    assert response.status_code == 200
    assert approve.await_args.kwargs["hours"] is None


def test_partial_failure_is_207(client):
    with patch(f"{ROUTER}.service.approve_request", new_callable=AsyncMock) as approve:
        approve.return_value = ActionResult.failure(PartialFailureError("Las horas se registraron"))

        response = client.post(f"/admin/solicitudes/{uuid4()}/aprobar")

    assert response.status_code == 207
    assert response.json()["error"] == "PARTIAL_FAILURE"


def test_already_processed_is_409(client):
    with patch(f"{ROUTER}.service.reject_request", new_callable=AsyncMock) as reject:
        reject.return_value = ActionResult.failure(AlreadyProcessedError())

        response = client.post(
            f"/admin/solicitudes/{uuid4()}/rechazar", json={"reason": "Duplicada"}
        )

    assert response.status_code == 409
    assert reject.await_args.kwargs["reason"] == "Duplicada"


def test_invalid_request_id_is_422(client):
    response = client.post("/admin/solicitudes/not-a-uuid/aprobar")
    assert response.status_code == 422


def test_approvals_are_rate_limited(client):
    with patch(f"{ROUTER}.RATE_LIMIT_APPROVE", (1, 60)), patch(
        f"{ROUTER}.service.approve_request", new_callable=AsyncMock
    ) as approve:
        approve.return_value = ActionResult.ok("ok")

        first = client.post(f"/admin/solicitudes/{uuid4()}/aprobar")
        second = client.post(f"/admin/solicitudes/{uuid4()}/aprobar")

    assert first.status_code == 200
    assert second.status_code == 429
