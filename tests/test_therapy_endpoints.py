"""Tests des endpoints du catalogue des services."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.v1.api import router
from app.core.dependencies import get_backend_client, get_session_manager
from app.core.exceptions import backend_error_handler
from app.infrastructure.backend.client import SelectResult
from app.infrastructure.backend.exceptions import BackendError, BackendOperationError
from app.schemas.auth import SessionState, SessionUser

THERAPY_ROW = {
    "id": 2,
    "name": "Physiotherapy",
    "code": "PHY-01",
    "description": None,
    "is_active": True,
}


@pytest.fixture
def session_manager():
    manager = MagicMock()
    manager.state = SessionState(
        user=SessionUser(id="u-1", email="desk@example.com", role="admin"),
        token="access-1",
        is_authenticated=True,
        is_loading=False,
    )
    return manager


@pytest.fixture
def backend():
    return AsyncMock()


@pytest.fixture
def client(session_manager, backend):
    """Client de test FastAPI."""
    test_app = FastAPI()
    test_app.add_exception_handler(BackendError, backend_error_handler)
    test_app.dependency_overrides[get_session_manager] = lambda: session_manager
    test_app.dependency_overrides[get_backend_client] = lambda: backend
    test_app.include_router(router, prefix="/api/v1")
    return TestClient(test_app)


class TestTherapyEndpoints:
    def test_list_active_only(self, client, backend):
        backend.select.return_value = SelectResult(rows=[THERAPY_ROW], count=1)

        response = client.get("/api/v1/therapies", params={"active_only": "true"})

        assert response.status_code == 200
        assert response.json()["items"][0]["code"] == "PHY-01"
        query = backend.select.await_args.args[0]
        assert ("is_active", "eq.true") in query.filter_params()

    def test_get_missing_therapy(self, client, backend):
        backend.select_maybe_single.return_value = None

        response = client.get("/api/v1/therapies/99")

        assert response.status_code == 404
        assert response.json()["detail"] == "Service 99 non trouvé"

    def test_create_blank_description_is_null(self, client, backend):
        backend.insert.return_value = THERAPY_ROW

        response = client.post(
            "/api/v1/therapies",
            json={"name": "Physiotherapy", "code": "PHY-01", "description": "   "},
        )

        assert response.status_code == 201
        assert backend.insert.await_args.args[1]["description"] is None

    def test_create_duplicate_code(self, client, backend):
        backend.insert.side_effect = BackendOperationError(
            status_code=409, message="duplicate key value", code="23505"
        )

        response = client.post("/api/v1/therapies", json={"name": "Physiotherapy", "code": "PHY-01"})

        assert response.status_code == 409
        assert response.json()["backend_code"] == "23505"

    def test_update_missing_therapy(self, client, backend):
        backend.update.return_value = []

        response = client.patch("/api/v1/therapies/99", json={"is_active": False})

        assert response.status_code == 404

    def test_update_therapy(self, client, backend):
        backend.update.return_value = [{**THERAPY_ROW, "is_active": False}]

        response = client.patch("/api/v1/therapies/2", json={"is_active": False})

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        values = backend.update.await_args.args[1]
        assert values["is_active"] is False
        assert "name" not in values

    def test_delete_unknown_therapy(self, client, backend):
        backend.select_maybe_single.return_value = None

        response = client.delete("/api/v1/therapies/99")

        assert response.status_code == 404
        backend.delete.assert_not_called()

    def test_delete_therapy(self, client, backend):
        backend.select_maybe_single.return_value = THERAPY_ROW

        response = client.delete("/api/v1/therapies/2")

        assert response.status_code == 204
        assert backend.delete.await_args.args[0].filter_params() == [("id", "eq.2")]
