"""Tests unitaires pour le gestionnaire de session."""

import asyncio
import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.storage import LocalStorage
from app.infrastructure.backend.auth import AuthSession
from app.infrastructure.backend.exceptions import BackendAuthError, BackendConnectionError
from app.schemas.auth import SessionUser
from app.services.session_manager import REFRESH_JOB_ID, SessionManager

TOKEN_KEY = "auth_token"
USER_KEY = "auth_user"
REFRESH_KEY = "auth_refresh_token"

PROVIDER_USER = {
    "id": "u-1",
    "email": "desk@clinic.test",
    "user_metadata": {"name": "Desk", "role": "admin", "permissions": ["clients:write"]},
}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "session.json")


@pytest.fixture
def auth_client():
    """Client d'auth mocke."""
    client = AsyncMock()
    client.sign_in_with_password.return_value = AuthSession(
        access_token="access-1", refresh_token="refresh-1", expires_in=3600, user=PROVIDER_USER
    )
    client.refresh_session.return_value = AuthSession(
        access_token="access-2", refresh_token="refresh-2", expires_in=3600, user=PROVIDER_USER
    )
    client.verify_token.return_value = True
    return client


@pytest.fixture
def backend_client():
    return MagicMock()


@pytest.fixture
def scheduler():
    """Scheduler mocke sans job planifie."""
    mock = MagicMock()
    mock.running = False
    mock.get_job.return_value = None
    return mock


@pytest.fixture
def manager(auth_client, backend_client, storage, scheduler):
    return SessionManager(
        auth_client,
        backend_client,
        storage,
        auto_refresh=True,
        refresh_interval_minutes=15,
        token_key=TOKEN_KEY,
        user_key=USER_KEY,
        refresh_token_key=REFRESH_KEY,
        password_reset_redirect_url="https://desk.clinic.test/reset",
        scheduler=scheduler,
    )


def _persist_session(storage, token="stored-token", refresh="stored-refresh"):
    storage.set_item(TOKEN_KEY, token)
    storage.set_item(USER_KEY, json.dumps({"id": "u-1", "email": "desk@clinic.test", "role": "admin"}))
    if refresh:
        storage.set_item(REFRESH_KEY, refresh)


# =============================================================================
# Tests Login
# =============================================================================


class TestLogin:
    """Tests de l'ouverture de session."""

    def test_initial_state_is_loading(self, manager):
        assert manager.state.is_loading is True
        assert manager.state.is_authenticated is False

    @pytest.mark.asyncio
    async def test_login_success(self, manager, auth_client, backend_client, storage, scheduler):
        result = await manager.login("desk@clinic.test", "secret-pass")

        assert result is True
        auth_client.sign_in_with_password.assert_awaited_once_with("desk@clinic.test", "secret-pass")
        assert manager.state.is_authenticated is True
        assert manager.state.is_loading is False
        assert manager.state.error is None
        assert manager.state.token == "access-1"
        assert manager.state.user.role == "admin"
        assert manager.state.user.has_permission("clients:write")

        assert storage.get_item(TOKEN_KEY) == "access-1"
        assert storage.get_item(REFRESH_KEY) == "refresh-1"
        assert json.loads(storage.get_item(USER_KEY))["email"] == "desk@clinic.test"

        backend_client.set_access_token.assert_called_with("access-1")
        scheduler.add_job.assert_called_once()
        kwargs = scheduler.add_job.call_args.kwargs
        assert kwargs["minutes"] == 15
        assert kwargs["id"] == REFRESH_JOB_ID
        assert kwargs["replace_existing"] is True
        scheduler.start.assert_called_once()

    @pytest.mark.asyncio
    async def test_login_failure_sets_error(self, manager, auth_client, storage, scheduler):
        auth_client.sign_in_with_password.side_effect = BackendAuthError(
            status_code=400, message="Invalid login credentials"
        )

        result = await manager.login("desk@clinic.test", "wrong")

        assert result is False
        assert manager.state.is_authenticated is False
        assert manager.state.is_loading is False
        assert manager.state.error == "Invalid login credentials"
        assert storage.get_item(TOKEN_KEY) is None
        scheduler.add_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_network_failure(self, manager, auth_client):
        auth_client.sign_in_with_password.side_effect = httpx.ConnectError("unreachable")

        assert await manager.login("desk@clinic.test", "secret-pass") is False
        assert manager.state.error == "unreachable"

    @pytest.mark.asyncio
    async def test_login_unreadable_response(self, manager, auth_client, storage):
        auth_client.sign_in_with_password.side_effect = json.JSONDecodeError("Expecting value", "", 0)

        assert await manager.login("desk@clinic.test", "secret-pass") is False
        assert manager.state.is_authenticated is False
        assert manager.state.is_loading is False
        assert manager.state.error
        assert storage.get_item(TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_login_user_without_id(self, manager, auth_client, scheduler):
        auth_client.sign_in_with_password.return_value = AuthSession(
            access_token="access-1", refresh_token="refresh-1", user={"id": None, "email": "desk@clinic.test"}
        )

        assert await manager.login("desk@clinic.test", "secret-pass") is False
        assert manager.state.is_authenticated is False
        assert manager.state.token is None
        scheduler.add_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_without_auto_refresh(self, auth_client, backend_client, storage, scheduler):
        manager = SessionManager(
            auth_client, backend_client, storage, auto_refresh=False, scheduler=scheduler
        )

        assert await manager.login("desk@clinic.test", "secret-pass") is True
        scheduler.add_job.assert_not_called()

    @pytest.mark.asyncio
    async def test_clear_error(self, manager, auth_client):
        auth_client.sign_in_with_password.side_effect = BackendAuthError(400, "Invalid login credentials")
        await manager.login("desk@clinic.test", "wrong")

        manager.clear_error()

        assert manager.state.error is None


# =============================================================================
# Tests Logout
# =============================================================================


class TestLogout:
    """Tests de la fermeture de session."""

    @pytest.mark.asyncio
    async def test_logout_clears_everything(self, manager, auth_client, backend_client, storage, scheduler):
        await manager.login("desk@clinic.test", "secret-pass")
        scheduler.get_job.return_value = MagicMock()

        manager.logout()

        assert manager.state.is_authenticated is False
        assert manager.state.is_loading is False
        assert manager.state.user is None
        assert manager.state.token is None
        assert storage.get_item(TOKEN_KEY) is None
        assert storage.get_item(USER_KEY) is None
        assert storage.get_item(REFRESH_KEY) is None
        backend_client.set_access_token.assert_called_with(None)
        scheduler.remove_job.assert_called_once_with(REFRESH_JOB_ID)

        await manager.close()
        auth_client.sign_out.assert_awaited_once_with("access-1")

    @pytest.mark.asyncio
    async def test_logout_ignores_provider_failure(self, manager, auth_client):
        await manager.login("desk@clinic.test", "secret-pass")
        auth_client.sign_out.side_effect = BackendConnectionError("unreachable")

        manager.logout()
        await manager.close()

        assert manager.state.is_authenticated is False

    def test_logout_without_running_loop(self, manager, auth_client, storage):
        _persist_session(storage)
        manager.state = manager.state.model_copy(update={"token": "stored-token"})

        manager.logout()

        assert len(storage) == 0
        auth_client.sign_out.assert_not_called()


# =============================================================================
# Tests Refresh
# =============================================================================


class TestRefreshToken:
    """Tests du renouvellement du jeton."""

    @pytest.mark.asyncio
    async def test_refresh_without_token_is_noop(self, manager, auth_client):
        assert await manager.refresh_token() is False
        auth_client.refresh_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_success(self, manager, auth_client, backend_client, storage):
        await manager.login("desk@clinic.test", "secret-pass")

        assert await manager.refresh_token() is True

        auth_client.refresh_session.assert_awaited_once_with("refresh-1")
        assert manager.state.token == "access-2"
        assert manager.state.refresh_token == "refresh-2"
        assert manager.state.is_authenticated is True
        assert storage.get_item(TOKEN_KEY) == "access-2"
        assert storage.get_item(REFRESH_KEY) == "refresh-2"
        backend_client.set_access_token.assert_called_with("access-2")

    @pytest.mark.asyncio
    async def test_refresh_failure_logs_out(self, manager, auth_client, storage):
        await manager.login("desk@clinic.test", "secret-pass")
        auth_client.refresh_session.side_effect = BackendAuthError(400, "Invalid Refresh Token")

        assert await manager.refresh_token() is False

        assert manager.state.is_authenticated is False
        assert manager.state.user is None
        assert storage.get_item(TOKEN_KEY) is None
        await manager.close()

    @pytest.mark.asyncio
    async def test_refresh_unreadable_response_logs_out(self, manager, auth_client, backend_client, storage):
        await manager.login("desk@clinic.test", "secret-pass")
        auth_client.refresh_session.side_effect = json.JSONDecodeError("Expecting value", "", 0)

        assert await manager.refresh_token() is False

        assert manager.state.is_authenticated is False
        assert manager.state.token is None
        assert storage.get_item(TOKEN_KEY) is None
        backend_client.set_access_token.assert_called_with(None)
        await manager.close()

    @pytest.mark.asyncio
    async def test_refresh_job_logs_out_on_unexpected_error(self, manager, auth_client):
        await manager.login("desk@clinic.test", "secret-pass")
        auth_client.refresh_session.side_effect = AttributeError("'list' object has no attribute 'get'")

        await manager._refresh_job()

        assert manager.state.is_authenticated is False
        await manager.close()

    @pytest.mark.asyncio
    async def test_refresh_job_skips_when_signed_out(self, manager, auth_client):
        await manager._refresh_job()

        auth_client.refresh_session.assert_not_called()


# =============================================================================
# Tests Restauration
# =============================================================================


class TestRestoreSession:
    """Tests de la restauration au demarrage."""

    @pytest.mark.asyncio
    async def test_restore_without_storage(self, manager, auth_client):
        assert await manager.restore_session() is False

        assert manager.state.is_loading is False
        assert manager.state.is_authenticated is False
        auth_client.verify_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_restore_valid_session(self, manager, auth_client, backend_client, storage, scheduler):
        _persist_session(storage)

        assert await manager.restore_session() is True

        auth_client.verify_token.assert_awaited_once_with("stored-token")
        assert manager.state.is_authenticated is True
        assert manager.state.token == "stored-token"
        assert manager.state.refresh_token == "stored-refresh"
        assert manager.state.user.email == "desk@clinic.test"
        backend_client.set_access_token.assert_called_with("stored-token")
        scheduler.add_job.assert_called_once()

    @pytest.mark.asyncio
    async def test_restore_invalid_token_clears_storage(self, manager, auth_client, storage):
        _persist_session(storage)
        auth_client.verify_token.return_value = False

        assert await manager.restore_session() is False

        assert len(storage) == 0
        assert manager.state.is_authenticated is False
        assert manager.state.is_loading is False
        assert manager.state.error is None

    @pytest.mark.asyncio
    async def test_restore_provider_error_clears_storage(self, manager, auth_client, storage):
        _persist_session(storage)
        auth_client.verify_token.side_effect = BackendConnectionError("unreachable")

        assert await manager.restore_session() is False
        assert len(storage) == 0

    @pytest.mark.asyncio
    async def test_restore_corrupt_user_clears_storage(self, manager, auth_client, storage):
        storage.set_item(TOKEN_KEY, "stored-token")
        storage.set_item(USER_KEY, "{not json")

        assert await manager.restore_session() is False
        assert len(storage) == 0


# =============================================================================
# Tests Utilisateur et mot de passe
# =============================================================================


class TestUserOperations:
    """Tests de la mise a jour utilisateur et du reset de mot de passe."""

    def test_update_user_without_session(self, manager):
        assert manager.update_user(name="New") is None

    @pytest.mark.asyncio
    async def test_update_user_merges_and_persists(self, manager, storage):
        await manager.login("desk@clinic.test", "secret-pass")

        updated = manager.update_user(name="Front Desk", phone="555-0100")

        assert isinstance(updated, SessionUser)
        assert updated.name == "Front Desk"
        assert updated.role == "admin"
        assert manager.state.user.name == "Front Desk"
        stored = json.loads(storage.get_item(USER_KEY))
        assert stored["name"] == "Front Desk"
        assert stored["phone"] == "555-0100"

    @pytest.mark.asyncio
    async def test_request_password_reset(self, manager, auth_client):
        success, message = await manager.request_password_reset("desk@clinic.test")

        assert success is True
        assert message == "Password reset instructions sent to your email"
        auth_client.reset_password_for_email.assert_awaited_once_with(
            "desk@clinic.test", "https://desk.clinic.test/reset"
        )

    @pytest.mark.asyncio
    async def test_request_password_reset_failure(self, manager, auth_client):
        auth_client.reset_password_for_email.side_effect = BackendAuthError(429, "Too many requests")

        success, message = await manager.request_password_reset("desk@clinic.test")

        assert success is False
        assert message == "Too many requests"


# =============================================================================
# Tests Scheduler reel
# =============================================================================


class TestRefreshScheduling:
    """Tests avec un AsyncIOScheduler reel."""

    @pytest.mark.asyncio
    async def test_refresh_job_interval(self, auth_client, backend_client, storage):
        scheduler = AsyncIOScheduler()
        manager = SessionManager(
            auth_client,
            backend_client,
            storage,
            auto_refresh=True,
            refresh_interval_minutes=15,
            scheduler=scheduler,
        )
        try:
            await manager.login("desk@clinic.test", "secret-pass")

            assert manager.refresh_scheduled is True
            job = scheduler.get_job(REFRESH_JOB_ID)
            assert job.trigger.interval == timedelta(minutes=15)

            manager.logout()
            assert manager.refresh_scheduled is False
        finally:
            await manager.close()
            await asyncio.sleep(0)
