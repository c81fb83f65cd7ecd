"""Gestion de la session de l'opérateur.

Le SessionManager détient l'état de session, le persiste dans le stockage
local, attache le jeton au client backend et rafraîchit ce jeton en tâche
de fond (job APScheduler à intervalle fixe) tant que la session est active.
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from opentelemetry import trace

from app.core.config import settings
from app.core.storage import LocalStorage
from app.infrastructure.backend.auth import AuthClient, AuthSession
from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.exceptions import BackendAuthError
from app.schemas.auth import SessionState, SessionUser

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

REFRESH_JOB_ID = "session-token-refresh"


class SessionManager:
    """
    Cycle de vie de la session: login, logout, refresh et restauration.

    Les opérations ne lèvent pas d'exception liée au fournisseur d'auth,
    y compris sur une réponse illisible:
    un échec de login renseigne ``state.error``, un échec de refresh
    provoque un logout, une restauration impossible vide le stockage.

    Example:
        ```python
        manager = SessionManager(auth_client, backend_client, LocalStorage("session.json"))
        await manager.restore_session()
        if not manager.state.is_authenticated:
            await manager.login("desk@clinic.example", "secret")
        ```
    """

    def __init__(
        self,
        auth_client: AuthClient,
        backend_client: BackendClient,
        storage: LocalStorage,
        *,
        auto_refresh: bool | None = None,
        refresh_interval_minutes: int | None = None,
        token_key: str | None = None,
        user_key: str | None = None,
        refresh_token_key: str | None = None,
        password_reset_redirect_url: str | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ):
        self._auth = auth_client
        self._backend = backend_client
        self._storage = storage
        self.auto_refresh = settings.AUTH_AUTO_REFRESH if auto_refresh is None else auto_refresh
        self.refresh_interval_minutes = (
            refresh_interval_minutes or settings.AUTH_REFRESH_INTERVAL_MINUTES
        )
        self.token_key = token_key or settings.AUTH_TOKEN_STORAGE_KEY
        self.user_key = user_key or settings.AUTH_USER_STORAGE_KEY
        self.refresh_token_key = refresh_token_key or settings.AUTH_REFRESH_TOKEN_STORAGE_KEY
        self.password_reset_redirect_url = (
            password_reset_redirect_url or settings.PASSWORD_RESET_REDIRECT_URL
        )
        self._scheduler = scheduler or AsyncIOScheduler()
        self._background_tasks: set[asyncio.Task] = set()
        self.state = SessionState()

    # ------------------------------------------------------------------
    # Opérations de session
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> bool:
        """
        Authentifie l'opérateur auprès du fournisseur d'auth.

        Returns:
            True si la session est ouverte, False sinon (``state.error`` renseigné)
        """
        self.state = self.state.model_copy(update={"is_loading": True, "error": None})

        with tracer.start_as_current_span("session_login") as span:
            try:
                session = await self._auth.sign_in_with_password(email, password)
                user = SessionUser.from_provider(session.user)
            except Exception as e:
                message = getattr(e, "message", None) or str(e) or "Login failed"
                span.record_exception(e)
                span.set_attribute("session.login_failed", True)
                logger.warning(f"Échec de connexion pour {email}: {message}")
                self.state = self.state.model_copy(update={"is_loading": False, "error": message})
                return False

            self._open_session(session, user)
            logger.info(f"Session ouverte pour {email}")
            return True

    def logout(self) -> None:
        """
        Ferme la session immédiatement.

        Le fournisseur est notifié en tâche de fond quand une boucle asyncio
        tourne; un échec de notification est seulement journalisé.
        """
        token = self.state.token
        self._clear_storage()
        self.state = SessionState(is_loading=False)
        self._backend.set_access_token(None)
        self._cancel_refresh()

        if token:
            self._notify_sign_out(token)
        logger.info("Session fermée")

    async def refresh_token(self) -> bool:
        """
        Échange le jeton de rafraîchissement contre une nouvelle session.

        Tout échec provoque un logout.

        Returns:
            True si le jeton a été renouvelé
        """
        if not self.state.token:
            return False

        with tracer.start_as_current_span("session_refresh_token") as span:
            refresh = self.state.refresh_token or self._storage.get_item(self.refresh_token_key)
            try:
                if not refresh:
                    raise BackendAuthError(status_code=400, message="No refresh token available")
                session = await self._auth.refresh_session(refresh)
                user = SessionUser.from_provider(session.user) if session.user else self.state.user
            except Exception as e:
                span.record_exception(e)
                span.set_attribute("session.refresh_failed", True)
                logger.warning(f"Échec du rafraîchissement du jeton: {e}")
                self.logout()
                return False

            self._storage.set_item(self.token_key, session.access_token)
            if session.refresh_token:
                self._storage.set_item(self.refresh_token_key, session.refresh_token)
            if user is not None:
                self._storage.set_item(self.user_key, user.model_dump_json())

            self.state = self.state.model_copy(
                update={
                    "token": session.access_token,
                    "refresh_token": session.refresh_token or refresh,
                    "user": user,
                }
            )
            self._backend.set_access_token(session.access_token)
            logger.debug("Jeton de session renouvelé")
            return True

    async def restore_session(self) -> bool:
        """
        Restaure la session persistée au démarrage.

        Le jeton stocké est vérifié auprès du fournisseur; s'il est refusé
        (ou si la vérification échoue) le stockage est vidé sans erreur.

        Returns:
            True si la session restaurée est active
        """
        token = self._storage.get_item(self.token_key)
        raw_user = self._storage.get_item(self.user_key)

        if not token or not raw_user:
            self.state = SessionState(is_loading=False)
            return False

        with tracer.start_as_current_span("session_restore"):
            try:
                user = SessionUser.model_validate_json(raw_user)
                valid = await self._auth.verify_token(token)
            except Exception as e:
                logger.warning(f"Restauration de session impossible: {e}")
                valid = False

            if not valid:
                self._clear_storage()
                self.state = SessionState(is_loading=False)
                logger.info("Session persistée invalide, stockage vidé")
                return False

            self.state = SessionState(
                user=user,
                token=token,
                refresh_token=self._storage.get_item(self.refresh_token_key),
                is_authenticated=True,
                is_loading=False,
            )
            self._backend.set_access_token(token)
            if self.auto_refresh:
                self._schedule_refresh()
            logger.info("Session restaurée")
            return True

    def clear_error(self) -> None:
        self.state = self.state.model_copy(update={"error": None})

    def update_user(self, **fields) -> SessionUser | None:
        """Fusionne des attributs dans l'utilisateur courant et le persiste."""
        if self.state.user is None:
            return None
        updated = SessionUser.model_validate({**self.state.user.model_dump(), **fields})
        self._storage.set_item(self.user_key, updated.model_dump_json())
        self.state = self.state.model_copy(update={"user": updated})
        return updated

    async def request_password_reset(self, email: str) -> tuple[bool, str]:
        """Demande l'envoi d'un email de réinitialisation du mot de passe."""
        try:
            await self._auth.reset_password_for_email(email, self.password_reset_redirect_url)
        except Exception as e:
            message = getattr(e, "message", None) or "Password reset failed"
            logger.warning(f"Échec de la demande de réinitialisation pour {email}: {message}")
            return False, message
        return True, "Password reset instructions sent to your email"

    async def close(self) -> None:
        """Arrête le rafraîchissement et attend les notifications en cours."""
        self._cancel_refresh()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Rafraîchissement automatique
    # ------------------------------------------------------------------

    @property
    def refresh_scheduled(self) -> bool:
        return self._scheduler.get_job(REFRESH_JOB_ID) is not None

    def _schedule_refresh(self) -> None:
        self._scheduler.add_job(
            self._refresh_job,
            "interval",
            minutes=self.refresh_interval_minutes,
            id=REFRESH_JOB_ID,
            replace_existing=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.debug(f"Rafraîchissement planifié toutes les {self.refresh_interval_minutes} min")

    def _cancel_refresh(self) -> None:
        if self._scheduler.get_job(REFRESH_JOB_ID) is not None:
            self._scheduler.remove_job(REFRESH_JOB_ID)

    async def _refresh_job(self) -> None:
        if self.state.is_authenticated:
            await self.refresh_token()

    # ------------------------------------------------------------------
    # Stockage et notifications
    # ------------------------------------------------------------------

    def _open_session(self, session: AuthSession, user: SessionUser) -> None:
        self._storage.set_item(self.token_key, session.access_token)
        self._storage.set_item(self.user_key, user.model_dump_json())
        if session.refresh_token:
            self._storage.set_item(self.refresh_token_key, session.refresh_token)

        self.state = SessionState(
            user=user,
            token=session.access_token,
            refresh_token=session.refresh_token,
            is_authenticated=True,
            is_loading=False,
            error=None,
        )
        self._backend.set_access_token(session.access_token)
        if self.auto_refresh:
            self._schedule_refresh()

    def _clear_storage(self) -> None:
        for key in (self.token_key, self.user_key, self.refresh_token_key):
            self._storage.remove_item(key)

    def _notify_sign_out(self, token: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Pas de boucle asyncio active, déconnexion fournisseur ignorée")
            return
        task = loop.create_task(self._sign_out(token))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _sign_out(self, token: str) -> None:
        try:
            await self._auth.sign_out(token)
        except Exception as e:
            logger.warning(f"Déconnexion côté fournisseur échouée: {e}")
