"""Async client for the hosted backend auth surface.

Wraps the token, user, logout and recover endpoints of the GoTrue-style auth
API exposed next to the REST surface.
"""

import json
from dataclasses import dataclass, field
from typing import Any

import httpx
from opentelemetry import trace

from app.infrastructure.backend.config import backend_settings
from app.infrastructure.backend.exceptions import BackendAuthError, BackendConnectionError

tracer = trace.get_tracer(__name__)


@dataclass
class AuthSession:
    """Tokens and user returned by a successful sign-in or refresh."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    user: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "AuthSession":
        if not payload.get("access_token"):
            raise BackendAuthError(status_code=500, message="Auth response carried no access token")
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_in=payload.get("expires_in"),
            user=payload.get("user") or {},
        )


def extract_auth_error_message(payload: Any, status_code: int) -> str:
    """Pick the user-facing message out of an auth error body."""
    if isinstance(payload, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Authentication request failed with status {status_code}"


class AuthClient:
    """Auth provider client with OpenTelemetry tracing."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        auth_path: str | None = None,
    ):
        self.base_url = (base_url or str(backend_settings.BACKEND_URL)).rstrip("/")
        self.api_key = api_key or backend_settings.BACKEND_API_KEY
        self.timeout = timeout or backend_settings.BACKEND_TIMEOUT
        self.auth_path = "/" + (auth_path or backend_settings.BACKEND_AUTH_PATH).strip("/")
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}{self.auth_path}",
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "apikey": self.api_key,
                },
            )
        return self._client

    async def _send(
        self,
        method: str,
        path: str,
        span: trace.Span,
        *,
        params: dict[str, str] | None = None,
        json_body: Any = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token or self.api_key}"}
        try:
            client = await self._get_client()
            return await client.request(method, path, params=params, json=json_body, headers=headers)
        except httpx.ConnectError as e:
            span.record_exception(e)
            raise BackendConnectionError(f"Failed to connect to auth provider: {e}")
        except httpx.TimeoutException as e:
            span.record_exception(e)
            raise BackendConnectionError(f"Auth provider request timed out: {e}")

    def _raise_for_error(self, response: httpx.Response, span: trace.Span) -> None:
        if response.is_success:
            return
        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = None
        message = extract_auth_error_message(payload, response.status_code)
        code = None
        if isinstance(payload, dict):
            code = payload.get("error_code") or payload.get("error")
        span.set_attribute("auth.error_status", response.status_code)
        raise BackendAuthError(status_code=response.status_code, message=message, code=code)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a session.

        Raises:
            BackendConnectionError: If the provider is unreachable
            BackendAuthError: If the credentials are rejected
        """
        with tracer.start_as_current_span("auth_sign_in") as span:
            response = await self._send(
                "POST",
                "/token",
                span,
                params={"grant_type": "password"},
                json_body={"email": email, "password": password},
            )
            self._raise_for_error(response, span)
            return AuthSession.from_payload(response.json())

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        """Exchange a refresh token for a new session."""
        with tracer.start_as_current_span("auth_refresh_session") as span:
            response = await self._send(
                "POST",
                "/token",
                span,
                params={"grant_type": "refresh_token"},
                json_body={"refresh_token": refresh_token},
            )
            self._raise_for_error(response, span)
            return AuthSession.from_payload(response.json())

    async def get_user(self, access_token: str) -> dict[str, Any]:
        """Return the user the token belongs to."""
        with tracer.start_as_current_span("auth_get_user") as span:
            response = await self._send("GET", "/user", span, access_token=access_token)
            self._raise_for_error(response, span)
            return response.json()

    async def verify_token(self, access_token: str) -> bool:
        """True when the provider still accepts the token.

        Rejections are reported as False; connection failures propagate.
        """
        try:
            await self.get_user(access_token)
        except BackendAuthError:
            return False
        return True

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session on the provider."""
        with tracer.start_as_current_span("auth_sign_out") as span:
            response = await self._send("POST", "/logout", span, access_token=access_token)
            self._raise_for_error(response, span)

    async def reset_password_for_email(self, email: str, redirect_to: str | None = None) -> None:
        """Ask the provider to send a password-reset e-mail."""
        with tracer.start_as_current_span("auth_reset_password") as span:
            params = {"redirect_to": redirect_to} if redirect_to else None
            response = await self._send(
                "POST", "/recover", span, params=params, json_body={"email": email}
            )
            self._raise_for_error(response, span)

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
