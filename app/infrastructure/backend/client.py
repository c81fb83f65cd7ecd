"""Async client for the hosted backend REST surface.

This module provides an async HTTP client for table access on the hosted
relational backend (PostgREST dialect), with OpenTelemetry tracing and
proper error handling. Requests are never retried.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

import httpx
from opentelemetry import trace

from app.infrastructure.backend.config import backend_settings
from app.infrastructure.backend.exceptions import (
    BackendConnectionError,
    BackendNotFoundError,
    BackendOperationError,
)
from app.infrastructure.backend.query import Query

tracer = trace.get_tracer(__name__)

_CONTENT_RANGE_TOTAL = re.compile(r"/(\d+)$")


@dataclass
class SelectResult:
    """Rows returned by a select, with the exact total when requested."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    count: int | None = None


def parse_content_range(header: str | None) -> int | None:
    """Extract the total from a ``Content-Range`` header (``0-9/42`` -> 42)."""
    if not header:
        return None
    match = _CONTENT_RANGE_TOTAL.search(header.strip())
    return int(match.group(1)) if match else None


class BackendClient:
    """Async table client with OpenTelemetry tracing.

    The client attaches the project API key to every request, and the
    operator's access token as bearer credential once one is set through
    ``set_access_token``. Without a token the API key doubles as bearer.

    Example:
        ```python
        client = BackendClient("https://project.example.co", api_key="anon-key")
        result = await client.select(Query("therapy").eq("is_active", True))
        await client.close()
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        rest_path: str | None = None,
    ):
        """Initialize the backend client.

        Args:
            base_url: Backend base URL. Defaults to settings.
            api_key: Project API key. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.
            rest_path: Path of the REST surface. Defaults to settings.
        """
        self.base_url = (base_url or str(backend_settings.BACKEND_URL)).rstrip("/")
        self.api_key = api_key or backend_settings.BACKEND_API_KEY
        self.timeout = timeout or backend_settings.BACKEND_TIMEOUT
        self.rest_path = "/" + (rest_path or backend_settings.BACKEND_REST_PATH).strip("/")
        self._access_token: str | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        """Attach (or detach with ``None``) the operator's bearer credential."""
        self._access_token = token

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}{self.rest_path}",
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    def _auth_headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self._access_token or self.api_key}",
        }

    async def _send(
        self,
        method: str,
        path: str,
        span: trace.Span,
        *,
        params: list[tuple[str, str]] | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        headers = self._auth_headers()
        if prefer:
            headers["Prefer"] = prefer
        try:
            client = await self._get_client()
            return await client.request(
                method,
                path,
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.ConnectError as e:
            span.record_exception(e)
            raise BackendConnectionError(f"Failed to connect to backend: {e}")
        except httpx.TimeoutException as e:
            span.record_exception(e)
            raise BackendConnectionError(f"Backend request timed out: {e}")

    async def select(self, query: Query, count: bool = False) -> SelectResult:
        """Run a read query.

        Args:
            query: Table, projection, filters, order and range
            count: Also request the exact number of matching rows

        Returns:
            SelectResult with the rows and, if requested, the total

        Raises:
            BackendConnectionError: If connection to the backend fails
            BackendOperationError: If the backend returns an error
        """
        with tracer.start_as_current_span(f"backend_select_{query.table}") as span:
            span.set_attribute("backend.table", query.table)
            span.set_attribute("backend.params", json.dumps(query.to_params()))

            response = await self._send(
                "GET",
                f"/{query.table}",
                span,
                params=query.to_params(),
                prefer="count=exact" if count else None,
            )

            if response.status_code in (200, 206):
                rows = response.json()
                total = parse_content_range(response.headers.get("content-range")) if count else None
                span.set_attribute("backend.row_count", len(rows))
                if total is not None:
                    span.set_attribute("backend.total", total)
                return SelectResult(rows=rows, count=total)

            self._handle_error_response(response, span)

    async def select_maybe_single(self, query: Query) -> dict[str, Any] | None:
        """Read at most one row.

        Returns:
            The row, or None if nothing matches

        Raises:
            BackendOperationError: If more than one row matches
        """
        result = await self.select(query)
        if not result.rows:
            return None
        if len(result.rows) > 1:
            raise BackendOperationError(
                status_code=406,
                message=f"Multiple {query.table} rows returned for {query.describe()}",
                code="PGRST116",
            )
        return result.rows[0]

    async def select_single(self, query: Query) -> dict[str, Any]:
        """Read exactly one row.

        Raises:
            BackendNotFoundError: If nothing matches
            BackendOperationError: If more than one row matches
        """
        row = await self.select_maybe_single(query)
        if row is None:
            raise BackendNotFoundError(query.table, query.describe())
        return row

    async def insert(
        self, table: str, values: dict[str, Any], columns: str = "*"
    ) -> dict[str, Any]:
        """Insert one row and return its stored representation.

        Raises:
            BackendConnectionError: If connection to the backend fails
            BackendOperationError: If the backend returns an error
        """
        with tracer.start_as_current_span(f"backend_insert_{table}") as span:
            span.set_attribute("backend.table", table)

            response = await self._send(
                "POST",
                f"/{table}",
                span,
                params=[("select", columns)],
                json_body=values,
                prefer="return=representation",
            )

            if response.status_code in (200, 201):
                rows = response.json()
                created = rows[0] if isinstance(rows, list) and rows else rows
                if not isinstance(created, dict) or not created:
                    # Row-level security can hide the inserted row from the caller
                    raise BackendOperationError(
                        status_code=response.status_code,
                        message=f"Insert into {table} returned no row",
                    )
                if "id" in created:
                    span.set_attribute("backend.row_id", str(created["id"]))
                span.add_event("Row inserted")
                return created

            self._handle_error_response(response, span)

    async def update(self, query: Query, values: dict[str, Any]) -> list[dict[str, Any]]:
        """Update every row matching the query filters.

        Returns:
            The updated rows

        Raises:
            ValueError: If the query has no filter
            BackendConnectionError: If connection to the backend fails
            BackendOperationError: If the backend returns an error
        """
        if not query.has_filters:
            raise ValueError(f"Refusing unfiltered update on {query.table}")

        with tracer.start_as_current_span(f"backend_update_{query.table}") as span:
            span.set_attribute("backend.table", query.table)
            span.set_attribute("backend.filters", query.describe())

            response = await self._send(
                "PATCH",
                f"/{query.table}",
                span,
                params=[("select", query.columns), *query.filter_params()],
                json_body=values,
                prefer="return=representation",
            )

            if response.status_code in (200, 204):
                rows = response.json() if response.status_code == 200 else []
                span.set_attribute("backend.row_count", len(rows))
                return rows

            self._handle_error_response(response, span)

    async def delete(self, query: Query) -> None:
        """Delete every row matching the query filters.

        Raises:
            ValueError: If the query has no filter
            BackendConnectionError: If connection to the backend fails
            BackendOperationError: If the backend returns an error
        """
        if not query.has_filters:
            raise ValueError(f"Refusing unfiltered delete on {query.table}")

        with tracer.start_as_current_span(f"backend_delete_{query.table}") as span:
            span.set_attribute("backend.table", query.table)
            span.set_attribute("backend.filters", query.describe())

            response = await self._send(
                "DELETE",
                f"/{query.table}",
                span,
                params=query.filter_params(),
            )

            if response.status_code in (200, 202, 204):
                span.add_event("Rows deleted")
                return

            self._handle_error_response(response, span)

    async def health_check(self) -> bool:
        """Check that the REST surface answers."""
        with tracer.start_as_current_span("backend_health_check") as span:
            response = await self._send("GET", "/", span)
            return response.status_code < 500

    def _handle_error_response(self, response: httpx.Response, span: trace.Span) -> None:
        """Handle non-success HTTP responses.

        Args:
            response: HTTP response from the backend
            span: Current OpenTelemetry span

        Raises:
            BackendOperationError: Always raised with error details
        """
        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = {"message": response.text}

        if not isinstance(payload, dict):
            payload = {"message": str(payload)}

        message = payload.get("message") or f"Backend operation failed with status {response.status_code}"
        span.set_attribute("backend.error_status", response.status_code)
        span.add_event("Backend operation failed", {"status_code": response.status_code})

        raise BackendOperationError(
            status_code=response.status_code,
            message=message,
            code=payload.get("code"),
            payload=payload,
        )

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
