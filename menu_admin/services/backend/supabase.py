"""
Supabase Backend Implementation

Production implementation talking to a Supabase project over HTTP.
Used when ENV_MODE=production or ENV_MODE=staging with BACKEND_PROVIDER=supabase.

Requirements:
    - SUPABASE_URL and SUPABASE_KEY must be set in environment

Endpoints used:
    - PostgREST  {SUPABASE_URL}/rest/v1/{table}
    - GoTrue     {SUPABASE_URL}/auth/v1/{token,user,logout}
"""

import logging
from typing import Any, Optional

import httpx

from menu_admin.core.config import get_settings
from menu_admin.services.backend.base import (
    AuthenticationError,
    AuthSession,
    AuthUser,
    BackendError,
    BaseBackend,
    RecordNotFoundError,
    Row,
    new_row_id,
)

logger = logging.getLogger(__name__)


def _filter_value(value: Any) -> str:
    """Render a Python value as a PostgREST equality filter."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _parse_content_range(header: Optional[str]) -> int:
    """
    Extract the total from a Content-Range header.

    "0-24/3573" -> 3573, "*/0" -> 0
    """
    if not header or "/" not in header:
        raise BackendError("Missing count in Content-Range header", code="count_missing")
    total = header.rsplit("/", 1)[1]
    if total == "*":
        raise BackendError("Backend did not return an exact count", code="count_missing")
    return int(total)


class SupabaseBackend(BaseBackend):
    """
    Supabase backend implementation.

    Integrates with Supabase for:
        - Table CRUD through PostgREST
        - Password authentication through GoTrue

    Configuration:
        Requires SUPABASE_URL and SUPABASE_KEY environment variables.

    Example:
        >>> backend = SupabaseBackend()
        >>> rows = await backend.select("categorias", columns="id, name", order_by="name")
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP client.

        Raises:
            ValueError: If the project URL or key is not configured
        """
        settings = get_settings()
        url = url or settings.supabase_url
        key = key or settings.supabase_key

        if not url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY are required for the supabase backend. "
                "Set them in your .env file or environment variables."
            )

        self._key = key
        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
            },
            timeout=timeout or settings.backend_timeout,
            transport=transport,
        )

        logger.info(f"SupabaseBackend initialized ({url})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "supabase"

    # ==========================================================================
    # HTTP HELPERS
    # ==========================================================================

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request, translating transport failures into BackendError."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"Supabase: Timeout on {method} {path}")
            raise BackendError("Backend request timed out", code="timeout")
        except httpx.HTTPError as e:
            logger.error(f"Supabase: Transport error on {method} {path} - {e}")
            raise BackendError("Unable to reach backend", code="transport_error")

        if response.is_error:
            raise self._error_from_response(response)
        return response

    @staticmethod
    def _error_from_response(response: httpx.Response) -> BackendError:
        """Build an error from a PostgREST or GoTrue error body."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or body.get("error")
            or response.text
            or f"HTTP {response.status_code}"
        )
        code = body.get("code") or body.get("error_code") or body.get("error")
        code = str(code) if code is not None else None

        logger.warning(
            f"Supabase: {response.request.method} {response.request.url.path} "
            f"failed ({response.status_code}) - {message}"
        )

        if response.status_code in (401, 403) and response.request.url.path.startswith("/auth/"):
            return AuthenticationError(message, code=code)
        if code == "PGRST116" or response.status_code == 404:
            return RecordNotFoundError(message, code=code or "PGRST116")
        return BackendError(message, code=code, status_code=response.status_code)

    @staticmethod
    def _query(
        columns: Optional[str] = None,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if columns is not None:
            params.append(("select", columns.replace(" ", "")))
        for column, value in (filters or {}).items():
            params.append((column, _filter_value(value)))
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return params

    # ==========================================================================
    # TABLE ACCESS
    # ==========================================================================

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        response = await self._request(
            "GET",
            f"/rest/v1/{table}",
            params=self._query(columns, filters, order_by, descending, limit),
        )
        return response.json()

    async def count(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
    ) -> int:
        response = await self._request(
            "HEAD",
            f"/rest/v1/{table}",
            params=self._query("*", filters),
            headers={"Prefer": "count=exact"},
        )
        return _parse_content_range(response.headers.get("content-range"))

    async def insert(self, table: str, row: Row) -> Row:
        payload = dict(row)
        payload.setdefault("id", new_row_id())
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=[payload],
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        logger.debug(f"Supabase: Inserted {table}#{payload['id']}")
        return rows[0] if rows else payload

    async def update(self, table: str, row_id: str, values: Row) -> Row:
        changes = {k: v for k, v in values.items() if k != "id"}
        response = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=self._query(filters={"id": row_id}),
            json=changes,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise RecordNotFoundError(f"{table}#{row_id} not found")
        logger.debug(f"Supabase: Updated {table}#{row_id}")
        return rows[0]

    async def delete(self, table: str, row_id: str) -> None:
        await self._request(
            "DELETE",
            f"/rest/v1/{table}",
            params=self._query(filters={"id": row_id}),
        )
        logger.debug(f"Supabase: Deleted {table}#{row_id}")

    # ==========================================================================
    # AUTHENTICATION
    # ==========================================================================

    @staticmethod
    def _user_from_payload(payload: dict) -> AuthUser:
        return AuthUser(
            id=payload["id"],
            email=payload.get("email") or "",
            role=payload.get("role") or "authenticated",
        )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._request(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except AuthenticationError:
            raise
        except BackendError as e:
            # GoTrue answers bad credentials with 400 invalid_grant
            if e.status_code == 400:
                raise AuthenticationError(e.message, code=e.code)
            raise

        body = response.json()
        logger.info(f"Supabase: Signed in {email}")
        return AuthSession(
            access_token=body["access_token"],
            token_type=body.get("token_type", "bearer"),
            expires_in=body.get("expires_in", 3600),
            refresh_token=body.get("refresh_token"),
            user=self._user_from_payload(body["user"]),
        )

    async def get_user(self, access_token: str) -> AuthUser:
        response = await self._request(
            "GET",
            "/auth/v1/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self._user_from_payload(response.json())

    async def sign_out(self, access_token: str) -> None:
        await self._request(
            "POST",
            "/auth/v1/logout",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    # ==========================================================================
    # LIFECYCLE
    # ==========================================================================

    async def health_check(self) -> bool:
        """
        Verify Supabase connectivity.

        Calls the GoTrue health endpoint, which needs only the API key.
        """
        try:
            await self._request("GET", "/auth/v1/health")
            logger.debug("Supabase: Health check passed")
            return True
        except BackendError as e:
            logger.error(f"Supabase: Health check failed - {e.message}")
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
