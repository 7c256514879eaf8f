"""Supabase client built on httpx.

Talks to two Supabase services:
- GoTrue (``/auth/v1``) to resolve an access token into a user
- PostgREST (``/rest/v1``) for table reads and writes

Every table request carries the caller's access token so row level security
policies apply as if the dashboard issued the query itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from bizplan.core.config import SupabaseSettings
from bizplan.core.errors import AuthenticationAppError, DatabaseAppError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupabaseUser:
    """Authenticated Supabase user."""

    id: str
    email: str | None = None


def eq(value: Any) -> str:
    """Build a PostgREST equality filter value."""
    return f"eq.{value}"


def _postgrest_error(response: httpx.Response) -> dict[str, Any]:
    """Pick the loggable fields of a PostgREST error body.

    ``details`` and ``hint`` are left out: they can quote row values.
    """
    try:
        body = response.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    return {"pg_code": body.get("code"), "pg_message": body.get("message")}


class SupabaseClient:
    """Thin async wrapper around the Supabase REST endpoints."""

    def __init__(
        self,
        *,
        url: str,
        anon_key: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Supabase project URL.
            anon_key: Project anon key sent as the ``apikey`` header.
            timeout_seconds: Timeout for each request.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._anon_key = anon_key
        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers={"apikey": anon_key, "Accept": "application/json"},
            timeout=timeout_seconds,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: SupabaseSettings) -> "SupabaseClient":
        return cls(url=cfg.url, anon_key=cfg.anon_key, timeout_seconds=cfg.timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    def _auth_headers(self, access_token: str | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token or self._anon_key}"}

    async def get_user(self, access_token: str) -> SupabaseUser:
        """Resolve an access token into the user it was issued for.

        Args:
            access_token: JWT issued by Supabase Auth.

        Returns:
            The authenticated user.

        Raises:
            AuthenticationAppError: If the token is rejected or the auth
                service cannot be reached.
        """
        try:
            response = await self._client.get(
                "/auth/v1/user",
                headers=self._auth_headers(access_token),
            )
        except httpx.HTTPError as exc:
            logger.error(
                "supabase.auth_unreachable",
                extra={"error_type": type(exc).__name__},
            )
            raise AuthenticationAppError(
                code="auth_unavailable",
                message="Unauthorized",
            ) from exc

        if response.status_code != 200:
            logger.info(
                "supabase.auth_rejected",
                extra={"status_code": response.status_code},
            )
            raise AuthenticationAppError(code="invalid_token", message="Unauthorized")

        payload = response.json()
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            raise AuthenticationAppError(code="invalid_token", message="Unauthorized")

        return SupabaseUser(id=str(user_id), email=payload.get("email") or None)

    async def _request(
        self,
        method: str,
        table: str,
        *,
        access_token: str | None,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = self._auth_headers(access_token)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = await self._client.request(
                method,
                f"/rest/v1/{table}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error(
                "supabase.request_failed",
                extra={"table": table, "method": method, "error_type": type(exc).__name__},
            )
            raise DatabaseAppError(
                code="database_unavailable",
                message="Database error",
                details={"table": table},
            ) from exc

        if response.status_code >= 400:
            logger.error(
                "supabase.request_rejected",
                extra={
                    "table": table,
                    "method": method,
                    "status_code": response.status_code,
                    **_postgrest_error(response),
                },
            )
            raise DatabaseAppError(
                code="database_error",
                message="Database error",
                details={"table": table, "http_status": response.status_code},
            )

        if not response.content:
            return None
        return response.json()

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Mapping[str, str] | None = None,
        limit: int | None = None,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows from a table.

        Args:
            table: Table name.
            columns: PostgREST ``select`` expression.
            filters: Column filters, e.g. ``{"user_id": eq(user.id)}``.
            limit: Maximum rows to return.
            access_token: Caller's token for row level security.

        Returns:
            Matching rows (possibly empty).
        """
        params: dict[str, Any] = {"select": columns, **(filters or {})}
        if limit is not None:
            params["limit"] = limit
        rows = await self._request("GET", table, access_token=access_token, params=params)
        return rows or []

    async def insert(
        self,
        table: str,
        rows: list[dict[str, Any]] | dict[str, Any],
        *,
        returning: str | None = None,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        """Insert one or more rows.

        Args:
            table: Table name.
            rows: Row or rows to insert.
            returning: Columns to return for the inserted rows; when omitted
                nothing is returned.
            access_token: Caller's token for row level security.

        Returns:
            Inserted rows restricted to ``returning`` (empty when not requested).
        """
        params = {"select": returning} if returning else None
        prefer = "return=representation" if returning else "return=minimal"
        created = await self._request(
            "POST",
            table,
            access_token=access_token,
            params=params,
            json=rows,
            prefer=prefer,
        )
        return created or []

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        filters: Mapping[str, str],
        access_token: str | None = None,
    ) -> None:
        """Update rows matching ``filters``.

        Raises:
            ValueError: If no filters are given (would update the whole table).
        """
        if not filters:
            raise ValueError("update requires at least one filter")
        await self._request(
            "PATCH",
            table,
            access_token=access_token,
            params=dict(filters),
            json=values,
            prefer="return=minimal",
        )
