"""Minimal PostgREST client for the remote ledger database.

Speaks the REST dialect exposed by Supabase projects
(``{url}/rest/v1/{table}``): equality filters as ``column=eq.value``,
ordering as ``order=column.desc`` and ``Prefer: return=representation`` to
get inserted rows back.
"""

from __future__ import annotations

from typing import Any

import httpx


class PostgrestClient:
    """Insert and select rows. Raises ``httpx.HTTPError`` or ``ValueError`` on failure."""

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def insert(self, table: str, row: dict[str, Any], returning: str = "id") -> dict[str, Any]:
        """Insert *row* into *table* and return the inserted row (``returning`` columns)."""
        response = self._client.post(
            f"/{table}",
            params={"select": returning},
            json=row,
            headers={"Prefer": "return=representation"},
        )
        response.raise_for_status()
        data = response.json()
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected insert response from '{table}': {data!r}")
        return data

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Any:
        """Return rows of *table* matching the equality *filters*."""
        params: dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order is not None:
            params["order"] = f"{order}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit
        response = self._client.get(f"/{table}", params=params)
        response.raise_for_status()
        return response.json()
