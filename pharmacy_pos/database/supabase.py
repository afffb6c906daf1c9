"""
Supabase Record Store

HTTP client for the hosted backend's PostgREST interface.
"""

import json
import logging
from typing import Any, Optional

import httpx

from .record_store import (
    ConditionFailed,
    Filter,
    RecordNotFound,
    RecordStore,
    RecordStoreError,
)

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: Any) -> str:
    text = _format_value(value)
    if any(c in text for c in ',()" '):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def render_filter(f: Filter) -> tuple[str, str]:
    """Render a filter as a PostgREST query parameter"""
    if f.op == "in":
        return f.column, f"in.({','.join(_quote(v) for v in f.value)})"
    if f.value is None and f.op in ("eq", "neq"):
        return f.column, "is.null" if f.op == "eq" else "not.is.null"
    return f.column, f"{f.op}.{_format_value(f.value)}"


class SupabaseRecordStore(RecordStore):
    """
    Record store backed by Supabase's REST (PostgREST) API.

    Every write asks for ``return=representation`` so inserted ids and
    conditional-update outcomes come back in the response body.
    """

    def __init__(
        self,
        rest_url: str,
        api_key: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the record store client.

        Args:
            rest_url: Base URL of the REST API, e.g. ``https://x.supabase.co/rest/v1``
            api_key: Project API key
            timeout: Per-request timeout in seconds
            http_client: Pre-configured client (mainly for tests)
        """
        self.base_url = rest_url.rstrip("/")
        self._api_key = api_key
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _generate_headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        collection: str,
        params: Optional[list[tuple[str, str]]] = None,
        body: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """Make a REST call, mapping transport and HTTP failures to RecordStoreError"""
        url = f"{self.base_url}/{collection}"
        content = json.dumps(body) if body is not None else None

        try:
            response = await self._http_client.request(
                method=method,
                url=url,
                params=params,
                headers=self._generate_headers(prefer),
                content=content,
            )
        except httpx.TransportError as e:
            logger.error(f"Record store unreachable: {method} {collection} - {e!r}")
            raise RecordStoreError(f"{method} {collection} failed: {e!r}") from e

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            raise RecordStoreError(
                f"{method} {collection} failed: {response.status_code} - {response.text}"
            )

        if not response.content:
            return None
        return response.json()

    async def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("POST", collection, body=record, prefer="return=representation")
        if not rows:
            raise RecordStoreError(f"Insert into {collection} returned no row")
        return rows[0]

    async def insert_many(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        rows = await self._request("POST", collection, body=records, prefer="return=representation")
        if rows is None or len(rows) != len(records):
            raise RecordStoreError(
                f"Batch insert into {collection} returned {len(rows or [])} of {len(records)} rows"
            )
        return rows

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: dict[str, Any],
        match: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        params = [render_filter(Filter("id", "eq", record_id))]
        for column, value in (match or {}).items():
            params.append(render_filter(Filter(column, "eq", value)))

        rows = await self._request(
            "PATCH", collection, params=params, body=patch, prefer="return=representation"
        )
        if not rows:
            if match:
                raise ConditionFailed(f"{collection}/{record_id} did not match {match}")
            raise RecordNotFound(f"{collection}/{record_id} not found")
        return rows[0]

    async def select(
        self,
        collection: str,
        filters: tuple[Filter, ...] | list[Filter] = (),
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        params = [("select", "*")]
        params.extend(render_filter(f) for f in filters)
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        rows = await self._request("GET", collection, params=params)
        return rows or []

    async def delete(self, collection: str, record_id: str) -> None:
        rows = await self._request(
            "DELETE",
            collection,
            params=[render_filter(Filter("id", "eq", record_id))],
            prefer="return=representation",
        )
        if not rows:
            raise RecordNotFound(f"{collection}/{record_id} not found")
