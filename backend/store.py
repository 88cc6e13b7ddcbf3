"""GuardianAI Backend — Data Store

Rows are plain dicts. Two implementations share one interface:

  SupabaseStore  — Supabase PostgREST over httpx (production)
  InMemoryStore  — process-local tables, used when Supabase is not configured

Filters are equality matches only: {"city": "Mumbai", "is_active": True}.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY

logger = logging.getLogger("guardian.store")

TABLES = (
    "route_analyses",
    "emergency_contacts",
    "safety_incidents",
    "chat_sessions",
    "risk_factors",
    "profiles",
)


class StoreError(Exception):
    """Raised when the data store rejects or cannot serve a request."""


class NotFoundError(StoreError):
    """The addressed row does not exist."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DataStore:
    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        raise NotImplementedError

    async def insert(self, table: str, row: dict) -> dict:
        raise NotImplementedError

    async def update(self, table: str, row_id: str, values: dict) -> dict:
        raise NotImplementedError

    async def delete(self, table: str, row_id: str) -> bool:
        raise NotImplementedError

    async def close(self):
        pass


class InMemoryStore(DataStore):
    def __init__(self):
        self._tables: dict[str, list[dict]] = {t: [] for t in TABLES}

    def _table(self, table: str) -> list[dict]:
        if table not in self._tables:
            raise StoreError(f"Unknown table '{table}'")
        return self._tables[table]

    async def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        rows = [
            dict(r) for r in self._table(table)
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by:
            # None sorts last in either direction
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def insert(self, table, row):
        now = _now_iso()
        stored = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **row}
        self._table(table).append(stored)
        return dict(stored)

    async def update(self, table, row_id, values):
        for r in self._table(table):
            if r.get("id") == row_id:
                r.update(values)
                r["updated_at"] = _now_iso()
                return dict(r)
        raise NotFoundError(f"No row '{row_id}' in {table}")

    async def delete(self, table, row_id):
        rows = self._table(table)
        for i, r in enumerate(rows):
            if r.get("id") == row_id:
                del rows[i]
                return True
        return False


def _encode_filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class SupabaseStore(DataStore):
    """Talks to the Supabase REST endpoint (/rest/v1) with the service role key."""

    def __init__(self, url: str, service_key: str, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(timeout=10.0)
        self._base = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, table: str, *, params=None, json=None, prefer=None) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            r = await self._client.request(
                method, f"{self._base}/{table}", params=params, json=json, headers=headers,
            )
        except httpx.HTTPError as e:
            raise StoreError(f"Supabase {method} {table} failed: {e}") from e
        if r.status_code >= 400:
            raise StoreError(f"Supabase {method} {table} returned {r.status_code}: {r.text[:200]}")
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise StoreError(f"Supabase {method} {table} returned a non-JSON body: {r.text[:200]}") from e

    async def select(self, table, filters=None, order_by=None, descending=False, limit=None):
        params: dict[str, Any] = {"select": "*"}
        for key, value in (filters or {}).items():
            op = "is" if value is None else "eq"
            params[key] = f"{op}.{_encode_filter_value(value)}"
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = limit
        data = await self._request("GET", table, params=params)
        return data or []

    async def insert(self, table, row):
        data = await self._request("POST", table, json=row, prefer="return=representation")
        if not data:
            raise StoreError(f"Supabase insert into {table} returned no row")
        return data[0]

    async def update(self, table, row_id, values):
        data = await self._request(
            "PATCH", table,
            params={"id": f"eq.{row_id}"},
            json={**values, "updated_at": _now_iso()},
            prefer="return=representation",
        )
        if not data:
            raise NotFoundError(f"No row '{row_id}' in {table}")
        return data[0]

    async def delete(self, table, row_id):
        data = await self._request(
            "DELETE", table, params={"id": f"eq.{row_id}"}, prefer="return=representation",
        )
        return bool(data)

    async def close(self):
        await self._client.aclose()


_store: Optional[DataStore] = None


def get_store() -> DataStore:
    """Process-wide store; FastAPI dependency."""
    global _store
    if _store is None:
        if SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY:
            _store = SupabaseStore(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
            logger.info(f"Using Supabase store at {SUPABASE_URL}")
        else:
            _store = InMemoryStore()
            logger.warning("Supabase not configured, using in-memory store (data is not persisted)")
    return _store
