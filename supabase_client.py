"""
Minimal async client for the Supabase REST (PostgREST) interface.

Queries are built fluently and executed with httpx:

    result = await client.query("careers").select("*").order("title").execute()
    if result["error"]:
        ...
    rows = result["data"]

Requests carry the caller's bearer token so row-level security applies
to every read and write.
"""
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx

from core.log import get_logger

logger = get_logger(__name__)

Rows = Union[Dict[str, Any], List[Dict[str, Any]]]


class QueryBuilder:
    def __init__(self, client: "SupabaseClient", table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._params: List[Tuple[str, str]] = []
        self._body: Optional[Rows] = None

    def select(self, columns: str = "*") -> "QueryBuilder":
        self._method = "GET"
        self._params.append(("select", columns))
        return self

    def insert(self, rows: Rows) -> "QueryBuilder":
        self._method = "POST"
        self._body = rows
        return self

    def update(self, values: Dict[str, Any]) -> "QueryBuilder":
        self._method = "PATCH"
        self._body = values
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"eq.{_format_value(value)}"))
        return self

    def order(self, column: str, desc: bool = False) -> "QueryBuilder":
        self._params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    async def execute(self) -> Dict[str, Any]:
        """
        Run the query.

        Returns {"data": rows, "error": None} on success and
        {"data": None, "error": <detail>} when the store rejects the request
        or cannot be reached.
        """
        headers = {}
        if self._method in ("POST", "PATCH"):
            headers["Prefer"] = "return=representation"

        try:
            response = await self._client.http.request(
                self._method,
                self._client.table_url(self._table),
                params=self._params,
                json=self._body,
                headers={**self._client.headers, **headers},
            )
        except httpx.HTTPError as e:
            logger.error("[Store] %s %s failed: %s", self._method, self._table, e)
            return {"data": None, "error": str(e) or type(e).__name__}

        if response.status_code >= 400:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text
            logger.error(
                "[Store] %s %s returned %s: %s",
                self._method, self._table, response.status_code, detail,
            )
            return {"data": None, "error": detail}

        data = response.json() if response.content else []
        return {"data": data, "error": None}


class SupabaseClient:
    def __init__(
        self,
        url: str,
        api_key: str,
        http: httpx.AsyncClient,
        access_token: Optional[str] = None,
    ):
        self.url = url.rstrip("/")
        self.http = http
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        }

    def table_url(self, table: str) -> str:
        return f"{self.url}/rest/v1/{table}"

    def query(self, table: str) -> QueryBuilder:
        return QueryBuilder(self, table)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
