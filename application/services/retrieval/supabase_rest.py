"""
Thin PostgREST client for the Supabase database.

Only the calls the retrieval layer needs: RPC functions, filtered selects
and inserts. Authenticates with the service-role key.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from common.config import config

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class SupabaseRestError(Exception):
    """Raised when PostgREST answers with a non-2xx status."""

    def __init__(self, path: str, status_code: int, detail: str = ""):
        self.path = path
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Supabase request to {path} failed with {status_code}: {detail}")


class SupabaseRestClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: Optional[str] = None,
        service_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.http_client = http_client
        self.url = (url or config.SUPABASE_URL or "").rstrip("/")
        self.service_key = service_key or config.SUPABASE_SERVICE_ROLE_KEY
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.url and self.service_key)

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.service_key or "",
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self.http_client.request(
            method,
            f"{self.url}/rest/v1/{path}",
            timeout=self.timeout,
            **kwargs,
        )
        if response.status_code >= 400:
            raise SupabaseRestError(path, response.status_code, response.text[:200])
        if not response.content:
            return None
        return response.json()

    async def rpc(self, function: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Call a database function and return its rows."""
        rows = await self._request("POST", f"rpc/{function}", json=params, headers=self._headers())
        return rows or []

    async def select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """Select rows using PostgREST query parameters (``column=eq.value``...)."""
        rows = await self._request("GET", table, params=params, headers=self._headers())
        return rows or []

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        await self._request(
            "POST", table, json=rows, headers=self._headers(prefer="return=minimal")
        )
