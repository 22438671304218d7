"""
Data Store Client - Hosted Postgres through its PostgREST data API
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence
import httpx
import logging
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class DataStoreError(Exception):
    """Raised when the data API rejects a call or cannot be reached"""
    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{message} (status={status_code})" if status_code else message)


def eq_filters(filters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """{"id": 5} -> {"id": "eq.5"}"""
    return {column: f"eq.{value}" for column, value in (filters or {}).items()}


class DataStoreClient:
    """
    Thin PostgREST client authenticated with the service-role key.

    Reads retry on transport errors; writes are sent exactly once and any
    failure is raised as DataStoreError for the caller to handle.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def http(self) -> httpx.AsyncClient:
        """Connection pool shared with the auth provider client"""
        return self._client

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def close(self):
        await self._client.aclose()

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str):
        if response.is_success:
            return
        logger.error(f"Data API {action} failed: {response.status_code} {response.text}")
        raise DataStoreError(f"{action} failed", response.status_code, response.text)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        return response.json()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _get(self, url: str, params: Dict[str, Any]) -> httpx.Response:
        return await self._client.get(url, params=params, headers=self._headers())

    async def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        columns: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"select": columns, **eq_filters(filters)}
        if order:
            params["order"] = order
        if limit:
            params["limit"] = limit
        try:
            response = await self._get(f"{self.rest_url}/{table}", params)
        except httpx.HTTPError as e:
            raise DataStoreError(f"select {table} unreachable: {e}") from e
        self._raise_for_status(response, f"select {table}")
        return self._json(response) or []

    async def select_one(
        self,
        table: str,
        filters: Mapping[str, Any],
        columns: str = "*",
    ) -> Optional[Dict[str, Any]]:
        rows = await self.select(table, filters, columns=columns, limit=1)
        return rows[0] if rows else None

    async def _write(self, method: str, table: str, action: str, **kwargs) -> List[Dict[str, Any]]:
        try:
            response = await self._client.request(method, f"{self.rest_url}/{table}", **kwargs)
        except httpx.HTTPError as e:
            raise DataStoreError(f"{action} {table} unreachable: {e}") from e
        self._raise_for_status(response, f"{action} {table}")
        return self._json(response) or []

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return await self._write(
            "POST", table, "insert",
            json=list(rows),
            headers=self._headers("return=representation"),
        )

    async def upsert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        on_conflict: str = "id",
    ) -> List[Dict[str, Any]]:
        return await self._write(
            "POST", table, "upsert",
            json=list(rows),
            params={"on_conflict": on_conflict},
            headers=self._headers("return=representation,resolution=merge-duplicates"),
        )

    async def update(
        self,
        table: str,
        filters: Mapping[str, Any],
        patch: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        return await self._write(
            "PATCH", table, "update",
            json=dict(patch),
            params=eq_filters(filters),
            headers=self._headers("return=representation"),
        )

    async def delete(self, table: str, filters: Mapping[str, Any]) -> List[Dict[str, Any]]:
        return await self._write(
            "DELETE", table, "delete",
            params=eq_filters(filters),
            headers=self._headers("return=representation"),
        )

    async def rpc(self, function: str, params: Mapping[str, Any]) -> Any:
        try:
            response = await self._client.post(
                f"{self.rest_url}/rpc/{function}",
                json=dict(params),
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise DataStoreError(f"rpc {function} unreachable: {e}") from e
        self._raise_for_status(response, f"rpc {function}")
        return self._json(response)

    async def ping(self) -> bool:
        try:
            response = await self._client.get(f"{self.rest_url}/", headers=self._headers())
            return response.status_code < 500
        except httpx.HTTPError:
            return False
