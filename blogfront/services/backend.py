"""Async client for the record backend's collection API."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The backend (or a proxied origin) answered with a non-2xx status or not at all."""

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"HTTP {status}: {body[:200]}" if body else f"HTTP {status}")
        self.status = status
        self.body = body


class RecordNotFound(UpstreamError):
    """A single-record lookup returned 404."""


class BackendClient:
    """Thin wrapper over ``/api/collections/{name}/records``.

    The underlying :class:`httpx.AsyncClient` must have ``base_url`` set to
    the backend origin; it is owned by the caller.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def http(self) -> httpx.AsyncClient:
        return self._client

    async def list(
        self,
        collection: str,
        *,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        filter: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return one page of *collection* as ``{items, page, perPage, totalItems, totalPages}``."""
        params = {
            "page": page,
            "perPage": per_page,
            "filter": filter,
            "sort": sort,
        }
        params = {key: value for key, value in params.items() if value not in (None, "")}
        return await self._get_json(f"/api/collections/{collection}/records", params)

    async def get_one(self, collection: str, record_id: str) -> Dict[str, Any]:
        """Return a single record, raising :class:`RecordNotFound` on 404."""
        path = f"/api/collections/{collection}/records/{quote(record_id, safe='')}"
        return await self._get_json(path)

    async def get_file(self, collection: str, record_id: str, filename: str) -> httpx.Response:
        """Fetch a stored file; the response body is fully read."""
        path = f"/api/files/{collection}/{quote(record_id, safe='')}/{quote(filename, safe='')}"
        response = await self._send(path)
        self._raise_for_status(response)
        return response

    async def _send(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        try:
            return await self._client.get(path, params=params)
        except httpx.RequestError as exc:
            logger.warning("Backend request to %s failed: %s", path, exc)
            raise UpstreamError(0, str(exc)) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        if response.status_code == 404:
            raise RecordNotFound(404, response.text)
        raise UpstreamError(response.status_code, response.text)

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Dict[str, Any]:
        response = await self._send(path, params)
        self._raise_for_status(response)
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(response.status_code, "invalid JSON payload") from exc
        if not isinstance(data, dict):
            raise UpstreamError(response.status_code, "unexpected payload shape")
        return data
