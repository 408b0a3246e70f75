"""
turbopuffer API Client

This module implements the small slice of the turbopuffer HTTP API that the
indexer consumes:

- namespace write (upsert rows + schema)
- namespace query (rank_by / top_k / include_attributes)
- namespace metadata fetch
- namespace delete-all

Every failure surfaces as a `TurbopufferError`. HTTP-level failures carry the
response status code so callers can tell "not found" apart from other
errors; transport failures carry `status_code=None`.

The client holds no connection state and is safe to reuse.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger("mtg_search.turbopuffer")


class TurbopufferError(RuntimeError):
    """Raised when a turbopuffer request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == httpx.codes.NOT_FOUND


class TurbopufferClient:
    """
    Asynchronous turbopuffer client scoped to one region.
    """

    def __init__(
        self,
        api_key: str,
        region: str = "gcp-us-central1",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        api_key : str
            turbopuffer API key.

        region : str
            turbopuffer region, e.g. "gcp-us-central1".

        timeout : float
            HTTP timeout for each request.

        transport : Optional[httpx.AsyncBaseTransport]
            Optional transport override, used by tests.
        """
        if not api_key:
            raise ValueError("turbopuffer API key must be non-empty.")

        self.region = region
        self.base_url = f"https://{region}.turbopuffer.com"
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def write(
        self,
        namespace: str,
        upsert_rows: List[Dict[str, Any]],
        schema: Dict[str, Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Upsert rows into a namespace, creating it on first write.
        """
        payload = {
            "upsert_rows": upsert_rows,
            "schema": schema,
        }
        return await self._request("POST", f"/v2/namespaces/{namespace}", json=payload)

    async def query(
        self,
        namespace: str,
        payload: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        """
        Run a query and return its rows (possibly empty).
        """
        data = await self._request(
            "POST", f"/v2/namespaces/{namespace}/query", json=payload
        )
        rows = data.get("rows") or []
        if not isinstance(rows, list):
            raise TurbopufferError(
                f"Malformed query response for namespace {namespace!r}: 'rows' must be a list."
            )
        return rows

    async def metadata(self, namespace: str) -> Dict[str, Any]:
        """
        Fetch namespace metadata. Raises with status 404 if absent.
        """
        return await self._request("GET", f"/v1/namespaces/{namespace}/metadata")

    async def delete_all(self, namespace: str) -> Dict[str, Any]:
        """
        Delete a namespace and all of its rows. Raises with status 404 if absent.
        """
        return await self._request("DELETE", f"/v2/namespaces/{namespace}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(
                "turbopuffer request failed (%s): %s %s, error=%s",
                type(exc).__name__,
                method,
                path,
                str(exc),
            )
            raise TurbopufferError(
                f"{method} {path} failed: {type(exc).__name__}: {exc}"
            ) from exc

        if response.is_error:
            raise TurbopufferError(
                f"{method} {path} returned {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}

        try:
            data = response.json()
        except ValueError as exc:
            raise TurbopufferError(
                f"{method} {path} returned a non-JSON body."
            ) from exc

        if not isinstance(data, dict):
            raise TurbopufferError(f"{method} {path} returned a non-object body.")

        return data


def _error_detail(response: httpx.Response) -> str:
    """
    turbopuffer returns {"status": "error", "error": "..."} on failure.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase

    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase
