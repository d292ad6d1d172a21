"""GraphQL query capability over HTTP.

The pipeline only needs an awaitable `handler(query, variables) -> {"data": ...}`.
`GraphQLClient` is the default implementation: it POSTs the query to a
GraphQL endpoint (for example a static site generator's development server)
with httpx, retries transient transport failures and 5xx responses with
exponential backoff, and turns GraphQL `errors` into `QueryExecutionError`.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Dict, Optional, Protocol

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import QueryExecutionError

logger = logging.getLogger(__name__)

__all__ = ["GraphQLClient", "QueryHandler"]


class QueryHandler(Protocol):
    def __call__(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Awaitable[Dict[str, Any]]: ...


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500 or exc.response.status_code == 429
    return False


class GraphQLClient:
    """Execute GraphQL queries against an HTTP endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30,
        *,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._headers = headers or {}
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=self._headers)
        return self._client

    @retry(
        reraise=True,
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        retry=retry_if_exception(_is_transient),
    )
    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        resp = await self._http().post(self.endpoint, json=payload)
        resp.raise_for_status()
        return resp

    async def execute(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """POST `query` and return the decoded response body.

        Raises:
            QueryExecutionError: on HTTP failure, invalid JSON, or GraphQL errors.
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        try:
            resp = await self._post(payload)
        except httpx.HTTPError as e:
            raise QueryExecutionError(f"query request to {self.endpoint} failed: {e}") from e
        try:
            body = resp.json()
        except ValueError as e:
            raise QueryExecutionError(f"invalid query response JSON: {e}") from e
        if not isinstance(body, dict):
            raise QueryExecutionError("query response must be a JSON object")
        errors = body.get("errors")
        if errors:
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise QueryExecutionError(f"query returned errors: {messages}")
        logger.debug("Query ok (%d bytes, variables=%s)", len(resp.content), variables)
        return body

    async def __call__(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await self.execute(query, variables)
