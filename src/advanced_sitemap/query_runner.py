"""Sequential, optionally paginated query execution.

Large sites can return more records than comfortably fit in memory in one
response. Queries given as a `name -> query` mapping therefore run strictly
one after another, with a pause between them, and a query that declares the
pagination markers is fetched in fixed-size pages:

    query text must contain all of
        hasNextPage        next-page indicator in the selection
        $limit: / $skip:   variable declarations
        limit: $limit / skip: $skip   their use in the query body

State per query: START -> (PAGED | SINGLE) -> DONE. Any failure while paging
falls back to one unpaginated request for that query only; if that fails too
the build fails with a `QueryExecutionError` naming the query.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from .defaults import DEFAULT_QUERY_DELAY_SECONDS, DEFAULT_SPLIT_QUERY_PAGE_SIZE
from .errors import QueryExecutionError
from .query_client import QueryHandler

logger = logging.getLogger(__name__)

PAGINATION_MARKERS = (
    "hasNextPage",
    "$limit:",
    "$skip:",
    "limit: $limit",
    "skip: $skip",
)

SleepFn = Callable[[float], Awaitable[Any]]

__all__ = ["PAGINATION_MARKERS", "QueryRunner", "has_pagination_markers"]


def has_pagination_markers(query: str) -> bool:
    return all(marker in query for marker in PAGINATION_MARKERS)


def _connection(response: Any, query_name: str) -> Any:
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    if not isinstance(data, dict):
        return None
    return data.get(query_name)


class QueryRunner:
    """Runs named queries one at a time against a query handler.

    Args:
        handler: Awaitable query capability, `handler(query, variables)`.
        page_size: Records per request for paginated queries.
        delay: Seconds to pause after each query of a sequential run.
        sleep: Awaitable sleep used for the pause (injectable for tests).
    """

    def __init__(
        self,
        handler: QueryHandler,
        page_size: int = DEFAULT_SPLIT_QUERY_PAGE_SIZE,
        delay: float = DEFAULT_QUERY_DELAY_SECONDS,
        sleep: Optional[SleepFn] = None,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be a positive integer")
        self.handler = handler
        self.page_size = page_size
        self.delay = delay
        self._sleep: SleepFn = sleep or asyncio.sleep

    async def run_query(
        self, query: Union[str, Mapping[str, str]]
    ) -> Dict[str, Any]:
        """Dispatch: mappings run sequentially, a plain string runs once."""
        if isinstance(query, str):
            return await self.run_single(query)
        return await self.run(query)

    async def run_single(self, query: str) -> Dict[str, Any]:
        """Issue one request and return its whole `data` mapping."""
        response = await self.handler(query, None)
        data = response.get("data") if isinstance(response, dict) else None
        return dict(data) if isinstance(data, dict) else {}

    async def run(self, queries: Mapping[str, str]) -> Dict[str, Any]:
        """Run each named query in order and return `name -> connection`."""
        logger.info("Running %d queries sequentially", len(queries))
        results: Dict[str, Any] = {}
        for name, query in queries.items():
            logger.info("Start running query %r", name)
            if has_pagination_markers(query):
                results[name] = await self._run_paged_with_fallback(name, query)
            else:
                results[name] = await self._run_unpaged(name, query)
            edges = results[name].get("edges") if isinstance(results[name], dict) else None
            logger.info(
                "Query %r done (%d edge(s))", name, len(edges) if isinstance(edges, list) else 0
            )
            if self.delay > 0:
                await self._sleep(self.delay)
        return results

    async def _run_unpaged(self, name: str, query: str) -> Any:
        try:
            response = await self.handler(query, None)
        except Exception as e:
            raise QueryExecutionError(
                f"Something went wrong running query {name!r}: {e}", query_name=name
            ) from e
        return _connection(response, name)

    async def _run_paged_with_fallback(self, name: str, query: str) -> Any:
        try:
            return await self.run_paged(name, query)
        except Exception as e:
            logger.warning(
                "Failed running query %r in batches (%s); retrying without batching", name, e
            )
            return await self._run_unpaged(name, query)

    async def run_paged(self, name: str, query: str) -> Any:
        """Fetch all pages of `name`, concatenating their edges.

        Returns the first page's connection with `edges` replaced by the
        concatenation of every page and `pageInfo` taken from the last page.
        """
        skip = 0
        batch = 1
        first: Optional[Dict[str, Any]] = None
        edges: List[Any] = []
        while True:
            logger.debug("Run query %r batch #%d (skip=%d)", name, batch, skip)
            response = await self.handler(query, {"limit": self.page_size, "skip": skip})
            page = _connection(response, name)
            if page is None:
                if first is None:
                    return None
                break
            if not isinstance(page, dict):
                raise QueryExecutionError(
                    f"query {name!r} returned a non-object page", query_name=name
                )
            if first is None:
                first = dict(page)
            page_edges = page.get("edges")
            if isinstance(page_edges, list):
                edges.extend(page_edges)
            first["pageInfo"] = page.get("pageInfo")
            page_info = page.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            skip += self.page_size
            batch += 1
        first["edges"] = edges
        return first
