"""Elasticsearch-compatible search index over HTTP."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from genetics_backend.pagination import SearchWindow
from genetics_backend.search.base import SearchHits, SearchIndex, ShouldQuery
from genetics_backend.violations import DecodeError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(25.0, connect=4.0)


def _join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


class HttpSearchIndex(SearchIndex):
    """POST query DSL to ``<base_url>/<index>/_search``.

    A shared ``httpx.AsyncClient`` can be injected so connection pooling is
    owned by the caller; otherwise one short-lived client is used per search.
    """

    def __init__(
        self,
        *,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url
        self.client = client
        self.headers = {"Accept": "application/json", **(headers or {})}
        self.timeout = timeout

    async def search(self, index: str, query: ShouldQuery, window: SearchWindow) -> SearchHits:
        url = _join_url(self.base_url, f"{index}/_search")
        body = query.to_dsl(window)
        logger.debug("Searching %s with %s", url, body)

        if self.client is not None:
            response = await self.client.post(url, json=body, headers=self.headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=body, headers=self.headers)

        response.raise_for_status()
        return self._parse(response.json())

    @staticmethod
    def _parse(payload: Any) -> SearchHits:
        try:
            hits = payload["hits"]
            total = hits["total"]
            if isinstance(total, dict):
                total = total["value"]
            documents = tuple(hit.get("_source", {}) for hit in hits.get("hits", []))
            return SearchHits(total=int(total), documents=documents)
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"Unexpected search response shape: {exc}") from exc
