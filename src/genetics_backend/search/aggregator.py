"""Concurrent study/variant/gene search merged into one result set."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from genetics_backend.config import SearchIndices
from genetics_backend.decoders import (
    decode_gene_document,
    decode_study_document,
    decode_variant_document,
)
from genetics_backend.models import SearchCategory, SearchResultSet
from genetics_backend.pagination import SearchWindow
from genetics_backend.search.base import (
    FreeTextClause,
    PrefixClause,
    SearchIndex,
    ShouldQuery,
)
from genetics_backend.violations import (
    InputParameterCheckError,
    SearchExecutionError,
    Violation,
    ViolationKind,
)

logger = logging.getLogger(__name__)


def normalize_search_text(raw: str) -> tuple[str, str]:
    """Return ``(prefix_token, free_text)`` for a raw query.

    Raises :class:`InputParameterCheckError` for blank input so no search
    request is ever issued for it.
    """

    token = str(raw).strip().lower()
    if not token:
        raise InputParameterCheckError([Violation(kind=ViolationKind.EMPTY_SEARCH_QUERY, raw=raw)])
    return token, token.replace("-", " and ")


class SearchAggregator:
    """Fan out one query to the study, variant and gene indices and merge the hits."""

    def __init__(
        self,
        index: SearchIndex,
        *,
        indices: SearchIndices | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.index = index
        self.indices = indices or SearchIndices()
        self.timeout_seconds = timeout_seconds

    def build_queries(self, token: str, free_text: str) -> dict[str, ShouldQuery]:
        return {
            "studies": ShouldQuery(
                (
                    PrefixClause("study_id", token),
                    PrefixClause("pmid", token),
                    FreeTextClause(free_text),
                )
            ),
            "variants": ShouldQuery(
                (
                    PrefixClause("variant_id", token),
                    PrefixClause("rs_id", token),
                )
            ),
            "genes": ShouldQuery(
                (
                    PrefixClause("gene_id", token),
                    FreeTextClause(free_text),
                )
            ),
        }

    async def search(self, raw_query: str, window: SearchWindow) -> SearchResultSet:
        token, free_text = normalize_search_text(raw_query)
        queries = self.build_queries(token, free_text)

        tasks = [
            asyncio.create_task(
                self._run(self.indices.studies, queries["studies"], window, decode_study_document)
            ),
            asyncio.create_task(
                self._run(self.indices.variants, queries["variants"], window, decode_variant_document)
            ),
            asyncio.create_task(
                self._run(self.indices.genes, queries["genes"], window, decode_gene_document)
            ),
        ]
        try:
            studies, variants, genes = await asyncio.gather(*tasks)
        except Exception as exc:
            # one failed category fails the search; stop the others before returning
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning("Search for %r failed: %s", token, exc)
            raise SearchExecutionError(f"Search for '{token}' failed: {exc}") from exc

        return SearchResultSet(genes=genes, variants=variants, studies=studies)

    async def _run(
        self,
        index_name: str,
        query: ShouldQuery,
        window: SearchWindow,
        decode: Callable[[Mapping[str, Any]], Any],
    ) -> SearchCategory:
        call = self.index.search(index_name, query, window)
        if self.timeout_seconds is not None:
            hits = await asyncio.wait_for(call, timeout=self.timeout_seconds)
        else:
            hits = await call
        return SearchCategory(
            total=hits.total,
            items=tuple(decode(document) for document in hits.documents),
        )
