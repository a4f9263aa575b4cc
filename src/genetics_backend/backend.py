"""Async facade exposing every association view of the genetics backend."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, TypeVar

from genetics_backend.aggregation import build_g2v_schema, group_g2v_associations
from genetics_backend.config import BackendConfig
from genetics_backend.decoders import (
    decode_gecko_line,
    decode_index_variant_association,
    decode_manhattan,
    decode_phewas,
    decode_schema_row,
    decode_scored_g2v_line,
    decode_study,
    decode_tag_variant_association,
)
from genetics_backend.models import (
    G2VAssociation,
    G2VSchema,
    Gecko,
    GeckoLine,
    IndexVariantTable,
    ManhattanTable,
    PheWASTable,
    SearchResultSet,
    Study,
    TagVariantTable,
)
from genetics_backend.pagination import Pagination
from genetics_backend.parsing import (
    combine,
    parse_chromosome,
    parse_region,
    parse_study_ids,
    parse_variant,
)
from genetics_backend.queries import QueryBuilder
from genetics_backend.search.aggregator import SearchAggregator
from genetics_backend.search.base import SearchIndex
from genetics_backend.storage.base import Query, Row, Warehouse
from genetics_backend.violations import DecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GeneticsBackend:
    """Validate requests, run warehouse/search queries and shape the responses.

    Lookup views degrade to an empty aggregate when the warehouse call or row
    decoding fails; only validation errors reach the caller. Free-text search
    is the exception and propagates any failure as ``SearchExecutionError``.

    Summary statistics may live in a separate warehouse; when
    ``sumstats_warehouse`` is omitted the main warehouse serves them.
    """

    def __init__(
        self,
        warehouse: Warehouse,
        search_index: SearchIndex,
        config: BackendConfig | None = None,
        sumstats_warehouse: Warehouse | None = None,
    ) -> None:
        self.config = config or BackendConfig()
        self.warehouse = warehouse
        self.sumstats_warehouse = sumstats_warehouse or warehouse
        self.queries = QueryBuilder(self.config)
        self.searcher = SearchAggregator(
            search_index,
            indices=self.config.search_indices,
            timeout_seconds=self.config.query_timeout_seconds,
        )

    def _pagination(self, page_index: int | None, page_size: int | None) -> Pagination:
        return Pagination.from_request(
            page_index, page_size, default_size=self.config.default_page_size
        )

    async def _fetch(self, warehouse: Warehouse, query: Query) -> list[Row]:
        call = warehouse.fetch(query)
        if self.config.query_timeout_seconds is not None:
            return await asyncio.wait_for(call, timeout=self.config.query_timeout_seconds)
        return await call

    async def _run(
        self,
        view: str,
        query: Query,
        decode: Callable[[list[Row]], T],
        empty: Callable[[], T],
        *,
        warehouse: Warehouse | None = None,
    ) -> T:
        try:
            rows = await self._fetch(warehouse or self.warehouse, query)
            return decode(rows)
        except Exception as exc:
            logger.warning("%s query failed, returning empty result: %s", view, exc)
            return empty()

    async def build_phewas_table(
        self,
        variant_id: str,
        page_index: int | None = None,
        page_size: int | None = None,
    ) -> PheWASTable:
        variant = parse_variant(variant_id).unwrap()
        parse_chromosome(variant.position.chromosome).unwrap()
        window = self._pagination(page_index, page_size).for_warehouse(self.config.max_page_size)

        return await self._run(
            "phewas",
            self.queries.phewas(variant, window),
            lambda rows: PheWASTable(tuple(decode_phewas(row) for row in rows)),
            PheWASTable,
            warehouse=self.sumstats_warehouse,
        )

    async def get_g2v_schema(self) -> G2VSchema:
        return await self._run(
            "g2v_schema",
            self.queries.g2v_schema(),
            lambda rows: build_g2v_schema(decode_schema_row(row) for row in rows),
            G2VSchema,
        )

    async def get_studies(self, study_ids: Iterable[str]) -> list[Study]:
        ids = parse_study_ids(study_ids).unwrap()
        if not ids:
            return []

        return await self._run(
            "studies",
            self.queries.studies(ids),
            lambda rows: [decode_study(row) for row in rows],
            list,
        )

    async def build_manhattan_table(
        self,
        study_id: str,
        page_index: int | None = None,
        page_size: int | None = None,
    ) -> ManhattanTable:
        (study,) = parse_study_ids([study_id]).unwrap()
        window = self._pagination(page_index, page_size).for_warehouse(self.config.max_page_size)

        return await self._run(
            "manhattan",
            self.queries.manhattan(study, window),
            lambda rows: ManhattanTable(tuple(decode_manhattan(row) for row in rows)),
            ManhattanTable,
        )

    async def build_index_variant_assoc_table(
        self,
        variant_id: str,
        page_index: int | None = None,
        page_size: int | None = None,
    ) -> IndexVariantTable:
        variant = parse_variant(variant_id).unwrap()
        window = self._pagination(page_index, page_size).for_warehouse(self.config.max_page_size)

        return await self._run(
            "index_variant_associations",
            self.queries.index_variant_associations(variant, window),
            lambda rows: IndexVariantTable(
                tuple(decode_index_variant_association(row) for row in rows)
            ),
            IndexVariantTable,
        )

    async def build_tag_variant_assoc_table(
        self,
        variant_id: str,
        page_index: int | None = None,
        page_size: int | None = None,
    ) -> TagVariantTable:
        variant = parse_variant(variant_id).unwrap()
        window = self._pagination(page_index, page_size).for_warehouse(self.config.max_page_size)

        return await self._run(
            "tag_variant_associations",
            self.queries.tag_variant_associations(variant, window),
            lambda rows: TagVariantTable(
                tuple(decode_tag_variant_association(row) for row in rows)
            ),
            TagVariantTable,
        )

    async def build_gecko(self, chromosome: str, start: int, end: int) -> Gecko:
        """Return the regional association stream for ``[start, end]`` on one chromosome.

        Rows are decoded while the returned :class:`Gecko` is iterated; a row
        that cannot be decoded is logged and skipped.
        """

        chrom, (region_start, region_end) = combine(
            parse_chromosome(chromosome),
            parse_region(start, end, max_window=self.config.max_region_size),
        ).unwrap()

        return await self._run(
            "gecko",
            self.queries.gecko(chrom, region_start, region_end),
            lambda rows: Gecko(_decode_lines(rows)),
            Gecko,
        )

    async def build_g2v(self, variant_id: str) -> list[G2VAssociation]:
        variant = parse_variant(variant_id).unwrap()

        return await self._run(
            "g2v",
            self.queries.g2v(variant),
            lambda rows: group_g2v_associations(decode_scored_g2v_line(row) for row in rows),
            list,
        )

    async def search(
        self,
        query: str,
        page_index: int | None = None,
        page_size: int | None = None,
    ) -> SearchResultSet:
        window = self._pagination(page_index, page_size).for_search(self.config.search_max_window)
        return await self.searcher.search(query, window)


def _decode_lines(rows: Sequence[Any]) -> Iterator[GeckoLine]:
    for row in rows:
        try:
            yield decode_gecko_line(row)
        except DecodeError as exc:
            logger.warning("Skipping undecodable regional row: %s", exc)
