"""Translate page index/size requests into warehouse and search windows."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WarehouseWindow:
    limit: int
    offset: int

    @property
    def clause(self) -> str:
        return f"LIMIT {self.limit} OFFSET {self.offset}"


@dataclass(frozen=True)
class SearchWindow:
    start: int
    size: int


@dataclass(frozen=True)
class Pagination:
    """A normalized ``(index, size)`` request.

    Missing values fall back to page 0 and the configured default size, and
    negative values are read by magnitude. Both windows compute the offset as
    ``index * size``, but each clamps against its own limit: the warehouse caps
    the page size at ``max_page_size``, while the search engine only serves hits
    inside ``search_max_window``. The two offsets agree only while the request
    stays under both limits; past the search window the search side returns an
    empty window where the warehouse still pages.
    """

    index: int
    size: int

    @classmethod
    def from_request(
        cls,
        page_index: int | None,
        page_size: int | None,
        *,
        default_size: int,
    ) -> "Pagination":
        index = abs(page_index) if page_index is not None else 0
        size = abs(page_size) if page_size else 0
        return cls(index=index, size=size or default_size)

    def for_warehouse(self, max_size: int) -> WarehouseWindow:
        limit = min(self.size, max_size)
        return WarehouseWindow(limit=limit, offset=self.index * limit)

    def for_search(self, max_window: int) -> SearchWindow:
        size = min(self.size, max_window)
        start = min(self.index * size, max_window)
        # the engine rejects windows reaching past max_window
        return SearchWindow(start=start, size=min(size, max_window - start))
