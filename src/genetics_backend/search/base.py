"""Base class and query model for full-text search backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from genetics_backend.pagination import SearchWindow


@dataclass(frozen=True)
class PrefixClause:
    field: str
    value: str

    def to_dsl(self) -> dict[str, Any]:
        return {"prefix": {self.field: self.value}}


@dataclass(frozen=True)
class FreeTextClause:
    query: str

    def to_dsl(self) -> dict[str, Any]:
        return {"query_string": {"query": self.query}}


Clause = Union[PrefixClause, FreeTextClause]


@dataclass(frozen=True)
class ShouldQuery:
    """Boolean query matching documents that satisfy any of its clauses."""

    clauses: tuple[Clause, ...]

    def to_dsl(self, window: SearchWindow) -> dict[str, Any]:
        return {
            "query": {"bool": {"should": [clause.to_dsl() for clause in self.clauses]}},
            "from": window.start,
            "size": window.size,
        }


@dataclass(frozen=True)
class SearchHits:
    total: int
    documents: Sequence[Mapping[str, Any]] = field(default_factory=tuple)


class SearchIndex(ABC):
    """Executes boolean-should queries against named search indices."""

    @abstractmethod
    async def search(self, index: str, query: ShouldQuery, window: SearchWindow) -> SearchHits:
        """Return the total hit count and the windowed hit documents, or raise."""
