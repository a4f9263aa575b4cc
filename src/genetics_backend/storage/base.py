"""Base class for analytical warehouse backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

Row = Sequence[Any]


@dataclass(frozen=True)
class Query:
    """SQL text plus the named parameters bound to it."""

    sql: str
    params: Mapping[str, Any] = field(default_factory=dict)


class Warehouse(ABC):
    """Runs read-only parameterized queries against the columnar warehouse."""

    @abstractmethod
    async def fetch(self, query: Query) -> list[Row]:
        """Return result rows in query order, or raise on any execution failure."""
