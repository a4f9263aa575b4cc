"""DuckDB warehouse backend for association queries."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from genetics_backend.storage.base import Query, Row, Warehouse

try:
    import duckdb
except ImportError:  # pragma: no cover - exercised only when dependency missing
    duckdb = None


logger = logging.getLogger(__name__)


class DuckDBWarehouse(Warehouse):
    """Query a DuckDB database file on a worker thread.

    A read-only connection is opened per query and closed afterwards, so the
    event loop never blocks on DuckDB and no connection state leaks between
    requests.
    """

    def __init__(self, *, db_path: str | Path, read_only: bool = True) -> None:
        self.db_path = Path(db_path)
        self.read_only = read_only

    async def fetch(self, query: Query) -> list[Row]:
        return await asyncio.to_thread(self._fetch_sync, query)

    def _fetch_sync(self, query: Query) -> list[Row]:
        if duckdb is None:
            raise RuntimeError(
                "duckdb is not installed. Add it to requirements before querying the warehouse."
            )

        logger.debug("Running warehouse query on %s with params %s", self.db_path, dict(query.params))
        connection = duckdb.connect(str(self.db_path), read_only=self.read_only)
        try:
            if query.params:
                return connection.execute(query.sql, dict(query.params)).fetchall()
            return connection.execute(query.sql).fetchall()
        finally:
            connection.close()
