"""Warehouse backends for the genetics backend."""

from .base import Query, Row, Warehouse
from .duckdb_warehouse import DuckDBWarehouse

__all__ = ["Query", "Row", "Warehouse", "DuckDBWarehouse"]
