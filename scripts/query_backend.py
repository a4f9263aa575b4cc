#!/usr/bin/env python3
"""Run one genetics backend view from the command line and print it as JSON."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from genetics_backend import (  # noqa: E402
    BackendConfigLoader,
    BackendError,
    Gecko,
    GeneticsBackend,
    InputParameterCheckError,
)
from genetics_backend.aggregation import summarize_gecko  # noqa: E402
from genetics_backend.search import HttpSearchIndex  # noqa: E402
from genetics_backend.storage import DuckDBWarehouse  # noqa: E402

logger = logging.getLogger("genetics_backend.cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query the genetics backend and print JSON")
    parser.add_argument("--config", default="backend", help="Config name under config/ or a JSON path")
    parser.add_argument("--db-path", required=True, help="DuckDB database holding the association tables")
    parser.add_argument(
        "--sumstats-db-path",
        default=None,
        help="Optional separate DuckDB database for per-chromosome summary statistics",
    )
    parser.add_argument("--search-url", default="http://localhost:9200", help="Search engine base URL")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Runner log level.",
    )

    views = parser.add_subparsers(dest="view", required=True)

    for name in ("phewas", "index-variants", "tag-variants"):
        sub = views.add_parser(name)
        sub.add_argument("variant_id")
        sub.add_argument("--page-index", type=int, default=None)
        sub.add_argument("--page-size", type=int, default=None)

    manhattan = views.add_parser("manhattan")
    manhattan.add_argument("study_id")
    manhattan.add_argument("--page-index", type=int, default=None)
    manhattan.add_argument("--page-size", type=int, default=None)

    studies = views.add_parser("studies")
    studies.add_argument("study_ids", nargs="+")

    views.add_parser("g2v-schema")

    g2v = views.add_parser("g2v")
    g2v.add_argument("variant_id")

    gecko = views.add_parser("gecko")
    gecko.add_argument("chromosome")
    gecko.add_argument("start", type=int)
    gecko.add_argument("end", type=int)
    gecko.add_argument("--summary", action="store_true", help="Print the folded region summary")

    search = views.add_parser("search")
    search.add_argument("query")
    search.add_argument("--page-index", type=int, default=None)
    search.add_argument("--page-size", type=int, default=None)

    return parser.parse_args(argv)


def build_backend(args: argparse.Namespace) -> GeneticsBackend:
    config = BackendConfigLoader().load(args.config)
    sumstats = DuckDBWarehouse(db_path=args.sumstats_db_path) if args.sumstats_db_path else None
    return GeneticsBackend(
        DuckDBWarehouse(db_path=args.db_path),
        HttpSearchIndex(base_url=args.search_url),
        config,
        sumstats_warehouse=sumstats,
    )


async def run_view(backend: GeneticsBackend, args: argparse.Namespace) -> Any:
    view = args.view
    if view == "phewas":
        return await backend.build_phewas_table(args.variant_id, args.page_index, args.page_size)
    if view == "index-variants":
        return await backend.build_index_variant_assoc_table(
            args.variant_id, args.page_index, args.page_size
        )
    if view == "tag-variants":
        return await backend.build_tag_variant_assoc_table(
            args.variant_id, args.page_index, args.page_size
        )
    if view == "manhattan":
        return await backend.build_manhattan_table(args.study_id, args.page_index, args.page_size)
    if view == "studies":
        return await backend.get_studies(args.study_ids)
    if view == "g2v-schema":
        return await backend.get_g2v_schema()
    if view == "g2v":
        return await backend.build_g2v(args.variant_id)
    if view == "gecko":
        gecko = await backend.build_gecko(args.chromosome, args.start, args.end)
        return summarize_gecko(gecko) if args.summary else gecko
    if view == "search":
        return await backend.search(args.query, args.page_index, args.page_size)

    raise ValueError(f"Unknown view: {view}")


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Gecko):
        return [to_jsonable(line) for line in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    backend = build_backend(args)
    try:
        result = asyncio.run(run_view(backend, args))
    except InputParameterCheckError as exc:
        logger.error("Rejected request: %s", exc)
        return 2
    except BackendError as exc:
        logger.error("Request failed: %s", exc)
        return 1

    print(json.dumps(to_jsonable(result), indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
