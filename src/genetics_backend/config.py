"""Configuration contracts for the genetics backend."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jsonschema import FormatChecker
from jsonschema import exceptions as jsex
from jsonschema.validators import validator_for


_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INDEX_RE = re.compile(r"^[a-z0-9_\-\*\.]+$")

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def _check_table_name(role: str, name: str) -> None:
    if not _TABLE_RE.match(name):
        raise ValueError(f"Unsafe table name for {role}: {name}")


@dataclass(frozen=True)
class TableNames:
    """Warehouse tables referenced by logical role.

    ``summary_stats_by_chromosome`` is a ``%s`` template filled with a
    validated chromosome, one summary-statistics table per chromosome.
    """

    summary_stats_by_chromosome: str = "gwas_chr_%s"
    variant_to_disease_by_study: str = "v2d_by_stchr"
    variant_to_disease_by_position: str = "v2d_by_chrpos"
    disease_variant_gene: str = "d2v2g"
    disease_variant_gene_overall_score: str = "d2v2g_score_by_overall"
    variant_to_gene: str = "v2g"
    variant_to_gene_overall_score: str = "v2g_score_by_overall"
    variant_to_gene_structure: str = "v2g_structure"
    studies: str = "studies"
    gene_dictionary: str = "gene"

    def __post_init__(self) -> None:
        template = self.summary_stats_by_chromosome
        if template.count("%s") != 1:
            raise ValueError(f"Summary statistics table template needs one '%s': {template}")
        _check_table_name("summary_stats_by_chromosome", template % "X")

        for role, name in self.__dict__.items():
            if role != "summary_stats_by_chromosome":
                _check_table_name(role, name)

    def summary_stats_for(self, chromosome: str) -> str:
        name = self.summary_stats_by_chromosome % chromosome
        _check_table_name("summary_stats_by_chromosome", name)
        return name


@dataclass(frozen=True)
class SearchIndices:
    """Search-engine index names (patterns allowed) per result category."""

    studies: str = "studies"
    variants: str = "variant_*"
    genes: str = "genes"

    def __post_init__(self) -> None:
        for role, name in self.__dict__.items():
            if not _INDEX_RE.match(name):
                raise ValueError(f"Unsafe index name for {role}: {name}")


@dataclass(frozen=True)
class BackendConfig:
    """Immutable settings handed to the query builder and facade at startup."""

    tables: TableNames = field(default_factory=TableNames)
    search_indices: SearchIndices = field(default_factory=SearchIndices)
    default_page_size: int = 20
    max_page_size: int = 500_000
    search_max_window: int = 10_000
    max_region_size: int = 2_000_000
    sumstats_segment_size: int = 1_000_000
    query_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        for name in (
            "default_page_size",
            "max_page_size",
            "search_max_window",
            "max_region_size",
            "sumstats_segment_size",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.query_timeout_seconds is not None and self.query_timeout_seconds <= 0:
            raise ValueError("query_timeout_seconds must be > 0 when set")


class BackendConfigLoader:
    """Load backend configuration JSON from ``config/`` or a custom path.

    Payloads are checked against ``backend.schema.json`` before the
    dataclasses are built, so typos in keys fail loudly at startup.
    """

    def __init__(
        self,
        config_dir: str | Path | None = None,
        *,
        schema_path: str | Path | None = None,
    ) -> None:
        self.config_dir = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
        self.schema_path = (
            Path(schema_path) if schema_path is not None else DEFAULT_CONFIG_DIR / "backend.schema.json"
        )

    def load(self, name_or_path: str | Path = "backend") -> BackendConfig:
        """Load a config by name (for example, ``backend``) or explicit path."""

        path = self._resolve_path(name_or_path)
        payload = json.loads(path.read_text())
        self._validate(payload, path)
        return self._parse(payload)

    def _resolve_path(self, name_or_path: str | Path) -> Path:
        requested = Path(name_or_path)

        if requested.exists():
            return requested

        candidate = self.config_dir / f"{requested}.json"
        if candidate.exists():
            return candidate

        raise FileNotFoundError(f"Backend config not found: {name_or_path}")

    def _validate(self, payload: Any, path: Path) -> None:
        schema = json.loads(self.schema_path.read_text())
        validator_cls = validator_for(schema)
        validator_cls.check_schema(schema)
        validator = validator_cls(schema, format_checker=FormatChecker())

        errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.path))
        if errors:
            details = "; ".join(
                f"/{'/'.join(str(part) for part in err.path)}: {err.message}" for err in errors
            )
            raise jsex.ValidationError(f"Invalid backend config {path}: {details}")

    def _parse(self, payload: dict[str, Any]) -> BackendConfig:
        tables = TableNames(**payload.get("tables", {}))
        search_indices = SearchIndices(**payload.get("search_indices", {}))
        settings = {
            key: value
            for key, value in payload.items()
            if key not in {"tables", "search_indices"}
        }
        return BackendConfig(tables=tables, search_indices=search_indices, **settings)
