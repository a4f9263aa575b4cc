"""Read-only query composition and result shaping for a genetics portal.

The package validates identifiers, builds parameterized warehouse queries,
fans free-text search out to a search index, and folds the results into
typed response aggregates.
"""

from .backend import GeneticsBackend
from .config import BackendConfig, BackendConfigLoader, SearchIndices, TableNames
from .models import (
    G2VAssociation,
    G2VSchema,
    Gecko,
    GeckoSummary,
    Gene,
    IndexVariantTable,
    ManhattanTable,
    PheWASTable,
    Position,
    SearchResultSet,
    Study,
    TagVariantTable,
    Variant,
)
from .pagination import Pagination, SearchWindow, WarehouseWindow
from .parsing import (
    Invalid,
    Valid,
    parse_chromosome,
    parse_gene,
    parse_region,
    parse_study_ids,
    parse_variant,
)
from .violations import (
    BackendError,
    DecodeError,
    InputParameterCheckError,
    SearchExecutionError,
    Violation,
    ViolationKind,
)

__all__ = [
    "GeneticsBackend",
    "BackendConfig",
    "BackendConfigLoader",
    "SearchIndices",
    "TableNames",
    "G2VAssociation",
    "G2VSchema",
    "Gecko",
    "GeckoSummary",
    "Gene",
    "IndexVariantTable",
    "ManhattanTable",
    "PheWASTable",
    "Position",
    "SearchResultSet",
    "Study",
    "TagVariantTable",
    "Variant",
    "Pagination",
    "SearchWindow",
    "WarehouseWindow",
    "Valid",
    "Invalid",
    "parse_chromosome",
    "parse_gene",
    "parse_region",
    "parse_study_ids",
    "parse_variant",
    "BackendError",
    "DecodeError",
    "InputParameterCheckError",
    "SearchExecutionError",
    "Violation",
    "ViolationKind",
]
