"""Input violations and the backend error hierarchy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class ViolationKind(str, Enum):
    """Machine-readable reason a raw input was rejected."""

    INVALID_VARIANT = "invalid_variant"
    INVALID_GENE = "invalid_gene"
    INVALID_CHROMOSOME = "invalid_chromosome"
    INVALID_REGION = "invalid_region"
    INVALID_STUDY = "invalid_study"
    EMPTY_SEARCH_QUERY = "empty_search_query"


_MESSAGES: dict[ViolationKind, str] = {
    ViolationKind.INVALID_VARIANT: (
        "Variant id '{raw}' is not valid; expected CHR_POSITION_REF_ALT "
        "(for example 1_55039974_G_T)."
    ),
    ViolationKind.INVALID_GENE: (
        "Gene id '{raw}' is not valid; expected an Ensembl id such as ENSG00000139618."
    ),
    ViolationKind.INVALID_CHROMOSOME: (
        "Chromosome '{raw}' is not valid; expected one of 1-22, X, Y or MT."
    ),
    ViolationKind.INVALID_REGION: "Region {raw} is not valid: {detail}.",
    ViolationKind.INVALID_STUDY: "Study id '{raw}' is not valid.",
    ViolationKind.EMPTY_SEARCH_QUERY: "Search query must not be empty.",
}


@dataclass(frozen=True)
class Violation:
    """Why a raw input failed validation, with the offending value."""

    kind: ViolationKind
    raw: Any = None
    detail: str = ""

    @property
    def message(self) -> str:
        """Human-readable explanation suitable for client responses."""

        return _MESSAGES[self.kind].format(raw=self.raw, detail=self.detail)


class BackendError(Exception):
    """Base class for every failure surfaced by the backend facade."""


class InputParameterCheckError(BackendError):
    """One or more request inputs were rejected before touching storage."""

    def __init__(self, violations: Iterable[Violation]) -> None:
        self.violations: tuple[Violation, ...] = tuple(violations)
        super().__init__("; ".join(violation.message for violation in self.violations))

    @property
    def kinds(self) -> tuple[ViolationKind, ...]:
        return tuple(violation.kind for violation in self.violations)


class SearchExecutionError(BackendError):
    """A search sub-query failed, so the combined search result is unavailable."""


class DecodeError(BackendError, ValueError):
    """A storage row or search document could not be decoded into a record."""
