"""Parse raw identifier strings into validated domain values.

Parsers never raise for bad input. They return either ``Valid(value)`` or
``Invalid(violations)``; the facade decides when a violation becomes a request
failure via :meth:`Invalid.unwrap`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from genetics_backend.models import Gene, Position, Variant
from genetics_backend.violations import InputParameterCheckError, Violation, ViolationKind

T = TypeVar("T")

CHROMOSOMES: frozenset[str] = frozenset(
    [str(number) for number in range(1, 23)] + ["X", "Y", "MT"]
)

_STUDY_ID_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T

    ok = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Invalid:
    violations: tuple[Violation, ...]

    ok = False

    def unwrap(self) -> Any:
        raise InputParameterCheckError(self.violations)


Parsed = Union[Valid[T], Invalid]


def combine(*results: Parsed[Any]) -> Parsed[tuple[Any, ...]]:
    """Merge independent parses, collecting every violation instead of the first."""

    violations: list[Violation] = []
    values: list[Any] = []
    for result in results:
        if isinstance(result, Invalid):
            violations.extend(result.violations)
        else:
            values.append(result.value)

    if violations:
        return Invalid(tuple(violations))
    return Valid(tuple(values))


def _invalid(kind: ViolationKind, raw: Any, detail: str = "") -> Invalid:
    return Invalid((Violation(kind=kind, raw=raw, detail=detail),))


def parse_variant(raw: str, rs_id: str | None = None) -> Parsed[Variant]:
    """Parse ``CHR_POSITION_REF_ALT`` (case-insensitive) into a :class:`Variant`."""

    tokens = [token for token in str(raw).upper().split("_") if token]
    if len(tokens) != 4:
        return _invalid(ViolationKind.INVALID_VARIANT, raw)

    chromosome, position, reference, alternate = tokens
    if not position.isdecimal():
        return _invalid(ViolationKind.INVALID_VARIANT, raw)

    return Valid(
        Variant(
            position=Position(chromosome, int(position)),
            reference_allele=reference,
            alternate_allele=alternate,
            rs_id=rs_id,
        )
    )


def parse_gene(raw: str) -> Parsed[Gene]:
    """Take the unversioned Ensembl id (``ENSG...``) from a raw gene id."""

    tokens = [token for token in str(raw).upper().split(".") if token]
    if not tokens:
        return _invalid(ViolationKind.INVALID_GENE, raw)
    return Valid(Gene(id=tokens[0]))


def parse_chromosome(raw: str) -> Parsed[str]:
    chromosome = str(raw).strip().upper()
    if chromosome not in CHROMOSOMES:
        return _invalid(ViolationKind.INVALID_CHROMOSOME, raw)
    return Valid(chromosome)


def parse_region(start: int, end: int, *, max_window: int) -> Parsed[tuple[int, int]]:
    """Validate an inclusive ``[start, end]`` window no wider than ``max_window``."""

    region = f"[{start}, {end}]"
    if start < 0 or end < 0:
        return _invalid(ViolationKind.INVALID_REGION, region, "bounds must be non-negative")
    if start > end:
        return _invalid(ViolationKind.INVALID_REGION, region, "start is after end")
    if end - start > max_window:
        return _invalid(
            ViolationKind.INVALID_REGION,
            region,
            f"span exceeds the maximum window of {max_window} bases",
        )
    return Valid((start, end))


def parse_study_ids(raw_ids: Iterable[str]) -> Parsed[tuple[str, ...]]:
    """Strip and de-duplicate study ids, keeping first-seen order."""

    seen: dict[str, None] = {}
    violations: list[Violation] = []
    for raw in raw_ids:
        study_id = str(raw).strip()
        if not _STUDY_ID_RE.match(study_id):
            violations.append(Violation(kind=ViolationKind.INVALID_STUDY, raw=raw))
            continue
        seen.setdefault(study_id, None)

    if violations:
        return Invalid(tuple(violations))
    return Valid(tuple(seen))
