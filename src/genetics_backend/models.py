"""Request-scoped domain values and response aggregates.

Every record here is an immutable value built once per request, either from a
parsed identifier or from a decoded storage row/search document.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Position:
    """A chromosome plus a coordinate on it."""

    chromosome: str
    coordinate: int


@dataclass(frozen=True)
class Variant:
    """A genomic change at a position; identity is derived from the four positional fields."""

    position: Position
    reference_allele: str
    alternate_allele: str
    rs_id: str | None = None
    nearest_gene_id: str | None = None
    nearest_coding_gene_id: str | None = None

    @property
    def id(self) -> str:
        return "_".join(
            str(token).upper()
            for token in (
                self.position.chromosome,
                self.position.coordinate,
                self.reference_allele,
                self.alternate_allele,
            )
        )


@dataclass(frozen=True)
class Gene:
    """An Ensembl gene, optionally enriched with dictionary attributes."""

    id: str
    symbol: str | None = None
    start: int | None = None
    end: int | None = None
    chromosome: str | None = None
    tss: int | None = None
    bio_type: str | None = None
    strand: bool | None = None
    exons: tuple[int, ...] = ()


@dataclass(frozen=True)
class Tissue:
    """Tissue or cell-type feature used by the gene-to-variant evidence sources."""

    id: str

    @property
    def name(self) -> str:
        return self.id.replace("_", " ")


@dataclass(frozen=True)
class Study:
    """GWAS study metadata as stored in the studies table."""

    study_id: str
    trait_code: str | None = None
    trait_reported: str | None = None
    trait_efos: tuple[str, ...] = ()
    pmid: str | None = None
    pub_date: str | None = None
    pub_journal: str | None = None
    pub_title: str | None = None
    pub_author: str | None = None
    ancestry_initial: tuple[str, ...] = ()
    ancestry_replication: tuple[str, ...] = ()
    n_initial: int | None = None
    n_replication: int | None = None
    n_cases: int | None = None
    trait_category: str | None = None


@dataclass(frozen=True)
class VariantPheWAS:
    study_id: str
    pval: float
    beta: float | None = None
    se: float | None = None
    eaf: float | None = None
    maf: float | None = None
    n_samples_variant_level: int | None = None
    n_samples_study_level: int | None = None
    n_cases_study_level: int | None = None
    n_cases_variant_level: int | None = None
    odds_ratio: float | None = None
    chip: str | None = None
    info: float | None = None


@dataclass(frozen=True)
class PheWASTable:
    associations: tuple[VariantPheWAS, ...] = ()


@dataclass(frozen=True)
class ScoredGene:
    gene: Gene
    score: float


@dataclass(frozen=True)
class ManhattanAssociation:
    """One index variant of a study with its linked set sizes and top genes."""

    variant: Variant
    pval: float
    best_genes: tuple[ScoredGene, ...] = ()
    credible_set_size: int | None = None
    ld_set_size: int | None = None
    total_set_size: int = 0


@dataclass(frozen=True)
class ManhattanTable:
    associations: tuple[ManhattanAssociation, ...] = ()


@dataclass(frozen=True)
class IndexVariantAssociation:
    """A tag variant linked to the requested index variant in one study."""

    tag_variant: Variant
    study_id: str
    pval: float
    n_total: int = 0
    n_cases: int = 0
    r2: float | None = None
    afr_1000g_prop: float | None = None
    amr_1000g_prop: float | None = None
    eas_1000g_prop: float | None = None
    eur_1000g_prop: float | None = None
    sas_1000g_prop: float | None = None
    log10_abf: float | None = None
    posterior_probability: float | None = None


@dataclass(frozen=True)
class TagVariantAssociation:
    """An index variant linked to the requested tag variant in one study."""

    index_variant: Variant
    study_id: str
    pval: float
    n_total: int = 0
    n_cases: int = 0
    r2: float | None = None
    afr_1000g_prop: float | None = None
    amr_1000g_prop: float | None = None
    eas_1000g_prop: float | None = None
    eur_1000g_prop: float | None = None
    sas_1000g_prop: float | None = None
    log10_abf: float | None = None
    posterior_probability: float | None = None


@dataclass(frozen=True)
class IndexVariantTable:
    associations: tuple[IndexVariantAssociation, ...] = ()


@dataclass(frozen=True)
class TagVariantTable:
    associations: tuple[TagVariantAssociation, ...] = ()


@dataclass(frozen=True)
class GeckoLine:
    index_variant: Variant
    tag_variant: Variant
    gene: Gene
    study_id: str
    r2: float | None
    posterior_probability: float | None
    pval: float
    overall_score: float


class Gecko:
    """Lazy, single-pass stream of regional association lines.

    Regional windows can return very large row counts, so lines are decoded as
    they are consumed. The stream can be iterated once.
    """

    def __init__(self, lines: Iterable[GeckoLine] = ()) -> None:
        self._lines: Iterator[GeckoLine] = iter(lines)

    def __iter__(self) -> Iterator[GeckoLine]:
        return self._lines


@dataclass(frozen=True)
class GeneTagVariant:
    gene_id: str
    tag_variant_id: str
    overall_score: float


@dataclass(frozen=True)
class TagVariantIndexVariantStudy:
    tag_variant_id: str
    index_variant_id: str
    study_id: str
    r2: float | None
    posterior_probability: float | None
    pval: float


@dataclass(frozen=True)
class GeckoSummary:
    """Distinct entities and links of a consumed regional stream."""

    genes: tuple[Gene, ...] = ()
    tag_variants: tuple[Variant, ...] = ()
    index_variants: tuple[Variant, ...] = ()
    study_ids: tuple[str, ...] = ()
    gene_tag_variants: tuple[GeneTagVariant, ...] = ()
    tag_variant_index_variant_studies: tuple[TagVariantIndexVariantStudy, ...] = ()


@dataclass(frozen=True)
class G2VSchemaElement:
    id: str
    source_id: str
    tissues: tuple[Tissue, ...] = ()


@dataclass(frozen=True)
class G2VSchema:
    qtls: tuple[G2VSchemaElement, ...] = ()
    intervals: tuple[G2VSchemaElement, ...] = ()
    functional_predictions: tuple[G2VSchemaElement, ...] = ()


@dataclass(frozen=True)
class ScoredG2VLine:
    """One flat feature row of the gene-to-variant join, before grouping by gene."""

    gene: Gene
    overall_score: float
    source_scores: Mapping[str, float]
    type_id: str
    source_id: str
    feature: str
    fpred_max_label: str | None = None
    fpred_max_score: float | None = None
    qtl_beta: float | None = None
    qtl_se: float | None = None
    qtl_pval: float | None = None
    interval_score: float | None = None
    qtl_score_q: float | None = None
    interval_score_q: float | None = None


@dataclass(frozen=True)
class QTLTissue:
    tissue: Tissue
    quantile: float | None
    beta: float | None
    se: float | None
    pval: float | None


@dataclass(frozen=True)
class IntervalTissue:
    tissue: Tissue
    quantile: float | None
    score: float | None


@dataclass(frozen=True)
class FPredTissue:
    tissue: Tissue
    max_effect_label: str | None
    max_effect_score: float | None


@dataclass(frozen=True)
class G2VElement:
    """Evidence from one (type, source) pair with that source's aggregated score."""

    type_id: str
    source_id: str
    aggregated_score: float | None
    tissues: tuple[Any, ...] = ()


@dataclass(frozen=True)
class G2VAssociation:
    gene: Gene
    overall_score: float
    qtls: tuple[G2VElement, ...] = ()
    intervals: tuple[G2VElement, ...] = ()
    functional_predictions: tuple[G2VElement, ...] = ()


@dataclass(frozen=True)
class VariantSearchResult:
    variant: Variant


@dataclass(frozen=True)
class SearchCategory:
    total: int = 0
    items: tuple[Any, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SearchResultSet:
    genes: SearchCategory = field(default_factory=SearchCategory)
    variants: SearchCategory = field(default_factory=SearchCategory)
    studies: SearchCategory = field(default_factory=SearchCategory)
