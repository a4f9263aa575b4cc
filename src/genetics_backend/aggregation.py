"""In-memory grouping and folding of decoded rows into response aggregates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from genetics_backend.models import (
    FPredTissue,
    G2VAssociation,
    G2VElement,
    G2VSchema,
    G2VSchemaElement,
    Gene,
    GeckoLine,
    GeckoSummary,
    GeneTagVariant,
    IntervalTissue,
    QTLTissue,
    ScoredG2VLine,
    TagVariantIndexVariantStudy,
    Tissue,
    Variant,
)

QTL_TYPES: tuple[str, ...] = ("eqtl", "pqtl")
INTERVAL_TYPES: tuple[str, ...] = ("dhscor", "fantom5", "pchic")
FUNCTIONAL_PREDICTION_TYPES: tuple[str, ...] = ("fpred",)


def build_g2v_schema(rows: Iterable[tuple[str, str, tuple[Tissue, ...]]]) -> G2VSchema:
    """Group structure rows by type then source and split them into evidence families."""

    by_type: dict[str, dict[str, tuple[Tissue, ...]]] = {}
    for type_id, source_id, tissues in rows:
        by_type.setdefault(type_id, {}).setdefault(source_id, tissues)

    def _elements(types: Sequence[str]) -> tuple[G2VSchemaElement, ...]:
        return tuple(
            G2VSchemaElement(id=type_id, source_id=source_id, tissues=tissues)
            for type_id, sources in by_type.items()
            if type_id in types
            for source_id, tissues in sources.items()
        )

    return G2VSchema(
        qtls=_elements(QTL_TYPES),
        intervals=_elements(INTERVAL_TYPES),
        functional_predictions=_elements(FUNCTIONAL_PREDICTION_TYPES),
    )


def _qtl_tissue(line: ScoredG2VLine) -> QTLTissue:
    return QTLTissue(
        tissue=Tissue(line.feature),
        quantile=line.qtl_score_q,
        beta=line.qtl_beta,
        se=line.qtl_se,
        pval=line.qtl_pval,
    )


def _interval_tissue(line: ScoredG2VLine) -> IntervalTissue:
    return IntervalTissue(
        tissue=Tissue(line.feature),
        quantile=line.interval_score_q,
        score=line.interval_score,
    )


def _fpred_tissue(line: ScoredG2VLine) -> FPredTissue:
    return FPredTissue(
        tissue=Tissue(line.feature),
        max_effect_label=line.fpred_max_label,
        max_effect_score=line.fpred_max_score,
    )


def fold_g2v_association(lines: Sequence[ScoredG2VLine]) -> G2VAssociation:
    """Fold every feature row of one gene into a single association.

    Rows are grouped by ``(type_id, source_id)``; each group becomes one
    element carrying that source's score from the per-source breakdown.
    Types outside the known evidence families are ignored.
    """

    head = lines[0]
    by_source: dict[tuple[str, str], list[ScoredG2VLine]] = {}
    for line in lines:
        by_source.setdefault((line.type_id, line.source_id), []).append(line)

    qtls: list[G2VElement] = []
    intervals: list[G2VElement] = []
    fpreds: list[G2VElement] = []
    for (type_id, source_id), group in by_source.items():
        if type_id in QTL_TYPES:
            target, to_tissue = qtls, _qtl_tissue
        elif type_id in INTERVAL_TYPES:
            target, to_tissue = intervals, _interval_tissue
        elif type_id in FUNCTIONAL_PREDICTION_TYPES:
            target, to_tissue = fpreds, _fpred_tissue
        else:
            continue

        target.append(
            G2VElement(
                type_id=type_id,
                source_id=source_id,
                aggregated_score=group[0].source_scores.get(source_id),
                tissues=tuple(to_tissue(line) for line in group),
            )
        )

    return G2VAssociation(
        gene=head.gene,
        overall_score=head.overall_score,
        qtls=tuple(qtls),
        intervals=tuple(intervals),
        functional_predictions=tuple(fpreds),
    )


def group_g2v_associations(lines: Iterable[ScoredG2VLine]) -> list[G2VAssociation]:
    """Group flat rows by gene id in first-seen order, one association per gene."""

    by_gene: dict[str, list[ScoredG2VLine]] = {}
    for line in lines:
        by_gene.setdefault(line.gene.id, []).append(line)

    return [fold_g2v_association(group) for group in by_gene.values()]


def summarize_gecko(lines: Iterable[GeckoLine]) -> GeckoSummary:
    """Consume a regional stream once and collect its distinct entities and links."""

    genes: dict[str, Gene] = {}
    tag_variants: dict[str, Variant] = {}
    index_variants: dict[str, Variant] = {}
    study_ids: dict[str, None] = {}
    gene_tag_variants: dict[GeneTagVariant, None] = {}
    links: dict[TagVariantIndexVariantStudy, None] = {}

    for line in lines:
        genes.setdefault(line.gene.id, line.gene)
        tag_variants.setdefault(line.tag_variant.id, line.tag_variant)
        index_variants.setdefault(line.index_variant.id, line.index_variant)
        study_ids.setdefault(line.study_id, None)
        gene_tag_variants.setdefault(
            GeneTagVariant(
                gene_id=line.gene.id,
                tag_variant_id=line.tag_variant.id,
                overall_score=line.overall_score,
            ),
            None,
        )
        links.setdefault(
            TagVariantIndexVariantStudy(
                tag_variant_id=line.tag_variant.id,
                index_variant_id=line.index_variant.id,
                study_id=line.study_id,
                r2=line.r2,
                posterior_probability=line.posterior_probability,
                pval=line.pval,
            ),
            None,
        )

    return GeckoSummary(
        genes=tuple(genes.values()),
        tag_variants=tuple(tag_variants.values()),
        index_variants=tuple(index_variants.values()),
        study_ids=tuple(study_ids),
        gene_tag_variants=tuple(gene_tag_variants),
        tag_variant_index_variant_studies=tuple(links),
    )
