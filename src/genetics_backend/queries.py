"""Parameterized warehouse queries, one template per association view.

Only table identifiers from :class:`TableNames` and integer window values are
interpolated into the SQL text. Every record-level filter value is a bound
named parameter. Filters sit in the innermost subquery of each large table so
rows are pruned by chromosome/position before anything is projected or
aggregated, and gene attributes come from keyed lookups into the gene
dictionary table on already-filtered rows.
"""

from __future__ import annotations

from collections.abc import Sequence

from genetics_backend.config import BackendConfig
from genetics_backend.models import Variant
from genetics_backend.pagination import WarehouseWindow
from genetics_backend.storage.base import Query


def _gene_columns(alias: str) -> str:
    """Dictionary attributes in the order the gene decoder reads them."""

    return ",\n    ".join(
        f"{alias}.{column}"
        for column in (
            "gene_name",
            "biotype",
            "chr",
            "tss",
            '"start"',
            '"end"',
            "fwdstrand",
            "exons",
        )
    )


class QueryBuilder:
    """Build :class:`Query` objects for every warehouse-backed view."""

    def __init__(self, config: BackendConfig) -> None:
        self.config = config
        self.tables = config.tables

    def sumstats_segment(self, position: int) -> int:
        return position // self.config.sumstats_segment_size

    def phewas(self, variant: Variant, window: WarehouseWindow) -> Query:
        table = self.tables.summary_stats_for(variant.position.chromosome)
        sql = f"""
SELECT
    study_id,
    pval,
    beta,
    se,
    eaf,
    maf,
    n_samples_variant_level,
    n_samples_study_level,
    n_cases_study_level,
    n_cases_variant_level,
    CASE WHEN is_cc THEN exp(beta) ELSE NULL END AS odds_ratio,
    chip,
    info
FROM {table}
WHERE chrom = $chromosome
  AND pos_b37 = $position
  AND segment = $segment
  AND variant_id_b37 = $variant_id
ORDER BY pval ASC, study_id ASC
{window.clause}
"""
        return Query(
            sql=sql,
            params={
                "chromosome": variant.position.chromosome,
                "position": variant.position.coordinate,
                "segment": self.sumstats_segment(variant.position.coordinate),
                "variant_id": variant.id,
            },
        )

    def g2v_schema(self) -> Query:
        sql = f"""
SELECT
    type_id,
    source_id,
    feature_set
FROM {self.tables.variant_to_gene_structure}
"""
        return Query(sql=sql)

    def studies(self, study_ids: Sequence[str]) -> Query:
        params = {f"study_{index}": study_id for index, study_id in enumerate(study_ids)}
        placeholders = ", ".join(f"${name}" for name in params)
        sql = f"""
SELECT
    study_id,
    trait_code,
    trait_reported,
    trait_efos,
    pmid,
    pub_date,
    pub_journal,
    pub_title,
    pub_author,
    ancestry_initial,
    ancestry_replication,
    n_initial,
    n_replication,
    n_cases,
    trait_category
FROM {self.tables.studies}
WHERE study_id IN ({placeholders})
ORDER BY study_id ASC
"""
        return Query(sql=sql, params=params)

    def manhattan(self, study_id: str, window: WarehouseWindow) -> Query:
        by_study = self.tables.variant_to_disease_by_study
        gene_order = "scores.overall_score DESC, scores.gene_id ASC"
        sql = f"""
SELECT
    idx.index_variant_id,
    idx.index_rs_id,
    idx.pval,
    idx.credible_set_size,
    idx.ld_set_size,
    idx.uniq_variants,
    top_genes.top_genes_ids,
    top_genes.top_genes_names,
    top_genes.top_genes_scores
FROM (
    SELECT
        index_variant_id,
        any_value(index_rs_id) AS index_rs_id,
        min(pval) AS pval,
        count(DISTINCT CASE WHEN posterior_prob > 0 THEN variant_id END) AS credible_set_size,
        count(DISTINCT CASE WHEN r2 > 0 THEN variant_id END) AS ld_set_size,
        count(DISTINCT variant_id) AS uniq_variants
    FROM {by_study}
    WHERE stid = $study_id
    GROUP BY index_variant_id
) AS idx
LEFT JOIN (
    SELECT
        scores.variant_id AS index_variant_id,
        list(scores.gene_id ORDER BY {gene_order}) AS top_genes_ids,
        list(genes.gene_name ORDER BY {gene_order}) AS top_genes_names,
        list(scores.overall_score ORDER BY {gene_order}) AS top_genes_scores
    FROM {self.tables.disease_variant_gene_overall_score} AS scores
    LEFT JOIN {self.tables.gene_dictionary} AS genes ON genes.gene_id = scores.gene_id
    WHERE scores.overall_score > 0
      AND scores.variant_id IN (
          SELECT index_variant_id FROM {by_study} WHERE stid = $study_id
      )
    GROUP BY scores.variant_id
) AS top_genes ON top_genes.index_variant_id = idx.index_variant_id
ORDER BY idx.pval ASC, idx.index_variant_id ASC
{window.clause}
"""
        return Query(sql=sql, params={"study_id": study_id})

    def index_variant_associations(self, variant: Variant, window: WarehouseWindow) -> Query:
        return self._variant_associations(
            variant,
            window,
            linked_prefix="",
            filter_prefix="index_",
        )

    def tag_variant_associations(self, variant: Variant, window: WarehouseWindow) -> Query:
        return self._variant_associations(
            variant,
            window,
            linked_prefix="index_",
            filter_prefix="",
        )

    def _variant_associations(
        self,
        variant: Variant,
        window: WarehouseWindow,
        *,
        linked_prefix: str,
        filter_prefix: str,
    ) -> Query:
        # Index and tag lookups share one table; they differ only in which side
        # of the link is filtered and which side is returned.
        sql = f"""
SELECT
    {linked_prefix}variant_id,
    {linked_prefix}rs_id,
    stid,
    pval,
    coalesce(n_initial, 0) + coalesce(n_replication, 0) AS n_total,
    coalesce(n_cases, 0) AS n_cases,
    r2,
    afr_1000g_prop,
    amr_1000g_prop,
    eas_1000g_prop,
    eur_1000g_prop,
    sas_1000g_prop,
    log10_abf,
    posterior_prob
FROM {self.tables.variant_to_disease_by_position}
WHERE chr_id = $chromosome
  AND {filter_prefix}position = $position
  AND {filter_prefix}ref_allele = $ref_allele
  AND {filter_prefix}alt_allele = $alt_allele
ORDER BY pval ASC, stid ASC, {linked_prefix}variant_id ASC
{window.clause}
"""
        return Query(
            sql=sql,
            params={
                "chromosome": variant.position.chromosome,
                "position": variant.position.coordinate,
                "ref_allele": variant.reference_allele,
                "alt_allele": variant.alternate_allele,
            },
        )

    def gecko(self, chromosome: str, start: int, end: int) -> Query:
        gene_table = self.tables.gene_dictionary
        sql = f"""
SELECT
    assoc.variant_id,
    assoc.rs_id,
    assoc.index_variant_id,
    assoc.index_variant_rsid,
    assoc.gene_id,
    {_gene_columns('genes')},
    assoc.stid,
    assoc.r2,
    assoc.posterior_prob,
    assoc.pval,
    scores.overall_score
FROM (
    SELECT
        d.stid,
        d.variant_id,
        any_value(d.rs_id) AS rs_id,
        d.index_variant_id,
        any_value(d.index_variant_rsid) AS index_variant_rsid,
        d.gene_id,
        any_value(d.r2) AS r2,
        any_value(d.posterior_prob) AS posterior_prob,
        any_value(d.pval) AS pval
    FROM {self.tables.disease_variant_gene} AS d
    LEFT JOIN {gene_table} AS region_genes ON region_genes.gene_id = d.gene_id
    WHERE d.chr_id = $chromosome
      AND (
          d.position BETWEEN $region_start AND $region_end
          OR d.index_position BETWEEN $region_start AND $region_end
          OR region_genes."start" BETWEEN $region_start AND $region_end
          OR region_genes."end" BETWEEN $region_start AND $region_end
      )
    GROUP BY d.stid, d.index_variant_id, d.variant_id, d.gene_id
) AS assoc
INNER JOIN (
    SELECT
        variant_id,
        gene_id,
        overall_score
    FROM {self.tables.disease_variant_gene_overall_score}
    WHERE chr_id = $chromosome
      AND overall_score > 0
) AS scores ON scores.variant_id = assoc.variant_id AND scores.gene_id = assoc.gene_id
LEFT JOIN {gene_table} AS genes ON genes.gene_id = assoc.gene_id
ORDER BY assoc.stid ASC, assoc.index_variant_id ASC, assoc.variant_id ASC, assoc.gene_id ASC
"""
        return Query(
            sql=sql,
            params={"chromosome": chromosome, "region_start": start, "region_end": end},
        )

    def g2v(self, variant: Variant) -> Query:
        sql = f"""
SELECT
    features.gene_id,
    {_gene_columns('genes')},
    scores.overall_score,
    scores.source_list,
    scores.source_score_list,
    features.type_id,
    features.source_id,
    features.feature,
    features.fpred_max_label,
    features.fpred_max_score,
    features.qtl_beta,
    features.qtl_se,
    features.qtl_pval,
    features.interval_score,
    features.qtl_score_q,
    features.interval_score_q
FROM (
    SELECT
        gene_id,
        type_id,
        source_id,
        feature,
        fpred_max_label,
        fpred_max_score,
        qtl_beta,
        qtl_se,
        qtl_pval,
        interval_score,
        qtl_score_q,
        interval_score_q
    FROM {self.tables.variant_to_gene}
    WHERE chr_id = $chromosome
      AND position = $position
      AND variant_id = $variant_id
) AS features
INNER JOIN (
    SELECT
        gene_id,
        source_list,
        source_score_list,
        overall_score
    FROM {self.tables.variant_to_gene_overall_score}
    WHERE chr_id = $chromosome
      AND variant_id = $variant_id
) AS scores ON scores.gene_id = features.gene_id
LEFT JOIN {self.tables.gene_dictionary} AS genes ON genes.gene_id = features.gene_id
ORDER BY features.gene_id ASC, features.type_id ASC, features.source_id ASC, features.feature ASC
"""
        return Query(
            sql=sql,
            params={
                "chromosome": variant.position.chromosome,
                "position": variant.position.coordinate,
                "variant_id": variant.id,
            },
        )
