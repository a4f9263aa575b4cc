import asyncio
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from genetics_backend import GeneticsBackend  # noqa: E402
from genetics_backend.aggregation import summarize_gecko  # noqa: E402
from genetics_backend.search import SearchHits, SearchIndex, ShouldQuery  # noqa: E402
from genetics_backend.storage import DuckDBWarehouse, Query  # noqa: E402

duckdb = pytest.importorskip("duckdb")


SCHEMA = [
    """
CREATE TABLE gene (
    gene_id VARCHAR, gene_name VARCHAR, biotype VARCHAR, chr VARCHAR,
    tss BIGINT, "start" BIGINT, "end" BIGINT, fwdstrand BOOLEAN, exons BIGINT[]
)
""",
    """
INSERT INTO gene VALUES
    ('ENSG1', 'GENE1', 'protein_coding', '1', 120, 120, 400, true, [120, 200, 400]),
    ('ENSG2', 'GENE2', 'lincRNA', '1', 5000, 4000, 5000, false, [4000, 5000]),
    ('ENSG3', 'GENE3', 'protein_coding', '1', 9000, 9000, 9500, true, [])
""",
    """
CREATE TABLE studies (
    study_id VARCHAR, trait_code VARCHAR, trait_reported VARCHAR, trait_efos VARCHAR[],
    pmid VARCHAR, pub_date VARCHAR, pub_journal VARCHAR, pub_title VARCHAR, pub_author VARCHAR,
    ancestry_initial VARCHAR[], ancestry_replication VARCHAR[],
    n_initial BIGINT, n_replication BIGINT, n_cases BIGINT, trait_category VARCHAR
)
""",
    """
INSERT INTO studies VALUES
    ('GCST1', 'T1', 'Height', ['EFO_0004339'], 'PMID:1', '2018-01-01', 'Nature', 'Height GWAS',
     'Doe J', ['European=1000'], [], 1000, NULL, NULL, 'Measurement'),
    ('GCST2', 'T2', 'LDL', ['EFO_0004611'], 'PMID:2', NULL, NULL, NULL, NULL,
     [], [], 500, 100, 50, 'Lipids')
""",
    """
CREATE TABLE v2d_by_stchr (
    stid VARCHAR, index_variant_id VARCHAR, index_rs_id VARCHAR, variant_id VARCHAR,
    pval DOUBLE, posterior_prob DOUBLE, r2 DOUBLE
)
""",
    """
INSERT INTO v2d_by_stchr VALUES
    ('GCST1', '1_100_A_G', 'rs1', '1_100_A_G', 1e-10, 0.6, 1.0),
    ('GCST1', '1_100_A_G', 'rs1', '1_150_C_T', 1e-10, 0.0, 0.8),
    ('GCST1', '2_500_C_A', 'rs5', '2_500_C_A', 1e-6, 1.0, 1.0),
    ('GCST2', '1_100_A_G', 'rs1', '1_100_A_G', 1e-20, 0.9, 1.0)
""",
    """
CREATE TABLE v2d_by_chrpos (
    chr_id VARCHAR, position BIGINT, ref_allele VARCHAR, alt_allele VARCHAR, variant_id VARCHAR,
    rs_id VARCHAR, index_position BIGINT, index_ref_allele VARCHAR, index_alt_allele VARCHAR,
    index_variant_id VARCHAR, index_rs_id VARCHAR, stid VARCHAR, pval DOUBLE,
    n_initial BIGINT, n_replication BIGINT, n_cases BIGINT, r2 DOUBLE,
    afr_1000g_prop DOUBLE, amr_1000g_prop DOUBLE, eas_1000g_prop DOUBLE, eur_1000g_prop DOUBLE,
    sas_1000g_prop DOUBLE, log10_abf DOUBLE, posterior_prob DOUBLE
)
""",
    """
INSERT INTO v2d_by_chrpos VALUES
    ('1', 100, 'A', 'G', '1_100_A_G', 'rs1', 100, 'A', 'G', '1_100_A_G', 'rs1', 'GCST1', 1e-10,
     1000, NULL, NULL, 1.0, 0.1, 0.1, 0.1, 0.6, 0.1, 4.2, 0.6),
    ('1', 150, 'C', 'T', '1_150_C_T', NULL, 100, 'A', 'G', '1_100_A_G', 'rs1', 'GCST1', 1e-8,
     1000, NULL, NULL, 0.8, NULL, NULL, NULL, NULL, NULL, NULL, NULL),
    ('1', 100, 'A', 'G', '1_100_A_G', 'rs1', 100, 'A', 'G', '1_100_A_G', 'rs1', 'GCST2', 1e-20,
     500, 100, 50, 1.0, NULL, NULL, NULL, NULL, NULL, NULL, 0.9)
""",
    """
CREATE TABLE d2v2g (
    chr_id VARCHAR, position BIGINT, index_position BIGINT, stid VARCHAR, variant_id VARCHAR,
    rs_id VARCHAR, index_variant_id VARCHAR, index_variant_rsid VARCHAR, gene_id VARCHAR,
    r2 DOUBLE, posterior_prob DOUBLE, pval DOUBLE
)
""",
    """
INSERT INTO d2v2g VALUES
    ('1', 100, 100, 'GCST1', '1_100_A_G', 'rs1', '1_100_A_G', 'rs1', 'ENSG1', 1.0, 0.6, 1e-10),
    ('1', 100, 100, 'GCST1', '1_100_A_G', 'rs1', '1_100_A_G', 'rs1', 'ENSG1', 1.0, 0.6, 1e-10),
    ('1', 150, 100, 'GCST1', '1_150_C_T', NULL, '1_100_A_G', 'rs1', 'ENSG2', 0.8, 0.0, 1e-10),
    ('1', 150, 100, 'GCST1', '1_150_C_T', NULL, '1_100_A_G', 'rs1', 'ENSG3', 0.8, 0.0, 1e-10),
    ('1', 20000, 20000, 'GCST2', '1_20000_G_C', NULL, '1_20000_G_C', NULL, 'ENSG3', 1.0, 1.0, 1e-9)
""",
    """
CREATE TABLE d2v2g_score_by_overall (
    chr_id VARCHAR, variant_id VARCHAR, gene_id VARCHAR, overall_score DOUBLE
)
""",
    """
INSERT INTO d2v2g_score_by_overall VALUES
    ('1', '1_100_A_G', 'ENSG1', 0.8),
    ('1', '1_100_A_G', 'ENSG2', 0.3),
    ('1', '1_100_A_G', 'ENSG3', 0.0),
    ('1', '1_150_C_T', 'ENSG2', 0.5),
    ('1', '1_150_C_T', 'ENSG3', 0.0)
""",
    """
CREATE TABLE v2g (
    chr_id VARCHAR, position BIGINT, variant_id VARCHAR, gene_id VARCHAR, type_id VARCHAR,
    source_id VARCHAR, feature VARCHAR, fpred_max_label VARCHAR, fpred_max_score DOUBLE,
    qtl_beta DOUBLE, qtl_se DOUBLE, qtl_pval DOUBLE, interval_score DOUBLE,
    qtl_score_q DOUBLE, interval_score_q DOUBLE
)
""",
    """
INSERT INTO v2g VALUES
    ('1', 100, '1_100_A_G', 'ENSG2', 'pchic', 'javierre2016', 'Monocytes', NULL, NULL,
     NULL, NULL, NULL, 5.2, NULL, 0.8),
    ('1', 100, '1_100_A_G', 'ENSG1', 'eqtl', 'gtex_v7', 'Whole_Blood', NULL, NULL,
     0.3, 0.05, 1e-5, NULL, 0.9, NULL),
    ('1', 100, '1_100_A_G', 'ENSG1', 'eqtl', 'gtex_v7', 'Liver', NULL, NULL,
     -0.1, 0.02, 1e-3, NULL, 0.4, NULL),
    ('1', 100, '1_100_A_G', 'ENSG1', 'fpred', 'vep', 'Unspecified', 'missense_variant', 0.66,
     NULL, NULL, NULL, NULL, NULL, NULL)
""",
    """
CREATE TABLE v2g_score_by_overall (
    chr_id VARCHAR, variant_id VARCHAR, gene_id VARCHAR, overall_score DOUBLE,
    source_list VARCHAR[], source_score_list DOUBLE[]
)
""",
    """
INSERT INTO v2g_score_by_overall VALUES
    ('1', '1_100_A_G', 'ENSG1', 0.7, ['gtex_v7', 'vep'], [0.5, 0.2]),
    ('1', '1_100_A_G', 'ENSG2', 0.4, ['javierre2016'], [0.4])
""",
    """
CREATE TABLE v2g_structure (type_id VARCHAR, source_id VARCHAR, feature_set VARCHAR[])
""",
    """
INSERT INTO v2g_structure VALUES
    ('eqtl', 'gtex_v7', ['Whole_Blood', 'Liver']),
    ('pchic', 'javierre2016', ['Monocytes']),
    ('fpred', 'vep', ['Unspecified'])
""",
    """
CREATE TABLE gwas_chr_1 (
    chrom VARCHAR, pos_b37 BIGINT, segment BIGINT, variant_id_b37 VARCHAR, study_id VARCHAR,
    pval DOUBLE, beta DOUBLE, se DOUBLE, eaf DOUBLE, maf DOUBLE,
    n_samples_variant_level BIGINT, n_samples_study_level BIGINT,
    n_cases_study_level BIGINT, n_cases_variant_level BIGINT,
    is_cc BOOLEAN, chip VARCHAR, info DOUBLE
)
""",
    """
INSERT INTO gwas_chr_1 VALUES
    ('1', 100, 0, '1_100_A_G', 'GCST2', 1e-20, 0.0, 0.01, 0.3, 0.3, 600, 600, 50, 50, true, 'illumina', 0.99),
    ('1', 100, 0, '1_100_A_G', 'GCST1', 1e-10, 0.2, 0.02, 0.3, 0.3, 1000, 1000, NULL, NULL, false, NULL, NULL)
""",
]


class NoSearch(SearchIndex):
    async def search(self, index: str, query: ShouldQuery, window) -> SearchHits:
        return SearchHits(total=0)


@pytest.fixture()
def backend(tmp_path: Path) -> GeneticsBackend:
    db_path = tmp_path / "genetics.duckdb"
    connection = duckdb.connect(str(db_path))
    try:
        for statement in SCHEMA:
            connection.execute(statement)
    finally:
        connection.close()

    return GeneticsBackend(DuckDBWarehouse(db_path=db_path), NoSearch())


def test_warehouse_binds_named_parameters(tmp_path: Path) -> None:
    db_path = tmp_path / "plain.duckdb"
    connection = duckdb.connect(str(db_path))
    connection.execute("CREATE TABLE t AS SELECT * FROM range(5) AS r(n)")
    connection.close()

    warehouse = DuckDBWarehouse(db_path=db_path)
    rows = asyncio.run(warehouse.fetch(Query("SELECT n FROM t WHERE n >= $low ORDER BY n", {"low": 3})))

    assert [tuple(row) for row in rows] == [(3,), (4,)]


def test_warehouse_surfaces_driver_errors(tmp_path: Path) -> None:
    db_path = tmp_path / "empty.duckdb"
    duckdb.connect(str(db_path)).close()

    with pytest.raises(duckdb.Error):
        asyncio.run(DuckDBWarehouse(db_path=db_path).fetch(Query("SELECT * FROM missing_table")))


def test_phewas_end_to_end(backend: GeneticsBackend) -> None:
    table = asyncio.run(backend.build_phewas_table("1_100_A_G"))

    assert [row.study_id for row in table.associations] == ["GCST2", "GCST1"]
    assert table.associations[0].odds_ratio == pytest.approx(1.0)
    assert table.associations[1].odds_ratio is None
    assert table.associations[1].chip is None


def test_phewas_missing_chromosome_table_degrades(backend: GeneticsBackend) -> None:
    table = asyncio.run(backend.build_phewas_table("2_500_C_A"))

    assert table.associations == ()


def test_studies_end_to_end(backend: GeneticsBackend) -> None:
    studies = asyncio.run(backend.get_studies(["GCST2", "GCST1", "GCST404"]))

    assert [study.study_id for study in studies] == ["GCST1", "GCST2"]
    assert studies[0].trait_efos == ("EFO_0004339",)
    assert studies[0].ancestry_initial == ("European=1000",)
    assert studies[0].n_replication is None


def test_manhattan_end_to_end(backend: GeneticsBackend) -> None:
    table = asyncio.run(backend.build_manhattan_table("GCST1"))

    first, second = table.associations
    assert first.variant.id == "1_100_A_G"
    assert first.variant.rs_id == "rs1"
    assert first.pval == pytest.approx(1e-10)
    assert (first.credible_set_size, first.ld_set_size, first.total_set_size) == (1, 2, 2)
    assert [(scored.gene.id, scored.gene.symbol) for scored in first.best_genes] == [
        ("ENSG1", "GENE1"),
        ("ENSG2", "GENE2"),
    ]

    assert second.variant.id == "2_500_C_A"
    assert second.best_genes == ()


def test_manhattan_pagination(backend: GeneticsBackend) -> None:
    page = asyncio.run(backend.build_manhattan_table("GCST1", page_index=1, page_size=1))

    assert [association.variant.id for association in page.associations] == ["2_500_C_A"]


def test_index_and_tag_variant_tables_end_to_end(backend: GeneticsBackend) -> None:
    index_table = asyncio.run(backend.build_index_variant_assoc_table("1_100_A_G"))
    assert [(row.study_id, row.tag_variant.id) for row in index_table.associations] == [
        ("GCST2", "1_100_A_G"),
        ("GCST1", "1_100_A_G"),
        ("GCST1", "1_150_C_T"),
    ]
    assert index_table.associations[0].n_total == 600
    assert index_table.associations[1].n_cases == 0
    assert index_table.associations[2].tag_variant.rs_id is None

    tag_table = asyncio.run(backend.build_tag_variant_assoc_table("1_150_C_T"))
    assert [row.index_variant.id for row in tag_table.associations] == ["1_100_A_G"]
    assert tag_table.associations[0].index_variant.rs_id == "rs1"


def test_gecko_end_to_end(backend: GeneticsBackend) -> None:
    gecko = asyncio.run(backend.build_gecko("1", 50, 200))
    lines = list(gecko)

    assert [(line.tag_variant.id, line.gene.id) for line in lines] == [
        ("1_100_A_G", "ENSG1"),
        ("1_150_C_T", "ENSG2"),
    ]
    assert lines[0].gene.exons == (120, 200, 400)
    assert lines[1].tag_variant.rs_id is None
    assert lines[1].overall_score == pytest.approx(0.5)


def test_gecko_summary_end_to_end(backend: GeneticsBackend) -> None:
    summary = summarize_gecko(asyncio.run(backend.build_gecko("1", 50, 200)))

    assert [gene.id for gene in summary.genes] == ["ENSG1", "ENSG2"]
    assert summary.study_ids == ("GCST1",)
    assert [variant.id for variant in summary.index_variants] == ["1_100_A_G"]


def test_gecko_region_can_match_on_gene_bounds(backend: GeneticsBackend) -> None:
    lines = list(asyncio.run(backend.build_gecko("1", 4500, 6000)))

    assert [line.gene.id for line in lines] == ["ENSG2"]


def test_g2v_end_to_end(backend: GeneticsBackend) -> None:
    associations = asyncio.run(backend.build_g2v("1_100_A_G"))

    assert [association.gene.id for association in associations] == ["ENSG1", "ENSG2"]
    gene1, gene2 = associations
    assert gene1.overall_score == pytest.approx(0.7)
    assert [tissue.tissue.id for tissue in gene1.qtls[0].tissues] == ["Liver", "Whole_Blood"]
    assert gene1.qtls[0].aggregated_score == pytest.approx(0.5)
    assert gene1.functional_predictions[0].tissues[0].max_effect_label == "missense_variant"
    assert gene2.intervals[0].source_id == "javierre2016"
    assert gene2.intervals[0].tissues[0].score == pytest.approx(5.2)


def test_g2v_schema_end_to_end(backend: GeneticsBackend) -> None:
    schema = asyncio.run(backend.get_g2v_schema())

    assert [element.source_id for element in schema.qtls] == ["gtex_v7"]
    assert [tissue.id for tissue in schema.qtls[0].tissues] == ["Whole_Blood", "Liver"]
    assert [element.id for element in schema.intervals] == ["pchic"]
    assert [element.id for element in schema.functional_predictions] == ["fpred"]
