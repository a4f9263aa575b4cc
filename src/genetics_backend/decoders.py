"""Decode warehouse rows and search documents into typed records.

Rows are decoded positionally in the column order of the matching query in
:mod:`genetics_backend.queries`. Missing values stay ``None``; the only
defaults are the ones already coalesced in the query text. Anything that
cannot be decoded raises :class:`DecodeError`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd

from genetics_backend.models import (
    Gene,
    GeckoLine,
    IndexVariantAssociation,
    ManhattanAssociation,
    Position,
    ScoredG2VLine,
    ScoredGene,
    Study,
    TagVariantAssociation,
    Tissue,
    Variant,
    VariantPheWAS,
    VariantSearchResult,
)
from genetics_backend.parsing import Invalid, parse_variant
from genetics_backend.violations import DecodeError

GENE_COLUMN_COUNT = 9


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, str)):
        return False
    return bool(pd.isna(value))


def _to_string(value: Any) -> str | None:
    if _is_missing(value):
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _to_float(value: Any) -> float | None:
    if _is_missing(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Expected a number, got {value!r}") from exc


def _to_int(value: Any) -> int | None:
    if _is_missing(value):
        return None
    if isinstance(value, float) and not value.is_integer():
        raise DecodeError(f"Expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Expected an integer, got {value!r}") from exc


def _to_bool(value: Any) -> bool | None:
    if _is_missing(value):
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes"}
    return bool(value)


def _required(value: Any, field_name: str) -> Any:
    if _is_missing(value) or value == "":
        raise DecodeError(f"Missing required field: {field_name}")
    return value


def _split_sequence(value: Any) -> list[str]:
    """Accept a native list or its string rendering such as ``[a,'b', c]``."""

    if _is_missing(value):
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if not _is_missing(item)]

    text = str(value).strip().strip("[]")
    tokens = (token.strip().strip("'\"").strip() for token in text.split(","))
    return [token for token in tokens if token]


def _to_str_tuple(value: Any) -> tuple[str, ...]:
    return tuple(_split_sequence(value))


def _to_int_tuple(value: Any) -> tuple[int, ...]:
    return tuple(int(_to_int(token)) for token in _split_sequence(value))


def _expect(row: Sequence[Any], width: int, record: str) -> None:
    if len(row) != width:
        raise DecodeError(f"{record} row has {len(row)} columns, expected {width}")


def decode_variant_id(variant_id: Any, rs_id: Any = None) -> Variant:
    """Rebuild a structured variant from a stored ``CHR_POS_REF_ALT`` id."""

    parsed = parse_variant(str(_required(variant_id, "variant_id")), rs_id=_to_string(rs_id))
    if isinstance(parsed, Invalid):
        raise DecodeError(f"Stored variant id is malformed: {variant_id!r}")
    return parsed.value


def decode_gene(columns: Sequence[Any]) -> Gene:
    """Decode ``gene_id`` followed by the gene dictionary attributes."""

    _expect(columns, GENE_COLUMN_COUNT, "Gene")
    gene_id, symbol, bio_type, chromosome, tss, start, end, forward, exons = columns
    return Gene(
        id=str(_required(gene_id, "gene_id")),
        symbol=_to_string(symbol),
        bio_type=_to_string(bio_type),
        chromosome=_to_string(chromosome),
        tss=_to_int(tss),
        start=_to_int(start),
        end=_to_int(end),
        strand=_to_bool(forward),
        exons=_to_int_tuple(exons),
    )


def decode_phewas(row: Sequence[Any]) -> VariantPheWAS:
    _expect(row, 13, "PheWAS")
    return VariantPheWAS(
        study_id=str(_required(row[0], "study_id")),
        pval=float(_to_float(_required(row[1], "pval"))),
        beta=_to_float(row[2]),
        se=_to_float(row[3]),
        eaf=_to_float(row[4]),
        maf=_to_float(row[5]),
        n_samples_variant_level=_to_int(row[6]),
        n_samples_study_level=_to_int(row[7]),
        n_cases_study_level=_to_int(row[8]),
        n_cases_variant_level=_to_int(row[9]),
        odds_ratio=_to_float(row[10]),
        chip=_to_string(row[11]),
        info=_to_float(row[12]),
    )


def decode_schema_row(row: Sequence[Any]) -> tuple[str, str, tuple[Tissue, ...]]:
    _expect(row, 3, "G2V schema")
    type_id = str(_required(row[0], "type_id"))
    source_id = str(_required(row[1], "source_id"))
    return type_id, source_id, tuple(Tissue(item) for item in _split_sequence(row[2]))


def decode_study(row: Sequence[Any]) -> Study:
    _expect(row, 15, "Study")
    return Study(
        study_id=str(_required(row[0], "study_id")),
        trait_code=_to_string(row[1]),
        trait_reported=_to_string(row[2]),
        trait_efos=_to_str_tuple(row[3]),
        pmid=_to_string(row[4]),
        pub_date=_to_string(row[5]),
        pub_journal=_to_string(row[6]),
        pub_title=_to_string(row[7]),
        pub_author=_to_string(row[8]),
        ancestry_initial=_to_str_tuple(row[9]),
        ancestry_replication=_to_str_tuple(row[10]),
        n_initial=_to_int(row[11]),
        n_replication=_to_int(row[12]),
        n_cases=_to_int(row[13]),
        trait_category=_to_string(row[14]),
    )


def decode_manhattan(row: Sequence[Any]) -> ManhattanAssociation:
    _expect(row, 9, "Manhattan")
    (
        index_variant_id,
        index_rs_id,
        pval,
        credible_set_size,
        ld_set_size,
        total_set_size,
        gene_ids,
        gene_names,
        gene_scores,
    ) = row

    ids = list(gene_ids) if not _is_missing(gene_ids) else []
    names = list(gene_names) if not _is_missing(gene_names) else [None] * len(ids)
    scores = list(gene_scores) if not _is_missing(gene_scores) else []
    if not len(ids) == len(names) == len(scores):
        raise DecodeError(
            f"Top gene arrays for {index_variant_id} have mismatched lengths "
            f"({len(ids)}, {len(names)}, {len(scores)})"
        )

    best_genes = tuple(
        ScoredGene(gene=Gene(id=str(gene_id), symbol=_to_string(name)), score=float(score))
        for gene_id, name, score in zip(ids, names, scores)
    )
    return ManhattanAssociation(
        variant=decode_variant_id(index_variant_id, index_rs_id),
        pval=float(_to_float(_required(pval, "pval"))),
        best_genes=best_genes,
        credible_set_size=_to_int(credible_set_size),
        ld_set_size=_to_int(ld_set_size),
        total_set_size=_to_int(total_set_size) or 0,
    )


def _association_fields(row: Sequence[Any]) -> dict[str, Any]:
    return {
        "study_id": str(_required(row[2], "stid")),
        "pval": float(_to_float(_required(row[3], "pval"))),
        "n_total": _to_int(row[4]) or 0,
        "n_cases": _to_int(row[5]) or 0,
        "r2": _to_float(row[6]),
        "afr_1000g_prop": _to_float(row[7]),
        "amr_1000g_prop": _to_float(row[8]),
        "eas_1000g_prop": _to_float(row[9]),
        "eur_1000g_prop": _to_float(row[10]),
        "sas_1000g_prop": _to_float(row[11]),
        "log10_abf": _to_float(row[12]),
        "posterior_probability": _to_float(row[13]),
    }


def decode_index_variant_association(row: Sequence[Any]) -> IndexVariantAssociation:
    _expect(row, 14, "Index variant association")
    return IndexVariantAssociation(
        tag_variant=decode_variant_id(row[0], row[1]),
        **_association_fields(row),
    )


def decode_tag_variant_association(row: Sequence[Any]) -> TagVariantAssociation:
    _expect(row, 14, "Tag variant association")
    return TagVariantAssociation(
        index_variant=decode_variant_id(row[0], row[1]),
        **_association_fields(row),
    )


def decode_gecko_line(row: Sequence[Any]) -> GeckoLine:
    _expect(row, 4 + GENE_COLUMN_COUNT + 5, "Gecko")
    gene = decode_gene(row[4 : 4 + GENE_COLUMN_COUNT])
    stid, r2, posterior_prob, pval, overall_score = row[4 + GENE_COLUMN_COUNT :]
    return GeckoLine(
        tag_variant=decode_variant_id(row[0], row[1]),
        index_variant=decode_variant_id(row[2], row[3]),
        gene=gene,
        study_id=str(_required(stid, "stid")),
        r2=_to_float(r2),
        posterior_probability=_to_float(posterior_prob),
        pval=float(_to_float(_required(pval, "pval"))),
        overall_score=float(_to_float(_required(overall_score, "overall_score"))),
    )


def decode_scored_g2v_line(row: Sequence[Any]) -> ScoredG2VLine:
    _expect(row, GENE_COLUMN_COUNT + 14, "G2V")
    gene = decode_gene(row[:GENE_COLUMN_COUNT])
    (
        overall_score,
        source_list,
        source_score_list,
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
        interval_score_q,
    ) = row[GENE_COLUMN_COUNT:]

    sources = _split_sequence(source_list)
    source_scores = [_to_float(score) for score in _split_sequence(source_score_list)]
    if len(sources) != len(source_scores):
        raise DecodeError(f"Source score breakdown for {gene.id} has mismatched lengths")

    return ScoredG2VLine(
        gene=gene,
        overall_score=float(_to_float(_required(overall_score, "overall_score"))),
        source_scores=dict(zip(sources, source_scores)),
        type_id=str(_required(type_id, "type_id")),
        source_id=str(_required(source_id, "source_id")),
        feature=str(_required(feature, "feature")),
        fpred_max_label=_to_string(fpred_max_label),
        fpred_max_score=_to_float(fpred_max_score),
        qtl_beta=_to_float(qtl_beta),
        qtl_se=_to_float(qtl_se),
        qtl_pval=_to_float(qtl_pval),
        interval_score=_to_float(interval_score),
        qtl_score_q=_to_float(qtl_score_q),
        interval_score_q=_to_float(interval_score_q),
    )


def _source(document: Mapping[str, Any]) -> Mapping[str, Any]:
    return document.get("_source", document)


def decode_gene_document(document: Mapping[str, Any]) -> Gene:
    doc = _source(document)
    return decode_gene(
        [
            doc.get("gene_id"),
            doc.get("gene_name"),
            doc.get("biotype"),
            doc.get("chr"),
            doc.get("tss"),
            doc.get("start"),
            doc.get("end"),
            doc.get("fwdstrand"),
            doc.get("exons"),
        ]
    )


def decode_variant_document(document: Mapping[str, Any]) -> VariantSearchResult:
    doc = _source(document)
    position = _to_int(_required(doc.get("position"), "position"))
    if position is None or position < 0:
        raise DecodeError(f"Variant document has an invalid position: {doc.get('position')!r}")
    variant = Variant(
        position=Position(str(_required(doc.get("chr_id"), "chr_id")).upper(), position),
        reference_allele=str(_required(doc.get("ref_allele"), "ref_allele")).upper(),
        alternate_allele=str(_required(doc.get("alt_allele"), "alt_allele")).upper(),
        rs_id=_to_string(doc.get("rs_id")),
        nearest_gene_id=_to_string(doc.get("gene_id_any")),
        nearest_coding_gene_id=_to_string(doc.get("gene_id_prot_coding")),
    )
    return VariantSearchResult(variant=variant)


def decode_study_document(document: Mapping[str, Any]) -> Study:
    doc = _source(document)
    return decode_study(
        [
            doc.get(name)
            for name in (
                "study_id",
                "trait_code",
                "trait_reported",
                "trait_efos",
                "pmid",
                "pub_date",
                "pub_journal",
                "pub_title",
                "pub_author",
                "ancestry_initial",
                "ancestry_replication",
                "n_initial",
                "n_replication",
                "n_cases",
                "trait_category",
            )
        ]
    )
