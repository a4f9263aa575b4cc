import json
import subprocess
import sys
from pathlib import Path

import pytest

duckdb = pytest.importorskip("duckdb")

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPT = REPO_ROOT / "scripts" / "query_backend.py"


def _write_studies_db(path: Path) -> None:
    connection = duckdb.connect(str(path))
    try:
        connection.execute(
            """
CREATE TABLE studies (
    study_id VARCHAR, trait_code VARCHAR, trait_reported VARCHAR, trait_efos VARCHAR[],
    pmid VARCHAR, pub_date VARCHAR, pub_journal VARCHAR, pub_title VARCHAR, pub_author VARCHAR,
    ancestry_initial VARCHAR[], ancestry_replication VARCHAR[],
    n_initial BIGINT, n_replication BIGINT, n_cases BIGINT, trait_category VARCHAR
)
"""
        )
        connection.execute(
            """
INSERT INTO studies VALUES
    ('GCST1', 'T1', 'Height', ['EFO_0004339'], 'PMID:1', NULL, NULL, NULL, NULL,
     [], [], 1000, NULL, NULL, 'Measurement')
"""
        )
    finally:
        connection.close()


def test_query_backend_prints_studies_as_json(tmp_path: Path) -> None:
    db_path = tmp_path / "genetics.duckdb"
    _write_studies_db(db_path)

    result = subprocess.run(
        [sys.executable, str(SCRIPT), "--db-path", str(db_path), "studies", "GCST1", "GCST1"],
        check=True,
        capture_output=True,
        text=True,
    )

    payload = json.loads(result.stdout)
    assert [study["study_id"] for study in payload] == ["GCST1"]
    assert payload[0]["trait_efos"] == ["EFO_0004339"]


def test_query_backend_rejects_invalid_variant(tmp_path: Path) -> None:
    db_path = tmp_path / "genetics.duckdb"
    _write_studies_db(db_path)

    result = subprocess.run(
        [sys.executable, str(SCRIPT), "--db-path", str(db_path), "g2v", "not_a_variant"],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 2
    assert "not_a_variant" in result.stderr


def test_query_backend_reports_unreachable_search_engine(tmp_path: Path) -> None:
    db_path = tmp_path / "genetics.duckdb"
    _write_studies_db(db_path)

    result = subprocess.run(
        [
            sys.executable,
            str(SCRIPT),
            "--db-path",
            str(db_path),
            "--search-url",
            "http://127.0.0.1:9",
            "search",
            "BRCA1",
        ],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 1
    assert "Request failed" in result.stderr
    assert "Traceback" not in result.stderr
