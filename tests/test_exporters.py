"""Tests for export modules: summary JSON, Markdown report, CSV, Excel."""

import csv
import json

import openpyxl
import pytest

from selfcite.analysis.identity import merge_authors
from selfcite.analysis.metrics import compute_metrics
from selfcite.exporters import export_all
from selfcite.exporters.publications_table import export_publications_csv
from selfcite.exporters.summary import build_summary, generate_report, rate_band
from selfcite.pipeline.orchestrator import AnalysisResult
from selfcite.sources.models import AuthorRecord, AuthorStub, CitingWork, Publication

JANE = AuthorStub(author_id="A1", name="Jane Doe")
BOB = AuthorStub(author_id="B1", name="Bob Lee")


def _analyzed(pid, citations, citing, m1, m2, year=2020):
    return Publication(
        paper_id=pid,
        title=f"Paper {pid}",
        year=year,
        authors=[JANE, BOB],
        citation_count=citations,
        citing_works=citing,
        method1_self_citation_count=m1,
        method2_self_citation_count=m2,
    )


@pytest.fixture()
def result():
    pubs = [
        _analyzed("P1", 4, [CitingWork(paper_id="C1", authors=[JANE])], 1, 1, year=2018),
        _analyzed(
            "P2",
            6,
            [
                CitingWork(paper_id="C2", title="Follow-up", authors=[JANE]),
                CitingWork(paper_id="C3", authors=[AuthorStub(name="bob lee")]),
                CitingWork(paper_id="C4", authors=[AuthorStub(name="Someone")]),
            ],
            1,
            2,
            year=2022,
        ),
    ]
    author = merge_authors([AuthorRecord(author_id="A1", name="Jane Doe", h_index=2)])
    return AnalysisResult(author=author, publications=pubs, metrics=compute_metrics(pubs))


@pytest.fixture()
def merged_result(result):
    records = [
        AuthorRecord(author_id="A1", name="Jane Doe"),
        AuthorRecord(author_id="A2", name="J. Doe"),
    ]
    author = merge_authors(records).model_copy(update={"h_index": 2})
    return result.model_copy(update={"author": author, "original_authors": records})


# ── Summary ──────────────────────────────────────────────────────────


def test_build_summary(result):
    summary = build_summary(result)
    assert summary["author"]["id"] == "A1"
    assert summary["metrics"]["total_papers"] == 2
    assert summary["metrics"]["method2_self_citations"] == 3
    assert summary["total_citations"] == 10
    assert summary["citation_coverage"] == 40.0
    assert "original_authors" not in summary
    json.dumps(summary)


def test_build_summary_merged(merged_result):
    summary = build_summary(merged_result)
    assert summary["author"]["author_ids"] == ["A1", "A2"]
    assert summary["author"]["name_variants"] == ["J. Doe"]
    assert len(summary["original_authors"]) == 2


def test_report_sections(result):
    report = generate_report(result)
    assert report.startswith("# Self-citation analysis: Jane Doe")
    assert "## Method 1" in report
    assert "## Method 2" in report
    assert "- Self-citations: 3" in report
    assert "Warning" not in report


@pytest.mark.parametrize(
    "rate, band", [(0.0, "Low"), (5.0, "Low"), (5.1, "Moderate"), (10.0, "Moderate"), (10.5, "High")]
)
def test_rate_band(rate, band):
    assert rate_band(rate) == band


def test_report_shows_band_and_paper_share(result):
    report = generate_report(result)
    # method 1: 2 of 10 citations, both papers affected
    assert "- Self-citation rate: 20.0% (High)" in report
    assert "- Papers with self-citations: 2 (100.0% of papers)" in report


def test_report_without_publications(result):
    empty = result.model_copy(update={"publications": [], "metrics": compute_metrics([])})
    report = generate_report(empty)
    assert "- Self-citation rate: 0.0% (Low)" in report
    assert "- Papers with self-citations: 0 (0.0% of papers)" in report


def test_report_warns_on_name_mismatch(merged_result):
    report = generate_report(merged_result)
    assert "Merged author ids: A1, A2" in report
    assert "Warning" in report
    assert "J. Doe" in report


# ── Tables ───────────────────────────────────────────────────────────


def test_csv_sorted_by_citations(result, tmp_path):
    path = tmp_path / "pubs.csv"
    export_publications_csv(result, str(path), sort_by="citations")
    with open(path) as f:
        rows = list(csv.reader(f))

    assert rows[0][0] == "paper_id"
    assert [r[0] for r in rows[1:]] == ["P2", "P1"]
    assert rows[1][4] == "Jane Doe; Bob Lee"
    assert rows[1][6] == "3"


def test_csv_sorted_by_year(result, tmp_path):
    path = tmp_path / "pubs.csv"
    export_publications_csv(result, str(path), sort_by="year")
    with open(path) as f:
        rows = list(csv.reader(f))
    assert [r[2] for r in rows[1:]] == ["2022", "2018"]


def test_export_all(result, tmp_path):
    paths = export_all(result, str(tmp_path / "out"))

    assert set(paths) == {"summary_json", "report_md", "publications_csv", "publications_xlsx"}
    with open(paths["summary_json"]) as f:
        assert json.load(f)["metrics"]["method1_self_citations"] == 2

    wb = openpyxl.load_workbook(paths["publications_xlsx"])
    assert wb.sheetnames == ["Publications", "Self-Citations", "Metrics"]
    # C1 and C2 (both methods), C3 (method 2 only); C4 not a self-citation
    flagged = list(wb["Self-Citations"].iter_rows(min_row=2, values_only=True))
    assert [row[2] for row in flagged] == ["C1", "C2", "C3"]
    assert flagged[2][5:] == (False, True)
    assert wb["Publications"].max_row == 3
